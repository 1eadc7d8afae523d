"""
Dispatcher result types.

Provider calls and normalization return either a value or a
ProviderFailure; nothing in the dispatch path raises to signal a provider
problem. The dispatcher's public return value is always one of the
NormalizedResult variants.
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.registry.providers import Capability, SearchMode


class FailureKind(str, Enum):
    """Why a provider attempt did not produce a usable result."""

    NETWORK_ERROR = "network_error"  # Transport failure, timeout, missing credential
    HTTP_ERROR = "http_error"  # Non-2xx status
    MALFORMED_BODY = "malformed_body"  # Body not parseable per expected schema
    EMPTY_RESULT = "empty_result"  # Parseable but expected field missing or empty


@dataclass(frozen=True)
class ProviderFailure:
    """
    Classified failure of a single provider attempt.

    Every kind advances the chain to the next provider.
    """

    kind: FailureKind
    provider: str
    status: int | None = None
    detail: str = ""

    def __str__(self) -> str:
        label = self.kind.value
        if self.status is not None:
            label = f"{label}({self.status})"
        if self.detail:
            return f"{self.provider}: {label}: {self.detail}"
        return f"{self.provider}: {label}"


@dataclass(frozen=True)
class RawResponse:
    """
    Successful (2xx) HTTP response from a provider, before normalization.

    Attributes:
        provider: Name of the provider that answered
        status_code: HTTP status code
        content: Raw response body
        content_type: Value of the Content-Type header (may be empty)
        latency_ms: Time spent on the call in milliseconds
    """

    provider: str
    status_code: int
    content: bytes
    content_type: str = ""
    latency_ms: float = 0.0

    @property
    def is_json(self) -> bool:
        return "json" in self.content_type.lower()

    def json(self) -> Any:
        """Parse the body as JSON. Raises ValueError on invalid data."""
        return json.loads(self.content)


@dataclass(frozen=True)
class TextResult:
    """Chat completion text (also used for degraded notices)."""

    content: str
    provider: str | None = None
    degraded: bool = False
    failures: tuple[ProviderFailure, ...] = ()


@dataclass(frozen=True)
class ImageResult:
    """
    Generated image.

    Providers answer either with base64 bytes or a hosted URL; exactly one
    of encoded_bytes and url is set.
    """

    encoded_bytes: str | None = None
    mime_type: str = "image/png"
    url: str | None = None
    provider: str | None = None
    degraded: bool = False
    failures: tuple[ProviderFailure, ...] = ()

    @property
    def data_uri(self) -> str | None:
        """The image embedded as a data URI, if bytes are available."""
        if self.encoded_bytes is None:
            return None
        return f"data:{self.mime_type};base64,{self.encoded_bytes}"

    @property
    def content(self) -> str:
        """Data URI when bytes are present, else the hosted URL."""
        return self.data_uri or self.url or ""


@dataclass(frozen=True)
class SnippetResult:
    """Search result snippet."""

    text: str
    provider: str | None = None
    degraded: bool = False
    failures: tuple[ProviderFailure, ...] = ()

    @property
    def content(self) -> str:
        return self.text


NormalizedResult = TextResult | ImageResult | SnippetResult


@dataclass(frozen=True)
class Invocation:
    """
    One dispatch request.

    Attributes:
        capability: Capability to serve
        input: Free text from the user
        sub_mode: Search sub-mode (research or web); ignored otherwise
        size: Image size hint as WIDTHxHEIGHT; ignored for non-image calls
        timestamp: Unix time the invocation was created
    """

    capability: Capability
    input: str
    sub_mode: SearchMode | None = None
    size: str | None = None
    timestamp: float = field(default_factory=time.time)
