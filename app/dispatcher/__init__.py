"""
Dispatcher module: Multi-provider fallback dispatch.

This module provides a unified interface for dispatching chat, image and
search requests across ordered provider chains. Each chain is walked
sequentially; the first usable result wins and a degraded default is
returned when every provider fails.

Key exports:
- Dispatcher: Facade holding one dispatcher per capability
- ChatDispatcher / ImageDispatcher / SearchDispatcher: Capability dispatchers
- ProviderClient: Single-call HTTP client per provider attempt
- normalize(): Provider-specific response extraction
- Result types: TextResult, ImageResult, SnippetResult, ProviderFailure
"""

from app.dispatcher.results import (
    # Result types
    FailureKind,
    ImageResult,
    Invocation,
    NormalizedResult,
    ProviderFailure,
    RawResponse,
    SnippetResult,
    TextResult,
)
from app.dispatcher.clients import ProviderClient, ProviderRequest, build_request
from app.dispatcher.normalizer import normalize
from app.dispatcher.handlers import (
    CapabilityDispatcher,
    ChatDispatcher,
    Dispatcher,
    ImageDispatcher,
    SearchDispatcher,
)

__all__ = [
    # Result types
    "FailureKind",
    "ProviderFailure",
    "RawResponse",
    "Invocation",
    "TextResult",
    "ImageResult",
    "SnippetResult",
    "NormalizedResult",
    # Provider calls
    "ProviderClient",
    "ProviderRequest",
    "build_request",
    "normalize",
    # Dispatchers
    "CapabilityDispatcher",
    "ChatDispatcher",
    "ImageDispatcher",
    "SearchDispatcher",
    "Dispatcher",
]
