"""
Provider Registry

This module defines the provider chains used by the capability dispatchers:
- Chat: Groq (primary) -> Hugging Face Mistral 7B Instruct (fallback)
- Image: Flux (primary) -> Stability SDXL (fallback)
- Search / research: Exa
- Search / web: Serper (primary) -> Google Custom Search (fallback)

Each provider entry includes:
- Name, capability and provider kind (its request/response contract)
- Endpoint, HTTP method and authentication scheme
- The name of the single secret it needs

Chains are immutable and built once from Settings at startup. Index 0 of a
chain is the primary provider; the rest are fallbacks in priority order.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.config import Settings


class Capability(str, Enum):
    """Task types served by the gateway."""

    CHAT = "chat"
    IMAGE = "image"
    SEARCH = "search"


class SearchMode(str, Enum):
    """Search sub-modes. Each one has its own provider chain."""

    RESEARCH = "research"
    WEB = "web"


class Mode(str, Enum):
    """
    User-facing request modes.

    A mode is either chosen explicitly by the client or inferred from the
    message text by the capability classifier.
    """

    DEFAULT = "Default"
    GENERATE_IMAGE = "Generate Image"
    WEB_SEARCH = "Web Search"
    RESEARCH = "Research"
    ANALYZE_FILES = "Analyze Files"

    @property
    def capability(self) -> Capability:
        """Capability whose chain serves this mode."""
        return _MODE_CAPABILITIES[self]

    @property
    def search_mode(self) -> SearchMode | None:
        """Search sub-mode for search modes, None otherwise."""
        if self is Mode.RESEARCH:
            return SearchMode.RESEARCH
        if self is Mode.WEB_SEARCH:
            return SearchMode.WEB
        return None


# File analysis is a thin wrapper over chat.
_MODE_CAPABILITIES: dict[Mode, Capability] = {
    Mode.DEFAULT: Capability.CHAT,
    Mode.ANALYZE_FILES: Capability.CHAT,
    Mode.GENERATE_IMAGE: Capability.IMAGE,
    Mode.WEB_SEARCH: Capability.SEARCH,
    Mode.RESEARCH: Capability.SEARCH,
}


class ProviderKind(str, Enum):
    """Request/response contract of a provider API."""

    GROQ_CHAT = "groq_chat"
    HUGGINGFACE_TEXT = "huggingface_text"
    FLUX_IMAGE = "flux_image"
    STABILITY_IMAGE = "stability_image"
    EXA_SEARCH = "exa_search"
    SERPER_SEARCH = "serper_search"
    GOOGLE_CSE = "google_cse"


class AuthScheme(str, Enum):
    """How the provider credential is attached to the request."""

    BEARER = "bearer"  # Authorization: Bearer <key>
    HEADER = "header"  # <auth_name>: <key>
    QUERY = "query"  # ?<auth_name>=<key>


class ProviderSpec(BaseModel):
    """
    Static description of one provider endpoint.

    Specs are frozen: they are shared read-only by every concurrent
    invocation.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique provider name used in logs")

    capability: Capability = Field(..., description="Capability served")

    kind: ProviderKind = Field(..., description="Request/response contract")

    endpoint: str = Field(..., description="Fixed request URL")

    method: str = Field(default="POST", description="HTTP method")

    auth_scheme: AuthScheme = Field(default=AuthScheme.BEARER)

    auth_name: str = Field(
        default="Authorization",
        description="Header or query parameter carrying the key",
    )

    secret_name: str = Field(..., description="Name of the required secret")

    model: str | None = Field(default=None, description="Provider model name")

    params: dict[str, Any] = Field(
        default_factory=dict, description="Extra provider-specific parameters"
    )


class ProviderChain(BaseModel):
    """Ordered providers for one capability (and search mode)."""

    model_config = ConfigDict(frozen=True)

    capability: Capability

    search_mode: SearchMode | None = None

    providers: tuple[ProviderSpec, ...]

    @property
    def primary(self) -> ProviderSpec:
        """The first provider attempted."""
        return self.providers[0]

    def names(self) -> list[str]:
        """Provider names in attempt order."""
        return [spec.name for spec in self.providers]


ChainKey = tuple[Capability, SearchMode | None]


class ProviderRegistry:
    """
    Immutable mapping of (capability, search mode) to provider chains.

    Build it once with build_provider_registry() and pass it to the
    dispatchers; nothing reads provider configuration from global scope at
    call time.
    """

    def __init__(self, chains: list[ProviderChain]) -> None:
        self._chains: dict[ChainKey, ProviderChain] = {}
        for chain in chains:
            if not chain.providers:
                raise ValueError(f"Empty provider chain for {chain.capability.value}")
            key = (chain.capability, chain.search_mode)
            if key in self._chains:
                raise ValueError(f"Duplicate provider chain for {key}")
            self._chains[key] = chain

    def get_chain(
        self, capability: Capability, search_mode: SearchMode | None = None
    ) -> ProviderChain:
        """
        Get the provider chain for a capability.

        Search defaults to the web chain when no sub-mode is given; other
        capabilities ignore the sub-mode.

        Raises:
            KeyError: If no chain is registered for the capability.
        """
        if capability is Capability.SEARCH:
            return self._chains[(capability, search_mode or SearchMode.WEB)]
        return self._chains[(capability, None)]

    def list_providers(self) -> list[ProviderSpec]:
        """Return every distinct provider spec, in registration order."""
        seen: dict[str, ProviderSpec] = {}
        for chain in self._chains.values():
            for spec in chain.providers:
                seen.setdefault(spec.name, spec)
        return list(seen.values())

    def describe(self) -> dict[str, list[str]]:
        """Chain names mapped to provider names, for the API."""
        return {
            _chain_label(chain.capability, chain.search_mode): chain.names()
            for chain in self._chains.values()
        }


def _chain_label(capability: Capability, search_mode: SearchMode | None) -> str:
    if search_mode is None:
        return capability.value
    return f"{capability.value}/{search_mode.value}"


def build_provider_registry(settings: Settings) -> ProviderRegistry:
    """
    Build the provider chains from settings.

    Args:
        settings: Application settings (endpoints, models, image size).

    Returns:
        A ProviderRegistry with the chat, image, research and web chains.
    """
    groq = ProviderSpec(
        name="groq",
        capability=Capability.CHAT,
        kind=ProviderKind.GROQ_CHAT,
        endpoint=settings.groq_endpoint,
        secret_name="groq-chat-key",
        model=settings.groq_chat_model,
        params={"max_tokens": 1024, "temperature": 0.7},
    )

    huggingface = ProviderSpec(
        name="huggingface",
        capability=Capability.CHAT,
        kind=ProviderKind.HUGGINGFACE_TEXT,
        endpoint=f"{settings.huggingface_endpoint.rstrip('/')}/{settings.huggingface_chat_model}",
        secret_name="huggingface-chat-key",
        model=settings.huggingface_chat_model,
        params={"max_new_tokens": 512},
    )

    flux = ProviderSpec(
        name="flux",
        capability=Capability.IMAGE,
        kind=ProviderKind.FLUX_IMAGE,
        endpoint=settings.flux_endpoint,
        secret_name="flux-image-key",
        model=settings.flux_model,
        params={"size": settings.image_size},
    )

    stability = ProviderSpec(
        name="stability",
        capability=Capability.IMAGE,
        kind=ProviderKind.STABILITY_IMAGE,
        endpoint=settings.stability_endpoint,
        secret_name="stability-image-key",
        params={"size": settings.image_size, "samples": 1},
    )

    exa = ProviderSpec(
        name="exa",
        capability=Capability.SEARCH,
        kind=ProviderKind.EXA_SEARCH,
        endpoint=settings.exa_endpoint,
        auth_scheme=AuthScheme.HEADER,
        auth_name="x-api-key",
        secret_name="exa-search-key",
        params={"num_results": 5},
    )

    serper = ProviderSpec(
        name="serper",
        capability=Capability.SEARCH,
        kind=ProviderKind.SERPER_SEARCH,
        endpoint=settings.serper_endpoint,
        auth_scheme=AuthScheme.HEADER,
        auth_name="X-API-KEY",
        secret_name="serper-search-key",
    )

    google_cse = ProviderSpec(
        name="google_cse",
        capability=Capability.SEARCH,
        kind=ProviderKind.GOOGLE_CSE,
        endpoint=settings.google_cse_endpoint,
        method="GET",
        auth_scheme=AuthScheme.QUERY,
        auth_name="key",
        secret_name="google-cse-key",
        params={"cx": settings.google_cse_id} if settings.google_cse_id else {},
    )

    return ProviderRegistry(
        [
            ProviderChain(capability=Capability.CHAT, providers=(groq, huggingface)),
            ProviderChain(capability=Capability.IMAGE, providers=(flux, stability)),
            ProviderChain(
                capability=Capability.SEARCH,
                search_mode=SearchMode.RESEARCH,
                providers=(exa,),
            ),
            ProviderChain(
                capability=Capability.SEARCH,
                search_mode=SearchMode.WEB,
                providers=(serper, google_cse),
            ),
        ]
    )
