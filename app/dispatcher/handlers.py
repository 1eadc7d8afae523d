"""
Dispatcher Handlers - per-capability provider fallback chains.

This module walks a capability's provider chain in priority order and
returns the first usable normalized result, degrading to a canned response
when every provider fails.

Key components:
- CapabilityDispatcher: Sequential first-success-wins chain walk
- ChatDispatcher / ImageDispatcher / SearchDispatcher: Capability defaults
- Dispatcher: Facade used by the HTTP layer (invoke + analyze_file)

Dispatch never raises: provider problems come back as ProviderFailure
values, are logged, and advance the chain.
"""

from abc import ABC, abstractmethod
import logging
import time

from app.config import Settings, settings_secret_resolver
from app.dispatcher.clients import ProviderClient
from app.dispatcher.normalizer import normalize
from app.dispatcher.results import (
    FailureKind,
    ImageResult,
    Invocation,
    NormalizedResult,
    ProviderFailure,
    SnippetResult,
    TextResult,
)
from app.files.extractor import extract_text
from app.registry.providers import (
    Capability,
    ProviderChain,
    ProviderRegistry,
    ProviderSpec,
    SearchMode,
    build_provider_registry,
)

logger = logging.getLogger(__name__)


ANALYZE_PROMPT_TEMPLATE = """Analyze the following content and respond to the request.

Request: {request}

Content:
{content}"""


class CapabilityDispatcher(ABC):
    """
    Walks one capability's provider chain.

    Subclasses only choose the chain and the degraded default; the
    fallback loop itself is shared.

    Attributes:
        capability: The capability this dispatcher serves
    """

    capability: Capability

    def __init__(self, registry: ProviderRegistry, client: ProviderClient) -> None:
        self._registry = registry
        self._client = client

    def chain_for(self, invocation: Invocation) -> ProviderChain:
        """Provider chain for this invocation."""
        return self._registry.get_chain(self.capability)

    @abstractmethod
    def degraded_default(
        self, invocation: Invocation, failures: tuple[ProviderFailure, ...]
    ) -> NormalizedResult:
        """Canned result returned when the whole chain fails."""
        raise NotImplementedError

    async def _attempt(
        self, spec: ProviderSpec, invocation: Invocation
    ) -> NormalizedResult | ProviderFailure:
        """Call one provider and normalize its answer."""
        try:
            outcome = await self._client.call(spec, invocation)
            if isinstance(outcome, ProviderFailure):
                return outcome
            return normalize(spec, outcome)
        except Exception as e:
            logger.exception(f"Unexpected error calling provider {spec.name}")
            return ProviderFailure(
                kind=FailureKind.NETWORK_ERROR,
                provider=spec.name,
                detail=f"unexpected error: {e}",
            )

    async def invoke(self, invocation: Invocation) -> NormalizedResult:
        """
        Dispatch an invocation through the provider chain.

        Providers are attempted one at a time in chain order. The first
        provider whose response normalizes to a usable payload wins and no
        further providers are called.

        Args:
            invocation: The dispatch request.

        Returns:
            The winning provider's result, or the degraded default when
            every provider failed.
        """
        chain = self.chain_for(invocation)
        failures: list[ProviderFailure] = []
        start_time = time.perf_counter()

        for spec in chain.providers:
            outcome = await self._attempt(spec, invocation)

            if isinstance(outcome, ProviderFailure):
                failures.append(outcome)
                logger.warning(
                    f"{self.capability.value} provider failed: "
                    f"provider={spec.name}, failure={outcome.kind.value}"
                    + (f", status={outcome.status}" if outcome.status else "")
                    + (f", detail={outcome.detail}" if outcome.detail else "")
                )
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{self.capability.value} dispatch completed: provider={spec.name}, "
                f"attempts={len(failures) + 1}, latency={latency_ms:.0f}ms"
            )
            return _with_failures(outcome, tuple(failures))

        logger.error(
            f"{self.capability.value} dispatch exhausted chain "
            f"{chain.names()}, returning degraded default"
        )
        return self.degraded_default(invocation, tuple(failures))


def _with_failures(
    result: NormalizedResult, failures: tuple[ProviderFailure, ...]
) -> NormalizedResult:
    if not failures:
        return result
    if isinstance(result, TextResult):
        return TextResult(
            content=result.content,
            provider=result.provider,
            failures=failures,
        )
    if isinstance(result, SnippetResult):
        return SnippetResult(text=result.text, provider=result.provider, failures=failures)
    return ImageResult(
        encoded_bytes=result.encoded_bytes,
        mime_type=result.mime_type,
        url=result.url,
        provider=result.provider,
        failures=failures,
    )


class ChatDispatcher(CapabilityDispatcher):
    """Chat completion: degrades to an apology that echoes the input."""

    capability = Capability.CHAT

    def degraded_default(
        self, invocation: Invocation, failures: tuple[ProviderFailure, ...]
    ) -> TextResult:
        return TextResult(
            content=(
                f'Sorry, I couldn\'t generate a response to "{invocation.input}" '
                "at the moment."
            ),
            degraded=True,
            failures=failures,
        )


class ImageDispatcher(CapabilityDispatcher):
    """Image generation: degrades to a plain-text notice, not an image."""

    capability = Capability.IMAGE

    def degraded_default(
        self, invocation: Invocation, failures: tuple[ProviderFailure, ...]
    ) -> TextResult:
        return TextResult(
            content=(
                f'Sorry, I couldn\'t generate an image for "{invocation.input}" '
                "at the moment."
            ),
            degraded=True,
            failures=failures,
        )


class SearchDispatcher(CapabilityDispatcher):
    """
    Web and research search.

    The sub-mode selects an entirely different chain; research and web
    also have different degraded defaults.
    """

    capability = Capability.SEARCH

    def chain_for(self, invocation: Invocation) -> ProviderChain:
        return self._registry.get_chain(
            Capability.SEARCH, invocation.sub_mode or SearchMode.WEB
        )

    def degraded_default(
        self, invocation: Invocation, failures: tuple[ProviderFailure, ...]
    ) -> SnippetResult:
        if invocation.sub_mode is SearchMode.RESEARCH:
            text = "No research result found."
        else:
            text = f"No results found for: {invocation.input}"
        return SnippetResult(text=text, degraded=True, failures=failures)


class Dispatcher:
    """
    Entry point used by the HTTP layer.

    Holds one CapabilityDispatcher per capability, all sharing the same
    immutable registry and stateless client.

    Usage:
        dispatcher = Dispatcher.from_settings(get_settings())
        result = await dispatcher.invoke(Capability.CHAT, "hi")
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        client: ProviderClient,
        *,
        image_size: str | None = None,
        file_max_chars: int = 5000,
    ) -> None:
        self.registry = registry
        self._image_size = image_size
        self._file_max_chars = file_max_chars
        self._dispatchers: dict[Capability, CapabilityDispatcher] = {
            Capability.CHAT: ChatDispatcher(registry, client),
            Capability.IMAGE: ImageDispatcher(registry, client),
            Capability.SEARCH: SearchDispatcher(registry, client),
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "Dispatcher":
        """Build the registry, client and dispatchers from settings."""
        client = ProviderClient(
            settings_secret_resolver(settings),
            timeout=settings.provider_timeout_seconds,
            system_prompt=settings.system_prompt,
        )
        return cls(
            build_provider_registry(settings),
            client,
            image_size=settings.image_size,
            file_max_chars=settings.file_analysis_max_chars,
        )

    async def invoke(
        self,
        capability: Capability,
        input: str,
        sub_mode: SearchMode | str | None = None,
        size: str | None = None,
    ) -> NormalizedResult:
        """
        Dispatch a request to the chain for its capability.

        Args:
            capability: Capability to serve.
            input: Free text from the user.
            sub_mode: Search sub-mode ("research" or "web"); unknown values
                fall back to web search.
            size: Image size hint (WIDTHxHEIGHT).

        Returns:
            A NormalizedResult; never raises.
        """
        invocation = Invocation(
            capability=capability,
            input=input,
            sub_mode=_coerce_search_mode(sub_mode),
            size=size or self._image_size,
        )
        logger.info(f"Dispatching {capability.value} invocation")
        return await self._dispatchers[capability].invoke(invocation)

    async def analyze_file(self, data: bytes, request: str = "") -> NormalizedResult:
        """
        Analyze an uploaded file through the chat chain.

        The file text is truncated to the configured maximum before being
        wrapped in the analysis prompt.

        Args:
            data: Raw file bytes.
            request: The user's message accompanying the file.

        Returns:
            The chat dispatcher's result.
        """
        content = extract_text(data, max_chars=self._file_max_chars)
        prompt = ANALYZE_PROMPT_TEMPLATE.format(
            request=request or "Summarize this content.",
            content=content,
        )
        result = await self.invoke(Capability.CHAT, prompt)
        if result.degraded:
            # Don't echo the whole wrapped file back to the user
            return TextResult(
                content="Sorry, I couldn't analyze the file at the moment.",
                degraded=True,
                failures=result.failures,
            )
        return result


def _coerce_search_mode(value: SearchMode | str | None) -> SearchMode | None:
    if value is None or isinstance(value, SearchMode):
        return value
    if value.strip().lower() == SearchMode.RESEARCH.value:
        return SearchMode.RESEARCH
    return SearchMode.WEB
