"""
Router Engine - capability inference for messages without an explicit mode.

When a client does not choose a mode, the router picks one from the message
text before dispatch. Inference is a replaceable strategy:

1. KeywordCapabilityClassifier (default): ordered regex rules over
   capability-indicative vocabulary; first match wins, default is chat.
2. SemanticCapabilityClassifier: the same keyword rules first, then
   semantic similarity against per-mode utterances using FastEmbed's local
   ONNX inference and semantic-router.

Both strategies are heuristic; overlapping vocabulary (e.g. "create a
summary") resolves to the first matching rule.
"""

import logging
import re
import time
from dataclasses import dataclass

from semantic_router import SemanticRouter
from semantic_router.encoders import FastEmbedEncoder

from app.config import Settings
from app.registry.providers import Mode
from app.router.routes import ROUTE_MODES, create_routes

logger = logging.getLogger(__name__)


@dataclass
class RouteChoice:
    """
    Result of a capability inference.

    Attributes:
        mode: Selected request mode
        confidence: Match confidence (1.0 for keyword hits, similarity for
                    semantic hits, 0.0 for the default)
        latency_ms: Time taken for the decision in milliseconds
        fallback_used: Whether nothing matched and the default mode was used
        matched: The keyword or route name that matched, if any
    """

    mode: Mode
    confidence: float
    latency_ms: float
    fallback_used: bool = False
    matched: str | None = None

    def __post_init__(self):
        """Ensure confidence is within valid bounds."""
        self.confidence = max(0.0, min(1.0, self.confidence))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "mode": self.mode.value,
            "capability": self.mode.capability.value,
            "confidence": round(self.confidence, 4),
            "latency_ms": round(self.latency_ms, 2),
            "fallback_used": self.fallback_used,
            "matched": self.matched,
        }


@dataclass(frozen=True)
class KeywordRule:
    """A mode selected when its pattern matches the lowercased message."""

    mode: Mode
    pattern: re.Pattern


DEFAULT_KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        Mode.GENERATE_IMAGE,
        re.compile(r"\b(generate|draw|create|image|picture|illustration)"),
    ),
    KeywordRule(
        Mode.ANALYZE_FILES,
        re.compile(r"\b(analy[sz]e|summari[sz]e|check tone|extract)"),
    ),
    KeywordRule(
        Mode.WEB_SEARCH,
        re.compile(r"\b(search|find|look up|what is|who is|how to)\b"),
    ),
)


class KeywordCapabilityClassifier:
    """
    Keyword-based capability inference.

    Rules are evaluated in order; the first rule whose pattern matches
    decides the mode. Messages matching no rule go to the default mode.

    Usage:
        classifier = KeywordCapabilityClassifier()
        choice = await classifier.route("draw me a cat")
    """

    strategy = "keyword"

    def __init__(
        self,
        rules: tuple[KeywordRule, ...] = DEFAULT_KEYWORD_RULES,
        default_mode: Mode = Mode.DEFAULT,
    ) -> None:
        self._rules = rules
        self._default_mode = default_mode

    async def initialize(self) -> None:
        """Nothing to load for keyword rules."""

    @property
    def is_initialized(self) -> bool:
        return True

    def match(self, content: str) -> RouteChoice | None:
        """Return the first matching rule's choice, or None."""
        content_lower = content.lower()
        for rule in self._rules:
            found = rule.pattern.search(content_lower)
            if found:
                logger.debug(f"Keyword '{found.group(0)}' selected {rule.mode.value}")
                return RouteChoice(
                    mode=rule.mode,
                    confidence=1.0,
                    latency_ms=0.0,
                    matched=found.group(0),
                )
        return None

    async def route(self, content: str) -> RouteChoice:
        """
        Infer the request mode for a message.

        Args:
            content: The message text.

        Returns:
            RouteChoice with the selected mode.
        """
        start_time = time.perf_counter()
        choice = self.match(content)
        latency_ms = (time.perf_counter() - start_time) * 1000

        if choice is None:
            return RouteChoice(
                mode=self._default_mode,
                confidence=0.0,
                latency_ms=latency_ms,
                fallback_used=True,
            )

        choice.latency_ms = latency_ms
        return choice

    def get_routes_info(self) -> dict:
        """Describe the configured rules."""
        return {
            "strategy": self.strategy,
            "rules": [
                {"mode": rule.mode.value, "pattern": rule.pattern.pattern}
                for rule in self._rules
            ],
            "default_mode": self._default_mode.value,
        }


class SemanticCapabilityClassifier:
    """
    Semantic capability inference with keyword pre-filtering.

    Keyword rules run first (fast regex); only messages they do not match
    are embedded and compared against the per-mode route utterances.
    Routing errors and low-confidence matches fall back to the default
    mode.

    Usage:
        classifier = SemanticCapabilityClassifier(settings)
        await classifier.initialize()
        choice = await classifier.route("who painted the mona lisa")
    """

    strategy = "semantic"

    def __init__(
        self,
        settings: Settings,
        keywords: KeywordCapabilityClassifier | None = None,
    ) -> None:
        """
        Initialize the classifier.

        Note: This does NOT create the encoder or routes. Call initialize()
        separately; route utterances are embedded then.
        """
        self._settings = settings
        self._keywords = keywords or KeywordCapabilityClassifier()
        self._router: SemanticRouter | None = None
        self._initialized = False
        self._init_latency_ms: float = 0.0

    async def initialize(self) -> None:
        """
        Create the encoder and embed the route utterances.

        Raises:
            RuntimeError: If initialization fails
        """
        if self._initialized:
            logger.debug("Semantic classifier already initialized, skipping")
            return

        logger.info("Initializing semantic capability classifier...")
        start_time = time.perf_counter()

        try:
            encoder = FastEmbedEncoder(
                name=self._settings.embedding_model,
                score_threshold=self._settings.similarity_threshold,
                cache_dir=self._settings.embedding_cache_dir,
                threads=self._settings.embedding_threads,
            )
            routes = create_routes()
            self._router = SemanticRouter(
                encoder=encoder,
                routes=routes,
                auto_sync="local",
            )
        except Exception as e:
            logger.error(f"Failed to initialize semantic classifier: {e}")
            raise RuntimeError(f"Semantic classifier initialization failed: {e}") from e

        self._init_latency_ms = (time.perf_counter() - start_time) * 1000
        self._initialized = True
        logger.info(
            f"Semantic classifier initialized with {len(routes)} routes "
            f"in {self._init_latency_ms:.2f}ms"
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def route(self, content: str) -> RouteChoice:
        """
        Infer the request mode for a message.

        Raises:
            RuntimeError: If the classifier has not been initialized
        """
        if not self._initialized or self._router is None:
            raise RuntimeError(
                "SemanticCapabilityClassifier not initialized. Call initialize() first."
            )

        start_time = time.perf_counter()

        keyword_choice = self._keywords.match(content)
        if keyword_choice is not None:
            keyword_choice.latency_ms = (time.perf_counter() - start_time) * 1000
            return keyword_choice

        try:
            route_result = self._router(content)
        except Exception as e:
            logger.error(f"Semantic routing failed: {e}. Using default mode.")
            route_result = None

        latency_ms = (time.perf_counter() - start_time) * 1000
        route_name = getattr(route_result, "name", None)

        if route_name not in ROUTE_MODES:
            return RouteChoice(
                mode=Mode.DEFAULT,
                confidence=0.0,
                latency_ms=latency_ms,
                fallback_used=True,
            )

        confidence = getattr(route_result, "similarity_score", None) or 0.0
        logger.debug(
            f"Routed to '{route_name}' with confidence {confidence:.3f}. "
            f"Latency: {latency_ms:.2f}ms"
        )

        return RouteChoice(
            mode=ROUTE_MODES[route_name],
            confidence=float(confidence),
            latency_ms=latency_ms,
            matched=route_name,
        )

    def get_routes_info(self) -> dict:
        """Describe the keyword rules and semantic routes."""
        info = self._keywords.get_routes_info()
        info["strategy"] = self.strategy
        info["routes"] = list(ROUTE_MODES)
        info["encoder"] = self._settings.embedding_model
        info["threshold"] = self._settings.similarity_threshold
        info["init_latency_ms"] = round(self._init_latency_ms, 2)
        return info


CapabilityClassifier = KeywordCapabilityClassifier | SemanticCapabilityClassifier


def build_classifier(settings: Settings) -> CapabilityClassifier:
    """
    Create the classifier selected by settings.classifier_strategy.

    The returned classifier still needs `await classifier.initialize()`.
    """
    if settings.classifier_strategy == "semantic":
        return SemanticCapabilityClassifier(settings)
    return KeywordCapabilityClassifier()
