"""
Router module: Capability inference and semantic route definitions.

This module contains:
- routes.py: Semantic route utterances per request mode
- engine.py: Keyword and semantic capability classifiers

Public API:
- create_routes(): Factory function to create Route objects
- get_route_names(): Returns list of all route names
- ROUTE_MODES: Route name to request mode mapping
- RouteChoice: Result dataclass for inference decisions
- KeywordRule / DEFAULT_KEYWORD_RULES: Keyword inference policy
- KeywordCapabilityClassifier: Default inference strategy
- SemanticCapabilityClassifier: Embedding-based inference strategy
- build_classifier(): Pick the strategy from settings
"""

from app.router.routes import (
    create_routes,
    get_route_names,
    ROUTE_MODES,
    GENERATE_IMAGE_UTTERANCES,
    ANALYZE_FILES_UTTERANCES,
    WEB_SEARCH_UTTERANCES,
    CHAT_UTTERANCES,
)

from app.router.engine import (
    CapabilityClassifier,
    DEFAULT_KEYWORD_RULES,
    KeywordCapabilityClassifier,
    KeywordRule,
    RouteChoice,
    SemanticCapabilityClassifier,
    build_classifier,
)

__all__ = [
    # Factory functions
    "create_routes",
    "get_route_names",
    # Route metadata
    "ROUTE_MODES",
    # Utterance constants (for testing/extension)
    "GENERATE_IMAGE_UTTERANCES",
    "ANALYZE_FILES_UTTERANCES",
    "WEB_SEARCH_UTTERANCES",
    "CHAT_UTTERANCES",
    # Classifiers
    "RouteChoice",
    "KeywordRule",
    "DEFAULT_KEYWORD_RULES",
    "KeywordCapabilityClassifier",
    "SemanticCapabilityClassifier",
    "CapabilityClassifier",
    "build_classifier",
]
