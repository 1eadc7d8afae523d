"""
Registry module: Provider chain configuration.

This module contains:
- providers.py: Provider specs and the per-capability fallback chains

Public API:
- Capability: Enum of task types (chat, image, search)
- SearchMode: Enum of search sub-modes (research, web)
- Mode: Enum of user-facing request modes
- ProviderKind: Enum of provider request/response contracts
- AuthScheme: Enum of credential placements
- ProviderSpec: Frozen description of one provider endpoint
- ProviderChain: Ordered providers for one capability
- ProviderRegistry: Immutable chain lookup
- build_provider_registry: Build the chains from settings
"""

from app.registry.providers import (
    AuthScheme,
    Capability,
    Mode,
    ProviderChain,
    ProviderKind,
    ProviderRegistry,
    ProviderSpec,
    SearchMode,
    build_provider_registry,
)

__all__ = [
    "Capability",
    "SearchMode",
    "Mode",
    "ProviderKind",
    "AuthScheme",
    "ProviderSpec",
    "ProviderChain",
    "ProviderRegistry",
    "build_provider_registry",
]
