"""
Provider Registry - Central registration and resolution of provider adapters

The ProviderRegistry maintains a mapping of provider_type strings to adapter
classes, enabling runtime resolution from a stored credential without tight
coupling between the state machine and concrete adapters.
"""

from typing import Dict, Type

from .ports import ProviderPort


class ProviderRegistry:
    """
    Registry for provider adapter implementations.

    Usage:
        # Register an adapter (typically at import time of implementations)
        ProviderRegistry.register("SHOPIFY", ShopifyProvider)

        # Get a fresh adapter instance per call
        provider = ProviderRegistry.get("SHOPIFY")
        result = provider.probe_reachability(credential)

    Thread-safety: Read operations are thread-safe after initial registration.
    Registration should happen only at startup in the main thread.
    """

    _providers: Dict[str, Type[ProviderPort]] = {}

    @classmethod
    def register(cls, provider_type: str, implementation: Type[ProviderPort]) -> None:
        """
        Register a provider implementation.

        Raises:
            ValueError: If provider_type is empty or implementation doesn't inherit from ProviderPort
            RuntimeError: If provider_type is already registered (prevents accidental override)
        """
        if not provider_type or not provider_type.strip():
            raise ValueError("provider_type cannot be empty")

        if not isinstance(implementation, type) or not issubclass(implementation, ProviderPort):
            raise ValueError(
                f"Implementation must inherit from ProviderPort, "
                f"got {getattr(implementation, '__name__', implementation)!r}"
            )

        if provider_type in cls._providers:
            raise RuntimeError(
                f"Provider type '{provider_type}' is already registered"
            )

        cls._providers[provider_type] = implementation

    @classmethod
    def get(cls, provider_type: str) -> ProviderPort:
        """
        Get a new adapter instance by type.

        Raises:
            ValueError: If provider_type is not registered
        """
        if provider_type not in cls._providers:
            available = ', '.join(sorted(cls._providers)) if cls._providers else 'none'
            raise ValueError(
                f"Unknown provider type: '{provider_type}'. "
                f"Available providers: {available}"
            )

        return cls._providers[provider_type]()

    @classmethod
    def list_available(cls) -> list[str]:
        return sorted(cls._providers.keys())

    @classmethod
    def is_registered(cls, provider_type: str) -> bool:
        return provider_type in cls._providers
