"""
Providers module - external catalog and messaging provider integration

Plugin architecture for provider adapters behind a standard port:
- CatalogProviderPort / MessagingProviderPort define the collaborator contracts
- ProviderRegistry resolves an adapter from a credential's provider_type
- BaseProvider supplies short-lived HTTP clients, validation and probe logging
"""

from .ports import (
    ProviderPort,
    CatalogProviderPort,
    MessagingProviderPort,
    ProbeResult,
    RemoteCatalogItem,
    ProviderError,
)
from .registry import ProviderRegistry
from .base_provider import BaseProvider
from .registry_init import initialize_providers

__all__ = [
    "ProviderPort",
    "CatalogProviderPort",
    "MessagingProviderPort",
    "ProbeResult",
    "RemoteCatalogItem",
    "ProviderError",
    "ProviderRegistry",
    "BaseProvider",
    "initialize_providers",
]
