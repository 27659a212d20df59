"""Provider Registry Initialization - Register all adapters on startup.

Called from the FastAPI lifespan and the Celery worker_init signal. Safe to
call more than once. The mock adapters accept any credential and serve
whatever catalog the caller sends, so they are only registered when
ENABLE_MOCK_PROVIDERS is set (local development and tests).
"""

import logging
from typing import Optional

from ..config import settings
from .registry import ProviderRegistry
from .implementations import (
    ShopifyProvider,
    WhatsAppCloudProvider,
    TwilioSandboxProvider,
    MockCatalogProvider,
    MockMessagingProvider,
    MockActivationMessagingProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_PROVIDERS = (
    ShopifyProvider,
    WhatsAppCloudProvider,
    TwilioSandboxProvider,
)

MOCK_PROVIDERS = (
    MockCatalogProvider,
    MockMessagingProvider,
    MockActivationMessagingProvider,
)


def initialize_providers(include_mocks: Optional[bool] = None) -> None:
    """Register every built-in provider adapter that is not registered yet.

    Args:
        include_mocks: Also register the mock adapters; defaults to
            settings.ENABLE_MOCK_PROVIDERS
    """
    if include_mocks is None:
        include_mocks = settings.ENABLE_MOCK_PROVIDERS

    implementations = DEFAULT_PROVIDERS + (MOCK_PROVIDERS if include_mocks else ())
    for implementation in implementations:
        if not ProviderRegistry.is_registered(implementation.provider_type):
            ProviderRegistry.register(implementation.provider_type, implementation)

    if include_mocks:
        logger.warning("Mock providers are enabled; do not use this setting in production")
    logger.info(f"Provider registry ready: {', '.join(ProviderRegistry.list_available())}")
