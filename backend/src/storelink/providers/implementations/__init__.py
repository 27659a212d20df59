"""Concrete provider adapters."""

from .shopify import ShopifyProvider
from .whatsapp_cloud import WhatsAppCloudProvider
from .twilio_sandbox import TwilioSandboxProvider
from .mock_provider import MockCatalogProvider, MockMessagingProvider, MockActivationMessagingProvider

__all__ = [
    "ShopifyProvider",
    "WhatsAppCloudProvider",
    "TwilioSandboxProvider",
    "MockCatalogProvider",
    "MockMessagingProvider",
    "MockActivationMessagingProvider",
]
