"""
Mock Providers - In-memory providers for development and testing

Simulate catalog and messaging providers without external systems. Behavior
is driven entirely by the credential options, so a seller can be connected to
a fake store from the API during local development.
"""

import logging
import secrets
import time
from typing import Any, Dict, Iterator

from ...credentials.schemas import Credential
from ..base_provider import BaseProvider
from ..ports import (
    CatalogProviderPort,
    MessagingProviderPort,
    ProbeResult,
    ProviderError,
    RemoteCatalogItem,
)


logger = logging.getLogger(__name__)


class _MockBehavior:
    """
    Options shared by the mock providers:
        - mode: "success" | "failure" | "timeout" (default: "success")
        - simulate_delay_ms: Delay to simulate network latency (default: 0)
        - error_message: Custom error message when mode="failure"
    """

    def simulate(self, credential: Credential) -> None:
        options = credential.options
        delay_ms = int(options.get("simulate_delay_ms", 0) or 0)
        if delay_ms > 0:
            time.sleep(delay_ms / 1000.0)

        mode = options.get("mode", "success")
        if mode == "failure":
            raise ProviderError(options.get("error_message", "Mock provider simulated failure"))
        if mode == "timeout":
            raise ProviderError("Connection timeout")


class MockCatalogProvider(_MockBehavior, BaseProvider, CatalogProviderPort):
    """
    Mock catalog provider.

    Additional options:
        - products: list of product dicts (external_id, name, price, description,
          image_urls, available, category)
        - fail_after: raise ProviderError after yielding this many products

    Usage:
        credential.options = {"products": [{"external_id": "a", "name": "A", "price": 10}]}
        items = list(MockCatalogProvider().fetch_catalog(credential))
    """

    provider_type = "MOCK_CATALOG"
    required_fields = ["access_token"]

    def probe_reachability(self, credential: Credential) -> ProbeResult:
        def probe(client) -> Dict[str, Any]:
            self.simulate(credential)
            return {"shop_name": credential.options.get("shop_name", "Mock Store")}

        return self.run_probe(credential, probe)

    def fetch_catalog(self, credential: Credential) -> Iterator[RemoteCatalogItem]:
        products = credential.options.get("products") or []
        fail_after = credential.options.get("fail_after")

        for index, product in enumerate(products):
            if fail_after is not None and index >= int(fail_after):
                raise ProviderError("Mock provider simulated page failure")
            yield RemoteCatalogItem(
                external_id=str(product.get("external_id", "")),
                name=product.get("name", ""),
                price=product.get("price"),
                description=product.get("description"),
                image_urls=list(product.get("image_urls") or []),
                available=product.get("available", True),
                category=product.get("category"),
            )

        logger.info(f"MockCatalogProvider: served {len(products)} products")


class MockMessagingProvider(_MockBehavior, BaseProvider, MessagingProviderPort):
    """Mock messaging provider that connects without activation."""

    provider_type = "MOCK_MESSAGING"
    requires_activation = False
    required_fields = ["access_token"]

    def probe_reachability(self, credential: Credential) -> ProbeResult:
        def probe(client) -> Dict[str, Any]:
            self.simulate(credential)
            return {"display_phone_number": credential.account_id}

        return self.run_probe(credential, probe)


class MockActivationMessagingProvider(MockMessagingProvider):
    """Mock messaging provider that requires an out-of-band handshake."""

    provider_type = "MOCK_MESSAGING_ACTIVATION"
    requires_activation = True

    def issue_activation_token(self, credential: Credential) -> str:
        return f"join {secrets.token_hex(4)}"
