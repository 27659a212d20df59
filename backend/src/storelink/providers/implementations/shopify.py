"""
Shopify catalog provider - Admin REST API adapter

Connects with a custom app Admin API access token (scope read_products).
Products are fetched page by page through cursor pagination
(Link: <...page_info=...>; rel="next") so large catalogs never load as one blob.
"""

import logging
import re
from typing import Any, Dict, Iterator, Optional

import httpx

from ...config import settings
from ...credentials.schemas import Credential
from ..base_provider import BaseProvider
from ..ports import CatalogProviderPort, ProviderError, ProbeResult, RemoteCatalogItem


logger = logging.getLogger(__name__)

SHOP_DOMAIN_PATTERN = re.compile(r'^[a-z0-9][a-z0-9-]*\.myshopify\.com$')
PRODUCT_FIELDS = "id,title,body_html,product_type,status,variants,images"


def normalize_shop_domain(value: str) -> str:
    """
    Reduce a pasted store URL to its bare myshopify domain.

    Accepts 'mystore', 'mystore.myshopify.com', 'https://mystore.myshopify.com/admin'.

    Raises:
        ProviderError: If the result is not a *.myshopify.com domain
    """
    domain = value.strip().lower()
    domain = re.sub(r'^https?://', '', domain)
    domain = domain.split('/', 1)[0]
    if '.' not in domain:
        domain = f"{domain}.myshopify.com"

    if not SHOP_DOMAIN_PATTERN.match(domain):
        raise ProviderError(
            f"Invalid Shopify store URL '{value}'. Use your .myshopify.com address, "
            f"e.g. mystore.myshopify.com"
        )
    return domain


class ShopifyProvider(BaseProvider, CatalogProviderPort):
    """
    Shopify Admin API catalog provider.

    Credential:
        origin: mystore.myshopify.com
        access_token: Admin API access token (shpat_...)

    One RemoteCatalogItem per product: the first variant carries the price,
    availability follows the product status ('active').
    """

    provider_type = "SHOPIFY"
    required_fields = ["origin", "access_token"]

    def __init__(self, transport: Optional[httpx.BaseTransport] = None, timeout: Optional[float] = None,
                 api_version: Optional[str] = None, page_size: Optional[int] = None):
        super().__init__(transport=transport, timeout=timeout)
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.page_size = page_size or settings.SHOPIFY_PAGE_SIZE

    def normalize(self, credential: Credential) -> Credential:
        self.validate_required_fields(credential)
        credential.origin = normalize_shop_domain(credential.origin)
        return credential

    def _base_url(self, credential: Credential) -> str:
        return f"https://{credential.origin}/admin/api/{self.api_version}"

    def _headers(self, credential: Credential) -> Dict[str, str]:
        return {
            "X-Shopify-Access-Token": credential.access_token,
            "Accept": "application/json",
        }

    def probe_reachability(self, credential: Credential) -> ProbeResult:
        def probe(client: httpx.Client) -> Dict[str, Any]:
            response = self.request_json(
                client, "GET", f"{self._base_url(credential)}/shop.json",
                headers=self._headers(credential),
            )
            shop = self._json(response).get("shop") or {}
            return {
                "shop_name": shop.get("name"),
                "shop_domain": shop.get("myshopify_domain") or credential.origin,
                "currency": shop.get("currency"),
            }

        return self.run_probe(credential, probe)

    def fetch_catalog(self, credential: Credential) -> Iterator[RemoteCatalogItem]:
        self.validate_required_fields(credential)
        url: Optional[str] = f"{self._base_url(credential)}/products.json"
        params: Optional[Dict[str, Any]] = {"limit": self.page_size, "fields": PRODUCT_FIELDS}
        page = 0

        with self.http_client(headers=self._headers(credential)) as client:
            while url:
                response = self.request_json(client, "GET", url, params=params)
                products = self._json(response).get("products")
                if not isinstance(products, list):
                    raise ProviderError("SHOPIFY: products page has no 'products' list")

                page += 1
                logger.debug(f"Fetched Shopify products page {page} ({len(products)} products)")

                for product in products:
                    yield self._to_remote_item(product)

                # page_info cursor URLs already carry limit/fields
                url = response.links.get("next", {}).get("url")
                params = None

    def _to_remote_item(self, product: Any) -> RemoteCatalogItem:
        """Map one product. Malformed fields come through empty so the
        reconciler rejects just this item."""
        if not isinstance(product, dict):
            return RemoteCatalogItem(external_id="", name="", price=None)

        variants = product.get("variants")
        first_variant = variants[0] if isinstance(variants, list) and variants else None
        price = first_variant.get("price") if isinstance(first_variant, dict) else None

        images = product.get("images")
        image_urls = [
            image["src"] for image in (images if isinstance(images, list) else [])
            if isinstance(image, dict) and image.get("src")
        ]

        description = product.get("body_html")
        category = product.get("product_type")

        return RemoteCatalogItem(
            external_id=str(product.get("id") or ""),
            name=product.get("title") or "",
            price=price,
            description=description if isinstance(description, str) else None,
            image_urls=image_urls,
            available=product.get("status", "active") == "active",
            category=category if isinstance(category, str) and category else None,
        )

    @staticmethod
    def _json(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            raise ProviderError("SHOPIFY: response is not valid JSON")
        if not isinstance(data, dict):
            raise ProviderError("SHOPIFY: unexpected response shape")
        return data
