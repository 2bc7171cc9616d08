import html
import re
from typing import Any

import httpx

from adpilot.catalog.models import Product
from adpilot.constants import HTTP_TIMEOUT, PRODUCT_DESCRIPTION_LIMIT
from adpilot.errors import CollaboratorError
from adpilot.integrations.base import Catalog
from adpilot.integrations.retry import with_retry
from adpilot.logging import get_logger

_logger = get_logger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


def strip_html(text: str | None) -> str:
    if not text:
        return ""
    return " ".join(html.unescape(_TAG_RE.sub("", text)).split())


def api_base(url: str) -> str:
    """Accepts either the shop root or a full ``/wp-json/wc/v3[/products]`` URL."""
    url = url.rstrip("/")
    if "/wp-json/wc/v3" in url:
        return re.sub(r"/products.*$", "", url)
    return f"{url}/wp-json/wc/v3"


def normalize_product(raw: dict[str, Any]) -> Product:
    images = raw.get("images") or []
    image_url = (images[0].get("src") or images[0].get("url")) if images else raw.get("featured_image")
    description = strip_html(raw.get("short_description") or raw.get("description"))
    return Product(
        id=raw["id"],
        name=raw.get("name") or "",
        sku=raw.get("sku") or "",
        price=str(raw.get("regular_price") or raw.get("price") or ""),
        description=description[:PRODUCT_DESCRIPTION_LIMIT],
        permalink=raw.get("permalink") or raw.get("link") or "",
        image_url=image_url,
    )


class WooCommerceCatalog(Catalog):
    name = "woocommerce"

    def __init__(self, url: str, key: str, secret: str, timeout: float = HTTP_TIMEOUT):
        self.base_url = api_base(url)
        self._auth = {"consumer_key": key, "consumer_secret": secret}
        self._timeout = timeout

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        query = {**self._auth, **{k: v for k, v in (params or {}).items() if v is not None}}
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.get(f"{self.base_url}{endpoint}", params=query)
            resp.raise_for_status()
            return resp.json()

    async def _request(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        try:
            return await with_retry(self._get, endpoint, params)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            try:
                body = e.response.json()
            except ValueError:
                body = None
            detail = (body.get("message") if isinstance(body, dict) else None) or f"HTTP {status}"
            raise CollaboratorError(self.name, f"WooCommerce API error ({status}): {detail}") from e
        except httpx.HTTPError as e:
            raise CollaboratorError(self.name, f"WooCommerce request failed: {e}") from e

    async def search(self, query: str) -> list[Product]:
        data = await self._request("/products", {"search": query, "per_page": 10, "status": "publish"})
        return [normalize_product(p) for p in data] if isinstance(data, list) else []

    async def list_products(self, limit: int) -> list[Product]:
        data = await self._request("/products", {"per_page": limit, "status": "publish"})
        return [normalize_product(p) for p in data] if isinstance(data, list) else []

    async def get(self, product_id: str) -> Product | None:
        try:
            data = await self._request(f"/products/{product_id}")
        except CollaboratorError as e:
            _logger.warning("Product %s not fetched: %s", product_id, e)
            return None
        return normalize_product(data)
