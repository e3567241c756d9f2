"""Adapter WooCommerce (REST wc/v3): consulta de produtos."""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import httpx
from .base import HttpPlatform
from ...domain.errors import PlatformError
from ...domain.models import Product
from ...domain.money import to_minor_units


class WooCommercePlatform(HttpPlatform):
    platform_name = "woocommerce"

    def __init__(self, store_url: str, consumer_key: str, consumer_secret: str, version: str = "wc/v3",
                 currency: str = "THB", timeout_s: int = 10, transport: httpx.BaseTransport | None = None):
        if not store_url or not consumer_key or not consumer_secret:
            raise PlatformError("WooCommerce requires store_url, consumer_key and consumer_secret",
                                "INVALID_CONFIG", self.platform_name)
        super().__init__(f"{store_url.rstrip('/')}/wp-json/{version}", timeout_s, transport)
        self.auth = (consumer_key, consumer_secret)
        self.currency = currency

    def _client_kwargs(self) -> Dict[str, Any]:
        return {"auth": self.auth}

    def _to_product(self, raw: Dict[str, Any]) -> Product:
        categories = raw.get("categories") or []
        return Product(
            id=str(raw["id"]),
            sku=raw.get("sku") or "",
            name=raw.get("name", ""),
            description=raw.get("description") or raw.get("short_description") or "",
            price=to_minor_units(raw.get("price")),
            currency=self.currency,
            stock=raw.get("stock_quantity") or 0,
            category=categories[0].get("name") if categories else None,
        )

    def get_product(self, product_id: str) -> Product:
        return self._to_product(self._get(f"/products/{product_id}"))

    def list_products(self, limit: int = 10, search: str | None = None) -> List[Product]:
        return [self._to_product(p) for p in self._get("/products", {"per_page": limit, "search": search})]

    def search_by_sku(self, sku: str) -> Optional[Product]:
        rows = self._get("/products", {"sku": sku})
        return self._to_product(rows[0]) if rows else None
