"""Adapter Shopify (Admin REST API): consulta de produtos."""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import httpx
from .base import HttpPlatform
from ...domain.errors import PlatformError
from ...domain.models import Product
from ...domain.money import to_minor_units

# limite máximo de página da Admin API
PAGE_LIMIT = 250


class ShopifyPlatform(HttpPlatform):
    platform_name = "shopify"

    def __init__(self, shop_domain: str, access_token: str, api_version: str = "2024-01", currency: str = "THB",
                 timeout_s: int = 10, transport: httpx.BaseTransport | None = None):
        if not shop_domain or not access_token:
            raise PlatformError("Shopify requires shop_domain and access_token", "INVALID_CONFIG", self.platform_name)
        super().__init__(f"https://{shop_domain}/admin/api/{api_version}", timeout_s, transport)
        self.access_token = access_token
        self.currency = currency

    def _client_kwargs(self) -> Dict[str, Any]:
        return {"headers": {"X-Shopify-Access-Token": self.access_token}}

    def _to_product(self, raw: Dict[str, Any]) -> Product:
        variant = (raw.get("variants") or [{}])[0]
        return Product(
            id=str(raw["id"]),
            sku=variant.get("sku") or "",
            name=raw.get("title", ""),
            description=raw.get("body_html") or "",
            price=to_minor_units(variant.get("price")),
            currency=self.currency,
            stock=variant.get("inventory_quantity") or 0,
            category=raw.get("product_type") or None,
        )

    def get_product(self, product_id: str) -> Product:
        return self._to_product(self._get(f"/products/{product_id}.json")["product"])

    def list_products(self, limit: int = 10, search: str | None = None) -> List[Product]:
        data = self._get("/products.json", {"limit": min(limit, PAGE_LIMIT), "title": search})
        return [self._to_product(p) for p in data.get("products", [])]

    def search_by_sku(self, sku: str) -> Optional[Product]:
        """A REST API não filtra por SKU: varre a primeira página e compara variantes."""
        data = self._get("/products.json", {"limit": PAGE_LIMIT})
        for raw in data.get("products", []):
            for variant in raw.get("variants") or []:
                if variant.get("sku") == sku:
                    product = self._to_product(raw)
                    return product.model_copy(update={
                        "sku": sku,
                        "price": to_minor_units(variant.get("price")),
                        "stock": variant.get("inventory_quantity") or 0,
                    })
        return None
