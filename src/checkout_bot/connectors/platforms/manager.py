"""Gerenciador de lojas: registra várias integrações e delega à ativa."""
from __future__ import annotations
from typing import Dict, List, Optional
from ...core.logging import get_logger
from ...domain.errors import PlatformError
from ...domain.models import Product
from ...ports.interfaces import CommercePlatform

log = get_logger()


class PlatformManager:
    def __init__(self):
        self._platforms: Dict[str, CommercePlatform] = {}
        self._active: Optional[str] = None

    @property
    def platform_name(self) -> str:
        return self.active().platform_name

    def register(self, platform: CommercePlatform, identifier: str | None = None) -> None:
        """Registra a loja; a primeira registrada vira a ativa."""
        pid = identifier or platform.platform_name
        self._platforms[pid] = platform
        if self._active is None:
            self._active = pid
        log.info("platform_registered", platform_id=pid, platform=platform.platform_name)

    def set_active(self, platform_id: str) -> None:
        if platform_id not in self._platforms:
            raise PlatformError(f"Platform {platform_id} not found", "NOT_FOUND", platform_id)
        self._active = platform_id

    def active(self) -> CommercePlatform:
        if self._active is None:
            raise PlatformError("No active platform set", "NO_ACTIVE_PLATFORM", "-")
        return self._platforms[self._active]

    def list_platforms(self) -> List[Dict[str, str]]:
        return [{"id": pid, "name": p.platform_name} for pid, p in self._platforms.items()]

    def remove(self, platform_id: str) -> bool:
        if self._active == platform_id:
            self._active = None
        return self._platforms.pop(platform_id, None) is not None

    # --- delegação para a loja ativa ---
    def search_by_sku(self, sku: str) -> Optional[Product]:
        return self.active().search_by_sku(sku)

    def get_product(self, product_id: str) -> Product:
        return self.active().get_product(product_id)

    def list_products(self, limit: int = 10, search: str | None = None) -> List[Product]:
        return self.active().list_products(limit=limit, search=search)

    def search_all(self, sku: str) -> List[Dict[str, object]]:
        """Busca o SKU em todas as lojas; falha de uma loja não interrompe as demais."""
        results: List[Dict[str, object]] = []
        for pid, platform in self._platforms.items():
            try:
                product = platform.search_by_sku(sku)
            except PlatformError as e:
                log.warning("platform_search_failed", platform_id=pid, error=e.message)
                continue
            if product:
                results.append({"platform_id": pid, "product": product})
        return results
