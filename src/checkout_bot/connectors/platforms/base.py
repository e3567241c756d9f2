"""Base HTTP comum aos adapters de loja (somente leitura de catálogo)."""
from __future__ import annotations
from typing import Any, Dict
import httpx
from ...core.logging import get_logger
from ...domain.errors import PlatformError

log = get_logger()


class HttpPlatform:
    platform_name: str = "base"

    def __init__(self, base_url: str, timeout_s: int = 10, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport

    def _client_kwargs(self) -> Dict[str, Any]:
        """Headers/auth específicos de cada loja."""
        return {}

    def _get(self, path: str, params: Dict[str, Any] | None = None) -> Any:
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout_s, transport=self.transport,
                              **self._client_kwargs()) as cli:
                r = cli.get(path, params={k: v for k, v in (params or {}).items() if v not in (None, "")})
        except httpx.HTTPError as e:
            log.warning("platform_unreachable", platform=self.platform_name, path=path, error=str(e))
            raise PlatformError(f"Request failed: {e}", "REQUEST_FAILED", self.platform_name) from e
        if r.status_code // 100 != 2:
            log.warning("platform_error", platform=self.platform_name, path=path, status=r.status_code)
            raise PlatformError(f"{self.platform_name} API error: {r.status_code} {r.reason_phrase}",
                                f"HTTP_{r.status_code}", self.platform_name)
        return r.json()
