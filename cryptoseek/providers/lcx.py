"""
LCX Exchange Provider

REST endpoints on exchange-api.lcx.com plus the separate kline service.
Most responses wrap their payload as ``{"data": ...}``.
"""

from typing import Any, Dict, Optional

import httpx

from ..config import settings
from .base import HTTPProvider


class LCXProvider(HTTPProvider):
    """LCX exchange market data"""

    name = "lcx"
    health_path = "/api/pairs"

    def __init__(
        self,
        base_url: Optional[str] = None,
        kline_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url or settings.lcx_base_url, timeout_s, transport)
        self.kline_url = kline_url or settings.lcx_kline_url

    def _build_headers(self) -> Dict[str, str]:
        headers = super()._build_headers()
        headers["Content-Type"] = "application/json"
        headers["API-VERSION"] = "1.1.0"
        return headers

    async def ready(self) -> bool:
        return settings.enable_lcx

    async def _request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.get_json(f"{self.base_url}{endpoint}", params=params)

    async def get_kline(
        self,
        pair: str,
        resolution: str,
        from_ts: int,
        to_ts: int,
    ) -> Any:
        params = {"pair": pair, "resolution": resolution, "from": from_ts, "to": to_ts}
        return await self.get_json(self.kline_url, params=params, source="lcx-kline")

    async def get_book(self, pair: str) -> Dict[str, Any]:
        return await self._request("/api/book", {"pair": pair})

    async def get_ticker(self, pair: str) -> Dict[str, Any]:
        return await self._request("/api/ticker", {"pair": pair})

    async def get_pairs(self) -> Dict[str, Any]:
        return await self._request("/api/pairs")

    async def get_pair(self, pair: str) -> Dict[str, Any]:
        return await self._request("/api/pair", {"pair": pair})

    async def get_tickers(self) -> Dict[str, Any]:
        return await self._request("/api/tickers")

    async def get_trades(self, pair: str, limit: int = 100) -> Dict[str, Any]:
        return await self._request("/api/trades", {"pair": pair, "limit": limit})
