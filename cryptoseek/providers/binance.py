"""
Binance Public Market Data Provider

Docs: https://binance-docs.github.io/apidocs/spot/en/#market-data-endpoints
"""

from typing import Any, Dict, Optional

import httpx

from ..config import settings
from .base import HTTPProvider


class BinanceProvider(HTTPProvider):
    """Binance spot REST API (public endpoints only)"""

    name = "binance"
    health_path = "/api/v3/ping"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url or settings.binance_base_url, timeout_s, transport)
        self.api_key = api_key if api_key is not None else settings.binance_api_key

    def _build_headers(self) -> Dict[str, str]:
        headers = super()._build_headers()
        if self.api_key:
            headers["X-MBX-APIKEY"] = self.api_key
        return headers

    async def ready(self) -> bool:
        return settings.enable_binance  # API key is optional for market data

    async def _request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.get_json(f"{self.base_url}{endpoint}", params=params)

    async def get_ticker_price(self, symbol: str) -> Dict[str, Any]:
        return await self._request("/api/v3/ticker/price", {"symbol": symbol})

    async def get_klines(self, symbol: str, interval: str = "1d", limit: int = 30) -> Any:
        return await self._request("/api/v3/klines", {"symbol": symbol, "interval": interval, "limit": limit})

    async def get_depth(self, symbol: str, limit: int = 100) -> Dict[str, Any]:
        return await self._request("/api/v3/depth", {"symbol": symbol, "limit": limit})

    async def get_trades(self, symbol: str, limit: int = 50) -> Any:
        return await self._request("/api/v3/trades", {"symbol": symbol, "limit": limit})

    async def get_exchange_info(self) -> Dict[str, Any]:
        return await self._request("/api/v3/exchangeInfo")
