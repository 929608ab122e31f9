"""
MasterDex API Provider

Big swaps (large DEX trades) per chain and across all chains.

Endpoints:
- GET /v1/pairs/getbigSwaps/{chain}
- GET /v1/pairs/getbigSwaps             (all chains in one call)

Both return ``{"data": [trade, ...], "message": "..."}``.
"""

from typing import Any, Dict, List, Optional

import httpx

from ..config import SUPPORTED_CHAINS, settings
from ..core.recovery import ShapeError
from .base import HTTPProvider

BIG_SWAPS_PATH = "/v1/pairs/getbigSwaps"


class MasterDexProvider(HTTPProvider):
    """MasterDex big-swaps feed"""

    name = "masterdex"
    health_path = f"{BIG_SWAPS_PATH}/ethereum"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url or settings.masterdex_base_url, timeout_s, transport)

    @property
    def supported_chains(self) -> List[str]:
        return list(SUPPORTED_CHAINS)

    def chain_url(self, chain: str) -> str:
        return f"{self.base_url}{BIG_SWAPS_PATH}/{chain}"

    @property
    def batch_url(self) -> str:
        return f"{self.base_url}{BIG_SWAPS_PATH}"

    async def ready(self) -> bool:
        return settings.enable_masterdex

    async def fetch_big_swaps(self, url: str, source: str) -> List[Dict[str, Any]]:
        """One attempt at a big-swaps endpoint; returns the raw trade list."""
        payload = await self.get_json(url, source=source)

        if not isinstance(payload, dict):
            raise ShapeError("Invalid response format from MasterDex API", source=source)
        data = payload.get("data")
        if not isinstance(data, list):
            raise ShapeError("Invalid response format from MasterDex API", source=source)
        return data
