import asyncio
from typing import Any, Dict

from fastapi import APIRouter

from ..providers.binance import BinanceProvider
from ..providers.lcx import LCXProvider
from ..providers.masterdex import MasterDexProvider

router = APIRouter()


@router.get("/healthz")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    providers = [MasterDexProvider(), BinanceProvider(), LCXProvider()]
    try:
        results = await asyncio.gather(*(p.health_check() for p in providers))
    finally:
        await asyncio.gather(*(p.close() for p in providers))

    provider_status = {p.name: status for p, status in zip(providers, results)}

    # Determine overall health
    all_healthy = all(
        status["status"] in ["healthy", "unavailable"]
        for status in provider_status.values()
    )

    # Count available providers
    available_providers = sum(
        1 for status in provider_status.values()
        if status["status"] == "healthy"
    )

    return {
        "status": "healthy" if all_healthy and available_providers > 0 else "degraded",
        "providers": provider_status,
        "available_providers": available_providers,
        "total_providers": len(provider_status)
    }
