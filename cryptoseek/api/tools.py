import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from ..config import SUPPORTED_CHAINS, settings
from ..core.agent import ToolExecutor, get_tool_registry
from ..core.aggregation.filters import parse_pair
from ..tools import binance, lcx
from ..tools.big_swaps import get_big_swaps
from ..tools.price_prediction import lcx_price_prediction
from ..types import ToolCall, ToolResult

router = APIRouter(prefix="/tools")
_logger = logging.getLogger(__name__)

TRADE_TYPES = ("buy", "sell")


def _require_enabled(enabled: bool, name: str) -> None:
    if not enabled:
        raise HTTPException(status_code=503, detail=f"{name} not enabled")


@router.get("/masterdex/big-swaps")
async def get_big_swaps_endpoint(
    chain: Optional[str] = Query(None, description="Blockchain to fetch from; all chains when omitted"),
    token: Optional[str] = Query(None, description="Token symbol, matches either side of the pair"),
    pair: Optional[str] = Query(None, description="Pair such as USDC/WETH, either order"),
    min_value: Optional[float] = Query(None, description="Minimum trade value in USD"),
    limit: Optional[int] = Query(None, description="Maximum results; zero or negative for no limit"),
    trade_type: Optional[str] = Query(None, description="buy or sell"),
) -> Dict[str, Any]:
    """Large DEX trades aggregated across MasterDex chains"""

    _require_enabled(settings.enable_masterdex, "MasterDex")
    if chain is not None and chain.lower() not in SUPPORTED_CHAINS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported chain '{chain}'. Supported chains: {', '.join(SUPPORTED_CHAINS)}",
        )
    if trade_type is not None and trade_type.lower() not in TRADE_TYPES:
        raise HTTPException(status_code=400, detail="trade_type must be 'buy' or 'sell'")
    if pair is not None and parse_pair(pair) is None:
        raise HTTPException(status_code=400, detail=f"Invalid pair '{pair}', expected SYMBOL/SYMBOL")

    return await get_big_swaps(
        chain=chain.lower() if chain else None,
        token=token,
        pair=pair,
        min_value=min_value,
        limit=limit,
        trade_type=trade_type.lower() if trade_type else None,
    )


@router.get("/binance/ticker")
async def get_binance_ticker(symbol: str = Query(..., description="Symbol such as BTCUSDT")):
    _require_enabled(settings.enable_binance, "Binance")
    return await binance.binance_ticker(symbol.upper())


@router.get("/binance/klines")
async def get_binance_klines(
    symbol: str = Query(..., description="Symbol such as BTCUSDT"),
    interval: str = Query("1d", description="Kline interval (1m, 5m, 1h, 1d, ...)"),
    limit: int = Query(30, ge=1, le=1000),
):
    _require_enabled(settings.enable_binance, "Binance")
    return await binance.binance_klines(symbol.upper(), interval=interval, limit=limit)


@router.get("/binance/order-book")
async def get_binance_order_book(
    symbol: str = Query(..., description="Symbol such as BTCUSDT"),
    limit: int = Query(100, ge=1, le=5000),
):
    _require_enabled(settings.enable_binance, "Binance")
    return await binance.binance_order_book(symbol.upper(), limit=limit)


@router.get("/binance/trades")
async def get_binance_trades(
    symbol: str = Query(..., description="Symbol such as BTCUSDT"),
    limit: int = Query(50, ge=1, le=1000),
):
    _require_enabled(settings.enable_binance, "Binance")
    return await binance.binance_recent_trades(symbol.upper(), limit=limit)


@router.get("/binance/exchange-info")
async def get_binance_exchange_info():
    _require_enabled(settings.enable_binance, "Binance")
    return await binance.binance_exchange_info()


@router.get("/lcx/kline")
async def get_lcx_kline(
    pair: str = Query(..., description="Trading pair such as LCX/ETH"),
    resolution: str = Query("1D", description="1, 3, 5, 15, 30, 45, 60, 120, 180, 240, 1D, 1W, 1M"),
    from_ts: Optional[int] = Query(None, alias="from", description="Start timestamp in seconds"),
    to_ts: Optional[int] = Query(None, alias="to", description="End timestamp in seconds"),
):
    _require_enabled(settings.enable_lcx, "LCX")
    return await lcx.lcx_kline(pair, resolution=resolution, from_ts=from_ts, to_ts=to_ts)


@router.get("/lcx/order-book")
async def get_lcx_order_book(pair: str = Query(..., description="Trading pair such as LCX/ETH")):
    _require_enabled(settings.enable_lcx, "LCX")
    return await lcx.lcx_order_book(pair)


@router.get("/lcx/ticker")
async def get_lcx_ticker(pair: str = Query(..., description="Trading pair such as LCX/ETH")):
    _require_enabled(settings.enable_lcx, "LCX")
    return await lcx.lcx_ticker(pair)


@router.get("/lcx/pairs")
async def get_lcx_pairs():
    _require_enabled(settings.enable_lcx, "LCX")
    return await lcx.lcx_pairs()


@router.get("/lcx/pair")
async def get_lcx_pair(pair: str = Query(..., description="Trading pair such as LCX/ETH")):
    _require_enabled(settings.enable_lcx, "LCX")
    return await lcx.lcx_pair(pair)


@router.get("/lcx/tickers")
async def get_lcx_tickers():
    _require_enabled(settings.enable_lcx, "LCX")
    return await lcx.lcx_tickers()


@router.get("/lcx/trades")
async def get_lcx_trades(
    pair: str = Query(..., description="Trading pair such as LCX/ETH"),
    limit: int = Query(100, ge=1, le=1000),
):
    _require_enabled(settings.enable_lcx, "LCX")
    return await lcx.lcx_trades(pair, limit=limit)


@router.get("/lcx/prediction")
async def get_lcx_prediction(
    pair: str = Query(..., description="Trading pair such as BTC/EUR"),
    timeframe: str = Query("1d", description="1h, 4h, 1d, 1w or 1m"),
    method: str = Query("technical", description="Prediction method"),
):
    _require_enabled(settings.enable_lcx, "LCX")
    return await lcx_price_prediction(pair, timeframe=timeframe, method=method)


@router.get("/definitions")
async def get_tool_definitions() -> Dict[str, Any]:
    """Tool schemas in the LLM tool-calling format"""
    registry = get_tool_registry()
    return {"tools": [d.to_anthropic_format() for d in registry.get_definitions()]}


@router.post("/execute")
async def execute_tool(call: ToolCall) -> ToolResult:
    """Run one tool call; failures come back as an error result"""
    executor = ToolExecutor(get_tool_registry(), logger=_logger)
    return await executor.execute_single(call)


@router.post("/execute/batch")
async def execute_tools(calls: List[ToolCall]) -> List[ToolResult]:
    """Run tool calls in parallel, results in request order"""
    if not calls:
        raise HTTPException(status_code=400, detail="At least one tool call is required")

    executor = ToolExecutor(get_tool_registry(), logger=_logger)
    return await executor.execute_parallel(calls)
