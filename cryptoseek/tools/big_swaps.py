"""
Big swaps tool.

Large DEX trades from MasterDex across Ethereum, Base, Optimism, Polygon,
Arbitrum, BNB and Blast, shaped for an LLM tool-calling loop.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config import SUPPORTED_CHAINS, settings
from ..core.aggregation import (
    AggregationResult,
    EndpointMode,
    MultiSourceAggregator,
    Query,
    Record,
    Source,
)
from ..providers.masterdex import MasterDexProvider

logger = logging.getLogger(__name__)

SOURCE_NAME = "MasterDex"
BATCH_SOURCE_ID = "multi-chain"


def build_aggregator(provider: MasterDexProvider, **kwargs: Any) -> MultiSourceAggregator:
    """Aggregator over one MasterDex source per chain plus the batch endpoint."""
    sources = [Source(id=chain, url=provider.chain_url(chain)) for chain in provider.supported_chains]
    batch = Source(id=BATCH_SOURCE_ID, url=provider.batch_url, batch=True)
    return MultiSourceAggregator(
        sources=sources,
        fetcher=provider.fetch_big_swaps,
        batch_source=batch,
        **kwargs,
    )


def format_usd(value: float) -> str:
    return f"${value:,.2f}"


def time_ago(ts: Optional[datetime], now: Optional[datetime] = None) -> Optional[str]:
    if ts is None:
        return None
    now = now or datetime.now(timezone.utc)
    seconds = int((now - ts).total_seconds())
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def format_trade(record: Record, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Readable view of a trade; the raw payload is kept under ``raw``."""
    raw = record.payload
    return {
        "pair": record.pair,
        "type": record.category,
        "value": format_usd(record.value),
        "amountBase": raw.get("amountBase"),
        "amountQuote": raw.get("amountQuote"),
        "price": raw.get("price"),
        "token0Price": raw.get("token0Price"),
        "token1Price": raw.get("token1Price"),
        "account": raw.get("account"),
        "transactionHash": record.record_id or None,
        "blockNumber": raw.get("blockNumber"),
        "time": record.timestamp.isoformat() if record.timestamp else None,
        "age": time_ago(record.timestamp, now),
        "chain": record.group_key,
        "isBotTrade": raw.get("bottrade"),
        "pairId": raw.get("pairId"),
        "feeTier": raw.get("feeTier"),
        "raw": raw,
    }


def _endpoint_used(result: AggregationResult) -> str:
    if result.mode == EndpointMode.CHAIN_SPECIFIC:
        return f"chain-specific ({result.query.source_id})"
    return result.mode.value


def result_to_envelope(result: AggregationResult, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Flatten an ``AggregationResult`` into the tool response."""
    now = now or datetime.now(timezone.utc)
    failed = [f.to_dict() for f in result.failed_sources]

    if not result.success:
        return {
            "success": False,
            "error": result.error or "Unknown error occurred",
            "url": result.url,
            "failedChains": failed,
            "timestamp": result.timestamp.isoformat(),
            "suggestion": result.suggestion,
        }

    symbols = result.available_symbols
    if result.count > 0:
        message = f"Found {result.count} trades matching your criteria"
    else:
        message = f"No trades found matching your criteria. Available symbols: {', '.join(symbols[:10])}"
    if failed:
        message += f" ({len(failed)} chain(s) could not be reached)"

    return {
        "success": True,
        "data": [format_trade(r, now) for r in result.records],
        "dataByChain": {
            chain: [format_trade(r, now) for r in records]
            for chain, records in result.records_by_source.items()
        },
        "count": result.count,
        "totalFetched": result.total_fetched,
        "message": message,
        "source": SOURCE_NAME,
        "url": result.url,
        "supportedChains": list(SUPPORTED_CHAINS),
        "filteredChain": result.query.source_id or "all",
        "endpointUsed": _endpoint_used(result),
        "chainsChecked": result.sources_checked,
        "chainsSucceeded": result.sources_succeeded,
        "failedChains": failed,
        "filters": result.query.to_filters_dict(settings.big_swaps_default_limit),
        "availableSymbols": symbols,
        "timestamp": result.timestamp.isoformat(),
    }


async def get_big_swaps(
    chain: Optional[str] = None,
    token: Optional[str] = None,
    pair: Optional[str] = None,
    min_value: Optional[float] = None,
    limit: Optional[int] = None,
    trade_type: Optional[str] = None,
    aggregator: Optional[MultiSourceAggregator] = None,
) -> Dict[str, Any]:
    """Fetch big swaps, optionally filtered by chain, token, pair, value and side."""
    query = Query(
        source=chain or None,
        token=token or None,
        pair=pair or None,
        min_value=min_value,
        limit=limit,
        category=trade_type or None,
    )
    logger.info(
        f"Big swaps search: chain={chain or 'all'}, token={token or 'none'}, pair={pair or 'none'}, "
        f"minValue={min_value if min_value is not None else 'none'}, tradeType={trade_type or 'all'}"
    )

    if aggregator is not None:
        result = await aggregator.aggregate(query)
    else:
        async with MasterDexProvider() as provider:
            result = await build_aggregator(provider).aggregate(query)

    envelope = result_to_envelope(result)
    if result.success:
        logger.info(f"Big swaps search returned {result.count} trades")
    else:
        logger.warning(f"Big swaps search failed: {result.error}")
    return envelope
