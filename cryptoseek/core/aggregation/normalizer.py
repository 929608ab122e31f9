"""
Record normalization.

Upstream payloads name the same thing differently (``symbol0`` vs
``baseSymbol``, ``tnxvalue`` vs ``valueUsd``, ``last`` vs ``lastPrice``).
Each canonical field lists its known aliases in priority order; the first
alias present wins and a missing field falls back to an explicit default.
Dotted aliases (``token0.symbol``) walk into nested objects.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import Record

logger = logging.getLogger(__name__)

_MISSING = object()

# Canonical record field -> aliases, first match wins
TRADE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "symbol_a": ("symbol0", "baseSymbol", "token0.symbol", "base"),
    "symbol_b": ("symbol1", "quoteSymbol", "token1.symbol", "quote"),
    "value": ("tnxvalue", "valueUsd", "value", "amountUsd"),
    "timestamp": ("time", "timestamp", "date", "blockTimestamp"),
    "category": ("transType", "type", "side"),
    "record_id": ("txnDetail", "txHash", "transactionHash", "id"),
    "source": ("chain", "network"),
}

TICKER_ALIASES: Dict[str, Tuple[str, ...]] = {
    "lastPrice": ("last", "lastPrice", "price", "close"),
    "bid": ("bid", "buy", "bestBid"),
    "ask": ("ask", "sell", "bestAsk"),
    "high": ("high", "highest"),
    "low": ("low", "lowest"),
    "volume": ("volume", "vol"),
    "change": ("change", "priceChange"),
    "changePercent": ("changePercent", "priceChangePercent", "change24h"),
}

CANDLE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "timestamp": ("timestamp", "time", "date", "t"),
    "open": ("open", "o"),
    "high": ("high", "h"),
    "low": ("low", "l"),
    "close": ("close", "c"),
    "volume": ("volume", "v"),
}

# Epoch values above this are milliseconds
_MS_THRESHOLD = 10_000_000_000


def lookup(item: Mapping[str, Any], aliases: Iterable[str], default: Any = None) -> Any:
    """Return the first alias present (and not None) in ``item``."""
    for alias in aliases:
        value: Any = item
        for part in alias.split("."):
            if isinstance(value, Mapping) and part in value:
                value = value[part]
            else:
                value = _MISSING
                break
        if value is not _MISSING and value is not None:
            return value
    return default


def normalize_fields(
    item: Mapping[str, Any],
    aliases: Mapping[str, Sequence[str]],
) -> Dict[str, Any]:
    """Map ``item`` onto canonical names; absent fields become None."""
    return {name: lookup(item, names) for name, names in aliases.items()}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings or epoch seconds/milliseconds into UTC datetimes."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > _MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.lstrip("-").replace(".", "", 1).isdigit():
            return parse_timestamp(float(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class RecordNormalizer:
    """Maps raw trade payloads into ``Record`` instances."""

    def __init__(self, aliases: Optional[Mapping[str, Sequence[str]]] = None):
        self.aliases = dict(aliases or TRADE_ALIASES)

    def normalize(
        self,
        item: Any,
        source: Optional[str],
        source_from_payload: bool = False,
    ) -> Optional[Record]:
        """Normalize one item; non-object items yield None.

        ``source_from_payload`` is used for batch endpoints, where the origin
        chain is named inside each item rather than by the URL.
        """
        if not isinstance(item, Mapping):
            return None

        fields = normalize_fields(item, self.aliases)

        origin = source
        if source_from_payload:
            payload_source = fields["source"]
            origin = str(payload_source).strip().lower() if payload_source else None

        return Record(
            symbol_a=str(fields["symbol_a"] or ""),
            symbol_b=str(fields["symbol_b"] or ""),
            value=to_float(fields["value"]),
            timestamp=parse_timestamp(fields["timestamp"]),
            source=origin,
            category=str(fields["category"] or ""),
            record_id=str(fields["record_id"] or ""),
            payload=dict(item),
        )

    def normalize_many(
        self,
        items: Iterable[Any],
        source: Optional[str],
        source_from_payload: bool = False,
    ) -> List[Record]:
        records: List[Record] = []
        skipped = 0
        for item in items:
            record = self.normalize(item, source, source_from_payload)
            if record is None:
                skipped += 1
                continue
            records.append(record)
        if skipped:
            logger.debug(f"Skipped {skipped} non-object items from {source or 'batch'}")
        return records
