"""Record filters, sorting and grouping used by the aggregator."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Record

logger = logging.getLogger(__name__)


def parse_pair(pair: str) -> Optional[Tuple[str, str]]:
    """Split ``"AAA/BBB"`` into lowercase parts; malformed pairs give None."""
    parts = [p.strip().lower() for p in (pair or "").split("/")]
    if len(parts) != 2 or not all(parts):
        return None
    return parts[0], parts[1]


def filter_by_token(records: Iterable[Record], token: str) -> List[Record]:
    """Keep records where either symbol contains ``token`` (case-insensitive)."""
    needle = token.strip().lower()
    return [
        r for r in records
        if needle in r.symbol_a.lower() or needle in r.symbol_b.lower()
    ]


def filter_by_pair(records: Iterable[Record], pair: str) -> List[Record]:
    """Keep records whose symbols equal the pair, in either order."""
    parsed = parse_pair(pair)
    if parsed is None:
        logger.info(f"Malformed pair filter '{pair}', nothing can match")
        return []
    a, b = parsed
    matched = []
    for r in records:
        s0, s1 = r.symbol_a.lower(), r.symbol_b.lower()
        if (s0 == a and s1 == b) or (s0 == b and s1 == a):
            matched.append(r)
    return matched


def filter_by_category(records: Iterable[Record], category: str) -> List[Record]:
    wanted = category.strip().lower()
    return [r for r in records if r.category.lower() == wanted]


def filter_by_min_value(records: Iterable[Record], min_value: float) -> List[Record]:
    return [r for r in records if r.value >= min_value]


def sort_by_timestamp(records: Iterable[Record]) -> List[Record]:
    """Most recent first; undated records last; ties keep input order."""
    return sorted(
        records,
        key=lambda r: (r.timestamp is not None, r.timestamp.timestamp() if r.timestamp else 0.0),
        reverse=True,
    )


def dedupe(records: Iterable[Record]) -> List[Record]:
    """Drop repeats of the same (source, record_id); records without an id are kept."""
    seen = set()
    unique: List[Record] = []
    for r in records:
        if r.record_id:
            key = (r.group_key, r.record_id)
            if key in seen:
                continue
            seen.add(key)
        unique.append(r)
    return unique


def group_by_source(records: Iterable[Record]) -> Dict[str, List[Record]]:
    groups: Dict[str, List[Record]] = {}
    for r in records:
        groups.setdefault(r.group_key, []).append(r)
    return groups


def unique_symbols(records: Iterable[Record]) -> List[str]:
    symbols = set()
    for r in records:
        if r.symbol_a:
            symbols.add(r.symbol_a)
        if r.symbol_b:
            symbols.add(r.symbol_b)
    return sorted(symbols)
