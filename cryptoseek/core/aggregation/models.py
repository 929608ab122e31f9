"""
Aggregation Data Models

Sources, normalized records, the caller's query and the aggregated result.
Everything here is built fresh per call; nothing is cached across calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

UNKNOWN_SOURCE = "unknown"


class EndpointMode(str, Enum):
    """How the candidate sources were chosen."""
    CHAIN_SPECIFIC = "chain-specific"
    CROSS_CHAIN_SEARCH = "cross-chain-search"
    MULTI_CHAIN = "multi-chain"


@dataclass(frozen=True)
class Source:
    """A named upstream endpoint."""
    id: str
    url: str
    batch: bool = False  # one call returning records for every chain


@dataclass(frozen=True)
class Record:
    """One normalized upstream item, owned by exactly one source."""
    symbol_a: str
    symbol_b: str
    value: float
    timestamp: Optional[datetime]
    source: Optional[str]
    category: str = ""
    record_id: str = ""
    payload: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def pair(self) -> str:
        return f"{self.symbol_a}/{self.symbol_b}"

    @property
    def group_key(self) -> str:
        return self.source or UNKNOWN_SOURCE


@dataclass(frozen=True)
class Query:
    """Filter and selection parameters for one aggregation call."""
    source: Optional[str] = None
    token: Optional[str] = None
    pair: Optional[str] = None
    min_value: Optional[float] = None
    limit: Optional[int] = None
    category: Optional[str] = None

    @property
    def source_id(self) -> Optional[str]:
        """Source as matched against known ids: trimmed, lower case."""
        if self.source is None:
            return None
        return self.source.strip().lower() or None

    def effective_limit(self, default: int) -> Optional[int]:
        """Resolve the limit; ``None`` means no truncation.

        An absent limit uses ``default``; zero or negative means no limit.
        """
        limit = default if self.limit is None else self.limit
        if limit is None or limit <= 0:
            return None
        return limit

    def to_filters_dict(self, default_limit: int) -> Dict[str, Any]:
        return {
            "chain": self.source_id or "all",
            "token": self.token or "none",
            "pair": self.pair or "none",
            "minValue": self.min_value if self.min_value is not None else "none",
            "tradeType": self.category or "all",
            "limit": default_limit if self.limit is None else self.limit,
        }


@dataclass
class SourceFailure:
    """A source whose retry budget ran out."""
    source: str
    reason: str
    category: str
    attempts: int
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chain": self.source,
            "reason": self.reason,
            "category": self.category,
            "attempts": self.attempts,
        }


@dataclass
class SourceOutcome:
    """Independent partial result of one source's fetch sequence."""
    source: Source
    records: List[Record] = field(default_factory=list)
    failure: Optional[SourceFailure] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None


@dataclass
class AggregationResult:
    """Outcome of ``MultiSourceAggregator.aggregate``."""
    success: bool
    query: Query
    mode: EndpointMode
    url: str
    records: List[Record] = field(default_factory=list)
    records_by_source: Dict[str, List[Record]] = field(default_factory=dict)
    sources_checked: List[str] = field(default_factory=list)
    sources_succeeded: List[str] = field(default_factory=list)
    failed_sources: List[SourceFailure] = field(default_factory=list)
    available_symbols: List[str] = field(default_factory=list)
    total_fetched: int = 0
    error: Optional[str] = None
    suggestion: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def count(self) -> int:
        return len(self.records)
