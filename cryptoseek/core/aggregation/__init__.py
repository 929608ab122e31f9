"""
Multi-source aggregation

Fan-out over unreliable sources with per-source retry, then merge,
filter, sort and truncate.
"""

from .aggregator import FetchFunc, MultiSourceAggregator
from .models import (
    UNKNOWN_SOURCE,
    AggregationResult,
    EndpointMode,
    Query,
    Record,
    Source,
    SourceFailure,
    SourceOutcome,
)
from .normalizer import RecordNormalizer, normalize_fields, parse_timestamp

__all__ = [
    "FetchFunc",
    "MultiSourceAggregator",
    "UNKNOWN_SOURCE",
    "AggregationResult",
    "EndpointMode",
    "Query",
    "Record",
    "Source",
    "SourceFailure",
    "SourceOutcome",
    "RecordNormalizer",
    "normalize_fields",
    "parse_timestamp",
]
