"""
Multi-source aggregation with retry.

Fans a query out to one or more sources, retries each source independently
with exponential backoff, and merges whatever came back. A source that runs
out of attempts is reported in ``failed_sources``; it never aborts the call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from ...config import settings as default_settings
from ..recovery import RetryConfig, RetryStrategy, classify_error
from . import filters
from .models import (
    AggregationResult,
    EndpointMode,
    Query,
    Record,
    Source,
    SourceFailure,
    SourceOutcome,
)
from .normalizer import RecordNormalizer


# (url, source id) -> raw items; raises on any failed attempt. Each call is
# bounded by the retry strategy's timeout_seconds.
FetchFunc = Callable[[str, str], Awaitable[Sequence[Any]]]

RETRY_LATER_SUGGESTION = (
    "Please try again in a few moments. If the issue persists, the upstream API "
    "might be temporarily unavailable."
)


def failure_suggestion(failures: Sequence[SourceFailure]) -> str:
    """Suggested action from the most recent failure that carries one."""
    for failure in reversed(failures):
        if failure.suggestion:
            return failure.suggestion
    return RETRY_LATER_SUGGESTION

class MultiSourceAggregator:
    """Execute a ``Query`` against a set of sources and merge the results."""

    def __init__(
        self,
        sources: Sequence[Source],
        fetcher: FetchFunc,
        batch_source: Optional[Source] = None,
        retry_strategy: Optional[RetryStrategy] = None,
        normalizer: Optional[RecordNormalizer] = None,
        default_limit: Optional[int] = None,
        symbols_preview: Optional[int] = None,
        token_filter_requires_source: Optional[bool] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.sources: Dict[str, Source] = {s.id: s for s in sources}
        self.batch_source = batch_source
        self.fetcher = fetcher
        self.retry_strategy = retry_strategy or RetryStrategy(
            RetryConfig(
                max_attempts=default_settings.fetch_max_attempts,
                initial_delay_seconds=default_settings.retry_initial_delay_seconds,
                backoff_factor=default_settings.retry_backoff_factor,
                timeout_seconds=default_settings.request_timeout_seconds,
            )
        )
        self.normalizer = normalizer or RecordNormalizer()
        self.default_limit = (
            default_limit if default_limit is not None else default_settings.big_swaps_default_limit
        )
        self.symbols_preview = (
            symbols_preview if symbols_preview is not None else default_settings.available_symbols_preview
        )
        self.token_filter_requires_source = (
            token_filter_requires_source
            if token_filter_requires_source is not None
            else default_settings.token_filter_requires_source
        )
        self.logger = logger or logging.getLogger(__name__)

    @property
    def source_ids(self) -> List[str]:
        return list(self.sources)

    # =========================================================================
    # Source selection
    # =========================================================================

    def select_sources(self, query: Query) -> Tuple[List[Source], EndpointMode, str]:
        """Return (candidates, mode, url label) for a query."""
        source_id = query.source_id
        if source_id:
            source = self.sources.get(source_id)
            if source is None:
                return [], EndpointMode.CHAIN_SPECIFIC, source_id
            return [source], EndpointMode.CHAIN_SPECIFIC, source.url

        if query.token and not query.pair:
            return list(self.sources.values()), EndpointMode.CROSS_CHAIN_SEARCH, "multi-chain-search"

        if self.batch_source is not None:
            return [self.batch_source], EndpointMode.MULTI_CHAIN, self.batch_source.url

        return list(self.sources.values()), EndpointMode.MULTI_CHAIN, "multi-chain-search"

    # =========================================================================
    # Fetching
    # =========================================================================

    async def _fetch_source(self, source: Source) -> SourceOutcome:
        async def attempt() -> Sequence[Any]:
            return await self.fetcher(source.url, source.id)

        outcome = await self.retry_strategy.run(attempt, label=f"source {source.id}")

        if not outcome.succeeded:
            self.logger.warning(
                f"Source {source.id} exhausted after {outcome.attempts} attempts: {outcome.error_message}"
            )
            return SourceOutcome(
                source=source,
                failure=SourceFailure(
                    source=source.id,
                    reason=f"Failed after {outcome.attempts} attempts. Last error: {outcome.error_message}",
                    category=outcome.category.value if outcome.category else "unknown",
                    attempts=outcome.attempts,
                    suggestion=classify_error(outcome.error).suggested_action if outcome.error else None,
                ),
            )

        records = self.normalizer.normalize_many(
            outcome.result or [],
            source=None if source.batch else source.id,
            source_from_payload=source.batch,
        )
        self.logger.info(f"Source {source.id}: {len(records)} records in {outcome.attempts} attempt(s)")
        return SourceOutcome(source=source, records=records)

    async def _fetch_all(self, candidates: Sequence[Source]) -> List[SourceOutcome]:
        """Wait for every source; errors are collected as values."""
        results = await asyncio.gather(
            *(self._fetch_source(s) for s in candidates),
            return_exceptions=True,
        )

        outcomes: List[SourceOutcome] = []
        for source, result in zip(candidates, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                self.logger.error(f"Unexpected error fetching {source.id}: {result}")
                outcomes.append(SourceOutcome(
                    source=source,
                    failure=SourceFailure(
                        source=source.id,
                        reason=str(result) or result.__class__.__name__,
                        category="unknown",
                        attempts=0,
                    ),
                ))
            else:
                outcomes.append(result)
        return outcomes

    # =========================================================================
    # Filtering
    # =========================================================================

    def apply_filters(self, records: List[Record], query: Query, mode: EndpointMode) -> List[Record]:
        """Token, pair, category, then minimum value; absent fields are skipped."""
        results = records

        token_allowed = not self.token_filter_requires_source or mode != EndpointMode.MULTI_CHAIN
        if query.token and token_allowed:
            before = len(results)
            results = filters.filter_by_token(results, query.token)
            self.logger.info(f"After token filter ({query.token}): {len(results)} records (filtered out {before - len(results)})")

        if query.pair:
            before = len(results)
            results = filters.filter_by_pair(results, query.pair)
            self.logger.info(f"After pair filter ({query.pair}): {len(results)} records (filtered out {before - len(results)})")

        if query.category:
            before = len(results)
            results = filters.filter_by_category(results, query.category)
            self.logger.info(f"After category filter ({query.category}): {len(results)} records (filtered out {before - len(results)})")

        if query.min_value is not None:
            before = len(results)
            results = filters.filter_by_min_value(results, query.min_value)
            self.logger.info(f"After min value filter ({query.min_value}): {len(results)} records (filtered out {before - len(results)})")

        return results

    # =========================================================================
    # Aggregate
    # =========================================================================

    async def aggregate(self, query: Query) -> AggregationResult:
        """Run the query. Never raises; failures are returned as data."""
        candidates: List[Source] = []
        mode = EndpointMode.MULTI_CHAIN
        url = ""
        try:
            candidates, mode, url = self.select_sources(query)
            checked = [s.id for s in candidates]

            if not candidates:
                known = ", ".join(self.source_ids)
                return AggregationResult(
                    success=False,
                    query=query,
                    mode=mode,
                    url=url,
                    error=f"No source matches '{query.source_id}'" if query.source_id else "No sources configured",
                    suggestion=f"Use one of the supported chains: {known}" if known else RETRY_LATER_SUGGESTION,
                )

            self.logger.info(f"Aggregating over {len(candidates)} source(s) ({mode.value}): {', '.join(checked)}")
            outcomes = await self._fetch_all(candidates)

            succeeded = [o for o in outcomes if o.succeeded]
            failures = [o.failure for o in outcomes if o.failure is not None]

            if not succeeded:
                reasons = "; ".join(f"{f.source}: {f.reason}" for f in failures)
                return AggregationResult(
                    success=False,
                    query=query,
                    mode=mode,
                    url=url,
                    sources_checked=checked,
                    failed_sources=failures,
                    error=reasons if len(failures) == 1 else f"All {len(failures)} sources failed. {reasons}",
                    suggestion=failure_suggestion(failures),
                )

            merged: List[Record] = []
            for outcome in succeeded:
                merged.extend(outcome.records)
            merged = filters.dedupe(merged)
            self.logger.info(f"Total records fetched: {len(merged)}")

            available = filters.unique_symbols(merged)

            results = self.apply_filters(merged, query, mode)
            results = filters.sort_by_timestamp(results)

            limit = query.effective_limit(self.default_limit)
            if limit is not None:
                results = results[:limit]

            return AggregationResult(
                success=True,
                query=query,
                mode=mode,
                url=url,
                records=results,
                records_by_source=filters.group_by_source(results),
                sources_checked=checked,
                sources_succeeded=[o.source.id for o in succeeded],
                failed_sources=failures,
                available_symbols=available[: self.symbols_preview],
                total_fetched=len(merged),
            )
        except Exception as e:
            self.logger.exception(f"Aggregation failed: {e}")
            return AggregationResult(
                success=False,
                query=query,
                mode=mode,
                url=url,
                sources_checked=[s.id for s in candidates],
                error=str(e) or e.__class__.__name__,
                suggestion=RETRY_LATER_SUGGESTION,
            )
