"""Range Query Resolver: owner-scoped, date-range-filtered, ordered, limited reads.

Invariants:
    - One store round-trip on the indexed path, at most one more on fallback
    - At most one inequality is pushed; the other bound is applied in memory
    - Results are always descending by the record type's range field
    - limit is truncated after filtering, never before an unpushed bound
    - Holds no state between calls; safe to share across concurrent requests

Design Decisions:
    - Plan (pure, core/range_query.py) -> execute (here) -> reconcile (pure, core/reconcile.py):
      the impure part is the single await on the store
    - Execution goes through IndexFallbackGuard so a missing index degrades the
      result (degraded=True) instead of failing the request
    - One engine for every record type, specialized by RecordSpec
"""

import logging
from datetime import datetime
from typing import Any, Callable, Mapping

from tracker.core.range_query import (
    QueryDescriptor, QueryPlan, RecordSpec,
    build_descriptor, plan_indexed_query,
)
from tracker.core.reconcile import reconcile
from tracker.core.repository_protocols import RecordStore
from tracker.services.index_fallback import IndexFallbackGuard, QueryResult

logger = logging.getLogger(__name__)


class RangeQueryResolver:
    """Generic range query engine for one record type."""

    def __init__(
        self,
        store: RecordStore,
        spec: RecordSpec,
        is_retryable_as_full_scan: Callable[[BaseException], bool] | None = None,
    ):
        self._store = store
        self._spec = spec
        self._guard = IndexFallbackGuard(store, spec, is_retryable_as_full_scan)

    @property
    def spec(self) -> RecordSpec:
        return self._spec

    async def find(
        self,
        owner_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        filters: Mapping[str, Any] | None = None,
        limit: int | None = None,
    ) -> QueryResult:
        """Owner's records with start <= ts <= end matching filters, newest first."""
        descriptor = build_descriptor(
            self._spec, owner_id, start, end, filters, limit,
        )
        plan = plan_indexed_query(self._spec, descriptor)
        return await self._guard.run(
            descriptor, lambda: self._execute(plan, descriptor),
        )

    async def _execute(
        self, plan: QueryPlan, descriptor: QueryDescriptor,
    ) -> QueryResult:
        records = await self._store.query(plan.store_query)
        if plan.reverse:
            records = list(reversed(records))
        logger.debug(
            f"{self._spec.collection}: indexed query returned {len(records)} candidates",
            extra={
                "record_kind": self._spec.kind.value,
                "pushed_bound": plan.pushed_bound.value if plan.pushed_bound else None,
                "record_count": len(records),
            },
        )
        return QueryResult(
            records=reconcile(
                records,
                range_field=self._spec.range_field,
                bounds=plan.unpushed,
                equality_filters=descriptor.equality_filters,
                limit=descriptor.effective_limit,
                to_epoch_ms=self._store.to_epoch_ms,
                id_field=self._spec.id_field,
            ),
            pushed_bound=plan.pushed_bound,
        )
