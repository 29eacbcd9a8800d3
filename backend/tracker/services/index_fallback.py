"""Index Fallback Guard: turns a missing-composite-index failure into a full owner scan.

Invariants:
    - Only errors the store's predicate classifies as "retryable as full scan"
      are absorbed; everything else propagates unchanged and unretried
    - The fallback scan pushes nothing but the owner clause
    - Fallback output goes through the same reconciler with BOTH caller bounds
      and every equality filter, so it equals the indexed result
    - Every fallback emits one WARNING log record (index_fallback) for alerting

Design Decisions:
    - Predicate injected (defaults to the store's own): the guard stays
      store-agnostic, the adapter owns its error model
    - No memory of "index known missing": each call retries the indexed query
      first, so provisioning the index takes effect without a restart
      (ADR: stateless engine, no cross-request cache)
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from tracker.core.domain_types import PushedBound
from tracker.core.range_query import (
    QueryDescriptor, RecordSpec, full_scan_bounds,
)
from tracker.core.reconcile import reconcile
from tracker.core.repository_protocols import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    """Ordered records plus how they were obtained."""
    records: list[dict] = field(default_factory=list)
    degraded: bool = False
    pushed_bound: PushedBound | None = None

    def meta(self) -> dict:
        """Observability envelope for API responses."""
        return {
            "count": len(self.records),
            "degraded": self.degraded,
            "pushed_bound": self.pushed_bound.value if self.pushed_bound else None,
        }


class IndexFallbackGuard:
    """Runs the indexed query; on a missing index, scans and reconciles instead."""

    def __init__(
        self,
        store: RecordStore,
        spec: RecordSpec,
        is_retryable_as_full_scan: Callable[[BaseException], bool] | None = None,
    ):
        self._store = store
        self._spec = spec
        self._is_retryable = (
            is_retryable_as_full_scan or store.is_retryable_as_full_scan
        )

    async def run(
        self,
        descriptor: QueryDescriptor,
        indexed: Callable[[], Awaitable[QueryResult]],
    ) -> QueryResult:
        try:
            return await indexed()
        except Exception as exc:
            if not self._is_retryable(exc):
                raise
            self._signal_fallback(descriptor, exc)
        return await self.full_scan(descriptor)

    async def full_scan(self, descriptor: QueryDescriptor) -> QueryResult:
        """O(n) over every record the owner has of this type."""
        records = await self._store.scan(
            self._spec.collection, self._spec.owner_field, descriptor.owner_id,
        )
        return QueryResult(
            records=reconcile(
                records,
                range_field=self._spec.range_field,
                bounds=full_scan_bounds(descriptor),
                equality_filters=descriptor.equality_filters,
                limit=descriptor.effective_limit,
                to_epoch_ms=self._store.to_epoch_ms,
                id_field=self._spec.id_field,
            ),
            degraded=True,
        )

    def _signal_fallback(self, descriptor: QueryDescriptor, exc: Exception) -> None:
        index_fields = getattr(exc, "index_fields", None)
        logger.warning(
            f"index_fallback: {self._spec.collection} query needs a missing "
            f"composite index, serving from full owner scan",
            extra={
                "record_kind": self._spec.kind.value,
                "owner_id": descriptor.owner_id,
                "error_code": getattr(exc, "code", type(exc).__name__),
                "index_fields": index_fields,
            },
        )
