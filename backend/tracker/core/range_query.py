"""Range Query Planning: pure translation of a caller's query into one store query.

Invariants:
    - A StoreQuery carries at most one RangeFilter, and its order_by field is the
      range field whenever a RangeFilter is present
    - start wins the single inequality slot; end is pushed only when start is absent
    - A limit is pushed only when no bound is active (truncating before the
      in-memory bound would drop valid rows)
    - The bound that was not pushed always reaches the reconciler via QueryPlan.unpushed
    - A full owner scan leaves both caller bounds to the reconciler

Design Decisions:
    - Planning is pure and separate from execution: the resolver and the fallback
      guard share the same descriptor and differ only in the plan they run
    - Equality filters are pushed AND re-applied in memory: the reconciler never
      trusts the store to have honoured them (ADR: idempotent post-processing)
    - Bounds stay datetimes in the StoreQuery (the store compares natively) and
      become epoch ms only for the reconciler
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from tracker.core.domain_types import (
    OwnerId, RecordKind, SortDirection, RangeOperator, PushedBound,
)
from tracker.core.errors import InvalidQueryError, ErrorContext
from tracker.core.timestamps import end_of_ms, floor_to_ms


@dataclass(frozen=True)
class RecordSpec:
    """Field mapping that specializes the generic engine for one record type."""
    kind: RecordKind
    collection: str
    range_field: str
    equality_fields: frozenset[str]
    owner_field: str = "user_id"
    id_field: str = "id"


@dataclass(frozen=True)
class QueryDescriptor:
    """One caller query. Built per call, never cached."""
    owner_id: OwnerId
    start: datetime | None = None
    end: datetime | None = None
    equality_filters: Mapping[str, Any] = field(default_factory=dict)
    limit: int | None = None
    direction: SortDirection = SortDirection.DESC

    @property
    def effective_limit(self) -> int | None:
        """limit <= 0 means no limit."""
        if self.limit is None or self.limit <= 0:
            return None
        return self.limit


@dataclass(frozen=True)
class RangeFilter:
    field: str
    op: RangeOperator
    value: datetime


@dataclass(frozen=True)
class StoreQuery:
    """Exactly what the store is asked to execute."""
    collection: str
    equals: tuple[tuple[str, Any], ...]
    range_filter: RangeFilter | None = None
    order_by: tuple[str, SortDirection] | None = None
    limit: int | None = None


@dataclass(frozen=True)
class RangeBounds:
    """Inclusive bounds still to be applied in memory."""
    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None


@dataclass(frozen=True)
class QueryPlan:
    store_query: StoreQuery
    unpushed: RangeBounds
    reverse: bool = False
    pushed_bound: PushedBound | None = None


def build_descriptor(
    spec: RecordSpec,
    owner_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    filters: Mapping[str, Any] | None = None,
    limit: int | None = None,
) -> QueryDescriptor:
    """Validate filter names against the RecordSpec and freeze the call's parameters.

    Bounds are NOT sanity-checked: start > end is a legal, empty query.
    They are widened to whole milliseconds (start floored, end to the last
    microsecond of its millisecond) so a store comparing at microsecond
    precision selects exactly what the reconciler keeps.
    None-valued filters are dropped so optional query params can pass through.
    """
    filters = {k: v for k, v in (filters or {}).items() if v is not None}
    unknown = [name for name in filters if name not in spec.equality_fields]
    if unknown:
        raise InvalidQueryError(
            spec.kind.value, unknown,
            ErrorContext(owner_id=owner_id, record_kind=spec.kind.value),
        )
    return QueryDescriptor(
        owner_id=OwnerId(owner_id),
        start=floor_to_ms(start) if start is not None else None,
        end=end_of_ms(end) if end is not None else None,
        equality_filters=dict(filters),
        limit=limit,
    )


def _equality_clauses(
    spec: RecordSpec, descriptor: QueryDescriptor,
) -> tuple[tuple[str, Any], ...]:
    clauses = [(spec.owner_field, descriptor.owner_id)]
    clauses.extend(sorted(descriptor.equality_filters.items()))
    return tuple(clauses)


def plan_indexed_query(spec: RecordSpec, descriptor: QueryDescriptor) -> QueryPlan:
    """Choose the single inequality to push and what is left for memory."""
    equals = _equality_clauses(spec, descriptor)

    if descriptor.start is not None:
        return QueryPlan(
            store_query=StoreQuery(
                collection=spec.collection,
                equals=equals,
                range_filter=RangeFilter(
                    spec.range_field, RangeOperator.GTE, descriptor.start,
                ),
                order_by=(spec.range_field, SortDirection.ASC),
            ),
            unpushed=RangeBounds(end=descriptor.end),
            reverse=True,
            pushed_bound=PushedBound.START,
        )

    if descriptor.end is not None:
        return QueryPlan(
            store_query=StoreQuery(
                collection=spec.collection,
                equals=equals,
                range_filter=RangeFilter(
                    spec.range_field, RangeOperator.LTE, descriptor.end,
                ),
                order_by=(spec.range_field, SortDirection.ASC),
            ),
            unpushed=RangeBounds(),
            reverse=True,
            pushed_bound=PushedBound.END,
        )

    return QueryPlan(
        store_query=StoreQuery(
            collection=spec.collection,
            equals=equals,
            order_by=(spec.range_field, SortDirection.DESC),
            limit=descriptor.effective_limit,
        ),
        unpushed=RangeBounds(),
    )


def full_scan_bounds(descriptor: QueryDescriptor) -> RangeBounds:
    """A full owner scan pushes no bound, so both move to memory."""
    return RangeBounds(start=descriptor.start, end=descriptor.end)
