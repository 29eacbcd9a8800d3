"""SQL Record Store: SQLAlchemy implementation of the RecordStore/RecordWriter contracts.

Invariants:
    - Documents cross the boundary as plain dicts (column name -> value),
      with every datetime normalized to aware UTC
    - Datetimes are written truncated to whole milliseconds
    - query() executes at most one range filter, ordered on the same field,
      with (field, id) ordering so ties are deterministic
    - With enforce_indexes on, an inequality or sort combined with equality
      clauses runs only if a declared composite Index covers
      (equality fields..., sort field); otherwise MissingIndexError is raised
      BEFORE touching the database
    - scan() is owner-equality only and never needs a composite index
    - SQLAlchemyError never escapes: mapped to TransientStoreError

Design Decisions:
    - Index enforcement emulates the managed document store's query planner:
      the same code path (and the same fallback) runs in tests, on SQLite and
      on PostgreSQL, and a missing Index in models/ shows up as a degraded
      result in the logs instead of a silent slow query
    - Index matching ignores column direction: a declared index serves both the
      ascending (bounded) and descending (unbounded) plans
    - is_retryable_as_full_scan lives here, next to the errors this adapter raises
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select, delete as sa_delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.core.domain_types import RangeOperator, SortDirection
from tracker.core.errors import (
    MissingIndexError, StoreError, TransientStoreError, ErrorContext,
)
from tracker.core.range_query import StoreQuery
from tracker.core.timestamps import ensure_utc, floor_to_ms, to_epoch_ms
from tracker.models import COLLECTIONS

logger = logging.getLogger(__name__)

# gRPC FAILED_PRECONDITION, by number and by name
MISSING_INDEX_STORE_CODES = frozenset({9, "FAILED_PRECONDITION"})


def is_missing_index_error(error: BaseException) -> bool:
    """True for store failures that mean "this query needs a composite index"."""
    if isinstance(error, MissingIndexError):
        return True
    return (
        isinstance(error, StoreError)
        and error.store_code in MISSING_INDEX_STORE_CODES
    )


class SqlRecordStore:
    """Collections of owner-scoped documents on top of one AsyncSession."""

    def __init__(self, db: AsyncSession, enforce_indexes: bool = True):
        self._db = db
        self._enforce_indexes = enforce_indexes

    # ─── RecordStore ──────────────────────────────────────────────

    async def query(self, query: StoreQuery) -> list[dict]:
        model = self._model(query.collection)
        if self._enforce_indexes:
            self._check_index(model, query)

        stmt = select(model)
        for field_name, value in query.equals:
            stmt = stmt.where(getattr(model, field_name) == value)

        if query.range_filter is not None:
            column = getattr(model, query.range_filter.field)
            bound = ensure_utc(query.range_filter.value)
            if query.range_filter.op is RangeOperator.GTE:
                stmt = stmt.where(column >= bound)
            else:
                stmt = stmt.where(column <= bound)

        if query.order_by is not None:
            field_name, direction = query.order_by
            column, id_column = getattr(model, field_name), model.id
            if direction is SortDirection.ASC:
                stmt = stmt.order_by(column.asc(), id_column.asc())
            else:
                stmt = stmt.order_by(column.desc(), id_column.desc())

        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        rows = await self._execute(stmt, "query")
        return [self._to_document(row) for row in rows]

    async def scan(
        self, collection: str, owner_field: str, owner_id: str,
    ) -> list[dict]:
        model = self._model(collection)
        stmt = select(model).where(getattr(model, owner_field) == owner_id)
        rows = await self._execute(stmt, "scan")
        logger.info(
            f"Full scan of {collection} returned {len(rows)} records",
            extra={"owner_id": owner_id, "record_count": len(rows)},
        )
        return [self._to_document(row) for row in rows]

    def to_epoch_ms(self, value: Any) -> int | None:
        return to_epoch_ms(value)

    def is_retryable_as_full_scan(self, error: BaseException) -> bool:
        return is_missing_index_error(error)

    # ─── RecordWriter ─────────────────────────────────────────────

    async def get(self, collection: str, record_id: str) -> dict | None:
        model = self._model(collection)
        rows = await self._execute(
            select(model).where(model.id == record_id), "get",
        )
        return self._to_document(rows[0]) if rows else None

    async def find_where(
        self, collection: str, equals: dict[str, Any], limit: int | None = None,
    ) -> list[dict]:
        """Equality-only lookup; needs no composite index."""
        model = self._model(collection)
        stmt = select(model)
        for field_name, value in equals.items():
            stmt = stmt.where(getattr(model, field_name) == value)
        if limit is not None:
            stmt = stmt.limit(limit)
        rows = await self._execute(stmt, "find")
        return [self._to_document(row) for row in rows]

    async def insert(self, collection: str, document: dict) -> dict:
        model = self._model(collection)
        row = model(**{k: self._bind_value(v) for k, v in document.items()})
        try:
            self._db.add(row)
            await self._db.commit()
            await self._db.refresh(row)
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(f"Insert into {collection} failed: {e}")
            raise TransientStoreError(str(e), "insert") from e
        return self._to_document(row)

    async def update(
        self, collection: str, record_id: str, fields: dict,
    ) -> dict | None:
        model = self._model(collection)
        try:
            row = await self._db.get(model, record_id)
            if row is None:
                return None
            for name, value in fields.items():
                setattr(row, name, self._bind_value(value))
            await self._db.commit()
            await self._db.refresh(row)
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(f"Update of {collection}/{record_id} failed: {e}")
            raise TransientStoreError(str(e), "update") from e
        return self._to_document(row)

    async def delete(self, collection: str, record_id: str) -> bool:
        model = self._model(collection)
        try:
            result = await self._db.execute(
                sa_delete(model).where(model.id == record_id),
            )
            await self._db.commit()
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(f"Delete of {collection}/{record_id} failed: {e}")
            raise TransientStoreError(str(e), "delete") from e
        return result.rowcount > 0

    # ─── Internals ────────────────────────────────────────────────

    @staticmethod
    def _model(collection: str):
        return COLLECTIONS[collection]

    @staticmethod
    def _check_index(model, query: StoreQuery) -> None:
        sort_field = None
        if query.range_filter is not None:
            sort_field = query.range_filter.field
        elif query.order_by is not None:
            sort_field = query.order_by[0]
        if sort_field is None:
            return

        equality = {name for name, _ in query.equals}
        if not equality:
            return  # single-field indexes are implicit

        for index in model.__table__.indexes:
            columns = [column.name for column in index.columns]
            if columns[-1] == sort_field and set(columns[:-1]) == equality:
                return

        raise MissingIndexError(
            query.collection,
            sorted(equality) + [sort_field],
            ErrorContext(debug_info={"equals": sorted(equality)}),
        )

    async def _execute(self, stmt, operation: str) -> list:
        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as e:
            await self._db.rollback()
            logger.error(f"Store {operation} failed: {e}")
            raise TransientStoreError(str(e), operation) from e
        return list(result.scalars().all())

    @staticmethod
    def _bind_value(value: Any) -> Any:
        # stored at the reconciler's precision: ms ordering == stored ordering
        if isinstance(value, datetime):
            return floor_to_ms(value)
        return value

    @staticmethod
    def _to_document(row) -> dict:
        document = {}
        for attr in row.__mapper__.column_attrs:
            value = getattr(row, attr.key)
            if isinstance(value, datetime):
                value = ensure_utc(value)
            document[attr.key] = value
        return document
