"""Boundary Protocols: contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, tests pass plain fakes
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions that USE these protocols are never async themselves;
      the service layer orchestrates the async calls around the pure logic
    - Reads and writes split: the range query engine only ever sees RecordStore
"""

from typing import Any, Protocol

from tracker.core.range_query import StoreQuery


class RecordStore(Protocol):
    """Read contract the range query engine runs against, implemented by shell.

    query() must raise an error for which is_retryable_as_full_scan() is True
    when the requested inequality/sort needs an index that does not exist.
    """
    async def query(self, query: StoreQuery) -> list[dict]: ...
    async def scan(
        self, collection: str, owner_field: str, owner_id: str,
    ) -> list[dict]: ...
    def to_epoch_ms(self, value: Any) -> int | None: ...
    def is_retryable_as_full_scan(self, error: BaseException) -> bool: ...


class RecordWriter(Protocol):
    """Write and point-read contract for request handlers, implemented by shell."""
    async def get(self, collection: str, record_id: str) -> dict | None: ...
    async def find_where(
        self, collection: str, equals: dict[str, Any], limit: int | None = None,
    ) -> list[dict]: ...
    async def insert(self, collection: str, document: dict) -> dict: ...
    async def update(
        self, collection: str, record_id: str, fields: dict,
    ) -> dict | None: ...
    async def delete(self, collection: str, record_id: str) -> bool: ...
