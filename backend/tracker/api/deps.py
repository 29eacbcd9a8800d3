"""Route Dependencies: owner identity, record store and per-type range query engines.

Invariants:
    - Every tracker route is owner-scoped; a missing X-User-Id is a 401
    - One SqlRecordStore per request, bound to the request's AsyncSession
    - Engines are built per request and hold no state beyond the store

Design Decisions:
    - Owner taken from a trusted header: token verification happens upstream
      (gateway), not in this service
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.config import get_settings
from tracker.core.errors import MissingOwnerError, OwnershipError, ResourceNotFoundError
from tracker.core.range_query import RecordSpec
from tracker.infrastructure.database import get_db
from tracker.infrastructure.record_store import SqlRecordStore

# Upper bound for ?limit= on every list endpoint
MAX_LIST_LIMIT = 500


async def get_owner_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> str:
    if not x_user_id or not x_user_id.strip():
        raise MissingOwnerError()
    return x_user_id.strip()


async def get_record_store(db: AsyncSession = Depends(get_db)) -> SqlRecordStore:
    return SqlRecordStore(
        db, enforce_indexes=get_settings().enforce_composite_indexes,
    )


async def get_owned_or_404(
    store: SqlRecordStore, spec: RecordSpec, record_id: str, owner_id: str,
    resource_type: str,
) -> dict:
    """Another owner's record is indistinguishable from a missing one."""
    document = await store.get(spec.collection, record_id)
    if document is None or document[spec.owner_field] != owner_id:
        raise ResourceNotFoundError(resource_type, record_id)
    return document


async def get_owned_or_403(
    store: SqlRecordStore, spec: RecordSpec, record_id: str, owner_id: str,
    resource_type: str,
) -> dict:
    """404 when missing, 403 when it belongs to someone else."""
    document = await store.get(spec.collection, record_id)
    if document is None:
        raise ResourceNotFoundError(resource_type, record_id)
    if document[spec.owner_field] != owner_id:
        raise OwnershipError(resource_type)
    return document
