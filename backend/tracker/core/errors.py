"""Error Hierarchy: typed, categorized exceptions for all tracker failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Request errors (400-level) are recoverable; store errors (500-level) are critical
    - MissingIndexError is the only store error the query engine absorbs
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with TrackerError base: FastAPI global handler catches all (ADR: uniform error shape)
    - StoreError carries the store's own failure code so adapters can classify
      failures without the engine knowing which store produced them
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    PERMISSION = "permission"
    AUTHENTICATION = "authentication"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    owner_id: str | None = None
    record_kind: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class TrackerError(Exception):
    """Base exception for all tracker errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "record_kind": self.context.record_kind,
                },
            }
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class RecordValidationError(TrackerError):
    """Record payload failed a domain rule pydantic cannot express."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class InvalidQueryError(TrackerError):
    """Query names a filter field the record type does not declare."""
    def __init__(self, record_kind: str, fields: list[str], context: ErrorContext | None = None):
        super().__init__(
            f"{record_kind} cannot be filtered by: {', '.join(sorted(fields))}",
            "INVALID_QUERY", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.fields = fields


class MissingOwnerError(TrackerError):
    """Request arrived without an owner identity."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Missing X-User-Id header",
            "OWNER_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.ERROR, context, 401,
        )


class OwnershipError(TrackerError):
    """Record exists but belongs to another owner."""
    def __init__(self, resource_type: str, context: ErrorContext | None = None):
        super().__init__(
            f"Not authorized to modify this {resource_type}",
            "FORBIDDEN", ErrorCategory.PERMISSION,
            ErrorSeverity.ERROR, context, 403,
        )


class ResourceNotFoundError(TrackerError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class TimerNotActiveError(TrackerError):
    """Stop requested for a time entry that is not running."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Timer is not active",
            "TIMER_NOT_ACTIVE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )


class HabitTargetReachedError(TrackerError):
    """Habit already completed target_count times today."""
    def __init__(self, target_count: int, context: ErrorContext | None = None):
        times = "time" if target_count == 1 else "times"
        super().__init__(
            f"Habit already completed {target_count} {times} today "
            f"(target: {target_count})",
            "HABIT_TARGET_REACHED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 400,
        )
        self.target_count = target_count


# ─── Store Errors (500-level) ───────────────────────────────────

class StoreError(TrackerError):
    """Record store operation failed.

    store_code is the store's own failure code (gRPC-style name or number).
    """
    def __init__(
        self,
        message: str,
        operation: str,
        store_code: str | int | None = None,
        code: str = "STORE_ERROR",
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Store {operation} failed: {message}",
            code, ErrorCategory.DATABASE, severity, context, 503,
        )
        self.operation = operation
        self.store_code = store_code


class MissingIndexError(StoreError):
    """Query combines an inequality or sort with filters no index covers."""
    def __init__(
        self,
        collection: str,
        index_fields: list[str],
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"query on {collection} requires an index on "
            f"({', '.join(index_fields)})",
            "query", store_code="FAILED_PRECONDITION",
            code="MISSING_INDEX", severity=ErrorSeverity.WARNING,
            context=context,
        )
        self.collection = collection
        self.index_fields = index_fields


class TransientStoreError(StoreError):
    """Any other store failure: connectivity, permissions, driver errors."""
    def __init__(
        self,
        message: str,
        operation: str,
        store_code: str | int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, operation, store_code=store_code,
            code="STORE_UNAVAILABLE", context=context,
        )
