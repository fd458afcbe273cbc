"""Error Hierarchy — typed, categorized exceptions for all numbering failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; storage errors (503) are retryable
    - Only InvariantViolationError is CRITICAL
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with CertnumError base: FastAPI global handler catches all
    - StorageTimeoutError subclasses StorageUnavailableError: callers that retry on
      an unreachable store retry on a timed-out lock wait as well
    - InvariantViolationError is CRITICAL: a duplicate or gap after a locked
      operation means a concurrency bug, never a user error
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    issue_id: str | None = None
    sequence_key: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class CertnumError(Exception):
    """Base exception for all certificate numbering errors."""

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
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "issue_id": self.context.issue_id,
                    "sequence_key": self.context.sequence_key,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class RecordNotFoundError(CertnumError):
    """Requested record does not exist in the store."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        if resource_type == "Issue":
            ctx.issue_id = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RECORD_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidDisplaySettingsError(CertnumError):
    """Element display settings blob could not be decoded."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageUnavailableError(CertnumError):
    """Store unreachable or a write failed. Transaction rolled back; safe to retry."""
    def __init__(
        self,
        message: str,
        operation: str,
        context: ErrorContext | None = None,
        code: str = "STORAGE_UNAVAILABLE",
        category: ErrorCategory = ErrorCategory.DATABASE,
    ):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        super().__init__(
            f"Storage {operation} failed: {message}",
            code, category, ErrorSeverity.ERROR, ctx, 503,
        )
        self.operation = operation


class StorageTimeoutError(StorageUnavailableError):
    """Lock wait or database call exceeded its time budget."""
    def __init__(
        self, operation: str, timeout_seconds: float | None = None,
        context: ErrorContext | None = None,
    ):
        detail = (
            f"timed out after {timeout_seconds:g}s"
            if timeout_seconds is not None else "timed out"
        )
        super().__init__(
            detail, operation, context,
            code="STORAGE_TIMEOUT", category=ErrorCategory.TIMEOUT,
        )
        self.timeout_seconds = timeout_seconds


class InvariantViolationError(CertnumError):
    """Duplicate or missing number observed after a sequence operation."""
    def __init__(
        self,
        message: str,
        duplicates: list[int] | None = None,
        missing: list[int] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "INVARIANT_VIOLATION", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.duplicates = duplicates or []
        self.missing = missing or []
