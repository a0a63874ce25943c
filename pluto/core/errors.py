"""Error Hierarchy — typed, categorized exceptions for every loading failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Request errors (400-level) are the caller's to fix; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No SQL or driver details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with PlutoError base: FastAPI global handler catches all (ADR: uniform error shape)
    - ErrorContext as dataclass: entity/path/strategy travel with the error, not with the logger
    - No retry hints: nothing in this service retries, the caller decides
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
    CONFLICT = "conflict"
    LOADING = "loading"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    entity: str | None = None
    path: str | None = None
    strategy: str | None = None
    debug_info: dict[str, Any] | None = None


class PlutoError(Exception):
    """Base exception for all Pluto errors."""

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
                    "entity": self.context.entity,
                    "path": self.context.path,
                    "strategy": self.context.strategy,
                },
            }
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class InvalidPathError(PlutoError):
    """Relation path does not exist on the root entity (or is malformed)."""
    def __init__(self, entity: str, path: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.entity = ctx.entity or entity
        ctx.path = path
        super().__init__(
            f"'{path}' is not a relation path of {entity}",
            "INVALID_PATH", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.entity = entity
        self.path = path


class UnloadedPathError(PlutoError):
    """Relation path read as if populated, but this result never loaded it."""
    def __init__(
        self, entity: str, path: str, strategy: str,
        reason: str = "was not loaded by this fetch",
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.entity = entity
        ctx.path = path
        ctx.strategy = strategy
        super().__init__(
            f"{entity}.{path} {reason} (strategy={strategy})",
            "UNLOADED_PATH", ErrorCategory.LOADING,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.entity = entity
        self.path = path


class NotFoundError(PlutoError):
    """Singleton request matched no entity."""
    def __init__(self, entity: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.entity = entity
        super().__init__(
            f"{entity} not found",
            "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )
        self.entity = entity


class AmbiguousSingletonError(PlutoError):
    """Singleton request matched more than one entity."""
    def __init__(self, entity: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.entity = entity
        super().__init__(
            f"Expected exactly one {entity}, filter matched several",
            "AMBIGUOUS_SINGLETON", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.entity = entity


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(PlutoError):
    """Database operation failed."""
    def __init__(
        self, message: str, operation: str,
        context: ErrorContext | None = None, code: str = "DATABASE_ERROR",
    ):
        super().__init__(
            f"Database {operation} failed: {message}",
            code, ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class CollaboratorUnavailableError(DatabaseError):
    """Storage collaborator could not be reached or failed operationally."""
    def __init__(self, operation: str, context: ErrorContext | None = None):
        super().__init__(
            "storage unavailable", operation, context,
            code="COLLABORATOR_UNAVAILABLE",
        )
