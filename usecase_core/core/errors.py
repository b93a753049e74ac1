"""Error Hierarchy: typed exceptions that handlers may raise instead of returning a Failure.

Invariants:
    - Every UseCaseError has a code (str) and a kind (FailureKind)
    - to_failure() is the only bridge from exception to Failure value
    - UNEXPECTED-kind errors never leak their message: to_failure() strips it
    - ConfigurationError and InvalidStateError are programming errors, not part of
      the failure taxonomy

Design Decisions:
    - Single hierarchy with UseCaseError base: the dispatcher catches one type and
      converts it, every other exception is an UNEXPECTED fault
    - http_status lives in translate_failure, not here: one mapping, one place
"""

from typing import Any

from usecase_core.core.domain_types import FailureKind, RequestKind
from usecase_core.core.failures import Failure


class UseCaseError(Exception):
    """Base exception for failures raised from inside a use case."""

    def __init__(
        self,
        message: str,
        code: str,
        kind: FailureKind,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.kind = kind
        self.details = details or {}

    def to_failure(self) -> Failure:
        if self.kind is FailureKind.UNEXPECTED:
            return Failure.unexpected()
        return Failure(self.kind, self.message, self.details)


# ─── Expected Errors (4xx) ──────────────────────────────────────

class InvalidRequestError(UseCaseError):
    """Request payload failed validation."""
    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else None
        super().__init__(message, "VALIDATION_ERROR", FailureKind.VALIDATION, details)
        self.field = field


class UnauthorizedError(UseCaseError):
    """Caller is not allowed to perform the use case."""
    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, "UNAUTHORIZED", FailureKind.UNAUTHORIZED)


class ResourceNotFoundError(UseCaseError):
    """Requested resource does not exist."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", FailureKind.NOT_FOUND,
            {"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class HandlerNotFoundError(UseCaseError):
    """No handler is registered for the request type."""
    def __init__(self, request_type: str):
        super().__init__(
            f"No handler registered for '{request_type}'",
            "HANDLER_NOT_FOUND", FailureKind.NOT_FOUND,
            {"request_type": request_type},
        )
        self.request_type = request_type


class RequestKindMismatchError(UseCaseError):
    """A query sent as a command, or the reverse."""
    def __init__(self, request_type: str, bound: RequestKind, sent: RequestKind):
        super().__init__(
            f"'{request_type}' is a {bound.value}, not a {sent.value}",
            "REQUEST_KIND_MISMATCH", FailureKind.VALIDATION,
            {"request_type": request_type, "expected_kind": bound.value},
        )
        self.bound = bound
        self.sent = sent


class ConcurrencyError(UseCaseError):
    """Concurrent incompatible modification detected (usually at commit)."""
    def __init__(self, message: str = "Concurrent modification detected"):
        super().__init__(message, "CONCURRENCY_CONFLICT", FailureKind.CONFLICT)


# ─── Infrastructure Errors (5xx) ────────────────────────────────

class DatabaseError(UseCaseError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", FailureKind.UNEXPECTED,
        )
        self.operation = operation


# ─── Programming Errors ─────────────────────────────────────────

class ConfigurationError(Exception):
    """Wiring mistake detected at startup (duplicate handler, frozen registry, ...)."""


class InvalidStateError(Exception):
    """Operation called in the wrong lifecycle state (no open scope, nested scope, ...)."""
