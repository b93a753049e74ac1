"""Error Translator: total mapping from Failure to the client-facing ErrorEnvelope.

Invariants:
    - Every FailureKind maps to exactly one status code (checked at import time)
    - UNEXPECTED: fixed generic message, details dropped, correlation id kept
    - translate() is pure and deterministic: same input, same envelope

Design Decisions:
    - Explicit if-chain ending in assert_never: a type checker flags a new
      FailureKind that is not handled here
    - _STATUS_BY_KIND verified on import: adding a kind without a status code
      fails the first import (tests included), not the first request
"""

from dataclasses import dataclass
from typing import Any, Mapping, assert_never

from usecase_core.core.domain_types import CorrelationId, FailureKind
from usecase_core.core.errors import ConfigurationError
from usecase_core.core.failures import UNEXPECTED_MESSAGE, Failure


@dataclass(frozen=True)
class ErrorEnvelope:
    """Stable error shape rendered by the transport boundary."""

    code: int
    message: str
    correlation_id: CorrelationId
    details: Mapping[str, Any] | None = None

    def to_response(self) -> dict:
        """Convert to the wire shape {code, message, correlationId, details?}."""
        body: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "correlationId": self.correlation_id,
        }
        if self.details:
            body["details"] = dict(self.details)
        return body


def status_for(kind: FailureKind) -> int:
    """HTTP-style status code for a failure kind."""
    if kind is FailureKind.VALIDATION:
        return 400
    if kind is FailureKind.UNAUTHORIZED:
        return 401
    if kind is FailureKind.NOT_FOUND:
        return 404
    if kind is FailureKind.CONFLICT:
        return 409
    if kind is FailureKind.UNEXPECTED:
        return 500
    assert_never(kind)


_STATUS_BY_KIND: dict[FailureKind, int] = {}
for _kind in FailureKind:
    try:
        _STATUS_BY_KIND[_kind] = status_for(_kind)
    except AssertionError as e:
        raise ConfigurationError(
            f"FailureKind.{_kind.name} has no status mapping",
        ) from e


def translate(failure: Failure, correlation_id: CorrelationId) -> ErrorEnvelope:
    """Map a Failure to its ErrorEnvelope. Total over FailureKind."""
    code = _STATUS_BY_KIND[failure.kind]
    if failure.kind is FailureKind.UNEXPECTED:
        return ErrorEnvelope(
            code=code, message=UNEXPECTED_MESSAGE, correlation_id=correlation_id,
        )
    return ErrorEnvelope(
        code=code,
        message=failure.message,
        correlation_id=correlation_id,
        details=failure.details,
    )
