"""Failure: tagged failure values returned (never raised) across the dispatch boundary.

Invariants:
    - Every Failure carries exactly one FailureKind and a human-readable message
    - Failures are immutable; details is a read-only mapping or None
    - Only handlers and the Unit of Work produce Failures; the dispatcher only wraps
      uncaught faults as UNEXPECTED

Design Decisions:
    - Frozen dataclass with classmethod factories: call sites read as the taxonomy
      (Failure.validation("name required"))
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from usecase_core.core.domain_types import FailureKind


UNEXPECTED_MESSAGE = "An unexpected error occurred"


def _freeze(details: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    if not details:
        return None
    return MappingProxyType(dict(details))


@dataclass(frozen=True)
class Failure:
    """A typed, user-facing failure outcome of one use case."""

    kind: FailureKind
    message: str
    details: Mapping[str, Any] | None = field(default=None, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", _freeze(self.details))

    @classmethod
    def validation(cls, message: str, **details: Any) -> "Failure":
        return cls(FailureKind.VALIDATION, message, details)

    @classmethod
    def unauthorized(cls, message: str, **details: Any) -> "Failure":
        return cls(FailureKind.UNAUTHORIZED, message, details)

    @classmethod
    def not_found(cls, message: str, **details: Any) -> "Failure":
        return cls(FailureKind.NOT_FOUND, message, details)

    @classmethod
    def conflict(cls, message: str, **details: Any) -> "Failure":
        return cls(FailureKind.CONFLICT, message, details)

    @classmethod
    def unexpected(cls) -> "Failure":
        """Internal detail never travels with an UNEXPECTED failure."""
        return cls(FailureKind.UNEXPECTED, UNEXPECTED_MESSAGE)

    @property
    def is_expected(self) -> bool:
        """Expected kinds are user-actionable and not logged as errors."""
        return self.kind is not FailureKind.UNEXPECTED
