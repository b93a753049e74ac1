"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - CorrelationId, RequestType, EventType wrap str: opaque outside logging/routing
    - FailureKind is the closed failure taxonomy; translate() maps every member
    - All valid states encoded as Enums: no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

CorrelationId = NewType("CorrelationId", str)
RequestType = NewType("RequestType", str)
EventType = NewType("EventType", str)


# ─── Enums ───────────────────────────────────────────────────────

class RequestKind(str, Enum):
    """Commands mutate state; queries do not."""
    COMMAND = "command"
    QUERY = "query"


class FailureKind(str, Enum):
    """Closed failure taxonomy surfaced by Dispatcher.dispatch()."""
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNEXPECTED = "unexpected"


class CommitStatus(str, Enum):
    """Outcome reported by a persistence provider's commit()."""
    OK = "ok"
    CONFLICT = "conflict"


class ScopeState(str, Enum):
    """Unit of Work lifecycle: NEW → ACTIVE → COMMITTED | ROLLED_BACK | ABORTED.

    ABORTED: commit was requested and the store refused it (conflict or fault).
    """
    NEW = "new"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    ABORTED = "aborted"
