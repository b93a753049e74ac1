"""Unit of Work: one transactional scope around one use-case execution.

Invariants:
    - Lifecycle NEW → ACTIVE → exactly one of COMMITTED | ROLLED_BACK | ABORTED
    - commit()/rollback() only from ACTIVE; a second terminal call raises InvalidStateError
    - release() reaches the provider at most once, and only if begin() succeeded
    - Recorded events are owned by the scope until commit succeeds; rollback and
      aborted commits discard them
    - Query scopes refuse event recording
    - One scope per execution context: begin() while another scope is active in the
      same context raises InvalidStateError (no nested units of work)

Design Decisions:
    - Active scope tracked in a ContextVar: each asyncio task sees its own scope,
      so concurrent dispatches never share one
    - Terminal state is set before awaiting the provider: once commit or rollback is
      requested the other can no longer be issued
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

from usecase_core.core.domain_types import CommitStatus, CorrelationId, ScopeState
from usecase_core.core.errors import ConcurrencyError, InvalidStateError
from usecase_core.core.events import DomainEvent
from usecase_core.core.repository_protocols import PersistenceProvider, Repositories

logger = logging.getLogger(__name__)

_active_scope: ContextVar["UnitOfWork | None"] = ContextVar(
    "active_unit_of_work", default=None,
)


def current_unit_of_work() -> "UnitOfWork":
    """Scope bound to the running context. Raises InvalidStateError if none."""
    uow = _active_scope.get()
    if uow is None:
        raise InvalidStateError("No unit of work is open in this context")
    return uow


def has_active_unit_of_work() -> bool:
    return _active_scope.get() is not None


class UnitOfWork:
    """Wraps one provider scope handle. Created per request by the dispatcher."""

    def __init__(
        self,
        provider: PersistenceProvider,
        correlation_id: CorrelationId,
        *,
        read_only: bool = False,
    ):
        self._provider = provider
        self.correlation_id = correlation_id
        self.read_only = read_only
        self._state = ScopeState.NEW
        self._handle: Any = None
        self._events: list[DomainEvent] = []
        self._released = False
        self._events_taken = False

    @property
    def state(self) -> ScopeState:
        return self._state

    @property
    def released(self) -> bool:
        return self._released

    @property
    def handle(self) -> Any:
        if self._state is ScopeState.NEW:
            raise InvalidStateError("Unit of work has not begun")
        return self._handle

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._events)

    async def begin(self) -> Any:
        if self._state is not ScopeState.NEW:
            raise InvalidStateError(f"Unit of work already {self._state.value}")
        if has_active_unit_of_work():
            raise InvalidStateError(
                "Nested unit of work: one use case, one transactional boundary",
            )
        self._handle = await self._provider.begin_scope()
        self._state = ScopeState.ACTIVE
        logger.debug(
            "Unit of work begun", extra={"correlation_id": self.correlation_id},
        )
        return self._handle

    @contextmanager
    def activate(self) -> Iterator["UnitOfWork"]:
        """Bind this scope to the current context for the handler's duration."""
        self._require_active("activate")
        token = _active_scope.set(self)
        try:
            yield self
        finally:
            _active_scope.reset(token)

    def repositories(self) -> Repositories:
        return self._provider.repositories(self.handle)

    def record(self, event: DomainEvent) -> None:
        self._require_active("record events")
        if self.read_only:
            raise InvalidStateError(
                f"Query scopes cannot record events ({event.event_type})",
            )
        self._events.append(event)

    async def commit(self) -> None:
        """Persist the scope. Raises ConcurrencyError on a store-detected conflict."""
        self._require_active("commit")
        self._state = ScopeState.ABORTED
        try:
            status = await self._provider.commit(self._handle)
        except BaseException:
            self._events.clear()
            raise
        if status is CommitStatus.CONFLICT:
            self._events.clear()
            raise ConcurrencyError()
        self._state = ScopeState.COMMITTED

    async def rollback(self) -> None:
        self._require_active("roll back")
        self._state = ScopeState.ROLLED_BACK
        discarded = len(self._events)
        self._events.clear()
        await self._provider.rollback(self._handle)
        logger.debug(
            f"Unit of work rolled back, {discarded} event(s) discarded",
            extra={"correlation_id": self.correlation_id},
        )

    async def release(self) -> None:
        if self._released or self._state is ScopeState.NEW:
            return
        self._released = True
        await self._provider.release(self._handle)

    def take_events(self) -> tuple[DomainEvent, ...]:
        """Transfer recorded events out of a committed scope. At most once."""
        if self._state is not ScopeState.COMMITTED:
            raise InvalidStateError(
                f"Events are only released after commit (scope is {self._state.value})",
            )
        if self._events_taken:
            raise InvalidStateError("Events for this scope were already flushed")
        self._events_taken = True
        events = tuple(self._events)
        self._events.clear()
        return events

    def _require_active(self, action: str) -> None:
        if self._state is not ScopeState.ACTIVE:
            raise InvalidStateError(
                f"Cannot {action}: unit of work is {self._state.value}",
            )
