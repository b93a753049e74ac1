"""Boundary Protocols: contracts between the orchestration core and its collaborators.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - Persistence, handlers, and subscribers are accessed through Protocol types
    - Implementations are provided by the shell (infrastructure/, services/handle_*)

Design Decisions:
    - Protocol over ABC: structural subtyping, a handler is anything with handle()
    - Handler.handle may be sync or async; the dispatcher awaits when needed
    - Repositories speak plain dicts so handlers never touch ORM objects
"""

from typing import Any, Awaitable, Callable, Protocol, Union, runtime_checkable
from uuid import UUID

from usecase_core.core.domain_types import CommitStatus, CorrelationId
from usecase_core.core.events import DeliveryFailure, DomainEvent
from usecase_core.core.failures import Failure
from usecase_core.core.requests import Request


class ContextLike(Protocol):
    """What a handler receives alongside its request."""
    request: Request
    correlation_id: CorrelationId
    repositories: "Repositories"

    def record_event(self, event: DomainEvent) -> None: ...


class Handler(Protocol):
    """Capability Handle(Request) -> Result | Failure. Stateless between calls."""
    def handle(
        self, request: Request, context: ContextLike,
    ) -> Union[Any, Failure, Awaitable[Any]]: ...


class PersistenceProvider(Protocol):
    """Transactional store consumed by the Unit of Work, implemented by shell."""
    async def begin_scope(self) -> Any: ...
    async def commit(self, handle: Any) -> CommitStatus: ...
    async def rollback(self, handle: Any) -> None: ...
    async def release(self, handle: Any) -> None: ...
    def repositories(self, handle: Any) -> "Repositories": ...


Subscriber = Callable[[DomainEvent], Union[None, Awaitable[None]]]

DeliveryFailureSink = Callable[[DeliveryFailure, CorrelationId], Awaitable[None]]


@runtime_checkable
class UserRepository(Protocol):
    """Contract for user persistence within one scope, implemented by shell."""
    async def add(self, user_id: UUID, name: str, email: str) -> dict: ...
    async def get(self, user_id: UUID) -> dict | None: ...
    async def get_by_email(self, email: str) -> dict | None: ...
    async def rename(self, user_id: UUID, name: str) -> dict | None: ...
    async def list(self, limit: int, offset: int) -> list[dict]: ...


class Repositories(Protocol):
    """Scope-bound repository set exposed to handlers as context.repositories."""
    users: UserRepository
