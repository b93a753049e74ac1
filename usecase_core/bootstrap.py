"""Bootstrap: explicit wiring of handlers, subscribers, and the dispatcher.

Invariants:
    - Every request_type -> handler mapping is visible in build_registry()
    - The registry is frozen before the Dispatcher is constructed
    - Subscribers are attached before the first dispatch

Design Decisions:
    - Explicit registration over discovery: adding a use case requires editing
      this file
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from usecase_core.core.domain_types import RequestKind
from usecase_core.infrastructure.delivery_failures import DeliveryFailureRecorder
from usecase_core.infrastructure.observability import log_domain_event
from usecase_core.infrastructure.persistence import SqlAlchemyPersistenceProvider
from usecase_core.services.dispatcher import Dispatcher
from usecase_core.services.event_bus import DomainEventBus
from usecase_core.services.handle_users import (
    CreateUserHandler, GetUserHandler, ListUsersHandler, RenameUserHandler,
)
from usecase_core.services.handler_registry import HandlerRegistry

AUDITED_EVENTS = ("UserCreated", "UserRenamed")


def build_registry() -> HandlerRegistry:
    registry = HandlerRegistry()
    # Commands
    registry.register("CreateUser", CreateUserHandler(), RequestKind.COMMAND)
    registry.register("RenameUser", RenameUserHandler(), RequestKind.COMMAND)
    # Queries
    registry.register("GetUser", GetUserHandler(), RequestKind.QUERY)
    registry.register("ListUsers", ListUsersHandler(), RequestKind.QUERY)
    registry.freeze()
    return registry


def build_event_bus(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> DomainEventBus:
    """Bus with the audit subscriber; failures recorded when a factory is given."""
    sink = DeliveryFailureRecorder(session_factory) if session_factory else None
    bus = DomainEventBus(failure_sink=sink)
    for event_type in AUDITED_EVENTS:
        bus.subscribe(event_type, log_domain_event)
    return bus


def build_dispatcher(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    record_delivery_failures: bool = True,
    bus: DomainEventBus | None = None,
) -> Dispatcher:
    if bus is None:
        bus = build_event_bus(
            session_factory if record_delivery_failures else None,
        )
    return Dispatcher(
        registry=build_registry(),
        provider=SqlAlchemyPersistenceProvider(session_factory),
        bus=bus,
    )
