"""Domain Event Bus: buffers events in the open scope, delivers them after commit.

Invariants:
    - record() appends to the scope bound to the current context; no scope → InvalidStateError
    - flush() only after a successful commit, at most once per scope
    - Delivery order: events in recording order, subscribers in subscription order
    - Subscriber failures are captured as DeliveryFailure, never raised: the write is final
    - A failing failure-sink is logged and ignored

Design Decisions:
    - Sequential delivery (no gather): a dispatch has no internal fan-out, and
      ordering is observable by subscribers
    - Retry policy for failed deliveries is external: the optional failure sink
      receives each DeliveryFailure (see infrastructure/delivery_failures.py)
"""

import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field

from usecase_core.core.domain_types import EventType
from usecase_core.core.events import DeliveryFailure, DomainEvent
from usecase_core.core.repository_protocols import DeliveryFailureSink, Subscriber
from usecase_core.services.unit_of_work import UnitOfWork, current_unit_of_work

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlushReport:
    """What one flush delivered."""
    events: tuple[DomainEvent, ...] = ()
    deliveries: int = 0
    failures: tuple[DeliveryFailure, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return not self.failures


def _subscriber_name(subscriber: Subscriber) -> str:
    return getattr(subscriber, "__qualname__", None) or type(subscriber).__name__


class DomainEventBus:
    """In-process subscriber registry plus scope-bound event buffering."""

    def __init__(self, failure_sink: DeliveryFailureSink | None = None):
        self._subscribers: dict[EventType, list[Subscriber]] = defaultdict(list)
        self._failure_sink = failure_sink

    def subscribe(self, event_type: str, callback: Subscriber) -> None:
        self._subscribers[EventType(event_type)].append(callback)

    def subscribers_for(self, event_type: str) -> list[Subscriber]:
        return list(self._subscribers.get(EventType(event_type), ()))

    def record(self, event: DomainEvent) -> None:
        """Append to the current scope's pending list."""
        current_unit_of_work().record(event)

    async def flush(self, uow: UnitOfWork) -> FlushReport:
        """Deliver a committed scope's events. Raises InvalidStateError if not allowed."""
        events = uow.take_events()
        deliveries = 0
        failures: list[DeliveryFailure] = []
        for event in events:
            for subscriber in self.subscribers_for(event.event_type):
                try:
                    outcome = subscriber(event)
                    if inspect.isawaitable(outcome):
                        await outcome
                    deliveries += 1
                except Exception as e:
                    failure = DeliveryFailure(
                        event=event,
                        subscriber=_subscriber_name(subscriber),
                        error=f"{type(e).__name__}: {e}",
                    )
                    failures.append(failure)
                    logger.warning(
                        f"Subscriber {failure.subscriber} failed for {event.event_type}",
                        exc_info=True,
                        extra={
                            "correlation_id": uow.correlation_id,
                            "event_type": event.event_type,
                            "subscriber": failure.subscriber,
                        },
                    )
                    await self._report(failure, uow)
        return FlushReport(
            events=events, deliveries=deliveries, failures=tuple(failures),
        )

    async def _report(self, failure: DeliveryFailure, uow: UnitOfWork) -> None:
        if self._failure_sink is None:
            return
        try:
            await self._failure_sink(failure, uow.correlation_id)
        except Exception as e:
            logger.error(
                f"Delivery failure sink raised: {e}",
                exc_info=True,
                extra={"correlation_id": uow.correlation_id},
            )
