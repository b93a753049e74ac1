"""Delivery Failure Recorder: outbox-style sink for DomainEventBus delivery failures.

Invariants:
    - Each DeliveryFailure becomes one event_delivery_failures row with status "pending"
    - Writes use their own session: the originating transaction is already committed
    - Recorder problems are logged, never raised into the flush

Design Decisions:
    - Payload coerced through json with default=str: UUIDs and datetimes survive
      the JSON column on every backend
"""

import json
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from usecase_core.core.domain_types import CorrelationId
from usecase_core.core.events import DeliveryFailure
from usecase_core.models.event_delivery_failure import EventDeliveryFailure

logger = logging.getLogger(__name__)


class DeliveryFailureRecorder:
    """Callable DeliveryFailureSink persisting failures for later redelivery."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def __call__(
        self, failure: DeliveryFailure, correlation_id: CorrelationId,
    ) -> None:
        try:
            async with self._session_factory() as session:
                session.add(EventDeliveryFailure(
                    correlation_id=correlation_id,
                    event_type=failure.event.event_type,
                    payload=json.loads(
                        json.dumps(dict(failure.event.payload), default=str),
                    ),
                    subscriber=failure.subscriber,
                    error=failure.error,
                ))
                await session.commit()
        except Exception as e:
            logger.error(
                f"Failed to record delivery failure for {failure.event.event_type}: {e}",
                extra={
                    "correlation_id": correlation_id,
                    "event_type": failure.event.event_type,
                    "subscriber": failure.subscriber,
                },
            )
