"""EventDeliveryFailure ORM: outbox of domain events whose subscriber raised.

Invariants:
    - Rows are written after the originating transaction committed
    - status starts at "pending"; retrying delivery is left to an external worker

Design Decisions:
    - JSON payload column: event payloads vary per event type
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, JSON, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from usecase_core.db.base import Base


class EventDeliveryFailure(Base):
    """One failed (event, subscriber) delivery."""
    __tablename__ = "event_delivery_failures"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    correlation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    subscriber: Mapped[str] = mapped_column(String(200), nullable=False)
    error: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
