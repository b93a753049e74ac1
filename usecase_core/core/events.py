"""Domain Events: immutable records of state changes raised inside a use case.

Invariants:
    - DomainEvent and DeliveryFailure are frozen; payload is a read-only mapping
    - A DeliveryFailure names the event, the subscriber, and the error text only
      (no traceback objects cross the bus boundary)
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from usecase_core.core.domain_types import EventType


@dataclass(frozen=True)
class DomainEvent:
    """Something that happened inside a handler (type tag + payload)."""

    event_type: EventType
    payload: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @classmethod
    def of(cls, event_type: str, **payload: Any) -> "DomainEvent":
        return cls(EventType(event_type), payload)

    def to_dict(self) -> dict[str, Any]:
        return {"event_type": self.event_type, "payload": dict(self.payload)}


@dataclass(frozen=True)
class DeliveryFailure:
    """A subscriber raised while a committed event was being delivered."""

    event: DomainEvent
    subscriber: str
    error: str
