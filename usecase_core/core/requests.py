"""Requests & Results: the values that enter and leave Dispatcher.dispatch().

Invariants:
    - A Request is immutable: request_type, kind, and a read-only payload
    - request_type is the Handler Registry key; kind decides whether the scope may
      record domain events (queries may not)
    - A Result always carries the correlation id it was dispatched with
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from usecase_core.core.domain_types import CorrelationId, RequestKind, RequestType
from usecase_core.core.events import DeliveryFailure


@dataclass(frozen=True)
class Request:
    """An inbound command or query."""

    request_type: RequestType
    kind: RequestKind
    payload: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @classmethod
    def command(cls, request_type: str, **payload: Any) -> "Request":
        return cls(RequestType(request_type), RequestKind.COMMAND, payload)

    @classmethod
    def query(cls, request_type: str, **payload: Any) -> "Request":
        return cls(RequestType(request_type), RequestKind.QUERY, payload)

    @property
    def is_query(self) -> bool:
        return self.kind is RequestKind.QUERY


@dataclass(frozen=True)
class Result:
    """Success outcome of a dispatch.

    Attributes:
        value: Handler payload, opaque to the dispatcher.
        correlation_id: Identifier the request was dispatched with.
        delivery_failures: Subscriber failures captured during the post-commit flush.
            The write is final regardless.
    """

    value: Any
    correlation_id: CorrelationId
    delivery_failures: tuple[DeliveryFailure, ...] = ()
