"""Service test fixtures: fake provider, bus with a recording subscriber, dispatcher factory.

Invariants:
    - Every test gets a fresh FakeProvider and DomainEventBus
    - make_dispatcher registers the given handlers (commands unless named in
      queries=), freezes, and wires the fakes
"""

import pytest

from usecase_core.core.domain_types import RequestKind
from usecase_core.services.dispatcher import Dispatcher
from usecase_core.services.event_bus import DomainEventBus
from usecase_core.services.handler_registry import HandlerRegistry
from tests.services.fake_provider import FakeProvider


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def delivered():
    return []


@pytest.fixture
def bus(delivered):
    bus = DomainEventBus()
    bus.subscribe("UserCreated", delivered.append)
    bus.subscribe("UserRenamed", delivered.append)
    return bus


@pytest.fixture
def make_dispatcher(provider, bus):
    def _make(queries=(), **handlers) -> Dispatcher:
        registry = HandlerRegistry()
        for request_type, handler in handlers.items():
            kind = RequestKind.QUERY if request_type in queries else RequestKind.COMMAND
            registry.register(request_type, handler, kind)
        registry.freeze()
        return Dispatcher(registry, provider, bus)
    return _make
