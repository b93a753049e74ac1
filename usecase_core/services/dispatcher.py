"""Dispatcher: resolves a handler, runs it inside a Unit of Work, flushes events.

Invariants:
    - dispatch() returns Result | Failure; Failures never cross the boundary as exceptions
    - Unknown request types (NOT_FOUND) and a command/query tag that differs from
      the registered kind (VALIDATION) are refused before any scope opens
    - Every scope that begins is released exactly once, on every exit path
    - Exactly one of commit/rollback per scope; only the dispatcher calls them
    - Events flush only after a successful commit; a conflict or commit fault skips flush
    - Unexpected faults are logged with full detail and returned as a bare UNEXPECTED
    - Cancellation before commit rolls back and propagates; once commit is requested,
      cancellation is deferred until the completion phase resolves

Design Decisions:
    - Handlers may return a Failure or raise a UseCaseError: both become the
      returned Failure
    - Completion phase (commit → release → flush) runs in its own task behind
      asyncio.shield so a caller's cancel cannot leave a transaction half-open
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, TypeVar

from usecase_core.core.domain_types import CorrelationId
from usecase_core.core.errors import (
    ConcurrencyError, ConfigurationError, HandlerNotFoundError, InvalidStateError,
    RequestKindMismatchError, UseCaseError,
)
from usecase_core.core.events import DomainEvent
from usecase_core.core.failures import Failure
from usecase_core.core.repository_protocols import (
    Handler, PersistenceProvider, Repositories,
)
from usecase_core.core.requests import Request, Result
from usecase_core.services.event_bus import DomainEventBus
from usecase_core.services.handler_registry import HandlerRegistry
from usecase_core.services.unit_of_work import UnitOfWork, has_active_unit_of_work

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class UseCaseContext:
    """Passed to Handler.handle() alongside the request."""
    request: Request
    correlation_id: CorrelationId
    repositories: Repositories
    _bus: DomainEventBus

    def record_event(self, event: DomainEvent) -> None:
        self._bus.record(event)


class Dispatcher:
    """Runs one use case per dispatch() call. Safe for concurrent callers."""

    def __init__(
        self,
        registry: HandlerRegistry,
        provider: PersistenceProvider,
        bus: DomainEventBus,
    ):
        if not registry.frozen:
            raise ConfigurationError(
                "Handler registry must be frozen before dispatching",
            )
        self._registry = registry
        self._provider = provider
        self._bus = bus

    async def dispatch(
        self, request: Request, correlation_id: CorrelationId,
    ) -> Result | Failure:
        log_extra = {
            "correlation_id": correlation_id,
            "request_type": request.request_type,
        }
        try:
            handler = self._registry.resolve(request.request_type, request.kind)
        except (HandlerNotFoundError, RequestKindMismatchError) as e:
            return self._expected(e.to_failure(), log_extra)

        if has_active_unit_of_work():
            raise InvalidStateError(
                f"Nested dispatch of '{request.request_type}' inside a running use case",
            )

        uow = UnitOfWork(
            self._provider, correlation_id, read_only=request.is_query,
        )
        try:
            await uow.begin()
        except Exception:
            logger.error(
                "Failed to begin unit of work", exc_info=True, extra=log_extra,
            )
            return Failure.unexpected()

        try:
            outcome = await self._run_handler(handler, request, uow, log_extra)
        except BaseException:
            await _shielded(self._abandon(uow, log_extra))
            raise

        if isinstance(outcome, Failure):
            await _shielded(self._abandon(uow, log_extra))
            return outcome
        return await _shielded(self._complete(uow, outcome, log_extra))

    async def _run_handler(
        self, handler: Handler, request: Request, uow: UnitOfWork, log_extra: dict,
    ) -> Any:
        try:
            context = UseCaseContext(
                request=request,
                correlation_id=uow.correlation_id,
                repositories=uow.repositories(),
                _bus=self._bus,
            )
            with uow.activate():
                outcome = handler.handle(request, context)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
        except UseCaseError as e:
            failure = e.to_failure()
            if failure.is_expected:
                return self._expected(failure, log_extra)
            logger.error(
                f"Use case error {e.code}: {e.message}", exc_info=True, extra=log_extra,
            )
            return failure
        except Exception:
            logger.error(
                f"Unhandled fault in {type(handler).__name__}",
                exc_info=True, extra=log_extra,
            )
            return Failure.unexpected()
        if isinstance(outcome, Failure):
            if outcome.is_expected:
                return self._expected(outcome, log_extra)
            logger.error(
                f"{type(handler).__name__} returned an unexpected failure: {outcome.message}",
                extra=log_extra,
            )
            return Failure.unexpected()
        return outcome

    async def _abandon(self, uow: UnitOfWork, log_extra: dict) -> None:
        """Roll back and release. Rollback errors are logged, release still runs."""
        try:
            await uow.rollback()
        except Exception:
            logger.error("Rollback failed", exc_info=True, extra=log_extra)
        finally:
            await self._release(uow, log_extra)

    async def _complete(
        self, uow: UnitOfWork, value: Any, log_extra: dict,
    ) -> Result | Failure:
        """Commit → release → flush. Runs shielded from caller cancellation."""
        try:
            await uow.commit()
        except ConcurrencyError as e:
            logger.info(f"Commit conflict: {e.message}", extra=log_extra)
            return e.to_failure()
        except Exception:
            logger.error("Commit failed", exc_info=True, extra=log_extra)
            return Failure.unexpected()
        finally:
            await self._release(uow, log_extra)

        report = await self._bus.flush(uow)
        return Result(
            value=value,
            correlation_id=uow.correlation_id,
            delivery_failures=report.failures,
        )

    async def _release(self, uow: UnitOfWork, log_extra: dict) -> None:
        try:
            await uow.release()
        except Exception:
            logger.error("Failed to release unit of work", exc_info=True, extra=log_extra)

    def _expected(self, failure: Failure, log_extra: dict) -> Failure:
        logger.info(
            f"{failure.kind.value}: {failure.message}",
            extra={**log_extra, "failure_kind": failure.kind.value},
        )
        return failure


async def _shielded(coro: Awaitable[T]) -> T:
    """Run coro to completion even if the caller is cancelled, then re-raise the cancel."""
    task = asyncio.ensure_future(coro)
    cancelled = False
    while not task.done():
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            cancelled = True
    if cancelled:
        raise asyncio.CancelledError()
    return task.result()
