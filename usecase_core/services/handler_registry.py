"""Handler Registry: explicit mapping from request type to its single handler.

Invariants:
    - One handler per request type; a second register() raises ConfigurationError
    - Each binding carries the RequestKind it serves (command or query)
    - Write phase ends with freeze(); register() after freeze raises ConfigurationError
    - resolve() is read-only and returns the exact instance that was registered
    - Unknown request types raise HandlerNotFoundError (NOT_FOUND); a request sent
      with the wrong kind raises RequestKindMismatchError (VALIDATION)

Design Decisions:
    - Explicit dict over discovery: every mapping visible where the registry is
      built (see bootstrap.py)
    - No lock: after freeze() the dict is never written again
"""

import logging

from usecase_core.core.domain_types import RequestKind, RequestType
from usecase_core.core.errors import (
    ConfigurationError, HandlerNotFoundError, RequestKindMismatchError,
)
from usecase_core.core.repository_protocols import Handler

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Routes request_type -> handler. Registration confined to startup."""

    def __init__(self) -> None:
        self._handlers: dict[RequestType, Handler] = {}
        self._kinds: dict[RequestType, RequestKind] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self,
        request_type: str,
        handler: Handler,
        kind: RequestKind = RequestKind.COMMAND,
    ) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"Cannot register '{request_type}': registry is frozen",
            )
        if not callable(getattr(handler, "handle", None)):
            raise ConfigurationError(
                f"Handler for '{request_type}' has no callable handle()",
            )
        if request_type in self._handlers:
            raise ConfigurationError(
                f"Request type '{request_type}' is already bound to "
                f"{type(self._handlers[RequestType(request_type)]).__name__}",
            )
        self._handlers[RequestType(request_type)] = handler
        self._kinds[RequestType(request_type)] = kind
        logger.debug(
            f"Registered {type(handler).__name__} for {kind.value} {request_type}",
            extra={"request_type": request_type},
        )

    def freeze(self) -> None:
        """End the write phase. Idempotent."""
        if not self._frozen:
            self._frozen = True
            logger.info(f"Handler registry frozen with {len(self._handlers)} handlers")

    def resolve(self, request_type: str, kind: RequestKind | None = None) -> Handler:
        """Handler bound to request_type. When kind is given it must match the binding."""
        handler = self._handlers.get(RequestType(request_type))
        if handler is None:
            raise HandlerNotFoundError(request_type)
        bound = self._kinds[RequestType(request_type)]
        if kind is not None and kind is not bound:
            raise RequestKindMismatchError(request_type, bound, kind)
        return handler

    def kind_of(self, request_type: str) -> RequestKind:
        if request_type not in self._kinds:
            raise HandlerNotFoundError(request_type)
        return self._kinds[RequestType(request_type)]

    @property
    def registered_types(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, request_type: object) -> bool:
        return request_type in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
