"""Correlation Middleware: attaches a correlation id to every request and response.

Invariants:
    - request.state.correlation_id is always set before routing
    - A well-formed inbound header is reused; anything else is replaced by uuid4().hex
    - The id is echoed back in the same header on every response that passes through
"""

import re
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from usecase_core.core.domain_types import CorrelationId

_VALID_ID = re.compile(r"^[A-Za-z0-9._\-]{1,64}$")


def new_correlation_id() -> CorrelationId:
    return CorrelationId(uuid.uuid4().hex)


def correlation_id_from(request: Request) -> CorrelationId:
    """Correlation id set by the middleware, or a fresh one outside it."""
    return getattr(request.state, "correlation_id", None) or new_correlation_id()


class CorrelationIdMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, header_name: str = "X-Correlation-ID") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next):
        inbound = request.headers.get(self.header_name, "")
        correlation_id = (
            CorrelationId(inbound) if _VALID_ID.match(inbound) else new_correlation_id()
        )
        request.state.correlation_id = correlation_id
        response = await call_next(request)
        response.headers[self.header_name] = correlation_id
        return response
