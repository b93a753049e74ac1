"""Error Handlers: global exception handlers rendering ErrorEnvelopes.

Invariants:
    - RequestValidationError → VALIDATION envelope (400) with field-level details
    - Exception (catch-all) → UNEXPECTED envelope (500), never leaks internal details,
      and still carries the correlation header
    - Both go through translate(): one status mapping for the whole service

Design Decisions:
    - Dispatch failures never reach these handlers: routes translate them inline
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from usecase_core.api.correlation import correlation_id_from
from usecase_core.core.failures import Failure
from usecase_core.core.translate_failure import translate

logger = logging.getLogger(__name__)


def register_error_handlers(
    app: FastAPI, correlation_header: str = "X-Correlation-ID",
) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_validation_error_handler(app)
    _register_generic_error_handler(app, correlation_header)


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        correlation_id = correlation_id_from(request)
        logger.info(
            f"Validation error on {request.url.path}: {exc.errors()}",
            extra={"correlation_id": correlation_id, "path": request.url.path},
        )
        envelope = translate(
            Failure.validation("Invalid request data", errors=_field_errors(exc)),
            correlation_id,
        )
        return JSONResponse(
            status_code=envelope.code, content=envelope.to_response(),
        )


def _register_generic_error_handler(app: FastAPI, correlation_header: str) -> None:
    """Register catch-all error handler.

    Runs outside the middleware stack, so the correlation header is set here.
    """

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all: never leaks internal details."""
        correlation_id = correlation_id_from(request)
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=exc,
            extra={"correlation_id": correlation_id, "path": request.url.path},
        )
        envelope = translate(Failure.unexpected(), correlation_id)
        return JSONResponse(
            status_code=envelope.code,
            content=envelope.to_response(),
            headers={correlation_header: correlation_id},
        )


def _field_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]
