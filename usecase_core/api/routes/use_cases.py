"""Use-Case Routes: HTTP transport boundary for Dispatcher.dispatch().

Invariants:
    - POST /api/v1/commands/{request_type} dispatches a COMMAND
    - POST /api/v1/queries/{request_type} dispatches a QUERY
    - Result → 200 {data, correlationId, deliveryFailures}
    - Failure → translate() → {code, message, correlationId, details?} with status = code

Design Decisions:
    - Dispatcher read from app.state (built once in the lifespan)
    - Request built with the dataclass constructor, not Request.command(**payload):
      payload keys are client-controlled
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from usecase_core.api.correlation import correlation_id_from
from usecase_core.core.domain_types import CorrelationId, RequestKind, RequestType
from usecase_core.core.failures import Failure
from usecase_core.core.requests import Request as UseCaseRequest
from usecase_core.core.translate_failure import translate
from usecase_core.schemas.use_case import (
    DispatchBody, DispatchResponse, ErrorEnvelopeResponse,
)
from usecase_core.services.dispatcher import Dispatcher

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["use-cases"])

_ERROR_RESPONSES = {
    code: {"model": ErrorEnvelopeResponse}
    for code in (
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_404_NOT_FOUND,
        status.HTTP_409_CONFLICT,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
}


def get_dispatcher(request: Request) -> Dispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise RuntimeError("Dispatcher not initialized")
    return dispatcher


def get_correlation_id(request: Request) -> CorrelationId:
    return correlation_id_from(request)


@router.post(
    "/commands/{request_type}",
    response_model=DispatchResponse,
    responses=_ERROR_RESPONSES,
)
async def dispatch_command(
    request_type: str,
    body: DispatchBody,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    correlation_id: CorrelationId = Depends(get_correlation_id),
):
    """Run a state-changing use case."""
    use_case = UseCaseRequest(
        RequestType(request_type), RequestKind.COMMAND, body.payload,
    )
    return await _dispatch(dispatcher, use_case, correlation_id)


@router.post(
    "/queries/{request_type}",
    response_model=DispatchResponse,
    responses=_ERROR_RESPONSES,
)
async def dispatch_query(
    request_type: str,
    body: DispatchBody,
    dispatcher: Dispatcher = Depends(get_dispatcher),
    correlation_id: CorrelationId = Depends(get_correlation_id),
):
    """Run a read-only use case."""
    use_case = UseCaseRequest(
        RequestType(request_type), RequestKind.QUERY, body.payload,
    )
    return await _dispatch(dispatcher, use_case, correlation_id)


async def _dispatch(
    dispatcher: Dispatcher, use_case: UseCaseRequest, correlation_id: CorrelationId,
):
    outcome = await dispatcher.dispatch(use_case, correlation_id)
    if isinstance(outcome, Failure):
        envelope = translate(outcome, correlation_id)
        return JSONResponse(
            status_code=envelope.code, content=envelope.to_response(),
        )
    return DispatchResponse(
        data=outcome.value,
        correlation_id=outcome.correlation_id,
        delivery_failures=len(outcome.delivery_failures),
    )
