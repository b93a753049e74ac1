"""Use-Case Schemas: HTTP shapes around Dispatcher.dispatch() and translate().

Invariants:
    - DispatchBody.payload is a JSON object (field name -> value)
    - ErrorEnvelopeResponse mirrors ErrorEnvelope.to_response() exactly
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DispatchBody(BaseModel):
    """Inbound command/query body."""
    payload: dict[str, Any] = Field(default_factory=dict)


class DispatchResponse(BaseModel):
    """Successful dispatch."""
    model_config = ConfigDict(populate_by_name=True)

    data: Any = None
    correlation_id: str = Field(alias="correlationId")
    delivery_failures: int = Field(0, alias="deliveryFailures")


class ErrorEnvelopeResponse(BaseModel):
    """Failed dispatch, or any error rendered by the global handlers."""
    model_config = ConfigDict(populate_by_name=True)

    code: int
    message: str
    correlation_id: str = Field(alias="correlationId")
    details: dict[str, Any] | None = None
