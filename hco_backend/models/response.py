"""Response envelopes shared by every endpoint."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiResponse(BaseModel):
    """Success envelope.

    Attributes:
        status_code: HTTP status echoed in the body (serialized as statusCode)
        data: Endpoint payload
        message: Human-readable outcome
        success: Always True for this envelope
    """

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    data: Any = None
    message: str = "Success"
    success: bool = True


class ErrorResponse(BaseModel):
    """Error envelope.

    ``detail`` is only filled in development; production callers see the
    code and message alone.
    """

    success: bool = False
    error: str
    message: str
    correlation_id: Optional[str] = None
    detail: Optional[Any] = None
