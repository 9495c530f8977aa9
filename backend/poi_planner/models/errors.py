"""Error envelope returned by the API."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Machine-readable error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    API_ERROR = "API_ERROR"


class AppError(BaseModel):
    """Structured error shown to API clients."""

    code: ErrorCode
    message: str = Field(..., description="Technical message")
    user_message: Optional[str] = Field(None, description="Message safe to show to users")
