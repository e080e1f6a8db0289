"""
Response Models - Structured error body.

Successful responses are the downstream payload relayed verbatim and have
no model of their own.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from chat_bridge.core.exceptions import ChatBridgeException


class ErrorResponse(BaseModel):
    """
    Error body returned on every failure path.

    Attributes:
        error: Error category, e.g. "unauthorized" or "downstream_unavailable".
        detail: Human-readable detail; omitted when empty.
    """

    error: str = Field(..., description="Error category")
    detail: Optional[str] = Field(default=None, description="Error detail")

    @classmethod
    def from_exception(cls, exc: ChatBridgeException) -> "ErrorResponse":
        """
        Build the body for a bridge exception.

        Authentication failures carry no detail so the body is exactly
        {"error": "unauthorized"}.
        """
        if exc.status_code == 401:
            return cls(error=exc.code)
        return cls(error=exc.code, detail=exc.message)

    def to_content(self) -> dict[str, Any]:
        """JSON-ready dict without empty fields."""
        return self.model_dump(exclude_none=True)
