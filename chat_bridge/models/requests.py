"""
Request Models - Inbound chat request.

Only model, messages and stream are kept from the inbound body; everything
else is dropped before the request is forwarded. Message records are opaque
to the bridge and pass through as-is.

Pattern: Pydantic request validation (Sinha pp. 193-195)
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from chat_bridge.core.exceptions import GatewayValidationError


class ChatRequest(BaseModel):
    """
    Validated subset of an inbound chat-completion body.

    Attributes:
        model: Model identifier, opaque to the bridge.
        messages: Ordered role/content records, passed through unvalidated.
        stream: Whether the caller wants incremental delivery.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    model: str = Field(..., min_length=1, description="Model identifier")
    messages: list[dict[str, Any]] = Field(
        ..., description="Chat messages forwarded verbatim"
    )
    stream: bool = Field(default=False, description="Stream the response")

    @field_validator("stream", mode="before")
    @classmethod
    def default_stream(cls, v: Any) -> Any:
        """Treat an explicit null the same as an absent flag."""
        return False if v is None else v

    @classmethod
    def from_body(cls, body: Any) -> "ChatRequest":
        """
        Validate a decoded JSON body.

        Args:
            body: The decoded request body (any JSON value, or None).

        Returns:
            ChatRequest holding only the forwarded fields.

        Raises:
            GatewayValidationError: If the body is not an object, or model or
                messages are missing or malformed.
        """
        if not isinstance(body, dict):
            raise GatewayValidationError("Request body must be a JSON object")

        try:
            return cls.model_validate(body)
        except ValidationError as e:
            first = e.errors()[0]
            field = _field_name(first.get("loc", ()))
            raise GatewayValidationError(
                f"Invalid field '{field}': {first.get('msg', 'invalid value')}",
                field=field,
            ) from e

    def to_downstream_payload(self) -> dict[str, Any]:
        """Body sent to the downstream chat endpoint."""
        return {
            "model": self.model,
            "messages": self.messages,
            "stream": self.stream,
        }


def _field_name(loc: tuple[Any, ...]) -> Optional[str]:
    """Top-level field name from a pydantic error location."""
    if not loc:
        return None
    return str(loc[0])
