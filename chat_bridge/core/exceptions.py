"""
Custom exceptions for Chat Bridge.

This module provides the exception hierarchy for the bridge. Every exception
inherits from ChatBridgeException and carries an error code and an HTTP
status, so the API layer can turn any of them into a structured response
for the failing request only.

Reference:
- GUIDELINES: Specific exceptions, always capture with 'as e'
"""

from enum import Enum
from typing import Any, Optional


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for Chat Bridge exceptions.

    The value is what callers see in the "error" field of the response body.
    """

    BRIDGE_ERROR = "bridge_error"
    UNAUTHORIZED = "unauthorized"
    VALIDATION_ERROR = "validation_error"
    DOWNSTREAM_UNAVAILABLE = "downstream_unavailable"
    BAD_UPSTREAM_RESPONSE = "bad_upstream_response"
    INTERNAL_ERROR = "internal_error"


# =============================================================================
# Base Exception
# =============================================================================


class ChatBridgeException(Exception):
    """
    Base exception for all Chat Bridge errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
        status_code: HTTP status the API layer responds with.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.BRIDGE_ERROR,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            status_code: Override for the class-level HTTP status.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code

        for key, value in kwargs.items():
            setattr(self, key, value)

    @property
    def code(self) -> str:
        """Error code as a plain string."""
        if isinstance(self.error_code, ErrorCode):
            return self.error_code.value
        return str(self.error_code)


# =============================================================================
# AuthenticationError
# =============================================================================


class AuthenticationError(ChatBridgeException):
    """
    Raised when the Authorization header is missing or does not match.

    Also raised for every request when no credential is configured.
    The message is logged but never returned to the caller.
    """

    status_code = 401

    def __init__(
        self,
        message: str = "unauthorized",
        error_code: str = ErrorCode.UNAUTHORIZED,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)


# =============================================================================
# GatewayValidationError
# =============================================================================


class GatewayValidationError(ChatBridgeException):
    """
    Exception for inbound request validation errors.

    Note: Named GatewayValidationError to avoid conflict with
    pydantic.ValidationError.

    Attributes:
        field: Name of the field that failed validation.
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: str = ErrorCode.VALIDATION_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the validation error.

        Args:
            message: Human-readable error message.
            field: Name of the invalid field (optional).
            error_code: Machine-readable error code.
            **kwargs: Additional attributes.
        """
        super().__init__(message, error_code, **kwargs)
        self.field = field


# =============================================================================
# DownstreamUnavailableError
# =============================================================================


class DownstreamUnavailableError(ChatBridgeException):
    """
    Exception for network failures reaching the downstream service.

    Covers refused connections, resets, and timeouts. Never retried.

    Attributes:
        url: Downstream URL that was called.
        timed_out: True when the failure was a timeout (reported as 504).
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timed_out: bool = False,
        error_code: str = ErrorCode.DOWNSTREAM_UNAVAILABLE,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the downstream unavailable error.

        Args:
            message: Human-readable error message.
            url: Downstream URL (optional).
            timed_out: Whether the failure was a timeout.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code,
            status_code=504 if timed_out else None,
            **kwargs,
        )
        self.url = url
        self.timed_out = timed_out


# =============================================================================
# DownstreamProtocolError
# =============================================================================


class DownstreamProtocolError(ChatBridgeException):
    """
    Exception for downstream responses that cannot be parsed.

    Distinguishes "upstream sent garbage" from "upstream is down".

    Attributes:
        status_code_received: HTTP status the downstream answered with.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        status_code_received: Optional[int] = None,
        error_code: str = ErrorCode.BAD_UPSTREAM_RESPONSE,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.status_code_received = status_code_received
