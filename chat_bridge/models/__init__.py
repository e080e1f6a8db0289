"""
Models package for Chat Bridge.

Contains the validated inbound request and the structured error body.
"""

from chat_bridge.models.requests import ChatRequest
from chat_bridge.models.responses import ErrorResponse

__all__ = ["ChatRequest", "ErrorResponse"]
