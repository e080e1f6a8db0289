"""
Core module for Chat Bridge.

This module contains configuration, the credential value, and exceptions.
"""

from chat_bridge.core.auth import Credential
from chat_bridge.core.config import Settings, get_settings
from chat_bridge.core.exceptions import (
    AuthenticationError,
    ChatBridgeException,
    DownstreamProtocolError,
    DownstreamUnavailableError,
    ErrorCode,
    GatewayValidationError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Auth
    "Credential",
    # Exceptions
    "ErrorCode",
    "ChatBridgeException",
    "AuthenticationError",
    "GatewayValidationError",
    "DownstreamUnavailableError",
    "DownstreamProtocolError",
]
