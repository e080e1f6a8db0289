"""
API Dependencies

This module provides FastAPI dependency injection functions for the API layer.

Pattern: Everything a handler needs is built once in create_app() and stored
on app.state; dependencies only look it up. Tests override them with
FastAPI's dependency_overrides mechanism or build an app with their own
Settings and transport.
"""

from fastapi import Request

from chat_bridge.core.config import Settings
from chat_bridge.services.gateway import Gateway


def get_settings(request: Request) -> Settings:
    """
    Get the settings the running application was built with.

    Returns:
        Settings: Application settings instance
    """
    return request.app.state.settings


def get_gateway(request: Request) -> Gateway:
    """
    Get the Gateway instance for this application.

    Returns:
        Gateway: The gateway built at startup
    """
    return request.app.state.gateway


__all__ = [
    "get_settings",
    "get_gateway",
]
