"""
Chat Bridge - Main Application Entry Point

This module provides the FastAPI application for the Chat Bridge service:
an authenticated reverse proxy in front of a local chat-completion service.

- create_app(): application factory wiring settings, credential, pooled
  downstream client and Gateway
- lifespan: closes the downstream connection pool on shutdown
- main(): console entry point running uvicorn
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
from fastapi import FastAPI

from chat_bridge import __version__
from chat_bridge.api.errors import bridge_exception_handler, unhandled_exception_handler
from chat_bridge.api.middleware.logging import RequestLoggingMiddleware
from chat_bridge.api.routes.health import router as health_router
from chat_bridge.api.routes.proxy import router as proxy_router
from chat_bridge.clients.downstream import DownstreamClient
from chat_bridge.clients.http import create_http_client
from chat_bridge.core.auth import Credential
from chat_bridge.core.config import Settings, get_settings
from chat_bridge.core.exceptions import ChatBridgeException
from chat_bridge.observability.logging import configure_logging, get_logger
from chat_bridge.observability.metrics import MetricsMiddleware, get_metrics_app
from chat_bridge.services.gateway import Gateway

# Application metadata
APP_NAME = "Chat Bridge"
APP_DESCRIPTION = "Authenticated reverse proxy for a local chat-completion service"

logger = get_logger(__name__)


# =============================================================================
# Lifespan Context Manager
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager for startup/shutdown events.

    Uses the modern lifespan pattern instead of deprecated @app.on_event.
    """
    settings: Settings = app.state.settings
    logger.info(
        "service_starting",
        service=settings.service_name,
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        downstream=settings.downstream_chat_url,
        credential_configured=app.state.credential.is_configured,
    )
    if not app.state.credential.is_configured:
        logger.warning(
            "credential_not_configured",
            hint="set API_KEYS; every request will be rejected",
        )

    yield

    logger.info("service_stopping", service=settings.service_name)
    await app.state.http_client.aclose()


# =============================================================================
# Application Factory
# =============================================================================


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (default: get_settings() from the environment)
        transport: Replacement downstream transport (tests pass
            httpx.MockTransport)

    Returns:
        FastAPI: The configured application
    """
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, force=True)

    credential = Credential.from_secret(settings.api_keys)
    http_client = create_http_client(
        base_url=settings.downstream_url,
        timeout_seconds=settings.downstream_timeout_seconds,
        max_connections=settings.downstream_max_connections,
        transport=transport,
    )
    downstream = DownstreamClient(
        http_client,
        settings.downstream_chat_url,
        deadline_seconds=settings.downstream_timeout_seconds,
    )

    is_production = settings.environment == "production"
    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=__version__,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.credential = credential
    app.state.http_client = http_client
    app.state.gateway = Gateway(credential, downstream)

    app.add_exception_handler(ChatBridgeException, bridge_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Added last = outermost: metrics see the final status of every request
    app.add_middleware(RequestLoggingMiddleware)
    if settings.metrics_enabled:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", get_metrics_app())

    app.include_router(proxy_router)
    app.include_router(health_router)

    return app


app = create_app()


def main() -> None:  # pragma: no cover
    """Run the bridge with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":  # pragma: no cover
    main()
