"""Routes Package - API endpoint definitions.

- proxy: POST / chat forwarding
- health: liveness and readiness probes

Note: Import routers directly from individual modules to avoid circular imports.
Example: from chat_bridge.api.routes.proxy import router as proxy_router
"""

__all__ = ["proxy", "health"]
