"""API Package - FastAPI routes, middleware, error mapping and dependencies.

Components:
- routes: API endpoint routers (proxy, health)
- middleware: Request logging with correlation IDs
- errors: Exception to response mapping
- deps: FastAPI dependency injection functions

Note: Import routers directly from chat_bridge.api.routes to avoid circular imports.
"""

__all__ = ["routes", "middleware", "errors", "deps"]
