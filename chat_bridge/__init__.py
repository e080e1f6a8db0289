"""Chat Bridge - Source Package.

Authenticated reverse-proxy bridge in front of a local chat-completion service.

Note: Import `app` directly from `chat_bridge.main` to avoid circular imports.
"""

__version__ = "1.0.0"

__all__ = ["main", "api", "core", "models", "clients", "services", "observability"]
