"""
Clients package for Chat Bridge.

HTTP client factory and the downstream chat client.
"""

from chat_bridge.clients.downstream import DownstreamClient, DownstreamStream
from chat_bridge.clients.http import create_http_client

__all__ = ["create_http_client", "DownstreamClient", "DownstreamStream"]
