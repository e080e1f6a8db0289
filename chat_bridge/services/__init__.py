"""
Services package for Chat Bridge.
"""

from chat_bridge.services.gateway import Gateway, parse_chat_body

__all__ = ["Gateway", "parse_chat_body"]
