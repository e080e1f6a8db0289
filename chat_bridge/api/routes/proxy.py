"""
Proxy Router - Authenticated chat forwarding

This module exposes the single forwarding route, POST /. The route body is
read by the Gateway itself (not declared as a FastAPI body parameter) so the
credential is checked before the body is parsed.

Anti-Patterns Avoided:
- ANTI_PATTERN_ANALYSIS §3.1: No bare except clauses
- ANTI_PATTERN_ANALYSIS §4.1: Business logic lives in the Gateway service
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from chat_bridge.api.deps import get_gateway
from chat_bridge.api.errors import error_response
from chat_bridge.core.exceptions import ChatBridgeException
from chat_bridge.services.gateway import Gateway


router = APIRouter(tags=["Proxy"])


@router.post("/", response_model=None)
async def forward_chat(
    request: Request,
    gateway: Gateway = Depends(get_gateway),
) -> Response:
    """
    Forward a chat request to the downstream chat service.

    Body: {"model": str, "messages": [...], "stream": bool (optional)}.
    Header: Authorization with the raw shared secret.

    Returns:
        200 with the downstream body, or a chunked stream when stream=true.
        401 {"error": "unauthorized"} on a credential mismatch.
        400 validation_error, 502/504 downstream_unavailable,
        502 bad_upstream_response on failure.
    """
    try:
        return await gateway.handle(request)
    except ChatBridgeException as e:
        return error_response(e)
