"""
Error Responses - Exception to HTTP response mapping

Every failure path answers with a JSON body carrying an "error" field, so a
caller never sees a raw connection drop caused by an internal fault.

Pattern: Error translation (Newman pp. 273-275)
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from chat_bridge.core.exceptions import ChatBridgeException, ErrorCode
from chat_bridge.models.responses import ErrorResponse


logger = logging.getLogger(__name__)


def error_response(exc: ChatBridgeException) -> JSONResponse:
    """
    Build the JSON response for a bridge exception.

    Args:
        exc: The exception raised while handling one request.

    Returns:
        JSONResponse with the exception's status and an ErrorResponse body.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.from_exception(exc).to_content(),
    )


async def bridge_exception_handler(
    request: Request, exc: ChatBridgeException
) -> JSONResponse:
    """Exception handler for bridge errors raised outside the proxy route."""
    return error_response(exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last-resort handler for unexpected exceptions.

    The failure is logged with its traceback; the caller gets a 500 with
    {"error": "internal_error"} and the process keeps serving.
    """
    logger.exception(
        f"Unhandled error: {request.method} {request.url.path} "
        f"error={type(exc).__name__}"
    )
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=ErrorCode.INTERNAL_ERROR.value).to_content(),
    )
