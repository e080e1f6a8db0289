"""
Request Logging Middleware

This module implements request/response logging middleware for the API.

- Logs request method, path, status and duration
- Redacts sensitive headers (Authorization above all) before logging
- Assigns each request a correlation ID, taken from X-Request-ID when the
  caller sends a usable one, and echoes it back on the response

Reference Documents:
- GUIDELINES: Sinha pp. 89-91 (FastAPI middleware patterns)
- ANTI_PATTERN_ANALYSIS: §3.1 No bare except clauses
"""

import logging
import re
import time
from typing import Awaitable, Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chat_bridge.observability.logging import correlation_id_context, new_correlation_id


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Accept caller-supplied IDs only if they are short and header-safe
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


# =============================================================================
# Sensitive Header Redaction
# Pattern: Security - never log credentials
# =============================================================================

# Headers that should be redacted (case-insensitive substring matching)
SENSITIVE_HEADER_PATTERNS = [
    "authorization",
    "api-key",
    "apikey",
    "api_key",
    "x-auth-token",
    "cookie",
]


def redact_sensitive_headers(headers: dict[str, str]) -> dict[str, str]:
    """
    Redact sensitive headers from a headers dictionary.

    Args:
        headers: Dictionary of HTTP headers

    Returns:
        Dictionary with sensitive values replaced with [REDACTED]
    """
    redacted = {}
    for key, value in headers.items():
        key_lower = key.lower()
        is_sensitive = any(
            pattern in key_lower for pattern in SENSITIVE_HEADER_PATTERNS
        )
        redacted[key] = "[REDACTED]" if is_sensitive else value
    return redacted


def resolve_request_id(header_value: Optional[str]) -> str:
    """
    Pick the correlation ID for a request.

    Args:
        header_value: Inbound X-Request-ID value, if any

    Returns:
        The inbound value when it is well-formed, otherwise a new ID
    """
    if header_value and _REQUEST_ID_PATTERN.match(header_value):
        return header_value
    return new_correlation_id()


# =============================================================================
# Request Logging Middleware
# Pattern: ASGI middleware (Starlette/FastAPI)
# =============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.

    Pattern: BaseHTTPMiddleware for request/response interception

    For streaming responses the logged duration covers time to the status
    line, not the whole body.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """
        Process the request, log details, and attach X-Request-ID.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response from the handler
        """
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        client_host = request.client.host if request.client else "unknown"
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        with correlation_id_context(request_id):
            redacted_headers = redact_sensitive_headers(dict(request.headers))
            logger.debug(
                f"Request: {method} {path} from {client_host} "
                f"request_id={request_id} headers={redacted_headers}"
            )

            try:
                response = await call_next(request)
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"Request failed: {method} {path} from {client_host} "
                    f"request_id={request_id} error={type(e).__name__}: {e} "
                    f"duration={duration_ms:.2f}ms"
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
            logger.log(
                log_level,
                f"{method} {path} {response.status_code} from {client_host} "
                f"request_id={request_id} duration={duration_ms:.2f}ms",
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
