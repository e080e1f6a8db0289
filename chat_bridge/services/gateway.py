"""
Gateway Service - Authenticate, narrow, forward, relay

This module implements the single operation of the bridge. For every inbound
chat request the Gateway:

1. Authenticates the raw Authorization header against the Credential
2. Decodes the body and keeps only model, messages and stream
3. Makes exactly one downstream call (none if steps 1-2 fail)
4. Relays the reply: buffered JSON, or chunk-by-chunk when streaming

Failures are raised as ChatBridgeException subclasses; the API layer turns
them into a structured response for that request only.

Pattern: Service layer extraction for business logic
Pattern: Dependency injection - the Credential and DownstreamClient are
constructed once in create_app() and passed in
"""

import asyncio
import json
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from chat_bridge.clients.downstream import DownstreamClient, DownstreamStream
from chat_bridge.core.auth import Credential
from chat_bridge.core.exceptions import (
    AuthenticationError,
    ChatBridgeException,
    GatewayValidationError,
)
from chat_bridge.models.requests import ChatRequest
from chat_bridge.models.responses import ErrorResponse
from chat_bridge.observability.logging import get_logger
from chat_bridge.observability.metrics import (
    record_downstream_duration,
    record_forward_outcome,
)


logger = get_logger(__name__)

T = TypeVar("T")
Receive = Callable[[], Awaitable[dict[str, Any]]]

# Non-standard status used for requests the caller abandoned (nginx convention)
CLIENT_CLOSED_REQUEST = 499

OUTCOME_OK = "ok"
OUTCOME_DOWNSTREAM_STATUS = "downstream_status_error"
OUTCOME_CLIENT_DISCONNECTED = "client_disconnected"


class ClientDisconnected(Exception):
    """The caller went away before the downstream call finished."""


# =============================================================================
# Body Parsing
# =============================================================================


def parse_chat_body(raw: bytes) -> ChatRequest:
    """
    Decode and validate a raw request body.

    Args:
        raw: Request body bytes (possibly empty).

    Returns:
        ChatRequest holding only model, messages and stream.

    Raises:
        GatewayValidationError: Empty body, invalid JSON, or missing/malformed
            model or messages.
    """
    if not raw or not raw.strip():
        raise GatewayValidationError("Request body is empty")
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise GatewayValidationError("Request body is not valid JSON") from e
    return ChatRequest.from_body(body)


def _error_line(exc: ChatBridgeException, needs_newline: bool) -> bytes:
    """Final NDJSON line appended to a stream that failed mid-way."""
    line = json.dumps(ErrorResponse.from_exception(exc).to_content()).encode("utf-8")
    prefix = b"\n" if needs_newline else b""
    return prefix + line + b"\n"


async def _wait_for_disconnect(receive: Receive) -> None:
    """Block until the ASGI server reports that the caller disconnected."""
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return


async def _unless_disconnected(call: Awaitable[T], receive: Receive) -> T:
    """
    Await a downstream call, cancelling it if the caller disconnects first.

    Raises:
        ClientDisconnected: The caller disconnected; the call was cancelled.
    """
    call_task = asyncio.ensure_future(call)
    watcher = asyncio.ensure_future(_wait_for_disconnect(receive))
    try:
        done, _ = await asyncio.wait(
            {call_task, watcher}, return_when=asyncio.FIRST_COMPLETED
        )
        if call_task in done:
            return call_task.result()
        if watcher.exception() is not None:
            # Disconnect detection failed; the call itself is still valid
            return await call_task
        raise ClientDisconnected()
    finally:
        for task in (call_task, watcher):
            if not task.done():
                task.cancel()
        await asyncio.gather(call_task, watcher, return_exceptions=True)


# =============================================================================
# Gateway
# =============================================================================


class Gateway:
    """
    Authenticating forwarder for chat requests.

    Args:
        credential: Shared secret, immutable for the process lifetime.
        downstream: Client for the fixed downstream chat endpoint.

    Example:
        >>> gateway = Gateway(Credential("s3cret"), DownstreamClient(client, url))
        >>> response = await gateway.handle(request)
    """

    def __init__(self, credential: Credential, downstream: DownstreamClient) -> None:
        self._credential = credential
        self._downstream = downstream

    @property
    def downstream(self) -> DownstreamClient:
        return self._downstream

    # =========================================================================
    # Step 1: Authenticate
    # =========================================================================

    def authenticate(self, authorization: Optional[str]) -> None:
        """
        Check the raw Authorization header value.

        Args:
            authorization: Header value; None when the header is absent.

        Raises:
            AuthenticationError: No credential configured, or no exact match.
        """
        if not self._credential.is_configured:
            raise AuthenticationError("No credential configured; rejecting request")
        if not self._credential.matches(authorization):
            reason = "missing" if not authorization else "mismatched"
            raise AuthenticationError(f"Authorization header {reason}")

    # =========================================================================
    # Step 2: Extract
    # =========================================================================

    async def extract(self, request: Request) -> ChatRequest:
        """Read and validate the request body."""
        raw = await request.body()
        return parse_chat_body(raw)

    # =========================================================================
    # handle(): the whole pipeline
    # =========================================================================

    async def handle(self, request: Request) -> Response:
        """
        Authenticate, validate, forward and relay one chat request.

        Args:
            request: The inbound request.

        Returns:
            JSONResponse with the downstream body, or a StreamingResponse
            relaying downstream chunks when stream is true.

        Raises:
            AuthenticationError: Credential check failed (no downstream call).
            GatewayValidationError: Body invalid (no downstream call).
            DownstreamUnavailableError: Downstream unreachable or timed out.
            DownstreamProtocolError: Downstream reply was not valid JSON.
        """
        stream = False
        try:
            self.authenticate(request.headers.get("authorization"))
            chat_request = await self.extract(request)
            stream = chat_request.stream

            logger.info(
                "forwarding_request",
                model=chat_request.model,
                stream=stream,
                message_count=len(chat_request.messages),
            )

            if stream:
                return await self._forward_streaming(chat_request, request.receive)
            return await self._forward_buffered(chat_request, request.receive)

        except ChatBridgeException as e:
            record_forward_outcome(e.code, stream)
            event = "request_rejected" if e.status_code < 500 else "downstream_error"
            log = logger.warning if e.status_code < 500 else logger.error
            log(
                event,
                error=e.code,
                status_code=e.status_code,
                detail=e.message,
                stream=stream,
            )
            raise

    # =========================================================================
    # Step 3-4: Forward and relay (buffered)
    # =========================================================================

    async def _forward_buffered(
        self, chat_request: ChatRequest, receive: Receive
    ) -> Response:
        started = time.perf_counter()
        try:
            reply = await _unless_disconnected(
                self._downstream.chat(chat_request.to_downstream_payload()),
                receive,
            )
        except ClientDisconnected:
            record_forward_outcome(OUTCOME_CLIENT_DISCONNECTED, False)
            logger.info(
                "client_disconnected",
                model=chat_request.model,
                stream=False,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        finally:
            record_downstream_duration(time.perf_counter() - started, stream=False)

        outcome = OUTCOME_OK if reply.status_code < 400 else OUTCOME_DOWNSTREAM_STATUS
        record_forward_outcome(outcome, False)
        logger.info(
            "downstream_replied",
            model=chat_request.model,
            stream=False,
            status_code=reply.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return JSONResponse(status_code=reply.status_code, content=reply.payload)

    # =========================================================================
    # Step 3-4: Forward and relay (streaming)
    # =========================================================================

    async def _forward_streaming(
        self, chat_request: ChatRequest, receive: Receive
    ) -> Response:
        started = time.perf_counter()
        try:
            stream = await _unless_disconnected(
                self._downstream.open_stream(chat_request.to_downstream_payload()),
                receive,
            )
        except ClientDisconnected:
            record_downstream_duration(time.perf_counter() - started, stream=True)
            record_forward_outcome(OUTCOME_CLIENT_DISCONNECTED, True)
            logger.info(
                "client_disconnected",
                model=chat_request.model,
                stream=True,
                chunks=0,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return Response(status_code=CLIENT_CLOSED_REQUEST)
        except ChatBridgeException:
            record_downstream_duration(time.perf_counter() - started, stream=True)
            raise

        # The background task covers a caller that leaves before the body starts
        return StreamingResponse(
            self._relay_stream(stream, chat_request, started),
            status_code=stream.status_code,
            media_type=stream.media_type,
            background=BackgroundTask(stream.aclose),
        )

    async def _relay_stream(
        self,
        stream: DownstreamStream,
        chat_request: ChatRequest,
        started: float,
    ) -> AsyncIterator[bytes]:
        """
        Yield downstream chunks to the caller in arrival order.

        A downstream failure after the status line was sent cannot change the
        status, so it ends the body with one NDJSON error line instead.
        """
        outcome = OUTCOME_OK if stream.status_code < 400 else OUTCOME_DOWNSTREAM_STATUS
        chunks = 0
        ends_with_newline = True
        try:
            async with stream:
                async for chunk in stream.iter_chunks():
                    chunks += 1
                    ends_with_newline = chunk.endswith(b"\n")
                    yield chunk
        except ChatBridgeException as e:
            outcome = e.code
            logger.error(
                "stream_aborted",
                model=chat_request.model,
                error=e.code,
                detail=e.message,
                chunks=chunks,
            )
            yield _error_line(e, needs_newline=not ends_with_newline)
        except (asyncio.CancelledError, GeneratorExit):
            outcome = OUTCOME_CLIENT_DISCONNECTED
            logger.info(
                "client_disconnected",
                model=chat_request.model,
                stream=True,
                chunks=chunks,
            )
            raise
        finally:
            duration = time.perf_counter() - started
            record_downstream_duration(duration, stream=True)
            record_forward_outcome(outcome, True)
            if outcome == OUTCOME_OK:
                logger.info(
                    "stream_completed",
                    model=chat_request.model,
                    chunks=chunks,
                    duration_ms=round(duration * 1000, 2),
                )
