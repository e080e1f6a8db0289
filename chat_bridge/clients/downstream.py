"""
Downstream Chat Client - Local chat-completion service adapter

This module talks to the fixed downstream chat endpoint (an Ollama-compatible
POST /api/chat). It sends the narrowed request body and hands back either the
parsed JSON reply or an open byte stream, mapping transport and parse
failures onto the bridge's exception taxonomy.

Reference Documents:
- GUIDELINES pp. 2309: Timeout configuration and connection pooling
- ANTI_PATTERN_ANALYSIS: Exception names must not shadow builtins

Design Patterns:
- Ports and Adapters: DownstreamClient hides httpx from the Gateway
- Scoped acquisition: DownstreamStream is an async context manager that
  always releases the downstream connection

Downstream API Reference:
- Base URL: http://localhost:11434 (default)
- Chat endpoint: POST /api/chat
- Streaming replies are newline-delimited JSON
"""

import asyncio
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Optional, TypeVar

import httpx

from chat_bridge.core.exceptions import (
    DownstreamProtocolError,
    DownstreamUnavailableError,
)

DEFAULT_STREAM_MEDIA_TYPE = "application/x-ndjson"

T = TypeVar("T")


@dataclass(frozen=True)
class DownstreamReply:
    """
    Buffered downstream reply.

    Attributes:
        status_code: HTTP status returned by the downstream service.
        payload: Parsed JSON body, relayed without interpretation.
    """

    status_code: int
    payload: Any


def _unavailable(url: str, exc: httpx.TransportError) -> DownstreamUnavailableError:
    """Map an httpx transport failure to DownstreamUnavailableError."""
    if isinstance(exc, httpx.TimeoutException):
        return DownstreamUnavailableError(
            f"Downstream request timed out: {type(exc).__name__}",
            url=url,
            timed_out=True,
        )
    return DownstreamUnavailableError(
        f"Failed to reach downstream service: {type(exc).__name__}: {exc}",
        url=url,
    )


def _reject_constant(name: str) -> Any:
    """Refuse NaN and Infinity, which cannot be re-encoded as strict JSON."""
    raise ValueError(f"Non-standard JSON constant: {name}")


# =============================================================================
# Streaming Handle
# =============================================================================


class DownstreamStream:
    """
    An open streaming response from the downstream service.

    The status line and headers have already been received; the body is read
    incrementally through iter_chunks(). Use as an async context manager so
    the connection is released on completion, failure, or cancellation.
    """

    def __init__(self, response: httpx.Response, url: str) -> None:
        self._response = response
        self._url = url

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def media_type(self) -> str:
        content_type = self._response.headers.get("content-type")
        return content_type or DEFAULT_STREAM_MEDIA_TYPE

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """
        Yield body chunks in the order the downstream sends them.

        Raises:
            DownstreamUnavailableError: If the connection fails mid-stream.
        """
        try:
            async for chunk in self._response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.TransportError as e:
            raise _unavailable(self._url, e) from e

    async def aclose(self) -> None:
        """Release the downstream connection. Safe to call more than once."""
        await self._response.aclose()

    async def __aenter__(self) -> "DownstreamStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


# =============================================================================
# Downstream Client
# =============================================================================


class DownstreamClient:
    """
    Client for the fixed downstream chat endpoint.

    No retries: every call is made exactly once and failures are raised.

    The httpx timeout bounds each phase (connect, each read, each write);
    deadline_seconds additionally bounds a whole buffered call, and a
    streaming call up to the response headers. A downstream that drips bytes
    slower than the read timeout therefore still fails in bounded time.

    Args:
        client: Shared pooled httpx.AsyncClient (see create_http_client).
        chat_url: Absolute URL of the chat endpoint.
        deadline_seconds: Whole-call deadline; None disables it.

    Example:
        >>> downstream = DownstreamClient(client, "http://localhost:11434/api/chat")
        >>> reply = await downstream.chat({"model": "llama3", "messages": [], "stream": False})
        >>> reply.payload
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        chat_url: str,
        deadline_seconds: Optional[float] = None,
    ) -> None:
        self._client = client
        self._chat_url = chat_url
        self._deadline_seconds = deadline_seconds

    @property
    def chat_url(self) -> str:
        return self._chat_url

    async def _within_deadline(self, call: Awaitable[T]) -> T:
        """Await a call, failing with a timeout once the deadline passes."""
        if self._deadline_seconds is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._deadline_seconds)
        except asyncio.TimeoutError as e:
            raise DownstreamUnavailableError(
                f"Downstream did not finish within {self._deadline_seconds}s",
                url=self._chat_url,
                timed_out=True,
            ) from e

    async def chat(self, payload: dict[str, Any]) -> DownstreamReply:
        """
        Send a non-streaming chat request and parse the JSON reply.

        Args:
            payload: Body to send, exactly {model, messages, stream}.

        Returns:
            DownstreamReply with the downstream status and parsed body.

        Raises:
            DownstreamUnavailableError: Connection failure, timeout, or the
                deadline passed before the whole body arrived.
            DownstreamProtocolError: Reply body is not valid strict JSON.
        """
        try:
            response = await self._within_deadline(
                self._client.post(self._chat_url, json=payload)
            )
        except httpx.TransportError as e:
            raise _unavailable(self._chat_url, e) from e

        try:
            data = response.json(parse_constant=_reject_constant)
        except ValueError as e:
            # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise DownstreamProtocolError(
                f"Downstream returned a body that is not valid JSON "
                f"(status {response.status_code})",
                status_code_received=response.status_code,
            ) from e

        return DownstreamReply(status_code=response.status_code, payload=data)

    async def open_stream(self, payload: dict[str, Any]) -> DownstreamStream:
        """
        Send a streaming chat request and return once headers arrive.

        Args:
            payload: Body to send, exactly {model, messages, stream}.

        Returns:
            DownstreamStream; the caller must close it (async with).

        Raises:
            DownstreamUnavailableError: Connection failure, timeout, or the
                deadline passed before the response headers were received.
                Once headers arrive only the per-read timeout applies.
        """
        request = self._client.build_request("POST", self._chat_url, json=payload)
        try:
            response = await self._within_deadline(
                self._client.send(request, stream=True)
            )
        except httpx.TransportError as e:
            raise _unavailable(self._chat_url, e) from e
        return DownstreamStream(response, self._chat_url)

    async def ping(self, path: str = "/", timeout: float = 5.0) -> bool:
        """
        Check that the downstream service answers at all.

        Args:
            path: Path to probe, relative to the client base URL.
            timeout: Probe timeout in seconds, independent of chat calls.

        Returns:
            True if the service answered with a non-5xx status.
        """
        try:
            response = await self._client.get(path, timeout=timeout)
        except httpx.HTTPError:
            return False
        return response.status_code < 500
