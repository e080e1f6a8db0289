"""
Pytest configuration for the Chat Bridge test suite.

Reference Documents:
- GUIDELINES pp. 155-157: "high and low gear" testing philosophy
- GUIDELINES pp. 157: FakeRepository pattern using duck typing

This configuration sets up:
- Test discovery paths
- Test markers for categorization
- FakeDownstream: an in-process stand-in for the downstream chat service,
  served through httpx.MockTransport, with a call counter
- Application and TestClient fixtures wired to the fake
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, AsyncIterator, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

TEST_SECRET = "test-secret-key"
DOWNSTREAM_URL = "http://downstream.test"


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.

    - unit: Low gear tests for individual components
    - integration: High gear tests through the full application
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Tests through the full application")


# =============================================================================
# FakeDownstream
# =============================================================================


async def iterate_chunks(
    chunks: list[bytes],
    delay: float = 0.0,
    error: Optional[Exception] = None,
) -> AsyncIterator[bytes]:
    """Async body that yields chunks one at a time, optionally failing at the end."""
    for chunk in chunks:
        if delay:
            await asyncio.sleep(delay)
        yield chunk
    if error is not None:
        raise error


class FakeDownstream:
    """
    Fake downstream chat service.

    Pattern: FakeRepository (duck typing over httpx.MockTransport)

    Configure one of:
    - reply_json / status_code: buffered JSON reply (default {"ok": true})
    - raw_body: buffered reply with arbitrary bytes
    - chunks: streamed reply, one chunk per yield (stream_error raised after)
    - error: exception raised instead of replying
    - delay: seconds to wait before replying
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.reply_json: Any = {"ok": True}
        self.status_code: int = 200
        self.raw_body: Optional[bytes] = None
        self.chunks: Optional[list[bytes]] = None
        self.chunk_delay: float = 0.0
        self.stream_error: Optional[Exception] = None
        self.error: Optional[Exception] = None
        self.delay: float = 0.0
        self.ping_status: int = 200
        self.ping_error: Optional[Exception] = None
        self.cancelled: bool = False

    @property
    def chat_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def call_count(self) -> int:
        """Number of chat calls the bridge made."""
        return len(self.chat_requests)

    def last_json(self) -> Any:
        """Decoded body of the most recent chat call."""
        return json.loads(self.chat_requests[-1].content)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "GET":
            if self.ping_error is not None:
                raise self.ping_error
            return httpx.Response(self.ping_status, text="Ollama is running")

        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise

        if self.error is not None:
            raise self.error

        if self.chunks is not None:
            return httpx.Response(
                self.status_code,
                headers={"content-type": "application/x-ndjson"},
                content=iterate_chunks(self.chunks, self.chunk_delay, self.stream_error),
            )

        if self.raw_body is not None:
            return httpx.Response(self.status_code, content=self.raw_body)

        return httpx.Response(self.status_code, json=self.reply_json)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


# =============================================================================
# Settings and Application Fixtures
# =============================================================================


@pytest.fixture
def fake_downstream() -> FakeDownstream:
    """Fresh fake downstream per test."""
    return FakeDownstream()


@pytest.fixture
def test_settings():
    """
    Create test settings with safe defaults.

    The .env file is ignored so a developer's local configuration cannot
    leak into the suite.
    """
    from chat_bridge.core.config import Settings

    return Settings(
        _env_file=None,
        api_keys=TEST_SECRET,
        environment="development",
        log_level="DEBUG",
        downstream_url=DOWNSTREAM_URL,
        downstream_timeout_seconds=5.0,
        metrics_enabled=True,
    )


@pytest.fixture
def app(test_settings, fake_downstream):
    """Full application wired to the fake downstream."""
    from chat_bridge.main import create_app

    return create_app(test_settings, transport=fake_downstream.transport())


@pytest.fixture
def client(app):
    """
    TestClient for the application, with lifespan events.

    Yields:
        TestClient: Synchronous test client
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers carrying the valid shared secret."""
    return {"Authorization": TEST_SECRET}


@pytest.fixture
def chat_body() -> dict[str, Any]:
    """Minimal valid chat body."""
    return {
        "model": "llama3",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": False,
    }
