"""
Prometheus Metrics Module

This module provides Prometheus metrics for the bridge:

- HTTP-level counters, latency histogram and in-progress gauge, collected
  by MetricsMiddleware for every request (streams included, since the ASGI
  call lasts until the last chunk is sent)
- Forwarding outcomes per request and downstream call latency, recorded by
  the Gateway

Reference Documents:
- Newman (Building Microservices pp. 273-275): Services "expose basic
  metrics themselves" including "response times and error rates"

Pattern: Metrics collection for observability
"""

import time
from typing import Any, Callable, Iterable, Optional

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    make_asgi_app,
)

# Paths outside this set are reported as "unmatched" to bound label cardinality
KNOWN_PATHS = frozenset({"/", "/health", "/health/ready"})
UNMATCHED_PATH = "unmatched"


# =============================================================================
# HTTP Metrics
# =============================================================================

REQUESTS_TOTAL = Counter(
    name="chat_bridge_requests_total",
    documentation="Total number of HTTP requests",
    labelnames=["method", "path", "status"],
)

REQUEST_DURATION_SECONDS = Histogram(
    name="chat_bridge_request_duration_seconds",
    documentation="HTTP request duration in seconds, including streamed bodies",
    labelnames=["method", "path"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

REQUESTS_IN_PROGRESS = Gauge(
    name="chat_bridge_requests_in_progress",
    documentation="Number of HTTP requests currently being processed",
    labelnames=["method"],
)

# =============================================================================
# Forwarding Metrics
# =============================================================================

FORWARDED_REQUESTS_TOTAL = Counter(
    name="chat_bridge_forwarded_requests_total",
    documentation="Chat requests handled by the gateway, by outcome",
    labelnames=["outcome", "stream"],
)

DOWNSTREAM_DURATION_SECONDS = Histogram(
    name="chat_bridge_downstream_duration_seconds",
    documentation="Time spent on the downstream chat call in seconds",
    labelnames=["stream"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)


# =============================================================================
# Helper Functions
# =============================================================================


def _stream_label(stream: bool) -> str:
    return "true" if stream else "false"


def record_forward_outcome(outcome: str, stream: bool) -> None:
    """
    Record how a chat request ended.

    Args:
        outcome: "ok" or an error code such as "unauthorized"
        stream: Whether the request asked for streaming
    """
    FORWARDED_REQUESTS_TOTAL.labels(
        outcome=outcome,
        stream=_stream_label(stream),
    ).inc()


def record_downstream_duration(duration_seconds: float, stream: bool) -> None:
    """
    Record downstream call latency.

    Args:
        duration_seconds: Wall time of the downstream call (whole stream
            when streaming)
        stream: Whether the call was streamed
    """
    DOWNSTREAM_DURATION_SECONDS.labels(stream=_stream_label(stream)).observe(
        duration_seconds
    )


def generate_metrics() -> bytes:
    """Render the default registry in Prometheus text format."""
    return generate_latest(REGISTRY)


# =============================================================================
# MetricsMiddleware ASGI Middleware
# =============================================================================


class MetricsMiddleware:
    """
    ASGI middleware for Prometheus metrics collection.

    This middleware:
    - Increments request counter per method/path/status
    - Records request latency histogram
    - Tracks in-progress requests gauge
    - Excludes /metrics path from metrics
    """

    def __init__(
        self,
        app: Callable[..., Any],
        exclude_paths: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Initialize MetricsMiddleware.

        Args:
            app: ASGI application to wrap
            exclude_paths: Paths to exclude from metrics (default: ["/metrics"])
        """
        self.app = app
        self.exclude_paths = set(exclude_paths or ["/metrics", "/metrics/"])

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Any],
        send: Callable[..., Any],
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw_path = scope.get("path", "/")
        if raw_path in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        path = raw_path if raw_path in KNOWN_PATHS else UNMATCHED_PATH

        REQUESTS_IN_PROGRESS.labels(method=method).inc()
        start_time = time.perf_counter()
        status_code = "500"

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = str(message.get("status", 500))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration = time.perf_counter() - start_time
            REQUESTS_TOTAL.labels(method=method, path=path, status=status_code).inc()
            REQUEST_DURATION_SECONDS.labels(method=method, path=path).observe(duration)
            REQUESTS_IN_PROGRESS.labels(method=method).dec()


# =============================================================================
# Metrics Endpoint
# =============================================================================


def get_metrics_app() -> Callable[..., Any]:
    """
    Get ASGI app for the /metrics endpoint.

    Returns:
        ASGI application that serves Prometheus metrics
    """
    return make_asgi_app(registry=REGISTRY)
