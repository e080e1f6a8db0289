"""
Observability Package

- Structured JSON logging with correlation IDs (structlog)
- Prometheus metrics (prometheus-client)
"""

from chat_bridge.observability.logging import (
    clear_correlation_id,
    configure_logging,
    correlation_id_context,
    get_correlation_id,
    get_logger,
    new_correlation_id,
    set_correlation_id,
)
from chat_bridge.observability.metrics import (
    MetricsMiddleware,
    generate_metrics,
    get_metrics_app,
    record_downstream_duration,
    record_forward_outcome,
)

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "new_correlation_id",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_id_context",
    # Metrics
    "MetricsMiddleware",
    "get_metrics_app",
    "generate_metrics",
    "record_forward_outcome",
    "record_downstream_duration",
]
