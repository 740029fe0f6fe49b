"""Observability for the indexing layer.

Provides structured logging with correlation IDs and Prometheus metrics
for backend operations and time-window evictions.
"""

from kvindex.observability.logging import get_logger, setup_logging
from kvindex.observability.metrics import MetricsCollector, get_metrics_collector

__all__ = [
    "setup_logging",
    "get_logger",
    "MetricsCollector",
    "get_metrics_collector",
]
