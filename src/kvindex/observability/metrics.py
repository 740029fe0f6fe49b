"""Prometheus metrics for backend operations.

Tracks per-command counts and latencies of the key-value backend and the
number of entries evicted from bounded time-window indexes.
"""

from typing import Optional

from prometheus_client import Counter, Histogram

backend_operations_total = Counter(
    "kvindex_backend_operations_total",
    "Total number of key-value backend operations",
    labelnames=["operation", "status"],
)

backend_operation_duration_seconds = Histogram(
    "kvindex_backend_operation_duration_seconds",
    "Key-value backend operation duration in seconds",
    labelnames=["operation"],
    buckets=[0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0],
)

window_evictions_total = Counter(
    "kvindex_window_evictions_total",
    "Total number of entries evicted from time-window indexes",
    labelnames=["index"],
)


class MetricsCollector:
    """Collects and exposes Prometheus metrics for the indexing layer."""

    def record_backend_operation(
        self, operation: str, status: str, duration_seconds: float
    ) -> None:
        """Record one backend command.

        Args:
            operation: Backend command name (hset, zadd, ...)
            status: Outcome (success, error)
            duration_seconds: Command duration in seconds

        Example:
            >>> collector = get_metrics_collector()
            >>> collector.record_backend_operation("zadd", "success", 0.002)
        """
        backend_operations_total.labels(operation=operation, status=status).inc()
        backend_operation_duration_seconds.labels(operation=operation).observe(
            duration_seconds
        )

    def record_window_eviction(self, index: str, evicted: int) -> None:
        """Record entries evicted from a time-window index.

        Args:
            index: Index name
            evicted: Number of entries removed by the trim
        """
        if evicted > 0:
            window_evictions_total.labels(index=index).inc(evicted)


# Singleton instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global MetricsCollector instance.

    Returns:
        Singleton MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
