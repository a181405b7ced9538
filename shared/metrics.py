"""
Shared metrics configuration for the Access Cache layer.
"""

from typing import Dict, Any, Optional
import threading

from prometheus_client import Counter, Histogram, CollectorRegistry, start_http_server


class CacheMetricsCollector:
    """Prometheus metrics for the cache-aside engine."""

    def __init__(self, service_name: str = "cache", registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up cache metrics."""

        self._metrics["cache_requests_total"] = Counter(
            "cache_requests_total",
            "Cache lookups by outcome",
            ["scope", "result"],
            registry=self.registry
        )

        self._metrics["cache_producer_invocations_total"] = Counter(
            "cache_producer_invocations_total",
            "Value producer invocations by outcome",
            ["scope", "outcome"],
            registry=self.registry
        )

        self._metrics["cache_lock_timeouts_total"] = Counter(
            "cache_lock_timeouts_total",
            "Population lock acquisitions that timed out",
            ["scope"],
            registry=self.registry
        )

        self._metrics["cache_errors_total"] = Counter(
            "cache_errors_total",
            "Errors surfaced by the cache engine",
            ["scope", "error_type"],
            registry=self.registry
        )

        self._metrics["cache_lock_wait_seconds"] = Histogram(
            "cache_lock_wait_seconds",
            "Time spent waiting for the population lock",
            ["scope"],
            registry=self.registry
        )

    def start_metrics_server(self, port: int = 9090):
        """Start the Prometheus metrics server."""
        start_http_server(port, registry=self.registry)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            raise KeyError(f"Unknown metric: {metric_name}")
        with self._lock:
            if labels:
                metric.labels(**labels).inc()
            else:
                metric.inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            raise KeyError(f"Unknown metric: {metric_name}")
        with self._lock:
            if labels:
                metric.labels(**labels).observe(value)
            else:
                metric.observe(value)
