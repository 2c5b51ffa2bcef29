"""
Shared metrics configuration for the resource data store.
"""

import threading
from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY


class MetricsCollector:
    """Centralized metrics collector for data store components.

    Each collector registers its metrics on its own registry, so building
    several collectors in one process (tests, multiple stores) never trips
    prometheus' duplicate-timeseries check. Only the process default returned
    by :func:`get_metrics_collector` uses the global registry.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up data store metrics."""
        self._metrics["datastore_requests_total"] = Counter(
            "datastore_requests_total",
            "Total requests sent to the remote API",
            ["method", "status"],
            registry=self.registry
        )

        self._metrics["datastore_request_duration_seconds"] = Histogram(
            "datastore_request_duration_seconds",
            "Remote API request duration in seconds",
            ["method"],
            registry=self.registry
        )

        self._metrics["datastore_cache_operations_total"] = Counter(
            "datastore_cache_operations_total",
            "Cache operations by result",
            ["backend", "result"],
            registry=self.registry
        )

        self._metrics["datastore_cache_invalidations_total"] = Counter(
            "datastore_cache_invalidations_total",
            "Cache invalidations by kind",
            ["kind"],
            registry=self.registry
        )

    def get_sample_value(self, name: str, **labels) -> Optional[float]:
        """Read back a sample from this collector's registry."""
        return self.registry.get_sample_value(name, labels)

    def record_request(self, method: str, status: int, duration: float):
        """Record remote request metrics."""
        self.increment_counter("datastore_requests_total", method=method, status=str(status))
        self.observe_histogram("datastore_request_duration_seconds", duration, method=method)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).observe(value)


_default_collector: Optional[MetricsCollector] = None
_default_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Get the process-wide collector bound to the default registry."""
    global _default_collector
    with _default_lock:
        if _default_collector is None:
            _default_collector = MetricsCollector(REGISTRY)
        return _default_collector
