"""
Shared metrics configuration for the Access Layer permission service.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry
from typing import Dict, Any, Optional


class MetricsCollector:
    """Centralized metrics collector for services.

    ``registry=None`` leaves the metrics unregistered, which lets tests build
    as many collectors as they need.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        # Service info
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # Error metrics
        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_permission_metrics()

    def _setup_permission_metrics(self):
        """Set up permission-check metrics."""
        self._metrics["permission_checks_total"] = Counter(
            "permission_checks_total",
            "Total permission checks",
            ["checker", "outcome"],
            registry=self.registry
        )

        self._metrics["permission_check_duration_seconds"] = Histogram(
            "permission_check_duration_seconds",
            "Permission check duration in seconds",
            ["checker"],
            registry=self.registry
        )

        self._metrics["permission_engine_errors_total"] = Counter(
            "permission_engine_errors_total",
            "Policy engine faults folded into denials",
            ["checker"],
            registry=self.registry
        )

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_permission_check(self, checker: str, outcome: str, duration: float):
        """Record the outcome and latency of one permission check."""
        self._metrics["permission_checks_total"].labels(checker=checker, outcome=outcome).inc()
        self._metrics["permission_check_duration_seconds"].labels(checker=checker).observe(duration)

    def record_engine_error(self, checker: str):
        """Record a policy engine fault."""
        self._metrics["permission_engine_errors_total"].labels(checker=checker).inc()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
