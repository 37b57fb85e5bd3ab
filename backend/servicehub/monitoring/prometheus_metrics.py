"""
Prometheus metrics for the ServiceHub backend.

Service operations are fed by the @measure_operation decorator; the booking and
commission counters are incremented by the lifecycle and commission services.
"""

from threading import Lock
from time import monotonic
from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Custom registry keeps the exposition free of process/platform collectors
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "servicehub_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "servicehub_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "servicehub_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_transitions_total = Counter(
    "servicehub_booking_transitions_total",
    "Booking status transition attempts",
    ["from_status", "to_status", "outcome"],  # outcome: applied | invalid | conflict
    registry=REGISTRY,
)

commission_rate_changes_total = Counter(
    "servicehub_commission_rate_changes_total",
    "Commission rate changes written to history",
    ["tier"],
    registry=REGISTRY,
)

payments_recorded_total = Counter(
    "servicehub_payments_recorded_total",
    "Payment transactions recorded",
    ["payment_method", "provider_tier"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Manages Prometheus metrics collection and exposure."""

    _cache_lock: Lock = Lock()
    _cache_payload: Optional[bytes] = None
    _cache_ts: Optional[float] = None
    _cache_ttl_seconds: float = 1.0

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'BookingLifecycleService')
            operation: Operation/method name (e.g., 'transition_booking')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def record_booking_transition(from_status: str, to_status: str, outcome: str) -> None:
        booking_transitions_total.labels(
            from_status=from_status, to_status=to_status, outcome=outcome
        ).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_commission_rate_change(tier: str) -> None:
        commission_rate_changes_total.labels(tier=tier).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def inc_payment_recorded(payment_method: str, provider_tier: str) -> None:
        payments_recorded_total.labels(
            payment_method=payment_method, provider_tier=provider_tier
        ).inc()
        PrometheusMetrics._invalidate_cache()

    @staticmethod
    def get_metrics() -> bytes:
        """
        Generate Prometheus metrics in exposition format.

        Returns:
            Metrics data in Prometheus text format
        """
        now = monotonic()
        payload = PrometheusMetrics._cache_payload
        ts = PrometheusMetrics._cache_ts

        if payload is not None and ts is not None and (now - ts) <= PrometheusMetrics._cache_ttl_seconds:
            return payload

        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_payload = cast(bytes, generate_latest(REGISTRY))
            PrometheusMetrics._cache_ts = monotonic()
            return PrometheusMetrics._cache_payload

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)

    @staticmethod
    def _invalidate_cache() -> None:
        with PrometheusMetrics._cache_lock:
            PrometheusMetrics._cache_ts = None
            PrometheusMetrics._cache_payload = None


# Singleton instance
prometheus_metrics = PrometheusMetrics()
