"""
Prometheus metrics for SessionBook.

Service timings come from the @measure_operation decorator; the domain
counters record booking conflicts and which refund tier cancellations
landed in.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

# Custom registry to avoid clashing with a host application's default one
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "sessionbook_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "sessionbook_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "sessionbook_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

booking_conflicts_total = Counter(
    "sessionbook_booking_conflicts_total",
    "Bookings rejected because the slot was taken",
    ["source"],
    registry=REGISTRY,
)

cancellations_total = Counter(
    "sessionbook_cancellations_total",
    "Session cancellations by actor role and refund percentage",
    ["role", "refund_percentage"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin recording API so call sites never touch metric objects directly."""

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
            service: Service name (e.g., 'SessionService')
            operation: Operation/method name (e.g., 'create_session')
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

    @staticmethod
    def record_booking_conflict(source: str) -> None:
        """``source`` is 'precheck' or 'storage' depending on where the clash surfaced."""
        booking_conflicts_total.labels(source=source).inc()

    @staticmethod
    def record_cancellation(role: str, refund_percentage: int) -> None:
        cancellations_total.labels(role=role, refund_percentage=str(refund_percentage)).inc()

    @staticmethod
    def get_metrics() -> bytes:
        """Exposition-format snapshot of the registry."""
        return generate_latest(REGISTRY)


prometheus_metrics = PrometheusMetrics()
