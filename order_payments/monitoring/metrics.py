"""
Prometheus metrics for order payment monitoring.

Tracks:
- Gateway notifications by gateway and outcome
- Refund notifications by outcome
- Installment plans created by period count
- Outbox queue depth and publications
"""
from prometheus_client import Counter, Gauge, Histogram

# Notification metrics
payment_notifications_total = Counter(
    "payment_notifications_total",
    "Total payment notifications handled",
    ["gateway", "result"],  # paid, duplicate, ignored, not_found, lost_race
)

refund_notifications_total = Counter(
    "refund_notifications_total",
    "Total refund notifications handled",
    ["result"],  # success, failed, not_found
)

notification_processing_duration_seconds = Histogram(
    "notification_processing_duration_seconds",
    "Notification processing duration in seconds",
    ["kind"],  # payment, refund
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

# Installment metrics
installment_plans_created_total = Counter(
    "installment_plans_created_total",
    "Total installment plans created",
    ["count"],
)

installment_plans_rejected_total = Counter(
    "installment_plans_rejected_total",
    "Total installment plan requests rejected",
    ["reason"],
)

# Outbox metrics
outbox_queue_depth = Gauge(
    "outbox_queue_depth",
    "Number of unpublished events in outbox",
)

outbox_events_published_total = Counter(
    "outbox_events_published_total",
    "Total outbox events published",
    ["event_type"],
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_payment_notification(gateway: str, result: str, duration_seconds: float) -> None:
        """Record a handled payment notification."""
        payment_notifications_total.labels(gateway=gateway, result=result).inc()
        notification_processing_duration_seconds.labels(kind="payment").observe(duration_seconds)

    @staticmethod
    def record_refund_notification(result: str, duration_seconds: float) -> None:
        """Record a handled refund notification."""
        refund_notifications_total.labels(result=result).inc()
        notification_processing_duration_seconds.labels(kind="refund").observe(duration_seconds)

    @staticmethod
    def record_installment_plan(count: int) -> None:
        installment_plans_created_total.labels(count=str(count)).inc()

    @staticmethod
    def record_installment_rejection(reason: str) -> None:
        installment_plans_rejected_total.labels(reason=reason).inc()

    @staticmethod
    def set_outbox_queue_depth(depth: int) -> None:
        """Set outbox queue depth."""
        outbox_queue_depth.set(depth)

    @staticmethod
    def record_outbox_event_published(event_type: str) -> None:
        outbox_events_published_total.labels(event_type=event_type).inc()


# Export singleton instance
metrics = MetricsCollector()
