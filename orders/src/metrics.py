"""
OpenTelemetry instruments for the order services.

Instruments are created from the global meter provider unless a meter is
passed in. Without `configure_metrics` the global provider is a no-op, so
recording is always safe.
"""

from typing import Optional

from opentelemetry import metrics
from opentelemetry.metrics import Meter

from orders.src.models import ProcessingOutcome

METER_NAME = "orders"

_OUTCOME_COUNTERS = {
    ProcessingOutcome.ACCEPTED: (
        "orders_messages_processed_total",
        "Orders accepted and acknowledged",
    ),
    ProcessingOutcome.RETRIED: (
        "orders_messages_retried_total",
        "Orders re-published to the retry queue",
    ),
    ProcessingOutcome.DEAD_LETTERED: (
        "orders_messages_dead_lettered_total",
        "Orders moved to the dead-letter queue after exhausting retries",
    ),
    ProcessingOutcome.REJECTED: (
        "orders_messages_rejected_total",
        "Unparseable messages moved to the dead-letter queue",
    ),
    ProcessingOutcome.REQUEUED: (
        "orders_messages_requeued_total",
        "Deliveries nacked for redelivery after a failed re-publish",
    ),
}


class ConsumerMetrics:
    """Counters for processing outcomes plus a running indicator."""

    def __init__(self, meter: Optional[Meter] = None):
        meter = meter or metrics.get_meter(METER_NAME)
        self._outcomes = {
            outcome: meter.create_counter(name, unit="1", description=description)
            for outcome, (name, description) in _OUTCOME_COUNTERS.items()
        }
        self._running = meter.create_up_down_counter(
            "orders_consumer_running",
            unit="1",
            description="1 while the consumer is running",
        )
        self._is_running = False

    def record_outcome(self, outcome: ProcessingOutcome) -> None:
        self._outcomes[outcome].add(1)

    def mark_running(self) -> None:
        if not self._is_running:
            self._is_running = True
            self._running.add(1)

    def mark_stopped(self) -> None:
        if self._is_running:
            self._is_running = False
            self._running.add(-1)


class ProducerMetrics:
    """HTTP and publish instruments for the producer API."""

    def __init__(self, meter: Optional[Meter] = None):
        meter = meter or metrics.get_meter(METER_NAME)
        self._requests = meter.create_counter(
            "orders_http_requests_total",
            unit="1",
            description="HTTP requests handled, by method, path and status",
        )
        self._duration = meter.create_histogram(
            "orders_http_request_seconds",
            unit="s",
            description="HTTP request duration",
        )
        self._publish_success = meter.create_counter(
            "orders_publish_success_total",
            unit="1",
            description="Orders published to the broker",
        )
        self._publish_error = meter.create_counter(
            "orders_publish_error_total",
            unit="1",
            description="Orders the broker did not accept",
        )
        self._running = meter.create_up_down_counter(
            "orders_producer_running",
            unit="1",
            description="1 while the producer is running",
        )
        self._is_running = False

    def record_request(self, method: str, path: str, status_code: int, duration: float) -> None:
        attributes = {"method": method, "path": path, "status": str(status_code)}
        self._requests.add(1, attributes)
        self._duration.record(duration, attributes)

    def record_publish(self, success: bool) -> None:
        if success:
            self._publish_success.add(1)
        else:
            self._publish_error.add(1)

    def mark_running(self) -> None:
        if not self._is_running:
            self._is_running = True
            self._running.add(1)

    def mark_stopped(self) -> None:
        if self._is_running:
            self._is_running = False
            self._running.add(-1)
