"""
Per-delivery processing for the order consumer.

Each delivery goes through parse, decide, re-route and exactly one
acknowledgement decision, in that order. Re-routing is always an explicit
publish by this process; the broker's own dead-lettering is only used by the
retry queue's TTL loop.
"""

import logging
from typing import Optional

from libs.python.rmq import (
    Delivery,
    DeliveryHandlerInterface,
    MessagePublisherInterface,
    PublishError,
)
from orders.src.config import OrdersConfig
from orders.src.metrics import ConsumerMetrics
from orders.src.models import Order, PayloadError, ProcessingOutcome
from orders.src.retry_policy import decide, retry_count_from_headers

logger = logging.getLogger(__name__)

PARSE_ERROR_REASON = "parse-error"


class MessageProcessor(DeliveryHandlerInterface):
    """Applies the order business rule to deliveries from the main queue."""

    def __init__(
        self,
        publisher: MessagePublisherInterface,
        max_retries: int = OrdersConfig.MAX_RETRIES,
        threshold: float = OrdersConfig.VALUE_THRESHOLD,
        metrics: Optional[ConsumerMetrics] = None,
    ):
        self._publisher = publisher
        self._max_retries = max_retries
        self._threshold = threshold
        self._metrics = metrics or ConsumerMetrics()

    def process(self, delivery: Delivery) -> ProcessingOutcome:
        """
        Handle one delivery and settle it.

        Returns:
            The terminal outcome for this delivery
        """
        try:
            outcome = self._route(delivery)
        except PublishError as e:
            logger.error(
                "Re-route of delivery %s failed, requeueing: %s",
                delivery.delivery_tag,
                e,
            )
            delivery.nack(requeue=True)
            outcome = ProcessingOutcome.REQUEUED
        else:
            delivery.ack()

        self._metrics.record_outcome(outcome)
        return outcome

    def _route(self, delivery: Delivery) -> ProcessingOutcome:
        """Publish wherever the delivery must go next. Does not settle it."""
        try:
            order = Order.parse(delivery.body)
        except PayloadError as e:
            self._publisher.publish(
                OrdersConfig.DEAD_LETTER_QUEUE,
                delivery.body,
                {OrdersConfig.REJECTION_REASON_HEADER: PARSE_ERROR_REASON},
            )
            logger.warning("Rejected delivery %s to dead-letter queue: %s", delivery.delivery_tag, e)
            return ProcessingOutcome.REJECTED

        retry_count = retry_count_from_headers(delivery.headers)
        decision = decide(order, retry_count, self._max_retries, self._threshold)

        if decision.outcome == ProcessingOutcome.RETRIED:
            self._publisher.publish(
                OrdersConfig.RETRY_QUEUE,
                delivery.body,
                {OrdersConfig.RETRY_COUNT_HEADER: decision.next_retry_count},
            )
            logger.info(
                "Order %s (value=%s) sent to retry queue, attempt %d/%d",
                order.id,
                order.value,
                decision.next_retry_count,
                self._max_retries,
            )
        elif decision.outcome == ProcessingOutcome.DEAD_LETTERED:
            self._publisher.publish(
                OrdersConfig.DEAD_LETTER_QUEUE,
                delivery.body,
                {OrdersConfig.RETRY_COUNT_HEADER: decision.next_retry_count},
            )
            logger.warning(
                "Order %s (value=%s) dead-lettered after %d retries",
                order.id,
                order.value,
                decision.next_retry_count,
            )
        else:
            logger.info("Order %s (value=%s) accepted", order.id, order.value)

        return decision.outcome

