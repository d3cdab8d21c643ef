"""
Configuration constants for the order pipeline.

Broker entity names and header names are part of the wire contract shared
with other services and must not change between releases.
"""

from dataclasses import dataclass


class OrdersConfig:
    """Names and fixed business constants for the order pipeline."""

    DOMAIN = "orders"
    CONSUMER = "orders-consumer"
    PRODUCER = "orders-producer"

    # Broker topology
    EXCHANGE = "orders.exchange"
    MAIN_QUEUE = "orders.created"
    RETRY_QUEUE = "orders.retry"
    DEAD_LETTER_QUEUE = "orders.dlq"
    RETRY_DELAY_MS = 5000

    # Message headers
    RETRY_COUNT_HEADER = "retry-count"
    REJECTION_REASON_HEADER = "x-rejection-reason"

    # Business rule
    VALUE_THRESHOLD = 1000
    MAX_RETRIES = 3

    CONSUMER_TAG = "orders-consumer"
    CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class ConsumerSettings:
    """
    Runtime settings for the consumer process.

    Attributes:
        prefetch_count: Broker flow-control limit; also the worker count
        grace_period: Seconds to wait for in-flight deliveries on shutdown
        max_retries: Retry hops allowed before an order is dead-lettered
        value_threshold: Orders worth more than this are retried
    """
    prefetch_count: int = 10
    grace_period: float = 30.0
    max_retries: int = OrdersConfig.MAX_RETRIES
    value_threshold: float = OrdersConfig.VALUE_THRESHOLD

    def __post_init__(self):
        if self.prefetch_count < 1:
            raise ValueError("prefetch_count must be at least 1")
        if self.grace_period < 0:
            raise ValueError("grace_period must not be negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
