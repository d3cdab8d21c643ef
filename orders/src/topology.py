"""
Broker topology for the order pipeline.

One direct exchange routes to three durable queues, each bound with its own
name as routing key. Messages published to the retry queue expire after a
fixed delay and are dead-lettered back to the main queue, forming the delay
loop. The dead-letter queue is only fed by explicit publishes from the
consumer; the main queue carries no dead-letter arguments of its own.
"""

import logging

from amqpstorm import Channel

from libs.python.rmq import (
    BindingConfig,
    ExchangeConfig,
    ExchangeType,
    QueueConfig,
    TopologyConfig,
    declare_topology,
)
from orders.src.config import OrdersConfig

logger = logging.getLogger(__name__)


def build_order_topology(retry_delay_ms: int = OrdersConfig.RETRY_DELAY_MS) -> TopologyConfig:
    """Build the exchange, queues and bindings for the order pipeline."""
    exchange = OrdersConfig.EXCHANGE
    queues = (
        QueueConfig(name=OrdersConfig.MAIN_QUEUE),
        QueueConfig(
            name=OrdersConfig.RETRY_QUEUE,
            message_ttl_ms=retry_delay_ms,
            dead_letter_exchange=exchange,
            dead_letter_routing_key=OrdersConfig.MAIN_QUEUE,
        ),
        QueueConfig(name=OrdersConfig.DEAD_LETTER_QUEUE),
    )
    return TopologyConfig(
        exchanges=(ExchangeConfig(name=exchange, exchange_type=ExchangeType.DIRECT),),
        queues=queues,
        bindings=tuple(
            BindingConfig(exchange=exchange, queue=queue.name, routing_key=queue.name)
            for queue in queues
        ),
    )


ORDER_TOPOLOGY = build_order_topology()


def declare_order_topology(channel: Channel) -> None:
    """
    Idempotently declare the order topology.

    Raises:
        TopologyError: If the broker rejects any declaration. Startup must abort.
    """
    declare_topology(channel, ORDER_TOPOLOGY)
    logger.info("Order topology declared on exchange %s", OrdersConfig.EXCHANGE)
