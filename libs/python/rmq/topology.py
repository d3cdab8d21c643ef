"""
Topology declaration.

Declares exchanges, queues and bindings described by a `TopologyConfig`.
Declarations are idempotent: re-declaring an entity with identical settings
is a no-op on the broker, while conflicting settings fail loudly.
"""

import logging

import amqpstorm
from amqpstorm import Channel

from libs.python.rmq.config import TopologyConfig
from libs.python.rmq.exceptions import TopologyError

logger = logging.getLogger(__name__)


def declare_topology(channel: Channel, topology: TopologyConfig) -> None:
    """
    Declare every exchange, queue and binding in `topology`.

    Args:
        channel: Open channel to declare on
        topology: Entities to declare

    Raises:
        TopologyError: If any declaration is rejected by the broker
    """
    try:
        for exchange in topology.exchanges:
            channel.exchange.declare(
                exchange=exchange.name,
                exchange_type=str(exchange.exchange_type),
                durable=exchange.durable,
            )
            logger.info("Exchange declared %s (%s)", exchange.name, exchange.exchange_type)

        for queue_config in topology.queues:
            arguments = queue_config.build_arguments()
            channel.queue.declare(
                queue=queue_config.name,
                durable=queue_config.durable,
                exclusive=queue_config.exclusive,
                auto_delete=queue_config.auto_delete,
                arguments=arguments,
            )
            logger.info("Queue declared %s arguments=%s", queue_config.name, arguments)

        for binding in topology.bindings:
            channel.queue.bind(
                queue=binding.queue,
                exchange=binding.exchange,
                routing_key=binding.routing_key,
            )
            logger.info(
                "Queue %s bound to exchange %s with routing key '%s'",
                binding.queue,
                binding.exchange,
                binding.routing_key,
            )
    except amqpstorm.AMQPError as e:
        raise TopologyError(f"Topology declaration failed: {e}") from e
