"""
RabbitMQ utilities for message publishing and subscription.

This package provides reusable components for working with RabbitMQ:
- Connection management with bounded startup retry
- Topology declaration from configuration dataclasses
- A lock-guarded publisher with publisher confirms
- A subscriber that dispatches each delivery to a worker thread
- A delivery wrapper enforcing a single acknowledgement decision
"""

from libs.python.rmq.config import (
    BindingConfig,
    ExchangeConfig,
    ExchangeType,
    QueueConfig,
    TopologyConfig,
)
from libs.python.rmq.connection import BrokerHandle, connect, redact_url
from libs.python.rmq.delivery import Delivery
from libs.python.rmq.exceptions import (
    DeliveryAlreadySettledError,
    PublishError,
    RabbitError,
    TopologyError,
)
from libs.python.rmq.interface import (
    DeliveryHandlerInterface,
    MessagePublisherInterface,
)
from libs.python.rmq.publisher import RabbitPublisher
from libs.python.rmq.subscriber import InFlightCounter, RabbitSubscriber
from libs.python.rmq.topology import declare_topology

__all__ = [
    # Config
    "BindingConfig",
    "ExchangeConfig",
    "ExchangeType",
    "QueueConfig",
    "TopologyConfig",
    # Connection
    "BrokerHandle",
    "connect",
    "redact_url",
    # Errors
    "DeliveryAlreadySettledError",
    "PublishError",
    "RabbitError",
    "TopologyError",
    # Interfaces
    "DeliveryHandlerInterface",
    "MessagePublisherInterface",
    # Publisher/Subscriber
    "Delivery",
    "InFlightCounter",
    "RabbitPublisher",
    "RabbitSubscriber",
    "declare_topology",
]
