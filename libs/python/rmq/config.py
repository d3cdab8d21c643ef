"""
RabbitMQ configuration dataclasses.

This module provides configuration objects for exchanges, queues and the
bindings between them. Applications describe their topology with these and
hand them to `declare_topology`.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional


class ExchangeType(StrEnum):
    """AMQP exchange types."""
    DIRECT = "direct"
    TOPIC = "topic"
    FANOUT = "fanout"


@dataclass(frozen=True)
class ExchangeConfig:
    """
    Configuration for a RabbitMQ exchange.

    Attributes:
        name: Exchange name
        exchange_type: Routing behaviour of the exchange
        durable: Exchange survives broker restart
    """
    name: str
    exchange_type: ExchangeType = ExchangeType.DIRECT
    durable: bool = True


@dataclass(frozen=True)
class QueueConfig:
    """
    Configuration for RabbitMQ queues.

    Attributes:
        name: Queue name
        durable: Queue survives broker restart
        exclusive: Queue can only be used by one connection
        auto_delete: Queue is deleted when last consumer unsubscribes
        message_ttl_ms: Per-queue message time-to-live (x-message-ttl)
        dead_letter_exchange: Exchange expired/rejected messages move to
        dead_letter_routing_key: Routing key used when dead-lettering
    """
    name: str
    durable: bool = True
    exclusive: bool = False
    auto_delete: bool = False
    message_ttl_ms: Optional[int] = None
    dead_letter_exchange: Optional[str] = None
    dead_letter_routing_key: Optional[str] = None

    def build_arguments(self) -> Optional[dict[str, Any]]:
        """Build the x-arguments table for queue declaration, or None if empty."""
        arguments: dict[str, Any] = {}
        if self.message_ttl_ms is not None:
            arguments["x-message-ttl"] = int(self.message_ttl_ms)
        if self.dead_letter_exchange is not None:
            arguments["x-dead-letter-exchange"] = self.dead_letter_exchange
        if self.dead_letter_routing_key is not None:
            arguments["x-dead-letter-routing-key"] = self.dead_letter_routing_key
        return arguments or None


@dataclass(frozen=True)
class BindingConfig:
    """
    Configuration for binding a queue to an exchange.

    Attributes:
        exchange: Exchange name
        queue: Queue name
        routing_key: Routing key the binding matches
    """
    exchange: str
    queue: str
    routing_key: str


@dataclass(frozen=True)
class TopologyConfig:
    """Complete set of entities an application needs declared on the broker."""
    exchanges: tuple[ExchangeConfig, ...]
    queues: tuple[QueueConfig, ...]
    bindings: tuple[BindingConfig, ...] = field(default_factory=tuple)

    def queue(self, name: str) -> QueueConfig:
        """Look up a queue by name."""
        for queue_config in self.queues:
            if queue_config.name == name:
                return queue_config
        raise KeyError(f"Queue {name!r} is not part of this topology")
