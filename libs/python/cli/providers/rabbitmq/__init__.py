"""RabbitMQ provider."""

from libs.python.cli.providers.rabbitmq.rabbitmq import (
    RabbitMQConnectAttempts,
    RabbitMQConnectDelay,
    RabbitMQUrl,
    connect_from_params,
)

__all__ = [
    "RabbitMQConnectAttempts",
    "RabbitMQConnectDelay",
    "RabbitMQUrl",
    "connect_from_params",
]
