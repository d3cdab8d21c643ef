"""Errors raised by the RabbitMQ helpers."""


class RabbitError(Exception):
    """Base class for errors raised by libs.python.rmq."""


class PublishError(RabbitError):
    """A message could not be handed to the broker, or the broker refused it."""

    def __init__(self, routing_key: str, message: str):
        super().__init__(f"Failed to publish to '{routing_key}': {message}")
        self.routing_key = routing_key


class TopologyError(RabbitError):
    """Declaring an exchange, queue or binding failed."""


class DeliveryAlreadySettledError(RabbitError):
    """An ack or nack was attempted on a delivery that was already settled."""

    def __init__(self, delivery_tag: int):
        super().__init__(f"Delivery {delivery_tag} has already been acknowledged")
        self.delivery_tag = delivery_tag
