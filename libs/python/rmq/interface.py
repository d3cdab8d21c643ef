"""Abstract interfaces for message publishers and delivery handlers."""

import abc
from typing import Any, Mapping, Optional


class MessagePublisherInterface(abc.ABC):
    """Abstract interface for message publishers."""

    @abc.abstractmethod
    def publish(
        self,
        routing_key: str,
        body: bytes,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Publish a message.

        Args:
            routing_key: Route on the publisher's exchange
            body: Message body
            headers: Optional message headers

        Raises:
            PublishError: If the message could not be published
        """
        pass

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Shutdown the publisher and cleanup resources."""
        pass


class DeliveryHandlerInterface(abc.ABC):
    """Abstract interface for handlers run once per inbound delivery."""

    @abc.abstractmethod
    def process(self, delivery) -> Any:
        """
        Handle one delivery and settle it exactly once.

        Args:
            delivery: The inbound `Delivery`
        """
        pass
