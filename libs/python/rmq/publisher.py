"""
RabbitMQ publisher implementation.

Publishes to one exchange over the channel held by a `BrokerHandle`. Every
publish runs under the handle's lock, so worker threads may share a
publisher freely.
"""

import logging
from typing import Any, Mapping, Optional

import amqpstorm

from libs.python.retry import RetryConfig, retry
from libs.python.rmq.connection import BrokerHandle
from libs.python.rmq.exceptions import PublishError
from libs.python.rmq.interface import MessagePublisherInterface

logger = logging.getLogger(__name__)

PERSISTENT_DELIVERY_MODE = 2


class RabbitPublisher(MessagePublisherInterface):
    """
    Publisher bound to a single exchange.

    Failures are never swallowed: anything that prevents the broker from
    taking the message, including a negative publisher confirm, is raised
    as `PublishError`.
    """

    def __init__(
        self,
        handle: BrokerHandle,
        exchange: str,
        content_type: str = "application/json",
        retry_config: Optional[RetryConfig] = None,
    ) -> None:
        """
        Initialize the RabbitMQ publisher.

        Args:
            handle: Broker handle whose channel and lock are used
            exchange: Exchange every message is published to
            content_type: Content type stamped on every message
            retry_config: Optional retry configuration for publish operations.
                         If None (default), no retry is performed.
        """
        self._handle = handle
        self._exchange = exchange
        self._content_type = content_type
        self._retry_config = retry_config

        logger.info("RabbitPublisher initialized for exchange %s", exchange)

    def publish(
        self,
        routing_key: str,
        body: bytes,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """
        Publish a message to the exchange with the given routing key.

        Args:
            routing_key: Routing key for the message
            body: Message body
            headers: Optional message headers

        Raises:
            PublishError: If the channel failed or the broker nacked the message
        """
        properties: dict[str, Any] = {
            "content_type": self._content_type,
            "delivery_mode": PERSISTENT_DELIVERY_MODE,
        }
        if headers:
            properties["headers"] = dict(headers)

        def _do_publish() -> None:
            with self._handle.lock:
                channel = self._handle.ensure_channel()
                confirmed = channel.basic.publish(
                    body=body,
                    routing_key=routing_key,
                    exchange=self._exchange,
                    properties=properties,
                )
            # basic.publish returns None without confirms, a bool with them
            if confirmed is False:
                raise PublishError(routing_key, "broker did not confirm the message")
            logger.debug(
                "Message published to exchange %s with routing key %s",
                self._exchange,
                routing_key,
            )

        try:
            if self._retry_config:
                retry(self._retry_config)(_do_publish)()
            else:
                _do_publish()
        except amqpstorm.AMQPError as e:
            raise PublishError(routing_key, str(e)) from e

    def shutdown(self) -> None:
        """
        Shutdown the publisher.

        The channel belongs to the broker handle, which closes it; nothing
        is owned here.
        """
        logger.info("Shutting down RabbitPublisher for exchange %s", self._exchange)
