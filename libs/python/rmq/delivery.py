"""
Inbound delivery wrapper.

Wraps an amqpstorm `Message` received with manual acknowledgement. The
wrapper exposes the message read-only and enforces that exactly one
acknowledgement decision (ack or nack) is sent for it.
"""

import logging
import threading
from typing import Any, Mapping

from amqpstorm import Message

from libs.python.rmq.exceptions import DeliveryAlreadySettledError

logger = logging.getLogger(__name__)


def _decode_key(key: Any) -> str:
    if isinstance(key, bytes):
        return key.decode("utf-8")
    return str(key)


class Delivery:
    """A single message handed to the consumer by the broker."""

    def __init__(self, message: Message, channel_lock: threading.Lock) -> None:
        """
        Args:
            message: The received message (consumed with auto_decode=False)
            channel_lock: Lock guarding outbound frames on the message's channel
        """
        self._message = message
        self._channel_lock = channel_lock
        self._settled = False
        self._settle_guard = threading.Lock()

    @property
    def body(self) -> bytes:
        body = self._message.body
        if isinstance(body, str):
            return body.encode("utf-8")
        return bytes(body)

    @property
    def headers(self) -> Mapping[str, Any]:
        properties = self._message.properties or {}
        headers = properties.get("headers") or {}
        return {_decode_key(key): value for key, value in headers.items()}

    @property
    def delivery_tag(self) -> int:
        return self._message.delivery_tag

    @property
    def redelivered(self) -> bool:
        return bool(self._message.redelivered)

    @property
    def settled(self) -> bool:
        return self._settled

    def ack(self) -> None:
        """Acknowledge the delivery as successfully handled."""
        self._settle("ack")
        with self._channel_lock:
            self._message.ack()
        logger.debug("Delivery %s acknowledged", self.delivery_tag)

    def nack(self, requeue: bool = True) -> None:
        """
        Negatively acknowledge the delivery.

        Args:
            requeue: Ask the broker to put the message back on its queue
        """
        self._settle("nack")
        with self._channel_lock:
            self._message.nack(requeue=requeue)
        logger.debug("Delivery %s nacked (requeue=%s)", self.delivery_tag, requeue)

    def _settle(self, action: str) -> None:
        # Marked before the frame is sent: a failed send still counts as the decision
        with self._settle_guard:
            if self._settled:
                logger.error(
                    "Refusing to %s delivery %s: already settled", action, self.delivery_tag
                )
                raise DeliveryAlreadySettledError(self.delivery_tag)
            self._settled = True
