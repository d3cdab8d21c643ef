"""
RabbitMQ subscriber implementation.

`RabbitSubscriber` owns a queue subscription and dispatches each delivery
to a worker thread. The broker's prefetch limit bounds how many
deliveries are outstanding, and therefore how many workers run at once.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import amqpstorm
from amqpstorm import Channel, Message

from libs.python.rmq.connection import BrokerHandle
from libs.python.rmq.delivery import Delivery

logger = logging.getLogger(__name__)

DEFAULT_PREFETCH_COUNT = 10


class InFlightCounter:
    """Thread-safe count of admitted deliveries that have not finished."""

    def __init__(self) -> None:
        self._count = 0
        self._condition = threading.Condition()

    @property
    def value(self) -> int:
        with self._condition:
            return self._count

    def increment(self) -> None:
        with self._condition:
            self._count += 1

    def decrement(self) -> None:
        with self._condition:
            if self._count == 0:
                raise RuntimeError("In-flight counter decremented below zero")
            self._count -= 1
            if self._count == 0:
                self._condition.notify_all()

    def wait_for_zero(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the count reaches zero.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely

        Returns:
            True if the count reached zero, False if the timeout elapsed first
        """
        with self._condition:
            return self._condition.wait_for(lambda: self._count == 0, timeout=timeout)


class RabbitSubscriber:
    """
    Dispatch loop for one queue.

    `run` blocks the calling thread, pumping inbound deliveries until `stop`
    is called (typically from a signal handler). Each admitted delivery is
    submitted to a thread pool as its own task; the loop never waits for a
    task to finish.
    """

    IDLE_WAIT = 0.1

    def __init__(
        self,
        handle: BrokerHandle,
        queue: str,
        handler: Callable[[Delivery], object],
        prefetch_count: int = DEFAULT_PREFETCH_COUNT,
        consumer_tag: str = "",
        in_flight: Optional[InFlightCounter] = None,
    ) -> None:
        """
        Initialize the subscriber.

        Args:
            handle: Broker handle whose channel is consumed from
            queue: Queue to subscribe to
            handler: Called once per delivery on a worker thread; must settle it
            prefetch_count: Maximum unacknowledged deliveries, and worker count
            consumer_tag: Consumer tag to register (server-generated if empty)
            in_flight: Counter tracking running tasks (created if not given)
        """
        if prefetch_count < 1:
            raise ValueError("prefetch_count must be at least 1")

        self._handle = handle
        self._queue = queue
        self._handler = handler
        self._prefetch_count = prefetch_count
        self._requested_tag = consumer_tag
        self._consumer_tag: Optional[str] = None
        self.in_flight = in_flight or InFlightCounter()

        self._stop_event = threading.Event()
        self._executor = ThreadPoolExecutor(
            max_workers=prefetch_count,
            thread_name_prefix=f"rmq-worker-{queue}",
        )

    @property
    def consumer_tag(self) -> Optional[str]:
        return self._consumer_tag

    def run(self) -> None:
        """
        Subscribe and dispatch deliveries until `stop` is called.

        Raises:
            amqpstorm.AMQPError: If the channel fails while consuming
        """
        channel = self._handle.channel
        with self._handle.lock:
            channel.basic.qos(prefetch_count=self._prefetch_count)
            self._consumer_tag = channel.basic.consume(
                callback=self._on_message,
                queue=self._queue,
                consumer_tag=self._requested_tag,
                no_ack=False,
            )
        logger.info(
            "Consuming from %s (consumer_tag=%s, prefetch=%d)",
            self._queue,
            self._consumer_tag,
            self._prefetch_count,
        )

        try:
            while not self._stop_event.is_set():
                channel.process_data_events(auto_decode=False)
                self._stop_event.wait(self.IDLE_WAIT)
        finally:
            self._cancel(channel)

    def stop(self) -> None:
        """Stop admitting deliveries; `run` returns after its current pump pass."""
        if not self._stop_event.is_set():
            logger.info("Stopping subscriber on %s", self._queue)
        self._stop_event.set()

    def shutdown(self, wait: bool = False) -> None:
        """
        Release the worker pool.

        Args:
            wait: Block until running tasks finish
        """
        self._executor.shutdown(wait=wait)

    def _on_message(self, message: Message) -> None:
        if self._stop_event.is_set():
            # Left unacknowledged; the broker redelivers it once the channel closes
            logger.debug("Not admitting delivery %s: stopping", message.delivery_tag)
            return

        delivery = Delivery(message, self._handle.lock)
        self.in_flight.increment()
        try:
            self._executor.submit(self._run_task, delivery)
        except RuntimeError:
            self.in_flight.decrement()
            logger.warning(
                "Worker pool unavailable, delivery %s left for redelivery",
                message.delivery_tag,
            )

    def _run_task(self, delivery: Delivery) -> None:
        try:
            self._handler(delivery)
        except Exception:
            logger.exception("Unhandled error processing delivery %s", delivery.delivery_tag)
            if not delivery.settled:
                try:
                    delivery.nack(requeue=True)
                except amqpstorm.AMQPError as e:
                    logger.error(
                        "Failed to nack delivery %s after error: %s",
                        delivery.delivery_tag,
                        e,
                    )
        finally:
            self.in_flight.decrement()

    def _cancel(self, channel: Channel) -> None:
        # The consumer lives on the channel it was registered on, even if the
        # handle has since replaced it
        if not self._consumer_tag:
            return
        try:
            with self._handle.lock:
                if channel.is_open:
                    channel.basic.cancel(self._consumer_tag)
                    logger.info("Consumer %s cancelled.", self._consumer_tag)
        except amqpstorm.AMQPError as e:
            logger.warning("Error cancelling consumer %s: %s", self._consumer_tag, e)
