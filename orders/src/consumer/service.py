import logging
from typing import Optional

import amqpstorm

from libs.python.rmq import (
    BrokerHandle,
    InFlightCounter,
    RabbitPublisher,
    RabbitSubscriber,
)
from orders.src.config import ConsumerSettings, OrdersConfig
from orders.src.consumer.processor import MessageProcessor
from orders.src.consumer.shutdown import ShutdownCoordinator
from orders.src.metrics import ConsumerMetrics
from orders.src.topology import declare_order_topology

logger = logging.getLogger(__name__)


class ConsumerService:
    """
    Wires the order consumer together around one broker handle.

    Topology is declared on construction so that a broken broker setup
    fails before any signal handler is installed.
    """

    def __init__(
        self,
        handle: BrokerHandle,
        settings: ConsumerSettings,
        metrics: Optional[ConsumerMetrics] = None,
    ):
        self._handle = handle
        self._settings = settings
        self._metrics = metrics or ConsumerMetrics()

        with handle.lock:
            declare_order_topology(handle.channel)

        self._publisher = RabbitPublisher(
            handle,
            exchange=OrdersConfig.EXCHANGE,
            content_type=OrdersConfig.CONTENT_TYPE,
        )
        self._processor = MessageProcessor(
            self._publisher,
            max_retries=settings.max_retries,
            threshold=settings.value_threshold,
            metrics=self._metrics,
        )
        self._in_flight = InFlightCounter()
        self._subscriber = RabbitSubscriber(
            handle,
            queue=OrdersConfig.MAIN_QUEUE,
            handler=self._processor.process,
            prefetch_count=settings.prefetch_count,
            consumer_tag=OrdersConfig.CONSUMER_TAG,
            in_flight=self._in_flight,
        )
        self.coordinator = ShutdownCoordinator(
            self._subscriber,
            self._in_flight,
            grace_period=settings.grace_period,
        )

    def run(self) -> None:
        """
        Consume until a termination signal arrives, then drain and close.

        Raises:
            amqpstorm.AMQPError: If the channel fails while consuming
        """
        self.coordinator.install_signal_handlers()
        self._metrics.mark_running()
        logger.info(
            "Order consumer running (prefetch=%d, max_retries=%d, grace=%.1fs)",
            self._settings.prefetch_count,
            self._settings.max_retries,
            self._settings.grace_period,
        )
        try:
            self._subscriber.run()
        except amqpstorm.AMQPError as e:
            logger.error("Dispatch loop failed: %s", e)
            raise
        finally:
            self.coordinator.drain()
            self._subscriber.shutdown(wait=False)
            self._publisher.shutdown()
            self._metrics.mark_stopped()
            self._handle.close()
