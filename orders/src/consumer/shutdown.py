"""
Graceful shutdown for the order consumer.

The coordinator moves through RUNNING, DRAINING and STOPPED, never
backwards. A termination signal stops the subscriber from admitting new
deliveries; `drain` then waits for admitted tasks to settle their deliveries
before the process closes its connection.
"""

import logging
import signal
import threading
from enum import StrEnum

from libs.python.rmq import InFlightCounter, RabbitSubscriber

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = 30.0


class ShutdownState(StrEnum):
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class ShutdownCoordinator:
    """Owns the consumer's shutdown state machine."""

    def __init__(
        self,
        subscriber: RabbitSubscriber,
        in_flight: InFlightCounter,
        grace_period: float = DEFAULT_GRACE_PERIOD,
    ):
        self._subscriber = subscriber
        self._in_flight = in_flight
        self._grace_period = grace_period
        self._state = ShutdownState.RUNNING
        self._state_lock = threading.Lock()

    @property
    def state(self) -> ShutdownState:
        return self._state

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to `request_shutdown`. Main thread only."""
        signal.signal(signal.SIGINT, self._handle_signal)
        signal.signal(signal.SIGTERM, self._handle_signal)

    def _handle_signal(self, signum, frame) -> None:
        name = signal.Signals(signum).name
        if not self.request_shutdown():
            logger.info("Received %s while %s, ignoring", name, self._state)
        else:
            logger.info("Received %s, draining", name)

    def request_shutdown(self) -> bool:
        """
        Stop admitting deliveries and enter DRAINING.

        Returns:
            True if this call started the shutdown, False if one was already underway
        """
        with self._state_lock:
            if self._state != ShutdownState.RUNNING:
                return False
            self._state = ShutdownState.DRAINING
        self._subscriber.stop()
        return True

    def drain(self) -> bool:
        """
        Wait for in-flight deliveries to finish, then enter STOPPED.

        Running tasks are never cancelled. If the grace period elapses first
        a warning is logged and the coordinator stops anyway; the broker
        redelivers whatever those tasks leave unsettled.

        Returns:
            True if every in-flight delivery finished within the grace period
        """
        # Also reached when the dispatch loop exits on its own (e.g. channel error)
        self.request_shutdown()

        outstanding = self._in_flight.value
        if outstanding:
            logger.info(
                "Waiting up to %.1fs for %d in-flight deliveries",
                self._grace_period,
                outstanding,
            )
        drained = self._in_flight.wait_for_zero(timeout=self._grace_period)
        if not drained:
            logger.warning(
                "Grace period of %.1fs elapsed with %d deliveries still in flight",
                self._grace_period,
                self._in_flight.value,
            )

        with self._state_lock:
            self._state = ShutdownState.STOPPED
        logger.info("Consumer stopped")
        return drained
