"""Tests for RabbitSubscriber and InFlightCounter."""

import threading
import time
import unittest
from unittest.mock import Mock

from libs.python.rmq.connection import BrokerHandle
from libs.python.rmq.subscriber import InFlightCounter, RabbitSubscriber


def _handle():
    channel = Mock()
    channel.is_open = True
    channel.basic.consume.return_value = "ctag-1"
    return BrokerHandle(connection=Mock(), channel=channel)


def _message(tag):
    message = Mock()
    message.delivery_tag = tag
    message.body = b"{}"
    message.properties = {}
    return message


class TestInFlightCounter(unittest.TestCase):
    def test_wait_for_zero_returns_immediately_when_idle(self):
        self.assertTrue(InFlightCounter().wait_for_zero(timeout=0))

    def test_wait_for_zero_times_out(self):
        counter = InFlightCounter()
        counter.increment()
        self.assertFalse(counter.wait_for_zero(timeout=0.05))

    def test_wait_for_zero_wakes_on_last_decrement(self):
        counter = InFlightCounter()
        counter.increment()
        counter.increment()

        def finish():
            time.sleep(0.05)
            counter.decrement()
            counter.decrement()

        threading.Thread(target=finish).start()
        self.assertTrue(counter.wait_for_zero(timeout=5))
        self.assertEqual(counter.value, 0)

    def test_decrement_below_zero_raises(self):
        with self.assertRaises(RuntimeError):
            InFlightCounter().decrement()


class TestRabbitSubscriber(unittest.TestCase):
    def test_rejects_zero_prefetch(self):
        with self.assertRaises(ValueError):
            RabbitSubscriber(_handle(), "q", Mock(), prefetch_count=0)

    def test_run_sets_qos_consumes_and_cancels_on_stop(self):
        handle = _handle()
        subscriber = RabbitSubscriber(handle, "orders", Mock(), prefetch_count=4, consumer_tag="c")
        handle.channel.process_data_events.side_effect = lambda **_: subscriber.stop()

        subscriber.run()

        handle.channel.basic.qos.assert_called_once_with(prefetch_count=4)
        consume_kwargs = handle.channel.basic.consume.call_args.kwargs
        self.assertEqual(consume_kwargs["queue"], "orders")
        self.assertEqual(consume_kwargs["consumer_tag"], "c")
        self.assertFalse(consume_kwargs["no_ack"])
        handle.channel.process_data_events.assert_called_once_with(auto_decode=False)
        handle.channel.basic.cancel.assert_called_once_with("ctag-1")
        self.assertEqual(subscriber.consumer_tag, "ctag-1")

    def test_cancel_goes_to_the_consumed_channel_after_replacement(self):
        handle = _handle()
        consumed = handle.channel
        replacement = Mock()
        replacement.is_open = True
        subscriber = RabbitSubscriber(handle, "orders", Mock())

        def swap_channel(**_):
            handle.channel = replacement
            subscriber.stop()

        consumed.process_data_events.side_effect = swap_channel

        subscriber.run()

        consumed.basic.cancel.assert_called_once_with("ctag-1")
        replacement.basic.cancel.assert_not_called()

    def test_each_delivery_runs_on_a_worker(self):
        handler = Mock()
        subscriber = RabbitSubscriber(_handle(), "q", handler, prefetch_count=2)

        for tag in (1, 2, 3):
            subscriber._on_message(_message(tag))
        subscriber.shutdown(wait=True)

        self.assertEqual(handler.call_count, 3)
        self.assertEqual(
            sorted(call.args[0].delivery_tag for call in handler.call_args_list),
            [1, 2, 3],
        )
        self.assertEqual(subscriber.in_flight.value, 0)

    def test_dispatch_does_not_wait_for_handler(self):
        release = threading.Event()
        subscriber = RabbitSubscriber(_handle(), "q", lambda d: release.wait(5), prefetch_count=2)

        subscriber._on_message(_message(1))
        subscriber._on_message(_message(2))

        self.assertEqual(subscriber.in_flight.value, 2)
        release.set()
        self.assertTrue(subscriber.in_flight.wait_for_zero(timeout=5))
        subscriber.shutdown(wait=True)

    def test_no_admission_after_stop(self):
        handler = Mock()
        subscriber = RabbitSubscriber(_handle(), "q", handler)
        message = _message(9)

        subscriber.stop()
        subscriber._on_message(message)
        subscriber.shutdown(wait=True)

        handler.assert_not_called()
        message.ack.assert_not_called()
        message.nack.assert_not_called()
        self.assertEqual(subscriber.in_flight.value, 0)

    def test_unsettled_delivery_is_requeued_when_handler_raises(self):
        message = _message(5)
        subscriber = RabbitSubscriber(_handle(), "q", Mock(side_effect=ValueError("boom")))

        subscriber._on_message(message)
        subscriber.shutdown(wait=True)

        message.nack.assert_called_once_with(requeue=True)
        self.assertEqual(subscriber.in_flight.value, 0)

    def test_settled_delivery_is_not_nacked_when_handler_raises(self):
        message = _message(6)

        def handler(delivery):
            delivery.ack()
            raise ValueError("after ack")

        subscriber = RabbitSubscriber(_handle(), "q", handler)
        subscriber._on_message(message)
        subscriber.shutdown(wait=True)

        message.ack.assert_called_once()
        message.nack.assert_not_called()


if __name__ == "__main__":
    unittest.main()
