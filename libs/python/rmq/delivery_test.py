"""Tests for the Delivery wrapper."""

import threading
from unittest.mock import Mock

import pytest

from libs.python.rmq.delivery import Delivery
from libs.python.rmq.exceptions import DeliveryAlreadySettledError


def _message(body=b'{"id": "a"}', headers=None, delivery_tag=7, redelivered=False):
    message = Mock()
    message.body = body
    message.properties = {"headers": headers} if headers is not None else {}
    message.delivery_tag = delivery_tag
    message.redelivered = redelivered
    return message


def test_exposes_message_fields():
    delivery = Delivery(
        _message(headers={b"retry-count": 2}, redelivered=True),
        threading.Lock(),
    )

    assert delivery.body == b'{"id": "a"}'
    assert delivery.headers == {"retry-count": 2}
    assert delivery.delivery_tag == 7
    assert delivery.redelivered is True
    assert delivery.settled is False


def test_str_body_is_encoded():
    delivery = Delivery(_message(body='{"id": "b"}'), threading.Lock())
    assert delivery.body == b'{"id": "b"}'


def test_missing_headers_are_empty():
    delivery = Delivery(_message(), threading.Lock())
    assert delivery.headers == {}


def test_ack_settles_once():
    message = _message()
    delivery = Delivery(message, threading.Lock())

    delivery.ack()

    message.ack.assert_called_once()
    assert delivery.settled
    with pytest.raises(DeliveryAlreadySettledError):
        delivery.ack()
    with pytest.raises(DeliveryAlreadySettledError):
        delivery.nack()
    message.ack.assert_called_once()
    message.nack.assert_not_called()


def test_nack_requeues_by_default():
    message = _message()
    delivery = Delivery(message, threading.Lock())

    delivery.nack()

    message.nack.assert_called_once_with(requeue=True)


def test_failed_send_still_counts_as_settled():
    message = _message()
    message.ack.side_effect = RuntimeError("socket closed")
    delivery = Delivery(message, threading.Lock())

    with pytest.raises(RuntimeError):
        delivery.ack()

    assert delivery.settled
    with pytest.raises(DeliveryAlreadySettledError):
        delivery.nack()


def test_ack_holds_channel_lock():
    lock = threading.Lock()
    message = _message()
    message.ack.side_effect = lambda: seen.append(lock.locked())
    seen = []

    Delivery(message, lock).ack()

    assert seen == [True]
    assert not lock.locked()
