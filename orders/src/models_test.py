import pytest

from orders.src.models import Order, PayloadError


def test_parse_valid_order():
    order = Order.parse(b'{"id": "a", "value": 1500}')
    assert order.id == "a"
    assert order.value == 1500


def test_parse_float_value():
    assert Order.parse(b'{"id": "a", "value": 12.5}').value == 12.5


def test_unknown_fields_are_ignored():
    order = Order.parse(b'{"id": "a", "value": 1, "note": "gift"}')
    assert order == Order(id="a", value=1)


@pytest.mark.parametrize(
    "body",
    [
        b'{"id":"x","value":"oops"}',
        b'{"id":"x","value":"1500"}',
        b'{"id":"x","value":true}',
        b'{"id":1,"value":10}',
        b'{"id":"x"}',
        b'{"value":10}',
        b"[1, 2]",
        b"not json",
        b'{"id":"a","value":NaN}',
        b'{"id":"a","value":Infinity}',
        b'{"id":"a","value":-Infinity}',
        b'{"id":"a","value":1e400}',
        b"",
    ],
)
def test_parse_rejects_malformed_bodies(body):
    with pytest.raises(PayloadError):
        Order.parse(body)


def test_round_trip_through_json():
    order = Order(id="a", value=500)
    assert Order.parse(order.model_dump_json().encode()) == order
