"""Tests for the producer HTTP API."""

import json
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from libs.python.rmq import MessagePublisherInterface, PublishError
from orders.src.metrics import ProducerMetrics
from orders.src.metrics_test import read_metrics
from orders.src.producer.api import create_app


@pytest.fixture
def publisher():
    return Mock(spec=MessagePublisherInterface)


@pytest.fixture
def reader():
    return InMemoryMetricReader()


@pytest.fixture
def client(publisher, reader):
    metrics = ProducerMetrics(MeterProvider(metric_readers=[reader]).get_meter("test"))
    with TestClient(create_app(publisher, metrics=metrics)) as test_client:
        yield test_client


def test_valid_order_is_published(client, publisher, reader):
    response = client.post("/order", json={"id": "a", "value": 1500})

    assert response.status_code == 202
    assert response.json() == {"status": "order accepted"}
    publisher.publish.assert_called_once()
    routing_key, body = publisher.publish.call_args.args
    assert routing_key == "orders.created"
    assert json.loads(body) == {"id": "a", "value": 1500.0}

    values = read_metrics(reader)
    assert values["orders_publish_success_total"] == 1
    assert values["orders_http_requests_total"] == 1
    assert values["orders_producer_running"] == 1


def test_body_is_reserialized(client, publisher):
    client.post("/order", json={"id": "a", "value": 5, "extra": "dropped"})

    _, body = publisher.publish.call_args.args
    assert json.loads(body) == {"id": "a", "value": 5.0}


@pytest.mark.parametrize(
    "content",
    [
        b"not json",
        b'{"id":"x","value":"oops"}',
        b'{"id":"x"}',
        b"[]",
        b'{"id":"a","value":NaN}',
        b'{"id":"a","value":1e400}',
    ],
)
def test_malformed_order_is_400(client, publisher, content):
    response = client.post(
        "/order", content=content, headers={"content-type": "application/json"}
    )

    assert response.status_code == 400
    publisher.publish.assert_not_called()


def test_wrong_method_is_405(client):
    assert client.get("/order").status_code == 405
    assert client.put("/order", json={"id": "a", "value": 1}).status_code == 405


def test_publish_failure_is_500(client, publisher, reader):
    publisher.publish.side_effect = PublishError("orders.created", "broker down")

    response = client.post("/order", json={"id": "a", "value": 10})

    assert response.status_code == 500
    assert read_metrics(reader)["orders_publish_error_total"] == 1


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_shutdown_closes_owned_handle(publisher):
    handle = Mock()
    app = create_app(publisher, metrics=ProducerMetrics(Mock()), handle=handle)

    with TestClient(app):
        handle.close.assert_not_called()

    publisher.shutdown.assert_called_once()
    handle.close.assert_called_once()
