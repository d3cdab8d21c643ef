"""Tests for the consumer service wiring and CLI."""

from unittest.mock import Mock, patch

import pytest
from amqpstorm.exception import AMQPChannelError
from typer.testing import CliRunner

from libs.python.rmq import BrokerHandle, TopologyError
from orders.src.config import ConsumerSettings
from orders.src.consumer.main import app
from orders.src.consumer.service import ConsumerService
from orders.src.consumer.shutdown import ShutdownState

runner = CliRunner()


def _handle():
    channel = Mock()
    channel.is_open = True
    channel.basic.consume.return_value = "orders-consumer"
    connection = Mock()
    connection.is_open = True
    return BrokerHandle(connection=connection, channel=channel)


@pytest.fixture(autouse=True)
def no_signal_handlers():
    with patch("orders.src.consumer.shutdown.signal.signal"):
        yield


def test_construction_declares_topology():
    handle = _handle()

    ConsumerService(handle, ConsumerSettings())

    assert handle.channel.queue.declare.call_count == 3


def test_run_consumes_then_drains_and_closes():
    handle = _handle()
    service = ConsumerService(handle, ConsumerSettings(prefetch_count=3, grace_period=1.0))
    handle.channel.process_data_events.side_effect = (
        lambda **_: service.coordinator.request_shutdown()
    )

    service.run()

    handle.channel.basic.qos.assert_called_once_with(prefetch_count=3)
    assert handle.channel.basic.consume.call_args.kwargs["queue"] == "orders.created"
    handle.channel.basic.cancel.assert_called_once_with("orders-consumer")
    assert service.coordinator.state == ShutdownState.STOPPED
    handle.channel.close.assert_called_once()
    handle.connection.close.assert_called_once()


def test_channel_failure_still_closes_connection():
    handle = _handle()
    service = ConsumerService(handle, ConsumerSettings(grace_period=0.1))
    handle.channel.process_data_events.side_effect = AMQPChannelError("channel closed")

    with pytest.raises(AMQPChannelError):
        service.run()

    assert service.coordinator.state == ShutdownState.STOPPED
    handle.connection.close.assert_called_once()


class TestConsumerCli:
    @pytest.fixture(autouse=True)
    def quiet_logging(self):
        with patch("orders.src.consumer.main.configure_from_params"):
            yield

    def test_missing_url_is_usage_error(self, monkeypatch):
        monkeypatch.delenv("RABBITMQ_URL", raising=False)

        result = runner.invoke(app, ["start"])

        assert result.exit_code != 0

    @patch("orders.src.consumer.main.ConsumerService")
    @patch("orders.src.consumer.main.connect_from_params")
    def test_topology_failure_exits_with_code_one(self, connect, service_cls):
        service_cls.side_effect = TopologyError("PRECONDITION_FAILED")

        result = runner.invoke(app, ["start", "--rabbitmq-url", "amqp://localhost"])

        assert result.exit_code == 1
        connect.return_value.close.assert_called_once()

    @patch("orders.src.consumer.main.ConsumerService")
    @patch("orders.src.consumer.main.connect_from_params")
    def test_options_reach_settings(self, connect, service_cls, monkeypatch):
        monkeypatch.setenv("ORDERS_PREFETCH_COUNT", "4")

        result = runner.invoke(
            app,
            ["start", "--rabbitmq-url", "amqp://localhost", "--max-retries", "5"],
        )

        assert result.exit_code == 0, result.output
        connect.assert_called_once_with("amqp://localhost", 10, 3.0)
        settings = service_cls.call_args.args[1]
        assert settings.prefetch_count == 4
        assert settings.max_retries == 5
        assert settings.grace_period == 30.0
        service_cls.return_value.run.assert_called_once()
