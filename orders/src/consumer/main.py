import logging
from typing import Annotated

import amqpstorm
import typer

from libs.python.cli.providers.logging import configure_from_params, logging_params
from libs.python.cli.providers.rabbitmq import (
    RabbitMQConnectAttempts,
    RabbitMQConnectDelay,
    RabbitMQUrl,
    connect_from_params,
)
from libs.python.cli.types import AppEnv
from libs.python.rmq import TopologyError
from orders.src.config import ConsumerSettings, OrdersConfig
from orders.src.consumer.service import ConsumerService

app = typer.Typer()
logger = logging.getLogger(__name__)


@app.command()
def start(
    rabbitmq_url: RabbitMQUrl,
    prefetch_count: Annotated[
        int,
        typer.Option(
            envvar="ORDERS_PREFETCH_COUNT",
            min=1,
            help="Unacknowledged deliveries allowed at once; also the worker count",
        ),
    ] = 10,
    grace_period: Annotated[
        float,
        typer.Option(
            envvar="ORDERS_SHUTDOWN_GRACE_SECONDS",
            min=0.0,
            help="Seconds to wait for in-flight deliveries on shutdown",
        ),
    ] = 30.0,
    max_retries: Annotated[
        int,
        typer.Option(envvar="ORDERS_MAX_RETRIES", min=0, help="Retry hops before dead-lettering"),
    ] = OrdersConfig.MAX_RETRIES,
    connect_attempts: RabbitMQConnectAttempts = 10,
    connect_delay: RabbitMQConnectDelay = 3.0,
):
    settings = ConsumerSettings(
        prefetch_count=prefetch_count,
        grace_period=grace_period,
        max_retries=max_retries,
    )
    handle = connect_from_params(rabbitmq_url, connect_attempts, connect_delay)

    try:
        service = ConsumerService(handle, settings)
    except TopologyError as e:
        logger.critical("Failed to declare order topology: %s", e)
        handle.close()
        raise typer.Exit(code=1) from e

    try:
        service.run()
    except amqpstorm.AMQPError as e:
        logger.critical("Order consumer terminated by broker error: %s", e)
        raise typer.Exit(code=1) from e


@app.callback()
@logging_params
def callback(
    ctx: typer.Context,
    app_env: AppEnv = None,
):
    configure_from_params(
        ctx.obj["logging"],
        app_name=OrdersConfig.CONSUMER,
        app_type="worker",
        domain=OrdersConfig.DOMAIN,
        app_env=app_env,
    )
    ctx.obj["app_env"] = app_env


if __name__ == "__main__":
    app()
