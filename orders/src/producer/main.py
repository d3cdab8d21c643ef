import logging
from typing import Annotated

import typer
import uvicorn

from libs.python.cli.providers.logging import configure_from_params, logging_params
from libs.python.cli.providers.rabbitmq import (
    RabbitMQConnectAttempts,
    RabbitMQConnectDelay,
    RabbitMQUrl,
    connect_from_params,
)
from libs.python.cli.types import AppEnv
from libs.python.rmq import RabbitPublisher, TopologyError
from orders.src.config import OrdersConfig
from orders.src.producer.api import create_app
from orders.src.topology import declare_order_topology

app = typer.Typer()
logger = logging.getLogger(__name__)


@app.command()
def start(
    rabbitmq_url: RabbitMQUrl,
    host: Annotated[str, typer.Option(envvar="ORDERS_PRODUCER_HOST")] = "0.0.0.0",
    port: Annotated[int, typer.Option(envvar="ORDERS_PRODUCER_PORT")] = 3000,
    connect_attempts: RabbitMQConnectAttempts = 10,
    connect_delay: RabbitMQConnectDelay = 3.0,
):
    handle = connect_from_params(rabbitmq_url, connect_attempts, connect_delay)
    try:
        with handle.lock:
            declare_order_topology(handle.channel)
    except TopologyError as e:
        logger.critical("Failed to declare order topology: %s", e)
        handle.close()
        raise typer.Exit(code=1) from e

    publisher = RabbitPublisher(
        handle,
        exchange=OrdersConfig.EXCHANGE,
        content_type=OrdersConfig.CONTENT_TYPE,
    )
    api = create_app(publisher, handle=handle)

    logger.info("Order producer listening on %s:%d", host, port)
    # Logging is already configured; keep uvicorn from installing its own
    uvicorn.run(api, host=host, port=port, log_config=None)


@app.callback()
@logging_params
def callback(
    ctx: typer.Context,
    app_env: AppEnv = None,
):
    configure_from_params(
        ctx.obj["logging"],
        app_name=OrdersConfig.PRODUCER,
        app_type="external-api",
        domain=OrdersConfig.DOMAIN,
        app_env=app_env,
    )
    ctx.obj["app_env"] = app_env


if __name__ == "__main__":
    app()
