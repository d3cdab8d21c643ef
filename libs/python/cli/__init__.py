"""Reusable CLI components for Typer applications.

Key concepts:
- Type aliases: Reusable Annotated types for CLI parameters
- Parameter decorators: Inject groups of options into a callback and
  store them in ctx.obj

Example:
    ```python
    from libs.python.cli.providers.logging import logging_params
    from libs.python.cli.providers.rabbitmq import RabbitMQUrl
    from libs.python.cli.types import AppEnv

    app = typer.Typer()

    @app.callback()
    @logging_params
    def setup(ctx: typer.Context, app_env: AppEnv = None):
        ...

    @app.command()
    def start(rabbitmq_url: RabbitMQUrl):
        ...
    ```
"""

from libs.python.cli.types import AppEnv

__all__ = ["AppEnv"]
