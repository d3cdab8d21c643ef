"""Logging provider with OpenTelemetry support.

Example:
    ```python
    from libs.python.cli.providers.logging import logging_params, configure_from_params

    app = typer.Typer()

    @app.callback()
    @logging_params
    def setup(ctx: typer.Context):
        configure_from_params(ctx.obj["logging"], app_name="orders-consumer", ...)
    ```
"""

import inspect
import logging
import os
from typing import Annotated, Any, Callable, Literal, Optional

import typer

from libs.python.logging import configure_logging, configure_metrics

logger = logging.getLogger(__name__)

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Type aliases for CLI parameters
LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    typer.Option(help="Logging level"),
]
EnableOTLP = Annotated[bool, typer.Option("--log-otlp", help="Enable OTLP logs and metrics")]
JsonLogs = Annotated[bool, typer.Option("--log-json", help="Emit JSON log lines")]


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("true", "1", "yes")


def logging_params(func: Callable) -> Callable:
    """
    Decorator that injects logging parameters into the callback.

    Reads from CLI flags or environment variables:
    - LOG_OTLP (true/1/yes) or --log-otlp
    - LOG_LEVEL or --log-level
    - LOG_JSON (true/1/yes) or --log-json

    Environment variables take precedence if set.

    Usage:
        @app.callback()
        @logging_params
        def callback(ctx: typer.Context, ...):
            log_config = ctx.obj['logging']
            # {'enable_otlp': bool, 'log_level': 'INFO', 'json_format': bool}
    """
    from libs.python.cli.params_base import _create_param_decorator

    env_log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    if env_log_level not in VALID_LEVELS:
        env_log_level = "INFO"

    param_specs = [
        ("log_otlp", inspect.Parameter(
            "log_otlp", inspect.Parameter.KEYWORD_ONLY,
            default=_env_flag("LOG_OTLP"), annotation=EnableOTLP,
        )),
        ("log_level", inspect.Parameter(
            "log_level", inspect.Parameter.KEYWORD_ONLY,
            default=env_log_level, annotation=LogLevel,
        )),
        ("log_json", inspect.Parameter(
            "log_json", inspect.Parameter.KEYWORD_ONLY,
            default=_env_flag("LOG_JSON"), annotation=JsonLogs,
        )),
    ]

    def extractor(kwargs: dict[str, Any]) -> dict[str, Any]:
        enable_otlp = kwargs.pop("log_otlp", False) or _env_flag("LOG_OTLP")
        json_format = kwargs.pop("log_json", False) or _env_flag("LOG_JSON")

        cli_level = kwargs.pop("log_level", "INFO")
        env_level = os.getenv("LOG_LEVEL", "").upper()
        log_level = env_level if env_level in VALID_LEVELS else cli_level

        return {
            "enable_otlp": enable_otlp,
            "log_level": log_level,
            "json_format": json_format,
        }

    return _create_param_decorator(param_specs, "logging", extractor)(func)


def configure_from_params(
    log_config: dict[str, Any],
    app_name: str,
    app_type: str,
    domain: str,
    app_env: Optional[str] = None,
) -> None:
    """
    Configure logging, and OTLP metrics when enabled, from `logging_params` output.

    Args:
        log_config: The dict stored in ctx.obj['logging']
        app_name: Service name
        app_type: Application type (worker, external-api)
        domain: Service domain
        app_env: Deployment environment
    """
    configure_logging(
        app_name=f"{app_name}-{app_env}" if app_env else app_name,
        domain=domain,
        app_type=app_type,
        environment=app_env or "development",
        log_level=log_config["log_level"],
        enable_otlp=log_config["enable_otlp"],
        json_format=log_config["json_format"],
    )
    if log_config["enable_otlp"]:
        configure_metrics(
            service_name=app_name,
            deployment_environment=app_env,
            domain=domain,
        )
