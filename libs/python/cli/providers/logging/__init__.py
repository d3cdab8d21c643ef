"""Logging provider with OpenTelemetry support."""

from libs.python.cli.providers.logging.logging import (
    EnableOTLP,
    JsonLogs,
    LogLevel,
    configure_from_params,
    logging_params,
)

__all__ = [
    "EnableOTLP",
    "JsonLogs",
    "LogLevel",
    "configure_from_params",
    "logging_params",
]
