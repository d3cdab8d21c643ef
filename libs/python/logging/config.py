"""Logging configuration and setup.

Centralized configuration for console logging with optional OTLP export.
"""

import logging
import os
import sys
from typing import Optional

from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource

from libs.python.logging.context import LogContext, set_context
from libs.python.logging.formatters import StructuredFormatter

# Global configuration state
_configured = False
_global_context: Optional[LogContext] = None

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = {
    "amqpstorm": logging.WARNING,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
}


def configure_logging(
    app_name: Optional[str] = None,
    domain: Optional[str] = None,
    app_type: Optional[str] = None,
    environment: Optional[str] = None,
    version: Optional[str] = None,
    log_level: str = "INFO",
    enable_otlp: bool = False,
    otlp_endpoint: Optional[str] = None,
    json_format: bool = False,
    force_reconfigure: bool = False,
    **context_kwargs,
) -> LogContext:
    """Configure logging for the application.

    Should be called once at startup. Sets up:
    - Console output (plain text, or JSON with `json_format`)
    - Optional OTLP export with the context as resource attributes
    - A global LogContext auto-detected from environment variables

    Values not passed explicitly are read from APP_NAME, APP_DOMAIN,
    APP_TYPE, APP_ENV and APP_VERSION.

    Args:
        app_name: Service name
        domain: Service domain (e.g., "orders")
        app_type: Application type (e.g., "worker", "external-api")
        environment: Deployment environment
        version: Service version
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_otlp: Enable OpenTelemetry Protocol (OTLP) log export
        otlp_endpoint: OTLP collector endpoint (defaults to env or http://localhost:4317)
        json_format: Use JSON formatting for console output
        force_reconfigure: Force reconfiguration even if already configured
        **context_kwargs: Additional context attributes

    Returns:
        LogContext: The configured global log context
    """
    global _configured, _global_context

    if _configured and not force_reconfigure:
        return _global_context

    root_logger = logging.getLogger()
    if force_reconfigure:
        root_logger.handlers.clear()

    context = LogContext.from_environment()
    if app_name:
        context.app_name = app_name
    if domain:
        context.domain = domain
    if app_type:
        context.app_type = app_type
    if environment:
        context.environment = environment
    if version:
        context.version = version

    for key, value in context_kwargs.items():
        if hasattr(context, key):
            setattr(context, key, value)
        else:
            context.custom[key] = value

    if not context.app_name:
        context.app_name = "unknown-app"
    if not context.environment:
        context.environment = "development"
    if not context.version:
        context.version = "latest"

    set_context(context)
    _global_context = context

    root_logger.setLevel(getattr(logging, log_level.upper()))

    if enable_otlp:
        _setup_otlp(context, otlp_endpoint)

    _setup_console(context, json_format)

    for name, level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    _configured = True

    logging.info(
        "Logging configured for %s",
        context.app_name,
        extra={
            "environment": context.environment,
            "domain": context.domain,
            "app_type": context.app_type,
            "otlp_enabled": enable_otlp,
        },
    )

    return context


def _resource_attributes(context: LogContext) -> dict:
    attrs = {
        "service.name": context.app_name,
        "service.version": context.version or "unknown",
        "deployment.environment": context.environment or "unknown",
    }
    if context.domain:
        attrs["service.namespace"] = context.domain
    if context.app_type:
        attrs["service.type"] = context.app_type
    if context.commit_sha:
        attrs["vcs.commit.id"] = context.commit_sha
    if context.pod_name:
        attrs["k8s.pod.name"] = context.pod_name
    if context.namespace:
        attrs["k8s.namespace.name"] = context.namespace
    if context.node_name:
        attrs["k8s.node.name"] = context.node_name
    if context.hostname:
        attrs["host.name"] = context.hostname
    return attrs


def _setup_otlp(context: LogContext, otlp_endpoint: Optional[str]) -> None:
    """Setup OTLP log export with the context as resource attributes."""
    resource_attrs = _resource_attributes(context)
    logger_provider = LoggerProvider(resource=Resource.create(resource_attrs))
    set_logger_provider(logger_provider)

    endpoint = (
        otlp_endpoint
        or os.getenv("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT")
        or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
        or "http://localhost:4317"
    )

    logger_provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint, insecure=True))
    )
    handler = LoggingHandler(level=logging.NOTSET, logger_provider=logger_provider)
    logging.getLogger().addHandler(handler)

    logging.debug("OTLP logging enabled: %s", endpoint)


def _setup_console(context: LogContext, json_format: bool) -> None:
    """Setup console logging output."""
    handler = logging.StreamHandler(sys.stdout)

    if json_format:
        formatter = StructuredFormatter(context)
    else:
        formatter = logging.Formatter(
            f"%(asctime)s - [{context.app_name}] %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)
    logging.getLogger().addHandler(handler)


def get_global_context() -> Optional[LogContext]:
    """Get the global log context set during configuration."""
    return _global_context


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
