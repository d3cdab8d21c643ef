"""Structured logging and metrics setup shared by the order services.

Example:
    ```python
    from libs.python.logging import configure_logging, configure_metrics

    # Configure once at app startup
    configure_logging(app_name="orders-consumer", domain="orders", app_type="worker")

    # Optionally export metrics over OTLP
    configure_metrics()

    logger = logging.getLogger(__name__)
    logger.info("Order %s accepted", order.id)
    ```
"""

from libs.python.logging.config import configure_logging, get_global_context, is_configured
from libs.python.logging.context import LogContext, get_context, set_context
from libs.python.logging.formatters import StructuredFormatter
from libs.python.logging.metrics import configure_metrics

__all__ = [
    "configure_logging",
    "get_global_context",
    "is_configured",
    "configure_metrics",
    "LogContext",
    "get_context",
    "set_context",
    "StructuredFormatter",
]
