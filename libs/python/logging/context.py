"""Context management for structured logging.

Provides contextvars-based storage for log attributes that should be
automatically included in every structured log record.
"""

import contextvars
import os
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any

_log_context: contextvars.ContextVar[Optional["LogContext"]] = contextvars.ContextVar(
    "log_context", default=None
)


@dataclass
class LogContext:
    """Standard attributes for structured logging.

    Set once at startup by `configure_logging`; the structured formatter
    adds every non-empty attribute to each record.
    """

    # Application metadata
    environment: Optional[str] = None  # dev, staging, prod
    domain: Optional[str] = None  # orders
    app_name: Optional[str] = None  # orders-consumer, orders-producer
    app_type: Optional[str] = None  # worker, external-api
    version: Optional[str] = None
    commit_sha: Optional[str] = None

    # Kubernetes context (downward API)
    pod_name: Optional[str] = None
    node_name: Optional[str] = None
    namespace: Optional[str] = None

    hostname: Optional[str] = None

    # Broker context
    queue: Optional[str] = None
    consumer_tag: Optional[str] = None

    custom: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values and flattening custom."""
        data = asdict(self)
        custom = data.pop("custom", {})
        result = {key: value for key, value in data.items() if value is not None}
        result.update(custom)
        return result

    @classmethod
    def from_environment(cls) -> "LogContext":
        """Create LogContext from environment variables."""
        return cls(
            environment=os.getenv("APP_ENV") or os.getenv("ENVIRONMENT"),
            app_name=os.getenv("APP_NAME"),
            domain=os.getenv("APP_DOMAIN"),
            app_type=os.getenv("APP_TYPE"),
            version=os.getenv("APP_VERSION"),
            commit_sha=os.getenv("GIT_COMMIT") or os.getenv("COMMIT_SHA"),
            pod_name=os.getenv("POD_NAME"),
            node_name=os.getenv("NODE_NAME"),
            namespace=os.getenv("NAMESPACE") or os.getenv("POD_NAMESPACE"),
            hostname=os.getenv("HOSTNAME"),
        )


def set_context(context: Optional[LogContext]) -> None:
    """Set the current log context."""
    _log_context.set(context)


def get_context() -> Optional[LogContext]:
    """Get the current log context, or None if not set."""
    return _log_context.get()
