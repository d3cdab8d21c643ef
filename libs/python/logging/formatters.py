"""Custom log formatters for structured logging.

Provides a JSON formatter that includes context attributes and the active
OpenTelemetry span, for log aggregation.
"""

import json
import logging
from typing import Optional, Dict, Any

from opentelemetry import trace

from libs.python.logging.context import LogContext

# Attributes every LogRecord carries; anything else came in through `extra`
_STANDARD_FIELDS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "getMessage", "taskName",
})


class StructuredFormatter(logging.Formatter):
    """JSON formatter that includes context attributes.

    Each record carries:
    - All LogContext attributes
    - OpenTelemetry trace/span IDs when a span is recording
    - Source location (module, function, line)
    - Any `extra` fields passed to the log call
    """

    def __init__(
        self,
        global_context: Optional[LogContext] = None,
        include_trace: bool = True,
        include_source: bool = True,
    ):
        super().__init__()
        self.global_context = global_context
        self.include_trace = include_trace
        self.include_source = include_source

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source:
            log_data["source"] = {
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
                "thread": record.threadName,
            }

        if self.global_context:
            log_data.update(self.global_context.to_dict())

        if self.include_trace:
            span = trace.get_current_span()
            if span.is_recording():
                span_context = span.get_span_context()
                log_data["trace_id"] = format(span_context.trace_id, "032x")
                log_data["span_id"] = format(span_context.span_id, "016x")

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "stacktrace": self.formatException(record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_FIELDS and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)
