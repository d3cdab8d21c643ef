"""
Retry utilities for handling transient broker failures.

This module provides a decorator and helpers for retrying operations
that may fail while the broker is starting up or briefly unreachable.
"""

from libs.python.retry.retry import (
    RetryConfig,
    fixed_delay_config,
    is_transient_rmq_error,
    retry,
)

__all__ = [
    "RetryConfig",
    "fixed_delay_config",
    "is_transient_rmq_error",
    "retry",
]
