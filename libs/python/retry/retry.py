"""
Core retry functionality for broker operations.

Provides a decorator for retrying operations with configurable backoff
and exception filtering. Used for startup connection establishment and,
optionally, for publish attempts on a flaky channel.
"""

import logging
import random
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Optional, Tuple, Type

from amqpstorm.exception import AMQPChannelError, AMQPConnectionError

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = 3
    """Maximum number of attempts (including the initial attempt)"""

    initial_delay: float = 1.0
    """Delay in seconds before the first retry"""

    max_delay: float = 60.0
    """Maximum delay in seconds between retries"""

    exponential_base: float = 2.0
    """Base for backoff (delay *= base ** attempt). 1.0 gives a fixed delay."""

    jitter: bool = True
    """Whether to add random jitter to delays"""

    jitter_factor: float = 0.1
    """Jitter factor (delay +/- delay * jitter_factor)"""

    exceptions: Tuple[Type[Exception], ...] = (Exception,)
    """Exception types to retry on"""

    exception_filter: Optional[Callable[[Exception], bool]] = None
    """Optional filter function to determine if exception should trigger retry"""

    on_retry: Optional[Callable[[Exception, int, float], None]] = None
    """Optional callback called before each retry: on_retry(exception, attempt, delay)"""


def fixed_delay_config(
    max_attempts: int,
    delay: float,
    exception_filter: Optional[Callable[[Exception], bool]] = None,
) -> RetryConfig:
    """
    Build a RetryConfig that waits the same amount of time between attempts.

    Args:
        max_attempts: Total number of attempts before giving up
        delay: Seconds to wait between attempts
        exception_filter: Optional filter deciding which errors are retried

    Returns:
        RetryConfig with exponential growth and jitter disabled
    """
    return RetryConfig(
        max_attempts=max_attempts,
        initial_delay=delay,
        max_delay=delay,
        exponential_base=1.0,
        jitter=False,
        exception_filter=exception_filter,
    )


def _calculate_delay(config: RetryConfig, attempt: int) -> float:
    """
    Calculate delay for given attempt number.

    Args:
        config: Retry configuration
        attempt: Current attempt number (0-indexed)

    Returns:
        Delay in seconds
    """
    delay = config.initial_delay * (config.exponential_base ** attempt)
    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * config.jitter_factor
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0, delay)


def _should_retry(config: RetryConfig, exception: Exception) -> bool:
    """Determine if an exception should trigger a retry."""
    if not isinstance(exception, config.exceptions):
        return False

    if config.exception_filter:
        return config.exception_filter(exception)

    return True


def retry(config: Optional[RetryConfig] = None) -> Callable:
    """
    Decorator to retry a function with backoff.

    Args:
        config: Retry configuration (uses defaults if None)

    Example:
        @retry(fixed_delay_config(max_attempts=10, delay=3.0))
        def connect():
            return amqpstorm.UriConnection(url)
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(config.max_attempts):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not _should_retry(config, e):
                        logger.debug(
                            "Exception %s does not match retry criteria, not retrying",
                            type(e).__name__,
                        )
                        raise

                    if attempt + 1 >= config.max_attempts:
                        logger.warning(
                            "Max retry attempts (%d) reached for %s",
                            config.max_attempts,
                            func.__name__,
                        )
                        raise

                    delay = _calculate_delay(config, attempt)
                    logger.warning(
                        "Attempt %d/%d failed for %s with %s: %s. Retrying in %.2fs...",
                        attempt + 1,
                        config.max_attempts,
                        func.__name__,
                        type(e).__name__,
                        str(e),
                        delay,
                    )

                    if config.on_retry:
                        try:
                            config.on_retry(e, attempt + 1, delay)
                        except Exception as callback_error:
                            logger.error(
                                "Error in retry callback: %s",
                                callback_error,
                            )

                    time.sleep(delay)

            raise RuntimeError("Retry logic error: max_attempts must be at least 1")

        return wrapper
    return decorator


def is_transient_rmq_error(exception: Exception) -> bool:
    """
    Determine if a RabbitMQ error is transient and should be retried.

    Connection and channel failures are transient (the broker may still be
    starting). Argument and message errors are not.

    Args:
        exception: Exception to check

    Returns:
        True if error is transient and should be retried
    """
    if isinstance(exception, (AMQPConnectionError, AMQPChannelError)):
        return True

    # Socket level failures surface as plain OS errors before the handshake
    if isinstance(exception, (ConnectionError, OSError)):
        return True

    return False
