"""
Retry decision for parsed orders.

`decide` is pure: it looks at the order and the retry count carried in the
message headers and says what should happen next. All broker I/O based on
the decision happens in the message processor.
"""

import logging
from typing import Any, Mapping

from orders.src.config import OrdersConfig
from orders.src.models import Decision, Order, ProcessingOutcome

logger = logging.getLogger(__name__)


def decide(
    order: Order,
    retry_count: int,
    max_retries: int = OrdersConfig.MAX_RETRIES,
    threshold: float = OrdersConfig.VALUE_THRESHOLD,
) -> Decision:
    """
    Decide whether an order is accepted, retried or dead-lettered.

    Args:
        order: The parsed order
        retry_count: Retry hops the message has already made
        max_retries: Retry hops allowed before giving up
        threshold: Orders with a value above this are rejected by the business rule

    Returns:
        Decision with the outcome and the retry count to stamp on any re-publish
    """
    if order.value > threshold:
        if retry_count < max_retries:
            return Decision(ProcessingOutcome.RETRIED, retry_count + 1)
        return Decision(ProcessingOutcome.DEAD_LETTERED, retry_count)
    return Decision(ProcessingOutcome.ACCEPTED, retry_count)


def retry_count_from_headers(headers: Mapping[str, Any]) -> int:
    """
    Read the retry counter from message headers.

    The `retry-count` header set by the processor is the only source of
    truth; the broker's own `x-death` history is ignored. A missing header
    means the first delivery. Malformed values are treated as 0.

    Examples:
        >>> retry_count_from_headers({})
        0
        >>> retry_count_from_headers({"retry-count": 2})
        2
    """
    raw = headers.get(OrdersConfig.RETRY_COUNT_HEADER)
    if raw is None:
        return 0

    value = raw
    if isinstance(raw, bytes):
        value = raw.decode("utf-8", errors="replace")
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    # AMQP float and double fields from other clients carry whole counts as 3.0
    if isinstance(value, float) and value.is_integer():
        value = int(value)

    # bool is an int subclass but never a valid counter
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value

    logger.warning(
        "Ignoring malformed %s header %r, treating as 0",
        OrdersConfig.RETRY_COUNT_HEADER,
        raw,
    )
    return 0
