"""
Domain models for the order pipeline.
"""

from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, ValidationError


class PayloadError(ValueError):
    """A message body is not a valid Order."""


class Order(BaseModel):
    """An order as carried in a message body: {"id": str, "value": number}."""

    # Strict: "value": "1500" is a payload error, not a coerced float.
    # NaN, Infinity and overflowing literals such as 1e400 are not JSON numbers.
    model_config = ConfigDict(strict=True, frozen=True, allow_inf_nan=False)

    id: str
    value: float

    @classmethod
    def parse(cls, body: bytes) -> "Order":
        """
        Parse a JSON message body.

        Raises:
            PayloadError: If the body is not JSON or does not match the schema
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise PayloadError(
                f"Invalid order payload ({e.error_count()} errors): "
                + "; ".join(f"{'.'.join(map(str, err['loc'])) or 'body'}: {err['msg']}" for err in e.errors())
            ) from e


class ProcessingOutcome(StrEnum):
    """Terminal result of handling one delivery."""
    ACCEPTED = "accepted"
    RETRIED = "retried"
    DEAD_LETTERED = "dead_lettered"
    REJECTED = "rejected"
    # Re-route failed; the delivery was nacked for redelivery
    REQUEUED = "requeued"


@dataclass(frozen=True)
class Decision:
    """Result of the retry policy for one parsed order."""
    outcome: ProcessingOutcome
    next_retry_count: int
