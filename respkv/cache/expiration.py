"""
Durable Values and Expirations

A stored value is paired with one of three expiration policies:

    NoExpiration       never expires
    AbsoluteDeadline   expires once wall-clock time reaches ``at_ms``
    RelativeDeadline   expires once more than ``duration_ms`` has elapsed
                       on the monotonic clock since ``inserted_at``
"""

from dataclasses import dataclass
from typing import Union

from ..protocol.values import Value


@dataclass(frozen=True)
class NoExpiration:
    def is_expired(self, now_ms: float, now_monotonic: float) -> bool:
        return False


@dataclass(frozen=True)
class AbsoluteDeadline:
    """Deadline as Unix milliseconds."""
    at_ms: int

    def is_expired(self, now_ms: float, now_monotonic: float) -> bool:
        return now_ms >= self.at_ms


@dataclass(frozen=True)
class RelativeDeadline:
    """
    Deadline relative to insertion.

    Attributes:
        duration_ms: Lifetime in milliseconds
        inserted_at: Monotonic clock reading (seconds) at insertion
    """
    duration_ms: int
    inserted_at: float

    def is_expired(self, now_ms: float, now_monotonic: float) -> bool:
        # A zero duration is gone on the next access even if the clock has not ticked
        if self.duration_ms == 0:
            return True
        elapsed_ms = (now_monotonic - self.inserted_at) * 1000
        return elapsed_ms > self.duration_ms


Expiration = Union[NoExpiration, AbsoluteDeadline, RelativeDeadline]

NO_EXPIRATION = NoExpiration()


@dataclass(frozen=True)
class DurableValue:
    """A wire value together with its expiration policy."""
    value: Value
    expiration: Expiration = NO_EXPIRATION

    def is_expired(self, now_ms: float, now_monotonic: float) -> bool:
        return self.expiration.is_expired(now_ms, now_monotonic)
