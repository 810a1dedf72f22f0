"""
Entry Module

Stored values are classified into a closed set of kinds so that numeric
operations can dispatch on the kind instead of inspecting payloads.

All timestamps are integer nanoseconds from the wall clock
(time.time_ns()), so they stay meaningful across a snapshot round trip.
"""

import math
import time
from dataclasses import dataclass, replace
from datetime import timedelta
from enum import Enum, auto
from typing import Any, Union

NEVER = 0  # expiration sentinel: the entry never expires

NANOS_PER_SECOND = 1_000_000_000

Duration = Union[int, float, timedelta]


class ValueKind(Enum):
    """Kinds of payload a store entry can hold."""
    INTEGER = auto()
    TEXT = auto()
    OPAQUE = auto()


@dataclass(frozen=True)
class Value:
    """
    A stored payload tagged with its kind.

    Attributes:
        kind: INTEGER, TEXT or OPAQUE
        payload: The caller's object, returned unchanged by reads
    """
    kind: ValueKind
    payload: Any

    @classmethod
    def of(cls, obj: Any) -> "Value":
        """Classify a caller object. bool is not treated as an integer."""
        if isinstance(obj, int) and not isinstance(obj, bool):
            return cls(ValueKind.INTEGER, obj)
        if isinstance(obj, str):
            return cls(ValueKind.TEXT, obj)
        return cls(ValueKind.OPAQUE, obj)

    @property
    def is_integer(self) -> bool:
        return self.kind is ValueKind.INTEGER


@dataclass(frozen=True)
class Entry:
    """
    A single stored record.

    Attributes:
        value: The classified payload
        created: Time of the last write, in nanoseconds
        expiration: Absolute expiry time in nanoseconds (NEVER = 0)
    """
    value: Value
    created: int
    expiration: int = NEVER

    def expired(self, now: int) -> bool:
        """True if the entry has an expiration and it lies before now."""
        return self.expiration > 0 and now > self.expiration

    def with_value(self, value: Value, created: int) -> "Entry":
        """Copy with a new value, keeping the expiration."""
        return replace(self, value=value, created=created)

    def touched(self, created: int) -> "Entry":
        """Copy with a refreshed creation time, keeping value and expiration."""
        return replace(self, created=created)


def now_ns() -> int:
    """Current wall-clock time in nanoseconds."""
    return time.time_ns()


def to_nanoseconds(duration: Duration) -> int:
    """
    Convert a TTL to integer nanoseconds.

    A nonzero duration shorter than a nanosecond rounds away from zero,
    so it never collapses into the "use the default" value 0.

    Args:
        duration: Seconds as int/float, or a timedelta

    Raises:
        TypeError: If duration is not a number or timedelta
        ValueError: If duration is infinite or NaN
    """
    if isinstance(duration, timedelta):
        return (duration.days * 86_400 + duration.seconds) * NANOS_PER_SECOND \
            + duration.microseconds * 1_000
    if isinstance(duration, bool) or not isinstance(duration, (int, float)):
        raise TypeError(f"duration must be seconds or a timedelta, got {type(duration).__name__}")
    if isinstance(duration, int):
        return duration * NANOS_PER_SECOND
    if not math.isfinite(duration):
        raise ValueError(f"duration must be finite, got {duration!r}")
    nanos = int(duration * NANOS_PER_SECOND)
    if nanos == 0 and duration != 0:
        return 1 if duration > 0 else -1
    return nanos


def expiration_for(ttl_ns: int, default_ttl_ns: int, now: int) -> int:
    """
    Compute the absolute expiration of a write.

    The explicit TTL wins when nonzero, otherwise the default applies.
    A non-positive effective TTL means the entry never expires.
    """
    effective = ttl_ns if ttl_ns != 0 else default_ttl_ns
    if effective > 0:
        return now + effective
    return NEVER
