"""Stored entries and the expiry validation policy.

Every read path of the store (get, has, clean) goes through
``validate_entry`` so lazy and sweep eviction agree on what "expired" means.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from kvbus.exceptions import KeyExpiredError

T = TypeVar("T")

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class WrappedValue(Generic[T]):
    """A stored value with an optional absolute expiry time.

    Entries are immutable. Overwriting a key replaces the whole entry,
    so a shallow copy of the store's map is a complete snapshot.
    """

    value: T
    expiry_time: int | None = None  # ms since epoch, None never expires

    @classmethod
    def wrap(cls, value: T, lifetime: int | None, now: int) -> "WrappedValue[T]":
        """Build an entry expiring ``lifetime`` ms after ``now``.

        A falsy lifetime (None or 0) yields an entry that never expires.
        """
        return cls(value=value, expiry_time=now + lifetime if lifetime else None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"value": self.value, "expiry_time": self.expiry_time}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WrappedValue[Any]":
        """Create from dictionary."""
        return cls(value=data["value"], expiry_time=data.get("expiry_time"))


def is_valid(entry: WrappedValue[Any], now: int) -> bool:
    """Check whether an entry is still valid at ``now``."""
    return entry.expiry_time is None or entry.expiry_time >= now


def validate_entry(key: str, entry: WrappedValue[Any], now: int) -> None:
    """Raise KeyExpiredError if the entry for ``key`` has expired at ``now``."""
    if not is_valid(entry, now):
        raise KeyExpiredError(key)
