"""
Core Module - Clock.

============================================================
RESPONSIBILITY
============================================================
Time access handed to each trigger invocation.

- UTC only
- Mockable for deterministic tests
- Passed explicitly through the workflow runtime,
  never looked up globally

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


# ============================================================
# CLOCK PROTOCOL
# ============================================================

class ClockProtocol(ABC):
    """Source of the current UTC instant."""

    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware UTC datetime."""
        pass

    def format_iso(self, dt: Optional[datetime] = None) -> str:
        """ISO 8601 instant (millisecond precision, Z suffix)."""
        return to_iso8601(dt or self.now())


class SystemClock(ClockProtocol):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class MockClock(ClockProtocol):
    """
    Frozen clock for tests.

    Time only moves through set_time/advance.
    """

    def __init__(self, initial_time: Optional[datetime] = None):
        self._time = _as_utc(initial_time or datetime.now(timezone.utc))

    def now(self) -> datetime:
        return self._time

    def set_time(self, new_time: datetime) -> None:
        self._time = _as_utc(new_time)

    def advance(self, seconds: float = 0, **kwargs) -> None:
        """Move forward; kwargs go to timedelta (minutes, hours, ...)."""
        self._time += timedelta(seconds=seconds, **kwargs)


# ============================================================
# TIMESTAMP UTILITIES
# ============================================================

def _as_utc(dt: datetime) -> datetime:
    # naive datetimes are taken as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso8601(dt: datetime) -> str:
    """
    Convert datetime to an ISO 8601 instant.

    Output looks like 2026-01-02T03:04:05.678Z.
    """
    return _as_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "to_iso8601",
]
