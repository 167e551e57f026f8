"""
Clock seam and UTC timestamp utilities (stdlib-only).

Every tick captures "now" exactly once. Routing that read through a
``Clock`` lets production code use the wall clock while tests pin and
advance time explicitly.

Manifesto:
    Scheduling logic that calls ``datetime.now()`` directly can only be
    tested with sleeps or monkeypatching. A one-method protocol keeps the
    catch-up algorithm deterministic under test:

    - **Clock:** Protocol with a single ``now()`` method
    - **SystemClock:** Wall clock, timezone-aware UTC
    - **FrozenClock:** Pinned instant, moved with ``advance()`` / ``set()``
    - **to_iso8601() / from_iso8601():** Safe serialization round-trip

Examples:
    >>> from datetime import UTC, datetime
    >>> clock = FrozenClock(datetime(2026, 1, 1, 10, 0, tzinfo=UTC))
    >>> clock.advance(minutes=3, seconds=30)
    >>> clock.now().isoformat()
    '2026-01-01T10:03:30+00:00'

Tags:
    clock, timestamps, utc, datetime, cronspine, stdlib-only, testing

STDLIB ONLY - NO PYDANTIC.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol, runtime_checkable


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


@runtime_checkable
class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current instant as an aware UTC datetime."""
        ...


class SystemClock:
    """Production clock backed by ``datetime.now(UTC)``."""

    def now(self) -> datetime:
        return utc_now()

    def __repr__(self) -> str:
        return "SystemClock()"


class FrozenClock:
    """Test clock pinned to a fixed instant until moved explicitly.

    Example:
        >>> clock = FrozenClock(datetime(2026, 1, 1, tzinfo=UTC))
        >>> clock.advance(seconds=90)
        >>> clock.now().minute
        1
    """

    def __init__(self, fixed: datetime | None = None) -> None:
        self._fixed = ensure_utc(fixed) if fixed is not None else utc_now()

    def now(self) -> datetime:
        return self._fixed

    def advance(self, **kwargs: float) -> None:
        """Move the clock forward by the given ``timedelta`` keyword arguments."""
        self._fixed += timedelta(**kwargs)

    def set(self, instant: datetime) -> None:
        """Jump to ``instant``; moving backwards is allowed."""
        self._fixed = ensure_utc(instant)

    def __repr__(self) -> str:
        return f"FrozenClock({self._fixed.isoformat()})"


def to_iso8601(dt: datetime | None) -> str | None:
    """Convert datetime to ISO 8601 string."""
    if dt is None:
        return None
    return dt.isoformat()


def from_iso8601(s: str | None) -> datetime | None:
    """Parse ISO 8601 string to an aware UTC datetime."""
    if s is None:
        return None
    return ensure_utc(datetime.fromisoformat(s))


__all__ = [
    "Clock",
    "FrozenClock",
    "SystemClock",
    "ensure_utc",
    "from_iso8601",
    "to_iso8601",
    "utc_now",
]
