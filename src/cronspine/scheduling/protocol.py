"""Recurrence-rule protocol and callback types.

┌──────────────────────────────────────────────────────────────────────────────┐
│  RECURRENCE RULE CONTRACT                                                     │
│                                                                               │
│   Job / Scheduler ──── after(last_tick) ────►  ┌──────────────────────┐       │
│                   ──── upcoming(now) ──────►  │   RecurrenceRule      │       │
│                                               │  (CronRule, custom)   │       │
│                   ◄─── t1 < t2 < t3 < ... ──── └──────────────────────┘       │
│                                                                               │
│  - Both queries return a FRESH lazy iterator on every call                    │
│  - Occurrences are strictly after the given instant, strictly ascending      │
│  - The sequence may be infinite; consumers bound it themselves               │
│  - No internal cursor: the same query always yields the same sequence        │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

SyncCallback = Callable[[], None]
AsyncCallback = Callable[[], Awaitable[Any]]
JobCallback = Callable[[], Any]


@runtime_checkable
class RecurrenceRule(Protocol):
    """Protocol for recurrence-rule evaluators.

    Implementations:
        - CronRule: croniter-backed cron expressions (default)

    Example (custom rule):
        >>> class EveryTenSeconds:
        ...     def after(self, instant):
        ...         start = instant.replace(microsecond=0)
        ...         step = timedelta(seconds=10 - start.second % 10)
        ...         t = start + step
        ...         while True:
        ...             yield t
        ...             t += timedelta(seconds=10)
        ...
        ...     def upcoming(self, now):
        ...         return self.after(now)
    """

    def after(self, instant: datetime) -> Iterator[datetime]:
        """Yield occurrences strictly after ``instant`` in ascending order."""
        ...

    def upcoming(self, now: datetime) -> Iterator[datetime]:
        """Yield occurrences strictly after ``now`` in ascending order."""
        ...
