"""Job - one recurrence rule, one callback, and the catch-up state between ticks.

Manifesto:
    A pull-based scheduler never knows how long it was away. A job has to
    answer "what did I miss since I last looked?" on every tick, and it has
    to answer it with bounded work even after the process was suspended for
    a week. ``Job`` keeps the two pieces of state that make that possible:
    when it last evaluated its rule, and how many missed occurrences it is
    allowed to replay in one go.

┌──────────────────────────────────────────────────────────────────────────────┐
│  CATCH-UP WALK (one tick, now captured once)                                  │
│                                                                               │
│   last_tick is None ──► last_tick = now, no callback (baseline)               │
│                                                                               │
│   rule.after(last_tick):   t1 ──── t2 ──── t3 ──── t4 ──── ...                │
│                            │       │       │       │                          │
│   missed_run_limit=N ──►   take first N (0 = take all)                        │
│                            │       │       │                                  │
│   t <= now ?            run     run     stop (t > now, rest is later)         │
│                                                                               │
│   walk finished ──► last_tick = now  (never an occurrence instant)            │
└──────────────────────────────────────────────────────────────────────────────┘

    Occurrences past the replay cap are forfeited, not deferred: the next
    tick starts again from ``last_tick``, which is already ``now``.

    The walk itself lives in one generator, ``_due_occurrences``. ``tick()``
    calls the callback for each occurrence it yields and ``async_tick()``
    awaits it; nothing else differs between the two. If a callback raises,
    or an awaited callback is cancelled, the generator is abandoned before it
    commits and ``last_tick`` keeps its previous value.

Example:
    >>> job = Job.cron("* * * * *", send_heartbeat, missed_run_limit=0)
    >>> job.tick()   # first tick only records the baseline
    >>> job.tick()   # later ticks replay every minute boundary since then

Tags:
    cronspine, scheduling, job, catch-up, missed-runs, tick
"""

from __future__ import annotations

import inspect
from collections.abc import Iterator
from datetime import datetime
from itertools import islice
from typing import Any

from cronspine.core.errors import InvalidConfigError, ScheduleError
from cronspine.core.logging import get_logger
from cronspine.core.settings import CronSpineSettings, get_settings
from cronspine.core.timestamps import Clock, SystemClock, ensure_utc

from .protocol import JobCallback, RecurrenceRule
from .rules import CronRule

logger = get_logger(__name__)

DEFAULT_MISSED_RUN_LIMIT = 1


def _callback_name(callback: Any) -> str:
    return getattr(callback, "__qualname__", None) or getattr(callback, "__name__", None) or repr(callback)


class Job:
    """A recurring callback governed by a recurrence rule.

    Args:
        rule: Recurrence rule queried for occurrences after ``last_tick``.
        callback: Zero-argument callable. Plain functions are driven with
            ``tick()``; functions returning awaitables with ``async_tick()``.
        missed_run_limit: Maximum occurrences replayed per tick; ``0`` means
            unbounded. Defaults to 1 (only the earliest missed occurrence).
        name: Label used in logs; defaults to the callback's qualified name.
        clock: Source of "now"; defaults to the system clock.
    """

    def __init__(
        self,
        rule: RecurrenceRule,
        callback: JobCallback,
        *,
        missed_run_limit: int = DEFAULT_MISSED_RUN_LIMIT,
        name: str | None = None,
        clock: Clock | None = None,
    ) -> None:
        if not callable(callback):
            raise InvalidConfigError("callback", callback, "Job callback must be callable")
        self.rule = rule
        self.callback = callback
        self.last_tick: datetime | None = None
        self.missed_run_limit = missed_run_limit
        self.name = name or _callback_name(callback)
        self.clock: Clock = clock or SystemClock()

    @classmethod
    def cron(
        cls,
        expression: str,
        callback: JobCallback,
        *,
        timezone: str = "UTC",
        **kwargs: Any,
    ) -> Job:
        """Build a job from a cron expression."""
        return cls(CronRule(expression, timezone=timezone), callback, **kwargs)

    @classmethod
    def from_settings(
        cls,
        rule: RecurrenceRule,
        callback: JobCallback,
        settings: CronSpineSettings | None = None,
        **kwargs: Any,
    ) -> Job:
        """Build a job whose ``missed_run_limit`` comes from ``CRONSPINE_MISSED_RUN_LIMIT``."""
        settings = settings or get_settings()
        kwargs.setdefault("missed_run_limit", settings.missed_run_limit)
        return cls(rule, callback, **kwargs)

    @property
    def missed_run_limit(self) -> int:
        return self._missed_run_limit

    @missed_run_limit.setter
    def missed_run_limit(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidConfigError(
                "missed_run_limit",
                value,
                f"missed_run_limit must be a non-negative integer, got {value!r}",
            )
        self._missed_run_limit = value

    # === Catch-up algorithm ===

    def _due_occurrences(self, now: datetime) -> Iterator[datetime]:
        """Yield the occurrences due at ``now``; commit ``last_tick`` when exhausted."""
        if self.last_tick is None:
            self.last_tick = now
            logger.debug("job_baseline_established", job=self.name, last_tick=now.isoformat())
            return

        occurrences = self.rule.after(self.last_tick)
        if self._missed_run_limit > 0:
            occurrences = islice(occurrences, self._missed_run_limit)

        previous: datetime | None = None
        for occurrence in occurrences:
            if previous is not None and occurrence <= previous:
                raise ScheduleError(
                    f"Recurrence rule for job {self.name!r} is not ascending: "
                    f"{occurrence.isoformat()} after {previous.isoformat()}"
                ).with_context(job=self.name)
            if occurrence > now:
                break
            previous = occurrence
            logger.debug("job_occurrence_due", job=self.name, occurrence=occurrence.isoformat())
            yield occurrence

        self.last_tick = now

    def _now(self) -> datetime:
        return ensure_utc(self.clock.now())

    # === Invocation ===

    def tick(self) -> None:
        """Run the callback once for every due occurrence, blocking."""
        for _ in self._due_occurrences(self._now()):
            result = self.callback()
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                raise ScheduleError(
                    f"Job {self.name!r} returned an awaitable; drive it with async_tick()"
                ).with_context(job=self.name)

    async def async_tick(self) -> None:
        """Run the callback once for every due occurrence, awaiting each in turn."""
        for _ in self._due_occurrences(self._now()):
            result = self.callback()
            if inspect.isawaitable(result):
                await result

    # === Queries ===

    def next_occurrence(self, now: datetime | None = None) -> datetime | None:
        """Return the rule's single next occurrence after ``now``, if any."""
        now = ensure_utc(now) if now is not None else self._now()
        return next(iter(self.rule.upcoming(now)), None)

    def __repr__(self) -> str:
        return (
            f"Job(name={self.name!r}, rule={self.rule!r}, "
            f"missed_run_limit={self._missed_run_limit}, last_tick={self.last_tick!r})"
        )
