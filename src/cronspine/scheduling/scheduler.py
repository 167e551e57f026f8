"""Scheduler - an ordered, append-only collection of jobs ticked together.

┌──────────────────────────────────────────────────────────────────────────────┐
│  SCHEDULER                                                                    │
│                                                                               │
│   driver ──► tick() / async_tick()                                            │
│                 │                                                             │
│                 ├──► jobs[0].tick()   (all due callbacks run to completion)   │
│                 ├──► jobs[1].tick()                                           │
│                 └──► jobs[n].tick()                                           │
│                                                                               │
│   driver ──► time_till_next_job()                                             │
│                 │                                                             │
│                 └──► min over jobs of (rule.upcoming(now)[0] - now)           │
│                      (500 ms when there are no jobs)                          │
└──────────────────────────────────────────────────────────────────────────────┘

Jobs are ticked strictly in insertion order, one after another, in both the
blocking and the async variant. The scheduler holds no locks and starts no
threads; drivers that share one scheduler across threads must serialize
their calls.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import timedelta

from cronspine.core.errors import ScheduleError
from cronspine.core.logging import get_logger
from cronspine.core.settings import CronSpineSettings, get_settings
from cronspine.core.timestamps import Clock, SystemClock, ensure_utc

from .job import Job

logger = get_logger(__name__)

DEFAULT_IDLE_INTERVAL = timedelta(milliseconds=500)


class Scheduler:
    """Owns jobs and forwards ticks to them in insertion order.

    Example:
        >>> scheduler = Scheduler()
        >>> scheduler.add(Job.cron("*/5 * * * *", refresh_cache))
        >>> while True:
        ...     time.sleep(scheduler.time_till_next_job().total_seconds())
        ...     scheduler.tick()
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        idle_interval: timedelta = DEFAULT_IDLE_INTERVAL,
    ) -> None:
        self.clock: Clock = clock or SystemClock()
        self.idle_interval = idle_interval
        self._jobs: list[Job] = []

    @classmethod
    def from_settings(
        cls,
        settings: CronSpineSettings | None = None,
        *,
        clock: Clock | None = None,
    ) -> Scheduler:
        """Build a scheduler whose idle interval comes from ``CRONSPINE_IDLE_INTERVAL_MS``."""
        settings = settings or get_settings()
        return cls(clock=clock, idle_interval=settings.idle_interval)

    def add(self, job: Job) -> Job:
        """Append ``job``; the scheduler owns it from now on."""
        if not isinstance(job, Job):
            raise ScheduleError(f"Scheduler.add expects a Job, got {type(job).__name__}")
        if any(existing is job for existing in self._jobs):
            raise ScheduleError(f"Job {job.name!r} was already added").with_context(job=job.name)
        self._jobs.append(job)
        logger.debug("job_added", job=job.name, job_count=len(self._jobs))
        return job

    @property
    def jobs(self) -> tuple[Job, ...]:
        return tuple(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(tuple(self._jobs))

    # === Ticking ===

    def tick(self) -> None:
        """Tick every job in insertion order; callback errors propagate."""
        for job in tuple(self._jobs):
            job.tick()

    async def async_tick(self) -> None:
        """Await every job's tick in insertion order; callback errors propagate."""
        for job in tuple(self._jobs):
            await job.async_tick()

    # === Wake-up query ===

    def time_till_next_job(self) -> timedelta:
        """Return how long a driver should wait before the next tick.

        Returns ``idle_interval`` when there are no jobs (or none of them has
        a further occurrence). Otherwise the gap between now and the earliest
        next occurrence across all jobs, never negative.
        """
        if not self._jobs:
            return self.idle_interval

        now = ensure_utc(self.clock.now())
        soonest: timedelta | None = None
        for job in self._jobs:
            occurrence = next(iter(job.rule.upcoming(now)), None)
            if occurrence is None:
                continue
            wait = occurrence - now
            if soonest is None or wait < soonest:
                soonest = wait

        if soonest is None:
            return self.idle_interval
        if soonest < timedelta(0):
            logger.warning("next_job_already_due", overdue_seconds=-soonest.total_seconds())
            return timedelta(0)
        return soonest

    def __repr__(self) -> str:
        return f"Scheduler(jobs={len(self._jobs)})"
