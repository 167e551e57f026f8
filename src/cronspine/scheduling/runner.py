"""Reference drivers that sleep until the next job and then tick.

┌──────────────────────────────────────────────────────────────────────────────┐
│  RUNNER LOOP                                                                  │
│                                                                               │
│   ┌───────────────────────────────────────────────────────────────────┐      │
│   │  while not stopped:                                               │      │
│   │      wait = min(scheduler.time_till_next_job(), max_sleep)        │      │
│   │      sleep(wait)  (woken early by stop())                         │      │
│   │      scheduler.tick()  /  await scheduler.async_tick()            │      │
│   │      (tick exceptions are logged, loop continues)                 │      │
│   └───────────────────────────────────────────────────────────────────┘      │
│                                                                               │
│   ThreadRunner  daemon thread + threading.Event, blocking tick()             │
│   AsyncRunner   asyncio task + asyncio.Event, awaited async_tick()           │
└──────────────────────────────────────────────────────────────────────────────┘

The scheduler core lets callback errors escape ``tick()``. A runner is the
driver those errors escape to: it logs them with traceback and keeps ticking,
so one failing job does not stop the others on the next round.

``max_sleep`` bounds every wait so wall-clock jumps are noticed within that
interval; it defaults to ``CRONSPINE_MAX_SLEEP_SECONDS``.
"""

from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any

from cronspine.core.errors import ScheduleError
from cronspine.core.logging import get_logger
from cronspine.core.timestamps import utc_now

from .scheduler import Scheduler

logger = get_logger(__name__)


def _resolve_max_sleep(max_sleep: timedelta | None) -> timedelta:
    if max_sleep is not None:
        return max_sleep
    from cronspine.core.settings import get_settings

    return get_settings().max_sleep


class _RunnerBase(ABC):
    name = "base"

    def __init__(self, scheduler: Scheduler, *, max_sleep: timedelta | None = None) -> None:
        self.scheduler = scheduler
        self.max_sleep = _resolve_max_sleep(max_sleep)
        self._tick_count = 0
        self._error_count = 0
        self._last_tick: datetime | None = None

    def _next_wait(self) -> float:
        wait = min(self.scheduler.time_till_next_job(), self.max_sleep)
        return max(wait.total_seconds(), 0.0)

    def _record_tick(self) -> None:
        self._tick_count += 1
        self._last_tick = utc_now()

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Whether the tick loop is alive."""

    @property
    def tick_count(self) -> int:
        """Get number of ticks executed."""
        return self._tick_count

    @property
    def error_count(self) -> int:
        """Get number of ticks that raised."""
        return self._error_count

    @property
    def last_tick(self) -> datetime | None:
        """Get timestamp of last tick."""
        return self._last_tick

    def health(self) -> dict[str, Any]:
        """Return runner health status."""
        return {
            "healthy": self.is_running,
            "runner": self.name,
            "tick_count": self._tick_count,
            "error_count": self._error_count,
            "last_tick": self._last_tick.isoformat() if self._last_tick else None,
            "job_count": len(self.scheduler),
            "max_sleep_seconds": self.max_sleep.total_seconds(),
        }


class ThreadRunner(_RunnerBase):
    """Drive a scheduler from a daemon thread with blocking ticks.

    Example:
        >>> runner = ThreadRunner(scheduler)
        >>> runner.start()
        >>> # ... later ...
        >>> runner.stop()
    """

    name = "thread"

    def __init__(self, scheduler: Scheduler, *, max_sleep: timedelta | None = None) -> None:
        super().__init__(scheduler, max_sleep=max_sleep)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start the tick loop in a daemon thread.

        Each loop owns its stop event, so a loop still finishing a tick after
        a timed-out :meth:`stop` is never revived by a later start.
        """
        if self.is_running:
            logger.warning("runner_already_started", runner=self.name)
            return

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._loop, args=(self._stop_event,), daemon=True, name="cronspine-runner"
        )
        self._thread.start()

    def _loop(self, stop_event: threading.Event) -> None:
        logger.info("runner_started", runner=self.name, job_count=len(self.scheduler))
        while not stop_event.wait(self._next_wait()):
            self._record_tick()
            try:
                self.scheduler.tick()
            except Exception:
                self._error_count += 1
                logger.exception("runner_tick_failed", runner=self.name)
        logger.info("runner_stopped", runner=self.name, tick_count=self._tick_count)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop, waiting up to ``timeout`` seconds for the current tick.

        If the tick outlives ``timeout`` the runner keeps reporting
        ``is_running`` until the loop exits, and ``start()`` is refused.
        """
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("runner_stop_timeout", runner=self.name, timeout=timeout)
            return
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


class AsyncRunner(_RunnerBase):
    """Drive a scheduler from an asyncio task with awaited ticks.

    Example:
        >>> runner = AsyncRunner(scheduler)
        >>> runner.start()          # inside a running event loop
        >>> ...
        >>> await runner.stop()
    """

    name = "async"

    def __init__(self, scheduler: Scheduler, *, max_sleep: timedelta | None = None) -> None:
        super().__init__(scheduler, max_sleep=max_sleep)
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._running = False

    async def run(self) -> None:
        """Tick until :meth:`stop` is called; cancellation propagates.

        A stop requested before the loop first runs is honoured.
        """
        stop_event = self._stop_event
        self._running = True
        logger.info("runner_started", runner=self.name, job_count=len(self.scheduler))
        try:
            while not stop_event.is_set():
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=self._next_wait())
                    break
                except TimeoutError:
                    pass

                self._record_tick()
                try:
                    await self.scheduler.async_tick()
                except Exception:
                    self._error_count += 1
                    logger.exception("runner_tick_failed", runner=self.name)
        finally:
            self._running = False
            if self._stop_event is stop_event:
                self._stop_event = asyncio.Event()
            logger.info("runner_stopped", runner=self.name, tick_count=self._tick_count)

    def start(self) -> asyncio.Task[None]:
        """Schedule :meth:`run` on the running event loop."""
        if self._task is not None and not self._task.done():
            logger.warning("runner_already_started", runner=self.name)
            return self._task
        if self._running:
            raise ScheduleError("AsyncRunner.run() is already being awaited directly")
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self.run(), name="cronspine-runner")
        return self._task

    async def stop(self) -> None:
        """Ask the loop to exit and wait for the current tick to finish."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None

    @property
    def is_running(self) -> bool:
        if self._task is not None:
            return not self._task.done()
        return self._running
