"""Scheduling package for cronspine.

Manifesto:
    An in-process scheduler should not need a database, a broker or a
    background thread to be correct. cronspine's core is purely reactive:
    something calls ``tick()``, every job works out which of its cron
    occurrences have come due since it last looked, replays a bounded number
    of them, and returns. Timing is the driver's business.

┌──────────────────────────────────────────────────────────────────────────────┐
│  CRONSPINE SCHEDULING                                                         │
│                                                                               │
│  Quick Start:                                                                 │
│  ┌──────────────────────────────────────────────────────────────────────┐   │
│  │   from cronspine.scheduling import Job, Scheduler, ThreadRunner      │   │
│  │                                                                      │   │
│  │   scheduler = Scheduler()                                            │   │
│  │   scheduler.add(Job.cron("*/5 * * * *", refresh_cache))              │   │
│  │   scheduler.add(Job.cron("0 8 * * *", send_report,                   │   │
│  │                          timezone="Europe/London"))                  │   │
│  │                                                                      │   │
│  │   runner = ThreadRunner(scheduler)                                   │   │
│  │   runner.start()                                                     │   │
│  └──────────────────────────────────────────────────────────────────────┘   │
│                                                                               │
│  Architecture:                                                                │
│  ┌─────────────────────────────────────────────────────────────────────┐    │
│  │                                                                     │    │
│  │   ┌──────────────┐   tick()    ┌───────────┐   tick()   ┌───────┐  │    │
│  │   │  Runner      │ ──────────► │ Scheduler │ ─────────► │  Job  │  │    │
│  │   │  (driver)    │ ◄────────── │           │            │       │  │    │
│  │   └──────────────┘  time_till  └───────────┘            └───┬───┘  │    │
│  │                     _next_job()                             │      │    │
│  │                                                after(last)  ▼      │    │
│  │                                                      ┌──────────┐  │    │
│  │                                                      │ CronRule │  │    │
│  │                                                      └──────────┘  │    │
│  └─────────────────────────────────────────────────────────────────────┘    │
│                                                                               │
│  Dependencies:                                                                │
│  - croniter: Cron expression evaluation                                      │
└──────────────────────────────────────────────────────────────────────────────┘

Guardrails:
    ❌ Expecting every missed occurrence to be replayed after a long pause
    ✅ ``missed_run_limit=0`` when every occurrence matters
    ❌ Calling ``tick()`` on a job whose callback is ``async def``
    ✅ ``await scheduler.async_tick()`` (or ``AsyncRunner``)
    ❌ Sharing one Scheduler between threads without a lock
    ✅ One runner per scheduler

Tags:
    cronspine, scheduling, cron, catch-up, pull-based, tick, runners
"""

from __future__ import annotations

from .job import DEFAULT_MISSED_RUN_LIMIT, Job
from .protocol import AsyncCallback, JobCallback, RecurrenceRule, SyncCallback
from .rules import CronRule
from .runner import AsyncRunner, ThreadRunner
from .scheduler import DEFAULT_IDLE_INTERVAL, Scheduler

__all__ = [
    # Core
    "Job",
    "Scheduler",
    "DEFAULT_IDLE_INTERVAL",
    "DEFAULT_MISSED_RUN_LIMIT",
    # Rules
    "CronRule",
    "RecurrenceRule",
    # Callbacks
    "AsyncCallback",
    "JobCallback",
    "SyncCallback",
    # Runners
    "AsyncRunner",
    "ThreadRunner",
]
