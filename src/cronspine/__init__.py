"""
cronspine - In-process, pull-based cron job scheduling.

- cronspine.scheduling: Job, Scheduler, CronRule and reference runners
- cronspine.core: Clock, errors, logging and settings primitives
"""

__version__ = "0.1.0"

from cronspine.core.errors import (  # noqa: E402
    ConfigError,
    CronSpineError,
    InvalidConfigError,
    InvalidRuleError,
    ScheduleError,
)
from cronspine.core.timestamps import Clock, FrozenClock, SystemClock, utc_now  # noqa: E402
from cronspine.scheduling import (  # noqa: E402
    AsyncRunner,
    CronRule,
    Job,
    RecurrenceRule,
    Scheduler,
    ThreadRunner,
)

__all__ = [
    "__version__",
    # Scheduling
    "AsyncRunner",
    "CronRule",
    "Job",
    "RecurrenceRule",
    "Scheduler",
    "ThreadRunner",
    # Time
    "Clock",
    "FrozenClock",
    "SystemClock",
    "utc_now",
    # Errors
    "ConfigError",
    "CronSpineError",
    "InvalidConfigError",
    "InvalidRuleError",
    "ScheduleError",
]
