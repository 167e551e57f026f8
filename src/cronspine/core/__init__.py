"""Core primitives shared by the scheduling package and the CLI.

- timestamps.py   Clock protocol, SystemClock, FrozenClock, utc_now()
- errors.py       CronSpineError hierarchy
- logging.py      structlog configuration + get_logger()
- settings.py     CronSpineSettings (pydantic-settings) + get_settings()
"""

from .errors import (
    ConfigError,
    CronSpineError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    InvalidRuleError,
    ScheduleError,
)
from .timestamps import Clock, FrozenClock, SystemClock, from_iso8601, to_iso8601, utc_now

__all__ = [
    "Clock",
    "ConfigError",
    "CronSpineError",
    "ErrorCategory",
    "ErrorContext",
    "FrozenClock",
    "InvalidConfigError",
    "InvalidRuleError",
    "ScheduleError",
    "SystemClock",
    "from_iso8601",
    "to_iso8601",
    "utc_now",
]
