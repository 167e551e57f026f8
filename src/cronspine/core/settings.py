"""
Environment-driven settings for cronspine.

The core ``Job`` and ``Scheduler`` constructors carry their own defaults and
never read settings; ``Job.from_settings()`` and ``Scheduler.from_settings()``
opt in. The runners, the CLI and logging setup read them directly.

Fields can be set via ``CRONSPINE_*`` environment variables or a ``.env``
file (e.g. ``CRONSPINE_MAX_SLEEP_SECONDS=5``).

Examples:
    >>> from cronspine.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.idle_interval
    datetime.timedelta(microseconds=500000)

Tags:
    settings, configuration, pydantic, environment, cronspine
"""

from __future__ import annotations

from datetime import timedelta
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CronSpineSettings(BaseSettings):
    """cronspine configuration.

    Fields
    ──────
    log_level          : Structlog log level
    log_format         : ``json`` or ``console``
    default_timezone   : Timezone used for cron rules built by the CLI
    idle_interval_ms   : Wait returned when a scheduler has no jobs
    max_sleep_seconds  : Upper bound on a runner's sleep between ticks
    missed_run_limit   : Replay cap for jobs built from settings
    """

    model_config = SettingsConfigDict(
        env_prefix="CRONSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")

    # ── Rules ────────────────────────────────────────────────────
    default_timezone: str = Field(default="UTC")

    # ── Scheduler / runners ──────────────────────────────────────
    idle_interval_ms: int = Field(default=500, gt=0)
    max_sleep_seconds: float = Field(default=60.0, gt=0)
    missed_run_limit: int = Field(default=1, ge=0)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    @field_validator("default_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value}") from exc
        return value

    # ── Derived properties ───────────────────────────────────────

    @property
    def idle_interval(self) -> timedelta:
        return timedelta(milliseconds=self.idle_interval_ms)

    @property
    def max_sleep(self) -> timedelta:
        return timedelta(seconds=self.max_sleep_seconds)


_settings_cache: dict[str, CronSpineSettings] = {}


def get_settings(*, _force_reload: bool = False) -> CronSpineSettings:
    """Load, validate, and cache a :class:`CronSpineSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = CronSpineSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["CronSpineSettings", "clear_settings_cache", "get_settings"]
