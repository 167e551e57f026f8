"""Cron recurrence rules backed by croniter.

``CronRule`` is the default :class:`~cronspine.scheduling.protocol.RecurrenceRule`.
Expressions are validated once at construction; evaluation happens lazily in
the rule's timezone and every occurrence is handed back as an aware UTC
datetime.

Supported expressions:
    - 5 fields: ``minute hour day month weekday`` (minute resolution)
    - 6 fields: croniter's seconds-last form, e.g. ``* * * * * */15``
    - croniter aliases such as ``@hourly`` and ``@daily``

Example:
    >>> from datetime import UTC, datetime
    >>> rule = CronRule("*/15 * * * *")
    >>> occurrences = rule.after(datetime(2026, 1, 1, 10, 7, tzinfo=UTC))
    >>> [t.strftime("%H:%M") for t, _ in zip(occurrences, range(3))]
    ['10:15', '10:30', '10:45']
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import CroniterBadDateError, croniter

from cronspine.core.errors import InvalidRuleError
from cronspine.core.logging import get_logger
from cronspine.core.timestamps import ensure_utc

logger = get_logger(__name__)


class CronRule:
    """A validated cron expression evaluated in a fixed timezone."""

    def __init__(self, expression: str, timezone: str = "UTC") -> None:
        expression = expression.strip() if isinstance(expression, str) else expression
        if not isinstance(expression, str) or not croniter.is_valid(expression):
            raise InvalidRuleError(str(expression))

        try:
            tz = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidRuleError(
                expression, f"Unknown timezone for {expression!r}: {timezone!r}", cause=e
            ) from e

        self._expression = expression
        self._timezone = timezone
        self._tz = tz

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def timezone(self) -> str:
        return self._timezone

    @property
    def tzinfo(self) -> ZoneInfo:
        return self._tz

    def after(self, instant: datetime) -> Iterator[datetime]:
        """Yield occurrences strictly after ``instant``, ascending, forever.

        The iterator stops early only when croniter cannot find a further
        matching date (e.g. ``0 0 30 2 *``).
        """
        start = ensure_utc(instant)
        cron = croniter(self._expression, start.astimezone(self._tz))
        while True:
            try:
                occurrence = cron.get_next(datetime)
            except CroniterBadDateError:
                logger.debug("cron_rule_exhausted", expression=self._expression)
                return
            occurrence = ensure_utc(occurrence)
            if occurrence > start:
                yield occurrence

    def upcoming(self, now: datetime) -> Iterator[datetime]:
        """Yield occurrences strictly after ``now``."""
        return self.after(now)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CronRule):
            return NotImplemented
        return (self._expression, self._timezone) == (other._expression, other._timezone)

    def __hash__(self) -> int:
        return hash((self._expression, self._timezone))

    def __repr__(self) -> str:
        if self._timezone == "UTC":
            return f"CronRule({self._expression!r})"
        return f"CronRule({self._expression!r}, timezone={self._timezone!r})"

    def __str__(self) -> str:
        return self._expression
