"""
Structured error types for cronspine.

Scheduling failures fall into two groups: bad configuration handed to a
job (a negative replay limit, an unknown timezone) and schedule errors
raised while evaluating or driving a rule. Both carry a category, a small
context record and the chained cause so they log cleanly.

Callback exceptions are absent from this hierarchy: whatever a
job callback raises reaches the caller of ``tick()`` unchanged.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────┐
        │                    CronSpineError                        │
        │            (category, context, cause)                    │
        ├─────────────────────────────────────────────────────────┤
        │                                                          │
        │   ConfigError (CONFIG)        ScheduleError (SCHEDULE)   │
        │        │                            │                    │
        │   InvalidConfigError          InvalidRuleError           │
        │                                                          │
        └─────────────────────────────────────────────────────────┘

Examples:
    >>> error = InvalidRuleError("61 * * * *")
    >>> error.category
    <ErrorCategory.SCHEDULE: 'SCHEDULE'>
    >>> error.to_dict()["expression"]
    '61 * * * *'

    Chaining errors for root cause:

    >>> try:
    ...     raise KeyError("Mars/Olympus")
    ... except KeyError as e:
    ...     err = InvalidConfigError("timezone", "Mars/Olympus", cause=e)
    >>> err.cause
    KeyError('Mars/Olympus')

Guardrails:
    ❌ DON'T: Wrap or swallow exceptions raised by job callbacks
    ✅ DO: Let them propagate to the driver

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, error-context, cronspine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    CONFIG = "CONFIG"
    SCHEDULE = "SCHEDULE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        job: Name of the job being configured or ticked
        expression: Recurrence expression involved, if any
        metadata: Additional key-value pairs
    """

    job: str | None = None
    expression: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("job", "expression"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class CronSpineError(Exception):
    """Base exception for all cronspine errors.

    Subclasses set ``default_category``; instances may override it.

    Examples:
        >>> error = CronSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(job="nightly").context.job
        'nightly'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> CronSpineError:
        """Add context to this error (fluent API).

        Usage:
            raise ScheduleError("Rule went backwards").with_context(job="report")
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        result.update(self.context.to_dict())
        if self.cause is not None:
            result["cause"] = repr(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(CronSpineError):
    """Configuration error; must be fixed by the caller."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(
        self,
        key: str,
        value: Any,
        message: str | None = None,
        **kwargs: Any,
    ):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}", **kwargs)


# =============================================================================
# SCHEDULE ERRORS
# =============================================================================


class ScheduleError(CronSpineError):
    """Schedule evaluation or wiring error."""

    default_category = ErrorCategory.SCHEDULE


class InvalidRuleError(ScheduleError):
    """Recurrence expression cannot be evaluated."""

    def __init__(self, expression: str, message: str | None = None, **kwargs: Any):
        self.expression = expression
        super().__init__(message or f"Invalid recurrence expression: {expression!r}", **kwargs)
        self.context.expression = expression


__all__ = [
    "ConfigError",
    "CronSpineError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "InvalidRuleError",
    "ScheduleError",
]
