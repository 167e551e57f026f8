"""
Shared pytest fixtures and configuration for cronspine tests.

This module provides:
- Settings cache and environment isolation
- Frozen clocks pinned to a fixed instant

Usage:
    Fixtures are auto-discovered by pytest; request them as test arguments.
"""

import os
from collections.abc import Generator
from datetime import UTC, datetime

import pytest

from cronspine.core.settings import clear_settings_cache
from cronspine.core.timestamps import FrozenClock

# Fixed reference instant used across the suite.
BASE_TIME = datetime(2026, 1, 1, 10, 0, 0, tzinfo=UTC)


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark runner tests that depend on real sleeps as slow."""
    for item in items:
        if "test_runner" in str(item.fspath) and "real_time" in item.name:
            item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop CRONSPINE_* env vars and the settings cache around each test."""
    for key in list(os.environ):
        if key.startswith("CRONSPINE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def clock() -> FrozenClock:
    """A FrozenClock pinned to 2026-01-01 10:00:00 UTC."""
    return FrozenClock(BASE_TIME)
