"""Pytest fixtures for scheduling tests."""

import pytest

from cronspine.scheduling import CronRule
from tests._support.fakes import Recorder, SpyRule


@pytest.fixture
def every_minute() -> SpyRule:
    """SpyRule around ``* * * * *``."""
    return SpyRule(CronRule("* * * * *"))


@pytest.fixture
def recorder(every_minute: SpyRule) -> Recorder:
    return Recorder(every_minute)
