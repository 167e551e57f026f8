"""Tests for Job catch-up behaviour."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from cronspine.core.errors import InvalidConfigError, InvalidRuleError, ScheduleError
from cronspine.core.timestamps import FrozenClock
from cronspine.scheduling import CronRule, Job
from tests._support.fakes import ListRule, Recorder, SpyRule, UnorderedRule


def at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2026, 1, 1, hour, minute, second, tzinfo=UTC)


class TestJobConstruction:
    """Test Job defaults and validation."""

    def test_defaults(self):
        """New job has no baseline and replays one missed run."""
        job = Job(CronRule("* * * * *"), lambda: None)
        assert job.last_tick is None
        assert job.missed_run_limit == 1

    def test_cron_constructor(self):
        """Job.cron builds a CronRule."""
        job = Job.cron("*/5 * * * *", lambda: None, timezone="Europe/Paris", missed_run_limit=0)
        assert job.rule == CronRule("*/5 * * * *", timezone="Europe/Paris")
        assert job.missed_run_limit == 0

    def test_cron_constructor_rejects_bad_expression(self):
        """Job.cron surfaces rule errors."""
        with pytest.raises(InvalidRuleError):
            Job.cron("not a cron", lambda: None)

    def test_name_defaults_to_callback(self):
        """Name falls back to the callback's qualified name."""

        def nightly_report():
            pass

        job = Job(CronRule("0 0 * * *"), nightly_report)
        assert job.name.endswith("nightly_report")

    def test_explicit_name(self):
        job = Job(CronRule("0 0 * * *"), lambda: None, name="cleanup")
        assert job.name == "cleanup"
        assert "cleanup" in repr(job)

    @pytest.mark.parametrize("limit", [-1, 1.5, "2", True, None])
    def test_invalid_missed_run_limit(self, limit):
        """Limit must be a non-negative int."""
        with pytest.raises(InvalidConfigError) as exc_info:
            Job(CronRule("* * * * *"), lambda: None, missed_run_limit=limit)
        assert exc_info.value.key == "missed_run_limit"

    def test_missed_run_limit_setter_validates(self):
        job = Job(CronRule("* * * * *"), lambda: None)
        job.missed_run_limit = 5
        assert job.missed_run_limit == 5
        with pytest.raises(InvalidConfigError):
            job.missed_run_limit = -3
        assert job.missed_run_limit == 5

    def test_non_callable_rejected(self):
        with pytest.raises(InvalidConfigError):
            Job(CronRule("* * * * *"), "not callable")


class TestJobBaseline:
    """The first tick only records the baseline."""

    def test_first_tick_records_now(self, clock, every_minute, recorder):
        """First tick sets last_tick to now without invoking."""
        job = Job(every_minute, recorder, clock=clock)
        job.tick()
        assert recorder.count == 0
        assert job.last_tick == clock.now()
        assert every_minute.after_calls == []

    def test_first_tick_ignores_past_occurrences(self, clock):
        """Occurrences before the job existed are not missed runs."""
        recorder = Recorder()
        rule = ListRule(clock.now() - timedelta(minutes=5), clock.now() - timedelta(minutes=1))
        job = Job(rule, recorder, clock=clock, missed_run_limit=0)
        job.tick()
        assert recorder.count == 0

    def test_first_tick_with_system_clock(self):
        """Baseline with the real clock lands between two reads of it."""
        before = datetime.now(UTC)
        job = Job(CronRule("* * * * *"), lambda: None)
        job.tick()
        after = datetime.now(UTC)
        assert before <= job.last_tick <= after


class TestJobCatchUp:
    """Test the bounded replay of missed occurrences."""

    def test_limit_one_replays_earliest_missed(self, clock, every_minute, recorder):
        """10:00 baseline, 10:03:30 tick replays only 10:01."""
        job = Job(every_minute, recorder, clock=clock)
        job.tick()

        clock.set(at(10, 3, 30))
        job.tick()
        assert recorder.calls == [at(10, 1)]
        assert job.last_tick == at(10, 3, 30)

        clock.set(at(10, 3, 31))
        job.tick()
        assert recorder.calls == [at(10, 1)]
        assert job.last_tick == at(10, 3, 31)

    def test_forfeited_runs_are_not_deferred(self, clock, every_minute, recorder):
        """Occurrences beyond the cap are dropped, not replayed later."""
        job = Job(every_minute, recorder, clock=clock)
        job.tick()
        clock.set(at(10, 3, 30))
        job.tick()
        clock.set(at(10, 4, 30))
        job.tick()
        # 10:02 and 10:03 are gone; only 10:04 runs.
        assert recorder.calls == [at(10, 1), at(10, 4)]
        assert every_minute.after_calls == [at(10, 0), at(10, 3, 30)]

    def test_unbounded_replays_every_missed(self, clock, every_minute, recorder):
        """Limit 0 replays 10:01, 10:02, 10:03 in order."""
        job = Job(every_minute, recorder, clock=clock, missed_run_limit=0)
        job.tick()
        clock.set(at(10, 3, 30))
        job.tick()
        assert recorder.calls == [at(10, 1), at(10, 2), at(10, 3)]
        assert job.last_tick == at(10, 3, 30)

    @pytest.mark.parametrize(
        "limit, expected",
        [(0, 3), (1, 1), (2, 2), (3, 3), (4, 3), (10, 3)],
    )
    def test_invocation_count_is_bounded_by_limit(self, clock, every_minute, recorder, limit, expected):
        """Invocations equal min(limit, due) with limit 0 meaning all."""
        job = Job(every_minute, recorder, clock=clock, missed_run_limit=limit)
        job.tick()
        clock.set(at(10, 3, 30))
        job.tick()
        assert recorder.count == expected
        assert recorder.calls == sorted(recorder.calls)

    def test_occurrence_exactly_at_now_runs(self, clock, every_minute, recorder):
        """An occurrence equal to now is due."""
        job = Job(every_minute, recorder, clock=clock)
        job.tick()
        clock.set(at(10, 1))
        job.tick()
        assert recorder.calls == [at(10, 1)]

    def test_never_runs_future_occurrence(self, clock, every_minute, recorder):
        """Nothing after now is invoked."""
        job = Job(every_minute, recorder, clock=clock, missed_run_limit=0)
        job.tick()
        clock.set(at(10, 0, 59))
        job.tick()
        assert recorder.count == 0
        assert job.last_tick == at(10, 0, 59)

    def test_walk_stops_at_first_future_occurrence(self, clock, every_minute, recorder):
        """The lazy sequence is not consumed past the first future occurrence."""
        job = Job(every_minute, recorder, clock=clock, missed_run_limit=0)
        job.tick()
        clock.set(at(10, 2, 30))
        job.tick()
        assert every_minute.yielded == [at(10, 1), at(10, 2), at(10, 3)]

    def test_last_tick_is_now_not_occurrence(self, clock, every_minute, recorder):
        job = Job(every_minute, recorder, clock=clock, missed_run_limit=0)
        job.tick()
        clock.set(at(10, 5, 12))
        job.tick()
        assert job.last_tick == at(10, 5, 12)
        assert job.last_tick not in recorder.calls

    def test_clock_moving_backwards(self, clock, every_minute, recorder):
        """A backwards clock yields no runs and still moves last_tick."""
        job = Job(every_minute, recorder, clock=clock)
        job.tick()
        clock.set(at(9, 58))
        job.tick()
        assert recorder.count == 0
        assert job.last_tick == at(9, 58)

    def test_catch_up_after_long_pause_is_bounded(self, clock):
        """A day-long pause with limit 2 replays exactly two runs."""
        spy = SpyRule(CronRule("* * * * *"))
        recorder = Recorder(spy)
        job = Job(spy, recorder, clock=clock, missed_run_limit=2)
        job.tick()
        clock.advance(days=1)
        job.tick()
        assert recorder.calls == [at(10, 1), at(10, 2)]
        assert len(spy.yielded) == 2

    def test_non_ascending_rule_raises(self, clock):
        """A rule that goes backwards is rejected."""
        rule = UnorderedRule(at(10, 2), at(10, 1))
        recorder = Recorder()
        job = Job(rule, recorder, clock=clock, missed_run_limit=0, name="broken")
        job.tick()
        clock.set(at(10, 5))
        with pytest.raises(ScheduleError, match="not ascending") as exc_info:
            job.tick()
        assert exc_info.value.context.job == "broken"
        assert recorder.count == 1
        assert job.last_tick == at(10, 0)

    def test_duplicate_occurrence_raises(self, clock):
        """Repeated occurrences would stall unbounded replay."""
        rule = UnorderedRule(at(10, 1), at(10, 1), at(10, 1))
        job = Job(rule, Recorder(), clock=clock, missed_run_limit=0)
        job.tick()
        clock.set(at(10, 5))
        with pytest.raises(ScheduleError):
            job.tick()


class TestJobCallbackErrors:
    """Callback failures propagate and leave state untouched."""

    def test_error_propagates_and_keeps_last_tick(self, clock):
        calls = []

        def flaky():
            calls.append(1)
            raise RuntimeError("boom")

        job = Job(CronRule("* * * * *"), flaky, clock=clock, missed_run_limit=0)
        job.tick()
        clock.set(at(10, 3, 30))
        with pytest.raises(RuntimeError, match="boom"):
            job.tick()
        assert len(calls) == 1
        assert job.last_tick == at(10, 0)

    def test_retry_after_error_replays_window(self, clock):
        """The next tick re-walks from the unchanged last_tick."""
        state = {"fail": True, "runs": 0}

        def sometimes():
            if state["fail"]:
                raise ValueError("nope")
            state["runs"] += 1

        job = Job(CronRule("* * * * *"), sometimes, clock=clock, missed_run_limit=0)
        job.tick()
        clock.set(at(10, 3, 30))
        with pytest.raises(ValueError):
            job.tick()
        state["fail"] = False
        job.tick()
        assert state["runs"] == 3

    def test_sync_tick_rejects_coroutine_callback(self, clock):
        """tick() refuses callbacks that return awaitables."""

        async def handler():
            pass

        job = Job(CronRule("* * * * *"), handler, clock=clock)
        job.tick()
        clock.set(at(10, 1, 30))
        with pytest.raises(ScheduleError, match="async_tick"):
            job.tick()
        assert job.last_tick == at(10, 0)


class TestJobAsyncTick:
    """Test the awaited variant of the same algorithm."""

    @pytest.mark.asyncio
    async def test_async_baseline(self, clock, every_minute):
        calls = []

        async def handler():
            calls.append(1)

        job = Job(every_minute, handler, clock=clock)
        await job.async_tick()
        assert calls == []
        assert job.last_tick == at(10, 0)

    @pytest.mark.asyncio
    async def test_async_replays_in_order(self, clock, every_minute):
        """Each awaited callback completes before the next starts."""
        events = []

        async def handler():
            occurrence = every_minute.yielded[-1]
            events.append(("start", occurrence))
            await asyncio.sleep(0)
            events.append(("end", occurrence))

        job = Job(every_minute, handler, clock=clock, missed_run_limit=0)
        await job.async_tick()
        clock.set(at(10, 2, 30))
        await job.async_tick()
        assert events == [
            ("start", at(10, 1)),
            ("end", at(10, 1)),
            ("start", at(10, 2)),
            ("end", at(10, 2)),
        ]
        assert job.last_tick == at(10, 2, 30)

    @pytest.mark.asyncio
    async def test_async_respects_limit(self, clock, every_minute, recorder):
        """Plain callbacks work under async_tick too."""
        job = Job(every_minute, recorder, clock=clock)
        await job.async_tick()
        clock.set(at(10, 3, 30))
        await job.async_tick()
        assert recorder.calls == [at(10, 1)]

    @pytest.mark.asyncio
    async def test_async_error_propagates(self, clock):
        async def handler():
            raise RuntimeError("async boom")

        job = Job(CronRule("* * * * *"), handler, clock=clock)
        await job.async_tick()
        clock.set(at(10, 1, 30))
        with pytest.raises(RuntimeError, match="async boom"):
            await job.async_tick()
        assert job.last_tick == at(10, 0)

    @pytest.mark.asyncio
    async def test_cancelled_callback_leaves_last_tick(self, clock):
        """Cancelling mid-walk does not advance last_tick."""
        started = asyncio.Event()
        never = asyncio.Event()

        async def handler():
            started.set()
            await never.wait()

        job = Job(CronRule("* * * * *"), handler, clock=clock)
        await job.async_tick()
        clock.set(at(10, 1, 30))

        task = asyncio.create_task(job.async_tick())
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert job.last_tick == at(10, 0)


class TestJobNextOccurrence:
    def test_next_occurrence_uses_clock(self, clock):
        job = Job(CronRule("*/15 * * * *"), lambda: None, clock=clock)
        assert job.next_occurrence() == at(10, 15)

    def test_next_occurrence_explicit_now(self):
        job = Job(CronRule("0 * * * *"), lambda: None)
        assert job.next_occurrence(at(10, 30)) == at(11, 0)

    def test_next_occurrence_none_when_exhausted(self, clock):
        job = Job(ListRule(at(9, 0)), lambda: None, clock=clock)
        assert job.next_occurrence() is None

    def test_frozen_clock_fixture(self):
        clock = FrozenClock(at(10, 0))
        job = Job(CronRule("* * * * *"), lambda: None, clock=clock)
        assert job.next_occurrence() == at(10, 1)


class TestJobFromSettings:
    """Test the settings-driven constructor."""

    def test_limit_from_environment(self, monkeypatch):
        monkeypatch.setenv("CRONSPINE_MISSED_RUN_LIMIT", "0")
        job = Job.from_settings(CronRule("* * * * *"), lambda: None)
        assert job.missed_run_limit == 0

    def test_explicit_limit_wins(self, monkeypatch):
        monkeypatch.setenv("CRONSPINE_MISSED_RUN_LIMIT", "0")
        job = Job.from_settings(CronRule("* * * * *"), lambda: None, missed_run_limit=3, name="x")
        assert job.missed_run_limit == 3
        assert job.name == "x"
