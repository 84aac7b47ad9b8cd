"""Tests for ConsistencyEngine period progress and pending status.

Reference date throughout is Wednesday 2025-01-15, whose Sunday-Saturday
week is 2025-01-12 .. 2025-01-18.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
import logging
from typing import Any

from freezegun import freeze_time
import pytest

from ontrack import const
from ontrack.engines.consistency_engine import (
    ConsistencyEngine,
    is_pending,
    partition_tasks,
    progress_for,
)

REF = date(2025, 1, 15)

MakeTask = Callable[..., dict[str, Any]]


class TestResolvePolicy:
    """Tests for resolve_policy() guards."""

    def test_daily(self, make_task: MakeTask) -> None:
        """Daily tasks evaluate one day with target 1."""
        task = make_task(const.FREQUENCY_DAILY)
        assert ConsistencyEngine.resolve_policy(task) == (
            const.FREQUENCY_DAILY,
            const.PERIOD_DAILY,
            1,
        )

    def test_weekly(self, make_task: MakeTask) -> None:
        """Weekly tasks evaluate one week with target 1."""
        task = make_task(const.FREQUENCY_WEEKLY)
        assert ConsistencyEngine.resolve_policy(task) == (
            const.FREQUENCY_WEEKLY,
            const.PERIOD_WEEKLY,
            1,
        )

    def test_custom(self, make_task: MakeTask) -> None:
        """Custom tasks use their own policy."""
        task = make_task(
            const.FREQUENCY_CUSTOM, period_type=const.PERIOD_MONTHLY, target=4
        )
        assert ConsistencyEngine.resolve_policy(task) == (
            const.FREQUENCY_CUSTOM,
            const.PERIOD_MONTHLY,
            4,
        )

    def test_custom_without_policy(self, make_task: MakeTask) -> None:
        """A custom task with no policy falls back to once per week."""
        task = make_task(const.FREQUENCY_CUSTOM)
        assert ConsistencyEngine.resolve_policy(task) == (
            const.FREQUENCY_CUSTOM,
            const.PERIOD_WEEKLY,
            1,
        )

    def test_unknown_period_type(self, make_task: MakeTask) -> None:
        """An unknown period type is evaluated weekly."""
        task = make_task(const.FREQUENCY_CUSTOM, period_type="yearly", target=2)
        assert ConsistencyEngine.resolve_policy(task)[1] == const.PERIOD_WEEKLY

    def test_unknown_frequency_is_daily(
        self, make_task: MakeTask, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Unknown frequencies are evaluated as daily and reported."""
        task = make_task("hourly")
        with caplog.at_level(logging.WARNING):
            frequency, _, _ = ConsistencyEngine.resolve_policy(task)

        assert frequency == const.FREQUENCY_DAILY
        assert "hourly" in caplog.text


class TestProgressFor:
    """Tests for progress_for()."""

    def test_custom_weekly_target_met(self, make_task: MakeTask) -> None:
        """Three completions anywhere in the week meet a 3-per-week target."""
        task = make_task(
            const.FREQUENCY_CUSTOM,
            ["2025-01-12", "2025-01-14", "2025-01-15"],
            period_type=const.PERIOD_WEEKLY,
            target=3,
        )

        progress = progress_for(task, REF)

        assert progress == {
            "completed": 3,
            "target": 3,
            "achieved": True,
            "period_start": "2025-01-12",
            "period_end": "2025-01-18",
        }
        assert is_pending(task, REF) is False

    def test_custom_weekly_ignores_other_weeks(self, make_task: MakeTask) -> None:
        """Completions from the previous week do not count."""
        task = make_task(
            const.FREQUENCY_CUSTOM,
            ["2025-01-09", "2025-01-10", "2025-01-13"],
            period_type=const.PERIOD_WEEKLY,
            target=3,
        )

        progress = progress_for(task, REF)

        assert progress["completed"] == 1
        assert progress["achieved"] is False
        assert is_pending(task, REF) is True

    def test_custom_monthly(self, make_task: MakeTask) -> None:
        """Monthly policies count the whole calendar month."""
        task = make_task(
            const.FREQUENCY_CUSTOM,
            ["2024-12-31", "2025-01-01", "2025-01-31"],
            period_type=const.PERIOD_MONTHLY,
            target=2,
        )

        progress = progress_for(task, REF)

        assert progress["completed"] == 2
        assert progress["achieved"] is True
        assert progress["period_start"] == "2025-01-01"
        assert progress["period_end"] == "2025-01-31"

    def test_daily_is_binary(self, make_task: MakeTask) -> None:
        """Several timestamps on the reference day count once."""
        task = make_task(
            const.FREQUENCY_DAILY,
            ["2025-01-15T07:00:00", datetime(2025, 1, 15, 21, 0), "2025-01-15"],
        )

        progress = progress_for(task, REF)

        assert progress["completed"] == 1
        assert progress["target"] == 1
        assert progress["period_start"] == progress["period_end"] == "2025-01-15"

    def test_weekly_is_binary(self, make_task: MakeTask) -> None:
        """A weekly task is done with one completion, extra ones are ignored."""
        task = make_task(const.FREQUENCY_WEEKLY, ["2025-01-13", "2025-01-14"])

        progress = progress_for(task, REF)

        assert progress["completed"] == 1
        assert progress["achieved"] is True
        assert progress["period_start"] == "2025-01-12"

    def test_no_completions(self, make_task: MakeTask) -> None:
        """An empty history is zero progress, never an error."""
        task = make_task(const.FREQUENCY_DAILY, [])
        task.pop(const.DATA_TASK_COMPLETIONS)

        progress = progress_for(task, REF)

        assert progress["completed"] == 0
        assert progress["achieved"] is False

    def test_single_epoch_completion(self, make_task: MakeTask) -> None:
        """A bare epoch-ms history counts as one completion."""
        task = make_task(const.FREQUENCY_DAILY)
        task[const.DATA_TASK_COMPLETIONS] = 1736899200000

        assert progress_for(task, REF)["completed"] == 1
        assert is_pending(task, REF) is False

    def test_infinite_target_is_clamped(self, make_task: MakeTask) -> None:
        """A non-finite target falls back to 1 instead of raising."""
        task = make_task(
            const.FREQUENCY_CUSTOM,
            ["2025-01-13"],
            period_type=const.PERIOD_WEEKLY,
            target=float("inf"),
        )

        progress = progress_for(task, REF)

        assert progress["target"] == 1
        assert progress["achieved"] is True
        assert is_pending(task, REF) is False

    def test_zero_target_is_clamped(
        self, make_task: MakeTask, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A target of 0 is treated as 1 instead of trivially achieved."""
        task = make_task(
            const.FREQUENCY_CUSTOM, [], period_type=const.PERIOD_WEEKLY, target=0
        )

        with caplog.at_level(logging.WARNING):
            progress = progress_for(task, REF)

        assert progress["target"] == 1
        assert progress["achieved"] is False
        assert "clamping to 1" in caplog.text

    @freeze_time("2025-01-15 12:00:00", tz_offset=0)
    def test_defaults_to_today(self, make_task: MakeTask) -> None:
        """Without a reference date the current day is evaluated."""
        task = make_task(const.FREQUENCY_DAILY, ["2025-01-15"])

        assert progress_for(task)["achieved"] is True
        assert is_pending(task) is False


class TestIsPending:
    """Tests for is_pending() per frequency."""

    def test_daily_pending_without_todays_completion(
        self, make_task: MakeTask
    ) -> None:
        """Yesterday's completion does not satisfy today."""
        task = make_task(const.FREQUENCY_DAILY, ["2025-01-14"])
        assert is_pending(task, REF) is True

    def test_daily_done_today(self, make_task: MakeTask) -> None:
        """A completion today clears the task."""
        task = make_task(const.FREQUENCY_DAILY, ["2025-01-15"])
        assert is_pending(task, REF) is False

    def test_once_only_checks_reference_day(self, make_task: MakeTask) -> None:
        """Once tasks follow the daily rule."""
        task = make_task(const.FREQUENCY_ONCE, ["2025-01-10"])
        assert is_pending(task, REF) is True
        assert is_pending(task, "2025-01-10") is False

    def test_weekly_done_earlier_in_week(self, make_task: MakeTask) -> None:
        """A completion on Sunday clears the whole week."""
        task = make_task(const.FREQUENCY_WEEKLY, ["2025-01-12"])
        assert is_pending(task, REF) is False
        assert is_pending(task, "2025-01-19") is True


class TestPartitionTasks:
    """Tests for partition_tasks()."""

    def test_split_preserves_order(
        self, make_task: MakeTask, make_goal: Callable[..., dict[str, Any]]
    ) -> None:
        """Tasks are split into pending and completed in their original order."""
        done_daily = make_task(const.FREQUENCY_DAILY, ["2025-01-15"], title="a")
        open_daily = make_task(const.FREQUENCY_DAILY, [], title="b")
        done_weekly = make_task(const.FREQUENCY_WEEKLY, ["2025-01-13"], title="c")
        open_custom = make_task(
            const.FREQUENCY_CUSTOM,
            ["2025-01-13"],
            period_type=const.PERIOD_WEEKLY,
            target=2,
            title="d",
        )
        goal = make_goal([done_daily, open_daily, done_weekly, open_custom])

        pending, completed = partition_tasks(goal, REF)

        assert pending == [open_daily, open_custom]
        assert completed == [done_daily, done_weekly]

    def test_goal_without_tasks(self, make_goal: Callable[..., dict[str, Any]]) -> None:
        """A goal with no tasks has nothing pending."""
        assert partition_tasks(make_goal([]), REF) == ([], [])
