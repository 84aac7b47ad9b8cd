"""Tests for goal_operations.py - snapshot mutations."""

from __future__ import annotations

from collections.abc import Callable
import copy
from datetime import datetime
import logging
from typing import Any

from freezegun import freeze_time
import pytest

from ontrack import const
from ontrack.data_builders import EntityValidationError
from ontrack.goal_operations import (
    add_goal,
    add_task,
    delete_goal,
    delete_task,
    find_goal,
    find_task,
    toggle_completion_days,
    toggle_task_completion,
)

MakeTask = Callable[..., dict[str, Any]]
MakeGoal = Callable[..., dict[str, Any]]


@pytest.fixture
def goals(make_task: MakeTask, make_goal: MakeGoal) -> list[dict[str, Any]]:
    """Two goals, the first with two daily tasks."""
    first = make_goal(
        [
            {**make_task(const.FREQUENCY_DAILY, ["2025-01-10"]), "id": "t1"},
            {**make_task(const.FREQUENCY_WEEKLY, []), "id": "t2"},
        ],
        goal_id="g1",
    )
    second = make_goal([], goal_id="g2")
    return [first, second]


def completions_of(goals: list[dict[str, Any]], goal_id: str, task_id: str) -> list:
    """Return the stored completions of one task."""
    goal = find_goal(goals, goal_id)
    assert goal is not None
    task = find_task(goal, task_id)
    assert task is not None
    return task[const.DATA_TASK_COMPLETIONS]


class TestToggleCompletion:
    """Tests for toggle_completion_days() and toggle_task_completion()."""

    def test_toggle_twice_restores(self, goals: list[dict[str, Any]]) -> None:
        """Toggling the same day twice is a no-op."""
        once = toggle_task_completion(goals, "g1", "t1", "2025-01-15")
        twice = toggle_task_completion(once, "g1", "t1", "2025-01-15")

        assert completions_of(once, "g1", "t1") == ["2025-01-10", "2025-01-15"]
        assert completions_of(twice, "g1", "t1") == ["2025-01-10"]

    def test_time_of_day_ignored(self, goals: list[dict[str, Any]]) -> None:
        """Morning and evening timestamps on one day toggle one entry."""
        added = toggle_task_completion(goals, "g1", "t1", datetime(2025, 1, 15, 8, 0))
        removed = toggle_task_completion(added, "g1", "t1", "2025-01-15T20:00:00")

        assert completions_of(added, "g1", "t1").count("2025-01-15") == 1
        assert completions_of(removed, "g1", "t1") == ["2025-01-10"]

    def test_duplicates_collapse(self) -> None:
        """An untidy history comes back as distinct sorted days."""
        result = toggle_completion_days(
            ["2025-01-03", "2025-01-01", "2025-01-01T09:00:00"], "2025-01-02"
        )
        assert result == ["2025-01-01", "2025-01-02", "2025-01-03"]

    def test_input_not_mutated(self, goals: list[dict[str, Any]]) -> None:
        """The original snapshot is untouched."""
        before = copy.deepcopy(goals)

        result = toggle_task_completion(goals, "g1", "t1", "2025-01-15")

        assert goals == before
        assert result is not goals
        assert result[1] is goals[1]

    @freeze_time("2025-01-15 12:00:00", tz_offset=0)
    def test_defaults_to_today(self, goals: list[dict[str, Any]]) -> None:
        """Without a day, today is toggled."""
        result = toggle_task_completion(goals, "g1", "t2")
        assert completions_of(result, "g1", "t2") == ["2025-01-15"]

    def test_invalid_day_raises(self, goals: list[dict[str, Any]]) -> None:
        """An unrecognizable day is rejected rather than guessed."""
        with pytest.raises(ValueError, match="invalid date"):
            toggle_task_completion(goals, "g1", "t1", "someday")

    def test_stale_ids(
        self, goals: list[dict[str, Any]], caplog: pytest.LogCaptureFixture
    ) -> None:
        """Unknown goal or task ids leave the snapshot unchanged."""
        with caplog.at_level(logging.WARNING):
            missing_goal = toggle_task_completion(goals, "nope", "t1", "2025-01-15")
            missing_task = toggle_task_completion(goals, "g1", "nope", "2025-01-15")

        assert missing_goal == goals
        assert missing_task == goals
        assert "not found" in caplog.text


class TestCreateDelete:
    """Tests for add_goal(), add_task(), delete_task() and delete_goal()."""

    def test_add_goal(self, goals: list[dict[str, Any]]) -> None:
        """New goals are appended with no tasks."""
        result = add_goal(goals, "Read more", target="12 books")

        assert len(result) == 3
        assert len(goals) == 2
        assert result[-1][const.DATA_GOAL_TITLE] == "Read more"
        assert result[-1][const.DATA_GOAL_TARGET] == "12 books"
        assert result[-1][const.DATA_GOAL_SUB_GOALS] == []

    def test_add_goal_explicit_created_at(self, goals: list[dict[str, Any]]) -> None:
        """A supplied creation time is kept."""
        result = add_goal(goals, "Read", created_at="2024-12-01T00:00:00+00:00")
        assert result[-1][const.DATA_GOAL_CREATED_AT] == "2024-12-01T00:00:00+00:00"

    def test_add_goal_requires_title(self, goals: list[dict[str, Any]]) -> None:
        """A blank title is rejected."""
        with pytest.raises(EntityValidationError):
            add_goal(goals, " ")

    def test_add_custom_task(self, goals: list[dict[str, Any]]) -> None:
        """Tasks are appended to the named goal only."""
        result = add_task(
            goals,
            "g2",
            "Workout",
            const.FREQUENCY_CUSTOM,
            {
                const.DATA_CUSTOM_FREQUENCY_PERIOD_TYPE: const.PERIOD_WEEKLY,
                const.DATA_CUSTOM_FREQUENCY_TARGET: 3,
            },
        )

        (task,) = result[1][const.DATA_GOAL_SUB_GOALS]
        assert task[const.DATA_TASK_TITLE] == "Workout"
        assert task[const.DATA_TASK_CUSTOM_FREQUENCY][
            const.DATA_CUSTOM_FREQUENCY_TARGET
        ] == 3
        assert result[0] is goals[0]
        assert goals[1][const.DATA_GOAL_SUB_GOALS] == []

    def test_add_task_invalid_policy(self, goals: list[dict[str, Any]]) -> None:
        """Custom tasks without a policy are rejected."""
        with pytest.raises(EntityValidationError) as err:
            add_task(goals, "g1", "Workout", const.FREQUENCY_CUSTOM)

        assert err.value.error_key == const.ERROR_TASK_CUSTOM_FREQUENCY_REQUIRED

    def test_add_task_unknown_goal(self, goals: list[dict[str, Any]]) -> None:
        """Adding to a missing goal changes nothing."""
        assert add_task(goals, "nope", "Walk", const.FREQUENCY_DAILY) == goals

    def test_delete_task(self, goals: list[dict[str, Any]]) -> None:
        """Only the named task is removed."""
        result = delete_task(goals, "g1", "t1")

        remaining = result[0][const.DATA_GOAL_SUB_GOALS]
        assert [task["id"] for task in remaining] == ["t2"]
        assert len(goals[0][const.DATA_GOAL_SUB_GOALS]) == 2

    def test_delete_goal_removes_tasks(self, goals: list[dict[str, Any]]) -> None:
        """Deleting a goal removes it together with its tasks."""
        result = delete_goal(goals, "g1")

        assert [goal["id"] for goal in result] == ["g2"]
        assert find_goal(result, "g1") is None

    def test_delete_unknown(self, goals: list[dict[str, Any]]) -> None:
        """Deleting stale ids returns an equal snapshot."""
        assert delete_goal(goals, "nope") == goals
        assert delete_task(goals, "g1", "nope") == goals
