"""Shared fixtures for OnTrack tests."""

from collections.abc import Callable, Generator
from typing import Any
import uuid
from zoneinfo import ZoneInfo

import pytest

from ontrack import const
from ontrack.utils import dt_utils


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Generator[None, None, None]:
    """Run every test in UTC and restore the default afterwards."""
    original = dt_utils.get_default_timezone()
    dt_utils.set_default_timezone(ZoneInfo("UTC"))
    yield
    dt_utils.set_default_timezone(original)


@pytest.fixture
def make_task() -> Callable[..., dict[str, Any]]:
    """Return a factory for task snapshots.

    Usage:
        task = make_task("daily", ["2025-01-01"])
        task = make_task("custom", [], period_type="weekly", target=3)
    """

    def _make_task(
        frequency: str = const.FREQUENCY_DAILY,
        completions: list[Any] | None = None,
        *,
        period_type: str | None = None,
        target: Any = None,
        title: str = "Task",
    ) -> dict[str, Any]:
        task: dict[str, Any] = {
            const.DATA_TASK_ID: str(uuid.uuid4()),
            const.DATA_TASK_TITLE: title,
            const.DATA_TASK_FREQUENCY: frequency,
            const.DATA_TASK_COMPLETIONS: list(completions or []),
        }
        if period_type is not None or target is not None:
            task[const.DATA_TASK_CUSTOM_FREQUENCY] = {
                const.DATA_CUSTOM_FREQUENCY_PERIOD_TYPE: period_type,
                const.DATA_CUSTOM_FREQUENCY_TARGET: target,
            }
        return task

    return _make_task


@pytest.fixture
def make_goal() -> Callable[..., dict[str, Any]]:
    """Return a factory for goal snapshots."""

    def _make_goal(
        tasks: list[dict[str, Any]] | None = None,
        *,
        created_at: Any = "2025-01-01T00:00:00+00:00",
        goal_id: str | None = None,
        title: str = "Goal",
    ) -> dict[str, Any]:
        return {
            const.DATA_GOAL_ID: goal_id or str(uuid.uuid4()),
            const.DATA_GOAL_TITLE: title,
            const.DATA_GOAL_TARGET: None,
            const.DATA_GOAL_CREATED_AT: created_at,
            const.DATA_GOAL_SUB_GOALS: list(tasks or []),
        }

    return _make_goal
