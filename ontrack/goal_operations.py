# File: goal_operations.py
"""Goal and task lifecycle operations on in-memory snapshots.

These are the mutations the goal store applies on behalf of the UI:
create goal, create task, toggle a day's completion, delete task, delete
goal. Each takes the current list of goals and returns a NEW list; the
input list and the dicts inside it are never modified, so the store can
swap snapshots atomically and the engines always see a consistent one.

Creation goes through data_builders, so invalid input raises
EntityValidationError here. A stale goal or task id is logged and the
snapshot is returned unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from . import const
from .data_builders import build_goal, build_task, normalize_completions
from .type_defs import GoalData, TaskData
from .utils.dt_utils import dt_to_day, dt_today_local, normalize_completion_days

# ==============================================================================
# Lookups
# ==============================================================================


def find_goal(goals: Sequence[GoalData], goal_id: str) -> GoalData | None:
    """Return the goal with ``goal_id``, or None."""
    for goal in goals:
        if goal.get(const.DATA_GOAL_ID) == goal_id:
            return goal
    return None


def find_task(goal: GoalData, task_id: str) -> TaskData | None:
    """Return the goal's task with ``task_id``, or None."""
    for task in goal.get(const.DATA_GOAL_SUB_GOALS) or []:
        if task.get(const.DATA_TASK_ID) == task_id:
            return task
    return None


# ==============================================================================
# Completion Toggling
# ==============================================================================


def toggle_completion_days(
    completions: Sequence[Any] | None,
    day: str | date | datetime,
) -> list[str]:
    """Toggle one calendar day in a completion history.

    Symmetric difference: a day already present is removed, an absent day
    is added. Time of day is ignored, so two timestamps on the same day
    toggle the same entry.

    Returns:
        Sorted, distinct ISO day keys.

    Raises:
        ValueError: If ``day`` is not a recognizable date.
    """
    target_day = dt_to_day(day)
    if target_day is None:
        raise ValueError(f"Cannot toggle completion for invalid date: {day!r}")

    days = normalize_completion_days(completions)
    days ^= {target_day}
    return normalize_completions(days)


def _replace_goal(
    goals: Sequence[GoalData], goal_id: str, new_goal: GoalData | None
) -> list[GoalData]:
    """Return goals with ``goal_id`` replaced by ``new_goal`` (or removed if None)."""
    result: list[GoalData] = []
    for goal in goals:
        if goal.get(const.DATA_GOAL_ID) != goal_id:
            result.append(goal)
        elif new_goal is not None:
            result.append(new_goal)
    return result


def toggle_task_completion(
    goals: Sequence[GoalData],
    goal_id: str,
    task_id: str,
    day: str | date | datetime | None = None,
) -> list[GoalData]:
    """Toggle a task's completion for a day (today if not given).

    Returns:
        New goals list with the updated task.

    Raises:
        ValueError: If ``day`` is not a recognizable date.
    """
    goal = find_goal(goals, goal_id)
    task = find_task(goal, task_id) if goal is not None else None
    if goal is None or task is None:
        const.LOGGER.warning(
            "Toggle skipped: goal '%s' or task '%s' not found", goal_id, task_id
        )
        return list(goals)

    target_day = dt_today_local() if day is None else day
    new_task: TaskData = {
        **task,
        const.DATA_TASK_COMPLETIONS: toggle_completion_days(
            task.get(const.DATA_TASK_COMPLETIONS), target_day
        ),
    }
    new_goal: GoalData = {
        **goal,
        const.DATA_GOAL_SUB_GOALS: [
            new_task if existing.get(const.DATA_TASK_ID) == task_id else existing
            for existing in goal.get(const.DATA_GOAL_SUB_GOALS) or []
        ],
    }
    return _replace_goal(goals, goal_id, new_goal)


# ==============================================================================
# Create / Delete
# ==============================================================================


def add_goal(
    goals: Sequence[GoalData],
    title: str,
    target: str | None = None,
    created_at: str | datetime | float | None = None,
) -> list[GoalData]:
    """Append a new goal with no tasks.

    Raises:
        EntityValidationError: If the title is empty or the target invalid.
    """
    user_input: dict[str, Any] = {
        const.DATA_GOAL_TITLE: title,
        const.DATA_GOAL_TARGET: target,
    }
    if created_at is not None:
        user_input[const.DATA_GOAL_CREATED_AT] = created_at
    return [*goals, build_goal(user_input)]


def add_task(
    goals: Sequence[GoalData],
    goal_id: str,
    title: str,
    frequency: str,
    custom_frequency: dict[str, Any] | None = None,
) -> list[GoalData]:
    """Append a new task to a goal.

    Raises:
        EntityValidationError: If the title, frequency or custom policy is invalid.
    """
    goal = find_goal(goals, goal_id)
    if goal is None:
        const.LOGGER.warning("Add task skipped: goal '%s' not found", goal_id)
        return list(goals)

    user_input: dict[str, Any] = {
        const.DATA_TASK_TITLE: title,
        const.DATA_TASK_FREQUENCY: frequency,
    }
    if custom_frequency is not None:
        user_input[const.DATA_TASK_CUSTOM_FREQUENCY] = custom_frequency

    new_goal: GoalData = {
        **goal,
        const.DATA_GOAL_SUB_GOALS: [
            *(goal.get(const.DATA_GOAL_SUB_GOALS) or []),
            build_task(user_input),
        ],
    }
    return _replace_goal(goals, goal_id, new_goal)


def delete_task(
    goals: Sequence[GoalData], goal_id: str, task_id: str
) -> list[GoalData]:
    """Remove a task from a goal."""
    goal = find_goal(goals, goal_id)
    if goal is None or find_task(goal, task_id) is None:
        const.LOGGER.warning(
            "Delete skipped: goal '%s' or task '%s' not found", goal_id, task_id
        )
        return list(goals)

    new_goal: GoalData = {
        **goal,
        const.DATA_GOAL_SUB_GOALS: [
            task
            for task in goal.get(const.DATA_GOAL_SUB_GOALS) or []
            if task.get(const.DATA_TASK_ID) != task_id
        ],
    }
    return _replace_goal(goals, goal_id, new_goal)


def delete_goal(goals: Sequence[GoalData], goal_id: str) -> list[GoalData]:
    """Remove a goal and, with it, all of its tasks."""
    if find_goal(goals, goal_id) is None:
        const.LOGGER.warning("Delete skipped: goal '%s' not found", goal_id)
        return list(goals)
    return _replace_goal(goals, goal_id, None)
