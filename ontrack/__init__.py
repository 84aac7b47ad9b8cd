# File: __init__.py
"""OnTrack: goal and habit consistency tracking.

Goals hold tasks (sub-goals) with a frequency policy and a completion
history. This package answers the questions the UI asks of that data:

Key Features:
- Period progress and pending status per task.
- Current and longest streaks.
- Completion heatmaps and per-goal progress fractions.
- Validated building of goals and tasks, and snapshot mutations.

Every query function is pure: it takes the goals or tasks to inspect and an
optional reference date (today when omitted) and returns new values.
"""

from __future__ import annotations

from .data_builders import (
    EntityValidationError,
    build_goal,
    build_task,
    validate_goal_data,
    validate_task_data,
)
from .engines import (
    AggregationEngine,
    ConsistencyEngine,
    completions_by_date,
    goal_progress_percentages,
    is_pending,
    longest_streak,
    partition_tasks,
    period_history,
    progress_for,
    streak_for,
    task_heatmap,
    today_completion_fractions,
)
from .goal_operations import (
    add_goal,
    add_task,
    delete_goal,
    delete_task,
    toggle_task_completion,
)
from .utils.dt_utils import get_default_timezone, set_default_timezone

__all__ = [
    "AggregationEngine",
    "ConsistencyEngine",
    "EntityValidationError",
    "add_goal",
    "add_task",
    "build_goal",
    "build_task",
    "completions_by_date",
    "delete_goal",
    "delete_task",
    "get_default_timezone",
    "goal_progress_percentages",
    "is_pending",
    "longest_streak",
    "partition_tasks",
    "period_history",
    "progress_for",
    "set_default_timezone",
    "streak_for",
    "task_heatmap",
    "today_completion_fractions",
    "toggle_task_completion",
    "validate_goal_data",
    "validate_task_data",
]
