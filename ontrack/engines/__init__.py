"""Engine modules for OnTrack.

Contains the stateless computation engines:
- consistency_engine: Per-task period progress, pending decision, streaks
- aggregation_engine: Heatmap counts and per-goal progress fractions
"""

# Use relative imports within package to avoid mypy module resolution issues
from .aggregation_engine import (
    AggregationEngine,
    completions_by_date,
    goal_progress_percentages,
    task_heatmap,
    today_completion_fractions,
)
from .consistency_engine import (
    ConsistencyEngine,
    is_pending,
    longest_streak,
    partition_tasks,
    period_history,
    progress_for,
    streak_for,
)

__all__ = [
    "AggregationEngine",
    "ConsistencyEngine",
    "completions_by_date",
    "goal_progress_percentages",
    "is_pending",
    "longest_streak",
    "partition_tasks",
    "period_history",
    "progress_for",
    "streak_for",
    "task_heatmap",
    "today_completion_fractions",
]
