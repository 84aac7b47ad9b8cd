"""Consistency Engine - Pure logic for per-task progress, pending status and streaks.

This engine derives everything the UI shows about a single task from its
frequency policy and completion history:
- Period progress (completed vs target within the current day/week/month)
- Pending decision (does the task still need action this period?)
- Streaks (consecutive achieved periods walking back from a reference day)
- Achieved-period history and longest streak

ARCHITECTURE: Stateless. All methods are static or class methods operating
on the task snapshot passed in; tasks are never mutated. Only the public
entry points resolve a missing reference date to "today"; every helper
below them takes an explicit day.

Period rules:
    - once / daily: the reference day
    - weekly: the Sunday-to-Saturday week containing the reference day
    - custom: the week or month named by the task's custom policy
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..type_defs import PeriodProgress
from ..utils.dt_utils import (
    normalize_completion_days,
    period_bounds,
    resolve_reference_day,
    shift_period,
)
from ..utils.math_utils import clamp_target

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..type_defs import GoalData, TaskData

ReferenceDate = str | date | datetime | float | None


class ConsistencyEngine:
    """Pure logic engine for task-level consistency calculations.

    Example:
        task = {
            "id": "t1",
            "title": "Workout",
            "frequency": "custom",
            "custom_frequency": {"period_type": "weekly", "target": 3},
            "completions": ["2025-01-05", "2025-01-07", "2025-01-09"],
        }
        ConsistencyEngine.progress_for(task, date(2025, 1, 10))
        # {"completed": 3, "target": 3, "achieved": True,
        #  "period_start": "2025-01-05", "period_end": "2025-01-11"}
    """

    # ────────────────────────────────────────────────────────────────
    # Policy Resolution
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def get_frequency(task: Mapping[str, Any]) -> str:
        """Return the task's frequency, treating unknown values as daily."""
        frequency = task.get(const.DATA_TASK_FREQUENCY)
        if frequency in const.FREQUENCY_OPTIONS:
            return frequency
        const.LOGGER.warning(
            "Task %s has unknown frequency %r, evaluating as daily",
            task.get(const.DATA_TASK_ID),
            frequency,
        )
        return const.FREQUENCY_DAILY

    @classmethod
    def resolve_policy(cls, task: Mapping[str, Any]) -> tuple[str, str, int]:
        """Resolve the (frequency, period_type, target) triple for a task.

        Non-custom frequencies have a target of 1. Custom policies that
        skipped validation are guarded here: a missing policy falls back to
        once per week, an unknown period type to weekly, and a target below
        1 is clamped to 1.

        Returns:
            Tuple of frequency, period type (daily/weekly/monthly) and target.
        """
        frequency = cls.get_frequency(task)

        if frequency == const.FREQUENCY_WEEKLY:
            return frequency, const.PERIOD_WEEKLY, 1
        if frequency != const.FREQUENCY_CUSTOM:
            return frequency, const.PERIOD_DAILY, 1

        policy = task.get(const.DATA_TASK_CUSTOM_FREQUENCY)
        if not isinstance(policy, dict):
            const.LOGGER.warning(
                "Custom task %s has no frequency policy, using %d per %s",
                task.get(const.DATA_TASK_ID),
                const.DEFAULT_CUSTOM_TARGET,
                const.DEFAULT_CUSTOM_PERIOD_TYPE,
            )
            return (
                frequency,
                const.DEFAULT_CUSTOM_PERIOD_TYPE,
                const.DEFAULT_CUSTOM_TARGET,
            )

        period_type = policy.get(const.DATA_CUSTOM_FREQUENCY_PERIOD_TYPE)
        if period_type not in const.CUSTOM_PERIOD_OPTIONS:
            const.LOGGER.warning(
                "Custom task %s has unknown period type %r, using %s",
                task.get(const.DATA_TASK_ID),
                period_type,
                const.DEFAULT_CUSTOM_PERIOD_TYPE,
            )
            period_type = const.DEFAULT_CUSTOM_PERIOD_TYPE

        target = clamp_target(
            policy.get(const.DATA_CUSTOM_FREQUENCY_TARGET),
            default=const.DEFAULT_CUSTOM_TARGET,
        )
        return frequency, period_type, target

    @staticmethod
    def completion_days(task: Mapping[str, Any]) -> set[date]:
        """Return the task's distinct completion days."""
        return normalize_completion_days(task.get(const.DATA_TASK_COMPLETIONS))

    @classmethod
    def _completion_days_through(
        cls, task: Mapping[str, Any], day: date
    ) -> set[date]:
        """Return completion days on or before ``day``."""
        days = cls.completion_days(task)
        return {completion for completion in days if completion <= day}

    # ────────────────────────────────────────────────────────────────
    # Period Progress
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def evaluate_period(
        days: set[date],
        frequency: str,
        period_type: str,
        target: int,
        day: date,
    ) -> PeriodProgress:
        """Evaluate progress for the period of ``period_type`` containing ``day``.

        Only custom frequencies count multiple completions per period; all
        other frequencies report binary progress.
        """
        start, end = period_bounds(day, period_type)
        completed = sum(1 for completion in days if start <= completion <= end)
        if frequency != const.FREQUENCY_CUSTOM:
            completed = min(completed, 1)

        return PeriodProgress(
            completed=completed,
            target=target,
            achieved=completed >= target,
            period_start=start.isoformat(),
            period_end=end.isoformat(),
        )

    @classmethod
    def progress_for(
        cls,
        task: Mapping[str, Any],
        reference_date: ReferenceDate = None,
    ) -> PeriodProgress:
        """Calculate the task's progress within the period containing the reference date.

        Args:
            task: Task snapshot
            reference_date: Day to evaluate. Defaults to today (local).

        Returns:
            PeriodProgress with completed count, target, achieved flag and the
            inclusive period bounds as ISO dates.
        """
        day = resolve_reference_day(reference_date)
        frequency, period_type, target = cls.resolve_policy(task)
        return cls.evaluate_period(
            cls.completion_days(task), frequency, period_type, target, day
        )

    @classmethod
    def is_pending(
        cls,
        task: Mapping[str, Any],
        reference_date: ReferenceDate = None,
    ) -> bool:
        """Return True if the task still needs action in the current period.

        daily/once: no completion on the reference day.
        weekly: no completion in the current week.
        custom: the current period's target is not yet met.
        """
        # Every frequency has target 1 except custom, so "not achieved"
        # covers all four rules.
        return not cls.progress_for(task, reference_date)["achieved"]

    @classmethod
    def partition_tasks(
        cls,
        goal: Mapping[str, Any],
        reference_date: ReferenceDate = None,
    ) -> tuple[list[TaskData], list[TaskData]]:
        """Split a goal's tasks into (pending, completed) lists, keeping task order."""
        day = resolve_reference_day(reference_date)
        pending: list[TaskData] = []
        completed: list[TaskData] = []
        for task in goal.get(const.DATA_GOAL_SUB_GOALS) or []:
            if cls.is_pending(task, day):
                pending.append(task)
            else:
                completed.append(task)
        return pending, completed

    # ────────────────────────────────────────────────────────────────
    # Streaks
    # ────────────────────────────────────────────────────────────────

    @classmethod
    def _count_achieved_run(
        cls,
        days: set[date],
        frequency: str,
        period_type: str,
        target: int,
        start_day: date,
        max_iterations: int,
    ) -> int:
        """Count consecutive achieved periods walking backward from ``start_day``."""
        streak = 0
        day = start_day
        while streak < max_iterations:
            progress = cls.evaluate_period(days, frequency, period_type, target, day)
            if not progress["achieved"]:
                return streak
            streak += 1
            day = shift_period(day, period_type, -1)

        const.LOGGER.debug(
            "Streak scan reached the %d-period cap at %s", max_iterations, day
        )
        return streak

    @classmethod
    def streak_for(
        cls,
        task: Mapping[str, Any],
        reference_date: ReferenceDate = None,
    ) -> int:
        """Count consecutive achieved periods ending at the reference date.

        Streak rules:
        - daily: consecutive completed days ending on the reference day
          (capped at 365)
        - weekly: consecutive weeks with at least one completion, starting
          with the current week (capped at 104)
        - custom: consecutive achieved periods; an unachieved current period
          is in progress, so counting starts at the previous period
          (capped at 104)
        - once: 1 if completed on or before the reference day, else 0

        The walk never looks past the reference day.

        Args:
            task: Task snapshot
            reference_date: Anchor day. Defaults to today (local).

        Returns:
            Non-negative streak length.
        """
        day = resolve_reference_day(reference_date)
        frequency, period_type, target = cls.resolve_policy(task)
        days = cls._completion_days_through(task, day)
        if not days:
            return 0

        if frequency == const.FREQUENCY_ONCE:
            return 1

        if frequency == const.FREQUENCY_DAILY:
            streak = 0
            while streak < const.MAX_DAILY_STREAK_ITERATIONS and day in days:
                streak += 1
                day -= timedelta(days=1)
            if streak >= const.MAX_DAILY_STREAK_ITERATIONS:
                const.LOGGER.debug(
                    "Daily streak for task %s capped at %d",
                    task.get(const.DATA_TASK_ID),
                    const.MAX_DAILY_STREAK_ITERATIONS,
                )
            return streak

        start_day = day
        if frequency == const.FREQUENCY_CUSTOM:
            current = cls.evaluate_period(days, frequency, period_type, target, day)
            if not current["achieved"]:
                start_day = shift_period(day, period_type, -1)

        return cls._count_achieved_run(
            days,
            frequency,
            period_type,
            target,
            start_day,
            const.MAX_PERIOD_STREAK_ITERATIONS,
        )

    @classmethod
    def longest_streak(
        cls,
        task: Mapping[str, Any],
        reference_date: ReferenceDate = None,
    ) -> int:
        """Return the longest run of consecutive achieved periods up to the reference date.

        Unlike streak_for(), the run may end anywhere in the history. Only
        completions on or before the reference day are considered.
        """
        day = resolve_reference_day(reference_date)
        frequency, period_type, target = cls.resolve_policy(task)
        days = cls._completion_days_through(task, day)
        if not days:
            return 0
        if frequency == const.FREQUENCY_ONCE:
            return 1

        # Achieved period starts, in order
        if frequency == const.FREQUENCY_CUSTOM:
            tally = Counter(period_bounds(d, period_type)[0] for d in days)
            achieved = sorted(
                start for start, count in tally.items() if count >= target
            )
        else:
            achieved = sorted({period_bounds(d, period_type)[0] for d in days})

        longest = 0
        run = 0
        previous: date | None = None
        for start in achieved:
            if previous is not None and shift_period(previous, period_type, 1) == start:
                run += 1
            else:
                run = 1
            longest = max(longest, run)
            previous = start
        return longest

    # ────────────────────────────────────────────────────────────────
    # Period History
    # ────────────────────────────────────────────────────────────────

    @classmethod
    def period_history(
        cls,
        task: Mapping[str, Any],
        reference_date: ReferenceDate = None,
        periods: int = const.DEFAULT_PERIOD_HISTORY_LENGTH,
    ) -> list[PeriodProgress]:
        """Return progress for the last ``periods`` periods, oldest first.

        The final entry is the period containing the reference date. The
        count is clamped to the streak iteration cap for the task's period
        size.
        """
        day = resolve_reference_day(reference_date)
        frequency, period_type, target = cls.resolve_policy(task)
        days = cls.completion_days(task)

        cap = (
            const.MAX_DAILY_STREAK_ITERATIONS
            if period_type == const.PERIOD_DAILY
            else const.MAX_PERIOD_STREAK_ITERATIONS
        )
        count = max(1, min(int(periods), cap))

        return [
            cls.evaluate_period(
                days,
                frequency,
                period_type,
                target,
                shift_period(day, period_type, -offset),
            )
            for offset in range(count - 1, -1, -1)
        ]


# =============================================================================
# Module-level query functions
# =============================================================================


def progress_for(
    task: Mapping[str, Any], reference_date: ReferenceDate = None
) -> PeriodProgress:
    """Period progress for a task. See ConsistencyEngine.progress_for()."""
    return ConsistencyEngine.progress_for(task, reference_date)


def is_pending(task: Mapping[str, Any], reference_date: ReferenceDate = None) -> bool:
    """Pending decision for a task. See ConsistencyEngine.is_pending()."""
    return ConsistencyEngine.is_pending(task, reference_date)


def streak_for(task: Mapping[str, Any], reference_date: ReferenceDate = None) -> int:
    """Current streak for a task. See ConsistencyEngine.streak_for()."""
    return ConsistencyEngine.streak_for(task, reference_date)


def longest_streak(
    task: Mapping[str, Any], reference_date: ReferenceDate = None
) -> int:
    """Longest streak for a task. See ConsistencyEngine.longest_streak()."""
    return ConsistencyEngine.longest_streak(task, reference_date)


def period_history(
    task: Mapping[str, Any],
    reference_date: ReferenceDate = None,
    periods: int = const.DEFAULT_PERIOD_HISTORY_LENGTH,
) -> list[PeriodProgress]:
    """Achieved-period history for a task. See ConsistencyEngine.period_history()."""
    return ConsistencyEngine.period_history(task, reference_date, periods)


def partition_tasks(
    goal: GoalData | Mapping[str, Any], reference_date: ReferenceDate = None
) -> tuple[list[TaskData], list[TaskData]]:
    """Pending/completed split of a goal's tasks. See ConsistencyEngine.partition_tasks()."""
    return ConsistencyEngine.partition_tasks(goal, reference_date)
