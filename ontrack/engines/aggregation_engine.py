"""Aggregation Engine - Cross-task folds for heatmaps and goal progress charts.

This engine folds many tasks (across many goals) into the plain maps the
charts render:
- Day → completion count maps (calendar heatmaps)
- Goal → progress fraction maps (radar / overview charts)
- Heatmap windows and intensity levels

ARCHITECTURE: Thin, stateless layer over ConsistencyEngine. It reads the
goal snapshot passed in and returns new dicts; goals are never mutated.
The caller is responsible for passing a consistent snapshot.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, time, timedelta
import math
from typing import TYPE_CHECKING, Any

from dateutil.rrule import DAILY, rrule

from .. import const
from ..utils.dt_utils import (
    as_local,
    dt_parse,
    periods_between,
    resolve_reference_datetime,
    resolve_reference_day,
)
from ..utils.math_utils import completion_rate, mean
from .consistency_engine import ConsistencyEngine, ReferenceDate

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class AggregationEngine:
    """Pure logic engine for multi-task aggregation.

    Expected-completion model used by goal_progress_percentages():
        days = max(1, ceil((reference - created_at) / 1 day))
        - daily:  days
        - weekly: ceil(days / 7)
        - once:   1
        - custom: target × periods elapsed since creation (inclusive)

    A task's rate is min(1, distinct completion days / expected); a goal's
    fraction is the mean rate of its tasks, 0.0 for a goal without tasks.
    """

    # ────────────────────────────────────────────────────────────────
    # Heatmaps
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def completions_by_date(goals: Iterable[Mapping[str, Any]]) -> dict[str, int]:
        """Count completions per day across all recurring tasks of all goals.

        Tasks with frequency "once" are milestones rather than a recurring
        consistency signal and are skipped.

        Returns:
            Dict of ISO day key → number of tasks completed that day, in
            ascending day order.
        """
        tally: Counter[date] = Counter()
        for goal in goals:
            for task in goal.get(const.DATA_GOAL_SUB_GOALS) or []:
                if ConsistencyEngine.get_frequency(task) == const.FREQUENCY_ONCE:
                    continue
                tally.update(ConsistencyEngine.completion_days(task))

        return {day.isoformat(): tally[day] for day in sorted(tally)}

    @staticmethod
    def task_heatmap(task: Mapping[str, Any]) -> dict[str, int]:
        """Return a per-task heatmap: 1 for every completed day, any frequency."""
        return {
            day.isoformat(): 1
            for day in sorted(ConsistencyEngine.completion_days(task))
        }

    @staticmethod
    def heatmap_window(
        reference_date: ReferenceDate = None,
        start_offset_days: int = const.DEFAULT_HEATMAP_OFFSET_DAYS,
    ) -> list[str]:
        """List the ISO day keys a heatmap displays, oldest first.

        The window runs from ``start_offset_days`` before the reference day
        through the reference day itself.
        """
        end_day = resolve_reference_day(reference_date)
        offset = max(0, int(start_offset_days))
        start = datetime.combine(end_day - timedelta(days=offset), time.min)
        until = datetime.combine(end_day, time.min)
        return [
            occurrence.date().isoformat()
            for occurrence in rrule(DAILY, dtstart=start, until=until)
        ]

    @staticmethod
    def heatmap_level(count: int) -> int:
        """Map a day's completion count to an intensity level 0-4.

        Examples:
            heatmap_level(0) → 0
            heatmap_level(2) → 2
            heatmap_level(9) → 4
        """
        thresholds = const.HEATMAP_LEVEL_THRESHOLDS
        return sum(1 for threshold in thresholds if count >= threshold)

    # ────────────────────────────────────────────────────────────────
    # Goal Progress
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def days_since_creation(created_at: datetime, reference: datetime) -> int:
        """Return max(1, ceil(elapsed days)) between creation and reference."""
        elapsed = (reference - created_at) / timedelta(days=1)
        return max(1, math.ceil(elapsed))

    @staticmethod
    def expected_completions(
        task: Mapping[str, Any],
        days_elapsed: int,
        created_day: date,
        reference_day: date,
    ) -> int:
        """Return how many completions the task should have by the reference day."""
        frequency, period_type, target = ConsistencyEngine.resolve_policy(task)

        if frequency == const.FREQUENCY_DAILY:
            return days_elapsed
        if frequency == const.FREQUENCY_WEEKLY:
            return math.ceil(days_elapsed / const.DAYS_PER_WEEK)
        if frequency == const.FREQUENCY_CUSTOM:
            periods = max(1, periods_between(created_day, reference_day, period_type))
            return target * periods
        return 1

    @classmethod
    def goal_progress(
        cls,
        goal: Mapping[str, Any],
        reference: datetime,
    ) -> float:
        """Return one goal's mean task completion rate in [0, 1]."""
        tasks = goal.get(const.DATA_GOAL_SUB_GOALS) or []
        if not tasks:
            return 0.0

        created_at = dt_parse(goal.get(const.DATA_GOAL_CREATED_AT))
        if created_at is None:
            const.LOGGER.warning(
                "Goal %s has invalid created_at %r, measuring from the reference date",
                goal.get(const.DATA_GOAL_ID),
                goal.get(const.DATA_GOAL_CREATED_AT),
            )
            created_at = reference

        days_elapsed = cls.days_since_creation(created_at, reference)
        created_day = as_local(created_at).date()
        reference_day = as_local(reference).date()

        rates = [
            completion_rate(
                len(ConsistencyEngine.completion_days(task)),
                cls.expected_completions(
                    task, days_elapsed, created_day, reference_day
                ),
            )
            for task in tasks
        ]
        return mean(rates)

    @classmethod
    def goal_progress_percentages(
        cls,
        goals: Iterable[Mapping[str, Any]],
        reference_date: ReferenceDate = None,
    ) -> dict[str, float]:
        """Return each goal's progress fraction (radar chart input).

        Args:
            goals: Goal snapshots
            reference_date: Moment to measure against. Defaults to now; a
                            plain date means local midnight of that day.

        Returns:
            Dict of goal id → fraction in [0, 1]. Empty for no goals.
        """
        reference = resolve_reference_datetime(reference_date)
        return {
            goal.get(const.DATA_GOAL_ID): cls.goal_progress(goal, reference)
            for goal in goals
        }

    @staticmethod
    def today_completion_fractions(
        goals: Iterable[Mapping[str, Any]],
        reference_date: ReferenceDate = None,
    ) -> dict[str, float]:
        """Return, per goal, the fraction of its tasks completed on the reference day."""
        day = resolve_reference_day(reference_date)
        fractions: dict[str, float] = {}
        for goal in goals:
            tasks = goal.get(const.DATA_GOAL_SUB_GOALS) or []
            done = sum(
                1 for task in tasks if day in ConsistencyEngine.completion_days(task)
            )
            fractions[goal.get(const.DATA_GOAL_ID)] = (
                done / len(tasks) if tasks else 0.0
            )
        return fractions


# =============================================================================
# Module-level query functions
# =============================================================================


def completions_by_date(goals: Iterable[Mapping[str, Any]]) -> dict[str, int]:
    """Heatmap counts across goals. See AggregationEngine.completions_by_date()."""
    return AggregationEngine.completions_by_date(goals)


def goal_progress_percentages(
    goals: Iterable[Mapping[str, Any]],
    reference_date: ReferenceDate = None,
) -> dict[str, float]:
    """Per-goal progress fractions. See AggregationEngine.goal_progress_percentages()."""
    return AggregationEngine.goal_progress_percentages(goals, reference_date)


def today_completion_fractions(
    goals: Iterable[Mapping[str, Any]],
    reference_date: ReferenceDate = None,
) -> dict[str, float]:
    """Per-goal share of tasks done today. See AggregationEngine.today_completion_fractions()."""
    return AggregationEngine.today_completion_fractions(goals, reference_date)


def task_heatmap(task: Mapping[str, Any]) -> dict[str, int]:
    """Per-task heatmap. See AggregationEngine.task_heatmap()."""
    return AggregationEngine.task_heatmap(task)
