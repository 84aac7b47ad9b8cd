"""Type definitions for OnTrack data structures.

Goals and tasks travel as plain dicts so snapshots coming from the goal
store can be passed straight in. TypedDict documents their shape for static
analysis only; runtime guards (``.get()`` defaults, normalization) live in
the engines and builders.

IMPORTANT: This file must NOT import from the engines or builders.
Only import from typing.
"""

from typing import Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

GoalId = str  # UUID string
TaskId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"

Frequency = Literal["once", "daily", "weekly", "custom"]
CustomPeriodType = Literal["weekly", "monthly"]


# =============================================================================
# Entity Types
# =============================================================================


class CustomFrequencyData(TypedDict):
    """Custom frequency policy: complete ``target`` times per period."""

    period_type: CustomPeriodType
    target: int


class TaskData(TypedDict):
    """Type definition for a task (sub-goal) of a goal.

    ``completions`` holds ISO day keys, one per completed calendar day.
    """

    id: TaskId
    title: str
    frequency: Frequency
    custom_frequency: NotRequired[CustomFrequencyData]  # Only for "custom"
    completions: list[ISODate]


class GoalData(TypedDict):
    """Type definition for a goal owning its tasks."""

    id: GoalId
    title: str
    target: str | None
    created_at: ISODatetime
    sub_goals: list[TaskData]


# =============================================================================
# Engine Result Types
# =============================================================================


class PeriodProgress(TypedDict):
    """Progress of a task within one period.

    Returned by ConsistencyEngine.progress_for() and period_history().
    """

    completed: int
    target: int
    achieved: bool
    period_start: ISODate
    period_end: ISODate
