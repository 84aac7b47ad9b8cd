"""Entity building and validation for goals and tasks.

This module is the SINGLE SOURCE OF TRUTH for:
- Entity field defaults
- Business rule validation at the write boundary
- Complete entity structure building

### Build Functions
Each entity type has a `build_<entity>()` function that:
- Takes user input (DATA_* keys) and, for updates, the existing entity
- Keeps a provided id, or generates one (UUID) for new entities
- Sets created_at for new goals
- Normalizes completion histories to sorted, distinct ISO day keys
- Returns a complete entity dict; input dicts are never mutated

### Validation Functions
Each entity type has a `validate_<entity>_data()` function that:
- Performs business rule validation
- Returns dict of errors {field: error_key} (empty if valid)

The query engines never raise on malformed policies (they clamp); this
module is where such input is rejected.
"""

from __future__ import annotations

from typing import Any
import uuid

import voluptuous as vol

from . import const
from .type_defs import CustomFrequencyData, GoalData, TaskData
from .utils.dt_utils import (
    completion_values,
    dt_day_key,
    dt_now_utc,
    dt_parse,
    normalize_completion_days,
)

# ==============================================================================
# SCHEMAS
# ==============================================================================


def _positive_int(value: Any) -> int:
    """Coerce a per-period target to int, rejecting booleans and values below 1."""
    if isinstance(value, bool):
        raise vol.Invalid("Target must be a number")
    target = vol.Coerce(int)(value)
    if target < 1:
        raise vol.Invalid("Target must be at least 1")
    return target


CUSTOM_FREQUENCY_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_CUSTOM_FREQUENCY_PERIOD_TYPE): vol.In(
            const.CUSTOM_PERIOD_OPTIONS
        ),
        vol.Required(const.DATA_CUSTOM_FREQUENCY_TARGET): _positive_int,
    },
    extra=vol.REMOVE_EXTRA,
)


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised when business rule validation fails while building a goal or
    task. The field attribute lets the caller highlight the offending input.

    Attributes:
        field: The DATA_* key of the field that failed
        error_key: The ERROR_* constant describing the failure
        placeholders: Optional dict for message placeholders

    Example:
        raise EntityValidationError(
            field=const.DATA_TASK_TITLE,
            error_key=const.ERROR_TASK_TITLE_REQUIRED,
        )
    """

    def __init__(
        self,
        field: str,
        error_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError.

        Args:
            field: The DATA_* key for the field that failed validation
            error_key: The ERROR_* constant for the failure
            placeholders: Optional dict for message placeholders
        """
        self.field = field
        self.error_key = error_key
        self.placeholders = placeholders or {}
        super().__init__(error_key)


# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _normalize_title(value: Any) -> str:
    """Strip a title, treating None and non-strings as empty."""
    return value.strip() if isinstance(value, str) else ""


def normalize_completions(values: Any) -> list[str]:
    """Return completions as sorted, distinct ISO day keys.

    A bare string, date or number is treated as a single completion.
    """
    return [day.isoformat() for day in sorted(normalize_completion_days(values))]


def _custom_frequency_error(policy: Any) -> str | None:
    """Return the ERROR_* key for an invalid custom policy, or None if valid."""
    if not isinstance(policy, dict):
        return const.ERROR_TASK_CUSTOM_FREQUENCY_REQUIRED
    try:
        CUSTOM_FREQUENCY_SCHEMA(policy)
    except vol.MultipleInvalid as err:
        path = err.errors[0].path
        if path and path[0] == const.DATA_CUSTOM_FREQUENCY_PERIOD_TYPE:
            return const.ERROR_TASK_CUSTOM_PERIOD_INVALID
        return const.ERROR_TASK_CUSTOM_TARGET_INVALID
    return None


# ==============================================================================
# TASKS
# ==============================================================================


def validate_task_data(data: dict[str, Any]) -> dict[str, str]:
    """Validate task business rules.

    Args:
        data: Task data dict with DATA_TASK_* keys

    Returns:
        Dict of errors: {field: error_key}
        Empty dict means validation passed.

    Validation Rules:
        1. Title not empty
        2. Frequency is one of once/daily/weekly/custom
        3. Custom frequency has a policy with a valid period type and a
           target >= 1; other frequencies carry no policy
        4. Every completion is a recognizable date
    """
    errors: dict[str, str] = {}

    # === 1. Title ===
    if not _normalize_title(data.get(const.DATA_TASK_TITLE)):
        errors[const.DATA_TASK_TITLE] = const.ERROR_TASK_TITLE_REQUIRED
        return errors

    # === 2. Frequency ===
    frequency = data.get(const.DATA_TASK_FREQUENCY)
    if frequency not in const.FREQUENCY_OPTIONS:
        errors[const.DATA_TASK_FREQUENCY] = const.ERROR_TASK_FREQUENCY_INVALID
        return errors

    # === 3. Custom policy ===
    policy = data.get(const.DATA_TASK_CUSTOM_FREQUENCY)
    if frequency == const.FREQUENCY_CUSTOM:
        policy_error = _custom_frequency_error(policy)
        if policy_error:
            errors[const.DATA_TASK_CUSTOM_FREQUENCY] = policy_error
            return errors
    elif policy is not None:
        errors[const.DATA_TASK_CUSTOM_FREQUENCY] = (
            const.ERROR_TASK_CUSTOM_FREQUENCY_UNEXPECTED
        )
        return errors

    # === 4. Completions ===
    for completion in completion_values(data.get(const.DATA_TASK_COMPLETIONS)):
        if dt_day_key(completion) is None:
            errors[const.DATA_TASK_COMPLETIONS] = const.ERROR_TASK_COMPLETION_INVALID
            return errors

    return errors


def build_task(
    user_input: dict[str, Any],
    existing: TaskData | None = None,
) -> TaskData:
    """Build task data for create or update operations.

    One function handles both create (existing=None) and update
    (existing=TaskData). Switching an existing task away from "custom"
    drops its policy.

    Args:
        user_input: Data with DATA_TASK_* keys (may have missing fields)
        existing: None for create, existing TaskData for update

    Returns:
        Complete TaskData ready for the goal store

    Raises:
        EntityValidationError: If any validation rule fails

    Examples:
        # CREATE mode - generates UUID, defaults to daily with no completions
        task = build_task({DATA_TASK_TITLE: "Take creatine"})

        # UPDATE mode - preserves fields not in user_input
        task = build_task({DATA_TASK_TITLE: "Stretch"}, existing=old_task)
    """

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    frequency = get_field(const.DATA_TASK_FREQUENCY, const.FREQUENCY_DAILY)
    policy = (
        get_field(const.DATA_TASK_CUSTOM_FREQUENCY, None)
        if frequency == const.FREQUENCY_CUSTOM
        else user_input.get(const.DATA_TASK_CUSTOM_FREQUENCY)
    )

    merged: dict[str, Any] = {
        const.DATA_TASK_TITLE: get_field(const.DATA_TASK_TITLE, ""),
        const.DATA_TASK_FREQUENCY: frequency,
        const.DATA_TASK_COMPLETIONS: get_field(const.DATA_TASK_COMPLETIONS, []),
    }
    if policy is not None:
        merged[const.DATA_TASK_CUSTOM_FREQUENCY] = policy

    errors = validate_task_data(merged)
    if errors:
        field, error_key = next(iter(errors.items()))
        raise EntityValidationError(field=field, error_key=error_key)

    task_id = get_field(const.DATA_TASK_ID, None) or str(uuid.uuid4())

    task = TaskData(
        id=str(task_id),
        title=_normalize_title(merged[const.DATA_TASK_TITLE]),
        frequency=frequency,
        completions=normalize_completions(merged[const.DATA_TASK_COMPLETIONS]),
    )
    if frequency == const.FREQUENCY_CUSTOM:
        validated = CUSTOM_FREQUENCY_SCHEMA(policy)
        task[const.DATA_TASK_CUSTOM_FREQUENCY] = CustomFrequencyData(
            period_type=validated[const.DATA_CUSTOM_FREQUENCY_PERIOD_TYPE],
            target=validated[const.DATA_CUSTOM_FREQUENCY_TARGET],
        )
    return task


# ==============================================================================
# GOALS
# ==============================================================================


def validate_goal_data(data: dict[str, Any]) -> dict[str, str]:
    """Validate goal business rules.

    Returns:
        Dict of errors: {field: error_key}
        Empty dict means validation passed.

    Validation Rules:
        1. Title not empty
        2. Target, if given, is a string
        3. created_at, if given, is a recognizable timestamp
    """
    errors: dict[str, str] = {}

    if not _normalize_title(data.get(const.DATA_GOAL_TITLE)):
        errors[const.DATA_GOAL_TITLE] = const.ERROR_GOAL_TITLE_REQUIRED
        return errors

    target = data.get(const.DATA_GOAL_TARGET)
    if target is not None and not isinstance(target, str):
        errors[const.DATA_GOAL_TARGET] = const.ERROR_GOAL_TARGET_INVALID
        return errors

    created_at = data.get(const.DATA_GOAL_CREATED_AT)
    if created_at is not None and dt_parse(created_at) is None:
        errors[const.DATA_GOAL_CREATED_AT] = const.ERROR_GOAL_CREATED_AT_INVALID
        return errors

    return errors


def build_goal(
    user_input: dict[str, Any],
    existing: GoalData | None = None,
) -> GoalData:
    """Build goal data for create or update operations.

    Sub-goals given in user_input are each passed through build_task().

    Args:
        user_input: Data with DATA_GOAL_* keys (may have missing fields)
        existing: None for create, existing GoalData for update

    Returns:
        Complete GoalData ready for the goal store

    Raises:
        EntityValidationError: If goal or task validation fails

    Examples:
        # CREATE mode - generates UUID and created_at (now, UTC)
        goal = build_goal({DATA_GOAL_TITLE: "Gain weight", DATA_GOAL_TARGET: "200 lbs"})
    """

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    merged: dict[str, Any] = {
        const.DATA_GOAL_TITLE: get_field(const.DATA_GOAL_TITLE, ""),
        const.DATA_GOAL_TARGET: get_field(const.DATA_GOAL_TARGET, None),
        const.DATA_GOAL_CREATED_AT: get_field(const.DATA_GOAL_CREATED_AT, None),
    }

    errors = validate_goal_data(merged)
    if errors:
        field, error_key = next(iter(errors.items()))
        raise EntityValidationError(field=field, error_key=error_key)

    target = merged[const.DATA_GOAL_TARGET]
    target = (target.strip() or None) if isinstance(target, str) else None

    created_at = dt_parse(merged[const.DATA_GOAL_CREATED_AT]) or dt_now_utc()

    if const.DATA_GOAL_SUB_GOALS in user_input:
        sub_goals = [
            build_task(task) for task in user_input[const.DATA_GOAL_SUB_GOALS] or []
        ]
    elif existing is not None:
        sub_goals = list(existing.get(const.DATA_GOAL_SUB_GOALS, []))
    else:
        sub_goals = []

    goal_id = get_field(const.DATA_GOAL_ID, None) or str(uuid.uuid4())

    return GoalData(
        id=str(goal_id),
        title=_normalize_title(merged[const.DATA_GOAL_TITLE]),
        target=target,
        created_at=created_at.isoformat(),
        sub_goals=sub_goals,
    )
