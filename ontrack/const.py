# File: const.py
"""Constants for the OnTrack consistency engine.

This file centralizes data keys, frequency identifiers, iteration caps,
defaults and error keys so the engines, builders and tests agree on a
single vocabulary.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Data Keys
# ------------------------------------------------------------------------------------------------

# Goal
DATA_GOAL_ID = "id"
DATA_GOAL_TITLE = "title"
DATA_GOAL_TARGET = "target"
DATA_GOAL_CREATED_AT = "created_at"
DATA_GOAL_SUB_GOALS = "sub_goals"

# Task (sub-goal)
DATA_TASK_ID = "id"
DATA_TASK_TITLE = "title"
DATA_TASK_FREQUENCY = "frequency"
DATA_TASK_CUSTOM_FREQUENCY = "custom_frequency"
DATA_TASK_COMPLETIONS = "completions"

# Custom frequency policy
DATA_CUSTOM_FREQUENCY_PERIOD_TYPE = "period_type"
DATA_CUSTOM_FREQUENCY_TARGET = "target"

# ------------------------------------------------------------------------------------------------
# Frequencies and Periods
# ------------------------------------------------------------------------------------------------
FREQUENCY_ONCE = "once"
FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_CUSTOM = "custom"

FREQUENCY_OPTIONS = [
    FREQUENCY_ONCE,
    FREQUENCY_DAILY,
    FREQUENCY_WEEKLY,
    FREQUENCY_CUSTOM,
]

PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"

CUSTOM_PERIOD_OPTIONS = [
    PERIOD_WEEKLY,
    PERIOD_MONTHLY,
]

# Weeks start on Sunday (Python weekday(): Monday=0 ... Sunday=6)
SUNDAY_WEEKDAY_INDEX = 6
DAYS_PER_WEEK = 7

# ------------------------------------------------------------------------------------------------
# Iteration Caps
# ------------------------------------------------------------------------------------------------
MAX_DAILY_STREAK_ITERATIONS = 365
MAX_PERIOD_STREAK_ITERATIONS = 104

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_CUSTOM_PERIOD_TYPE = PERIOD_WEEKLY
DEFAULT_CUSTOM_TARGET = 1
DEFAULT_PERIOD_HISTORY_LENGTH = 12
DEFAULT_HEATMAP_OFFSET_DAYS = 120

# Heatmap intensity: counts at or above each threshold reach the next level
HEATMAP_LEVEL_THRESHOLDS = (1, 2, 3, 4)

# ------------------------------------------------------------------------------------------------
# Validation Error Keys
# ------------------------------------------------------------------------------------------------
ERROR_GOAL_TITLE_REQUIRED = "goal_title_required"
ERROR_GOAL_TARGET_INVALID = "goal_target_invalid"
ERROR_GOAL_CREATED_AT_INVALID = "goal_created_at_invalid"
ERROR_TASK_TITLE_REQUIRED = "task_title_required"
ERROR_TASK_FREQUENCY_INVALID = "task_frequency_invalid"
ERROR_TASK_CUSTOM_FREQUENCY_REQUIRED = "task_custom_frequency_required"
ERROR_TASK_CUSTOM_FREQUENCY_UNEXPECTED = "task_custom_frequency_unexpected"
ERROR_TASK_CUSTOM_PERIOD_INVALID = "task_custom_period_invalid"
ERROR_TASK_CUSTOM_TARGET_INVALID = "task_custom_target_invalid"
ERROR_TASK_COMPLETION_INVALID = "task_completion_invalid"
