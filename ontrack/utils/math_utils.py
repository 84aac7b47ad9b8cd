# File: utils/math_utils.py
"""Math and calculation utilities for OnTrack.

Pure Python helpers for progress arithmetic. Every ratio here guards its
denominator, so callers never have to.

Functions:
    - safe_ratio: Division that returns 0.0 for non-positive denominators
    - completion_rate: Actual-vs-expected rate capped at 1.0
    - clamp: Bound a value to a range
    - clamp_target: Coerce a per-period target to a positive integer
    - mean: Average of a sequence, 0.0 when empty
"""

from __future__ import annotations

from collections.abc import Sequence
import logging

# Module-level logger
_LOGGER = logging.getLogger(__name__)


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 when the denominator is zero or negative.

    Examples:
        safe_ratio(1, 4) → 0.25
        safe_ratio(5, 0) → 0.0
    """
    if denominator <= 0:
        return 0.0
    return numerator / denominator


def completion_rate(actual: float, expected: float) -> float:
    """Return ``min(1, actual / expected)``, or 0.0 without a positive expectation.

    Examples:
        completion_rate(30, 90) → 0.333...
        completion_rate(12, 10) → 1.0
        completion_rate(0, 10) → 0.0
    """
    return clamp(safe_ratio(actual, expected), 0.0, 1.0)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
    """
    return max(min_val, min(value, max_val))


def clamp_target(raw_target: object, default: int = 1) -> int:
    """Coerce a per-period completion target to an integer >= 1.

    Non-numeric values fall back to ``default``; values below 1 are raised
    to 1. Both cases are logged since they indicate a policy that skipped
    validation.

    Examples:
        clamp_target(3) → 3
        clamp_target(0) → 1
        clamp_target("abc") → 1
        clamp_target(float("inf")) → 1
    """
    if isinstance(raw_target, bool):
        _LOGGER.warning("Invalid target %r, using %d", raw_target, default)
        return max(1, default)
    try:
        target = int(raw_target)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        _LOGGER.warning("Invalid target %r, using %d", raw_target, default)
        return max(1, default)
    if target < 1:
        _LOGGER.warning("Target %d is below 1, clamping to 1", target)
        return 1
    return target


def mean(values: Sequence[float]) -> float:
    """Return the arithmetic mean, or 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)
