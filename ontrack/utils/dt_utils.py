# File: utils/dt_utils.py
"""Date and time utilities for OnTrack.

Pure Python date/time functions shared by every engine. All completion
membership tests, period boundaries and reference-date handling go through
this module so two timestamps on the same calendar day are always treated
as the same day.

Uses standard library: datetime, zoneinfo, and dateutil for month math.

Functions:
    - set_default_timezone / get_default_timezone: Timezone configuration
    - dt_today_local: Get today's date in local timezone
    - dt_now_local / dt_now_utc: Get current datetime
    - as_local / start_of_local_day: Timezone conversion
    - dt_parse_date: Parse date strings
    - dt_parse: Normalize datetime inputs to aware datetimes
    - dt_to_day / dt_day_key / same_day: Day normalization
    - completion_values: Treat a bare value as a one-entry history
    - normalize_completion_days: Deduplicate completions by calendar day
    - week_bounds / month_bounds / period_bounds: Period boundaries
    - shift_period / periods_between: Period arithmetic
    - resolve_reference_day / resolve_reference_datetime: "today" defaults
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities
from dateutil.relativedelta import relativedelta

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# These mirror const.py values but are defined locally for purity.
# ==============================================================================

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"

SUNDAY_WEEKDAY_INDEX = 6
DAYS_PER_WEEK = 7
MILLISECONDS_PER_SECOND = 1000


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this once at startup with the user's timezone. Aware timestamps are
    converted to this zone before their calendar day is taken.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone.

    Returns:
        The configured default timezone (ZoneInfo object)
    """
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Today's date in the specified timezone.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware)."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info)


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Args:
        dt_obj: Datetime object. Naive values are assumed to be UTC.
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(day: date, tz: ZoneInfo | None = None) -> datetime:
    """Get local midnight (00:00:00, timezone-aware) for a calendar day.

    Args:
        day: Calendar date
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime at 00:00:00 of ``day`` in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime(day.year, day.month, day.day, tzinfo=tz_info)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025/04/07"

    Day-month-year and month-day-year forms are ambiguous and rejected.

    Args:
        date_str: Date string to parse, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        return datetime.strptime(date_str, "%Y/%m/%d").date()
    except ValueError:
        return None


def _from_epoch_millis(value: float) -> datetime | None:
    """Convert epoch milliseconds (the legacy store's timestamp) to UTC."""
    try:
        return datetime.fromtimestamp(value / MILLISECONDS_PER_SECOND, UTC)
    except (OverflowError, OSError, ValueError):
        return None


def dt_parse(
    dt_input: str | date | datetime | float | None,
    default_tzinfo: ZoneInfo | None = None,
) -> datetime | None:
    """Normalize various datetime inputs to a timezone-aware datetime.

    Args:
        dt_input: ISO string, date, datetime, epoch milliseconds, or None
        default_tzinfo: Timezone to use if the input is naive
                        (defaults to DEFAULT_TIME_ZONE if None)

    Returns:
        Timezone-aware datetime, or None if the input could not be parsed.
        Plain dates become local midnight.

    Example:
        >>> dt_parse("2025-04-15")
        datetime.datetime(2025, 4, 15, 0, 0, tzinfo=ZoneInfo('UTC'))
    """
    if dt_input is None or dt_input == "" or isinstance(dt_input, bool):
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())
    elif isinstance(dt_input, (int, float)):
        result = _from_epoch_millis(dt_input)
    elif isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input.strip())
        except ValueError:
            parsed_date = dt_parse_date(dt_input.strip())
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, datetime.min.time())
    else:
        return None

    if result is None:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)
    return result


# ==============================================================================
# Day Normalization
# ==============================================================================


def dt_to_day(
    value: str | date | datetime | float | None,
    tz: ZoneInfo | None = None,
) -> date | None:
    """Normalize any date-like value to its calendar day.

    Aware datetimes (and ISO strings with an offset) are converted to the
    local timezone first; naive datetimes keep their own calendar date.
    Epoch milliseconds are read as UTC instants.

    Args:
        value: ISO date/datetime string, date, datetime, epoch millis, or None
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        The calendar day, or None if the value cannot be interpreted.

    Examples:
        dt_to_day("2025-01-01") → date(2025, 1, 1)
        dt_to_day(datetime(2025, 1, 1, 23, 59)) → date(2025, 1, 1)
        dt_to_day("not a date") → None
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return as_local(value, tz).date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            parsed_day = dt_parse_date(text)
            if parsed_day is not None:
                return parsed_day
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            parsed_day = dt_parse_date(text)
            if parsed_day is None:
                _LOGGER.warning("Could not interpret %r as a calendar day", value)
            return parsed_day
        return dt_to_day(parsed, tz)

    if isinstance(value, (int, float)):
        instant = _from_epoch_millis(value)
        if instant is None:
            _LOGGER.warning("Epoch timestamp out of range: %s", value)
            return None
        return as_local(instant, tz).date()

    _LOGGER.warning("Unsupported date value type: %s", type(value).__name__)
    return None


def dt_day_key(value: str | date | datetime | float | None) -> str | None:
    """Return the canonical ISO day key (YYYY-MM-DD) for a date-like value."""
    day = dt_to_day(value)
    return day.isoformat() if day is not None else None


def same_day(
    first: str | date | datetime | float | None,
    second: str | date | datetime | float | None,
) -> bool:
    """Return True when both values fall on the same calendar day.

    Unparseable values never match anything, including each other.
    """
    first_day = dt_to_day(first)
    if first_day is None:
        return False
    return first_day == dt_to_day(second)


def completion_values(
    values: Iterable[str | date | datetime | float] | str | date | float | None,
) -> list[str | date | datetime | float]:
    """Return a completion history as a list of raw entries.

    A bare string, date or number is one completion, not an iterable.

    Examples:
        completion_values(None) → []
        completion_values(1735689600000) → [1735689600000]
        completion_values("2025-01-01") → ["2025-01-01"]
    """
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        return [values]  # type: ignore[list-item]
    return list(values)


def normalize_completion_days(
    values: Iterable[str | date | datetime | float] | str | date | float | None,
) -> set[date]:
    """Collapse a completion history to the set of distinct calendar days.

    Unparseable entries are dropped (dt_to_day logs them).
    """
    days: set[date] = set()
    for value in completion_values(values):
        day = dt_to_day(value)
        if day is not None:
            days.add(day)
    return days


# ==============================================================================
# Period Boundaries
# ==============================================================================


def week_bounds(day: date) -> tuple[date, date]:
    """Return the Sunday-to-Saturday week containing ``day`` (inclusive).

    Examples:
        week_bounds(date(2025, 1, 1)) → (date(2024, 12, 29), date(2025, 1, 4))
    """
    # weekday(): Monday=0 ... Sunday=6, so Sunday maps to offset 0
    offset = (day.weekday() - SUNDAY_WEEKDAY_INDEX) % DAYS_PER_WEEK
    start = day - timedelta(days=offset)
    return start, start + timedelta(days=DAYS_PER_WEEK - 1)


def month_bounds(day: date) -> tuple[date, date]:
    """Return the first and last day of the calendar month containing ``day``."""
    first = day.replace(day=1)
    last = first + relativedelta(months=1) - timedelta(days=1)
    return first, last


def period_bounds(day: date, period_type: str) -> tuple[date, date]:
    """Return the inclusive bounds of the period of ``period_type`` containing ``day``.

    Args:
        day: Any day inside the period
        period_type: PERIOD_DAILY, PERIOD_WEEKLY or PERIOD_MONTHLY

    Returns:
        (start, end) tuple of dates
    """
    if period_type == PERIOD_WEEKLY:
        return week_bounds(day)
    if period_type == PERIOD_MONTHLY:
        return month_bounds(day)
    if period_type != PERIOD_DAILY:
        _LOGGER.warning("Unknown period type %s, treating as daily", period_type)
    return day, day


def shift_period(day: date, period_type: str, delta: int) -> date:
    """Return the start of the period ``delta`` periods away from ``day``'s period.

    Negative ``delta`` walks backward. Month arithmetic uses relativedelta so
    month lengths are respected.

    Examples:
        shift_period(date(2025, 3, 15), PERIOD_MONTHLY, -1) → date(2025, 2, 1)
        shift_period(date(2025, 1, 1), PERIOD_WEEKLY, -1) → date(2024, 12, 22)
    """
    start, _ = period_bounds(day, period_type)
    if period_type == PERIOD_WEEKLY:
        return start + timedelta(weeks=delta)
    if period_type == PERIOD_MONTHLY:
        return start + relativedelta(months=delta)
    return start + timedelta(days=delta)


def periods_between(first_day: date, last_day: date, period_type: str) -> int:
    """Count the periods touched from ``first_day`` to ``last_day`` inclusive.

    Returns 0 when ``last_day`` precedes ``first_day``.

    Examples:
        periods_between(date(2025, 1, 31), date(2025, 2, 1), PERIOD_MONTHLY) → 2
        periods_between(date(2025, 1, 5), date(2025, 1, 11), PERIOD_WEEKLY) → 1
    """
    if last_day < first_day:
        return 0

    first_start, _ = period_bounds(first_day, period_type)
    last_start, _ = period_bounds(last_day, period_type)

    if period_type == PERIOD_WEEKLY:
        return (last_start - first_start).days // DAYS_PER_WEEK + 1
    if period_type == PERIOD_MONTHLY:
        span = relativedelta(last_start, first_start)
        return span.years * 12 + span.months + 1
    return (last_start - first_start).days + 1


# ==============================================================================
# Reference Date Resolution
# ==============================================================================


def resolve_reference_day(
    reference_date: str | date | datetime | float | None = None,
    tz: ZoneInfo | None = None,
) -> date:
    """Resolve an optional reference date to a calendar day.

    This is the only place the query functions consult the wall clock:
    ``None`` means today in the default timezone. An unparseable value also
    falls back to today, with a warning.
    """
    if reference_date is None:
        return dt_today_local(tz)

    day = dt_to_day(reference_date, tz)
    if day is None:
        _LOGGER.warning(
            "Invalid reference date %r, falling back to today", reference_date
        )
        return dt_today_local(tz)
    return day


def resolve_reference_datetime(
    reference_date: str | date | datetime | float | None = None,
    tz: ZoneInfo | None = None,
) -> datetime:
    """Resolve an optional reference date to an aware datetime.

    ``None`` means now. A plain date means local midnight of that day, so
    elapsed-day counts measured against it are whole days.
    """
    if reference_date is None:
        return dt_now_local(tz)

    if isinstance(reference_date, date) and not isinstance(reference_date, datetime):
        return start_of_local_day(reference_date, tz)

    result = dt_parse(reference_date, default_tzinfo=tz)
    if result is None:
        _LOGGER.warning(
            "Invalid reference datetime %r, falling back to now", reference_date
        )
        return dt_now_local(tz)
    return result
