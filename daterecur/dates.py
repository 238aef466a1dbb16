"""Date-only helpers used by the rule matchers and the enumerator.

Every value handled by daterecur is a plain ``datetime.date``: time of day
and timezone are dropped on the way in, so comparisons never depend on the
offset a caller's value carried. Weeks start on Sunday (day 0).

Parsing, name lookup and month arithmetic come from dateutil.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from . import constants
from .errors import ValidationError

_PARSER_INFO = date_parser.parserinfo()

DAY = "day"
WEEK = "week"
MONTH = "month"
YEAR = "year"

_UNIT_NAMES = {
    "day": DAY,
    "days": DAY,
    "week": WEEK,
    "weeks": WEEK,
    "month": MONTH,
    "months": MONTH,
    "year": YEAR,
    "years": YEAR,
}


def to_date(value: Any) -> date:
    """
    Normalize a date-like value to a date-only value.

    Args:
        value: date, datetime (its own wall-clock date is kept), string in any
            format dateutil understands, or a POSIX timestamp in seconds (UTC)

    Returns:
        Calendar date with no time or timezone

    Raises:
        ValidationError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Invalid date supplied: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError) as e:
            raise ValidationError(f"Invalid date supplied: {value!r}") from e
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValidationError("Invalid date supplied: empty string")
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return date_parser.parse(text).date()
        except (ValueError, OverflowError) as e:
            raise ValidationError(f"Invalid date supplied: {value!r}") from e
    raise ValidationError(f"Invalid date supplied: {value!r}")


def to_optional_date(value: Any) -> Optional[date]:
    """Like to_date, but passes None through."""
    if value is None:
        return None
    return to_date(value)


def format_date(d: date, fmt: Optional[str] = None) -> str:
    """Render a date with a strftime format (ISO 8601 by default)."""
    if fmt is None or fmt == constants.ISO_FORMAT:
        return d.isoformat()
    return d.strftime(fmt)


# ----------------------------------------------------------------------------
# Field extraction
# ----------------------------------------------------------------------------


def day_of_week(d: date) -> int:
    """Day of week with Sunday = 0 and Saturday = 6."""
    return (d.weekday() + 1) % constants.DAYS_PER_WEEK


def month_of_year(d: date) -> int:
    """Zero-indexed month (January = 0)."""
    return d.month - 1


def days_in_month(d: date) -> int:
    """Number of days in the month containing d."""
    first_of_next = start_of_month(d) + relativedelta(months=1)
    return (first_of_next - timedelta(days=1)).day


def start_of_month(d: date) -> date:
    return d.replace(day=1)


def start_of_week(d: date) -> date:
    """Sunday on or before d."""
    return d - timedelta(days=day_of_week(d))


def week_of_year(d: date) -> int:
    """
    US-style week number: week 1 is the Sunday-started week containing 1 January.

    The last days of December belong to week 1 of the following year when
    their week contains 1 January.
    """
    saturday = start_of_week(d) + timedelta(days=constants.DAYS_PER_WEEK - 1)
    return (saturday.timetuple().tm_yday - 1) // constants.DAYS_PER_WEEK + 1


def week_of_month(d: date) -> int:
    """
    Zero-indexed week of the month.

    Counts the week starts between the week containing the first of the month
    and the week containing d.
    """
    week0 = start_of_week(start_of_month(d))
    return (start_of_week(d) - week0).days // constants.DAYS_PER_WEEK


def week_of_month_by_weekday(d: date) -> int:
    """
    Zero-indexed occurrence of d's weekday within its month.

    A return value of 2 means d is the 3rd such weekday of the month. Differs
    from week_of_month when the month's leading partial week does not contain
    d's weekday.
    """
    weeks = week_of_month(d)
    if (d - timedelta(weeks=weeks)).month == d.month:
        return weeks
    return weeks - 1


# ----------------------------------------------------------------------------
# Arithmetic
# ----------------------------------------------------------------------------


def _unit(unit: str) -> str:
    try:
        return _UNIT_NAMES[unit]
    except KeyError:
        raise ValidationError(f"Unknown date unit: {unit}") from None


def add(d: date, amount: int, unit: str) -> date:
    """Add amount of unit to d (month and year steps clamp to month end)."""
    unit = _unit(unit)
    if unit == DAY:
        return d + timedelta(days=amount)
    if unit == WEEK:
        return d + timedelta(weeks=amount)
    if unit == MONTH:
        return d + relativedelta(months=amount)
    return d + relativedelta(years=amount)


def difference(later: date, earlier: date, unit: str) -> float:
    """
    Real-valued difference ``later - earlier`` measured in unit.

    Month and year differences are whole when the dates line up (day of month
    equal, or clamped to month end); otherwise the remainder is expressed as a
    fraction of the following month.
    """
    unit = _unit(unit)
    if later < earlier:
        return -difference(earlier, later, unit)

    days = (later - earlier).days
    if unit == DAY:
        return float(days)
    if unit == WEEK:
        return days / constants.DAYS_PER_WEEK

    delta = relativedelta(later, earlier)
    whole_months = delta.years * 12 + delta.months
    months = float(whole_months)
    if delta.days:
        anchor = earlier + relativedelta(months=whole_months)
        month_length = (anchor + relativedelta(months=1) - anchor).days
        months += (later - anchor).days / month_length
    if unit == MONTH:
        return months
    return months / 12


# ----------------------------------------------------------------------------
# Name resolution
# ----------------------------------------------------------------------------


def weekday_number(name: str) -> Optional[int]:
    """Sunday-based weekday index for a weekday name, or None if unknown."""
    index = _PARSER_INFO.weekday(name.strip())
    if index is None:
        return None
    # dateutil counts from Monday
    return (index + 1) % constants.DAYS_PER_WEEK


def month_number(name: str) -> Optional[int]:
    """Zero-based month index for a month name, or None if unknown."""
    month = _PARSER_INFO.month(name.strip())
    if month is None:
        return None
    return month - 1
