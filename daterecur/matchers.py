"""Rule matchers for calendar-position rules and fixed-interval rules."""

import logging
from datetime import date
from typing import Any, Callable

from . import constants, dates
from .errors import ValidationError
from .schema import CalendarRule, IntervalRule, normalize_units
from .types import Measure

logger = logging.getLogger(__name__)

# Field of a date inspected by each calendar measure
_CALENDAR_FIELDS: dict[Measure, Callable[[date], int]] = {
    Measure.DAYS_OF_MONTH: lambda d: d.day,
    Measure.DAYS_OF_WEEK: dates.day_of_week,
    Measure.WEEKS_OF_MONTH: dates.week_of_month,
    Measure.WEEKS_OF_MONTH_BY_DAY: dates.week_of_month_by_weekday,
    Measure.WEEKS_OF_YEAR: dates.week_of_year,
    Measure.MONTHS_OF_YEAR: dates.month_of_year,
}

# Date unit used to measure the distance from the anchor
_INTERVAL_UNITS = {
    Measure.DAYS: dates.DAY,
    Measure.WEEKS: dates.WEEK,
    Measure.MONTHS: dates.MONTH,
    Measure.YEARS: dates.YEAR,
}


def _parse_int(unit: Any) -> Any:
    """Convert numeric strings to int, leaving everything else untouched."""
    if isinstance(unit, str):
        text = unit.strip()
        # isdecimal, not isdigit: superscripts pass isdigit but int() rejects them
        if text.lstrip("+-").isdecimal():
            return int(text)
    return unit


class CalendarMatcher:
    """Creates and evaluates calendar-position rules."""

    @classmethod
    def create(cls, units: Any, measure: Any) -> CalendarRule:
        """
        Build a calendar rule, resolving weekday and month names.

        Args:
            units: Unit values (numbers, names, or a collection of them)
            measure: Calendar measure

        Returns:
            Validated CalendarRule

        Raises:
            ValidationError: If a unit is unknown or outside the measure's range
        """
        measure = Measure.parse(measure)
        if measure.is_interval:
            raise ValidationError(f"{measure.value} is not a calendar measure")

        values = {cls._resolve(unit, measure) for unit in normalize_units(units)}

        low, high = measure.range
        for value in values:
            if value < low or value > high:
                raise ValidationError(f"Value should be in range {low} to {high}")

        logger.debug("Created calendar rule %s=%s", measure.value, sorted(values))
        return CalendarRule(measure=measure, units=frozenset(values))

    @staticmethod
    def _resolve(unit: Any, measure: Measure) -> int:
        unit = _parse_int(unit)
        if isinstance(unit, int):
            return unit

        if measure is Measure.DAYS_OF_WEEK:
            number = dates.weekday_number(unit)
        elif measure is Measure.MONTHS_OF_YEAR:
            number = dates.month_number(unit)
        else:
            number = None

        if number is None:
            raise ValidationError(f"Invalid unit for {measure.value}: {unit!r}")
        return number

    @staticmethod
    def match(measure: Measure, units: frozenset, d: date) -> bool:
        """
        Check whether d's calendar position for measure is in units.

        Day-of-month rules alias past the end of short months: on the last day
        of a 28, 29 or 30 day month, any unit from that day up to 31 matches,
        so "the 31st" also fires on April 30 and February 28/29.
        """
        value = _CALENDAR_FIELDS[measure](d)
        if value in units:
            return True

        if measure is Measure.DAYS_OF_MONTH:
            last_day = dates.days_in_month(d)
            if value == last_day and value < constants.MAX_DAY_OF_MONTH:
                return any(day in units for day in range(value, constants.MAX_DAY_OF_MONTH + 1))

        return False


class IntervalMatcher:
    """Creates and evaluates every-N-units rules anchored at the start date."""

    @staticmethod
    def create(units: Any, measure: Any) -> IntervalRule:
        """
        Build an interval rule.

        Raises:
            ValidationError: If any unit is not a positive integer
        """
        measure = Measure.parse(measure)
        if not measure.is_interval:
            raise ValidationError(f"{measure.value} is not an interval measure")

        values = set()
        for unit in normalize_units(units):
            unit = _parse_int(unit)
            if not isinstance(unit, int):
                raise ValidationError(f"Interval units must be integers, got {unit!r}")
            if unit <= 0:
                raise ValidationError("Intervals must be greater than zero")
            values.add(unit)

        logger.debug("Created interval rule %s=%s", measure.value, sorted(values))
        return IntervalRule(measure=measure, units=frozenset(values))

    @staticmethod
    def match(measure: Measure, units: frozenset, anchor: date, d: date) -> bool:
        """
        Check whether d lies a whole multiple of any unit away from anchor.

        The distance is absolute, so dates before the anchor match too.
        """
        diff = abs(dates.difference(d, anchor, _INTERVAL_UNITS[measure]))
        if measure is Measure.DAYS:
            diff = int(diff)
        return any(diff % unit == 0 for unit in units)
