"""Type definitions and enums for daterecur."""

import re
from enum import Enum
from typing import Union

from . import constants
from .errors import ValidationError


class MeasureFamily(str, Enum):
    """Kinds of recurrence rule."""

    INTERVAL = "interval"  # every N units from the anchor date
    CALENDAR = "calendar"  # date falls on a calendar position


class Measure(str, Enum):
    """Measures a recurrence rule can be expressed over."""

    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"

    DAYS_OF_WEEK = "daysOfWeek"
    DAYS_OF_MONTH = "daysOfMonth"
    WEEKS_OF_MONTH = "weeksOfMonth"
    WEEKS_OF_MONTH_BY_DAY = "weeksOfMonthByDay"  # Nth weekday of the month
    WEEKS_OF_YEAR = "weeksOfYear"
    MONTHS_OF_YEAR = "monthsOfYear"

    @property
    def family(self) -> MeasureFamily:
        """Rule family this measure belongs to."""
        if self in INTERVAL_MEASURES:
            return MeasureFamily.INTERVAL
        return MeasureFamily.CALENDAR

    @property
    def is_interval(self) -> bool:
        return self.family is MeasureFamily.INTERVAL

    @property
    def range(self) -> tuple[int, int]:
        """Inclusive (low, high) range of valid units for a calendar measure."""
        try:
            return CALENDAR_RANGES[self]
        except KeyError:
            raise ValidationError(f"{self.value} has no calendar range") from None

    @classmethod
    def parse(cls, name: Union[str, "Measure"]) -> "Measure":
        """
        Resolve a measure name to a Measure.

        Accepts the canonical plural name ("daysOfWeek"), its singular alias
        ("dayOfWeek") and snake_case spellings ("days_of_week", "day_of_week").

        Raises:
            ValidationError: If the name is not a known measure
        """
        if isinstance(name, Measure):
            return name
        if isinstance(name, str):
            measure = MEASURE_ALIASES.get(name.strip())
            if measure is not None:
                return measure
        raise ValidationError(f"Invalid measure provided: {name}")


INTERVAL_MEASURES = frozenset({Measure.DAYS, Measure.WEEKS, Measure.MONTHS, Measure.YEARS})

CALENDAR_RANGES = {
    Measure.DAYS_OF_MONTH: (constants.MIN_DAY_OF_MONTH, constants.MAX_DAY_OF_MONTH),
    Measure.DAYS_OF_WEEK: (constants.MIN_DAY_OF_WEEK, constants.MAX_DAY_OF_WEEK),
    Measure.WEEKS_OF_MONTH: (constants.MIN_WEEK_OF_MONTH, constants.MAX_WEEK_OF_MONTH),
    Measure.WEEKS_OF_MONTH_BY_DAY: (constants.MIN_WEEK_OF_MONTH, constants.MAX_WEEK_OF_MONTH),
    Measure.WEEKS_OF_YEAR: (constants.MIN_WEEK_OF_YEAR, constants.MAX_WEEK_OF_YEAR),
    Measure.MONTHS_OF_YEAR: (constants.MIN_MONTH_OF_YEAR, constants.MAX_MONTH_OF_YEAR),
}

# Singular form of each measure
SINGULAR_NAMES = {
    Measure.DAYS: "day",
    Measure.WEEKS: "week",
    Measure.MONTHS: "month",
    Measure.YEARS: "year",
    Measure.DAYS_OF_WEEK: "dayOfWeek",
    Measure.DAYS_OF_MONTH: "dayOfMonth",
    Measure.WEEKS_OF_MONTH: "weekOfMonth",
    Measure.WEEKS_OF_MONTH_BY_DAY: "weekOfMonthByDay",
    Measure.WEEKS_OF_YEAR: "weekOfYear",
    Measure.MONTHS_OF_YEAR: "monthOfYear",
}


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _build_aliases() -> dict[str, Measure]:
    aliases: dict[str, Measure] = {}
    for measure in Measure:
        for name in (measure.value, SINGULAR_NAMES[measure]):
            aliases[name] = measure
            aliases[_snake_case(name)] = measure
    # Long-hand spelling of the Nth-weekday measure
    aliases["weekOfMonthByWeekday"] = Measure.WEEKS_OF_MONTH_BY_DAY
    aliases["weeksOfMonthByWeekday"] = Measure.WEEKS_OF_MONTH_BY_DAY
    aliases["week_of_month_by_weekday"] = Measure.WEEKS_OF_MONTH_BY_DAY
    return aliases


MEASURE_ALIASES = _build_aliases()
