"""Candidate-date stepping for the rule shapes that allow it.

Enumerating all occurrences between two dates one day at a time is wasteful
when the rule set only picks a few days out of every month or week. For two
common shapes the candidates can be listed directly:

- a single day-of-month rule (e.g. the 1st and 15th of every month)
- a day-of-week rule, optionally with a single every-N-weeks interval

A pattern only proposes candidates. Every candidate is still confirmed by
``Recurrence.matches`` so exceptions, bounds and interval alignment apply.
"""

import logging
from datetime import date, timedelta
from typing import Optional, Sequence

from . import constants, dates
from .schema import Rule
from .types import Measure

logger = logging.getLogger(__name__)


class OccurrencePattern:
    """Steps through the candidate days of successive months or weeks."""

    def __init__(
        self,
        measure: Measure,
        values,
        step_weeks: int = 1,
        anchor: Optional[date] = None,
    ):
        """
        Args:
            measure: DAYS_OF_MONTH or DAYS_OF_WEEK
            values: Days of month (1-31) or days of week (0-6)
            step_weeks: Weeks between candidate weeks (weekly patterns only)
            anchor: Start date the week stepping is aligned to
        """
        self.measure = measure
        self.pattern = sorted(values)
        self.step_weeks = step_weeks
        self.anchor = anchor
        self.index = 0
        # First day of the month or week currently being walked
        self._period_start: Optional[date] = None

    @classmethod
    def build(cls, rules: Sequence[Rule], anchor: Optional[date]) -> Optional["OccurrencePattern"]:
        """
        Build a pattern for the given rules, or None if their shape has no fast path.

        Args:
            rules: Rules of the rule set, in order
            anchor: Rule set start date (origin of interval rules)
        """
        if len(rules) == 1 and rules[0].measure is Measure.DAYS_OF_MONTH:
            return cls(Measure.DAYS_OF_MONTH, rules[0].units)

        by_measure = {rule.measure: rule for rule in rules}
        weekdays = by_measure.get(Measure.DAYS_OF_WEEK)
        if weekdays is None:
            return None

        if len(rules) == 1:
            return cls(Measure.DAYS_OF_WEEK, weekdays.units)

        interval = by_measure.get(Measure.WEEKS)
        if len(rules) != 2 or interval is None or anchor is None:
            return None
        if len(interval.units) == 1:
            (step,) = interval.units
            return cls(Measure.DAYS_OF_WEEK, weekdays.units, step_weeks=step, anchor=anchor)

        return None

    def next_date(self, working: date) -> date:
        """Return the first candidate strictly after working and advance the index."""
        if self._period_start is None:
            self._period_start = self._period_of(working)
            self.index = 0

        while True:
            if self.index >= len(self.pattern):
                self._period_start = self._next_period(self._period_start)
                self.index = 0
            candidate = self._candidate(self.pattern[self.index])
            self.index += 1
            if candidate > working:
                return candidate

    def _period_of(self, d: date) -> date:
        if self.measure is Measure.DAYS_OF_MONTH:
            return dates.start_of_month(d)
        return dates.start_of_week(d)

    def _candidate(self, value: int) -> date:
        if self.measure is Measure.DAYS_OF_MONTH:
            # Days past the end of a short month land on its last day
            day = min(value, dates.days_in_month(self._period_start))
            return self._period_start.replace(day=day)
        return self._period_start + timedelta(days=value)

    def _next_period(self, period_start: date) -> date:
        if self.measure is Measure.DAYS_OF_MONTH:
            return dates.add(period_start, 1, dates.MONTH)

        next_week = period_start + timedelta(weeks=1)
        if self.step_weeks > 1:
            anchor_week = dates.start_of_week(self.anchor)
            offset = ((next_week - anchor_week).days // constants.DAYS_PER_WEEK) % self.step_weeks
            if offset:
                next_week += timedelta(weeks=self.step_weeks - offset)
        return next_week

    def __repr__(self) -> str:
        return (
            f"OccurrencePattern(measure={self.measure.value}, pattern={self.pattern}, "
            f"step_weeks={self.step_weeks}, index={self.index})"
        )
