"""Recurrence rule sets: composition of calendar and interval rules."""

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any, Iterable, Optional, Union

import pydantic

from .dates import to_date, to_optional_date
from .errors import PreconditionError, ValidationError
from .matchers import CalendarMatcher, IntervalMatcher
from .occurrences import ALL, NEXT, PREVIOUS, OccurrenceEnumerator
from .schema import (
    CalendarRule,
    IntervalRule,
    PendingRule,
    RecurrenceSnapshot,
    Rule,
    normalize_units,
)
from .types import MEASURE_ALIASES, Measure

logger = logging.getLogger(__name__)

PAIRING_ERROR = "weeksOfMonthByDay must be combined with daysOfWeek"


class Recurrence:
    """
    A set of recurrence rules with optional bounds and exception dates.

    A date matches when it is within ``[start, end]``, is not an exception,
    and satisfies every rule. ``start`` is also the anchor interval rules are
    measured from. Rule-adding methods mutate the set in place and return it,
    so calls can be chained::

        Recurrence(start="2014-01-01").every(2, "days").except_date("2014-01-05")
        Recurrence().days_of_week(["Sunday"]).weeks_of_month_by_day([0, 2])
    """

    def __init__(
        self,
        start: Any = None,
        end: Any = None,
        rules: Optional[Iterable[Union[Rule, PendingRule, Mapping]]] = None,
        exceptions: Optional[Iterable[Any]] = None,
    ):
        """
        Args:
            start: Inclusive start date (required before adding interval rules)
            end: Inclusive end date
            rules: Rules to import (Rule models, PendingRules or
                ``{"measure": ..., "units": ...}`` mappings)
            exceptions: Dates that never match

        Raises:
            ValidationError: If a date or rule is invalid
            PreconditionError: If an interval rule is imported without a start
        """
        self._start: Optional[date] = to_optional_date(start)
        self._end: Optional[date] = to_optional_date(end)
        # Transient cursor for next/previous/all; never saved
        self._from: Optional[date] = None
        self._rules: list[Rule] = []
        self._exceptions: list[date] = []

        if rules:
            self._rules = self._import_rules(rules)
        for exception in exceptions or []:
            self.except_date(exception)

    # ------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------

    @property
    def start(self) -> Optional[date]:
        return self._start

    @start.setter
    def start(self, value: Any) -> None:
        self._start = to_optional_date(value)

    @property
    def end(self) -> Optional[date]:
        return self._end

    @end.setter
    def end(self, value: Any) -> None:
        self._end = to_optional_date(value)

    @property
    def from_date(self) -> Optional[date]:
        """Temporary origin for next/previous/all, overriding start."""
        return self._from

    @from_date.setter
    def from_date(self, value: Any) -> None:
        self._from = to_optional_date(value)

    def set_start(self, value: Any) -> "Recurrence":
        self.start = value
        return self

    def set_end(self, value: Any) -> "Recurrence":
        self.end = value
        return self

    def set_from(self, value: Any) -> "Recurrence":
        self.from_date = value
        return self

    @property
    def rules(self) -> tuple[Rule, ...]:
        return tuple(self._rules)

    @property
    def exceptions(self) -> tuple[date, ...]:
        return tuple(self._exceptions)

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def add_rule(self, measure: Union[Measure, str], units: Any) -> "Recurrence":
        """
        Add a rule, replacing any existing rule for the same measure.

        Args:
            measure: Measure or measure name ("days", "dayOfWeek", "days_of_month", ...)
            units: Integer, name, list/set of them, or ``{value: True}`` mapping

        Returns:
            This rule set

        Raises:
            ValidationError: For invalid units or measure, or a weeksOfMonthByDay
                rule without a daysOfWeek rule
            PreconditionError: For an interval rule when no start date is set
        """
        pending = PendingRule(measure=Measure.parse(measure), units=normalize_units(units))
        return self.commit(pending)

    def every(self, units: Any, measure: Union[Measure, str]) -> "Recurrence":
        """Add a rule with the units first, reading as "every 2 days"."""
        return self.add_rule(measure, units)

    def commit(self, pending: PendingRule) -> "Recurrence":
        """
        Validate a staged rule and install it.

        Nothing is changed when validation fails.
        """
        rule = self._build_rule(pending)

        if rule.measure is Measure.WEEKS_OF_MONTH_BY_DAY and not self.has_rule(
            Measure.DAYS_OF_WEEK
        ):
            raise ValidationError(PAIRING_ERROR)

        replaced = self._install(rule)
        logger.debug(
            "%s rule %s=%s",
            "Replaced" if replaced else "Added",
            rule.measure.value,
            sorted(rule.units),
        )
        return self

    def days(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.DAYS, units)

    def weeks(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.WEEKS, units)

    def months(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.MONTHS, units)

    def years(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.YEARS, units)

    def days_of_week(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.DAYS_OF_WEEK, units)

    def days_of_month(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.DAYS_OF_MONTH, units)

    def weeks_of_month(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.WEEKS_OF_MONTH, units)

    def weeks_of_month_by_day(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.WEEKS_OF_MONTH_BY_DAY, units)

    def weeks_of_year(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.WEEKS_OF_YEAR, units)

    def months_of_year(self, units: Any) -> "Recurrence":
        return self.add_rule(Measure.MONTHS_OF_YEAR, units)

    def has_rule(self, measure: Union[Measure, str]) -> bool:
        """Check whether a rule for measure is set."""
        measure = Measure.parse(measure)
        return any(rule.measure is measure for rule in self._rules)

    def repeats(self) -> bool:
        """True when at least one rule is set."""
        return len(self._rules) > 0

    def _build_rule(self, pending: PendingRule) -> Rule:
        if pending.measure.is_interval:
            if self._start is None:
                raise PreconditionError("Must have a start date set to set an interval!")
            return IntervalMatcher.create(pending.units, pending.measure)
        return CalendarMatcher.create(pending.units, pending.measure)

    def _install(self, rule: Rule) -> bool:
        """Append rule after removing any rule with the same measure."""
        kept = [existing for existing in self._rules if existing.measure is not rule.measure]
        replaced = len(kept) != len(self._rules)
        self._rules = kept + [rule]
        return replaced

    def _import_rules(self, rules: Iterable[Union[Rule, PendingRule, Mapping]]) -> list[Rule]:
        imported: dict[Measure, Rule] = {}
        for item in rules:
            if isinstance(item, (IntervalRule, CalendarRule)):
                rule = self._build_rule(PendingRule(measure=item.measure, units=item.units))
            elif isinstance(item, PendingRule):
                rule = self._build_rule(item)
            else:
                try:
                    pending = PendingRule.model_validate(item)
                except pydantic.ValidationError as e:
                    raise ValidationError(f"Invalid rule {item!r}: {e}") from e
                rule = self._build_rule(pending)
            imported.pop(rule.measure, None)
            imported[rule.measure] = rule

        if Measure.WEEKS_OF_MONTH_BY_DAY in imported and Measure.DAYS_OF_WEEK not in imported:
            raise ValidationError(PAIRING_ERROR)
        return list(imported.values())

    # ------------------------------------------------------------------
    # Exceptions
    # ------------------------------------------------------------------

    def except_date(self, value: Any) -> "Recurrence":
        """Add an exception date that never matches."""
        d = to_date(value)
        if d not in self._exceptions:
            self._exceptions.append(d)
        return self

    def forget(self, date_or_measure: Any) -> "Recurrence":
        """
        Remove an exception date, or the rule for a measure.

        Measure names are checked first. Anything else that reads as a date is
        removed from the exceptions if present; a value that is neither names
        no rule, so nothing is removed.
        """
        if isinstance(date_or_measure, Measure) or (
            isinstance(date_or_measure, str) and date_or_measure.strip() in MEASURE_ALIASES
        ):
            measure = Measure.parse(date_or_measure)
            self._rules = [rule for rule in self._rules if rule.measure is not measure]
            logger.debug("Forgot rule %s", measure.value)
            return self

        try:
            d = to_date(date_or_measure)
        except ValidationError:
            logger.debug("Nothing to forget for %r", date_or_measure)
            return self
        if d in self._exceptions:
            self._exceptions.remove(d)
            logger.debug("Forgot exception %s", d)
        return self

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def matches(self, value: Any, ignore_bounds: bool = False) -> bool:
        """
        Check whether a date matches this rule set.

        Args:
            value: Date-like value (normalized to a date-only value)
            ignore_bounds: Skip the start/end check

        Raises:
            ValidationError: If value is not a valid date
        """
        d = to_date(value)

        if not ignore_bounds and not self._in_bounds(d):
            return False
        if d in self._exceptions:
            return False
        return all(self._matches_rule(rule, d) for rule in self._rules)

    def _in_bounds(self, d: date) -> bool:
        if self._start is not None and d < self._start:
            return False
        if self._end is not None and d > self._end:
            return False
        return True

    def _matches_rule(self, rule: Rule, d: date) -> bool:
        if isinstance(rule, IntervalRule):
            if self._start is None:
                raise PreconditionError("Must have a start date set to match an interval!")
            return IntervalMatcher.match(rule.measure, rule.units, self._start, d)
        return CalendarMatcher.match(rule.measure, rule.units, d)

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def next(self, count: int, date_format: Optional[str] = None) -> list:
        """Next count matching dates after the from/start date."""
        return OccurrenceEnumerator(self).run(NEXT, count, date_format)

    def previous(self, count: int, date_format: Optional[str] = None) -> list:
        """Previous count matching dates before the from/start date."""
        return OccurrenceEnumerator(self).run(PREVIOUS, count, date_format)

    def all(self, date_format: Optional[str] = None) -> list:
        """All matching dates from the from/start date through the end date."""
        return OccurrenceEnumerator(self).run(ALL, None, date_format)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> RecurrenceSnapshot:
        return RecurrenceSnapshot(
            start=self._start,
            end=self._end,
            exceptions=list(self._exceptions),
            rules=[PendingRule(measure=rule.measure, units=rule.units) for rule in self._rules],
        )

    def save(self) -> dict[str, Any]:
        """
        Export bounds, exceptions and rules as plain data.

        Dates are ISO strings; the from date is not included.
        """
        return self.snapshot().model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_snapshot(cls, data: Union[RecurrenceSnapshot, Mapping]) -> "Recurrence":
        """
        Rebuild a rule set from ``save()`` output or a snapshot model.

        Raises:
            ValidationError: If the data is not a valid snapshot
        """
        if not isinstance(data, RecurrenceSnapshot):
            try:
                data = RecurrenceSnapshot.model_validate(data)
            except pydantic.ValidationError as e:
                raise ValidationError(f"Invalid recurrence snapshot: {e}") from e
        return cls(start=data.start, end=data.end, rules=data.rules, exceptions=data.exceptions)

    def __repr__(self) -> str:
        rules = ", ".join(f"{r.measure.value}={sorted(r.units)}" for r in self._rules)
        return f"Recurrence(start={self._start}, end={self._end}, rules=[{rules}])"
