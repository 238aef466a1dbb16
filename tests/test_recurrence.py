"""Tests for the Recurrence rule set."""

from datetime import date, datetime

import pytest

from daterecur import Measure, PreconditionError, Recurrence, ValidationError
from daterecur.schema import CalendarRule, IntervalRule, PendingRule


class TestBounds:
    """Tests for start, end and from dates."""

    def test_constructor_normalizes_dates(self):
        """Test that constructor bounds accept date-like values."""
        r = Recurrence(start="2014-01-01", end=datetime(2014, 12, 31, 23, 59))
        assert r.start == date(2014, 1, 1)
        assert r.end == date(2014, 12, 31)
        assert r.from_date is None

    def test_fluent_setters(self):
        """Test that setters return the rule set."""
        r = Recurrence()
        assert r.set_start("2014-01-01") is r
        assert r.set_end("2014-02-01") is r
        assert r.set_from("2014-01-10") is r
        assert r.start == date(2014, 1, 1)
        assert r.end == date(2014, 2, 1)
        assert r.from_date == date(2014, 1, 10)

    def test_clear_bounds(self):
        """Test that None clears a bound."""
        r = Recurrence(start="2014-01-01", end="2014-02-01")
        r.end = None
        assert r.end is None

    def test_invalid_bound(self):
        """Test that an unreadable bound raises ValidationError."""
        with pytest.raises(ValidationError):
            Recurrence(start="not a date")


class TestAddingRules:
    """Tests for adding, replacing and removing rules."""

    def test_every_reads_units_first(self):
        """Test every(units, measure)."""
        r = Recurrence(start="2014-01-01").every(2, "days")
        assert r.rules == (IntervalRule(measure=Measure.DAYS, units=frozenset({2})),)

    def test_add_rule(self):
        """Test add_rule(measure, units) with names."""
        r = Recurrence().add_rule("dayOfWeek", ["Sunday", "Wednesday"])
        assert r.rules == (CalendarRule(measure=Measure.DAYS_OF_WEEK, units=frozenset({0, 3})),)

    def test_typed_methods(self):
        """Test that each typed method adds a rule of its measure."""
        r = (
            Recurrence(start="2014-01-01")
            .days(1)
            .weeks(1)
            .months(1)
            .years(1)
            .days_of_week(0)
            .days_of_month(1)
            .weeks_of_month(0)
            .weeks_of_month_by_day(0)
            .weeks_of_year(1)
            .months_of_year(0)
        )
        assert [rule.measure for rule in r.rules] == list(Measure)

    def test_chaining_returns_same_object(self):
        """Test that rule-adding methods return the rule set itself."""
        r = Recurrence(start="2014-01-01")
        assert r.every(2, "days") is r
        assert r.except_date("2014-01-05") is r
        assert r.forget("days") is r

    def test_same_measure_replaces(self):
        """Test that a second rule for a measure replaces the first."""
        r = Recurrence().days_of_month([1, 15]).days_of_week(0).days_of_month(20)
        assert len(r.rules) == 2
        assert r.rules[-1] == CalendarRule(measure=Measure.DAYS_OF_MONTH, units=frozenset({20}))

    def test_interval_without_start(self):
        """Test that interval rules need a start date."""
        r = Recurrence()
        with pytest.raises(PreconditionError, match="start date set to set an interval"):
            r.every(2, "days")
        assert r.rules == ()

    def test_calendar_rule_without_start(self):
        """Test that calendar rules do not need a start date."""
        r = Recurrence().days_of_week("Monday")
        assert r.repeats()

    def test_weeks_of_month_by_day_needs_days_of_week(self):
        """Test that the Nth-weekday rule requires a weekday rule first."""
        r = Recurrence()
        with pytest.raises(ValidationError, match="must be combined with daysOfWeek"):
            r.weeks_of_month_by_day([0, 2])
        assert not r.repeats()

    def test_failed_rule_leaves_set_unchanged(self):
        """Test that an invalid rule does not replace the existing one."""
        r = Recurrence().days_of_week(0)
        with pytest.raises(ValidationError):
            r.days_of_week(9)
        assert r.rules == (CalendarRule(measure=Measure.DAYS_OF_WEEK, units=frozenset({0})),)

    @pytest.mark.parametrize("units", [None, True, 1.5, [], {}, [[1]], {"Sunday": False}])
    def test_invalid_units(self, units):
        """Test that unusable unit arguments raise ValidationError."""
        with pytest.raises(ValidationError):
            Recurrence().add_rule("daysOfWeek", units)

    def test_invalid_measure(self):
        """Test that an unknown measure raises ValidationError."""
        with pytest.raises(ValidationError, match="Invalid measure provided: hours"):
            Recurrence().add_rule("hours", 1)

    def test_has_rule_and_repeats(self):
        """Test rule introspection."""
        r = Recurrence()
        assert not r.repeats()
        assert not r.has_rule("daysOfWeek")
        r.days_of_week(1)
        assert r.repeats()
        assert r.has_rule(Measure.DAYS_OF_WEEK)
        assert r.has_rule("day_of_week")

    def test_commit_pending_rule(self):
        """Test installing a staged rule."""
        pending = PendingRule(measure="monthOfYear", units={"March": True})
        r = Recurrence().commit(pending)
        assert r.rules == (CalendarRule(measure=Measure.MONTHS_OF_YEAR, units=frozenset({2})),)

    def test_import_rules_checks_pairing_over_whole_list(self):
        """Test that imported rules may list weeksOfMonthByDay before daysOfWeek."""
        r = Recurrence(
            rules=[
                {"measure": "weeksOfMonthByDay", "units": [0]},
                {"measure": "daysOfWeek", "units": [0]},
            ]
        )
        assert r.has_rule("weeksOfMonthByDay")

    def test_import_rules_without_weekday_rule(self):
        """Test that imported weeksOfMonthByDay alone is rejected."""
        with pytest.raises(ValidationError, match="weeksOfMonthByDay"):
            Recurrence(rules=[{"measure": "weeksOfMonthByDay", "units": [0]}])

    def test_import_interval_without_start(self):
        """Test that imported interval rules need a start date."""
        with pytest.raises(PreconditionError):
            Recurrence(rules=[{"measure": "days", "units": 2}])

    def test_import_malformed_rule(self):
        """Test that malformed rule mappings raise ValidationError."""
        with pytest.raises(ValidationError, match="Invalid rule"):
            Recurrence(rules=[{"units": [1]}])


class TestExceptionsAndForget:
    """Tests for exception dates and forget."""

    def test_except_date_deduplicates(self):
        """Test that the same exception is stored once."""
        r = Recurrence().except_date("2014-01-05").except_date(date(2014, 1, 5))
        assert r.exceptions == (date(2014, 1, 5),)

    def test_forget_exception(self):
        """Test that forgetting an exception makes the date match again."""
        r = Recurrence(start="2014-01-01").every(2, "days").except_date("2014-01-05")
        assert not r.matches("2014-01-05")
        r.forget("2014-01-05")
        assert r.matches("2014-01-05")

    def test_forget_unknown_date_is_noop(self):
        """Test that forgetting a date that is not an exception changes nothing."""
        r = Recurrence().except_date("2014-01-05")
        r.forget("2014-02-01")
        assert r.exceptions == (date(2014, 1, 5),)

    def test_forget_measure(self):
        """Test that forgetting a measure removes its rule."""
        r = Recurrence(start="2014-01-01").every(2, "days").days_of_week(0)
        r.forget("days")
        assert not r.has_rule("days")
        assert r.has_rule("daysOfWeek")
        r.forget(Measure.DAYS_OF_WEEK)
        assert not r.repeats()

    def test_forget_measure_alias(self):
        """Test that singular and snake_case measure names work."""
        r = Recurrence().days_of_month(1)
        r.forget("day_of_month")
        assert not r.repeats()

    def test_forget_unknown_name_is_noop(self):
        """Test that a value that is neither measure nor date removes nothing."""
        r = Recurrence().days_of_month(1).except_date("2014-01-01")
        assert r.forget("fortnights") is r
        assert r.has_rule("daysOfMonth")
        assert r.exceptions == (date(2014, 1, 1),)


class TestMatches:
    """Tests for matching single dates."""

    def test_every_other_day(self):
        """Test an every-2-days rule anchored at the start."""
        r = Recurrence(start="2014-01-01").every(2, "days")
        assert r.matches("2014-01-01")
        assert r.matches("2014-01-03")
        assert not r.matches("2014-01-04")

    def test_no_rules_matches_everything_in_bounds(self):
        """Test that an empty rule set matches any date in bounds."""
        r = Recurrence(start="2014-01-01", end="2014-01-31")
        assert r.matches("2014-01-15")
        assert not r.matches("2014-02-01")

    def test_bounds_are_inclusive(self):
        """Test start and end inclusion."""
        r = Recurrence(start="2014-01-01", end="2014-01-07").every(2, "days")
        assert r.matches("2014-01-01")
        assert r.matches("2014-01-07")
        assert not r.matches("2013-12-30")
        assert not r.matches("2014-01-09")

    def test_ignore_bounds(self):
        """Test that ignore_bounds skips the start/end check only."""
        r = Recurrence(start="2014-01-01", end="2014-01-07").every(2, "days")
        r.except_date("2013-12-28")
        assert r.matches("2013-12-30", ignore_bounds=True)
        assert r.matches("2014-01-09", ignore_bounds=True)
        assert not r.matches("2014-01-10", ignore_bounds=True)
        assert not r.matches("2013-12-28", ignore_bounds=True)

    def test_exception_never_matches(self):
        """Test exception dates."""
        r = Recurrence(start="2014-01-01").every(2, "days").except_date("2014-01-05")
        assert r.matches("2014-01-03")
        assert not r.matches("2014-01-05")

    def test_time_of_day_is_ignored(self):
        """Test that datetimes compare by their date."""
        r = Recurrence(start=datetime(2014, 1, 1, 18, 0)).every(2, "days")
        assert r.matches(datetime(2014, 1, 3, 0, 1))
        assert r.matches(datetime(2014, 1, 1, 0, 0))

    def test_all_rules_must_match(self):
        """Test rule conjunction."""
        r = Recurrence(start="2014-01-01").every(2, "weeks").days_of_week("Wednesday")
        assert r.matches("2014-01-15")
        assert not r.matches("2014-01-08")
        assert not r.matches("2014-01-16")

    def test_nth_weekday_of_month(self):
        """Test 2nd, 4th and 5th Sundays and Thursdays of January 2013."""
        r = Recurrence().days_of_week(["Sunday", "Thursday"]).weeks_of_month_by_day([1, 3, 4])
        for day in (13, 27, 10, 24, 31):
            assert r.matches(date(2013, 1, day)), day
        for day in (6, 20, 3, 17):
            assert not r.matches(date(2013, 1, day)), day

    def test_first_and_third_sunday_and_monday(self):
        """Test 1st and 3rd Sundays and Mondays of a month starting on a Tuesday."""
        r = Recurrence().days_of_week(["Sunday", "Monday"]).weeks_of_month_by_day([0, 2])
        for day in (6, 7, 20, 21):
            assert r.matches(date(2013, 1, day)), day
        for day in (1, 8, 13, 27):
            assert not r.matches(date(2013, 1, day)), day

    def test_exception_only_affects_its_date(self):
        """Test that an exception leaves neighbouring days alone."""
        r = Recurrence(start="2014-01-01").every(1, "days").except_date("2014-01-10")
        assert r.matches("2014-01-09")
        assert not r.matches("2014-01-10")
        assert r.matches("2014-01-11")

    def test_repeated_calls_agree_and_change_nothing(self):
        """Test that repeated matching gives the same answers and leaves the set alone."""
        r = (
            Recurrence(start="2014-01-31", end="2014-12-31")
            .every(1, "months")
            .days_of_month(31)
            .except_date("2014-05-31")
        )
        before = r.save()
        samples = [
            date(2014, 2, 28),  # end-of-month alias
            date(2014, 4, 30),
            date(2014, 5, 31),  # exception
            date(2014, 3, 30),
            datetime(2014, 3, 31, 12, 0),
        ]

        first = [r.matches(d) for d in samples]
        for _ in range(3):
            assert [r.matches(d) for d in samples] == first
            assert [r.matches(d, ignore_bounds=True) for d in samples] == first

        assert first == [True, True, False, False, True]
        assert r.save() == before
        assert r.from_date is None

    def test_weeks_of_month(self):
        """Test week-of-month rules."""
        r = Recurrence().weeks_of_month([1, 3])
        assert r.matches("2013-01-06")
        assert r.matches("2013-01-26")
        assert not r.matches("2013-01-27")

    def test_end_of_month(self):
        """Test the last day of every month via the 31st."""
        r = Recurrence().days_of_month(31)
        assert r.matches("2014-01-31")
        assert r.matches("2014-02-28")
        assert r.matches("2014-04-30")
        assert not r.matches("2014-04-29")

    def test_yearly_date(self):
        """Test a month plus day-of-month rule."""
        r = Recurrence().months_of_year("December").days_of_month(25)
        assert r.matches("2030-12-25")
        assert not r.matches("2030-11-25")

    def test_interval_after_start_cleared(self):
        """Test that interval rules cannot be evaluated without an anchor."""
        r = Recurrence(start="2014-01-01").every(2, "days")
        r.start = None
        with pytest.raises(PreconditionError, match="to match an interval"):
            r.matches("2014-01-03")

    def test_invalid_date(self):
        """Test that unreadable dates raise ValidationError."""
        with pytest.raises(ValidationError, match="Invalid date supplied"):
            Recurrence().matches("someday")


class TestSnapshots:
    """Tests for save and from_snapshot."""

    def test_save_produces_plain_data(self):
        """Test the saved structure."""
        r = (
            Recurrence(start="2014-01-01", end="2014-12-31")
            .every(2, "days")
            .days_of_week(["Wednesday", "Monday"])
            .except_date("2014-01-05")
            .set_from("2014-03-01")
        )
        assert r.save() == {
            "start": "2014-01-01",
            "end": "2014-12-31",
            "exceptions": ["2014-01-05"],
            "rules": [
                {"measure": "days", "units": [2]},
                {"measure": "daysOfWeek", "units": [1, 3]},
            ],
        }

    def test_open_ended_omits_end(self):
        """Test that unset bounds are left out."""
        saved = Recurrence().days_of_month(1).save()
        assert "start" not in saved
        assert "end" not in saved

    def test_restore_matches_identically(self):
        """Test that a restored rule set behaves like the original."""
        original = (
            Recurrence(start="2013-01-01", end="2013-03-31")
            .days_of_week(["Sunday", "Thursday"])
            .weeks_of_month_by_day([1, 3])
            .except_date("2013-01-13")
        )
        restored = Recurrence.from_snapshot(original.save())

        assert restored.save() == original.save()
        assert restored.from_date is None
        for day in range(1, 32):
            d = date(2013, 1, day)
            assert restored.matches(d) == original.matches(d), d

    def test_from_invalid_snapshot(self):
        """Test that bad snapshot data raises ValidationError."""
        with pytest.raises(ValidationError, match="Invalid recurrence snapshot"):
            Recurrence.from_snapshot({"start": "garbage"})
        with pytest.raises(ValidationError, match="Invalid recurrence snapshot"):
            Recurrence.from_snapshot({"rules": [{"measure": "hours", "units": [1]}]})

    def test_repr(self):
        """Test the debugging representation."""
        r = Recurrence(start="2014-01-01").every(2, "days")
        assert repr(r) == "Recurrence(start=2014-01-01, end=None, rules=[days=[2]])"
