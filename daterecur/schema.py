"""Pydantic models for rules, saved rule sets and recurrence files."""

from collections.abc import Mapping
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from . import constants
from .dates import to_date
from .errors import ValidationError
from .types import Measure

UnitValue = Union[int, str]


def normalize_units(units: Any) -> frozenset:
    """
    Normalize a units argument to a set of raw unit values.

    Accepts a single integer or name, a list/tuple/set of them, or a mapping
    of ``{value: True}`` pairs (entries with a falsy value are dropped).

    Raises:
        ValidationError: For any other type, or when no unit is given
    """
    if isinstance(units, (bool, float)) or units is None:
        raise ValidationError("Provide an array, object, string or number when passing units!")
    if isinstance(units, (int, str)):
        items = [units]
    elif isinstance(units, Mapping):
        items = [key for key, flag in units.items() if flag]
    elif isinstance(units, (list, tuple, set, frozenset)):
        items = list(units)
    else:
        raise ValidationError("Provide an array, object, string or number when passing units!")

    if not items:
        raise ValidationError("At least one unit must be provided")
    for item in items:
        if isinstance(item, bool) or not isinstance(item, (int, str)):
            raise ValidationError(f"Invalid unit value: {item!r}")
    return frozenset(items)


def _sorted_units(units: frozenset) -> list[UnitValue]:
    # Numbers first, then names
    return sorted(units, key=lambda u: (isinstance(u, str), u))


class PendingRule(BaseModel):
    """Units and measure staged for a rule, not yet validated against the measure."""

    model_config = ConfigDict(frozen=True)

    measure: Measure = Field(..., description="Measure the units are expressed in")
    units: frozenset[UnitValue] = Field(..., description="Raw units (numbers or names)")

    @field_validator("measure", mode="before")
    @classmethod
    def parse_measure(cls, v: Any) -> Measure:
        """Accept singular and snake_case measure names."""
        return Measure.parse(v)

    @field_validator("units", mode="before")
    @classmethod
    def parse_units(cls, v: Any) -> frozenset:
        """Accept a scalar, a list, or a ``{value: true}`` mapping."""
        return normalize_units(v)

    @field_serializer("units")
    def serialize_units(self, units: frozenset) -> list[UnitValue]:
        return _sorted_units(units)


class IntervalRule(BaseModel):
    """Matches every N units of an interval measure from the anchor date."""

    model_config = ConfigDict(frozen=True)

    measure: Measure
    units: frozenset[int]

    @field_validator("measure")
    @classmethod
    def validate_interval_measure(cls, v: Measure) -> Measure:
        """Ensure the measure is an interval measure."""
        if not v.is_interval:
            raise ValueError(f"{v.value} is not an interval measure")
        return v

    @field_serializer("units")
    def serialize_units(self, units: frozenset) -> list[int]:
        return sorted(units)


class CalendarRule(BaseModel):
    """Matches when the date's calendar position is one of the units."""

    model_config = ConfigDict(frozen=True)

    measure: Measure
    units: frozenset[int]

    @field_validator("measure")
    @classmethod
    def validate_calendar_measure(cls, v: Measure) -> Measure:
        """Ensure the measure is a calendar measure."""
        if v.is_interval:
            raise ValueError(f"{v.value} is not a calendar measure")
        return v

    @field_serializer("units")
    def serialize_units(self, units: frozenset) -> list[int]:
        return sorted(units)


Rule = Union[IntervalRule, CalendarRule]


class RecurrenceSnapshot(BaseModel):
    """Plain, serializable state of a rule set (bounds, exceptions, rules)."""

    start: Optional[date] = Field(None, description="Inclusive start; anchor for intervals")
    end: Optional[date] = Field(None, description="Inclusive end (null = open-ended)")
    exceptions: list[date] = Field(default_factory=list, description="Dates that never match")
    rules: list[PendingRule] = Field(default_factory=list, description="Rules, all must match")

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_bound(cls, v: Any) -> Optional[date]:
        """Read bounds with the same parser as the rule set."""
        if v is None:
            return None
        return to_date(v)

    @field_validator("exceptions", mode="before")
    @classmethod
    def parse_exceptions(cls, v: Any) -> list[date]:
        """Read exception dates with the same parser as the rule set."""
        if v is None:
            return []
        if isinstance(v, (str, date)):
            v = [v]
        return [to_date(item) for item in v]


class GlobalConfig(BaseModel):
    """Global configuration for daterecur."""

    date_format: str = Field(
        constants.DEFAULT_DATE_FORMAT,
        description="strftime format used when printing dates",
    )
    default_count: int = Field(
        constants.DEFAULT_OCCURRENCE_COUNT,
        description="Number of dates listed by next/previous when no count is given",
    )

    @field_validator("date_format")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        """Ensure date_format is not empty."""
        if not v or not v.strip():
            raise ValueError("date_format cannot be empty")
        return v

    @field_validator("default_count")
    @classmethod
    def validate_default_count(cls, v: int) -> int:
        """Ensure default_count is positive."""
        if v < 1:
            raise ValueError("default_count must be at least 1")
        return v


class RecurrenceEntry(RecurrenceSnapshot):
    """Named rule set stored in a recurrence file."""

    id: str = Field(..., description="Unique recurrence identifier")
    enabled: bool = Field(True, description="Whether the recurrence is enabled")
    description: Optional[str] = Field(None, description="Free-form description")
    source_file: Optional[Path] = Field(
        None,
        exclude=True,
        description="Source file path (populated during loading, not from YAML)",
    )

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        """Ensure id is valid."""
        if not v or not v.strip():
            raise ValueError("id cannot be empty")
        return v

    def to_recurrence(self):
        """Build the live rule set described by this entry."""
        from .recurrence import Recurrence

        return Recurrence.from_snapshot(self)


class RecurrenceFile(BaseModel):
    """Root recurrence file structure."""

    version: str = Field(constants.RECURRENCE_FILE_VERSION, description="File format version")
    recurrences: list[RecurrenceEntry] = Field(
        default_factory=list, description="List of recurrences"
    )
    config: GlobalConfig = Field(default_factory=GlobalConfig, description="Global configuration")

    def get(self, recurrence_id: str) -> Optional[RecurrenceEntry]:
        """Find a recurrence by id."""
        return next((r for r in self.recurrences if r.id == recurrence_id), None)
