"""Daterecur - Calendar recurrence rules for dates.

Build a rule set from interval rules ("every 2 weeks") and calendar rules
("the 2nd Sunday of the month"), then ask whether a date matches it or list
the dates that do.

Main exports:
    Recurrence: Rule set with bounds, exceptions, matching and enumeration
    Measure: The ten rule measures
"""

from .errors import PreconditionError, RecurrenceError, ValidationError
from .recurrence import Recurrence
from .types import Measure

__all__ = [
    "Measure",
    "PreconditionError",
    "Recurrence",
    "RecurrenceError",
    "ValidationError",
]
__version__ = "1.0.0"
