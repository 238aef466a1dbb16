"""Exception types raised by daterecur.

Every error is a caller-input error raised synchronously at the offending
call. A rule set is never partially updated when one of these is raised.
"""


class RecurrenceError(Exception):
    """Base class for all daterecur errors."""


class ValidationError(RecurrenceError, ValueError):
    """Invalid rule units, measure, date or snapshot data."""


class PreconditionError(RecurrenceError):
    """Operation attempted before the rule set was in a usable state."""
