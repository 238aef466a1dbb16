"""Enumeration of the dates matched by a rule set."""

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, Optional, Union

from .dates import format_date
from .errors import PreconditionError
from .pattern import OccurrencePattern

if TYPE_CHECKING:
    from .recurrence import Recurrence

logger = logging.getLogger(__name__)

NEXT = "next"
PREVIOUS = "previous"
ALL = "all"

_ONE_DAY = timedelta(days=1)


class OccurrenceEnumerator:
    """Walks a cursor forward or backward and collects matching dates.

    One enumerator serves a single query; the candidate pattern it uses is
    rebuilt from the rule set every time ``run`` is called.
    """

    def __init__(self, recurrence: "Recurrence"):
        self.recurrence = recurrence

    def run(
        self,
        kind: str,
        count: Optional[int] = None,
        date_format: Optional[str] = None,
    ) -> list[Union[date, str]]:
        """
        Collect occurrences.

        ``next`` and ``previous`` step one day at a time from the cursor and do
        not apply the start/end bounds to candidates; the end date only stops
        the walk. ``all`` includes the cursor itself when it matches, applies
        the bounds to every later candidate and runs until the end date.

        Args:
            kind: "next", "previous" or "all"
            count: Maximum number of dates (None = until the end date)
            date_format: strftime format; dates are returned as date objects if None

        Returns:
            Matching dates in walking order

        Raises:
            PreconditionError: Missing start/from, missing end for "all", or
                start later than end
        """
        recurrence = self.recurrence
        start, end = recurrence.start, recurrence.end

        if start is None and recurrence.from_date is None:
            raise PreconditionError("Cannot get occurrences without start or from date.")
        if kind == ALL and end is None:
            raise PreconditionError("Cannot get all occurrences without an end date.")
        if start is not None and end is not None and start > end:
            raise PreconditionError("Start date cannot be later than end date.")

        if kind != ALL and not (count is not None and count > 0):
            return []

        current = recurrence.from_date or start
        pattern = OccurrencePattern.build(recurrence.rules, start)
        results: list[Union[date, str]] = []

        if kind == ALL and recurrence.matches(current, ignore_bounds=True):
            results.append(self._emit(current, date_format))

        while count is None or len(results) < count:
            current = self._step(current, kind, pattern)

            if recurrence.matches(current, ignore_bounds=kind != ALL):
                results.append(self._emit(current, date_format))

            if end is not None and current >= end:
                break

        logger.debug(
            "Collected %d %s occurrence(s) (pattern=%s)",
            len(results),
            kind,
            pattern if kind == ALL else None,
        )
        return results

    @staticmethod
    def _step(current: date, kind: str, pattern: Optional[OccurrencePattern]) -> date:
        if kind == ALL:
            if pattern is not None:
                return pattern.next_date(current)
            return current + _ONE_DAY
        if kind == NEXT:
            return current + _ONE_DAY
        return current - _ONE_DAY

    @staticmethod
    def _emit(d: date, date_format: Optional[str]) -> Union[date, str]:
        if date_format is None:
            return d
        return format_date(d, date_format)
