"""Pytest configuration and shared fixtures for daterecur tests."""

from datetime import date, timedelta

import pytest
import yaml

from daterecur import Recurrence

# ============================================================================
# Date Helpers
# ============================================================================


def date_range(start: date, end: date) -> list[date]:
    """Every date from start through end, inclusive."""
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def brute_force_all(recurrence: Recurrence) -> list[date]:
    """Dates between start and end that match, found by checking every day."""
    return [d for d in date_range(recurrence.start, recurrence.end) if recurrence.matches(d)]


# ============================================================================
# Recurrence Builders
# ============================================================================


def make_recurrence(
    start="2014-01-01",
    end=None,
    rules: list[dict] = None,
    exceptions: list = None,
) -> Recurrence:
    """Create a Recurrence from plain rule mappings."""
    return Recurrence(start=start, end=end, rules=rules or [], exceptions=exceptions or [])


# ============================================================================
# Pytest Fixtures
# ============================================================================


@pytest.fixture
def sample_recurrence():
    """Fixture providing a recurrence builder function."""
    return make_recurrence


@pytest.fixture
def sample_recurrence_dict():
    """Fixture providing a sample recurrence entry as a dictionary."""
    return {
        "id": "test-recurrence",
        "enabled": True,
        "description": "Every other day in 2014",
        "start": "2014-01-01",
        "end": "2014-12-31",
        "exceptions": ["2014-01-05"],
        "rules": [{"measure": "days", "units": [2]}],
    }


@pytest.fixture
def temp_recurrence_dir(tmp_path):
    """Fixture providing a temporary recurrences directory with a config file."""
    recurrences_dir = tmp_path / "recurrences"
    recurrences_dir.mkdir()

    config = {"date_format": "%Y-%m-%d", "default_count": 3}
    with open(recurrences_dir / "_config.yaml", "w") as f:
        yaml.dump(config, f)

    return recurrences_dir


@pytest.fixture
def recurrences_yaml_file(tmp_path):
    """Fixture providing a recurrences.yaml file with several entries."""
    data = {
        "config": {"default_count": 3},
        "recurrences": [
            {
                "id": "every-other-day",
                "start": "2014-01-01",
                "rules": [{"measure": "days", "units": [2]}],
            },
            {
                "id": "first-week",
                "start": "2014-01-01",
                "end": "2014-01-07",
                "rules": [{"measure": "days", "units": [2]}],
            },
            {
                "id": "first-and-third-sunday",
                "enabled": False,
                "start": "2013-01-01",
                "end": "2013-03-31",
                "rules": [
                    {"measure": "daysOfWeek", "units": ["Sunday"]},
                    {"measure": "weeksOfMonthByDay", "units": [0, 2]},
                ],
            },
        ],
    }

    path = tmp_path / "recurrences.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)

    return path


@pytest.fixture
def all_by_brute_force():
    """Fixture providing the day-by-day reference enumeration."""
    return brute_force_all
