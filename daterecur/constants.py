"""
Global constants for daterecur.

This module centralizes magic strings, valid ranges, and default values
so the matchers, loader and CLI agree on them.
"""

# ============================================================================
# File Paths and Directories
# ============================================================================

CONFIG_FILENAME = "_config.yaml"
RECURRENCE_FILE_PATTERN = "*.yaml"
DEFAULT_RECURRENCES_DIR = "recurrences"
DEFAULT_RECURRENCES_FILE = "recurrences.yaml"
RECURRENCE_FILE_VERSION = "1.0"

# Environment variables for recurrence file discovery
ENV_RECURRENCES_DIR = "DATERECUR_DIR"
ENV_RECURRENCES_FILE = "DATERECUR_FILE"

# ============================================================================
# Date Formats
# ============================================================================

ISO_FORMAT = "%Y-%m-%d"
DEFAULT_DATE_FORMAT = ISO_FORMAT

# ============================================================================
# Calendar Ranges (inclusive)
# ============================================================================

MIN_DAY_OF_MONTH = 1
MAX_DAY_OF_MONTH = 31
MIN_DAY_OF_WEEK = 0  # Sunday
MAX_DAY_OF_WEEK = 6  # Saturday
MIN_WEEK_OF_MONTH = 0
MAX_WEEK_OF_MONTH = 4
MIN_WEEK_OF_YEAR = 0
MAX_WEEK_OF_YEAR = 52
MIN_MONTH_OF_YEAR = 0  # January
MAX_MONTH_OF_YEAR = 11  # December

DAYS_PER_WEEK = 7

# ============================================================================
# CLI Defaults
# ============================================================================

DEFAULT_OCCURRENCE_COUNT = 5
MAX_TABLE_COLUMN_WIDTH = 30
