"""Daily log filename contract: ``<prefix>-YYYYMMDD.csv``.

The date sits at a fixed offset right after ``<prefix>-``; range selection
reads it back from that slice, so formatting and parsing live together here.
"""

import os
from datetime import date, datetime

DEFAULT_PREFIX = "gym-stats"
EXTENSION = ".csv"
DATE_FORMAT = "%Y%m%d"
DATE_LENGTH = 8


def log_file_pattern(prefix: str = DEFAULT_PREFIX) -> str:
    """Glob pattern matching every daily log for *prefix*."""
    return f"{prefix}-*{EXTENSION}"


def format_log_filename(day: date, prefix: str = DEFAULT_PREFIX) -> str:
    """Return the daily log filename for *day*."""
    return f"{prefix}-{day.strftime(DATE_FORMAT)}{EXTENSION}"


def parse_log_filename_date(name: str, prefix: str = DEFAULT_PREFIX) -> date | None:
    """Extract the embedded date from a daily log filename.

    Returns None for names shorter than the contract allows or whose date
    slice is not a real YYYYMMDD calendar date.
    """
    basename = os.path.basename(name)
    start = len(prefix) + 1
    if len(basename) < start + DATE_LENGTH + len(EXTENSION):
        return None

    date_str = basename[start:start + DATE_LENGTH]
    if not (date_str.isascii() and date_str.isdigit()):
        return None
    try:
        return datetime.strptime(date_str, DATE_FORMAT).date()
    except ValueError:
        return None
