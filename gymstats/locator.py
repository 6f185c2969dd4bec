"""Daily log file discovery — latest file or every file in a date range."""

import glob
import os
import re
from datetime import date, datetime

from gymstats.errors import InvalidDateFormat, LogFilesNotFound
from gymstats.filenames import DEFAULT_PREFIX, log_file_pattern, parse_log_filename_date

DATE_BOUND_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_date_bound(text: str) -> date:
    """Parse a strict YYYY-MM-DD range bound. Raises InvalidDateFormat."""
    if not isinstance(text, str) or not DATE_BOUND_PATTERN.fullmatch(text):
        raise InvalidDateFormat(f"invalid date format: {text!r} (expected YYYY-MM-DD)")
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidDateFormat(f"invalid date format: {text!r}: {exc}") from exc


def list_log_files(log_dir: str = ".", prefix: str = DEFAULT_PREFIX) -> list[str]:
    """Return paths matching the daily-log pattern, sorted by name.

    Raises LogFilesNotFound if nothing matches.
    """
    pattern = log_file_pattern(prefix)
    files = sorted(
        os.path.normpath(path)
        for path in glob.glob(os.path.join(glob.escape(log_dir), pattern))
    )
    if not files:
        raise LogFilesNotFound(f"no CSV files found matching {pattern}")
    return files


def find_latest(log_dir: str = ".", prefix: str = DEFAULT_PREFIX) -> str:
    """Return the daily log with the greatest modification time."""
    latest_file = None
    latest_mtime = None

    for path in list_log_files(log_dir, prefix):
        try:
            mtime = os.stat(path).st_mtime
        except OSError:
            continue
        if latest_mtime is None or mtime > latest_mtime:
            latest_file, latest_mtime = path, mtime

    if latest_file is None:
        raise LogFilesNotFound(f"no readable CSV files matching {log_file_pattern(prefix)}")
    return latest_file


def find_in_range(from_text: str, to_text: str, log_dir: str = ".",
                  prefix: str = DEFAULT_PREFIX) -> list[str]:
    """Return daily logs whose embedded date lies in [from, to], inclusive.

    An empty list means the range matched nothing; LogFilesNotFound means no
    daily log exists at all.
    """
    start = parse_date_bound(from_text)
    end = parse_date_bound(to_text)

    selected = []
    for path in list_log_files(log_dir, prefix):
        file_date = parse_log_filename_date(path, prefix)
        if file_date is None:
            continue
        if start <= file_date <= end:
            selected.append(path)
    return selected
