"""Tolerant daily-log CSV reader.

Columns are located by header name, so their order may change between
files. Unusable rows are dropped without raising; only an unreadable file or
an unusable header raises.
"""

import csv
import enum
import re
import sys
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Iterator

from gymstats.errors import InvalidTimestamp, MalformedHeader, MissingColumns
from gymstats.timestamps import TimestampNormalizer

REQUIRED_COLUMNS = ("timestamp", "location_name", "user_count", "status")
LOG_COLUMNS = ("timestamp", "location_id", "location_name", "user_count", "status", "response")
SUCCESS_STATUS = "success"

USER_COUNT_PATTERN = re.compile(r"[+-]?[0-9]+")
USER_COUNT_MIN = -(2 ** 63)
USER_COUNT_MAX = 2 ** 63 - 1

# Response bodies are unbounded; the default 128 KiB field cap would drop whole rows.
csv.field_size_limit(min(sys.maxsize, 2 ** 31 - 1))


@dataclass(frozen=True)
class DataPoint:
    x: str
    y: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Dataset:
    label: str
    data: tuple[DataPoint, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {"label": self.label, "data": [point.to_dict() for point in self.data]}


class SkipReason(enum.Enum):
    MALFORMED_ROW = "malformed_row"
    SHORT_ROW = "short_row"
    NOT_SUCCESS = "not_success"
    BAD_TIMESTAMP = "bad_timestamp"
    BAD_USER_COUNT = "bad_user_count"


def locate_columns(header: list[str] | None) -> dict[str, int]:
    """Map each required column name to its position in *header*."""
    if not header:
        raise MalformedHeader("failed to read CSV headers")

    positions = {}
    for idx, name in enumerate(header):
        if name in REQUIRED_COLUMNS:
            positions[name] = idx

    missing = [name for name in REQUIRED_COLUMNS if name not in positions]
    if missing:
        raise MissingColumns(missing)
    return positions


def parse_user_count(text: str) -> int | None:
    """Signed 64-bit decimal integer, or None."""
    if not USER_COUNT_PATTERN.fullmatch(text) or len(text.lstrip("+-").lstrip("0")) > 19:
        return None
    value = int(text)
    if not USER_COUNT_MIN <= value <= USER_COUNT_MAX:
        return None
    return value


def parse_row(row: list[str], columns: dict[str, int],
              normalizer: TimestampNormalizer) -> tuple[str, DataPoint] | SkipReason:
    """Turn one CSV row into ``(location_name, DataPoint)`` or a SkipReason."""
    if len(row) <= max(columns.values()):
        return SkipReason.SHORT_ROW
    if row[columns["status"]] != SUCCESS_STATUS:
        return SkipReason.NOT_SUCCESS

    try:
        x = normalizer.normalize(row[columns["timestamp"]])
    except InvalidTimestamp:
        return SkipReason.BAD_TIMESTAMP

    y = parse_user_count(row[columns["user_count"]])
    if y is None:
        return SkipReason.BAD_USER_COUNT

    return row[columns["location_name"]], DataPoint(x=x, y=y)


def iter_results(path: str, normalizer: TimestampNormalizer
                 ) -> Iterator[tuple[str, DataPoint] | SkipReason]:
    """Lazily yield a parse result for every data row in *path*.

    Raises OSError if the file cannot be opened, MalformedHeader or
    MissingColumns if its header is unusable.
    """
    with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
        reader = csv.reader(f)
        try:
            header = next(reader, None)
        except csv.Error as exc:
            raise MalformedHeader(f"failed to read CSV headers: {exc}") from exc
        columns = locate_columns(header)

        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error:
                yield SkipReason.MALFORMED_ROW
                continue
            yield parse_row(row, columns, normalizer)


def parse_log_file(path: str, normalizer: TimestampNormalizer,
                   skipped: Counter | None = None) -> dict[str, list[DataPoint]]:
    """Parse one daily log into location name → DataPoints in row order.

    Pass a Counter as *skipped* to collect per-reason counts of dropped rows.
    """
    by_location: dict[str, list[DataPoint]] = {}
    for result in iter_results(path, normalizer):
        if isinstance(result, SkipReason):
            if skipped is not None:
                skipped[result] += 1
            continue
        location, point = result
        by_location.setdefault(location, []).append(point)
    return by_location
