"""UTC log timestamps → bucketed local ISO-8601 strings.

The collector writes naive ``YYYY-MM-DD HH:MM:SS`` values in UTC. They are
shown in the configured civil zone, floored to the bucket width, with an
explicit offset, e.g. ``2024-01-01T12:00:00+02:00``.
"""

import logging
import re
import threading
from datetime import datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gymstats.errors import InvalidTimestamp

logger = logging.getLogger(__name__)

TIMESTAMP_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_ZONE = "Europe/Tallinn"
DEFAULT_BUCKET_MINUTES = 2


class ZoneResolver:
    """Resolves a named zone once, falling back to a fixed offset.

    The fallback has no daylight-saving rules, so summer readings come out
    an hour off when it is in use.
    """

    def __init__(self, name=DEFAULT_ZONE, fallback_offset_hours=2,
                 fallback_name="EET", loader=ZoneInfo):
        self.name = name
        self._fallback = timezone(timedelta(hours=fallback_offset_hours), fallback_name)
        self._loader = loader
        self._lock = threading.Lock()
        self._zone = None
        self._is_fallback = False

    def resolve(self) -> tzinfo:
        with self._lock:
            if self._zone is None:
                try:
                    self._zone = self._loader(self.name)
                except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
                    logger.warning(
                        "Zone data for %s unavailable (%s), using fixed offset %s",
                        self.name, exc, self._fallback,
                    )
                    self._zone = self._fallback
                    self._is_fallback = True
            return self._zone

    @property
    def is_fallback(self) -> bool:
        self.resolve()
        return self._is_fallback


def parse_utc_timestamp(text: str) -> datetime:
    """Parse an exact ``YYYY-MM-DD HH:MM:SS`` string as a UTC instant."""
    if not isinstance(text, str) or not TIMESTAMP_PATTERN.fullmatch(text):
        raise InvalidTimestamp(f"invalid timestamp: {text!r}")
    try:
        naive = datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise InvalidTimestamp(f"invalid timestamp: {text!r}: {exc}") from exc
    return naive.replace(tzinfo=timezone.utc)


def bucket_timestamp(moment: datetime, minutes: int = DEFAULT_BUCKET_MINUTES) -> datetime:
    """Floor *moment* to a multiple of *minutes* within its hour, dropping seconds."""
    return moment.replace(
        minute=(moment.minute // minutes) * minutes,
        second=0,
        microsecond=0,
    )


def format_timestamp(moment: datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS±HH:MM``."""
    return moment.isoformat(timespec="seconds")


class TimestampNormalizer:
    def __init__(self, resolver: ZoneResolver | None = None,
                 bucket_minutes: int = DEFAULT_BUCKET_MINUTES):
        if bucket_minutes < 1 or 60 % bucket_minutes:
            raise ValueError(f"bucket_minutes must divide 60, got {bucket_minutes}")
        self.resolver = resolver or ZoneResolver()
        self.bucket_minutes = bucket_minutes

    @classmethod
    def from_config(cls, config):
        tz = config["timezone"]
        resolver = ZoneResolver(
            name=tz["name"],
            fallback_offset_hours=tz["fallback_offset_hours"],
            fallback_name=tz["fallback_name"],
        )
        return cls(resolver, bucket_minutes=tz["bucket_minutes"])

    def to_local(self, text: str) -> datetime:
        """Parse a UTC log timestamp and convert it into the local zone."""
        moment = parse_utc_timestamp(text)
        try:
            return moment.astimezone(self.resolver.resolve())
        except OverflowError as exc:
            raise InvalidTimestamp(f"timestamp out of range: {text!r}") from exc

    def normalize(self, text: str) -> str:
        """Full conversion used for chart x-values. Raises InvalidTimestamp."""
        local = bucket_timestamp(self.to_local(text), self.bucket_minutes)
        return format_timestamp(local)
