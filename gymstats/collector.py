"""Occupancy sampler — polls each location and appends to the daily CSV log."""

import csv
import json
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

import requests
from apscheduler.schedulers.blocking import BlockingScheduler
from dotenv import dotenv_values

from gymstats.filenames import format_log_filename
from gymstats.parser import LOG_COLUMNS, SUCCESS_STATUS
from gymstats.timestamps import TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:142.0) Gecko/20100101 Firefox/142.0"
AUTH_FAILURE_CODES = (401, 403)


@dataclass(frozen=True)
class Credentials:
    phpsessid: str = ""
    xsrf_token: str = ""
    laravel_session: str = ""
    api_key: str = ""

    def cookie_header(self) -> str:
        return (
            f"PHPSESSID={self.phpsessid}; XSRF-TOKEN={self.xsrf_token}; "
            f"laravel_session={self.laravel_session}"
        )


def load_credentials(path: str) -> Credentials:
    """Read session tokens from a dotenv file. Raises FileNotFoundError."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Configuration file '{path}' not found")
    values = dotenv_values(path)
    return Credentials(
        phpsessid=values.get("PHPSESSID") or "",
        xsrf_token=values.get("XSRF_TOKEN") or "",
        laravel_session=values.get("LARAVEL_SESSION") or "",
        api_key=values.get("API_KEY") or "",
    )


@dataclass(frozen=True)
class Sample:
    timestamp: str
    location_id: str
    location_name: str
    user_count: str
    status: str
    response: str

    def to_row(self) -> list[str]:
        return [getattr(self, column) for column in LOG_COLUMNS]


def extract_user_count(body: str) -> str:
    """Pull ``total`` out of a JSON response body as the logged user_count."""
    try:
        data = json.loads(body)
    except ValueError:
        return "parse_error"
    if not isinstance(data, dict):
        return "parse_error"
    return str(data.get("total", "unknown"))


class OccupancyClient:
    """One GET per location per cycle, no retries."""

    def __init__(self, base_url, referer_url, credentials, timeout=30, session=None):
        self._base_url = base_url
        self._referer = f"{referer_url}{credentials.api_key}"
        self._credentials = credentials
        self._timeout = timeout
        self._session = session or requests.Session()

    def _headers(self) -> dict:
        return {
            "User-Agent": USER_AGENT,
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": "en-US,en;q=0.5",
            "X-XSRF-TOKEN": self._credentials.xsrf_token,
            "Referer": self._referer,
            "Cookie": self._credentials.cookie_header(),
        }

    def fetch(self, location_id: str, location_name: str, timestamp: str) -> Sample:
        try:
            resp = self._session.get(
                self._base_url,
                params={"json": "true", "location": location_id},
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("%s (ID: %s): request failed: %s", location_name, location_id, exc)
            return Sample(timestamp, location_id, location_name, "error", "error", str(exc))

        if resp.status_code == 200:
            user_count = extract_user_count(resp.text)
            logger.info("%s (ID: %s): users=%s", location_name, location_id, user_count)
            return Sample(timestamp, location_id, location_name, user_count, SUCCESS_STATUS, resp.text)

        logger.error("%s (ID: %s): HTTP %d", location_name, location_id, resp.status_code)
        if resp.status_code in AUTH_FAILURE_CODES:
            logger.warning("Authentication failed, update the tokens in the credentials file")
        return Sample(timestamp, location_id, location_name, "error", str(resp.status_code), resp.text)


class DailyLogWriter:
    """Appends samples to ``<prefix>-YYYYMMDD.csv``, writing the header for new files."""

    def __init__(self, log_dir: str, prefix: str):
        self._log_dir = log_dir
        self._prefix = prefix
        self._lock = threading.Lock()
        os.makedirs(log_dir, exist_ok=True)

    def path_for(self, moment: datetime) -> str:
        return os.path.join(self._log_dir, format_log_filename(moment.date(), self._prefix))

    def append(self, samples: list[Sample], moment: datetime) -> str:
        path = self.path_for(moment)
        with self._lock:
            is_new = not os.path.exists(path)
            with open(path, "a", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                if is_new:
                    writer.writerow(LOG_COLUMNS)
                writer.writerows(sample.to_row() for sample in samples)
        return path


def collect_once(client: OccupancyClient, writer: DailyLogWriter, locations: dict,
                 clock=None) -> list[Sample]:
    """Sample every location once and append the results to today's log."""
    now = (clock or (lambda: datetime.now(timezone.utc)))()
    timestamp = now.strftime(TIMESTAMP_FORMAT)

    samples = [
        client.fetch(location_id, location_name, timestamp)
        for location_id, location_name in locations.items()
    ]
    path = writer.append(samples, now)
    logger.debug("Appended %d sample(s) to %s", len(samples), path)
    return samples


def run_collector(config, once=False) -> None:
    """Run sampling cycles forever (or once) using the collector config section."""
    settings = config["collector"]
    data = config["data"]

    credentials = load_credentials(settings["credentials_file"])
    client = OccupancyClient(
        settings["base_url"],
        settings["referer_url"],
        credentials,
        timeout=settings["timeout_seconds"],
    )
    writer = DailyLogWriter(data["log_dir"], data["log_prefix"])
    locations = settings["locations"]

    if once:
        collect_once(client, writer, locations)
        return

    logger.info(
        "Starting collection every %ds for %s",
        settings["interval_seconds"], ", ".join(locations.values()),
    )
    scheduler = BlockingScheduler(timezone=timezone.utc)
    scheduler.add_job(
        collect_once,
        "interval",
        seconds=settings["interval_seconds"],
        args=[client, writer, locations],
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,
        coalesce=True,
    )
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Collector stopped")
