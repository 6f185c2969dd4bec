import csv
import os
from datetime import timedelta, timezone

import pytest
import yaml

from gymstats.app import create_app
from gymstats.config import Config
from gymstats.parser import LOG_COLUMNS
from gymstats.timestamps import TimestampNormalizer, ZoneResolver


def _missing_zone(name):
    raise OSError(f"no zone data for {name}")


@pytest.fixture
def write_log(tmp_path):
    """Factory writing a daily log with the collector's header (or a custom one)."""

    def _write(name, rows, header=LOG_COLUMNS, mtime=None):
        path = tmp_path / name
        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            if header is not None:
                writer.writerow(header)
            writer.writerows(rows)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return str(path)

    return _write


@pytest.fixture
def write_raw(tmp_path):
    """Factory writing a file verbatim, for malformed CSV cases."""

    def _write(name, text, mtime=None):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return str(path)

    return _write


@pytest.fixture
def normalizer():
    return TimestampNormalizer(ZoneResolver("Europe/Tallinn"))


@pytest.fixture
def fallback_normalizer():
    return TimestampNormalizer(ZoneResolver("Europe/Tallinn", loader=_missing_zone))


@pytest.fixture
def utc_normalizer():
    return TimestampNormalizer(ZoneResolver("UTC", loader=lambda name: timezone(timedelta(0))))


@pytest.fixture
def config(tmp_path):
    """Config pointing logs, snapshot and static files at tmp_path."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "server": {"static_dir": str(tmp_path)},
        "data": {
            "log_dir": str(tmp_path),
            "snapshot_path": str(tmp_path / "gym-data.json"),
        },
    }))
    return Config(str(path))


@pytest.fixture
def app(config):
    """Create a Flask test app rooted at tmp_path."""
    application = create_app(config)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()
