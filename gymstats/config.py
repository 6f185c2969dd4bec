"""Configuration manager — YAML file deep-merged over built-in defaults."""

import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"


class Config:
    """Configuration manager that loads from YAML and merges with defaults."""

    DEFAULTS = {
        "server": {
            "host": "0.0.0.0",
            "port": 8002,
            "debug": False,
            "static_dir": ".",
            "index_page": "dashboard.html",
        },
        "data": {
            "log_dir": ".",
            "log_prefix": "gym-stats",
            "snapshot_path": "gym-data.json",
        },
        "timezone": {
            "name": "Europe/Tallinn",
            "fallback_offset_hours": 2,
            "fallback_name": "EET",
            "bucket_minutes": 2,
        },
        "collector": {
            "base_url": "https://ministeerium.codeventions.com/t/coupling/show_climbers_in/",
            "referer_url": "https://ministeerium.codeventions.com/t/doorserver/openair/ministeerium/",
            "locations": {
                "1": "Hipodroom",
                "3": "T1",
                "9": "Mustika",
            },
            "interval_seconds": 120,
            "timeout_seconds": 30,
            "credentials_file": "gym-config.env",
        },
        "logging": {
            "level": "INFO",
        },
    }

    def __init__(self, config_path=None):
        self._config = copy.deepcopy(self.DEFAULTS)

        if config_path is not None:
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    user_config = yaml.safe_load(f)

                if user_config and isinstance(user_config, dict):
                    self._config = self._deep_merge(self._config, user_config)
                logger.debug("Loaded config from %s", config_path)
            except FileNotFoundError:
                logger.debug("Config file %s not found, using defaults", config_path)
            except yaml.YAMLError:
                logger.warning("Invalid YAML in %s, using defaults", config_path)

        # YAML turns bare numeric keys into ints; location ids are strings on disk.
        locations = self._config["collector"].get("locations") or {}
        self._config["collector"]["locations"] = {
            str(loc_id): str(name) for loc_id, name in locations.items()
        }

    @classmethod
    def from_env(cls, config_path=None):
        """Build a Config from an explicit path, else ``CONFIG_PATH``, else config.yaml."""
        path = config_path or os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)
        return cls(path)

    @staticmethod
    def _deep_merge(base, override):
        """Recursively merge override dict into base dict."""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = Config._deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
        return result

    def get(self, key, default=None):
        """Get a top-level config key."""
        return self._config.get(key, default)

    def __getitem__(self, key):
        return self._config[key]

    def __contains__(self, key):
        return key in self._config

