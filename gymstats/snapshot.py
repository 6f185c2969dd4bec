"""Snapshot persistence — pretty-printed JSON replaced atomically."""

import json
import os
import tempfile
import threading

from gymstats.aggregator import to_json_ready
from gymstats.parser import Dataset


class SnapshotWriter:
    """Writes the dataset list to a fixed path, one writer at a time.

    Content goes to a temp file in the target directory and is moved into
    place with os.replace, so readers see either the old or the new file.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def write(self, datasets: list[Dataset]) -> str:
        """Replace the snapshot with *datasets*. Returns the snapshot path."""
        directory = os.path.dirname(os.path.abspath(self.path))
        payload = to_json_ready(datasets)

        with self._lock:
            os.makedirs(directory, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=directory, prefix=".snapshot-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, ensure_ascii=False)
                    f.write("\n")
                os.chmod(tmp, 0o644)
                os.replace(tmp, self.path)
            except Exception:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        return self.path


def read_snapshot(path: str) -> list[dict]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
