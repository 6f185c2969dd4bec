"""Regeneration operations: latest file or date range → snapshot JSON."""

import logging
import os
import threading
from dataclasses import dataclass

from gymstats.aggregator import aggregate_files
from gymstats.errors import GymStatsError, InvalidDateFormat, LogFilesNotFound
from gymstats.locator import find_in_range, find_latest
from gymstats.snapshot import SnapshotWriter
from gymstats.timestamps import TimestampNormalizer

logger = logging.getLogger(__name__)

OUTCOME_OK = "ok"
OUTCOME_INVALID_INPUT = "invalid_input"
OUTCOME_NOT_FOUND = "not_found"
OUTCOME_FAILED = "failed"


@dataclass(frozen=True)
class GenerateResult:
    success: bool
    outcome: str
    message: str = ""
    output: str = ""
    error: str = ""
    locations: int = 0
    files: tuple[str, ...] = ()

    @classmethod
    def ok(cls, message, output, files, locations):
        return cls(success=True, outcome=OUTCOME_OK, message=message, output=output,
                   files=tuple(files), locations=locations)

    @classmethod
    def failure(cls, outcome, error):
        return cls(success=False, outcome=outcome, error=error)

    def to_dict(self) -> dict:
        body = {"success": self.success, "message": self.message}
        if self.output:
            body["output"] = self.output
        if self.error:
            body["error"] = self.error
        return body


class SnapshotService:
    """Runs locate → parse → aggregate → write, one request at a time."""

    def __init__(self, config, normalizer=None, writer=None):
        data = config["data"]
        self._log_dir = data["log_dir"]
        self._prefix = data["log_prefix"]
        self._normalizer = normalizer or TimestampNormalizer.from_config(config)
        self._writer = writer or SnapshotWriter(data["snapshot_path"])
        self._lock = threading.Lock()

    @property
    def snapshot_name(self) -> str:
        return os.path.basename(self._writer.path)

    def generate_latest(self) -> GenerateResult:
        with self._lock:
            try:
                log_file = find_latest(self._log_dir, self._prefix)
                locations = self._regenerate([log_file])
            except LogFilesNotFound as exc:
                logger.warning("Latest regeneration: %s", exc)
                return GenerateResult.failure(OUTCOME_NOT_FOUND, str(exc))
            except (GymStatsError, OSError) as exc:
                logger.exception("Latest regeneration failed")
                return GenerateResult.failure(OUTCOME_FAILED, f"Failed to convert CSV: {exc}")

        output = (
            f"Successfully generated {self.snapshot_name} from {log_file}\n"
            f"Found {locations} locations with data"
        )
        logger.info("Generated %s from %s (%d locations)", self.snapshot_name, log_file, locations)
        return GenerateResult.ok("Data generated successfully", output, [log_file], locations)

    def generate_range(self, from_text: str, to_text: str) -> GenerateResult:
        with self._lock:
            try:
                log_files = find_in_range(from_text, to_text, self._log_dir, self._prefix)
                if not log_files:
                    raise LogFilesNotFound(
                        f"No CSV files found for date range {from_text} to {to_text}"
                    )
                locations = self._regenerate(log_files)
            except InvalidDateFormat as exc:
                logger.warning("Range regeneration rejected: %s", exc)
                return GenerateResult.failure(OUTCOME_INVALID_INPUT, str(exc))
            except LogFilesNotFound as exc:
                logger.warning("Range regeneration: %s", exc)
                return GenerateResult.failure(OUTCOME_NOT_FOUND, str(exc))
            except (GymStatsError, OSError) as exc:
                logger.exception("Range regeneration failed for %s to %s", from_text, to_text)
                return GenerateResult.failure(OUTCOME_FAILED, f"Failed to convert CSV files: {exc}")

        output = (
            f"Successfully generated {self.snapshot_name} from {len(log_files)} files "
            f"({from_text} to {to_text})\n"
            f"Found {locations} locations with data"
        )
        logger.info(
            "Generated %s from %d files (%s to %s, %d locations)",
            self.snapshot_name, len(log_files), from_text, to_text, locations,
        )
        return GenerateResult.ok("Date range data generated successfully", output, log_files, locations)

    def _regenerate(self, log_files: list[str]) -> int:
        skipped = {}
        datasets = aggregate_files(log_files, self._normalizer, skipped)
        for path, counter in skipped.items():
            if counter:
                logger.debug(
                    "Skipped %d row(s) in %s: %s", sum(counter.values()), path,
                    ", ".join(f"{reason.value}={count}" for reason, count in counter.items()),
                )
        self._writer.write(datasets)
        return len(datasets)
