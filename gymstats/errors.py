"""Exception types raised by the log-to-snapshot pipeline."""


class GymStatsError(Exception):
    """Base class for all pipeline failures."""


class InvalidDateFormat(GymStatsError, ValueError):
    """A date bound was not a valid YYYY-MM-DD string."""


class LogFilesNotFound(GymStatsError, FileNotFoundError):
    """No daily log file matched the naming pattern or the requested range."""


class MalformedHeader(GymStatsError):
    """A log file has no readable header row."""


class MissingColumns(GymStatsError):
    """A log file header lacks one or more required columns."""

    def __init__(self, missing):
        self.missing = tuple(missing)
        super().__init__(f"missing required columns in CSV: {', '.join(self.missing)}")


class InvalidTimestamp(GymStatsError, ValueError):
    """A row timestamp did not match YYYY-MM-DD HH:MM:SS."""


class LogProcessingError(GymStatsError):
    """Processing of one log file failed; the whole request fails with it."""

    def __init__(self, path, cause):
        self.path = path
        super().__init__(f"failed to process {path}: {cause}")
