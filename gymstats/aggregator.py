"""Merge per-file parse results into sorted, chart-ready datasets."""

from collections import Counter
from typing import Iterable

from gymstats.errors import GymStatsError, LogProcessingError
from gymstats.parser import DataPoint, Dataset, parse_log_file
from gymstats.timestamps import TimestampNormalizer


def merge_mappings(mappings: Iterable[dict[str, list[DataPoint]]]) -> dict[str, list[DataPoint]]:
    """Concatenate per-location point lists, preserving mapping order."""
    merged: dict[str, list[DataPoint]] = {}
    for mapping in mappings:
        for location, points in mapping.items():
            merged.setdefault(location, []).extend(points)
    return merged


def build_datasets(by_location: dict[str, list[DataPoint]]) -> list[Dataset]:
    """One Dataset per location, points ordered by x, datasets by label.

    Both sorts are stable, so equal x-values keep file-then-row order.
    """
    datasets = [
        Dataset(label=location, data=tuple(sorted(points, key=lambda p: p.x)))
        for location, points in by_location.items()
    ]
    datasets.sort(key=lambda d: d.label)
    return datasets


def aggregate_files(paths: list[str], normalizer: TimestampNormalizer,
                    skipped: dict[str, Counter] | None = None) -> list[Dataset]:
    """Parse every file in *paths* and return the merged datasets.

    Any file-level failure aborts the whole aggregate with LogProcessingError;
    partial results are never returned. *skipped*, when given, receives a
    Counter of dropped rows per path.
    """
    mappings = []
    for path in paths:
        counter = Counter()
        try:
            mappings.append(parse_log_file(path, normalizer, counter))
        except (GymStatsError, OSError) as exc:
            raise LogProcessingError(path, exc) from exc
        if skipped is not None:
            skipped[path] = counter
    return build_datasets(merge_mappings(mappings))


def to_json_ready(datasets: list[Dataset]) -> list[dict]:
    return [dataset.to_dict() for dataset in datasets]
