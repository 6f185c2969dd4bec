"""Tests for gymstats/aggregator.py"""

import pytest

from gymstats.aggregator import aggregate_files, build_datasets, merge_mappings, to_json_ready
from gymstats.errors import LogProcessingError, MissingColumns
from gymstats.parser import DataPoint, Dataset


def _p(x, y):
    return DataPoint(x, y)


class TestMergeMappings:
    def test_concatenates_in_mapping_order(self):
        first = {"A": [_p("2", 1)], "B": [_p("1", 2)]}
        second = {"A": [_p("1", 3)]}
        assert merge_mappings([first, second]) == {
            "A": [_p("2", 1), _p("1", 3)],
            "B": [_p("1", 2)],
        }

    def test_inputs_not_mutated(self):
        first = {"A": [_p("1", 1)]}
        merge_mappings([first, {"A": [_p("2", 2)]}])
        assert first == {"A": [_p("1", 1)]}

    def test_empty(self):
        assert merge_mappings([]) == {}


class TestBuildDatasets:
    def test_sorts_points_and_labels(self):
        datasets = build_datasets({
            "T1": [_p("2024-01-01T12:04:00+02:00", 3), _p("2024-01-01T12:00:00+02:00", 1)],
            "Hipodroom": [_p("2024-01-01T12:02:00+02:00", 9)],
        })
        assert [d.label for d in datasets] == ["Hipodroom", "T1"]
        assert [p.y for p in datasets[1].data] == [1, 3]

    def test_equal_x_keeps_insertion_order(self):
        datasets = build_datasets({
            "T1": [_p("2024-01-01T12:00:00+02:00", 1), _p("2024-01-01T12:00:00+02:00", 2)],
        })
        assert [p.y for p in datasets[0].data] == [1, 2]

    def test_labels_compared_by_code_point(self):
        datasets = build_datasets({"b": [], "B": [], "Ä": [], "a": []})
        assert [d.label for d in datasets] == ["B", "a", "b", "Ä"]


class TestAggregateFiles:
    def test_two_file_range(self, write_log, normalizer):
        first = write_log("log-20240101.csv", [
            ["2024-01-01 10:00:00", "1", "Hipodroom", "5", "success", "ok"],
        ])
        second = write_log("log-20240102.csv", [
            ["2024-01-02 10:00:00", "1", "Hipodroom", "7", "success", "ok"],
        ])

        datasets = aggregate_files([first, second], normalizer)
        assert datasets == [
            Dataset("Hipodroom", (
                _p("2024-01-01T12:00:00+02:00", 5),
                _p("2024-01-02T12:00:00+02:00", 7),
            )),
        ]

    def test_file_order_does_not_change_point_order(self, write_log, normalizer):
        first = write_log("log-20240101.csv", [
            ["2024-01-01 10:00:00", "1", "Hipodroom", "5", "success", "ok"],
        ])
        second = write_log("log-20240102.csv", [
            ["2024-01-02 10:00:00", "1", "Hipodroom", "7", "success", "ok"],
        ])
        assert aggregate_files([second, first], normalizer) == aggregate_files([first, second], normalizer)

    def test_output_is_ordered(self, write_log, normalizer):
        path = write_log("gym-stats-20240101.csv", [
            ["2024-01-01 10:10:00", "9", "Mustika", "4", "success", "ok"],
            ["2024-01-01 10:06:00", "1", "Hipodroom", "2", "success", "ok"],
            ["2024-01-01 10:00:00", "9", "Mustika", "1", "success", "ok"],
            ["2024-01-01 10:02:00", "3", "T1", "8", "success", "ok"],
        ])
        datasets = aggregate_files([path], normalizer)
        labels = [d.label for d in datasets]
        assert labels == sorted(labels)
        for dataset in datasets:
            xs = [p.x for p in dataset.data]
            assert xs == sorted(xs)

    def test_each_valid_row_appears_once(self, write_log, normalizer):
        rows = [
            ["2024-01-01 10:00:00", "1", "Hipodroom", str(n), "success", "ok"]
            for n in range(10)
        ]
        path = write_log("gym-stats-20240101.csv", rows)
        datasets = aggregate_files([path], normalizer)
        assert sorted(p.y for p in datasets[0].data) == list(range(10))

    def test_bad_file_fails_whole_request(self, write_log, normalizer):
        good = write_log("gym-stats-20240101.csv", [
            ["2024-01-01 10:00:00", "1", "Hipodroom", "5", "success", "ok"],
        ])
        bad = write_log("gym-stats-20240102.csv", [["x"]], header=["timestamp"])

        with pytest.raises(LogProcessingError) as exc_info:
            aggregate_files([good, bad], normalizer)
        assert exc_info.value.path == bad
        assert isinstance(exc_info.value.__cause__, MissingColumns)

    def test_unreadable_file_wrapped(self, tmp_path, normalizer):
        with pytest.raises(LogProcessingError):
            aggregate_files([str(tmp_path / "gym-stats-20240101.csv")], normalizer)

    def test_skip_counts_per_file(self, write_log, normalizer):
        path = write_log("gym-stats-20240101.csv", [
            ["2024-01-01 10:00:00", "1", "Hipodroom", "error", "401", ""],
        ])
        skipped = {}
        assert aggregate_files([path], normalizer, skipped) == []
        assert sum(skipped[path].values()) == 1


class TestToJsonReady:
    def test_shape(self):
        datasets = [Dataset("T1", (_p("2024-01-01T12:00:00+02:00", 3),))]
        assert to_json_ready(datasets) == [
            {"label": "T1", "data": [{"x": "2024-01-01T12:00:00+02:00", "y": 3}]},
        ]
