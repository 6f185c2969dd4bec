"""Tests for the main.py command line."""

import json

import pytest
import yaml

import main


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "data": {
            "log_dir": str(tmp_path),
            "snapshot_path": str(tmp_path / "gym-data.json"),
        },
    }))
    return str(path)


class TestBuildParser:
    def test_generate_range_args(self):
        args = main.build_parser().parse_args(["generate", "--from", "2024-01-01", "--to", "2024-01-02"])
        assert (args.command, args.from_date, args.to_date) == ("generate", "2024-01-01", "2024-01-02")

    def test_command_required(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args([])

    def test_collect_once(self):
        args = main.build_parser().parse_args(["--config", "x.yaml", "collect", "--once"])
        assert args.once is True
        assert args.config == "x.yaml"


class TestGenerateCommand:
    def test_latest(self, config_file, write_log, tmp_path, capsys):
        write_log("gym-stats-20240101.csv", [["2024-01-01 10:00:00", "1", "T1", "4", "success", "ok"]])

        assert main.main(["--config", config_file, "generate"]) == 0
        assert "Found 1 locations with data" in capsys.readouterr().out
        assert json.loads((tmp_path / "gym-data.json").read_text())[0]["label"] == "T1"

    def test_range_not_found(self, config_file, capsys):
        assert main.main(["--config", config_file, "generate", "--from", "2024-01-01", "--to", "2024-01-02"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_half_range_rejected(self, config_file):
        assert main.main(["--config", config_file, "generate", "--from", "2024-01-01"]) == 2


class TestCollectCommand:
    def test_missing_credentials(self, tmp_path, config_file):
        with open(config_file, "a") as f:
            f.write(f"collector:\n  credentials_file: {tmp_path / 'missing.env'}\n")
        assert main.main(["--config", config_file, "collect", "--once"]) == 1
