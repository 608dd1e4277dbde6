"""Tests for the command line entry point."""

from pathlib import Path

import pytest

from helpmatch.config import ConfigurationError
from helpmatch.main import (
    EXIT_FATAL,
    EXIT_NOT_FOUND_OR_INVALID,
    EXIT_OK,
    build_parser,
    load_runtime_config,
    main,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Run the CLI against a fresh file database with no config file."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    return tmp_path


@pytest.fixture
def seeded(workspace, capsys):
    assert main(["seed", str(FIXTURES_DIR / "marketplace.yaml")]) == EXIT_OK
    capsys.readouterr()
    return workspace


class TestParser:
    """Tests for argument parsing."""

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_job_id_must_be_integer(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["find-helpers", "one"])

    def test_assign_helper_arguments(self):
        args = build_parser().parse_args(["assign-helper", "3", "leandro@email.com"])
        assert (args.command, args.job_id, args.email) == ("assign-helper", 3, "leandro@email.com")


class TestLoadRuntimeConfig:
    """Tests for log level priority."""

    def test_defaults_without_config_file_or_env(self, workspace):
        app_config, env_config = load_runtime_config(None, None)

        assert app_config.matching.criteria == ["weekday", "category", "tag"]
        assert type(env_config.log_level) is str
        assert env_config.log_level == "INFO"

    def test_config_level_used_by_default(self, workspace):
        _, env_config = load_runtime_config(FIXTURES_DIR / "minimal_config.yaml", None)
        assert env_config.log_level == "WARNING"

    def test_environment_beats_config(self, workspace, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        _, env_config = load_runtime_config(FIXTURES_DIR / "minimal_config.yaml", None)
        assert env_config.log_level == "ERROR"

    def test_cli_beats_environment(self, workspace, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        _, env_config = load_runtime_config(FIXTURES_DIR / "minimal_config.yaml", "DEBUG")
        assert env_config.log_level == "DEBUG"

    def test_invalid_config_raises(self, workspace):
        with pytest.raises(ConfigurationError):
            load_runtime_config(FIXTURES_DIR / "invalid_config.yaml", None)


class TestCommands:
    """End-to-end runs of each subcommand."""

    def test_seed_reports_counts(self, workspace, capsys):
        exit_code = main(["seed", str(FIXTURES_DIR / "marketplace.yaml")])

        out = capsys.readouterr().out
        assert exit_code == EXIT_OK
        assert "Seeded 6 users and 4 jobs" in out
        assert "  job 1: Weekly grocery run" in out

    def test_runs_with_built_in_defaults(self, workspace, capsys):
        """No config file and no LOG_LEVEL: every command still runs."""
        assert not (workspace / "config.yaml").exists()

        assert main(["seed", str(FIXTURES_DIR / "marketplace.yaml")]) == EXIT_OK
        assert main(["find-helpers", "1"]) == EXIT_OK
        assert main(["assign-helper", "1", "hawkeye@email.com"]) == EXIT_OK
        assert main(["close-job", "1"]) == EXIT_OK

        captured = capsys.readouterr()
        assert "Invalid log level" not in captured.err
        assert "Job 1 is CLOSED" in captured.out

    def test_find_helpers(self, seeded, capsys):
        assert main(["find-helpers", "1"]) == EXIT_OK
        assert capsys.readouterr().out.splitlines() == ["hawkeye@email.com"]

    def test_find_helpers_with_config(self, seeded, capsys):
        config_file = seeded / "config.yaml"
        config_file.write_text("matching:\n  criteria: [weekday, category]\n")

        assert main(["find-helpers", "1"]) == EXIT_OK
        assert capsys.readouterr().out.splitlines() == [
            "hawkeye@email.com",
            "leandro@email.com",
        ]

    def test_find_helpers_closed_job_prints_nothing(self, seeded, capsys):
        assert main(["find-helpers", "3"]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_find_helpers_unknown_job(self, seeded, capsys):
        assert main(["find-helpers", "9999"]) == EXIT_NOT_FOUND_OR_INVALID
        assert "Error:" in capsys.readouterr().err

    def test_assign_helper(self, seeded, capsys):
        assert main(["assign-helper", "1", "hawkeye@email.com"]) == EXIT_OK
        assert "Job 1 assigned to hawkeye@email.com (IN_PROGRESS)" in capsys.readouterr().out

    def test_assign_unknown_helper(self, seeded):
        assert main(["assign-helper", "1", "ghost@email.com"]) == EXIT_NOT_FOUND_OR_INVALID

    def test_close_job(self, seeded, capsys):
        assert main(["close-job", "2"]) == EXIT_OK
        assert "Job 2 is CLOSED" in capsys.readouterr().out

        assert main(["find-helpers", "2"]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_invalid_seed_file(self, workspace, capsys):
        exit_code = main(["seed", str(FIXTURES_DIR / "invalid_seed.yaml")])

        assert exit_code == EXIT_NOT_FOUND_OR_INVALID
        assert "Error:" in capsys.readouterr().err

    def test_missing_config_file(self, workspace, capsys):
        exit_code = main(["--config", "missing.yaml", "find-helpers", "1"])

        assert exit_code == EXIT_FATAL
        assert "Configuration Error" in capsys.readouterr().err
