"""Tests for the command-line entry point."""

import json

import pytest
from click.testing import CliRunner

from dtntest import __version__
from dtntest.cli import main

FLAKY = "if [ -f flaky.marker ]; then exit 0; else touch flaky.marker; exit 1; fi"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def write_suite(tmp_path):
    """Write a suite file whose tests run the given shell commands."""

    def factory(commands: dict, modes: dict | None = None):
        path = tmp_path / "dtntest.json"
        data = {
            "name": "cli-suite",
            "tests": [{"name": name, "command": command} for name, command in commands.items()],
            "modes": modes or {},
        }
        path.write_text(json.dumps(data))
        return str(path)

    return factory


@pytest.fixture
def suite(write_suite):
    return write_suite({"A": "true", "B": "true", "C": "true", "D": "true"})


class TestMain:
    """Tests for the dtn_ct command."""

    def test_all_tests_pass(self, runner, suite):
        result = runner.invoke(main, ["--config", suite])

        assert result.exit_code == 0
        assert "Starting test number 0, A" in result.output
        assert "Starting test number 3, D" in result.output
        assert "Tried 4 tests, 0 fail." in result.output
        assert "Failed test(s)" not in result.output

    def test_failure_sets_exit_code(self, runner, write_suite):
        path = write_suite({"A": "true", "B": "exit 3", "C": "true", "D": "true"})

        result = runner.invoke(main, ["--config", path])

        assert result.exit_code != 0
        assert "    Fails, error: 3." in result.output
        assert "Tried 4 tests, 1 fails." in result.output
        assert "Failed test(s): B" in result.output

    def test_exclusions(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "-x", "A", "C"])

        assert result.exit_code == 0
        assert "Test number 0 (A) is bypassed." in result.output
        assert "Test number 2 (C) is bypassed." in result.output
        assert "Starting test number 1, B" in result.output
        assert "Starting test number 0, A" not in result.output

    def test_selection_list(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "B", "D"])

        assert result.exit_code == 0
        assert "Starting test number 1, B" in result.output
        assert "Starting test number 3, D" in result.output
        assert "Starting test number 0, A" not in result.output
        assert "bypassed" not in result.output

    def test_double_dash_ends_exclusions(self, runner, suite):
        """Test that names after -- are a selection list, not exclusions."""
        result = runner.invoke(main, ["--config", suite, "-x", "A", "--", "B"])

        assert result.exit_code == 0
        assert "Starting test number 1, B" in result.output
        assert "Starting test number 2, C" not in result.output
        assert "Starting test number 3, D" not in result.output
        assert "bypassed" not in result.output

    def test_double_dash_before_dashed_name(self, runner, write_suite):
        """Test that a flag-like token after -- is read as a test name."""
        path = write_suite({"A": "true", "B": "true"})

        result = runner.invoke(main, ["--config", path, "-n", "--", "-q"])

        assert result.exit_code == 1
        assert "Incorrect test name: -q" in result.output

    def test_range(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "-o", "2", "3"])

        assert result.exit_code == 0
        assert "Starting test number 1, B" not in result.output
        assert "Tried 2 tests, 0 fail." in result.output

    def test_retry_flaky_test(self, runner, write_suite):
        path = write_suite({"A": "true", "B": FLAKY})

        result = runner.invoke(main, ["--config", path, "-n", "-r"])

        assert result.exit_code == 0
        assert "Failed test(s): B" in result.output
        assert "Retrying B:" in result.output
        assert "All tests pass after second try." in result.output

    def test_clustered_flags(self, runner, write_suite):
        path = write_suite({"A": "true", "B": FLAKY})

        result = runner.invoke(main, ["--config", path, "-nr"])

        assert result.exit_code == 0
        assert "All tests pass after second try." in result.output

    def test_solution_dir(self, runner, write_suite):
        path = write_suite({"A": 'test "$PICOQUIC_SOLUTION_DIR" = /opt/pq'})

        assert runner.invoke(main, ["--config", path]).exit_code != 0
        assert runner.invoke(main, ["--config", path, "-S", "/opt/pq"]).exit_code == 0

    def test_help(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "-h"])

        assert result.exit_code == 0
        assert "Valid test names are" in result.output
        assert "    A, B, C, D," in result.output
        assert "Starting test" not in result.output

    def test_unknown_test(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "Z"])

        assert result.exit_code == 1
        assert "Incorrect test name: Z" in result.output
        assert "Valid test names are" in result.output
        assert "Starting test" not in result.output

    def test_unknown_exclusion(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "-x", "Z"])

        assert result.exit_code == 1
        assert "Incorrect test name: Z" in result.output
        assert "Starting test" not in result.output

    def test_invalid_flag(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "-q"])

        assert result.exit_code == 1
        assert "invalid option -- 'q'" in result.output

    def test_malformed_number(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "-s", "abc"])

        assert result.exit_code == 1
        assert "Incorrect minutes: abc" in result.output

    def test_stress_mode_bypasses_tests(self, runner, suite):
        result = runner.invoke(main, ["--config", suite, "-s", "5"])

        assert result.exit_code == 0
        assert "Starting test" not in result.output
        assert "bypassed" not in result.output

    def test_stress_mode_runs_configured_command(self, runner, write_suite):
        path = write_suite({"A": "exit 1"}, modes={"stress": "test {minutes} -lt 5"})

        assert runner.invoke(main, ["--config", path, "-s", "3"]).exit_code == 0
        assert runner.invoke(main, ["--config", path, "-s", "7"]).exit_code == 1

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(main, ["--config", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "Error loading test suite" in result.output

    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"tests": [{"name": "a"}, {"name": "a"}]}))

        result = runner.invoke(main, ["--config", str(path)])

        assert result.exit_code == 1
        assert "Duplicate test name" in result.output

    def test_write_config(self, runner, tmp_path):
        path = tmp_path / "dtntest.json"

        result = runner.invoke(main, ["--write-config", str(path)])

        assert result.exit_code == 0
        assert path.exists()
        assert "dtn_basic" in path.read_text()

        again = runner.invoke(main, ["--write-config", str(path)])
        assert again.exit_code == 1
        assert "already exists" in again.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
