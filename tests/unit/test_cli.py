"""Tests for the command line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner

from fluent_config.cli.main import main
from fluent_config.logging import setup_logging
from fluent_config.settings import get_settings


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI reconfigures logging against the runner's streams."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    setup_logging(log_level="WARNING", log_format="console")


class TestShowCommand:
    """Test cases for `fluent-config show`."""

    def test_shows_merged_json(self, runner, write_config):
        """Files merge by order and the environment overrides them."""
        base = write_config("base.json", {"Database": {"Host": "base", "Port": 5432}})
        override = write_config("override.yaml", {"Database": {"Host": "override"}})

        result = runner.invoke(
            main,
            ["show", "-f", str(base), "-f", str(override), "--env-prefix", "FCTEST_"],
            env={"FCTEST_Database__Port": "6543"},
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"Database": {"Host": "override", "Port": "6543"}}

    def test_secrets_are_masked_unless_revealed(self, runner, write_config):
        """Secret-looking values print as *** by default."""
        path = write_config("secrets.json", {"Database": {"Password": "hunter2", "Host": "db"}})

        masked = runner.invoke(main, ["show", "--no-env", "-f", str(path), "--format", "flat"])
        revealed = runner.invoke(main, ["show", "--no-env", "-f", str(path), "--format", "flat", "--reveal"])

        assert "Database:Password=***" in masked.output
        assert "hunter2" not in masked.output
        assert "Database:Password=hunter2" in revealed.output

    def test_yaml_output(self, runner, write_config):
        """YAML output reconstitutes nesting and lists."""
        path = write_config("app.json", {"Hosts": ["a", "b"], "Debug": True})

        result = runner.invoke(main, ["show", "--no-env", "-f", str(path), "--format", "yaml"])

        assert yaml.safe_load(result.output) == {"Hosts": ["a", "b"], "Debug": "true"}

    def test_values_print_as_merged(self, runner, write_config):
        """Leading and trailing zeros survive in json and yaml output."""
        path = write_config("codes.json", {"Zip": "007", "Version": "1.10"})

        as_json = runner.invoke(main, ["show", "--no-env", "-f", str(path)])
        as_yaml = runner.invoke(main, ["show", "--no-env", "-f", str(path), "--format", "yaml"])

        assert json.loads(as_json.output) == {"Zip": "007", "Version": "1.10"}
        assert yaml.safe_load(as_yaml.output) == {"Zip": "007", "Version": "1.10"}

    def test_failure_exits_nonzero(self, runner, tmp_path):
        """Build failures are listed and the exit code is 1."""
        missing = tmp_path / "missing.json"

        result = runner.invoke(main, ["show", "--no-env", "-f", str(missing)])

        assert result.exit_code == 1
        assert f"Configuration file not found: {missing}" in result.output


class TestLoggingSettings:
    """Test cases for logging defaults taken from FLUENT_CONFIG_* settings."""

    def test_settings_drive_logging(self, runner, write_config, tmp_path):
        """Level, format and file come from the environment when no flag is given."""
        path = write_config("ok.json", {"A": "1"})
        log_file = tmp_path / "logs" / "cli.log"

        result = runner.invoke(
            main,
            ["check", "--no-env", "-f", str(path)],
            env={
                "FLUENT_CONFIG_LOG_LEVEL": "DEBUG",
                "FLUENT_CONFIG_LOG_FORMAT": "json",
                "FLUENT_CONFIG_LOG_FILE": str(log_file),
            },
        )

        assert result.exit_code == 0
        lines = log_file.read_text(encoding="utf-8").splitlines()
        records = [json.loads(line) for line in lines if line.startswith("{")]
        assert any(r["event"] == "fluent-config CLI initialized" for r in records)
        assert records[0]["level"] == "debug"

    def test_flag_overrides_settings(self, runner, write_config, tmp_path):
        """--log-level wins over FLUENT_CONFIG_LOG_LEVEL."""
        path = write_config("ok.json", {"A": "1"})
        log_file = tmp_path / "quiet.log"

        runner.invoke(
            main,
            ["--log-level", "ERROR", "--log-file", str(log_file), "check", "--no-env", "-f", str(path)],
            env={"FLUENT_CONFIG_LOG_LEVEL": "DEBUG"},
        )

        assert log_file.read_text(encoding="utf-8") == ""


class TestCheckCommand:
    """Test cases for `fluent-config check`."""

    def test_valid_configuration(self, runner, write_config):
        """A clean build reports the key count."""
        path = write_config("ok.json", {"A": "1", "B": {"C": "2"}})

        result = runner.invoke(main, ["check", "--no-env", "-f", str(path), "-r", "B:C"])

        assert result.exit_code == 0
        assert "Configuration is valid (2 keys)" in result.output

    def test_every_error_is_listed(self, runner, write_config):
        """All missing keys are reported in one run."""
        path = write_config("partial.json", {"A": "1"})

        result = runner.invoke(main, ["check", "--no-env", "-f", str(path), "-r", "X", "-r", "Y:Z"])

        assert result.exit_code == 1
        assert "Configuration has 2 error(s):" in result.output
        assert "Required key 'X' was not found" in result.output
        assert "Required key 'Y:Z' was not found" in result.output

    def test_ignore_policy(self, runner, tmp_path):
        """With --policy ignore a broken source does not fail the check."""
        missing = tmp_path / "missing.json"

        result = runner.invoke(main, ["check", "--no-env", "-f", str(missing), "--policy", "ignore"])

        assert result.exit_code == 0
