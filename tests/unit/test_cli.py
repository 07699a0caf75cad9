"""Unit tests for the command-line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner

from optgen.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestValidate:
    """Tests for the validate command."""

    def test_bundled_schema_passes(self, runner):
        """Test that the bundled template validates."""
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        assert "Validation PASSED" in result.output

    def test_cycle_fails(self, runner, cycle_schema_file):
        """Test that a requirement cycle is reported."""
        result = runner.invoke(cli, ["--schema", str(cycle_schema_file), "validate"])
        assert result.exit_code == 1
        assert "S004_CYCLE_DETECTED" in result.output

    def test_every_defect_listed(self, runner, tmp_path):
        """Test that validate lists more than the first defect."""
        path = tmp_path / "bad.yaml"
        path.write_text(
            "options:\n"
            "  - !Option\n"
            "    name: a\n"
            "    requires: [ghost]\n"
            "  - !Option\n"
            "    name: b\n"
            "  - !Option\n"
            "    name: b\n"
        )
        result = runner.invoke(cli, ["--schema", str(path), "validate"])
        assert result.exit_code == 1
        assert "S002_UNKNOWN_OPTION_REFERENCED" in result.output
        assert "S003_AMBIGUOUS_DUPLICATE_OPTION" in result.output


class TestListing:
    """Tests for chips and options commands."""

    def test_chips(self, runner):
        """Test chip listing with architectures."""
        result = runner.invoke(cli, ["chips"])
        assert result.exit_code == 0
        assert "esp32c6" in result.output
        assert "riscv32imac-unknown-none-elf" in result.output

    def test_options_filtered_by_chip(self, runner):
        """Test that inapplicable options are hidden."""
        result = runner.invoke(cli, ["options", "--chip", "esp32c2"])
        assert result.exit_code == 0
        assert "[Options]" in result.output
        assert "wokwi:" not in result.output
        assert "ble-lib" in result.output

    def test_options_help_text(self, runner):
        """Test chip-specific help text is shown."""
        result = runner.invoke(cli, ["options", "--chip", "esp32c2", "--help-text"])
        assert "esp-prog" in result.output

    def test_options_with_schema_file(self, runner, small_schema_file):
        """Test listing a custom schema."""
        result = runner.invoke(cli, ["--schema", str(small_schema_file), "options", "-c", "x"])
        assert result.exit_code == 0
        assert "[Extras]" in result.output
        assert "  extra-one: Extra one  (group: extra)" in result.output


class TestResolve:
    """Tests for the resolve command."""

    def test_consistent_selection(self, runner):
        """Test summary and selected option flags."""
        result = runner.invoke(cli, ["resolve", "--chip", "esp32c6", "-o", "wifi"])
        assert result.exit_code == 0
        assert "Configuration is consistent" in result.output
        assert (
            "Selected options: --chip esp32c6 -o unstable-hal -o alloc -o wifi"
            in result.output
        )

    def test_conflict_exits_nonzero(self, runner):
        """Test that error diagnostics fail the command."""
        result = runner.invoke(
            cli, ["resolve", "--chip", "esp32c6", "-o", "ble-bleps", "-o", "ble-trouble"]
        )
        assert result.exit_code == 1
        assert "GroupConflict" in result.output

    def test_warning_does_not_fail(self, runner):
        """Test that an overridden request is only a warning."""
        result = runner.invoke(
            cli,
            ["resolve", "--chip", "esp32c6", "-d", "probe-rs", "-o", "panic-rtt-target"],
        )
        assert result.exit_code == 0
        assert "WARNING RequestOverridden" in result.output

    def test_json_output(self, runner):
        """Test JSON output with template symbols."""
        result = runner.invoke(
            cli, ["resolve", "--chip", "esp32c6", "-o", "ble-trouble", "--json"]
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["consistent"] is True
        assert payload["symbols"][-2:] == ["esp32c6", "riscv"]
        assert "ble-lib" in payload["symbols"]

    def test_custom_schema(self, runner, small_schema_file):
        """Test resolution against a schema file."""
        result = runner.invoke(
            cli, ["--schema", str(small_schema_file), "resolve", "-c", "esp32", "-o", "extra-two"]
        )
        assert result.exit_code == 1
        assert "NegativeRequirementViolated" in result.output

    def test_config_file(self, runner, sample_resolver_config):
        """Test that the resolver config file is honoured."""
        result = runner.invoke(
            cli,
            ["resolve", "-c", "esp32c6", "-o", "nope", "--config", str(sample_resolver_config)],
        )
        assert result.exit_code == 0
        assert "UnknownOptionRequested" not in result.output

    def test_unknown_option_fails(self, runner):
        """Test unknown requests are errors by default."""
        result = runner.invoke(cli, ["resolve", "-c", "esp32c6", "-o", "nope"])
        assert result.exit_code == 1
        assert "Unknown option 'nope'" in result.output

    def test_csv_and_log_file(self, runner, tmp_path):
        """Test CSV export and YAML audit log."""
        csv_path = tmp_path / "result.csv"
        log_path = tmp_path / "audit.yaml"
        result = runner.invoke(
            cli,
            [
                "resolve", "-c", "esp32c6", "-o", "wifi",
                "--csv", str(csv_path), "--log-file", str(log_path),
            ],
        )
        assert result.exit_code == 0
        assert csv_path.exists()
        records = [r for r in yaml.safe_load_all(log_path.read_text()) if r]
        assert records[0]["selected"] == ["unstable-hal", "alloc", "wifi"]
        assert records[0]["requested"] == {"wifi": True}

    def test_broken_schema_reports_error(self, runner, cycle_schema_file):
        """Test schema errors are reported before resolving."""
        result = runner.invoke(
            cli, ["--schema", str(cycle_schema_file), "resolve", "-c", "esp32c6", "-o", "A"]
        )
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_json_log_format(self, runner, tmp_path):
        """Test JSON-lines audit log."""
        log_path = tmp_path / "audit.jsonl"
        for _ in range(2):
            result = runner.invoke(
                cli,
                [
                    "resolve", "-c", "esp32c6", "-o", "alloc",
                    "--log-file", str(log_path), "--log-format", "json",
                ],
            )
            assert result.exit_code == 0
        records = [json.loads(line) for line in log_path.read_text().splitlines()]
        assert [r["selected"] for r in records] == [["alloc"], ["alloc"]]

    def test_timestamped_log_file(self, runner, tmp_path):
        """Test the audit record goes to a new timestamped file."""
        result = runner.invoke(
            cli,
            [
                "resolve", "-c", "esp32c6", "-o", "alloc",
                "--log-file", str(tmp_path / "audit.yaml"), "--log-timestamp",
            ],
        )
        assert result.exit_code == 0
        written = list(tmp_path.glob("audit_*.yaml"))
        assert len(written) == 1
        assert not (tmp_path / "audit.yaml").exists()
