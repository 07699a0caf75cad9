"""Unit tests for result export and symbol derivation."""

import json
import logging

import pandas as pd
import pytest

from optgen.config import ChipConfig, find_chip_config, get_chip_config, list_chips
from optgen.core.resolver import (
    DiagnosticKind,
    diagnostics_to_frame,
    export_result_csv,
    export_result_json,
    format_resolution_summary,
    result_to_frame,
    selection_symbols,
)
from optgen.core.resolver.export import DIAGNOSTIC_COLUMNS, RESULT_COLUMNS


@pytest.fixture
def conflict_result(resolver):
    return resolver.resolve("esp32c6", {"ble-bleps": True, "ble-trouble": True})


class TestFrames:
    """Tests for DataFrame views."""

    def test_result_frame(self, resolver, template_schema):
        """Test option table columns and contents."""
        result = resolver.resolve("esp32h2", {"alloc": True})
        df = result_to_frame(template_schema, result, {"alloc": True})
        assert list(df.columns) == RESULT_COLUMNS
        assert len(df) == len(template_schema.options)
        wifi = df[df["option"] == "wifi"].iloc[0]
        assert not wifi["applicable"]
        alloc = df[df["option"] == "alloc"].iloc[0]
        assert alloc["selected"] and alloc["requested"]
        defmt = df[df["option"] == "defmt"].iloc[0]
        assert defmt["category"] == "flashing-probe-rs;flashing-espflash"
        assert defmt["selection_group"] == "log-frontend"

    def test_diagnostics_frame(self, conflict_result):
        """Test one row per diagnostic with joined members."""
        df = diagnostics_to_frame(conflict_result)
        assert list(df.columns) == DIAGNOSTIC_COLUMNS
        assert len(df) == 1
        assert df.iloc[0]["members"] == "ble-bleps;ble-trouble"

    def test_empty_diagnostics_frame(self, resolver):
        """Test an empty frame still carries the columns."""
        df = diagnostics_to_frame(resolver.resolve("esp32", {}))
        assert df.empty
        assert list(df.columns) == DIAGNOSTIC_COLUMNS


class TestFileExport:
    """Tests for CSV and JSON files."""

    def test_export_csv_with_diagnostics(self, tmp_path, template_schema, conflict_result):
        """Test CSV export writes the diagnostics file next to the table."""
        logger = logging.getLogger("test")
        path = export_result_csv(template_schema, conflict_result, tmp_path / "out" / "r.csv", logger)
        assert path.exists()
        table = pd.read_csv(path)
        assert table["selected"].sum() == 5
        diagnostics = pd.read_csv(tmp_path / "out" / "r_diagnostics.csv")
        assert diagnostics.iloc[0]["kind"] == "GroupConflict"

    def test_export_csv_without_diagnostics(self, tmp_path, resolver, template_schema):
        """Test no diagnostics file when the result is clean."""
        result = resolver.resolve("esp32c6", {"wifi": True})
        export_result_csv(template_schema, result, tmp_path / "r.csv", logging.getLogger("test"))
        assert not (tmp_path / "r_diagnostics.csv").exists()

    def test_export_json(self, tmp_path, conflict_result):
        """Test JSON export round-trips the result record."""
        path = tmp_path / "result.json"
        export_result_json(conflict_result, path)
        with open(path) as f:
            data = json.load(f)
        assert data == conflict_result.to_dict()


class TestSummary:
    """Tests for the text summary."""

    def test_consistent_summary(self, resolver):
        text = format_resolution_summary(resolver.resolve("esp32c6", {"wifi": True}))
        assert text.startswith("Resolution for esp32c6")
        assert "Selected (3):" in text
        assert "Configuration is consistent" in text

    def test_empty_summary(self, resolver):
        text = format_resolution_summary(resolver.resolve("esp32c6", {}))
        assert "(none)" in text

    def test_diagnostic_summary(self, conflict_result):
        text = format_resolution_summary(conflict_result)
        assert "Diagnostics (1):" in text
        assert "ERROR GroupConflict" in text


class TestChipRegistry:
    """Tests for the chip registry."""

    def test_list_chips(self):
        assert list_chips() == [
            "esp32", "esp32c2", "esp32c3", "esp32c6", "esp32h2", "esp32s2", "esp32s3"
        ]

    def test_lookup_is_case_insensitive(self):
        assert get_chip_config("ESP32C6").name == "esp32c6"
        assert find_chip_config("esp32_c3").name == "esp32c3"

    def test_architecture(self):
        assert get_chip_config("esp32c6").is_riscv
        assert not get_chip_config("esp32s3").is_riscv
        assert get_chip_config("esp32").target == "xtensa-esp32-none-elf"

    def test_unknown_chip(self):
        assert find_chip_config("esp8266") is None
        with pytest.raises(KeyError):
            get_chip_config("esp8266")


class TestSelectionSymbols:
    """Tests for template symbols."""

    def test_symbols(self, resolver, template_schema):
        result = resolver.resolve("esp32c6", {"ble-trouble": True})
        assert selection_symbols(template_schema, result) == [
            "unstable-hal",
            "alloc",
            "ble-trouble",
            "embassy",
            "ble-lib",
            "base-template",
            "esp32c6",
            "riscv",
        ]

    def test_xtensa_symbols(self, resolver, template_schema):
        result = resolver.resolve("esp32s3", {})
        assert selection_symbols(template_schema, result) == ["esp32s3", "xtensa"]

    def test_unknown_chip_symbols(self, small_resolver, small_schema):
        result = small_resolver.resolve("chip-a", {"mqtt": True})
        assert selection_symbols(small_schema, result) == ["radio", "mqtt", "proto", "chip-a"]

    def test_explicit_chip_config(self, small_resolver, small_schema):
        result = small_resolver.resolve("chip-a", {})
        config = ChipConfig("chip-a", "riscv", "riscv32imc-unknown-none-elf")
        assert selection_symbols(small_schema, result, config) == ["chip-a", "riscv"]

    def test_symbols_ignore_diagnostics(self, resolver, template_schema):
        result = resolver.resolve("esp32c2", {"wokwi": True})
        assert result.diagnostics[0].kind is DiagnosticKind.CHIP_INCOMPATIBLE_SELECTION
        assert selection_symbols(template_schema, result) == ["esp32c2", "riscv"]
