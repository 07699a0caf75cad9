"""Unit tests for the YAML schema reader and logging helpers."""

import json
import logging

import pytest
import yaml

from optgen.core.schema import NodeKind, SchemaModel
from optgen.io import (
    get_timestamped_log_path,
    load_default_schema,
    load_schema_document,
    load_schema_file,
    log_json,
    log_yaml,
    parse_schema_document,
    resolution_record,
    write_resolution_log,
)


class TestSchemaYaml:
    """Tests for tagged YAML parsing."""

    def test_tags_become_kinds(self):
        """Test that !Option and !Category set the kind key."""
        document = parse_schema_document(
            "options:\n"
            "  - !Option\n"
            "    name: a\n"
            "  - !Category\n"
            "    name: c\n"
            "    options: []\n"
        )
        assert document["options"][0] == {"name": "a", "kind": "option"}
        assert document["options"][1]["kind"] == "category"

    def test_tag_on_scalar_rejected(self):
        """Test that a tag must annotate a mapping."""
        with pytest.raises(yaml.YAMLError):
            parse_schema_document("options:\n  - !Option just-a-name\n")

    def test_unknown_tag_rejected(self):
        """Test that unknown tags are not silently accepted."""
        with pytest.raises(yaml.YAMLError):
            parse_schema_document("options:\n  - !Widget\n    name: a\n")

    def test_untagged_document(self):
        """Test that untagged mappings pass through unchanged."""
        document = parse_schema_document("- name: a\n- name: b\n")
        assert [n["name"] for n in document] == ["a", "b"]

    def test_load_schema_file(self, small_schema_file):
        """Test loading a schema file end to end."""
        schema = load_schema_file(small_schema_file)
        assert isinstance(schema, SchemaModel)
        assert schema.option_names == ("base", "extra-one", "extra-two")
        assert schema.get_category("extras").options == ("extra-one", "extra-two")
        assert schema.items[1].kind is NodeKind.CATEGORY

    def test_missing_file(self, tmp_path):
        """Test error on missing schema file."""
        with pytest.raises(FileNotFoundError):
            load_schema_document(tmp_path / "missing.yaml")

    def test_default_schema(self):
        """Test that the bundled template loads."""
        schema = load_default_schema()
        assert "wifi" in schema
        assert schema.has_category("editor")


class TestLoggingHelpers:
    """Tests for audit logging utilities."""

    def test_timestamped_log_path(self, tmp_path):
        """Test that the timestamp is inserted before the suffix."""
        path = get_timestamped_log_path(tmp_path / "resolve.log")
        assert path.parent == tmp_path
        assert path.name.startswith("resolve_")
        assert path.suffix == ".log"

    def test_resolution_record(self, resolver):
        """Test audit record contents."""
        result = resolver.resolve("esp32c6", {"wifi": True})
        record = resolution_record(result, {"wifi": True}, "template.yaml")
        assert record["chip"] == "esp32c6"
        assert record["selected"] == ["unstable-hal", "alloc", "wifi"]
        assert record["consistent"] is True
        assert record["schema"] == "template.yaml"
        assert record["diagnostics"] == []

    def test_log_json_appends_lines(self, tmp_path):
        """Test JSON lines are appended."""
        path = tmp_path / "audit" / "log.jsonl"
        log_json(path, {"n": 1})
        log_json(path, {"n": 2})
        lines = path.read_text().splitlines()
        assert [json.loads(line)["n"] for line in lines] == [1, 2]

    def test_log_yaml_to_file(self, tmp_path):
        """Test YAML documents are appended with separators."""
        path = tmp_path / "log.yaml"
        log_yaml(path, {"chip": "esp32"})
        log_yaml(path, {"chip": "esp32c3"})
        documents = [d for d in yaml.safe_load_all(path.read_text()) if d]
        assert [d["chip"] for d in documents] == ["esp32", "esp32c3"]

    def test_log_yaml_to_logger(self, caplog):
        """Test YAML record routed through a logger."""
        logger = logging.getLogger("optgen.test.yaml")
        with caplog.at_level(logging.INFO, logger="optgen.test.yaml"):
            log_yaml(None, {"chip": "esp32"}, logger=logger)
        assert "chip: esp32" in caplog.text

    def test_log_yaml_needs_destination(self):
        """Test error when neither path nor logger is given."""
        with pytest.raises(ValueError):
            log_yaml(None, {"chip": "esp32"})

    def test_write_resolution_log_json(self, tmp_path, resolver):
        """Test JSON audit records are appended one per line."""
        record = resolution_record(resolver.resolve("esp32c6", {"wifi": True}))
        path = write_resolution_log(tmp_path / "audit.jsonl", record, "json")
        write_resolution_log(tmp_path / "audit.jsonl", record, "json")
        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["selected"] == ["unstable-hal", "alloc", "wifi"]

    def test_write_resolution_log_timestamped(self, tmp_path):
        """Test timestamped audit files are written next to the base path."""
        path = write_resolution_log(tmp_path / "audit.yaml", {"chip": "esp32"}, timestamped=True)
        assert path != tmp_path / "audit.yaml"
        assert path.name.startswith("audit_")
        assert not (tmp_path / "audit.yaml").exists()
        assert next(yaml.safe_load_all(path.read_text()))["chip"] == "esp32"

    def test_write_resolution_log_unknown_format(self, tmp_path):
        """Test error on an unknown audit format."""
        with pytest.raises(ValueError, match="xml"):
            write_resolution_log(tmp_path / "audit.xml", {}, "xml")
