"""I/O utilities for optgen.

Provides the YAML schema reader and audit logging helpers.
"""

from .logging import (
    LOG_FORMATS,
    get_timestamped_log_path,
    log_json,
    log_yaml,
    resolution_record,
    write_resolution_log,
)
from .schema_yaml import (
    SchemaYamlLoader,
    load_default_document,
    load_default_schema,
    load_schema_document,
    load_schema_file,
    parse_schema_document,
)

__all__ = [
    # Logging
    "LOG_FORMATS",
    "get_timestamped_log_path",
    "log_json",
    "log_yaml",
    "resolution_record",
    "write_resolution_log",
    # Schema YAML
    "SchemaYamlLoader",
    "parse_schema_document",
    "load_schema_document",
    "load_schema_file",
    "load_default_document",
    "load_default_schema",
]
