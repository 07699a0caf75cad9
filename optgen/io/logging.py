"""Audit logging for resolver runs.

Each ``optgen resolve --log-file`` call appends one resolution record to an
audit file, as a YAML document or a JSON line.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..core.resolver.engine import ResolutionResult

PathLike = Union[str, Path]

LOG_FORMATS = ("yaml", "json")


def get_timestamped_log_path(log_path: PathLike) -> Path:
    """Insert a run timestamp before the suffix.

    Example: audit.yaml -> audit_20261018_080530.yaml
    """
    log_path = Path(log_path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    suffix = log_path.suffix or ".log"
    return log_path.parent / f"{log_path.stem}_{timestamp}{suffix}"


def _prepare_log_destination(log_path: PathLike) -> Path:
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def resolution_record(
    result: ResolutionResult,
    requested: Optional[Mapping[str, bool]] = None,
    schema_source: Optional[str] = None,
) -> dict[str, Any]:
    """Build the audit record written for one resolver call."""
    record: dict[str, Any] = {
        "timestamp": datetime.now().isoformat(timespec="seconds"),
        "chip": result.chip,
        "requested": dict(requested or {}),
        "selected": result.selected,
        "consistent": result.is_consistent,
        "diagnostics": [d.to_dict() for d in result.diagnostics],
    }
    if schema_source is not None:
        record["schema"] = schema_source
    return record


def log_json(log_path: PathLike, record: dict[str, Any]) -> None:
    """Append a JSON line to log_path."""
    path = _prepare_log_destination(log_path)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(json.dumps(record, default=str))
        handle.write("\n")


def log_yaml(
    log_path: Optional[PathLike],
    record: dict[str, Any],
    *,
    logger: logging.Logger | None = None,
) -> None:
    """Append a YAML document to log_path, or to ``logger`` if given."""
    yaml_text = yaml.safe_dump(record, sort_keys=False).rstrip("\n")
    message = f"{yaml_text}\n---"
    if logger is not None:
        logger.info("%s", message)
        return
    if log_path is None:
        raise ValueError("log_yaml needs a log_path or a logger")

    path = _prepare_log_destination(log_path)
    with path.open("a", encoding="utf-8") as handle:
        handle.write(message)
        handle.write("\n")


def write_resolution_log(
    log_path: PathLike,
    record: dict[str, Any],
    fmt: str = "yaml",
    timestamped: bool = False,
) -> Path:
    """Append ``record`` to an audit file and return the path written.

    Parameters
    ----------
    log_path : PathLike
        Base audit file path.
    record : dict
        Record from :func:`resolution_record`.
    fmt : str
        "yaml" (one document per record) or "json" (one line per record).
    timestamped : bool
        If True, write to a fresh timestamped file next to ``log_path``
        instead of appending to it.

    Raises
    ------
    ValueError
        If ``fmt`` is not a known format.
    """
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Unknown log format '{fmt}' (expected one of {', '.join(LOG_FORMATS)})")
    path = get_timestamped_log_path(log_path) if timestamped else Path(log_path)
    if fmt == "json":
        log_json(path, record)
    else:
        log_yaml(path, record)
    return path
