"""Export functions for resolution results.

Tabular views (pandas) for audit files, JSON dumps, and a plain-text summary
for terminals.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Mapping, Optional

import pandas as pd

from ..schema.model import SchemaModel
from .engine import ResolutionResult

RESULT_COLUMNS = [
    "option",
    "display_name",
    "category",
    "selection_group",
    "applicable",
    "requested",
    "selected",
]

DIAGNOSTIC_COLUMNS = [
    "kind",
    "severity",
    "message",
    "option",
    "conflicting",
    "group",
    "category",
    "members",
    "forced_by",
]


def result_to_frame(
    schema: SchemaModel,
    result: ResolutionResult,
    requested: Optional[Mapping[str, bool]] = None,
) -> pd.DataFrame:
    """One row per option with its chip variant facts and final state.

    Args:
        schema: Schema the result was resolved against.
        result: Resolution result.
        requested: Original requests; the ``requested`` column is empty
            (None) for options that were not requested explicitly.

    Returns:
        DataFrame with RESULT_COLUMNS, rows in declaration order.
    """
    requested = requested or {}
    rows = []
    for name, selected in result.final.items():
        option = schema.get_option(name)
        variant = option.variant_for(result.chip)
        shown = variant or option.variants[0]
        rows.append(
            {
                "option": name,
                "display_name": shown.display_name,
                "category": ";".join(shown.owning_categories),
                "selection_group": shown.selection_group or "",
                "applicable": variant is not None,
                "requested": requested.get(name),
                "selected": selected,
            }
        )
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def diagnostics_to_frame(result: ResolutionResult) -> pd.DataFrame:
    """One row per diagnostic, in the order they were produced."""
    rows = []
    for diagnostic in result.diagnostics:
        record = diagnostic.to_dict()
        record["members"] = ";".join(record["members"])
        rows.append(record)
    return pd.DataFrame(rows, columns=DIAGNOSTIC_COLUMNS)


def export_result_csv(
    schema: SchemaModel,
    result: ResolutionResult,
    output_path: Path,
    logger: logging.Logger,
    requested: Optional[Mapping[str, bool]] = None,
) -> Path:
    """Write the option table to CSV, and diagnostics next to it if any.

    Diagnostics go to ``<stem>_diagnostics.csv`` in the same directory.

    Returns:
        Path to the option table.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    result_to_frame(schema, result, requested).to_csv(output_path, index=False)
    logger.info("Wrote option table: %s", output_path)

    if result.diagnostics:
        diag_path = output_path.with_name(f"{output_path.stem}_diagnostics.csv")
        diagnostics_to_frame(result).to_csv(diag_path, index=False)
        logger.info("Wrote %d diagnostic(s): %s", len(result.diagnostics), diag_path)
    return output_path


def export_result_json(result: ResolutionResult, output_path: Path, indent: int = 2) -> None:
    """Export a result to JSON with pretty formatting."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(result.to_dict(), f, indent=indent, ensure_ascii=False)


def format_resolution_summary(result: ResolutionResult) -> str:
    """Format a human-readable summary of a resolution."""
    lines = [f"Resolution for {result.chip}", "=" * 50, ""]

    selected = result.selected
    lines.append(f"Selected ({len(selected)}):")
    for name in selected:
        lines.append(f"  - {name}")
    if not selected:
        lines.append("  (none)")
    lines.append("")

    if result.diagnostics:
        lines.append(f"Diagnostics ({len(result.diagnostics)}):")
        for diagnostic in result.diagnostics:
            lines.append(f"  - {diagnostic}")
    else:
        lines.append("Configuration is consistent")

    return "\n".join(lines)
