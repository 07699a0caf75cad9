"""Command-line interface for optgen.

Provides CLI commands for validating option schemas and resolving option
selections for a target chip.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click

from optgen import __version__


def setup_logging(verbose: bool = False, debug: bool = False) -> logging.Logger:
    """Setup logging for CLI commands."""
    level = logging.DEBUG if debug else (logging.INFO if verbose else logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    return logging.getLogger("optgen")


def _load_document(schema_path: Optional[str]):
    from optgen.io import load_default_document, load_schema_document

    if schema_path:
        return load_schema_document(Path(schema_path))
    return load_default_document()


def _load_schema(ctx: click.Context):
    """Load schema and graph once per invocation; exit 1 on schema defects."""
    from optgen.core.graph import build_constraint_graph
    from optgen.core.schema import SchemaError, load_schema

    logger = ctx.obj["logger"]
    try:
        schema = load_schema(_load_document(ctx.obj["schema_path"]))
        graph = build_constraint_graph(schema)
    except SchemaError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    logger.info(f"Schema loaded: {len(schema.options)} options")
    return schema, graph


def _warn_unknown_chip(logger: logging.Logger, chip: str) -> None:
    from optgen.config import find_chip_config, list_chips

    if find_chip_config(chip) is None:
        logger.warning(f"Chip '{chip}' is not a known chip ({', '.join(list_chips())})")


@click.group()
@click.version_option(version=__version__, prog_name="optgen")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.option("--schema", "schema_path", type=click.Path(exists=True, dir_okay=False),
              help="Option schema YAML (default: bundled template)")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool, schema_path: Optional[str]) -> None:
    """optgen: option schema validation and resolution for firmware templates.

    Examples:

        # Check the bundled schema
        optgen validate

        # Show options offered for a chip
        optgen options --chip esp32c6

        # Resolve a selection
        optgen resolve --chip esp32c6 -o wifi -o log
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["schema_path"] = schema_path
    ctx.obj["logger"] = setup_logging(verbose, debug)


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Validate the schema and report every defect found."""
    from optgen.core.graph import ConstraintGraph
    from optgen.core.schema import CycleDetectedError, load_schema, validate_document

    document = _load_document(ctx.obj["schema_path"])
    errors = validate_document(document)
    if not errors:
        cycle = ConstraintGraph(load_schema(document)).find_cycle()
        if cycle is not None:
            errors.append(CycleDetectedError(cycle))

    if errors:
        click.echo("Validation FAILED:")
        for error in errors:
            click.echo(f"  - {error}")
        sys.exit(1)
    click.echo("Validation PASSED: schema is consistent")


@cli.command()
def chips() -> None:
    """List known target chips."""
    from optgen.config import get_chip_config, list_chips

    for name in list_chips():
        config = get_chip_config(name)
        click.echo(f"{config.name:<10} {config.architecture:<7} {config.target}")


@cli.command()
@click.option("--chip", "-c", required=True, help="Target chip")
@click.option("--help-text", is_flag=True, help="Include option help text")
@click.pass_context
def options(ctx: click.Context, chip: str, help_text: bool) -> None:
    """Show the options available for a chip."""
    from optgen.core.schema import NodeKind

    logger = ctx.obj["logger"]
    _warn_unknown_chip(logger, chip)
    schema, _ = _load_schema(ctx)

    def show(items, depth: int) -> None:
        indent = "  " * depth
        for item in items:
            if item.kind is NodeKind.CATEGORY:
                click.echo(f"{indent}[{item.display_name}]")
                show(item.children, depth + 1)
                continue
            group = item.variant.selection_group
            suffix = f"  (group: {group})" if group else ""
            click.echo(f"{indent}{item.name}: {item.display_name}{suffix}")
            if help_text and item.help:
                click.echo(f"{indent}    {item.help}")

    show(schema.visible_items(chip), 0)


@cli.command()
@click.option("--chip", "-c", required=True, help="Target chip")
@click.option("--option", "-o", "enabled", multiple=True, help="Option to enable (repeatable)")
@click.option("--disable", "-d", "disabled", multiple=True, help="Option to keep off (repeatable)")
@click.option("--config", type=click.Path(exists=True, dir_okay=False),
              help="Resolver configuration file (YAML)")
@click.option("--csv", "csv_path", type=click.Path(dir_okay=False),
              help="Write the option table to this CSV file")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--log-file", type=click.Path(dir_okay=False),
              help="Append an audit record to this file")
@click.option("--log-format", type=click.Choice(["yaml", "json"]), default="yaml",
              show_default=True, help="Audit record format")
@click.option("--log-timestamp", is_flag=True,
              help="Write the audit record to a new timestamped file next to --log-file")
@click.pass_context
def resolve(
    ctx: click.Context,
    chip: str,
    enabled: Tuple[str, ...],
    disabled: Tuple[str, ...],
    config: Optional[str],
    csv_path: Optional[str],
    as_json: bool,
    log_file: Optional[str],
    log_format: str,
    log_timestamp: bool,
) -> None:
    """Resolve an option selection for a chip.

    Exits with status 1 when the selection has errors.
    """
    from optgen.core.resolver import (
        Resolver,
        ResolverConfig,
        export_result_csv,
        format_resolution_summary,
        selection_symbols,
    )
    from optgen.io import resolution_record, write_resolution_log

    logger = ctx.obj["logger"]
    _warn_unknown_chip(logger, chip)
    schema, graph = _load_schema(ctx)

    resolver_config = ResolverConfig.from_yaml(config) if config else ResolverConfig()
    requested: Dict[str, bool] = {name: False for name in disabled}
    for name in enabled:
        requested[name] = True

    result = Resolver(schema, graph, resolver_config).resolve(chip, requested)

    if csv_path:
        export_result_csv(schema, result, Path(csv_path), logger, requested)
    if log_file:
        record = resolution_record(result, requested, ctx.obj["schema_path"])
        written = write_resolution_log(log_file, record, log_format, log_timestamp)
        logger.info(f"Audit record written: {written}")

    if as_json:
        payload = result.to_dict()
        payload["symbols"] = selection_symbols(schema, result)
        click.echo(json.dumps(payload, indent=2))
    else:
        click.echo(format_resolution_summary(result))
        selected_flags: List[str] = [f"-o {name}" for name in result.selected]
        click.echo("")
        click.echo(f"Selected options: --chip {chip} {' '.join(selected_flags)}".rstrip())

    if not result.is_consistent:
        sys.exit(1)


def main() -> None:
    """Main entry point for CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
