"""Option resolution engine.

Example workflow:
    >>> from optgen.core.schema import load_schema
    >>> from optgen.core.graph import build_constraint_graph
    >>> from optgen.core.resolver import Resolver
    >>>
    >>> schema = load_schema(document)
    >>> resolver = Resolver(schema, build_constraint_graph(schema))
    >>> result = resolver.resolve("esp32c6", {"wifi": True})
    >>> result.is_consistent
    True
"""

from .config import ResolverConfig
from .diagnostics import Diagnostic, DiagnosticKind
from .engine import ResolutionResult, Resolver, resolve
from .export import (
    diagnostics_to_frame,
    export_result_csv,
    export_result_json,
    format_resolution_summary,
    result_to_frame,
)
from .symbols import selection_symbols

__all__ = [
    # Engine
    "Resolver",
    "ResolutionResult",
    "resolve",
    # Config
    "ResolverConfig",
    # Diagnostics
    "Diagnostic",
    "DiagnosticKind",
    # Symbols
    "selection_symbols",
    # Export
    "result_to_frame",
    "diagnostics_to_frame",
    "export_result_csv",
    "export_result_json",
    "format_resolution_summary",
]
