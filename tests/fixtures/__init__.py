"""Test fixtures for optgen.

Provides schema document builders and YAML snippets.
"""

from .schemas import (
    CYCLE_YAML,
    SMALL_YAML,
    create_cycle_document,
    create_small_document,
)

__all__ = [
    "CYCLE_YAML",
    "SMALL_YAML",
    "create_cycle_document",
    "create_small_document",
]
