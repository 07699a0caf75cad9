"""optgen: option schema and resolution engine for firmware project templates.

This package provides tools for:
- Loading a declarative schema of template options and categories
- Checking the schema for unknown references, ambiguous duplicates and cycles
- Resolving a chip plus explicit option requests into a final selection
  with ordered diagnostics

Example usage:
    >>> from optgen.io import load_default_schema
    >>> from optgen.core.resolver import Resolver
    >>>
    >>> schema = load_default_schema()
    >>> result = Resolver(schema).resolve("esp32c6", {"wifi": True})
    >>> result.selected
    ['unstable-hal', 'alloc', 'wifi']
"""

__version__ = "0.1.0"
