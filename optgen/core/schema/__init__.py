"""Option schema model and loader."""

from .errors import (
    AmbiguousDuplicateOptionError,
    CycleDetectedError,
    InvalidSchemaError,
    SchemaError,
    UnknownOptionReferencedError,
)
from .loader import load_schema, validate_document
from .model import (
    Category,
    NodeKind,
    Option,
    OptionVariant,
    Polarity,
    RequirementTerm,
    SchemaItem,
    SchemaModel,
    VisibleItem,
)

__all__ = [
    # Model
    "Category",
    "NodeKind",
    "Option",
    "OptionVariant",
    "Polarity",
    "RequirementTerm",
    "SchemaItem",
    "SchemaModel",
    "VisibleItem",
    # Loading
    "load_schema",
    "validate_document",
    # Errors
    "SchemaError",
    "InvalidSchemaError",
    "UnknownOptionReferencedError",
    "AmbiguousDuplicateOptionError",
    "CycleDetectedError",
]
