"""
Fatal schema errors raised while loading an option schema.

These errors abort before any configuration can be resolved. Each carries a
machine-readable code and the offending identifiers so that callers can
report them verbatim to the schema author.

Error Codes:
    S001_INVALID_STRUCTURE: Node shape or value types are not understood
    S002_UNKNOWN_OPTION_REFERENCED: A requirement names no Option or Category
    S003_AMBIGUOUS_DUPLICATE_OPTION: Duplicate Option names with overlapping chips
    S004_CYCLE_DETECTED: Positive requirements form a cycle
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple


class SchemaError(Exception):
    """Base class for schema load/build errors.

    Attributes
    ----------
    message : str
        Human-readable error description
    code : str
        Machine-readable error code
    identifiers : Tuple[str, ...]
        Option/Category names involved in the error
    suggestion : str
        Actionable hint, may be empty
    """

    code: str = "S000_UNKNOWN"

    def __init__(
        self,
        message: str,
        identifiers: Iterable[str] = (),
        suggestion: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.identifiers: Tuple[str, ...] = tuple(identifiers)
        self.suggestion = suggestion

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.suggestion:
            text += f" ({self.suggestion})"
        return text

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "identifiers": list(self.identifiers),
            "suggestion": self.suggestion,
        }


class InvalidSchemaError(SchemaError):
    """A node is structurally invalid (bad type, missing name, name clash)."""

    code = "S001_INVALID_STRUCTURE"


class UnknownOptionReferencedError(SchemaError):
    """A requirement term targets a name that is neither Option nor Category.

    Suggests close matches from the declared names using difflib.
    """

    code = "S002_UNKNOWN_OPTION_REFERENCED"

    def __init__(
        self,
        referrer: str,
        target: str,
        known_names: Sequence[str] = (),
    ):
        suggestion = ""
        matches = get_close_matches(target, list(known_names), n=3, cutoff=0.6)
        if matches:
            suggestion = f"Did you mean: {', '.join(matches)}?"
        super().__init__(
            f"'{referrer}' requires unknown option or category '{target}'",
            identifiers=(referrer, target),
            suggestion=suggestion,
        )
        self.referrer = referrer
        self.target = target


class AmbiguousDuplicateOptionError(SchemaError):
    """Two declarations of one Option name apply to the same chip."""

    code = "S003_AMBIGUOUS_DUPLICATE_OPTION"

    def __init__(self, name: str, overlap: Optional[Sequence[str]] = None):
        if overlap:
            detail = f"overlapping chips: {', '.join(sorted(overlap))}"
        else:
            detail = "a declaration without 'chips' applies to every chip"
        super().__init__(
            f"Option '{name}' is declared more than once ({detail})",
            identifiers=(name,),
            suggestion="Give each declaration a disjoint 'chips' list",
        )
        self.name = name
        self.overlap: List[str] = sorted(overlap) if overlap else []


class CycleDetectedError(SchemaError):
    """Positive requirements (including category gates) form a cycle."""

    code = "S004_CYCLE_DETECTED"

    def __init__(self, cycle: Sequence[str]):
        self.cycle: List[str] = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(
            f"Requirement cycle detected: {path}",
            identifiers=self.cycle,
        )
