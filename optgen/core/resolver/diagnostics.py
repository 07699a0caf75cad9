"""Structured diagnostics produced by the resolver.

Diagnostics are recoverable: they are always returned next to a best-effort
final selection so that a UI or CLI can show exactly what is wrong.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple

Severity = Literal["error", "warning"]


class DiagnosticKind(str, Enum):
    """Kinds of resolution-time problems."""

    UNKNOWN_OPTION_REQUESTED = "UnknownOptionRequested"
    CHIP_INCOMPATIBLE_SELECTION = "ChipIncompatibleSelection"
    NEGATIVE_REQUIREMENT_VIOLATED = "NegativeRequirementViolated"
    GROUP_CONFLICT = "GroupConflict"
    CATEGORY_GATE_UNSATISFIED = "CategoryGateUnsatisfied"
    REQUEST_OVERRIDDEN = "RequestOverridden"


@dataclass(frozen=True)
class Diagnostic:
    """A single resolution problem.

    Attributes
    ----------
    kind : DiagnosticKind
        What went wrong
    message : str
        Human-readable description
    severity : str
        "error" invalidates the configuration, "warning" does not
    option : str, optional
        Option (or required Category) the diagnostic is about
    conflicting : str, optional
        Option that conflicts with ``option`` (negative requirements)
    group : str, optional
        Selection group involved
    category : str, optional
        Category whose gate is unsatisfied
    members : Tuple[str, ...]
        Selected members of a conflicting group, or owning categories
    forced_by : str, optional
        Option whose requirement pulled ``option`` in
    """

    kind: DiagnosticKind
    message: str
    severity: Severity = "error"
    option: Optional[str] = None
    conflicting: Optional[str] = None
    group: Optional[str] = None
    category: Optional[str] = None
    members: Tuple[str, ...] = ()
    forced_by: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    @property
    def identifiers(self) -> Tuple[str, ...]:
        """Offending names, without duplicates, in field order."""
        names = []
        for value in (self.option, self.conflicting, self.group, self.category, self.forced_by):
            if value and value not in names:
                names.append(value)
        for member in self.members:
            if member not in names:
                names.append(member)
        return tuple(names)

    def __str__(self) -> str:
        return f"{self.severity.upper()} {self.kind.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON/YAML serialization."""
        return {
            "kind": self.kind.value,
            "severity": self.severity,
            "message": self.message,
            "option": self.option,
            "conflicting": self.conflicting,
            "group": self.group,
            "category": self.category,
            "members": list(self.members),
            "forced_by": self.forced_by,
        }


def unknown_option_requested(name: str) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.UNKNOWN_OPTION_REQUESTED,
        message=f"Unknown option '{name}'",
        option=name,
    )


def chip_incompatible(option: str, chip: str, forced_by: Optional[str] = None) -> Diagnostic:
    if forced_by is None:
        message = f"Option '{option}' is not supported for chip {chip}"
    else:
        message = (
            f"Option '{forced_by}' requires '{option}', "
            f"which is not supported for chip {chip}"
        )
    return Diagnostic(
        kind=DiagnosticKind.CHIP_INCOMPATIBLE_SELECTION,
        message=message,
        option=option,
        forced_by=forced_by,
    )


def negative_requirement_violated(option: str, conflicting: str) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.NEGATIVE_REQUIREMENT_VIOLATED,
        message=f"Option '{option}' is disabled by {conflicting}",
        option=option,
        conflicting=conflicting,
    )


def group_conflict(group: str, members: Tuple[str, ...]) -> Diagnostic:
    listing = ", ".join(f"'{m}'" for m in members)
    return Diagnostic(
        kind=DiagnosticKind.GROUP_CONFLICT,
        message=(
            f"The following options can not be enabled together "
            f"(selection group '{group}'): {listing}"
        ),
        group=group,
        members=members,
    )


def category_gate_unsatisfied(
    option: str, categories: Tuple[str, ...], unmet: Tuple[str, ...]
) -> Diagnostic:
    detail = f" (unmet: {', '.join(unmet)})" if unmet else ""
    return Diagnostic(
        kind=DiagnosticKind.CATEGORY_GATE_UNSATISFIED,
        message=(
            f"Option '{option}' is not selectable: category "
            f"{' or '.join(repr(c) for c in categories)} is not enabled{detail}"
        ),
        option=option,
        category=categories[0],
        members=categories,
    )


def request_overridden(option: str, forced_by: str) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.REQUEST_OVERRIDDEN,
        message=f"Option '{option}' was requested off but is required by '{forced_by}'",
        severity="warning",
        option=option,
        forced_by=forced_by,
    )
