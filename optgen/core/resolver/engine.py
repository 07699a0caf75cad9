"""Option resolution engine.

Given a target chip and explicit option requests, computes the additive
closure of positive requirements and reports every constraint that the
result violates. Resolution never removes a selected option and never stops
at the first conflict.

Algorithm
---------
1. Requested names that are unknown or not applicable to the chip are
   reported and left out.
2. Seed the active set with the remaining options requested ``True``.
3. Positive closure over a work queue: declared positive requirements of
   every active option, plus the positive requirements of its owning
   Category (and that Category's parents). Requirement targets that are
   Categories contribute their own positive requirements.
4. Negative requirements of active options and required Categories.
5. Selection groups with more than one active member.
6. Active options whose owning Category gate is not satisfied.
7. ``final[name] = name in active`` for every option in the schema.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Mapping, Optional, Set, Tuple

from ..graph.constraint_graph import ConstraintGraph, Edge, EdgeKind, build_constraint_graph
from ..schema.model import OptionVariant, Polarity, RequirementTerm, SchemaModel
from .config import ResolverConfig
from .diagnostics import (
    Diagnostic,
    category_gate_unsatisfied,
    chip_incompatible,
    group_conflict,
    negative_requirement_violated,
    request_overridden,
    unknown_option_requested,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of one resolver call.

    Attributes
    ----------
    chip : str
        Target chip the configuration was resolved for
    final : Dict[str, bool]
        Selection state of every option in the schema, in declaration order
    diagnostics : Tuple[Diagnostic, ...]
        Problems in the order they were found; empty means fully consistent
    """

    chip: str
    final: Dict[str, bool] = field(default_factory=dict)
    diagnostics: Tuple[Diagnostic, ...] = ()

    @property
    def selected(self) -> List[str]:
        """Selected option names in declaration order."""
        return [name for name, on in self.final.items() if on]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_error]

    @property
    def is_consistent(self) -> bool:
        """True when no error-severity diagnostic was raised."""
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON/YAML serialization."""
        return {
            "chip": self.chip,
            "consistent": self.is_consistent,
            "selected": self.selected,
            "final": dict(self.final),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


class _Resolution:
    """Working state of a single resolve call. Never shared between calls."""

    def __init__(
        self,
        schema: SchemaModel,
        graph: ConstraintGraph,
        config: ResolverConfig,
        chip: str,
        requested: Mapping[str, bool],
    ):
        self.schema = schema
        self.graph = graph
        self.config = config
        self.chip = chip
        self.requested = requested
        self.diagnostics: List[Diagnostic] = []
        # option name -> name of the node that pulled it in (None for seeds)
        self.active: Dict[str, Optional[str]] = {}
        # categories named as requirement targets -> requiring node
        self.required_categories: Dict[str, str] = {}
        self._expanded_categories: Set[str] = set()
        self._reported_incompatible: Set[Tuple[str, Optional[str]]] = set()
        self._satisfied: Dict[Tuple[str, bool], bool] = {}

    def emit(self, diagnostic: Diagnostic) -> None:
        logger.debug("%s", diagnostic)
        self.diagnostics.append(diagnostic)

    def variant(self, name: str) -> Optional[OptionVariant]:
        return self.schema.options[name].variant_for(self.chip)

    # ------------------------------------------------------------------

    def run(self) -> ResolutionResult:
        known = [n for n in self.schema.option_names if n in self.requested]
        unknown = sorted(n for n in self.requested if n not in self.schema.options)

        if self.config.report_unknown_requests:
            for name in unknown:
                self.emit(unknown_option_requested(name))

        queue: Deque[str] = deque()
        for name in known:
            if not bool(self.requested[name]):
                continue
            if self.variant(name) is None:
                self._report_incompatible(name, None)
                continue
            self.active[name] = None
            queue.append(name)

        self._close(queue)

        if self.config.report_overridden_requests:
            for name in known:
                if not bool(self.requested[name]) and name in self.active:
                    self.emit(request_overridden(name, self.active[name] or name))

        self._check_negative_requirements()
        self._check_groups()
        self._check_category_gates()

        final = {name: name in self.active for name in self.schema.option_names}
        result = ResolutionResult(
            chip=self.chip, final=final, diagnostics=tuple(self.diagnostics)
        )
        logger.debug(
            "Resolved %d option(s) for %s with %d diagnostic(s)",
            len(result.selected),
            self.chip,
            len(result.diagnostics),
        )
        return result

    # ------------------------------------------------------------------
    # Closure
    # ------------------------------------------------------------------

    def _closure_edges(self, node: str) -> List[Edge]:
        if self.graph.is_category(node):
            return list(self.graph.positive_edges(node))

        edges = [e for e in self.graph.requirement_edges(node, self.chip) if e.is_positive]
        variant = self.variant(node)
        if (
            self.config.propagate_category_requirements
            and variant is not None
            and len(variant.categories) == 1
            and variant.is_gated
        ):
            edges.extend(self.graph.gate_edges(node, self.chip))
        return edges

    def _close(self, queue: Deque[str]) -> None:
        while queue:
            node = queue.popleft()
            for edge in self._closure_edges(node):
                target = edge.target
                if self.graph.is_category(target):
                    if edge.kind is EdgeKind.REQUIRES:
                        self.required_categories.setdefault(target, node)
                    if target not in self._expanded_categories:
                        self._expanded_categories.add(target)
                        queue.append(target)
                    continue
                if self.variant(target) is None:
                    self._report_incompatible(target, node)
                    continue
                if target not in self.active:
                    self.active[target] = node
                    queue.append(target)

    def _report_incompatible(self, option: str, forced_by: Optional[str]) -> None:
        key = (option, forced_by)
        if key in self._reported_incompatible:
            return
        self._reported_incompatible.add(key)
        self.emit(chip_incompatible(option, self.chip, forced_by))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _term_holds(self, term: RequirementTerm, follow_negated: bool = True) -> bool:
        if not self.graph.is_category(term.target):
            value = term.target in self.active
            return value if term.polarity is Polarity.POSITIVE else not value
        if term.polarity is Polarity.POSITIVE:
            return self._category_satisfied(term.target, follow_negated)
        if not follow_negated:
            return True
        return not self._category_satisfied(term.target, follow_negated=False)

    def _category_satisfied(self, name: str, follow_negated: bool = True) -> bool:
        """Whether the Category's requirements hold for the active set.

        A negated Category term is evaluated with ``follow_negated=False``:
        the negated Category's own negated Category terms are taken as met.
        Positive edges are acyclic after load, so evaluation terminates even
        when Categories negate each other or themselves.
        """
        key = (name, follow_negated)
        if key not in self._satisfied:
            category = self.schema.categories[name]
            satisfied = all(self._term_holds(t, follow_negated) for t in category.requires)
            if satisfied and category.parent is not None:
                satisfied = self._category_satisfied(category.parent, follow_negated)
            self._satisfied[key] = satisfied
        return self._satisfied[key]

    def _is_selected(self, target: str) -> bool:
        if self.graph.is_category(target):
            return self._category_satisfied(target)
        return target in self.active

    def _check_negative_requirements(self) -> None:
        for name in self.schema.option_names:
            if name not in self.active:
                continue
            variant = self.variant(name)
            for term in variant.negative_requires:
                if self._is_selected(term.target):
                    self.emit(negative_requirement_violated(name, term.target))

        for name in self.schema.declaration_order:
            if name not in self.required_categories:
                continue
            for term in self.schema.categories[name].negative_requires:
                if self._is_selected(term.target):
                    self.emit(negative_requirement_violated(name, term.target))

    def _check_groups(self) -> None:
        for group, members in self.schema.groups(self.chip).items():
            selected = tuple(m for m in members if m in self.active)
            if len(selected) > 1:
                self.emit(group_conflict(group, selected))

    def _unmet_terms(self, name: str) -> List[str]:
        category = self.schema.categories[name]
        unmet = [str(t) for t in category.requires if not self._term_holds(t)]
        if category.parent is not None and not self._category_satisfied(category.parent):
            unmet.append(category.parent)
        return unmet

    def _check_category_gates(self) -> None:
        for name in self.schema.option_names:
            if name not in self.active:
                continue
            variant = self.variant(name)
            if not variant.is_gated:
                continue
            categories = variant.owning_categories
            if any(self._category_satisfied(c) for c in categories):
                continue
            unmet: List[str] = []
            for category in categories:
                for term in self._unmet_terms(category):
                    if term not in unmet:
                        unmet.append(term)
            self.emit(category_gate_unsatisfied(name, categories, tuple(unmet)))


class Resolver:
    """Resolves option requests against one immutable schema.

    Parameters
    ----------
    schema : SchemaModel
        Loaded option schema
    graph : ConstraintGraph, optional
        Pre-built graph; built (and cycle-checked) from ``schema`` if omitted
    config : ResolverConfig, optional
        Resolution switches; defaults used if omitted

    Example
    -------
    >>> resolver = Resolver(schema)
    >>> result = resolver.resolve("esp32c6", {"wifi": True})
    >>> result.selected
    ['unstable-hal', 'alloc', 'wifi']
    """

    def __init__(
        self,
        schema: SchemaModel,
        graph: Optional[ConstraintGraph] = None,
        config: Optional[ResolverConfig] = None,
    ):
        self.schema = schema
        self.graph = graph if graph is not None else build_constraint_graph(schema)
        self.config = config or ResolverConfig()

    def resolve(self, chip: str, requested: Mapping[str, bool]) -> ResolutionResult:
        """Resolve explicit requests for ``chip``; unlisted options are unconstrained."""
        return _Resolution(self.schema, self.graph, self.config, chip, requested).run()

    def resolve_selection(self, chip: str, selected: List[str]) -> ResolutionResult:
        """Resolve a plain list of enabled option names (CLI ``-o`` style)."""
        return self.resolve(chip, {name: True for name in selected})


def resolve(
    schema: SchemaModel,
    graph: ConstraintGraph,
    chip: str,
    requested: Mapping[str, bool],
    config: Optional[ResolverConfig] = None,
) -> ResolutionResult:
    """Resolve ``requested`` for ``chip`` against a schema and its graph."""
    return _Resolution(schema, graph, config or ResolverConfig(), chip, requested).run()
