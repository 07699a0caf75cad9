"""Constraint graph derived from an option schema.

Nodes are Option and Category names. Edges come in two kinds:

- ``requires``: declared requirement terms, positive or negative
- ``gate``: implicit positive edge from an Option to each owning Category,
  and from a nested Category to its parent

Only positive edges take part in closure and in cycle detection; negative
edges express exclusion and are checked after closure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple

from ..schema.errors import CycleDetectedError
from ..schema.model import Polarity, SchemaModel

logger = logging.getLogger(__name__)


class EdgeKind(str, Enum):
    """Origin of an edge."""

    REQUIRES = "requires"
    GATE = "gate"


@dataclass(frozen=True)
class Edge:
    """A directed constraint ``source -> target``.

    Attributes
    ----------
    source : str
        Option or Category that declares the constraint
    target : str
        Option or Category it constrains
    polarity : Polarity
        POSITIVE: source selected implies target selected;
        NEGATIVE: source selected implies target unselected
    kind : EdgeKind
        Declared requirement or implicit category gate
    chips : FrozenSet[str], optional
        Chips of the declaring variant (None = all chips)
    """

    source: str
    target: str
    polarity: Polarity
    kind: EdgeKind
    chips: Optional[FrozenSet[str]] = None

    @property
    def is_positive(self) -> bool:
        return self.polarity is Polarity.POSITIVE

    def applies_to(self, chip: Optional[str]) -> bool:
        return chip is None or self.chips is None or chip in self.chips


class ConstraintGraph:
    """Directed graph of requirement and gate edges over a schema.

    Parameters
    ----------
    schema : SchemaModel
        Loaded schema; the graph keeps no reference to mutable state

    Example
    -------
    >>> graph = ConstraintGraph(schema)
    >>> graph.find_cycle() is None
    True
    >>> [e.target for e in graph.positive_edges("wifi", "esp32c6")]
    ['alloc', 'unstable-hal']
    """

    def __init__(self, schema: SchemaModel):
        self._nodes: Tuple[str, ...] = schema.declaration_order
        self._categories: FrozenSet[str] = frozenset(schema.categories)
        edges: Dict[str, List[Edge]] = {node: [] for node in self._nodes}

        for option in schema.options.values():
            for variant in option.variants:
                for term in variant.requires:
                    edges[option.name].append(
                        Edge(option.name, term.target, term.polarity, EdgeKind.REQUIRES, variant.chips)
                    )
                for category in variant.owning_categories:
                    edges[option.name].append(
                        Edge(option.name, category, Polarity.POSITIVE, EdgeKind.GATE, variant.chips)
                    )

        for category in schema.categories.values():
            for term in category.requires:
                edges[category.name].append(
                    Edge(category.name, term.target, term.polarity, EdgeKind.REQUIRES)
                )
            if category.parent is not None:
                edges[category.name].append(
                    Edge(category.name, category.parent, Polarity.POSITIVE, EdgeKind.GATE)
                )

        self._edges: Dict[str, Tuple[Edge, ...]] = {
            node: tuple(node_edges) for node, node_edges in edges.items()
        }

    @property
    def nodes(self) -> Tuple[str, ...]:
        """Node names in schema declaration order."""
        return self._nodes

    @property
    def edge_count(self) -> int:
        return sum(len(e) for e in self._edges.values())

    def is_category(self, node: str) -> bool:
        return node in self._categories

    def edges_from(self, node: str) -> Tuple[Edge, ...]:
        """All outgoing edges of ``node``. Raises KeyError for unknown nodes."""
        if node not in self._edges:
            raise KeyError(f"Unknown graph node: {node}")
        return self._edges[node]

    def positive_edges(self, node: str, chip: Optional[str] = None) -> Tuple[Edge, ...]:
        """Positive edges (requires and gate) applicable to ``chip``."""
        return tuple(
            e for e in self.edges_from(node) if e.is_positive and e.applies_to(chip)
        )

    def negative_edges(self, node: str, chip: Optional[str] = None) -> Tuple[Edge, ...]:
        return tuple(
            e for e in self.edges_from(node) if not e.is_positive and e.applies_to(chip)
        )

    def requirement_edges(self, node: str, chip: Optional[str] = None) -> Tuple[Edge, ...]:
        """Declared requirement edges only (no implicit gates)."""
        return tuple(
            e
            for e in self.edges_from(node)
            if e.kind is EdgeKind.REQUIRES and e.applies_to(chip)
        )

    def gate_edges(self, node: str, chip: Optional[str] = None) -> Tuple[Edge, ...]:
        return tuple(
            e
            for e in self.edges_from(node)
            if e.kind is EdgeKind.GATE and e.applies_to(chip)
        )

    def find_cycle(self) -> Optional[List[str]]:
        """Return the first cycle of positive edges, or None.

        Depth-first traversal in declaration order with a visiting/visited
        marker; a back-edge to a node still being visited closes a cycle.
        The returned path starts at the node the back-edge points to.
        Frames live on an explicit stack, so chain length is not bounded by
        the interpreter's recursion limit.
        """
        visited: Set[str] = set()
        visiting: Set[str] = set()
        path: List[str] = []
        frames: List[Iterator[str]] = []

        def enter(node: str) -> None:
            visiting.add(node)
            path.append(node)
            frames.append(iter(self._positive_targets(node)))

        for root in self._nodes:
            if root in visited:
                continue
            enter(root)
            while frames:
                for target in frames[-1]:
                    if target in visiting:
                        return path[path.index(target):]
                    if target not in visited:
                        enter(target)
                        break
                else:
                    frames.pop()
                    node = path.pop()
                    visiting.remove(node)
                    visited.add(node)
        return None

    def _positive_targets(self, node: str) -> List[str]:
        """Distinct positive edge targets of ``node`` across all variants."""
        targets: List[str] = []
        for edge in self._edges[node]:
            if edge.is_positive and edge.target not in targets:
                targets.append(edge.target)
        return targets


def build_constraint_graph(schema: SchemaModel) -> ConstraintGraph:
    """
    Build the constraint graph and reject positive requirement cycles.

    Raises:
        CycleDetectedError: If positive edges form a cycle
    """
    graph = ConstraintGraph(schema)
    cycle = graph.find_cycle()
    if cycle is not None:
        logger.error("Requirement cycle: %s", " -> ".join(cycle))
        raise CycleDetectedError(cycle)
    logger.debug(
        "Built constraint graph: %d nodes, %d edges", len(graph.nodes), graph.edge_count
    )
    return graph
