"""Constraint graph over the option schema."""

from .constraint_graph import ConstraintGraph, Edge, EdgeKind, build_constraint_graph

__all__ = [
    "ConstraintGraph",
    "Edge",
    "EdgeKind",
    "build_constraint_graph",
]
