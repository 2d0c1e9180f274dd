"""Blocking dependency graph over tasks."""

from tx.graph.dependencies import DependencyGraph, GraphEdge

__all__ = [
    "DependencyGraph",
    "GraphEdge",
]
