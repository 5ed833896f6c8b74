"""Dependency graph of a generated batch.

Usage::

    from smart_scaffolder.graph import DependencyGraphBuilder

    builder = DependencyGraphBuilder()
    graph = builder.build(files)
    cycles = builder.detect_circular_dependencies(graph)
    print(builder.to_dot(graph))
"""

from .builder import (
    DependencyGraphBuilder,
    infer_node_type,
    resolve_import,
)

__all__ = ["DependencyGraphBuilder", "infer_node_type", "resolve_import"]
