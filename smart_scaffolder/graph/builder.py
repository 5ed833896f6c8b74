"""Dependency graph construction for a batch of generated files.

Nodes are the generated files; edges are imports that resolve to another
file of the same batch. Imports of anything outside the batch are treated as
external and produce no edge.

Entry points are nodes with no outgoing edge: files with no prerequisites
inside the batch. Layers peel the graph from those entry points outwards, so
``layers[0]`` can be written first, ``layers[1]`` next, and so on. Nodes on
a cycle are never placed in a layer; ``detect_circular_dependencies``
reports them.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..models import (
    DependencyEdge,
    DependencyGraph,
    DependencyNode,
    EdgeType,
    ExportStatement,
    GeneratedFile,
    NodeType,
    ProgrammingLanguage,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

NODE_COLORS: dict[NodeType, str] = {
    NodeType.COMPONENT: "#a8d5ff",
    NodeType.ROUTE: "#ffb3ba",
    NodeType.MODEL: "#bae1ff",
    NodeType.SERVICE: "#c9ffb3",
    NodeType.UTILITY: "#ffffb3",
    NodeType.TEST: "#ffdfba",
    NodeType.CONFIG: "#e0e0e0",
    NodeType.TYPE: "#d4b5ff",
}

RESOLVABLE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx")
ALIAS_PREFIXES = ("@/", "src/")


# ---------------------------------------------------------------------------
# Node typing
# ---------------------------------------------------------------------------


def file_name(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def infer_node_type(file: GeneratedFile) -> NodeType:
    """Classify *file* by its path, then by its exports.

    Directory heuristics come first, so a test living under
    ``components/__tests__/`` belongs to the components it covers.
    """
    path = "/" + file.path.lower()
    name = file_name(path)

    if "/api/" in path:
        return NodeType.ROUTE
    if "/components/" in path:
        return NodeType.COMPONENT
    if "/lib/" in path or "/utils/" in path:
        return NodeType.UTILITY
    if "/models/" in path or "/prisma/" in path:
        return NodeType.MODEL
    if "/services/" in path:
        return NodeType.SERVICE
    if ".test." in name or ".spec." in name:
        return NodeType.TEST
    if "config" in name:
        return NodeType.CONFIG
    if "/types/" in path or name.endswith(".d.ts"):
        return NodeType.TYPE

    if _has_default_export(file.exports) and file.language in (
        ProgrammingLanguage.TSX,
        ProgrammingLanguage.JSX,
    ):
        return NodeType.COMPONENT
    return NodeType.UTILITY


def _has_default_export(exports: Iterable[ExportStatement]) -> bool:
    return any(export.type == "default" for export in exports)


# ---------------------------------------------------------------------------
# Import resolution
# ---------------------------------------------------------------------------


def resolve_relative(from_file: str, source: str) -> str:
    """Join *source* onto the directory of *from_file*.

    ``..`` pops a segment and ``.`` is a no-op. Popping past the root
    leaves the path at the root.
    """
    parts = [part for part in str(PurePosixPath(from_file).parent).split("/") if part not in ("", ".")]
    for part in source.split("/"):
        if part == "..":
            if parts:
                parts.pop()
        elif part and part != ".":
            parts.append(part)
    return "/".join(parts)


def _relative_candidates(resolved: str) -> list[str]:
    candidates = [resolved]
    candidates.extend(resolved + ext for ext in RESOLVABLE_EXTENSIONS)
    candidates.extend(f"{resolved}/index{ext}" for ext in RESOLVABLE_EXTENSIONS)
    return candidates


def resolve_import(source: str, from_file: str, paths: list[str]) -> str | None:
    """Return the generated path *source* refers to, or None when external."""
    if source.startswith("."):
        known = set(paths)
        for candidate in _relative_candidates(resolve_relative(from_file, source)):
            if candidate in known:
                return candidate
        return None

    if source.startswith(ALIAS_PREFIXES):
        normalized = "src/" + source[2:] if source.startswith("@/") else source
        for path in paths:
            if normalized in path:
                return path
    return None


# ---------------------------------------------------------------------------
# DOT rendering
# ---------------------------------------------------------------------------


def _dot_quote(value: object) -> str:
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _node_color(node_type: NodeType) -> str:
    return NODE_COLORS.get(node_type, "#ffffff")


# ---------------------------------------------------------------------------
# DependencyGraphBuilder
# ---------------------------------------------------------------------------


class DependencyGraphBuilder:
    """Builds, checks and exports dependency graphs of generated files."""

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or _DEFAULT_TEMPLATE_DIR)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["dot_quote"] = _dot_quote
        self.env.filters["node_color"] = _node_color

    def build(self, files: list[GeneratedFile]) -> DependencyGraph:
        nodes = [
            DependencyNode(
                id=file.path,
                type=infer_node_type(file),
                label=file_name(file.path),
                metadata={
                    "language": file.language.value,
                    "template": file.template,
                    "is_new": file.is_new,
                    "exports": len(file.exports),
                    "imports": len(file.imports),
                },
            )
            for file in files
        ]

        paths = [file.path for file in files]
        edges: list[DependencyEdge] = []
        seen: set[tuple[str, str]] = set()
        for file in files:
            for statement in file.imports:
                target = resolve_import(statement.source, file.path, paths)
                if target is None or target == file.path or (file.path, target) in seen:
                    continue
                seen.add((file.path, target))
                edges.append(DependencyEdge(source=file.path, target=target, type=EdgeType.IMPORTS))

        node_ids = [node.id for node in nodes]
        return DependencyGraph(
            nodes=nodes,
            edges=edges,
            entry_points=self._entry_points(node_ids, edges),
            layers=self._layers(node_ids, edges),
        )

    @staticmethod
    def _entry_points(node_ids: list[str], edges: list[DependencyEdge]) -> list[str]:
        sources = {edge.source for edge in edges}
        return [node_id for node_id in node_ids if node_id not in sources]

    @staticmethod
    def _layers(node_ids: list[str], edges: list[DependencyEdge]) -> list[list[str]]:
        targets: dict[str, set[str]] = {node_id: set() for node_id in node_ids}
        for edge in edges:
            targets[edge.source].add(edge.target)

        layers: list[list[str]] = []
        placed: set[str] = set()
        while True:
            layer = [
                node_id for node_id in node_ids
                if node_id not in placed and targets[node_id] <= placed
            ]
            if not layer:
                break
            layers.append(layer)
            placed.update(layer)
        return layers

    def detect_circular_dependencies(self, graph: DependencyGraph) -> list[list[str]]:
        """Return every cycle found by a depth-first walk.

        Each cycle lists node ids from its first node back to that node,
        e.g. ``["x.ts", "y.ts", "x.ts"]``. A node is not re-explored once
        its subtree is done, so an acyclic graph yields ``[]``.
        """
        outgoing: dict[str, list[str]] = {node_id: [] for node_id in graph.node_ids()}
        for edge in graph.edges:
            outgoing.setdefault(edge.source, []).append(edge.target)

        cycles: list[list[str]] = []
        visited: set[str] = set()
        stack: list[str] = []
        on_stack: set[str] = set()

        def visit(node_id: str) -> None:
            visited.add(node_id)
            stack.append(node_id)
            on_stack.add(node_id)
            for target in outgoing.get(node_id, []):
                if target in on_stack:
                    start = stack.index(target)
                    cycles.append(stack[start:] + [target])
                elif target not in visited:
                    visit(target)
            stack.pop()
            on_stack.discard(node_id)

        for node_id in outgoing:
            if node_id not in visited:
                visit(node_id)
        return cycles

    def to_dot(self, graph: DependencyGraph) -> str:
        """Render *graph* in Graphviz DOT format."""
        template = self.env.get_template("graph.dot.j2")
        return template.render(nodes=graph.nodes, edges=graph.edges)
