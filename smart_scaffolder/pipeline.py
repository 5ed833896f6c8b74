"""Smart Scaffolder pipeline orchestrator.

Runs one scaffold request through four stages:

Stage 1: PARSE     -- Turn the prompt into a ParsedIntent; reject low confidence.
Stage 2: ANALYZE   -- Infer the target project's conventions (cached per project).
Stage 3: GENERATE  -- Pick a template, derive its variables, render the files.
Stage 4: GRAPH     -- Link the files by their imports, check for cycles, preview.

Nothing is written to the project. The result carries the complete file list
and a preview; applying it is left to the caller.

Usage::

    python -m smart_scaffolder.pipeline "create a UserProfile component with tests" --project ./web
    python -m smart_scaffolder.pipeline "scaffold a module called orders" --project ./web --dot graph.dot
"""

from __future__ import annotations

import asyncio
import sys
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import ScaffolderConfig
from .conventions import ConventionAnalyzer, FileTree, LocalFileTree
from .engine import TemplateEngine
from .graph import DependencyGraphBuilder
from .models import (
    EntityType,
    ErrorCode,
    FileConflict,
    FileGenerationError,
    FileTreeNode,
    Framework,
    GeneratedFile,
    IntentType,
    ParsedIntent,
    PreviewData,
    PreviewSummary,
    PreviewWarning,
    ProjectConventions,
    RouterType,
    ScaffoldError,
    ScaffoldRequest,
    ScaffoldResult,
    ScaffoldStatus,
    Template,
    TemplateContext,
    TestFramework,
)
from .naming import (
    apply_style,
    camel_case,
    kebab_case,
    pascal_case,
    snake_case,
)
from .parser import PromptParser
from .parser.prompt_parser import FULL_MODULE_TEMPLATE
from .utils import (
    console,
    format_duration,
    print_error,
    print_header,
    print_info,
    print_rows_table,
    print_success,
    print_summary_table,
    print_tree,
    print_warning,
)

# Rough cost of applying one file, used for the preview estimate.
_APPLY_MS_PER_FILE = 100

_HOOK_PREFIX = "use"

_TARGET_DIRS: dict[EntityType, tuple[str, str]] = {
    EntityType.SERVICE: ("services", ".service"),
    EntityType.CONFIG: ("config", ".config"),
}


def new_scaffold_id() -> str:
    return f"scaffold_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


# ---------------------------------------------------------------------------
# Variable derivation
# ---------------------------------------------------------------------------


def _under(source_dir: str, sub: str) -> str:
    return sub if source_dir in ("", ".") else f"{source_dir}/{sub}"


def _api_dir(conventions: ProjectConventions) -> str:
    source_dir = conventions.structure.source_dir
    if conventions.framework.router == RouterType.PAGES_ROUTER:
        return _under(source_dir, "pages/api")
    return _under(source_dir, "app/api")


def _hook_name(name: str) -> str:
    if name.startswith(_HOOK_PREFIX) and name[len(_HOOK_PREFIX):][:1].isupper():
        return name
    return _HOOK_PREFIX + pascal_case(name)


def derive_variables(
    intent: ParsedIntent,
    conventions: ProjectConventions,
    base: dict[str, Any],
    now: datetime,
) -> dict[str, Any]:
    """Add convention-aware names and directories to the parser's variables.

    *base* is the output of ``PromptParser.extract_variables``; modifier
    flags and references from it are kept, names are re-cased to match
    what each template expects and the project's naming conventions.
    """
    variables = dict(base)
    entity = intent.primary_entity
    if entity is None:
        return variables

    name = entity.name
    structure = conventions.structure
    source_dir = structure.source_dir
    file_base = apply_style(name, conventions.naming.files)

    variables.update(
        componentName=pascal_case(name),
        componentPath=structure.component_dir or _under(source_dir, "components"),
        utilsPath=structure.utils_dir or _under(source_dir, "lib"),
        typesPath=structure.types_dir or _under(source_dir, "types"),
        hooksPath=_under(source_dir, "hooks"),
        testsPath=_under(source_dir, "__tests__"),
        apiDir=_api_dir(conventions),
        fileBaseName=file_base,
        functionName=camel_case(name),
        routePath=kebab_case(name),
        hookName=_hook_name(name),
        moduleName=kebab_case(name),
        entityName=pascal_case(name),
        modelName=pascal_case(name),
        modelFileName=file_base,
        tableName=snake_case(name),
        migrationId=f"{now:%Y%m%d%H%M%S}_{snake_case(name)}",
        migrationName=name,
        subjectName=name,
        fileName=name,
    )

    target, suffix = _TARGET_DIRS.get(entity.type, ("", ""))
    variables["targetDir"] = _under(source_dir, target) if target else variables["utilsPath"]
    variables["fileSuffix"] = suffix

    testing = conventions.testing
    variables["vitest"] = testing is not None and testing.framework == TestFramework.VITEST
    variables["clientComponent"] = (
        conventions.framework.name == Framework.NEXTJS and conventions.framework.server_components
    )
    return variables


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


def _line_count(content: str | None) -> int:
    return len(content.split("\n")) if content else 0


def build_file_tree(files: list[GeneratedFile]) -> FileTreeNode:
    """Nest *files* into a directory tree rooted at the project."""
    root = FileTreeNode(name="project", path="/", type="directory")
    directories: dict[str, FileTreeNode] = {"": root}

    for file in files:
        parts = file.path.split("/")
        parent = root
        for depth, part in enumerate(parts[:-1]):
            key = "/".join(parts[: depth + 1])
            node = directories.get(key)
            if node is None:
                node = FileTreeNode(name=part, path=key, type="directory")
                parent.children.append(node)
                directories[key] = node
            parent = node
        parent.children.append(FileTreeNode(
            name=parts[-1],
            path=file.path,
            type="file",
            status="new" if file.is_new else "modified",
            size=len(file.content.encode("utf-8")),
        ))
    return root


def build_preview(
    files: list[GeneratedFile],
    cycles: list[list[str]],
    file_errors: list[FileGenerationError],
) -> PreviewData:
    warnings: list[PreviewWarning] = []
    conflicts: list[FileConflict] = []

    for file in files:
        if not file.is_new:
            warnings.append(PreviewWarning(
                type="file_exists",
                message=f"{file.path} already exists and will be overwritten",
                file_path=file.path,
            ))
            conflicts.append(FileConflict(
                file_path=file.path,
                existing_content=file.original_content or "",
                new_content=file.content,
            ))

    for cycle in cycles:
        warnings.append(PreviewWarning(
            type="circular_dependency",
            message="Circular import: " + " -> ".join(cycle),
            file_path=cycle[0],
        ))

    for error in file_errors:
        warnings.append(PreviewWarning(
            type="generation_failed",
            message=error.message,
            file_path=error.path,
            severity="error",
        ))

    summary = PreviewSummary(
        files_created=sum(1 for f in files if f.is_new),
        files_modified=sum(1 for f in files if not f.is_new),
        lines_added=sum(_line_count(f.content) for f in files),
        lines_removed=sum(_line_count(f.original_content) for f in files if not f.is_new),
        imports_added=sum(len(f.imports) for f in files),
        estimated_duration=len(files) * _APPLY_MS_PER_FILE,
    )
    return PreviewData(
        file_tree=build_file_tree(files),
        summary=summary,
        warnings=warnings,
        conflicts=conflicts,
    )


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class ScaffoldPipeline:
    """Smart Scaffolder pipeline orchestrator.

    Owns one instance of each component, so separate pipelines (e.g. in
    tests) never share a template registry or a convention cache.

    Attributes:
        config: Global scaffolder configuration.
        parser: Prompt parser.
        analyzer: Convention analyzer with its per-project cache.
        engine: Template engine with its registry.
        graph_builder: Dependency graph builder.
        tree_resolver: Maps a project id to its read-only file tree.
    """

    def __init__(
        self,
        config: ScaffolderConfig | None = None,
        parser: PromptParser | None = None,
        analyzer: ConventionAnalyzer | None = None,
        engine: TemplateEngine | None = None,
        graph_builder: DependencyGraphBuilder | None = None,
        tree_resolver: Callable[[str], FileTree] | None = None,
    ) -> None:
        self.config = config or ScaffolderConfig()
        self.parser = parser or PromptParser()
        self.analyzer = analyzer or ConventionAnalyzer(
            config=self.config.analysis,
            tree_resolver=tree_resolver,
            workspace_root=self.config.workspace_root,
        )
        self.engine = engine or TemplateEngine()
        self.graph_builder = graph_builder or DependencyGraphBuilder()
        self.tree_resolver = tree_resolver or self.analyzer.tree_resolver
        self._results: dict[str, ScaffoldResult] = {}

    def _log(self, message: str) -> None:
        if self.config.verbose:
            print_info(message)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def scaffold(self, request: ScaffoldRequest) -> ScaffoldResult:
        """Run the full pipeline for *request*.

        Never raises for expected failures: a failed run returns a result
        with status ``failed``, no files, and a structured ``error``.
        """
        result = ScaffoldResult(
            id=new_scaffold_id(),
            project_id=request.project_id,
            user_id=request.user_id,
            prompt=request.prompt,
        )
        start = time.monotonic()

        try:
            await asyncio.wait_for(self._run(request, result), timeout=self.config.timeout_seconds)
        except asyncio.TimeoutError:
            return self._fail(result, ScaffoldError(
                ErrorCode.TIMEOUT,
                f"Scaffold did not finish within {self.config.timeout_seconds:g}s",
            ))
        except ScaffoldError as exc:
            return self._fail(result, exc)
        except Exception as exc:
            return self._fail(result, ScaffoldError(ErrorCode.UNKNOWN_ERROR, str(exc)))

        self._results[result.id] = result
        self._log(
            f"Scaffold {result.id} ready: {len(result.files)} file(s) "
            f"in {format_duration(time.monotonic() - start)}"
        )
        return result

    async def preview(self, request: ScaffoldRequest) -> ScaffoldResult:
        return await self.scaffold(request.model_copy(update={"preview_only": True}))

    def get_scaffold(self, scaffold_id: str) -> ScaffoldResult | None:
        return self._results.get(scaffold_id)

    def get_scaffold_history(self, project_id: str) -> list[ScaffoldResult]:
        """Cached results for *project_id*, newest first."""
        history = [r for r in self._results.values() if r.project_id == project_id]
        return sorted(history, key=lambda r: r.created_at, reverse=True)

    def cancel(self, scaffold_id: str) -> ScaffoldResult | None:
        """Drop a cached scaffold; returns it marked ``cancelled``, or None."""
        result = self._results.pop(scaffold_id, None)
        if result is not None:
            result.status = ScaffoldStatus.CANCELLED
        return result

    def clear_old_scaffolds(self, max_age_seconds: float | None = None) -> int:
        """Evict cached results older than *max_age_seconds*; returns the count."""
        max_age = self.config.history_max_age_seconds if max_age_seconds is None else max_age_seconds
        now = datetime.now(timezone.utc)
        stale = [
            scaffold_id for scaffold_id, result in self._results.items()
            if (now - result.created_at).total_seconds() > max_age
        ]
        for scaffold_id in stale:
            del self._results[scaffold_id]
        return len(stale)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _run(self, request: ScaffoldRequest, result: ScaffoldResult) -> None:
        # Stage 1: PARSE
        result.status = ScaffoldStatus.PARSING
        intent = self._parse(request.prompt)
        result.parsed_intent = intent

        # Stage 2: ANALYZE
        result.status = ScaffoldStatus.ANALYZING
        conventions = await self._analyze(request.project_id)
        result.applied_conventions = conventions
        result.warnings.extend(conventions.warnings)

        # Stage 3: GENERATE
        result.status = ScaffoldStatus.GENERATING
        template = self.choose_template(intent, conventions)
        result.template_id = template.id
        self._log(f"Using template '{template.id}'")

        variables = derive_variables(
            intent, conventions, self.parser.extract_variables(intent), self.parser.clock()
        )
        generation = self.engine.generate_partial(template, TemplateContext(
            variables=variables,
            conventions=conventions,
            project_id=request.project_id,
            template=template,
            parsed_intent=intent,
            apply_conventions=request.apply_conventions,
        ))
        files = self._apply_guards(generation.files, generation.errors)
        result.file_errors = generation.errors
        result.warnings.extend(f"{e.path}: {e.message}" for e in generation.errors)

        await asyncio.to_thread(self._mark_existing, request.project_id, files)

        # Stage 4: GRAPH
        result.status = ScaffoldStatus.PREVIEWING
        graph = self.graph_builder.build(files)
        for file in files:
            file.dependencies = graph.dependencies_of(file.path)
        cycles = self.graph_builder.detect_circular_dependencies(graph)
        for cycle in cycles:
            result.warnings.append(
                f"{ErrorCode.CIRCULAR_DEPENDENCY.value}: " + " -> ".join(cycle)
            )

        result.files = files
        result.dependency_graph = graph
        result.cycles = cycles
        result.preview = build_preview(files, cycles, generation.errors)
        result.status = ScaffoldStatus.PENDING

    def _parse(self, prompt: str) -> ParsedIntent:
        if not prompt.strip():
            raise ScaffoldError(ErrorCode.INVALID_PROMPT, "The prompt is empty.")

        intent = self.parser.parse(prompt)
        self._log(self.parser.format_intent(intent))
        # Nothing to name the generated code after: ask instead of failing later.
        if intent.confidence < self.config.min_confidence or not intent.has_entities:
            raise ScaffoldError(
                ErrorCode.AMBIGUOUS_INTENT,
                "Unable to understand the prompt. Please be more specific.",
                details={"confidence": intent.confidence},
                ambiguities=list(intent.ambiguities),
            )
        return intent

    async def _analyze(self, project_id: str) -> ProjectConventions:
        try:
            return await self.analyzer.analyze_project(project_id)
        except ScaffoldError as exc:
            if self.config.verbose:
                print_warning(f"Convention analysis failed, using defaults: {exc.message}")
            return ProjectConventions.defaults(
                project_id, warning=f"Convention analysis failed: {exc.message}"
            )
        except Exception as exc:
            if self.config.verbose:
                print_warning(f"Convention analysis failed, using defaults: {exc}")
            return ProjectConventions.defaults(
                project_id, warning=f"Convention analysis failed: {exc}"
            )

    def choose_template(self, intent: ParsedIntent, conventions: ProjectConventions) -> Template:
        """Pick the template for *intent*.

        The parser's suggestions are tried in order (the full-module template
        first for scaffold and generate intents), then the engine's
        category-based selection.

        Raises:
            ScaffoldError: ``TEMPLATE_NOT_FOUND`` when nothing fits.
        """
        candidates = self.parser.match_templates(intent)
        if intent.intent in (IntentType.SCAFFOLD, IntentType.GENERATE) and FULL_MODULE_TEMPLATE in candidates:
            candidates.remove(FULL_MODULE_TEMPLATE)
            candidates.insert(0, FULL_MODULE_TEMPLATE)

        for template_id in candidates:
            template = self.engine.get_template(template_id)
            if template is not None and self.engine.is_compatible(template, conventions):
                return template

        template = self.engine.select_template(intent, conventions)
        if template is None:
            raise ScaffoldError(
                ErrorCode.TEMPLATE_NOT_FOUND,
                f"No template fits a '{intent.intent.value}' request "
                f"for a {conventions.framework.name.value} project",
                details={"candidates": candidates},
            )
        return template

    def _apply_guards(
        self, files: list[GeneratedFile], errors: list[FileGenerationError]
    ) -> list[GeneratedFile]:
        limits = self.config.generation
        if len(files) > limits.max_files_per_scaffold:
            raise ScaffoldError(
                ErrorCode.MAX_FILES_EXCEEDED,
                f"Template produced {len(files)} files; the limit is {limits.max_files_per_scaffold}",
            )

        kept: list[GeneratedFile] = []
        for file in files:
            size = len(file.content.encode("utf-8"))
            if size > limits.max_file_size_bytes:
                errors.append(FileGenerationError(
                    path=file.path,
                    message=f"Generated file is {size} bytes; the limit is {limits.max_file_size_bytes}",
                    code=ErrorCode.FILE_TOO_LARGE,
                ))
                continue
            kept.append(file)
        return kept

    def _mark_existing(self, project_id: str, files: list[GeneratedFile]) -> None:
        tree = self.tree_resolver(project_id)
        try:
            if not tree.is_dir(""):
                return
        except OSError:
            return
        for file in files:
            try:
                if tree.exists(file.path):
                    file.original_content = tree.read_text(file.path)
                    file.is_new = False
            except OSError:
                file.is_new = False

    def _fail(self, result: ScaffoldResult, error: ScaffoldError) -> ScaffoldResult:
        if self.config.verbose:
            print_error(f"Scaffold failed [{error.code.value}]: {error.message}")
        return result.model_copy(update={
            "status": ScaffoldStatus.FAILED,
            "files": [],
            "error": error.to_info(),
        })


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def print_result(result: ScaffoldResult, parser: PromptParser) -> None:
    """Render *result* on the shared console."""
    print_header("Smart Scaffolder")

    if result.parsed_intent is not None:
        console.print(parser.format_intent(result.parsed_intent))
        console.print()

    if result.error is not None:
        print_error(f"{result.error.code.value}: {result.error.message}")
        for question in result.error.ambiguities:
            print_warning(f"  ? {question}")
        return

    rows = [
        [f.path, f.language.value, "new" if f.is_new else "modified", str(_line_count(f.content))]
        for f in result.files
    ]
    print_rows_table(["File", "Language", "Status", "Lines"], rows, title=f"Template: {result.template_id}")
    print_tree("project", [f.path for f in result.files])

    summary = result.preview.summary
    print_summary_table({
        "Files created": str(summary.files_created),
        "Files modified": str(summary.files_modified),
        "Lines added": str(summary.lines_added),
        "Imports": str(summary.imports_added),
        "Estimated apply time": format_duration(summary.estimated_duration / 1000),
    }, title="Preview")

    for warning in result.warnings:
        print_warning(warning)
    print_success(f"{len(result.files)} file(s) ready to apply ({result.id})")


def main() -> None:
    """CLI entry point for ``python -m smart_scaffolder.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Smart Scaffolder -- generate code that follows a project's conventions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  python -m smart_scaffolder.pipeline "create a Button component with tests"\n'
            '  python -m smart_scaffolder.pipeline "scaffold a module called orders" -p ./web --dot graph.dot\n'
        ),
    )
    parser.add_argument("prompt", help="What to generate, in plain English")
    parser.add_argument(
        "--project", "-p",
        default=".",
        help="Project directory to analyse (default: current directory)",
    )
    parser.add_argument("--dot", default=None, help="Write the dependency graph as DOT to this file")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log each pipeline stage")

    args = parser.parse_args()

    project_dir = Path(args.project).resolve()
    if not project_dir.is_dir():
        console.print(f"[bold red]Error:[/bold red] Project directory not found: {project_dir}")
        sys.exit(1)

    config = ScaffolderConfig.from_env()
    config.workspace_root = project_dir.parent
    if args.verbose:
        config.verbose = True

    pipeline = ScaffoldPipeline(config, tree_resolver=lambda _project_id: LocalFileTree(project_dir))
    result = asyncio.run(pipeline.scaffold(
        ScaffoldRequest(prompt=args.prompt, project_id=project_dir.name)
    ))

    if args.json:
        console.print_json(result.model_dump_json())
    else:
        print_result(result, pipeline.parser)

    if args.dot and result.success:
        target = Path(args.dot)
        target.write_text(pipeline.graph_builder.to_dot(result.dependency_graph), encoding="utf-8")
        print_success(f"Dependency graph written to {target}")

    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
