"""Project convention analysis.

Samples a project's source tree and infers how its code is written: naming
styles, import style, folder layout, framework, TypeScript, testing and
styling setup. Inference is statistical and best-effort. A sub-step that
cannot read what it needs falls back to defaults, lowers the reported
confidence and records a warning instead of failing the analysis.
"""

from __future__ import annotations

import asyncio
import json
import re
from collections import Counter, deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

from ..config import AnalysisConfig
from ..models import (
    ErrorCode,
    Framework,
    FrameworkInfo,
    ImportConventions,
    ImportGrouping,
    ImportStyle,
    NamingConventions,
    NamingStyle,
    ProjectConventions,
    QuoteStyle,
    RouterType,
    ScaffoldError,
    SortOrder,
    StateManagement,
    StructureConventions,
    StylingApproach,
    StylingConfig,
    TestFramework,
    TestingConfig,
    TypeScriptConfig,
)
from ..naming import classify_naming_style, majority_style, matches_style
from ..utils import parse_json_lenient
from .cache import ConventionCache
from .file_tree import FileTree, LocalFileTree


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
TEST_DIR_NAMES = frozenset({"__tests__", "test", "tests"})
DEFAULT_PATH_ALIAS = {"@/*": "./src/*"}
FLAT_STRUCTURE_THRESHOLD = 10
MIN_CONFIDENCE = 0.3
CONFIDENCE_PENALTY = 0.1

T = TypeVar("T")

_TEST_FILE_PATTERN = re.compile(r"\.(test|spec)\.[A-Za-z]+$")
_IDENTIFIER_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")

_IMPORT_LINE = re.compile(r"^\s*import\s+(?:type\s+)?.+?\s+from\s+(['\"])([^'\"]+)\1")
_SIDE_EFFECT_IMPORT = re.compile(r"^\s*import\s+(['\"])([^'\"]+)\1")
_NAMED_IMPORT = re.compile(r"^\s*import\s+(?:type\s+)?(?:[A-Za-z_$][\w$]*\s*,\s*)?\{")
_NAMESPACE_IMPORT = re.compile(r"^\s*import\s+\*\s+as\s+")
_DEFAULT_IMPORT = re.compile(r"^\s*import\s+(?:type\s+)?[A-Za-z_$][\w$]*\s+from\s")

_COMPONENT_DECL = re.compile(
    r"(?:function|class)\s+([A-Z][A-Za-z0-9]*)\b"
    r"|const\s+([A-Z][A-Za-z0-9]*)\s*(?::\s*[^=]+)?=\s*(?:async\s*)?\(",
)
_FUNCTION_DECL = re.compile(
    r"function\s+([a-z][A-Za-z0-9_]*)\s*[(<]"
    r"|(?:const|let)\s+([a-z][A-Za-z0-9_]*)\s*(?::\s*[^=]+)?=\s*(?:async\s*)?"
    r"(?:\([^)]*\)|[A-Za-z_$][\w$]*)\s*(?::\s*[^=]+)?=>",
)
_VARIABLE_DECL = re.compile(r"(?:const|let|var)\s+([a-z][A-Za-z0-9_]*)\s*(?::\s*[^=]+)?=")
_CONSTANT_DECL = re.compile(
    r"^\s*(?:export\s+)?const\s+([A-Z][A-Za-z0-9_]*)\s*(?::\s*[^=]+)?=\s*[\"'`\d\[{-]",
    re.MULTILINE,
)
_TYPE_DECL = re.compile(r"(?:type|interface|enum)\s+([A-Z][A-Za-z0-9]*)\b")

_STATE_LIBRARIES: tuple[tuple[StateManagement, tuple[str, ...]], ...] = (
    (StateManagement.REDUX, ("redux", "@reduxjs/toolkit", "react-redux")),
    (StateManagement.ZUSTAND, ("zustand",)),
    (StateManagement.JOTAI, ("jotai",)),
    (StateManagement.RECOIL, ("recoil",)),
)

_TEST_LIBRARIES: tuple[tuple[TestFramework, tuple[str, ...]], ...] = (
    (TestFramework.VITEST, ("vitest",)),
    (TestFramework.JEST, ("jest", "ts-jest", "@jest/core")),
    (TestFramework.MOCHA, ("mocha",)),
    (TestFramework.JASMINE, ("jasmine", "jasmine-core")),
)

_STYLING_LIBRARIES: tuple[tuple[StylingApproach, str, tuple[str, ...]], ...] = (
    (StylingApproach.TAILWIND, "tailwindcss", ("tailwindcss",)),
    (StylingApproach.STYLED_COMPONENTS, "styled-components", ("styled-components",)),
    (StylingApproach.EMOTION, "emotion", ("@emotion/react", "@emotion/styled")),
    (StylingApproach.SASS, "sass", ("sass", "node-sass")),
)

_TEST_SETUP_FILES = (
    "jest.setup.js",
    "jest.setup.ts",
    "vitest.setup.ts",
    "vitest.setup.js",
    "setupTests.ts",
    "src/setupTests.ts",
    "src/setupTests.js",
)


# ---------------------------------------------------------------------------
# Pure inference functions
# ---------------------------------------------------------------------------

_FILE_STYLES = (
    NamingStyle.KEBAB_CASE,
    NamingStyle.CAMEL_CASE,
    NamingStyle.PASCAL_CASE,
    NamingStyle.SNAKE_CASE,
)


def detect_file_naming_style(samples: list[str]) -> NamingStyle:
    """Majority vote over file base names; kebab-case when there are none."""
    return majority_style(samples, _FILE_STYLES, NamingStyle.KEBAB_CASE)


def detect_directory_naming_style(samples: list[str]) -> NamingStyle:
    """Majority vote over directory names; kebab-case when there are none."""
    return majority_style(samples, _FILE_STYLES, NamingStyle.KEBAB_CASE)


def detect_constant_naming_style(samples: list[str]) -> NamingStyle:
    """SCREAMING_SNAKE_CASE vs PascalCase by majority; SCREAMING wins ties."""
    screaming = sum(1 for s in samples if matches_style(s, NamingStyle.SCREAMING_SNAKE_CASE))
    pascal = sum(1 for s in samples if matches_style(s, NamingStyle.PASCAL_CASE))
    if pascal > screaming:
        return NamingStyle.PASCAL_CASE
    return NamingStyle.SCREAMING_SNAKE_CASE


def detect_import_style(lines: list[str]) -> ImportStyle:
    """Classify import lines as named, default, namespace or mixed.

    One kind wins when it outnumbers the other two combined more than 2:1.
    """
    named = sum(1 for line in lines if _NAMED_IMPORT.match(line))
    namespace = sum(1 for line in lines if _NAMESPACE_IMPORT.match(line))
    default = sum(
        1 for line in lines if _DEFAULT_IMPORT.match(line) and not _NAMED_IMPORT.match(line)
    )
    if named > 2 * (default + namespace):
        return ImportStyle.NAMED
    if default > 2 * (named + namespace):
        return ImportStyle.DEFAULT
    if namespace > 2 * (named + default):
        return ImportStyle.NAMESPACE
    return ImportStyle.MIXED


def detect_quote_style(lines: list[str]) -> QuoteStyle:
    """Count quote characters across import lines; single quotes win ties."""
    single = sum(line.count("'") for line in lines)
    double = sum(line.count('"') for line in lines)
    return QuoteStyle.DOUBLE if double > single else QuoteStyle.SINGLE


def _is_relative(source: str) -> bool:
    return source.startswith(".")


def detect_import_grouping(files: list[list[str]]) -> ImportGrouping:
    """``by-type`` when every file lists package imports before relative ones.

    *files* holds the import sources of each sampled file, in order. Only
    files importing both kinds are evidence; with none, grouping is unknown.
    """
    evidence = [sources for sources in files if
                any(_is_relative(s) for s in sources) and
                any(not _is_relative(s) for s in sources)]
    if not evidence:
        return ImportGrouping.NONE
    for sources in evidence:
        kinds = [_is_relative(s) for s in sources]
        if kinds != sorted(kinds):
            return ImportGrouping.NONE
    return ImportGrouping.BY_TYPE


def detect_sort_order(files: list[list[str]]) -> SortOrder:
    """``alphabetical`` when every file with 2+ imports has sorted sources."""
    evidence = [sources for sources in files if len(sources) >= 2]
    if not evidence:
        return SortOrder.NONE
    for sources in evidence:
        lowered = [s.lower() for s in sources]
        if lowered != sorted(lowered):
            return SortOrder.NONE
    return SortOrder.ALPHABETICAL


# ---------------------------------------------------------------------------
# Sampling
# ---------------------------------------------------------------------------


@dataclass
class CodeSamples:
    """Raw observations collected from a project tree."""

    files: list[str] = field(default_factory=list)
    directories: list[str] = field(default_factory=list)
    components: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)
    variables: list[str] = field(default_factory=list)
    constants: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    import_sources: list[list[str]] = field(default_factory=list)
    source_paths: list[str] = field(default_factory=list)
    test_suffixes: Counter = field(default_factory=Counter)
    test_dirs: set[str] = field(default_factory=set)
    has_module_css: bool = False
    has_css: bool = False
    unreadable: int = 0
    walk_errors: int = 0


def _add_sample(bucket: list[str], value: str, limit: int) -> None:
    if len(bucket) < limit and value not in bucket:
        bucket.append(value)


def _join(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


def collect_samples(tree: FileTree, config: AnalysisConfig) -> CodeSamples:
    """Walk *tree* breadth-first and collect naming and import samples."""
    samples = CodeSamples()
    limit = config.sample_size
    ignored = set(config.ignore_dirs)
    queue: deque[tuple[str, int]] = deque([("", 0)])

    while queue:
        directory, depth = queue.popleft()
        try:
            entries = tree.list_dir(directory)
        except OSError:
            samples.walk_errors += 1
            continue

        for entry in entries:
            path = _join(directory, entry.name)
            if entry.is_dir:
                if entry.name in TEST_DIR_NAMES:
                    samples.test_dirs.add(entry.name)
                    _count_test_suffixes(tree, path, samples)
                if entry.name in ignored or entry.name.startswith("."):
                    continue
                if _IDENTIFIER_NAME.match(entry.name):
                    _add_sample(samples.directories, entry.name, limit)
                if depth + 1 < config.max_depth:
                    queue.append((path, depth + 1))
                continue

            name = entry.name
            if name.endswith((".module.css", ".module.scss", ".module.sass")):
                samples.has_module_css = True
            elif name.endswith((".css", ".scss", ".sass")):
                samples.has_css = True

            test_match = _TEST_FILE_PATTERN.search(name)
            if test_match:
                samples.test_suffixes[name[test_match.start():]] += 1
                continue
            if name.endswith(".d.ts") or not name.endswith(SOURCE_EXTENSIONS):
                continue
            base = name.split(".", 1)[0]
            if _IDENTIFIER_NAME.match(base):
                _add_sample(samples.files, base, limit)
            samples.source_paths.append(path)

    for path in samples.source_paths[: config.max_files_read]:
        try:
            content = tree.read_text(path)
        except (OSError, UnicodeDecodeError):
            samples.unreadable += 1
            continue
        _sample_content(content, samples, config)

    return samples


def _count_test_suffixes(tree: FileTree, path: str, samples: CodeSamples) -> None:
    try:
        entries = tree.list_dir(path)
    except OSError:
        return
    for entry in entries:
        match = _TEST_FILE_PATTERN.search(entry.name)
        if not entry.is_dir and match:
            samples.test_suffixes[entry.name[match.start():]] += 1


def _sample_content(content: str, samples: CodeSamples, config: AnalysisConfig) -> None:
    limit = config.sample_size

    for match in _COMPONENT_DECL.finditer(content):
        name = match.group(1) or match.group(2)
        if any(c.islower() for c in name):
            _add_sample(samples.components, name, limit)
    functions_here: set[str] = set()
    for match in _FUNCTION_DECL.finditer(content):
        name = match.group(1) or match.group(2)
        functions_here.add(name)
        _add_sample(samples.functions, name, limit)
    for match in _VARIABLE_DECL.finditer(content):
        if match.group(1) not in functions_here:
            _add_sample(samples.variables, match.group(1), limit)
    for match in _CONSTANT_DECL.finditer(content):
        _add_sample(samples.constants, match.group(1), limit)
    for match in _TYPE_DECL.finditer(content):
        _add_sample(samples.types, match.group(1), limit)

    sources: list[str] = []
    for line in content.splitlines():
        match = _IMPORT_LINE.match(line)
        if match:
            sources.append(match.group(2))
            if len(samples.imports) < config.import_sample_size:
                samples.imports.append(line.strip())
            continue
        side_effect = _SIDE_EFFECT_IMPORT.match(line)
        if side_effect:
            sources.append(side_effect.group(2))
    if sources:
        samples.import_sources.append(sources)


# ---------------------------------------------------------------------------
# ConventionAnalyzer
# ---------------------------------------------------------------------------


@dataclass
class _Analysis:
    """Accumulates degradation warnings while the sub-steps run."""

    warnings: list[str] = field(default_factory=list)

    def degrade(self, message: str) -> None:
        self.warnings.append(message)

    def attempt(self, label: str, step: Callable[[], T], fallback: Callable[[], T]) -> T:
        """Run *step*, degrading to *fallback* if it raises."""
        try:
            return step()
        except Exception as exc:
            self.degrade(f"{label} detection failed: {exc}")
            return fallback()


class ConventionAnalyzer:
    """Infers and caches the coding conventions of projects.

    Args:
        config: Sampling limits, cache TTL and base confidence.
        tree_resolver: Maps a project id to its ``FileTree``. Defaults to a
            ``LocalFileTree`` at ``workspace_root / project_id``.
        workspace_root: Root used by the default resolver.
        cache: Explicit cache instance; one is created when omitted.
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        tree_resolver: Callable[[str], FileTree] | None = None,
        workspace_root: Path | str = ".",
        cache: ConventionCache | None = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        root = Path(workspace_root)
        self.tree_resolver = tree_resolver or (lambda project_id: LocalFileTree(root / project_id))
        self.cache = cache or ConventionCache(ttl_seconds=self.config.cache_ttl_seconds)

    # -- Public API --------------------------------------------------------

    async def analyze_project(self, project_id: str) -> ProjectConventions:
        """Return the conventions of *project_id*, analysing it if not cached.

        Concurrent calls for the same project share one analysis.

        Raises:
            ScaffoldError: ``CONVENTION_ANALYSIS_FAILED`` if the project tree
                cannot be opened at all.
        """
        cached = self.cache.get(project_id)
        if cached is not None:
            return cached

        async with self.cache.lock_for(project_id):
            cached = self.cache.get(project_id)
            if cached is not None:
                return cached
            tree = self.tree_resolver(project_id)
            conventions = await asyncio.to_thread(self.analyze_tree, tree, project_id)
            self.cache.put(project_id, conventions)
            return conventions

    def clear_cache(self, project_id: str) -> None:
        self.cache.invalidate(project_id)

    def clear_all_cache(self) -> None:
        self.cache.clear()

    def analyze_tree(self, tree: FileTree, project_id: str) -> ProjectConventions:
        """Synchronously analyse *tree*. Blocking; no caching."""
        if not tree.is_dir(""):
            raise ScaffoldError(
                ErrorCode.CONVENTION_ANALYSIS_FAILED,
                f"Project tree for {project_id!r} is not readable",
                details={"project_id": project_id, "tree": repr(tree)},
            )

        analysis = _Analysis()
        samples = collect_samples(tree, self.config)
        if samples.walk_errors:
            analysis.degrade(f"{samples.walk_errors} directories could not be listed")
        if samples.unreadable:
            analysis.degrade(f"{samples.unreadable} source files could not be read")

        manifest = self._read_manifest(tree, analysis)
        tsconfig = self._read_tsconfig(tree, analysis)
        now = datetime.now(timezone.utc)

        naming = analysis.attempt(
            "Naming", lambda: self._infer_naming(samples, analysis), NamingConventions
        )
        imports = analysis.attempt(
            "Import style",
            lambda: self._infer_imports(samples, tsconfig),
            lambda: ImportConventions(path_alias=dict(DEFAULT_PATH_ALIAS)),
        )
        structure = analysis.attempt(
            "Structure", lambda: self._infer_structure(tree, samples), StructureConventions
        )
        framework = analysis.attempt(
            "Framework", lambda: self._detect_framework(tree, manifest), FrameworkInfo
        )
        typescript = analysis.attempt(
            "TypeScript", lambda: self._detect_typescript(tsconfig, manifest), TypeScriptConfig
        )
        testing = analysis.attempt(
            "Testing", lambda: self._detect_testing(tree, manifest, samples), lambda: None
        )
        styling = analysis.attempt(
            "Styling", lambda: self._detect_styling(manifest, samples), lambda: None
        )

        return ProjectConventions(
            naming=naming,
            imports=imports,
            structure=structure,
            framework=framework,
            typescript=typescript,
            testing=testing,
            styling=styling,
            cache_key=f"{project_id}_{int(now.timestamp() * 1000)}",
            analyzed_at=now,
            confidence=max(
                MIN_CONFIDENCE,
                round(self.config.base_confidence - CONFIDENCE_PENALTY * len(analysis.warnings), 4),
            ),
            warnings=analysis.warnings,
        )

    # -- Convenience accessors ---------------------------------------------

    @staticmethod
    def get_naming_style(conventions: ProjectConventions, category: str) -> NamingStyle:
        return getattr(conventions.naming, category)

    @staticmethod
    def is_typescript_project(conventions: ProjectConventions) -> bool:
        return conventions.typescript.enabled

    @staticmethod
    def get_framework(conventions: ProjectConventions) -> Framework:
        return conventions.framework.name

    @staticmethod
    def has_feature(conventions: ProjectConventions, feature: str) -> bool:
        return feature in conventions.framework.features

    # -- Config files ------------------------------------------------------

    @staticmethod
    def _read_manifest(tree: FileTree, analysis: _Analysis) -> dict[str, Any] | None:
        if not tree.exists("package.json"):
            analysis.degrade("No package.json found; framework and tooling unknown")
            return None
        try:
            manifest = json.loads(tree.read_text("package.json"))
        except (OSError, ValueError) as exc:
            analysis.degrade(f"package.json could not be parsed: {exc}")
            return None
        if not isinstance(manifest, dict):
            analysis.degrade("package.json is not a JSON object")
            return None
        return manifest

    @staticmethod
    def _read_tsconfig(tree: FileTree, analysis: _Analysis) -> dict[str, Any] | None:
        for name in ("tsconfig.json", "jsconfig.json"):
            if not tree.exists(name):
                continue
            try:
                data = parse_json_lenient(tree.read_text(name))
            except (OSError, ValueError) as exc:
                analysis.degrade(f"{name} could not be parsed: {exc}")
                return None
            if not isinstance(data, dict):
                analysis.degrade(f"{name} is not a JSON object")
                return None
            data["_file"] = name
            return data
        return None

    # -- Sub-steps ---------------------------------------------------------

    @staticmethod
    def _infer_naming(samples: CodeSamples, analysis: _Analysis) -> NamingConventions:
        if not samples.files and not samples.directories:
            analysis.degrade("No source files sampled; naming conventions use defaults")

        examples: dict[str, str] = {}
        for key, bucket in (
            ("file", samples.files),
            ("directory", samples.directories),
            ("component", samples.components),
            ("function", samples.functions),
            ("variable", samples.variables),
            ("constant", samples.constants),
            ("type", samples.types),
        ):
            if bucket:
                examples[key] = bucket[0]

        return NamingConventions(
            files=detect_file_naming_style(samples.files),
            directories=detect_directory_naming_style(samples.directories),
            components=NamingStyle.PASCAL_CASE,
            functions=NamingStyle.CAMEL_CASE,
            variables=NamingStyle.CAMEL_CASE,
            constants=detect_constant_naming_style(samples.constants),
            types=NamingStyle.PASCAL_CASE,
            examples=examples,
        )

    @staticmethod
    def _infer_imports(samples: CodeSamples, tsconfig: dict[str, Any] | None) -> ImportConventions:
        path_alias: dict[str, str] = {}
        for alias, targets in _paths(tsconfig).items():
            if isinstance(targets, list) and targets:
                path_alias[alias] = str(targets[0])
            elif isinstance(targets, str):
                path_alias[alias] = targets

        return ImportConventions(
            style=detect_import_style(samples.imports),
            path_alias=path_alias or dict(DEFAULT_PATH_ALIAS),
            preferred_quotes=detect_quote_style(samples.imports),
            grouping=detect_import_grouping(samples.import_sources),
            sort_order=detect_sort_order(samples.import_sources),
        )

    @staticmethod
    def _infer_structure(tree: FileTree, samples: CodeSamples) -> StructureConventions:
        source_dir = "src" if tree.is_dir("src") else "."
        prefix = "" if source_dir == "." else f"{source_dir}/"

        def first_dir(*names: str) -> str | None:
            for name in names:
                if tree.is_dir(f"{prefix}{name}"):
                    return f"{prefix}{name}"
            return None

        flat = False
        try:
            root_files = [e for e in tree.list_dir(source_dir) if not e.is_dir]
            flat = len(root_files) > FLAT_STRUCTURE_THRESHOLD
        except OSError:
            pass

        if samples.test_suffixes:
            suffix = samples.test_suffixes.most_common(1)[0][0]
            test_pattern = f"*{suffix}"
        else:
            test_pattern = "*.test.ts"

        return StructureConventions(
            root_dir=".",
            source_dir=source_dir,
            component_dir=first_dir("components"),
            utils_dir=first_dir("lib", "utils"),
            types_dir=first_dir("types"),
            test_pattern=test_pattern,
            config_location=".",
            flat_structure=flat,
        )

    @staticmethod
    def _detect_framework(tree: FileTree, manifest: dict[str, Any] | None) -> FrameworkInfo:
        deps = _dependencies(manifest)
        if "next" in deps:
            app_router = tree.is_dir("src/app") or tree.is_dir("app")
            features = ["app-router" if app_router else "pages-router"]
            if any(tree.is_dir(p) for p in ("src/app/api", "app/api", "src/pages/api", "pages/api")):
                features.append("api-routes")
            if tree.exists("middleware.ts") or tree.exists("src/middleware.ts"):
                features.append("middleware")
            return FrameworkInfo(
                name=Framework.NEXTJS,
                version=_clean_version(deps["next"]),
                features=features,
                router=RouterType.APP_ROUTER if app_router else RouterType.PAGES_ROUTER,
                server_components=app_router,
                state_management=_detect_state_management(deps),
            )
        if "react" in deps:
            return FrameworkInfo(
                name=Framework.REACT,
                version=_clean_version(deps["react"]),
                router=RouterType.REACT_ROUTER if "react-router-dom" in deps else RouterType.NONE,
                state_management=_detect_state_management(deps),
            )
        if "@nestjs/core" in deps:
            return FrameworkInfo(name=Framework.NESTJS, version=_clean_version(deps["@nestjs/core"]))
        if "express" in deps:
            return FrameworkInfo(
                name=Framework.EXPRESS,
                version=_clean_version(deps["express"]),
                router=RouterType.EXPRESS_ROUTER,
            )
        return FrameworkInfo(name=Framework.UNKNOWN)

    @staticmethod
    def _detect_typescript(
        tsconfig: dict[str, Any] | None, manifest: dict[str, Any] | None
    ) -> TypeScriptConfig:
        if tsconfig is None or tsconfig.get("_file") != "tsconfig.json":
            return TypeScriptConfig(enabled=False)
        options = _mapping(tsconfig.get("compilerOptions"))
        paths = _paths(tsconfig)
        deps = _dependencies(manifest)
        return TypeScriptConfig(
            enabled=True,
            strict=bool(options.get("strict", False)),
            version=_clean_version(deps["typescript"]) if "typescript" in deps else None,
            compiler_options={
                key: options[key]
                for key in ("target", "lib", "jsx", "module", "moduleResolution", "baseUrl")
                if key in options
            },
            path_mapping={
                alias: [str(t) for t in targets] if isinstance(targets, list) else [str(targets)]
                for alias, targets in paths.items()
            },
        )

    @staticmethod
    def _detect_testing(
        tree: FileTree, manifest: dict[str, Any] | None, samples: CodeSamples
    ) -> TestingConfig | None:
        deps = _dependencies(manifest)
        framework = next(
            (fw for fw, names in _TEST_LIBRARIES if any(name in deps for name in names)),
            None,
        )
        if framework is None:
            return None
        scripts = _mapping((manifest or {}).get("scripts"))
        coverage = any(
            name.startswith("@vitest/coverage") or name in ("nyc", "c8") for name in deps
        ) or any("coverage" in str(cmd) for cmd in scripts.values())
        if "__tests__" in samples.test_dirs or not samples.test_dirs:
            test_dir = "__tests__"
        else:
            test_dir = sorted(samples.test_dirs)[0]
        return TestingConfig(
            framework=framework,
            coverage=coverage,
            test_dir=test_dir,
            setup_files=[name for name in _TEST_SETUP_FILES if tree.exists(name)],
        )

    @staticmethod
    def _detect_styling(
        manifest: dict[str, Any] | None, samples: CodeSamples
    ) -> StylingConfig | None:
        deps = _dependencies(manifest)
        found = [
            (approach, label)
            for approach, label, names in _STYLING_LIBRARIES
            if any(name in deps for name in names)
        ]
        if len(found) > 1:
            return StylingConfig(
                approach=StylingApproach.MIXED,
                framework=found[0][1],
                css_modules=samples.has_module_css,
            )
        if found:
            return StylingConfig(
                approach=found[0][0], framework=found[0][1], css_modules=samples.has_module_css
            )
        if samples.has_module_css:
            return StylingConfig(approach=StylingApproach.CSS_MODULES, css_modules=True)
        if samples.has_css:
            return StylingConfig(approach=StylingApproach.PLAIN_CSS)
        return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _paths(tsconfig: dict[str, Any] | None) -> dict[str, Any]:
    return _mapping(_mapping((tsconfig or {}).get("compilerOptions")).get("paths"))


def _dependencies(manifest: dict[str, Any] | None) -> dict[str, str]:
    if not manifest:
        return {}
    merged: dict[str, str] = {}
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = manifest.get(key)
        if isinstance(section, dict):
            merged.update({name: str(version) for name, version in section.items()})
    return merged


def _clean_version(spec: str) -> str:
    return spec.lstrip("^~>=< ")


def _detect_state_management(deps: dict[str, str]) -> StateManagement:
    for library, names in _STATE_LIBRARIES:
        if any(name in deps for name in names):
            return library
    return StateManagement.NONE


__all__ = [
    "CodeSamples",
    "ConventionAnalyzer",
    "classify_naming_style",
    "collect_samples",
    "detect_constant_naming_style",
    "detect_directory_naming_style",
    "detect_file_naming_style",
    "detect_import_grouping",
    "detect_import_style",
    "detect_quote_style",
    "detect_sort_order",
]
