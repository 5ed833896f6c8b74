"""Pydantic v2 models for the Smart Scaffolder.

Defines the data model shared by every stage of the scaffold pipeline: the
parsed prompt intent, the inferred project conventions, template definitions,
generated files, the dependency graph between them, and the scaffold result
handed back to callers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Failure categories reported by the scaffold pipeline."""
    PARSING_FAILED = "PARSING_FAILED"
    INVALID_PROMPT = "INVALID_PROMPT"
    AMBIGUOUS_INTENT = "AMBIGUOUS_INTENT"
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    FILE_GENERATION_FAILED = "FILE_GENERATION_FAILED"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
    MAX_FILES_EXCEEDED = "MAX_FILES_EXCEEDED"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    CONVENTION_ANALYSIS_FAILED = "CONVENTION_ANALYSIS_FAILED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ScaffoldError(Exception):
    """Raised when a scaffold stage fails with a known error code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
        ambiguities: list[str] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        self.ambiguities = ambiguities or []
        super().__init__(f"{code.value}: {message}")

    def to_info(self) -> "ScaffoldErrorInfo":
        """Convert to the serialisable error payload carried by results."""
        return ScaffoldErrorInfo(
            code=self.code,
            message=self.message,
            ambiguities=list(self.ambiguities),
            details=dict(self.details),
        )


class ScaffoldErrorInfo(BaseModel):
    """Structured failure returned to callers instead of an exception."""
    code: ErrorCode = Field(..., description="Error category")
    message: str = Field(..., description="Human-readable explanation")
    ambiguities: list[str] = Field(
        default_factory=list, description="Open questions the user should answer"
    )
    details: dict[str, Any] = Field(default_factory=dict, description="Extra context")


# ---------------------------------------------------------------------------
# Prompt parsing
# ---------------------------------------------------------------------------

class IntentType(str, Enum):
    """The coarse action a prompt requests."""
    CREATE = "create"
    GENERATE = "generate"
    ADD = "add"
    SCAFFOLD = "scaffold"
    UPDATE = "update"
    EXTEND = "extend"
    DUPLICATE = "duplicate"
    UNKNOWN = "unknown"


class EntityType(str, Enum):
    """Kinds of things a prompt can ask to generate."""
    MODULE = "module"
    COMPONENT = "component"
    ROUTE = "route"
    MODEL = "model"
    SERVICE = "service"
    UTILITY = "utility"
    TEST = "test"
    MIGRATION = "migration"
    CONFIG = "config"


class ModifierType(str, Enum):
    """Optional qualities requested alongside an entity."""
    WITH_TESTS = "with-tests"
    WITH_TYPES = "with-types"
    WITH_DOCS = "with-docs"
    WITH_AUTH = "with-auth"
    WITH_VALIDATION = "with-validation"
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    FUNCTIONAL = "functional"
    CLASS_BASED = "class-based"


class ReferenceType(str, Enum):
    """What a prompt reference points at."""
    FILE = "file"
    MODULE = "module"
    PATTERN = "pattern"
    TEMPLATE = "template"


class Relationship(str, Enum):
    """How the generated code relates to a referenced target."""
    SIMILAR = "similar"
    EXTENDS = "extends"
    USES = "uses"
    BASED_ON = "based-on"


class Entity(BaseModel):
    """A named thing to generate, extracted from the prompt."""
    model_config = ConfigDict(frozen=True)

    type: EntityType = Field(..., description="Entity kind")
    name: str = Field(..., description="Entity name as written in the prompt")
    category: Optional[str] = Field(default=None, description="e.g. 'auth', 'admin'")
    attributes: dict[str, Any] = Field(default_factory=dict, description="Extra attributes")
    position: tuple[int, int] = Field(..., description="(start, end) span in the prompt")


class Modifier(BaseModel):
    """A requested quality such as tests or authentication."""
    model_config = ConfigDict(frozen=True)

    type: ModifierType = Field(..., description="Modifier kind")
    value: Optional[str] = Field(default=None, description="Optional modifier argument")


class Reference(BaseModel):
    """A pointer to existing code the result should resemble."""
    model_config = ConfigDict(frozen=True)

    type: ReferenceType = Field(..., description="Reference kind")
    target: str = Field(..., description="Referenced file, module or pattern")
    relationship: Relationship = Field(default=Relationship.SIMILAR)


class ParsedIntent(BaseModel):
    """Structured interpretation of a free-text scaffold request."""
    model_config = ConfigDict(frozen=True)

    raw: str = Field(..., description="Original prompt")
    intent: IntentType = Field(default=IntentType.UNKNOWN)
    entities: tuple[Entity, ...] = Field(default=())
    modifiers: tuple[Modifier, ...] = Field(default=())
    references: tuple[Reference, ...] = Field(default=())
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    ambiguities: tuple[str, ...] = Field(default=())

    @property
    def has_entities(self) -> bool:
        return bool(self.entities)

    @property
    def primary_entity(self) -> Entity | None:
        return self.entities[0] if self.entities else None

    def has_modifier(self, modifier: ModifierType) -> bool:
        return any(m.type == modifier for m in self.modifiers)


# ---------------------------------------------------------------------------
# Project conventions
# ---------------------------------------------------------------------------

class NamingStyle(str, Enum):
    CAMEL_CASE = "camelCase"
    PASCAL_CASE = "PascalCase"
    SNAKE_CASE = "snake_case"
    KEBAB_CASE = "kebab-case"
    SCREAMING_SNAKE_CASE = "SCREAMING_SNAKE_CASE"
    MIXED = "mixed"


class ImportStyle(str, Enum):
    DEFAULT = "default"
    NAMED = "named"
    NAMESPACE = "namespace"
    MIXED = "mixed"


class QuoteStyle(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"


class ImportGrouping(str, Enum):
    BY_TYPE = "by-type"
    BY_SOURCE = "by-source"
    NONE = "none"


class SortOrder(str, Enum):
    ALPHABETICAL = "alphabetical"
    TYPE = "type"
    NONE = "none"


class Framework(str, Enum):
    NEXTJS = "nextjs"
    REACT = "react"
    EXPRESS = "express"
    NESTJS = "nestjs"
    VANILLA = "vanilla"
    UNKNOWN = "unknown"


class RouterType(str, Enum):
    APP_ROUTER = "app-router"
    PAGES_ROUTER = "pages-router"
    REACT_ROUTER = "react-router"
    EXPRESS_ROUTER = "express-router"
    NONE = "none"


class StateManagement(str, Enum):
    REDUX = "redux"
    ZUSTAND = "zustand"
    JOTAI = "jotai"
    RECOIL = "recoil"
    CONTEXT = "context"
    NONE = "none"


class TestFramework(str, Enum):
    JEST = "jest"
    VITEST = "vitest"
    MOCHA = "mocha"
    JASMINE = "jasmine"
    NONE = "none"


class StylingApproach(str, Enum):
    TAILWIND = "tailwind"
    CSS_MODULES = "css-modules"
    STYLED_COMPONENTS = "styled-components"
    EMOTION = "emotion"
    SASS = "sass"
    PLAIN_CSS = "plain-css"
    MIXED = "mixed"


class NamingConventions(BaseModel):
    """Per-category naming styles observed in a code base."""
    files: NamingStyle = Field(default=NamingStyle.KEBAB_CASE)
    directories: NamingStyle = Field(default=NamingStyle.KEBAB_CASE)
    components: NamingStyle = Field(default=NamingStyle.PASCAL_CASE)
    functions: NamingStyle = Field(default=NamingStyle.CAMEL_CASE)
    variables: NamingStyle = Field(default=NamingStyle.CAMEL_CASE)
    constants: NamingStyle = Field(default=NamingStyle.SCREAMING_SNAKE_CASE)
    types: NamingStyle = Field(default=NamingStyle.PASCAL_CASE)
    examples: dict[str, str] = Field(
        default_factory=dict, description="First observed sample per category"
    )


class ImportConventions(BaseModel):
    """How a code base writes its import statements."""
    style: ImportStyle = Field(default=ImportStyle.MIXED)
    path_alias: dict[str, str] = Field(
        default_factory=dict, description="Alias pattern -> first mapped target"
    )
    preferred_quotes: QuoteStyle = Field(default=QuoteStyle.SINGLE)
    grouping: ImportGrouping = Field(default=ImportGrouping.NONE)
    sort_order: SortOrder = Field(default=SortOrder.NONE)


class StructureConventions(BaseModel):
    """Folder layout of a code base."""
    root_dir: str = Field(default=".")
    source_dir: str = Field(default="src")
    component_dir: Optional[str] = Field(default=None)
    utils_dir: Optional[str] = Field(default=None)
    types_dir: Optional[str] = Field(default=None)
    test_pattern: str = Field(default="*.test.ts")
    config_location: str = Field(default=".")
    flat_structure: bool = Field(default=False)


class FrameworkInfo(BaseModel):
    """Detected application framework and related libraries."""
    name: Framework = Field(default=Framework.UNKNOWN)
    version: Optional[str] = Field(default=None)
    features: list[str] = Field(default_factory=list)
    router: RouterType = Field(default=RouterType.NONE)
    server_components: bool = Field(default=False)
    state_management: StateManagement = Field(default=StateManagement.NONE)


class TypeScriptConfig(BaseModel):
    """TypeScript settings read from the project's tsconfig."""
    enabled: bool = Field(default=False)
    strict: bool = Field(default=False)
    version: Optional[str] = Field(default=None)
    compiler_options: dict[str, Any] = Field(default_factory=dict)
    path_mapping: dict[str, list[str]] = Field(default_factory=dict)


class TestingConfig(BaseModel):
    """Detected test runner setup."""
    framework: TestFramework = Field(default=TestFramework.NONE)
    coverage: bool = Field(default=False)
    test_dir: str = Field(default="__tests__")
    setup_files: list[str] = Field(default_factory=list)


class StylingConfig(BaseModel):
    """Detected styling approach."""
    approach: StylingApproach = Field(default=StylingApproach.PLAIN_CSS)
    framework: Optional[str] = Field(default=None)
    css_modules: bool = Field(default=False)


class ProjectConventions(BaseModel):
    """Snapshot of the conventions inferred for one project."""
    naming: NamingConventions = Field(default_factory=NamingConventions)
    imports: ImportConventions = Field(default_factory=ImportConventions)
    structure: StructureConventions = Field(default_factory=StructureConventions)
    framework: FrameworkInfo = Field(default_factory=FrameworkInfo)
    typescript: TypeScriptConfig = Field(default_factory=TypeScriptConfig)
    testing: Optional[TestingConfig] = Field(default=None)
    styling: Optional[StylingConfig] = Field(default=None)
    cache_key: str = Field(default="", description="Key used for cache invalidation")
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    warnings: list[str] = Field(
        default_factory=list, description="Sub-steps that fell back to defaults"
    )

    @classmethod
    def defaults(cls, project_id: str, warning: str | None = None) -> "ProjectConventions":
        """Fallback conventions used when a project cannot be analysed at all."""
        now = datetime.now(timezone.utc)
        return cls(
            imports=ImportConventions(path_alias={"@/*": "./src/*"}),
            structure=StructureConventions(
                component_dir="src/components",
                utils_dir="src/lib",
                types_dir="src/types",
            ),
            cache_key=f"{project_id}_{int(now.timestamp() * 1000)}",
            analyzed_at=now,
            confidence=0.3,
            warnings=[warning] if warning else [],
        )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

class TemplateCategory(str, Enum):
    COMPONENT = "component"
    ROUTE = "route"
    MODEL = "model"
    SERVICE = "service"
    UTILITY = "utility"
    TEST = "test"
    CONFIG = "config"
    MIGRATION = "migration"
    FULL_MODULE = "full-module"


class ProgrammingLanguage(str, Enum):
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    TSX = "tsx"
    JSX = "jsx"
    JSON = "json"
    PRISMA = "prisma"
    SQL = "sql"
    MARKDOWN = "markdown"
    CSS = "css"


class VariableType(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    ARRAY = "array"
    OBJECT = "object"
    ENUM = "enum"


class VariableValidation(BaseModel):
    """Constraints checked before a template renders."""
    pattern: Optional[str] = Field(default=None, description="Regex the value must match")
    min: Optional[float] = Field(default=None, description="Minimum number / length")
    max: Optional[float] = Field(default=None, description="Maximum number / length")
    options: list[str] = Field(default_factory=list, description="Allowed enum values")


class TemplateVariable(BaseModel):
    """A variable a template expects in its rendering context."""
    name: str = Field(..., description="Variable name used inside the template")
    type: VariableType = Field(default=VariableType.STRING)
    description: str = Field(default="")
    default: Optional[Any] = Field(default=None)
    required: bool = Field(default=False)
    validation: Optional[VariableValidation] = Field(default=None)


class TemplateFile(BaseModel):
    """One output file of a template."""
    path: str = Field(..., description="Output path pattern, may contain {{variables}}")
    content: str = Field(..., description="Raw templated content")
    language: ProgrammingLanguage = Field(default=ProgrammingLanguage.TYPESCRIPT)
    optional: bool = Field(default=False)
    condition: Optional[str] = Field(
        default=None, description="Variable gating whether the file is generated"
    )


class Template(BaseModel):
    """A parameterised, multi-file blueprint for generated code."""
    id: str = Field(..., description="Unique template id, e.g. 'react-component'")
    name: str = Field(..., description="Display name")
    description: str = Field(default="")
    category: TemplateCategory = Field(...)
    framework: Optional[Framework] = Field(
        default=None, description="Framework affinity; None matches any project"
    )
    tags: list[str] = Field(default_factory=list)
    files: list[TemplateFile] = Field(default_factory=list)
    variables: list[TemplateVariable] = Field(default_factory=list)
    examples: list[str] = Field(default_factory=list, description="Example prompts")
    version: str = Field(default="1.0.0")


class TemplateContext(BaseModel):
    """Everything a template needs to render."""
    variables: dict[str, Any] = Field(default_factory=dict)
    conventions: ProjectConventions = Field(default_factory=ProjectConventions)
    project_id: str = Field(default="")
    template: Optional[Template] = Field(default=None)
    parsed_intent: Optional[ParsedIntent] = Field(default=None)
    apply_conventions: bool = Field(
        default=True, description="Post-process output with the project's conventions"
    )


# ---------------------------------------------------------------------------
# Generated files
# ---------------------------------------------------------------------------

class ImportStatement(BaseModel):
    """An import found in generated content."""
    source: str = Field(..., description="Module specifier after 'from'")
    items: list[str] = Field(default_factory=list, description="Named imports")
    default: Optional[str] = Field(default=None, description="Default import name")
    is_type: bool = Field(default=False)
    is_relative: bool = Field(default=False)


class ExportStatement(BaseModel):
    """An export found in generated content."""
    name: str = Field(...)
    type: str = Field(..., description="'default', 'named' or 'type'")


class GeneratedFile(BaseModel):
    """A file produced by rendering a template."""
    path: str = Field(..., description="Path relative to the project root")
    content: str = Field(...)
    language: ProgrammingLanguage = Field(...)
    imports: list[ImportStatement] = Field(default_factory=list)
    exports: list[ExportStatement] = Field(default_factory=list)
    dependencies: list[str] = Field(
        default_factory=list, description="Generated files this one imports"
    )
    template: Optional[str] = Field(default=None, description="Originating template id")
    is_new: bool = Field(default=True)
    original_content: Optional[str] = Field(default=None)


class FileGenerationError(BaseModel):
    """A template file that failed to render or was rejected."""
    path: str = Field(..., description="Path pattern or rendered path of the file")
    message: str = Field(...)
    code: ErrorCode = Field(default=ErrorCode.FILE_GENERATION_FAILED)


# ---------------------------------------------------------------------------
# Dependency graph
# ---------------------------------------------------------------------------

class NodeType(str, Enum):
    COMPONENT = "component"
    ROUTE = "route"
    MODEL = "model"
    SERVICE = "service"
    UTILITY = "utility"
    TEST = "test"
    CONFIG = "config"
    TYPE = "type"


class EdgeType(str, Enum):
    IMPORTS = "imports"
    USES = "uses"
    TESTS = "tests"
    EXTENDS = "extends"
    IMPLEMENTS = "implements"


class DependencyNode(BaseModel):
    id: str = Field(..., description="File path")
    type: NodeType = Field(...)
    label: str = Field(..., description="Display name")
    metadata: dict[str, Any] = Field(default_factory=dict)


class DependencyEdge(BaseModel):
    source: str = Field(..., description="Importing file path")
    target: str = Field(..., description="Imported file path")
    type: EdgeType = Field(default=EdgeType.IMPORTS)


class DependencyGraph(BaseModel):
    """Import relationships among the files of one generated batch."""
    nodes: list[DependencyNode] = Field(default_factory=list)
    edges: list[DependencyEdge] = Field(default_factory=list)
    entry_points: list[str] = Field(
        default_factory=list, description="Nodes that import nothing in the batch"
    )
    layers: list[list[str]] = Field(
        default_factory=list, description="Topological groups, prerequisites first"
    )

    def node_ids(self) -> list[str]:
        return [node.id for node in self.nodes]

    def outgoing(self, node_id: str) -> list[DependencyEdge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def dependencies_of(self, node_id: str) -> list[str]:
        """Return the distinct targets imported by *node_id*, in edge order."""
        seen: list[str] = []
        for edge in self.outgoing(node_id):
            if edge.target not in seen:
                seen.append(edge.target)
        return seen


# ---------------------------------------------------------------------------
# Scaffold requests & results
# ---------------------------------------------------------------------------

class ScaffoldRequest(BaseModel):
    prompt: str = Field(..., description="Free-text request")
    project_id: str = Field(..., description="Identifier of the target project")
    user_id: str = Field(default="")
    preview_only: bool = Field(default=True)
    apply_conventions: bool = Field(
        default=True, description="Post-process output with the project's conventions"
    )


class ScaffoldStatus(str, Enum):
    PARSING = "parsing"
    ANALYZING = "analyzing"
    GENERATING = "generating"
    PREVIEWING = "previewing"
    PENDING = "pending"
    APPLIED = "applied"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FileTreeNode(BaseModel):
    name: str = Field(...)
    path: str = Field(...)
    type: str = Field(..., description="'file' or 'directory'")
    children: list["FileTreeNode"] = Field(default_factory=list)
    status: Optional[str] = Field(default=None, description="'new' or 'modified'")
    size: Optional[int] = Field(default=None)


class PreviewSummary(BaseModel):
    files_created: int = Field(default=0)
    files_modified: int = Field(default=0)
    lines_added: int = Field(default=0)
    lines_removed: int = Field(default=0)
    imports_added: int = Field(default=0)
    estimated_duration: int = Field(default=0, description="Milliseconds to apply")


class PreviewWarning(BaseModel):
    type: str = Field(..., description="e.g. 'file_exists', 'circular_dependency'")
    message: str = Field(...)
    file_path: Optional[str] = Field(default=None)
    severity: str = Field(default="warning", description="'info', 'warning' or 'error'")


class FileConflict(BaseModel):
    file_path: str = Field(...)
    type: str = Field(default="file_exists")
    existing_content: str = Field(default="")
    new_content: str = Field(default="")


class PreviewData(BaseModel):
    file_tree: FileTreeNode = Field(
        default_factory=lambda: FileTreeNode(name="project", path="/", type="directory")
    )
    summary: PreviewSummary = Field(default_factory=PreviewSummary)
    warnings: list[PreviewWarning] = Field(default_factory=list)
    conflicts: list[FileConflict] = Field(default_factory=list)


class ScaffoldResult(BaseModel):
    """Outcome of one scaffold run, successful or not."""
    id: str = Field(...)
    project_id: str = Field(...)
    user_id: str = Field(default="")
    prompt: str = Field(...)
    parsed_intent: Optional[ParsedIntent] = Field(default=None)
    template_id: Optional[str] = Field(default=None)
    files: list[GeneratedFile] = Field(default_factory=list)
    dependency_graph: DependencyGraph = Field(default_factory=DependencyGraph)
    cycles: list[list[str]] = Field(default_factory=list)
    applied_conventions: Optional[ProjectConventions] = Field(default=None)
    preview: PreviewData = Field(default_factory=PreviewData)
    status: ScaffoldStatus = Field(default=ScaffoldStatus.PARSING)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[ScaffoldErrorInfo] = Field(default=None)
    warnings: list[str] = Field(default_factory=list)
    file_errors: list[FileGenerationError] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None and self.status != ScaffoldStatus.FAILED
