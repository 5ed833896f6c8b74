"""Template selection and rendering.

``TemplateEngine`` owns a ``TemplateRegistry`` of ``Template`` definitions,
picks one for a parsed intent, and renders it into ``GeneratedFile`` objects:

1. resolve variables (template defaults fill gaps, then validation),
2. skip files whose ``condition`` variable is falsy,
3. render each path (plain ``{{name}}`` substitution) and each body
   (the full interpreter in ``interpreter.py``),
4. post-process bodies with the project's conventions (import quote style,
   path aliases),
5. extract import and export metadata for the dependency graph.

A file that fails to render is reported as a ``FileGenerationError`` while
the rest of the batch still renders.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..models import (
    ErrorCode,
    ExportStatement,
    FileGenerationError,
    GeneratedFile,
    ImportStatement,
    IntentType,
    ParsedIntent,
    ProjectConventions,
    QuoteStyle,
    ScaffoldError,
    Template,
    TemplateCategory,
    TemplateContext,
    TemplateVariable,
    VariableType,
)
from .interpreter import (
    MISSING,
    CompiledTemplate,
    compile_template,
    is_truthy,
    substitute_variables,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

INTENT_CATEGORIES: dict[IntentType, TemplateCategory] = {
    IntentType.CREATE: TemplateCategory.COMPONENT,
    IntentType.GENERATE: TemplateCategory.FULL_MODULE,
    IntentType.ADD: TemplateCategory.UTILITY,
    IntentType.SCAFFOLD: TemplateCategory.FULL_MODULE,
    IntentType.UPDATE: TemplateCategory.COMPONENT,
}

_IMPORT_STATEMENT = re.compile(
    r"import\s+(?P<type>type\s+)?"
    r"(?:\*\s+as\s+(?P<namespace>[A-Za-z_$][\w$]*)"
    r"|(?P<default>[A-Za-z_$][\w$]*)(?:\s*,\s*\{(?P<named_after>[^}]*)\})?"
    r"|\{(?P<named>[^}]*)\})"
    r"\s*from\s+['\"](?P<source>[^'\"]+)['\"]"
)
_SIDE_EFFECT_IMPORT = re.compile(r"^\s*import\s+['\"](?P<source>[^'\"]+)['\"]", re.MULTILINE)
_EXPORT_DECLARATION = re.compile(
    r"export\s+(?P<default>default\s+)?(?:async\s+)?(?:declare\s+)?"
    r"(?P<kind>const|let|var|function\*?|class|interface|type|enum)\s+(?P<name>[A-Za-z_$][\w$]*)"
)
_EXPORT_DEFAULT_IDENTIFIER = re.compile(r"export\s+default\s+(?P<name>[A-Za-z_$][\w$]*)\s*;")
_DOUBLE_QUOTED_IMPORT = re.compile(
    r"^(?P<head>\s*import\s(?:[^;\n]*?\sfrom\s+)?)\"(?P<source>[^\"\n]+)\"", re.MULTILINE
)
_SINGLE_QUOTED_IMPORT = re.compile(
    r"^(?P<head>\s*import\s(?:[^;\n]*?\sfrom\s+)?)'(?P<source>[^'\n]+)'", re.MULTILINE
)


# ---------------------------------------------------------------------------
# Metadata extraction
# ---------------------------------------------------------------------------


def _split_items(raw: str | None) -> list[str]:
    if not raw:
        return []
    items = []
    for part in raw.split(","):
        item = part.strip()
        if item.startswith("type "):
            item = item[len("type "):].strip()
        if item:
            items.append(item)
    return items


def extract_imports(content: str) -> list[ImportStatement]:
    """Find the import statements in rendered source, in order of appearance."""
    found: list[tuple[int, ImportStatement]] = []
    for match in _IMPORT_STATEMENT.finditer(content):
        source = match.group("source")
        found.append((
            match.start(),
            ImportStatement(
                source=source,
                items=_split_items(match.group("named") or match.group("named_after")),
                default=match.group("default") or match.group("namespace"),
                is_type=match.group("type") is not None,
                is_relative=source.startswith("."),
            ),
        ))
    for match in _SIDE_EFFECT_IMPORT.finditer(content):
        source = match.group("source")
        found.append((match.start(), ImportStatement(source=source, is_relative=source.startswith("."))))
    return [statement for _, statement in sorted(found, key=lambda pair: pair[0])]


def extract_exports(content: str) -> list[ExportStatement]:
    """Find exported names, classified as default, type or named."""
    exports: list[ExportStatement] = []
    for match in _EXPORT_DECLARATION.finditer(content):
        if match.group("default"):
            kind = "default"
        elif match.group("kind") in ("interface", "type"):
            kind = "type"
        else:
            kind = "named"
        exports.append(ExportStatement(name=match.group("name"), type=kind))
    for match in _EXPORT_DEFAULT_IDENTIFIER.finditer(content):
        exports.append(ExportStatement(name=match.group("name"), type="default"))
    return exports


# ---------------------------------------------------------------------------
# Convention post-processing
# ---------------------------------------------------------------------------


def apply_conventions(content: str, conventions: ProjectConventions) -> str:
    """Rewrite import quotes and relative imports to match the project."""
    result = content
    if conventions.imports.preferred_quotes == QuoteStyle.SINGLE:
        result = _DOUBLE_QUOTED_IMPORT.sub(r"\g<head>'\g<source>'", result)
    else:
        result = _SINGLE_QUOTED_IMPORT.sub(r'\g<head>"\g<source>"', result)

    quote = "'" if conventions.imports.preferred_quotes == QuoteStyle.SINGLE else '"'
    for alias, target in conventions.imports.path_alias.items():
        result = _apply_alias(result, alias, target, quote)
    return result


def _apply_alias(content: str, alias: str, target: str, quote: str) -> str:
    """Turn ``from '../../src/lib/x'`` into ``from '@/lib/x'`` for ``@/*`` -> ``./src/*``."""
    wildcard = alias.endswith("*") and target.endswith("*")
    alias_prefix = alias[:-1] if wildcard else alias
    target_path = (target[:-1] if wildcard else target)
    while target_path.startswith("./"):
        target_path = target_path[2:]
    if not target_path or not alias_prefix:
        return content
    rest = r"(?P<rest>[^'\"]*)" if wildcard else r"(?P<rest>)"
    try:
        pattern = re.compile(
            r"from\s+(?P<q>['\"])(?:\.\./)+" + re.escape(target_path) + rest + r"(?P=q)"
        )
    except re.error:
        return content
    return pattern.sub(lambda m: f"from {quote}{alias_prefix}{m.group('rest')}{quote}", content)


# ---------------------------------------------------------------------------
# Variable resolution
# ---------------------------------------------------------------------------


def _type_matches(value: Any, var_type: VariableType) -> bool:
    if var_type in (VariableType.STRING, VariableType.ENUM):
        return isinstance(value, str)
    if var_type == VariableType.BOOLEAN:
        return isinstance(value, bool)
    if var_type == VariableType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if var_type == VariableType.ARRAY:
        return isinstance(value, (list, tuple))
    if var_type == VariableType.OBJECT:
        return isinstance(value, dict)
    return True


def _validate(variable: TemplateVariable, value: Any) -> list[str]:
    problems: list[str] = []
    if not _type_matches(value, variable.type):
        return [f"'{variable.name}' must be of type {variable.type.value}, got {type(value).__name__}"]

    rule = variable.validation
    if rule is None:
        return problems

    if rule.pattern and isinstance(value, str) and not re.search(rule.pattern, value):
        problems.append(f"'{variable.name}' value {value!r} does not match {rule.pattern!r}")

    size: float | None = None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        size = value
    elif isinstance(value, (str, list, tuple)):
        size = len(value)
    if size is not None and rule.min is not None and size < rule.min:
        problems.append(f"'{variable.name}' is below the minimum of {rule.min:g}")
    if size is not None and rule.max is not None and size > rule.max:
        problems.append(f"'{variable.name}' is above the maximum of {rule.max:g}")

    if rule.options and value not in rule.options:
        problems.append(f"'{variable.name}' must be one of {', '.join(rule.options)}")
    return problems


def resolve_variables(template: Template, variables: dict[str, Any]) -> dict[str, Any]:
    """Fill template defaults into *variables* and validate the result.

    Raises:
        ScaffoldError: ``FILE_GENERATION_FAILED`` listing every missing
            required variable and every validation problem.
    """
    resolved = dict(variables)
    problems: list[str] = []
    for variable in template.variables:
        if resolved.get(variable.name) is None and variable.default is not None:
            resolved[variable.name] = variable.default
        value = resolved.get(variable.name)
        if value is None:
            if variable.required:
                problems.append(f"missing required variable '{variable.name}'")
            continue
        problems.extend(_validate(variable, value))

    if problems:
        raise ScaffoldError(
            ErrorCode.FILE_GENERATION_FAILED,
            f"Template '{template.id}' cannot render: " + "; ".join(problems),
            details={"template": template.id, "problems": problems},
        )
    return resolved


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TemplateRegistry:
    """Ordered id -> ``Template`` store. Re-registering an id replaces it in place."""

    def __init__(self, templates: Iterable[Template] = ()) -> None:
        self._templates: dict[str, Template] = {}
        for template in templates:
            self.register(template)

    def register(self, template: Template) -> None:
        self._templates[template.id] = template

    def get(self, template_id: str) -> Template | None:
        return self._templates.get(template_id)

    def all(self) -> list[Template]:
        return list(self._templates.values())

    def by_category(self, category: TemplateCategory) -> list[Template]:
        return [t for t in self._templates.values() if t.category == category]

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __len__(self) -> int:
        return len(self._templates)


# ---------------------------------------------------------------------------
# TemplateEngine
# ---------------------------------------------------------------------------


@dataclass
class GenerationResult:
    """Rendered files plus the files that failed, from one template."""

    files: list[GeneratedFile] = field(default_factory=list)
    errors: list[FileGenerationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class TemplateEngine:
    """Selects templates and renders them into generated files.

    Args:
        register_builtins: Seed the registry with the built-in templates.
        registry: Use an existing registry instead of a fresh one.
    """

    def __init__(
        self,
        register_builtins: bool = True,
        registry: TemplateRegistry | None = None,
    ) -> None:
        self.registry = registry or TemplateRegistry()
        self._compiled: dict[str, CompiledTemplate] = {}
        if register_builtins:
            from .builtin import builtin_templates

            for template in builtin_templates():
                self.registry.register(template)

    # -- Registry ----------------------------------------------------------

    def register_template(self, template: Template) -> None:
        self.registry.register(template)

    def get_template(self, template_id: str) -> Template | None:
        return self.registry.get(template_id)

    def get_all_templates(self) -> list[Template]:
        return self.registry.all()

    def get_templates_by_category(self, category: TemplateCategory) -> list[Template]:
        return self.registry.by_category(category)

    # -- Selection ---------------------------------------------------------

    def select_template(
        self, intent: ParsedIntent, conventions: ProjectConventions
    ) -> Template | None:
        """Return the first registered template suiting the intent's category.

        A ``full-module`` intent accepts any category. Templates tied to a
        framework other than the detected one are skipped.
        """
        category = INTENT_CATEGORIES.get(intent.intent, TemplateCategory.COMPONENT)
        for template in self.registry.all():
            if template.category != category and category != TemplateCategory.FULL_MODULE:
                continue
            if not self.is_compatible(template, conventions):
                continue
            return template
        return None

    @staticmethod
    def is_compatible(template: Template, conventions: ProjectConventions) -> bool:
        return template.framework is None or template.framework == conventions.framework.name

    # -- Rendering ---------------------------------------------------------

    def generate(self, template: Template, context: TemplateContext) -> list[GeneratedFile]:
        """Render every applicable file of *template*.

        Raises:
            ScaffoldError: ``FILE_GENERATION_FAILED`` when variables are
                invalid or any file fails to render.
        """
        result = self.generate_partial(template, context)
        if result.errors:
            raise ScaffoldError(
                ErrorCode.FILE_GENERATION_FAILED,
                f"{len(result.errors)} file(s) of template '{template.id}' failed to render",
                details={"errors": [error.model_dump(mode="json") for error in result.errors]},
            )
        return result.files

    def generate_partial(self, template: Template, context: TemplateContext) -> GenerationResult:
        """Render *template*, collecting per-file failures instead of raising.

        Raises:
            ScaffoldError: ``FILE_GENERATION_FAILED`` when variables are
                missing or invalid, before any file is rendered.
        """
        variables = resolve_variables(template, context.variables)
        conventions = context.conventions if context.apply_conventions else None
        result = GenerationResult()

        for template_file in template.files:
            if template_file.condition and not is_truthy(
                variables.get(template_file.condition, MISSING)
            ):
                continue

            path = self.render_path(template_file.path, variables)
            if "{{" in path:
                result.errors.append(FileGenerationError(
                    path=template_file.path,
                    message=f"Unresolved variable in output path {path!r}",
                ))
                continue

            try:
                content = self.render_content(template_file.content, variables, conventions)
            except ScaffoldError as exc:
                result.errors.append(
                    FileGenerationError(path=path, message=exc.message, code=exc.code)
                )
                continue

            result.files.append(GeneratedFile(
                path=path,
                content=content,
                language=template_file.language,
                imports=extract_imports(content),
                exports=extract_exports(content),
                template=template.id,
            ))

        return result

    def render_content(
        self,
        content: str,
        variables: dict[str, Any],
        conventions: ProjectConventions | None = None,
    ) -> str:
        compiled = self._compiled.get(content)
        if compiled is None:
            compiled = compile_template(content)
            self._compiled[content] = compiled
        rendered = compiled.render(variables)
        if conventions is not None:
            rendered = apply_conventions(rendered, conventions)
        return rendered

    @staticmethod
    def render_path(path: str, variables: dict[str, Any]) -> str:
        rendered = substitute_variables(path, variables)
        return re.sub(r"/{2,}", "/", rendered).lstrip("/")
