"""Template engine: selection, variable resolution and rendering.

Usage::

    from smart_scaffolder.engine import TemplateEngine

    engine = TemplateEngine()
    template = engine.get_template("react-component")
    files = engine.generate(template, context)
"""

from .builtin import builtin_templates
from .interpreter import (
    TemplateSyntaxError,
    compile_template,
    is_truthy,
    render_template,
)
from .template_engine import (
    GenerationResult,
    TemplateEngine,
    TemplateRegistry,
    apply_conventions,
    extract_exports,
    extract_imports,
    resolve_variables,
)

__all__ = [
    "GenerationResult",
    "TemplateEngine",
    "TemplateRegistry",
    "TemplateSyntaxError",
    "apply_conventions",
    "builtin_templates",
    "compile_template",
    "extract_exports",
    "extract_imports",
    "is_truthy",
    "render_template",
    "resolve_variables",
]
