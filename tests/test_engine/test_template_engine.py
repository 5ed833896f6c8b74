"""Tests for template selection, variable resolution and rendering.

Covers:
- TemplateRegistry ordering and replacement
- select_template / is_compatible
- resolve_variables (defaults, required, type and validation problems)
- generate / generate_partial (conditions, per-file failures, paths)
- Import / export extraction and convention post-processing
"""

from __future__ import annotations

import pytest

from smart_scaffolder.engine import (
    TemplateEngine,
    TemplateRegistry,
    apply_conventions,
    extract_exports,
    extract_imports,
    resolve_variables,
)
from smart_scaffolder.models import (
    ErrorCode,
    Framework,
    FrameworkInfo,
    ImportConventions,
    ProgrammingLanguage,
    ProjectConventions,
    QuoteStyle,
    ScaffoldError,
    Template,
    TemplateCategory,
    TemplateContext,
    TemplateFile,
    TemplateVariable,
    VariableType,
    VariableValidation,
)


def _template(files: list[TemplateFile], variables: list[TemplateVariable] | None = None,
              template_id: str = "custom") -> Template:
    return Template(
        id=template_id,
        name="Custom",
        category=TemplateCategory.UTILITY,
        files=files,
        variables=variables or [],
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    @pytest.mark.unit
    def test_builtins_in_order(self, engine):
        assert [t.id for t in engine.get_all_templates()] == [
            "nextjs-crud-module",
            "react-component",
            "react-hook",
            "nextjs-api-route",
            "utility-function",
            "prisma-model",
            "prisma-migration",
            "test-suite",
            "generic-file",
        ]

    @pytest.mark.unit
    def test_reregistering_replaces_in_place(self, engine):
        replacement = engine.get_template("react-component").model_copy(update={"name": "Mine"})
        engine.register_template(replacement)
        templates = engine.get_all_templates()
        assert len(templates) == 9
        assert templates[1].name == "Mine"

    @pytest.mark.unit
    def test_by_category(self, engine):
        ids = [t.id for t in engine.get_templates_by_category(TemplateCategory.COMPONENT)]
        assert ids == ["react-component", "react-hook"]

    @pytest.mark.unit
    def test_lookup(self, engine):
        assert engine.get_template("nope") is None
        assert "react-hook" in engine.registry
        assert len(engine.registry) == 9

    @pytest.mark.unit
    def test_empty_engine(self):
        engine = TemplateEngine(register_builtins=False)
        assert engine.get_all_templates() == []

    @pytest.mark.unit
    def test_shared_registry(self):
        registry = TemplateRegistry([_template([], template_id="only")])
        engine = TemplateEngine(register_builtins=False, registry=registry)
        assert engine.get_template("only") is not None


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelectTemplate:
    @pytest.mark.unit
    def test_create_selects_component(self, engine, parser, nextjs_conventions):
        intent = parser.parse("create a Header component")
        assert engine.select_template(intent, nextjs_conventions).id == "react-component"

    @pytest.mark.unit
    def test_generate_selects_full_module_for_nextjs(self, engine, parser, nextjs_conventions):
        intent = parser.parse("generate a users module")
        assert engine.select_template(intent, nextjs_conventions).id == "nextjs-crud-module"

    @pytest.mark.unit
    def test_framework_mismatch_skipped(self, engine, parser):
        react = ProjectConventions(framework=FrameworkInfo(name=Framework.REACT))
        intent = parser.parse("generate a users module")
        assert engine.select_template(intent, react).id == "react-component"

    @pytest.mark.unit
    def test_add_selects_utility(self, engine, parser, nextjs_conventions):
        intent = parser.parse("add a helper called slugify")
        assert engine.select_template(intent, nextjs_conventions).id == "utility-function"

    @pytest.mark.unit
    def test_no_candidate(self, parser, nextjs_conventions):
        engine = TemplateEngine(register_builtins=False)
        assert engine.select_template(parser.parse("create a Header component"),
                                      nextjs_conventions) is None

    @pytest.mark.unit
    def test_is_compatible(self, engine):
        crud = engine.get_template("nextjs-crud-module")
        component = engine.get_template("react-component")
        unknown = ProjectConventions()
        nextjs = ProjectConventions(framework=FrameworkInfo(name=Framework.NEXTJS))
        assert TemplateEngine.is_compatible(crud, nextjs)
        assert not TemplateEngine.is_compatible(crud, unknown)
        assert TemplateEngine.is_compatible(component, unknown)


# ---------------------------------------------------------------------------
# Variable resolution
# ---------------------------------------------------------------------------


class TestResolveVariables:
    @pytest.mark.unit
    def test_defaults_fill_gaps(self, engine):
        resolved = resolve_variables(engine.get_template("react-component"),
                                     {"componentName": "Card"})
        assert resolved["componentPath"] == "src/components"
        assert resolved["withTests"] is False
        assert resolved["clientComponent"] is True

    @pytest.mark.unit
    def test_explicit_values_win(self, engine):
        resolved = resolve_variables(engine.get_template("react-component"),
                                     {"componentName": "Card", "clientComponent": False})
        assert resolved["clientComponent"] is False

    @pytest.mark.unit
    def test_extra_variables_pass_through(self, engine):
        resolved = resolve_variables(engine.get_template("react-component"),
                                     {"componentName": "Card", "anything": 1})
        assert resolved["anything"] == 1

    @pytest.mark.unit
    def test_missing_required_reports_every_name(self, engine):
        with pytest.raises(ScaffoldError) as exc_info:
            resolve_variables(engine.get_template("prisma-model"), {})
        error = exc_info.value
        assert error.code == ErrorCode.FILE_GENERATION_FAILED
        for name in ("modelName", "modelFileName", "tableName"):
            assert f"missing required variable '{name}'" in error.details["problems"]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "template_id,variables",
        [
            ("react-component", {"componentName": "userProfile"}),
            ("react-component", {"componentName": "Card", "withTests": "yes"}),
            ("react-hook", {"hookName": "fetchData"}),
            ("nextjs-crud-module", {"moduleName": "Users", "entityName": "Users"}),
            ("prisma-migration", {"migrationId": "add_invoices", "migrationName": "x",
                                  "tableName": "x"}),
        ],
    )
    def test_invalid_values_rejected(self, engine, template_id, variables):
        with pytest.raises(ScaffoldError):
            resolve_variables(engine.get_template(template_id), variables)

    @pytest.mark.unit
    def test_length_and_options(self):
        template = _template([], [
            TemplateVariable(name="size", type=VariableType.NUMBER,
                             validation=VariableValidation(min=1, max=10)),
            TemplateVariable(name="mode", type=VariableType.ENUM,
                             validation=VariableValidation(options=["fast", "safe"])),
        ])
        assert resolve_variables(template, {"size": 5, "mode": "safe"})["size"] == 5
        with pytest.raises(ScaffoldError) as exc_info:
            resolve_variables(template, {"size": 11, "mode": "turbo"})
        problems = exc_info.value.details["problems"]
        assert len(problems) == 2

    @pytest.mark.unit
    def test_booleans_are_not_numbers(self):
        template = _template([], [TemplateVariable(name="n", type=VariableType.NUMBER)])
        with pytest.raises(ScaffoldError):
            resolve_variables(template, {"n": True})


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class TestGenerate:
    @pytest.mark.unit
    def test_component_without_tests(self, engine):
        template = engine.get_template("react-component")
        files = engine.generate(template, TemplateContext(variables={"componentName": "UserProfile"}))
        assert [f.path for f in files] == ["src/components/UserProfile.tsx"]
        generated = files[0]
        assert generated.language == ProgrammingLanguage.TSX
        assert generated.template == "react-component"
        assert generated.is_new is True
        assert generated.content.startswith("'use client';\n\nimport React from 'react';\n")

    @pytest.mark.unit
    def test_condition_adds_test_file(self, engine):
        template = engine.get_template("react-component")
        context = TemplateContext(variables={"componentName": "UserProfile", "withTests": True})
        files = engine.generate(template, context)
        assert [f.path for f in files] == [
            "src/components/UserProfile.tsx",
            "src/components/__tests__/UserProfile.test.tsx",
        ]
        test_imports = {i.source: i for i in files[1].imports}
        assert test_imports["../UserProfile"].items == ["UserProfile"]
        assert test_imports["../UserProfile"].is_relative is True

    @pytest.mark.unit
    def test_metadata_extracted(self, engine):
        template = engine.get_template("react-component")
        files = engine.generate(template, TemplateContext(variables={"componentName": "Card"}))
        exports = {(e.name, e.type) for e in files[0].exports}
        assert exports == {("CardProps", "type"), ("Card", "named")}
        assert files[0].imports[0].source == "react"
        assert files[0].imports[0].default == "React"

    @pytest.mark.unit
    def test_condition_gates_even_non_optional_files(self, engine):
        template = _template(
            [
                TemplateFile(path="a.ts", content="a"),
                TemplateFile(path="b.ts", content="b", condition="extra"),
            ]
        )
        assert [f.path for f in engine.generate(template, TemplateContext())] == ["a.ts"]
        context = TemplateContext(variables={"extra": True})
        assert [f.path for f in engine.generate(template, context)] == ["a.ts", "b.ts"]

    @pytest.mark.unit
    def test_partial_collects_file_failures(self, engine):
        template = _template(
            [
                TemplateFile(path="good.ts", content="export const ok = 1;\n"),
                TemplateFile(path="bad.ts", content="{{#if x}}never closed"),
                TemplateFile(path="{{missingDir}}/x.ts", content=""),
            ]
        )
        result = engine.generate_partial(template, TemplateContext())
        assert [f.path for f in result.files] == ["good.ts"]
        assert [e.path for e in result.errors] == ["bad.ts", "{{missingDir}}/x.ts"]
        assert all(e.code == ErrorCode.FILE_GENERATION_FAILED for e in result.errors)
        assert result.ok is False

    @pytest.mark.unit
    def test_generate_raises_on_any_failure(self, engine):
        template = _template([TemplateFile(path="bad.ts", content="{{/if}}")])
        with pytest.raises(ScaffoldError) as exc_info:
            engine.generate(template, TemplateContext())
        assert exc_info.value.code == ErrorCode.FILE_GENERATION_FAILED
        assert exc_info.value.details["errors"][0]["path"] == "bad.ts"

    @pytest.mark.unit
    def test_invalid_variables_raise_before_rendering(self, engine):
        with pytest.raises(ScaffoldError):
            engine.generate_partial(engine.get_template("react-component"), TemplateContext())

    @pytest.mark.unit
    def test_render_path_normalises_slashes(self):
        assert TemplateEngine.render_path("{{a}}//{{b}}.ts", {"a": "/src", "b": "x"}) == "src/x.ts"

    @pytest.mark.unit
    def test_conventions_applied_to_output(self, engine):
        template = _template([TemplateFile(path="a.ts", content="import { b } from './b';\n")])
        double = ProjectConventions(imports=ImportConventions(preferred_quotes=QuoteStyle.DOUBLE))
        files = engine.generate(template, TemplateContext(conventions=double))
        assert files[0].content == 'import { b } from "./b";\n'

    @pytest.mark.unit
    def test_conventions_can_be_skipped(self, engine):
        template = _template([TemplateFile(path="a.ts", content="import { b } from './b';\n")])
        double = ProjectConventions(imports=ImportConventions(preferred_quotes=QuoteStyle.DOUBLE))
        context = TemplateContext(conventions=double, apply_conventions=False)
        assert engine.generate(template, context)[0].content == "import { b } from './b';\n"

    @pytest.mark.unit
    def test_rendering_is_deterministic(self, engine):
        template = engine.get_template("nextjs-crud-module")
        context = TemplateContext(variables={"moduleName": "users", "entityName": "Users"})
        first = [(f.path, f.content) for f in engine.generate(template, context)]
        second = [(f.path, f.content) for f in engine.generate(template, context)]
        assert first == second


# ---------------------------------------------------------------------------
# Metadata extraction
# ---------------------------------------------------------------------------


class TestExtractImports:
    @pytest.mark.unit
    def test_import_forms(self):
        content = (
            "import React, { useState } from 'react';\n"
            "import type { User } from '@/types/user';\n"
            "import * as path from 'path';\n"
            "import './globals.css';\n"
            "import { a, type B } from './a';\n"
        )
        imports = extract_imports(content)
        assert [i.source for i in imports] == [
            "react", "@/types/user", "path", "./globals.css", "./a",
        ]
        react, user, path, css, local = imports
        assert (react.default, react.items) == ("React", ["useState"])
        assert user.is_type is True and user.items == ["User"]
        assert path.default == "path"
        assert css.is_relative is True and css.items == []
        assert local.items == ["a", "B"]
        assert local.is_relative is True

    @pytest.mark.unit
    def test_no_imports(self):
        assert extract_imports("const x = 1;") == []


class TestExtractExports:
    @pytest.mark.unit
    def test_export_forms(self):
        content = (
            "export default function Page() {}\n"
            "export interface Props {}\n"
            "export type Id = string;\n"
            "export const MAX = 1;\n"
            "export async function load() {}\n"
            "const x = 1;\n"
            "export default x;\n"
        )
        assert [(e.name, e.type) for e in extract_exports(content)] == [
            ("Page", "default"),
            ("Props", "type"),
            ("Id", "type"),
            ("MAX", "named"),
            ("load", "named"),
            ("x", "default"),
        ]


class TestApplyConventions:
    @pytest.mark.unit
    def test_double_to_single(self):
        conventions = ProjectConventions()
        assert apply_conventions('import a from "a";\n', conventions) == "import a from 'a';\n"

    @pytest.mark.unit
    def test_single_to_double(self):
        conventions = ProjectConventions(
            imports=ImportConventions(preferred_quotes=QuoteStyle.DOUBLE)
        )
        assert apply_conventions("import './x.css';\n", conventions) == 'import "./x.css";\n'

    @pytest.mark.unit
    def test_relative_paths_rewritten_to_alias(self):
        conventions = ProjectConventions(imports=ImportConventions(path_alias={"@/*": "./src/*"}))
        content = "import { cn } from '../../src/lib/class-names';\n"
        assert apply_conventions(content, conventions) == "import { cn } from '@/lib/class-names';\n"

    @pytest.mark.unit
    def test_non_import_strings_untouched(self):
        conventions = ProjectConventions()
        content = 'const label = "hello";\n'
        assert apply_conventions(content, conventions) == content
