"""Tests for the built-in template definitions and their bodies.

Every built-in template is rendered with realistic variables; the output
must have the expected paths, no leftover template tags and the content
switched on by its flags.
"""

from __future__ import annotations

import pytest

from smart_scaffolder.engine import builtin_templates, compile_template
from smart_scaffolder.engine.builtin import TEMPLATE_DIR
from smart_scaffolder.models import TemplateContext

pytestmark = pytest.mark.unit

VARIABLES: dict[str, dict] = {
    "nextjs-crud-module": {
        "moduleName": "users",
        "entityName": "Users",
        "withTests": True,
        "vitest": True,
        "fields": [{"name": "email", "type": "string"}],
    },
    "react-component": {"componentName": "UserProfile", "withTests": True},
    "react-hook": {"hookName": "useUserData", "withTests": True},
    "nextjs-api-route": {
        "routePath": "users",
        "withAuth": True,
        "withValidation": True,
        "withTests": True,
    },
    "utility-function": {
        "fileBaseName": "format-date",
        "functionName": "formatDate",
        "withTests": True,
        "withDocs": True,
    },
    "prisma-model": {
        "modelName": "Invoice",
        "modelFileName": "invoice",
        "tableName": "invoice",
        "fields": [{"name": "total", "type": "Int"}],
    },
    "prisma-migration": {
        "migrationId": "20250102030405_add_invoices",
        "migrationName": "add_invoices",
        "tableName": "invoices",
    },
    "test-suite": {"subjectName": "checkout", "fileBaseName": "checkout"},
    "generic-file": {
        "fileName": "billing",
        "fileBaseName": "billing",
        "targetDir": "src/services",
        "fileSuffix": ".service",
    },
}

EXPECTED_PATHS: dict[str, list[str]] = {
    "nextjs-crud-module": [
        "src/app/api/users/route.ts",
        "src/components/Users/UsersList.tsx",
        "src/components/Users/UsersForm.tsx",
        "src/types/users.ts",
        "src/app/api/users/__tests__/route.test.ts",
    ],
    "react-component": [
        "src/components/UserProfile.tsx",
        "src/components/__tests__/UserProfile.test.tsx",
    ],
    "react-hook": ["src/hooks/useUserData.ts", "src/hooks/__tests__/useUserData.test.ts"],
    "nextjs-api-route": ["src/app/api/users/route.ts", "src/app/api/users/__tests__/route.test.ts"],
    "utility-function": ["src/lib/format-date.ts", "src/lib/__tests__/format-date.test.ts"],
    "prisma-model": ["prisma/schema/invoice.prisma", "src/types/invoice.ts"],
    "prisma-migration": ["prisma/migrations/20250102030405_add_invoices/migration.sql"],
    "test-suite": ["src/__tests__/checkout.test.ts"],
    "generic-file": ["src/services/billing.service.ts"],
}


def _render(engine, template_id: str, **overrides) -> dict[str, str]:
    template = engine.get_template(template_id)
    variables = {**VARIABLES[template_id], **overrides}
    files = engine.generate(template, TemplateContext(variables=variables))
    return {f.path: f.content for f in files}


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class TestDefinitions:
    def test_ids_unique(self):
        ids = [t.id for t in builtin_templates()]
        assert len(ids) == len(set(ids)) == 9

    def test_every_template_has_files_and_examples(self):
        for template in builtin_templates():
            assert template.files, template.id
            assert template.examples, template.id

    def test_every_body_file_is_used(self):
        used = {f.content for t in builtin_templates() for f in t.files}
        on_disk = {p.read_text(encoding="utf-8") for p in TEMPLATE_DIR.glob("*/*.tmpl")}
        assert on_disk <= used

    def test_every_body_compiles(self):
        for template in builtin_templates():
            for template_file in template.files:
                compile_template(template_file.content)

    def test_fresh_copies(self):
        first, second = builtin_templates(), builtin_templates()
        first[0].tags.append("changed")
        assert "changed" not in second[0].tags

    def test_conditions_name_declared_flags(self):
        for template in builtin_templates():
            declared = {v.name for v in template.variables}
            for template_file in template.files:
                if template_file.condition:
                    assert template_file.condition in declared, template.id


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRendering:
    @pytest.mark.parametrize("template_id", list(VARIABLES))
    def test_paths(self, engine, template_id):
        assert list(_render(engine, template_id)) == EXPECTED_PATHS[template_id]

    @pytest.mark.parametrize("template_id", list(VARIABLES))
    def test_no_leftover_tags(self, engine, template_id):
        for path, content in _render(engine, template_id).items():
            assert "{{" not in content, path
            assert "\n\n\n" not in content, path

    def test_crud_module(self, engine):
        files = _render(engine, "nextjs-crud-module")
        route = files["src/app/api/users/route.ts"]
        assert "getAuthenticatedUser" in route
        assert "userId: user.id" in route
        assert "prisma.users.findMany" in route
        types = files["src/types/users.ts"]
        assert "  description: string;\n  email: string;\n  createdAt: Date;" in types
        assert "userId: string;" in types
        assert 'data-field="email"' in files["src/components/Users/UsersList.tsx"]
        assert "from 'vitest'" in files["src/app/api/users/__tests__/route.test.ts"]

    def test_crud_module_without_auth(self, engine):
        files = _render(engine, "nextjs-crud-module", withAuth=False)
        assert "getAuthenticatedUser" not in files["src/app/api/users/route.ts"]
        assert "userId" not in files["src/types/users.ts"]

    def test_class_component(self, engine):
        component = _render(engine, "react-component", classBased=True)["src/components/UserProfile.tsx"]
        assert "export class UserProfile extends React.Component<UserProfileProps>" in component
        assert "export function" not in component

    def test_server_component(self, engine):
        component = _render(engine, "react-component", clientComponent=False)[
            "src/components/UserProfile.tsx"
        ]
        assert component.startswith("import React from 'react';")

    def test_api_route_flags(self, engine):
        files = _render(engine, "nextjs-api-route")
        assert "Request body must be a JSON object" in files["src/app/api/users/route.ts"]
        assert "toBe(401)" in files["src/app/api/users/__tests__/route.test.ts"]
        plain = _render(engine, "nextjs-api-route", withAuth=False, withValidation=False)
        assert "getAuthenticatedUser" not in plain["src/app/api/users/route.ts"]
        assert "toBe(201)" in plain["src/app/api/users/__tests__/route.test.ts"]

    def test_utility_docs(self, engine):
        utility = _render(engine, "utility-function")["src/lib/format-date.ts"]
        assert utility.startswith("/**\n * formatDate")
        assert "export function formatDate(input: string): string" in utility

    def test_hook(self, engine):
        hook = _render(engine, "react-hook")["src/hooks/useUserData.ts"]
        assert "export interface UseUserDataResult<T>" in hook
        assert "export function useUserData<T = unknown>" in hook

    def test_prisma_model(self, engine):
        schema = _render(engine, "prisma-model")["prisma/schema/invoice.prisma"]
        assert schema.startswith("model Invoice {")
        assert "  total Int\n" in schema
        assert '@@map("invoice")' in schema

    def test_migration(self, engine):
        sql = _render(engine, "prisma-migration")[
            "prisma/migrations/20250102030405_add_invoices/migration.sql"
        ]
        assert sql.startswith("-- Migration: add_invoices")
        assert 'CREATE TABLE "invoices"' in sql

    def test_suite_with_vitest(self, engine):
        suite = _render(engine, "test-suite", vitest=True)["src/__tests__/checkout.test.ts"]
        assert suite.startswith("import { describe, it, expect } from 'vitest';\n\ndescribe('checkout'")

    def test_generic_file(self, engine):
        content = _render(engine, "generic-file")["src/services/billing.service.ts"]
        assert "export interface BillingOptions" in content
        assert "export function billing(" in content
