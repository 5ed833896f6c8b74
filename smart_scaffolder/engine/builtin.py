"""Built-in template definitions.

Each ``Template`` here describes paths, variables and conditions. The file
bodies live as ``.tmpl`` files under ``engine/templates/<template-id>/`` and
are read when the definitions are built.

Registration order matters: ``TemplateEngine.select_template`` returns the
first compatible match, so the full-module template comes first and the
catch-all ``generic-file`` comes last.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from ..models import (
    Framework,
    ProgrammingLanguage,
    Template,
    TemplateCategory,
    TemplateFile,
    TemplateVariable,
    VariableType,
    VariableValidation,
)


# ---------------------------------------------------------------------------
# Template body loading
# ---------------------------------------------------------------------------

TEMPLATE_DIR = Path(__file__).parent / "templates"

PASCAL_NAME = VariableValidation(pattern=r"^[A-Z][A-Za-z0-9]*$", min=1, max=100)
CAMEL_NAME = VariableValidation(pattern=r"^[a-z][A-Za-z0-9]*$", min=1, max=100)
FILE_NAME = VariableValidation(pattern=r"^[A-Za-z0-9][A-Za-z0-9._-]*$", min=1, max=100)
DIRECTORY = VariableValidation(pattern=r"^[A-Za-z0-9_.@()\[\]/-]+$")


@lru_cache(maxsize=None)
def load_body(relative_path: str) -> str:
    """Read a template body relative to ``TEMPLATE_DIR``."""
    return (TEMPLATE_DIR / relative_path).read_text(encoding="utf-8")


def _string(name: str, description: str, default: str | None = None,
            validation: VariableValidation | None = None) -> TemplateVariable:
    return TemplateVariable(
        name=name,
        type=VariableType.STRING,
        description=description,
        default=default,
        required=default is None,
        validation=validation,
    )


def _flag(name: str, description: str, default: bool = False) -> TemplateVariable:
    return TemplateVariable(
        name=name, type=VariableType.BOOLEAN, description=description, default=default
    )


def _fields() -> TemplateVariable:
    return TemplateVariable(
        name="fields",
        type=VariableType.ARRAY,
        description="Extra entity fields as {name, type} objects",
        default=[],
    )


_VITEST = ("vitest", "Import test globals from vitest instead of relying on jest globals")


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


def crud_module_template() -> Template:
    return Template(
        id="nextjs-crud-module",
        name="Next.js CRUD Module",
        description="API route, list and form components and shared types for one resource",
        category=TemplateCategory.FULL_MODULE,
        framework=Framework.NEXTJS,
        tags=["crud", "module", "api", "component", "typescript"],
        files=[
            TemplateFile(
                path="{{apiDir}}/{{moduleName}}/route.ts",
                content=load_body("nextjs-crud-module/route.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
            ),
            TemplateFile(
                path="{{componentPath}}/{{entityName}}/{{entityName}}List.tsx",
                content=load_body("nextjs-crud-module/list.tsx.tmpl"),
                language=ProgrammingLanguage.TSX,
            ),
            TemplateFile(
                path="{{componentPath}}/{{entityName}}/{{entityName}}Form.tsx",
                content=load_body("nextjs-crud-module/form.tsx.tmpl"),
                language=ProgrammingLanguage.TSX,
            ),
            TemplateFile(
                path="{{typesPath}}/{{moduleName}}.ts",
                content=load_body("nextjs-crud-module/types.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
            ),
            TemplateFile(
                path="{{apiDir}}/{{moduleName}}/__tests__/route.test.ts",
                content=load_body("nextjs-crud-module/route.test.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
                optional=True,
                condition="withTests",
            ),
        ],
        variables=[
            _string("moduleName", "Resource name used in URLs, e.g. 'users'",
                    validation=VariableValidation(pattern=r"^[a-z][a-z0-9-]*$", min=1, max=100)),
            _string("entityName", "Type name of one resource, e.g. 'Users'",
                    validation=PASCAL_NAME),
            _string("apiDir", "Directory holding API routes", "src/app/api", DIRECTORY),
            _string("componentPath", "Directory holding components", "src/components", DIRECTORY),
            _string("typesPath", "Directory holding shared types", "src/types", DIRECTORY),
            _flag("withAuth", "Require an authenticated user", True),
            _flag("withTests", "Generate a route test"),
            _flag(*_VITEST),
            _fields(),
        ],
        examples=["scaffold a module called users", "generate a module called products with auth"],
    )


def react_component_template() -> Template:
    return Template(
        id="react-component",
        name="React Component",
        description="A typed React component with an optional test",
        category=TemplateCategory.COMPONENT,
        framework=None,
        tags=["react", "component", "typescript"],
        files=[
            TemplateFile(
                path="{{componentPath}}/{{componentName}}.tsx",
                content=load_body("react-component/component.tsx.tmpl"),
                language=ProgrammingLanguage.TSX,
            ),
            TemplateFile(
                path="{{componentPath}}/__tests__/{{componentName}}.test.tsx",
                content=load_body("react-component/component.test.tsx.tmpl"),
                language=ProgrammingLanguage.TSX,
                optional=True,
                condition="withTests",
            ),
        ],
        variables=[
            _string("componentName", "Name of the component", validation=PASCAL_NAME),
            _string("componentPath", "Directory holding components", "src/components", DIRECTORY),
            _flag("withTests", "Generate a test file"),
            _flag("clientComponent", "Add the 'use client' directive", True),
            _flag("classBased", "Write a class component instead of a function"),
            _flag(*_VITEST),
        ],
        examples=["create a UserProfile component", "create a Button component with tests"],
    )


def react_hook_template() -> Template:
    return Template(
        id="react-hook",
        name="React Hook",
        description="An async-loading React hook",
        category=TemplateCategory.COMPONENT,
        framework=None,
        tags=["react", "hook", "typescript"],
        files=[
            TemplateFile(
                path="{{hooksPath}}/{{hookName}}.ts",
                content=load_body("react-hook/hook.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
            ),
            TemplateFile(
                path="{{hooksPath}}/__tests__/{{hookName}}.test.ts",
                content=load_body("react-hook/hook.test.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
                optional=True,
                condition="withTests",
            ),
        ],
        variables=[
            _string("hookName", "Hook name starting with 'use'",
                    validation=VariableValidation(pattern=r"^use[A-Z0-9][A-Za-z0-9]*$", max=100)),
            _string("hooksPath", "Directory holding hooks", "src/hooks", DIRECTORY),
            _flag("withTests", "Generate a test file"),
            _flag(*_VITEST),
        ],
        examples=["create a useUserData hook"],
    )


def api_route_template() -> Template:
    return Template(
        id="nextjs-api-route",
        name="Next.js API Route",
        description="An app-router route handler with GET and POST",
        category=TemplateCategory.ROUTE,
        framework=Framework.NEXTJS,
        tags=["api", "route", "nextjs", "typescript"],
        files=[
            TemplateFile(
                path="{{apiDir}}/{{routePath}}/route.ts",
                content=load_body("nextjs-api-route/route.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
            ),
            TemplateFile(
                path="{{apiDir}}/{{routePath}}/__tests__/route.test.ts",
                content=load_body("nextjs-api-route/route.test.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
                optional=True,
                condition="withTests",
            ),
        ],
        variables=[
            _string("routePath", "Route path below /api",
                    validation=VariableValidation(pattern=r"^[a-z0-9\[][a-z0-9_/\[\]-]*$", max=200)),
            _string("apiDir", "Directory holding API routes", "src/app/api", DIRECTORY),
            _flag("withAuth", "Require an authenticated user"),
            _flag("withValidation", "Reject non-object request bodies"),
            _flag("withTests", "Generate a route test"),
            _flag(*_VITEST),
        ],
        examples=["create an API route called users with auth"],
    )


def utility_function_template() -> Template:
    return Template(
        id="utility-function",
        name="Utility Function",
        description="A typed utility function with an optional test",
        category=TemplateCategory.UTILITY,
        framework=None,
        tags=["utility", "function", "typescript"],
        files=[
            TemplateFile(
                path="{{utilsPath}}/{{fileBaseName}}.ts",
                content=load_body("utility-function/utility.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
            ),
            TemplateFile(
                path="{{utilsPath}}/__tests__/{{fileBaseName}}.test.ts",
                content=load_body("utility-function/utility.test.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
                optional=True,
                condition="withTests",
            ),
        ],
        variables=[
            _string("fileBaseName", "File name without extension", validation=FILE_NAME),
            _string("functionName", "Name of the exported function", validation=CAMEL_NAME),
            _string("utilsPath", "Directory holding utilities", "src/lib", DIRECTORY),
            _flag("withTests", "Generate a test file"),
            _flag("withDocs", "Add a doc comment"),
            _flag(*_VITEST),
        ],
        examples=["add a utility called formatDate with tests"],
    )


def prisma_model_template() -> Template:
    return Template(
        id="prisma-model",
        name="Prisma Model",
        description="A Prisma schema model plus its TypeScript interface",
        category=TemplateCategory.MODEL,
        framework=None,
        tags=["prisma", "model", "database"],
        files=[
            TemplateFile(
                path="prisma/schema/{{modelFileName}}.prisma",
                content=load_body("prisma-model/model.prisma.tmpl"),
                language=ProgrammingLanguage.PRISMA,
            ),
            TemplateFile(
                path="{{typesPath}}/{{modelFileName}}.ts",
                content=load_body("prisma-model/model.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
            ),
        ],
        variables=[
            _string("modelName", "Model name", validation=PASCAL_NAME),
            _string("modelFileName", "File name of the model", validation=FILE_NAME),
            _string("tableName", "Database table name",
                    validation=VariableValidation(pattern=r"^[a-z][a-z0-9_]*$", max=63)),
            _string("typesPath", "Directory holding shared types", "src/types", DIRECTORY),
            _flag("withAuth", "Add an owning userId column"),
            _fields(),
        ],
        examples=["create a model called Invoice"],
    )


def prisma_migration_template() -> Template:
    return Template(
        id="prisma-migration",
        name="Prisma Migration",
        description="A timestamped SQL migration creating one table",
        category=TemplateCategory.MIGRATION,
        framework=None,
        tags=["prisma", "migration", "sql"],
        files=[
            TemplateFile(
                path="prisma/migrations/{{migrationId}}/migration.sql",
                content=load_body("prisma-migration/migration.sql.tmpl"),
                language=ProgrammingLanguage.SQL,
            ),
        ],
        variables=[
            _string("migrationId", "Timestamped directory name",
                    validation=VariableValidation(pattern=r"^\d{14}_[a-z0-9_]+$")),
            _string("migrationName", "Human-readable migration name"),
            _string("tableName", "Table created by the migration",
                    validation=VariableValidation(pattern=r"^[a-z][a-z0-9_]*$", max=63)),
        ],
        examples=["create a migration called add_invoices"],
    )


def suite_template() -> Template:
    return Template(
        id="test-suite",
        name="Test Suite",
        description="An empty describe block ready for cases",
        category=TemplateCategory.TEST,
        framework=None,
        tags=["test", "jest", "vitest"],
        files=[
            TemplateFile(
                path="{{testsPath}}/{{fileBaseName}}.test.ts",
                content=load_body("test-suite/suite.test.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
            ),
        ],
        variables=[
            _string("subjectName", "What the suite tests"),
            _string("fileBaseName", "File name without extension", validation=FILE_NAME),
            _string("testsPath", "Directory holding tests", "src/__tests__", DIRECTORY),
            _flag(*_VITEST),
        ],
        examples=["create a test for checkout"],
    )


def generic_file_template() -> Template:
    return Template(
        id="generic-file",
        name="Generic File",
        description="A small typed module for anything without a dedicated template",
        category=TemplateCategory.UTILITY,
        framework=None,
        tags=["generic"],
        files=[
            TemplateFile(
                path="{{targetDir}}/{{fileBaseName}}{{fileSuffix}}.ts",
                content=load_body("generic-file/file.ts.tmpl"),
                language=ProgrammingLanguage.TYPESCRIPT,
            ),
        ],
        variables=[
            _string("fileName", "Logical name of the file"),
            _string("fileBaseName", "File name without extension", validation=FILE_NAME),
            _string("targetDir", "Output directory", "src/lib", DIRECTORY),
            _string("fileSuffix", "Suffix before the extension, e.g. '.service'", ""),
        ],
        examples=["create a service called billing"],
    )


def builtin_templates() -> list[Template]:
    """Return fresh copies of every built-in template, in registration order."""
    return [
        crud_module_template(),
        react_component_template(),
        react_hook_template(),
        api_route_template(),
        utility_function_template(),
        prisma_model_template(),
        prisma_migration_template(),
        suite_template(),
        generic_file_template(),
    ]
