"""Shared pytest fixtures for the Smart Scaffolder test suite.

Provides reusable fixtures for:
- A sample Next.js (app router) project, in memory and on disk
- Conventions analysed from that project
- A fixed clock for deterministic migration names
- Parsers, engines and pipelines wired to the sample project
"""

from __future__ import annotations

import json
import textwrap
from datetime import datetime, timezone
from pathlib import Path

import pytest

from smart_scaffolder.config import ScaffolderConfig
from smart_scaffolder.conventions import ConventionAnalyzer, MemoryFileTree
from smart_scaffolder.engine import TemplateEngine
from smart_scaffolder.models import ProjectConventions
from smart_scaffolder.parser import PromptParser
from smart_scaffolder.pipeline import ScaffoldPipeline


# ---------------------------------------------------------------------------
# Sample project
# ---------------------------------------------------------------------------

FIXED_NOW = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _package_json() -> str:
    return json.dumps({
        "name": "web",
        "version": "0.1.0",
        "scripts": {"dev": "next dev", "test": "jest --coverage"},
        "dependencies": {
            "next": "^15.0.3",
            "react": "^19.0.0",
            "react-dom": "^19.0.0",
            "zustand": "^5.0.0",
        },
        "devDependencies": {
            "typescript": "^5.6.0",
            "jest": "^29.7.0",
            "@testing-library/react": "^16.0.0",
            "tailwindcss": "^3.4.0",
        },
    }, indent=2)


def _tsconfig() -> str:
    # Comments and trailing commas, as tsconfig files are usually written.
    return textwrap.dedent("""\
        {
          // Next.js defaults
          "compilerOptions": {
            "target": "ES2017",
            "strict": true,
            "jsx": "preserve",
            "paths": {
              "@/*": ["./src/*"],
            },
          },
        }
    """)


SAMPLE_PROJECT_FILES: dict[str, str] = {
    "package.json": _package_json(),
    "tsconfig.json": _tsconfig(),
    "src/app/layout.tsx": textwrap.dedent("""\
        import React from 'react';
        import './globals.css';

        export default function RootLayout({ children }: { children: React.ReactNode }) {
          return <html lang="en"><body>{children}</body></html>;
        }
    """),
    "src/app/globals.css": "body { margin: 0; }\n",
    "src/app/page.tsx": textwrap.dedent("""\
        import { Button } from '@/components/Button';
        import { formatDate } from '@/lib/format-date';

        export default function HomePage() {
          const today = formatDate(new Date());
          return <Button label={today} />;
        }
    """),
    "src/app/api/health/route.ts": textwrap.dedent("""\
        import { NextResponse } from 'next/server';

        export async function GET() {
          return NextResponse.json({ ok: true });
        }
    """),
    "src/components/Button.tsx": textwrap.dedent("""\
        'use client';

        import React from 'react';
        import { cn } from '@/lib/class-names';

        export const MAX_LABEL_LENGTH = 40;

        export interface ButtonProps {
          label: string;
        }

        export function Button({ label }: ButtonProps) {
          const trimmed = label.slice(0, MAX_LABEL_LENGTH);
          return <button className={cn('btn')}>{trimmed}</button>;
        }
    """),
    "src/components/UserCard.tsx": textwrap.dedent("""\
        import React from 'react';
        import type { User } from '@/types/user';

        export function UserCard({ user }: { user: User }) {
          return <article>{user.name}</article>;
        }
    """),
    "src/components/__tests__/Button.test.tsx": textwrap.dedent("""\
        import { render } from '@testing-library/react';
        import { Button } from '../Button';

        it('renders', () => {
          render(<Button label="x" />);
        });
    """),
    "src/lib/format-date.ts": textwrap.dedent("""\
        export const DEFAULT_LOCALE = 'en-US';

        export function formatDate(value: Date): string {
          return value.toLocaleDateString(DEFAULT_LOCALE);
        }
    """),
    "src/lib/class-names.ts": textwrap.dedent("""\
        export const cn = (...names: string[]) => names.filter(Boolean).join(' ');
    """),
    "src/types/user.ts": textwrap.dedent("""\
        export interface User {
          id: string;
          name: string;
        }
    """),
    "src/hooks/use-session.ts": textwrap.dedent("""\
        import { useState } from 'react';

        export function useSession() {
          const [session, setSession] = useState(null);
          return { session, setSession };
        }
    """),
}


# ---------------------------------------------------------------------------
# Trees & conventions
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_files() -> dict[str, str]:
    """Path -> content of the sample Next.js project."""
    return dict(SAMPLE_PROJECT_FILES)


@pytest.fixture
def memory_tree(sample_files: dict[str, str]) -> MemoryFileTree:
    """The sample project as an in-memory tree."""
    return MemoryFileTree(sample_files)


@pytest.fixture
def sample_project(tmp_path: Path, sample_files: dict[str, str]) -> Path:
    """The sample project written to a temporary directory (auto-cleanup)."""
    project_dir = tmp_path / "web"
    for relative, content in sample_files.items():
        target = project_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    yield project_dir


@pytest.fixture
def nextjs_conventions(memory_tree: MemoryFileTree) -> ProjectConventions:
    """Conventions analysed from the sample project."""
    return ConventionAnalyzer().analyze_tree(memory_tree, "web")


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------

@pytest.fixture
def fixed_clock():
    """Clock returning ``FIXED_NOW``."""
    return lambda: FIXED_NOW


@pytest.fixture
def parser(fixed_clock) -> PromptParser:
    return PromptParser(clock=fixed_clock)


@pytest.fixture
def engine() -> TemplateEngine:
    """A template engine seeded with the built-in templates."""
    return TemplateEngine()


@pytest.fixture
def pipeline(memory_tree: MemoryFileTree, parser: PromptParser) -> ScaffoldPipeline:
    """Pipeline whose every project id resolves to the sample project."""
    return ScaffoldPipeline(
        ScaffolderConfig(),
        parser=parser,
        tree_resolver=lambda _project_id: memory_tree,
    )
