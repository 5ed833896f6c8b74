"""Shared utility functions for the Smart Scaffolder.

Provides lenient JSON parsing for JavaScript tooling config files, the shared
Rich console, and the Rich-based reporting helpers used by the pipeline and
the CLI.
"""

from __future__ import annotations

import json
import re
from typing import Any

from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.tree import Tree

console = Console()

# ---------------------------------------------------------------------------
# JSON helpers
# ---------------------------------------------------------------------------

# Strings are matched first so comment markers inside them survive.
_JSON_COMMENT_PATTERN = re.compile(
    r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL
)
_TRAILING_COMMA_PATTERN = re.compile(r",(\s*[}\]])")


def parse_json_lenient(raw: str) -> dict[str, Any]:
    """Parse JSON that may carry comments and trailing commas.

    ``tsconfig.json`` and ``jsconfig.json`` are routinely written this way.

    Raises:
        json.JSONDecodeError: If the text is still not valid JSON.
    """
    stripped = _JSON_COMMENT_PATTERN.sub(lambda m: m.group(1) or "", raw)
    stripped = _TRAILING_COMMA_PATTERN.sub(r"\1", stripped)
    data = json.loads(stripped)
    if not isinstance(data, dict):
        return {"_root": data}
    return data


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(0.042)  -> "42ms"
        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0ms"
    if seconds < 1:
        return f"{int(round(seconds * 1000))}ms"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str) -> None:
    """Print a full-width rule with *title*."""
    console.print()
    console.print(Rule(f"[bold bright_green] {title} [/bold bright_green]", style="bright_green"))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_rows_table(
    columns: list[str], rows: list[list[str]], title: str = ""
) -> None:
    """Print an arbitrary table with a header row."""
    table = Table(title=title or None, show_header=True, header_style="bold cyan")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)
    console.print()


def print_tree(label: str, paths: list[str]) -> None:
    """Print slash-separated *paths* as a Rich tree under *label*."""
    root = Tree(f"[bold]{label}[/bold]")
    branches: dict[str, Tree] = {}
    for path in sorted(paths):
        parent = root
        parts = path.split("/")
        for depth, part in enumerate(parts):
            key = "/".join(parts[: depth + 1])
            if key not in branches:
                branches[key] = parent.add(part)
            parent = branches[key]
    console.print(root)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def print_info(message: str) -> None:
    console.print(f"[dim]{message}[/dim]")
