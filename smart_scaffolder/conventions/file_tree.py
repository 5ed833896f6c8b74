"""Read-only project tree accessors.

The convention analyzer never touches the filesystem directly. It reads a
project through the ``FileTree`` protocol so callers can hand it a directory
on disk (``LocalFileTree``) or a virtual workspace held in memory
(``MemoryFileTree``). Paths are POSIX-style and relative to the project
root; ``""`` and ``"."`` both denote the root.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import NamedTuple, Protocol, runtime_checkable


class DirEntry(NamedTuple):
    name: str
    is_dir: bool


@runtime_checkable
class FileTree(Protocol):
    """Minimal read interface over a project source tree."""

    def list_dir(self, path: str) -> list[DirEntry]:
        """List the entries of a directory, sorted by name.

        Raises:
            FileNotFoundError: If *path* is not a directory.
        """
        ...

    def read_text(self, path: str) -> str:
        """Return a file's contents decoded as UTF-8.

        Raises:
            FileNotFoundError: If *path* is not a file.
        """
        ...

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...


def normalize_path(path: str) -> str:
    """Normalise a relative path: ``./src//app/`` -> ``src/app``.

    Raises:
        ValueError: If *path* is absolute or climbs out of the root with ``..``.
    """
    posix = PurePosixPath(path.replace("\\", "/"))
    if posix.is_absolute() or ".." in posix.parts:
        raise ValueError(f"Path escapes the project root: {path!r}")
    return "/".join(part for part in posix.parts if part not in ("", "."))


def _relative(path: str) -> str:
    try:
        return normalize_path(path)
    except ValueError as exc:
        raise PermissionError(str(exc)) from exc


# ---------------------------------------------------------------------------
# On-disk tree
# ---------------------------------------------------------------------------


class LocalFileTree:
    """``FileTree`` over a directory on the local filesystem."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        relative = _relative(path)
        return self.root / relative if relative else self.root

    def list_dir(self, path: str) -> list[DirEntry]:
        directory = self._resolve(path)
        if not directory.is_dir():
            raise FileNotFoundError(f"Not a directory: {directory}")
        return sorted(
            (DirEntry(child.name, child.is_dir()) for child in directory.iterdir()),
            key=lambda entry: entry.name,
        )

    def read_text(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotFoundError(f"Not a file: {target}")
        return target.read_text(encoding="utf-8", errors="replace")

    def exists(self, path: str) -> bool:
        try:
            return self._resolve(path).exists()
        except PermissionError:
            return False

    def is_dir(self, path: str) -> bool:
        try:
            return self._resolve(path).is_dir()
        except PermissionError:
            return False

    def __repr__(self) -> str:
        return f"LocalFileTree({str(self.root)!r})"


# ---------------------------------------------------------------------------
# In-memory tree
# ---------------------------------------------------------------------------


class MemoryFileTree:
    """``FileTree`` over a ``{relative_path: content}`` mapping.

    Directories are implied by the file paths; an empty directory can be
    declared with a trailing slash key, e.g. ``{"src/app/": ""}``.
    """

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = {}
        self.directories: set[str] = {""}
        for path, content in (files or {}).items():
            if path.endswith("/"):
                self._add_directory(normalize_path(path))
            else:
                self.add_file(path, content)

    def add_file(self, path: str, content: str) -> None:
        relative = normalize_path(path)
        self.files[relative] = content
        self._add_directory(str(PurePosixPath(relative).parent))

    def _add_directory(self, path: str) -> None:
        relative = normalize_path(path)
        while True:
            self.directories.add(relative)
            if not relative:
                return
            parent = str(PurePosixPath(relative).parent)
            relative = "" if parent == "." else parent

    def list_dir(self, path: str) -> list[DirEntry]:
        directory = _relative(path)
        if directory not in self.directories:
            raise FileNotFoundError(f"Not a directory: {path}")
        prefix = f"{directory}/" if directory else ""
        entries: dict[str, bool] = {}
        for candidate in self.directories:
            if candidate and candidate.startswith(prefix):
                rest = candidate[len(prefix):]
                if rest and "/" not in rest:
                    entries[rest] = True
        for candidate in self.files:
            if candidate.startswith(prefix):
                rest = candidate[len(prefix):]
                if "/" not in rest:
                    entries.setdefault(rest, False)
        return [DirEntry(name, is_dir) for name, is_dir in sorted(entries.items())]

    def read_text(self, path: str) -> str:
        relative = _relative(path)
        if relative not in self.files:
            raise FileNotFoundError(f"Not a file: {path}")
        return self.files[relative]

    def exists(self, path: str) -> bool:
        try:
            relative = normalize_path(path)
        except ValueError:
            return False
        return relative in self.files or relative in self.directories

    def is_dir(self, path: str) -> bool:
        try:
            return normalize_path(path) in self.directories
        except ValueError:
            return False
