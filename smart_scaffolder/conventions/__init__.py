"""Project convention analysis.

Usage::

    from smart_scaffolder.conventions import ConventionAnalyzer, MemoryFileTree

    trees = {"demo": MemoryFileTree({"package.json": '{"dependencies": {"next": "15.0.0"}}'})}
    analyzer = ConventionAnalyzer(tree_resolver=trees.__getitem__)
    conventions = await analyzer.analyze_project("demo")
    print(conventions.framework.name, conventions.naming.files)
"""

from .analyzer import (
    ConventionAnalyzer,
    classify_naming_style,
    detect_constant_naming_style,
    detect_directory_naming_style,
    detect_file_naming_style,
    detect_import_style,
    detect_quote_style,
)
from .cache import ConventionCache
from .file_tree import (
    DirEntry,
    FileTree,
    LocalFileTree,
    MemoryFileTree,
)

__all__ = [
    "ConventionAnalyzer",
    "ConventionCache",
    "DirEntry",
    "FileTree",
    "LocalFileTree",
    "MemoryFileTree",
    "classify_naming_style",
    "detect_constant_naming_style",
    "detect_directory_naming_style",
    "detect_file_naming_style",
    "detect_import_style",
    "detect_quote_style",
]
