"""Exclusion rules for the functions directory.

Two consumers share these rules:
- The directory walker, which decides which entries become module nodes
- The file watcher, which decides which filesystem events trigger a rescan

Names are matched per path segment, never against full paths.
"""

from __future__ import annotations

from pathlib import PurePath

# Generated client bindings and installed dependencies. Never scanned.
GENERATED_DIRS: frozenset[str] = frozenset(
    (
        "_generated",
        "node_modules",
    )
)

TEST_DIRS: frozenset[str] = frozenset(
    (
        "tests",
        "__tests__",
    )
)

TEST_FILE_SUFFIXES: tuple[str, ...] = (
    ".test.ts",
    ".test.js",
    ".spec.ts",
    ".spec.js",
)

TEST_SETUP_FILES: frozenset[str] = frozenset(("test.setup.ts", "test.setup.js"))

SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".js")

# TypeScript declaration files share the .ts extension but never hold functions
DECLARATION_SUFFIX = ".d.ts"


def is_excluded_name(name: str, *, is_dir: bool) -> bool:
    """Return True if a directory entry must be skipped by the walker."""
    if name.startswith((".", "_")):
        return True
    if name in GENERATED_DIRS:
        return True
    if is_dir:
        return name in TEST_DIRS
    return name in TEST_SETUP_FILES or name.endswith(TEST_FILE_SUFFIXES)


def is_source_file(name: str) -> bool:
    """Return True for function source files (.ts/.js, not .d.ts)."""
    return name.endswith(SOURCE_EXTENSIONS) and not name.endswith(DECLARATION_SUFFIX)


def module_name(file_name: str) -> str:
    """Strip the source extension: ``products.ts`` -> ``products``."""
    for ext in SOURCE_EXTENSIONS:
        if file_name.endswith(ext):
            return file_name[: -len(ext)]
    return file_name


def is_relevant_path(rel_path: PurePath) -> bool:
    """Relevance filter for watcher events, given a path relative to the root.

    A change matters only if it touches a source file outside any excluded
    directory and is not itself a test file.
    """
    parts = rel_path.parts
    if not parts:
        return False
    *dirs, name = parts
    if any(is_excluded_name(d, is_dir=True) for d in dirs):
        return False
    if not is_source_file(name):
        return False
    return not is_excluded_name(name, is_dir=False)
