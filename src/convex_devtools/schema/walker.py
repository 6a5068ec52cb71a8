"""Directory walker mapping the functions tree onto a module namespace.

Each source file with at least one exported function becomes a leaf module;
each directory holding such files (at any depth) becomes a parent module.
Entries are visited in sorted order so an unchanged tree always walks to the
same result. Symbolic links are not followed.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from convex_devtools.core.errors import SchemaError
from convex_devtools.core.excludes import is_excluded_name, is_source_file, module_name
from convex_devtools.schema.extractor import extract_functions
from convex_devtools.schema.models import FunctionDescriptor, ModuleNode

logger = structlog.get_logger()


def _join(parent_path: str, name: str) -> str:
    return f"{parent_path}/{name}" if parent_path else name


def _list_entries(directory: Path) -> list[os.DirEntry[str]]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda e: e.name)


def parse_file(file_path: Path, module_path: str) -> list[FunctionDescriptor]:
    """Read one source file and extract its functions.

    Unreadable or undecodable files are logged and yield no functions.
    """
    try:
        contents = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("file_read_failed", path=str(file_path), error=str(e))
        return []
    try:
        return extract_functions(contents, module_path)
    except Exception as e:
        logger.error("file_parse_failed", path=str(file_path), error=str(e))
        return []


def _walk_dir(directory: Path, parent_path: str) -> list[ModuleNode]:
    """Walk one directory level below the root, absorbing per-entry errors."""
    try:
        entries = _list_entries(directory)
    except OSError as e:
        logger.warning("directory_read_failed", path=str(directory), error=str(e))
        return []
    return _walk_entries(entries, parent_path)


def _walk_entries(entries: list[os.DirEntry[str]], parent_path: str) -> list[ModuleNode]:
    nodes: list[ModuleNode] = []
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            if is_excluded_name(entry.name, is_dir=is_dir):
                continue

            if is_dir:
                path = _join(parent_path, entry.name)
                children = _walk_dir(Path(entry.path), path)
                # Empty subtrees are pruned, so any child implies functions below
                if children:
                    nodes.append(ModuleNode(name=entry.name, path=path, children=tuple(children)))
            elif entry.is_file(follow_symlinks=False) and is_source_file(entry.name):
                name = module_name(entry.name)
                path = _join(parent_path, name)
                functions = parse_file(Path(entry.path), path)
                if functions:
                    nodes.append(ModuleNode(name=name, path=path, functions=tuple(functions)))
        except OSError as e:
            logger.warning("entry_skipped", path=entry.path, error=str(e))
    return nodes


def walk(root_dir: Path) -> list[ModuleNode]:
    """Walk the functions root into a module forest.

    Raises:
        SchemaError: If the root itself cannot be listed. Failures below the
            root are logged and the offending entry is skipped.
    """
    try:
        entries = _list_entries(root_dir)
    except OSError as e:
        raise SchemaError.root_unreadable(str(root_dir), str(e)) from e
    return _walk_entries(entries, "")
