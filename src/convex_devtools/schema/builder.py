"""Assemble walker output and table definitions into a schema snapshot."""

from __future__ import annotations

import time
from pathlib import Path

import structlog

from convex_devtools.schema.extractor import extract_tables
from convex_devtools.schema.models import SchemaSnapshot, TableDescriptor, count_functions
from convex_devtools.schema.walker import walk

logger = structlog.get_logger()

DEFAULT_SCHEMA_FILE = "schema.ts"


def load_tables(schema_path: Path) -> list[TableDescriptor]:
    """Parse table definitions; a missing or unreadable file yields none."""
    if not schema_path.exists():
        return []
    try:
        contents = schema_path.read_text(encoding="utf-8")
        return extract_tables(contents)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("schema_file_read_failed", path=str(schema_path), error=str(e))
    except Exception as e:
        logger.error("schema_file_parse_failed", path=str(schema_path), error=str(e))
    return []


def build_snapshot(
    functions_dir: Path,
    schema_file: str = DEFAULT_SCHEMA_FILE,
    *,
    generation: int = 0,
) -> SchemaSnapshot:
    """Scan the functions directory into a fresh snapshot.

    Blocking: reads every source file. Callers on the event loop run this in
    an executor.

    Raises:
        SchemaError: If ``functions_dir`` cannot be listed.
    """
    start = time.perf_counter()
    modules = walk(functions_dir)
    tables = load_tables(functions_dir / schema_file)
    snapshot = SchemaSnapshot(
        modules=tuple(modules),
        tables=tuple(tables),
        generation=generation,
    )
    logger.info(
        "schema_built",
        functions=count_functions(modules),
        modules=len(modules),
        tables=len(tables),
        generation=generation,
        duration_ms=round((time.perf_counter() - start) * 1000, 1),
    )
    return snapshot
