"""Schema discovery: extraction, directory walking and snapshot building."""

from convex_devtools.schema.builder import build_snapshot
from convex_devtools.schema.extractor import extract_functions, extract_tables
from convex_devtools.schema.models import (
    ArgumentDescriptor,
    FieldDescriptor,
    FunctionDescriptor,
    FunctionKind,
    ModuleNode,
    SchemaSnapshot,
    TableDescriptor,
)
from convex_devtools.schema.walker import walk

__all__ = [
    "ArgumentDescriptor",
    "FieldDescriptor",
    "FunctionDescriptor",
    "FunctionKind",
    "ModuleNode",
    "SchemaSnapshot",
    "TableDescriptor",
    "build_snapshot",
    "extract_functions",
    "extract_tables",
    "walk",
]
