"""Schema document types.

Every type here is frozen and uses tuples for collections: a snapshot, once
built, is shared read-only between the HTTP handlers, the distributor and
the watcher, and is replaced wholesale instead of being edited.

``to_dict()`` produces the JSON wire form consumed by the console front end.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class FunctionKind(str, Enum):
    """Observable function kinds. Internal variants normalize to these."""

    QUERY = "query"
    MUTATION = "mutation"
    ACTION = "action"


@dataclass(frozen=True, slots=True)
class ArgumentDescriptor:
    """One declared parameter of a function.

    ``primitive_type`` is the validator call name (``string``, ``id``,
    ``number``...), not a full type expression.
    """

    name: str
    primitive_type: str
    optional: bool = False
    description: str | None = None
    enum_values: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "type": self.primitive_type,
            "optional": self.optional,
        }
        if self.description is not None:
            result["description"] = self.description
        if self.enum_values is not None:
            result["enumValues"] = list(self.enum_values)
        return result


@dataclass(frozen=True, slots=True)
class FunctionDescriptor:
    """Extracted metadata for one callable.

    ``full_path`` (``module/path:name``) is the identity key of the function.
    """

    name: str
    full_path: str
    kind: FunctionKind
    arguments: tuple[ArgumentDescriptor, ...] = ()
    return_hint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "path": self.full_path,
            "type": self.kind.value,
            "args": [a.to_dict() for a in self.arguments],
        }
        if self.return_hint is not None:
            result["returns"] = self.return_hint
        return result


@dataclass(frozen=True, slots=True)
class ModuleNode:
    """A file (functions, no children) or a directory (children) in the namespace."""

    name: str
    path: str
    functions: tuple[FunctionDescriptor, ...] = ()
    children: tuple[ModuleNode, ...] = ()

    def iter_functions(self) -> list[FunctionDescriptor]:
        """All functions at or below this node, depth-first."""
        found = list(self.functions)
        for child in self.children:
            found.extend(child.iter_functions())
        return found

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "functions": [f.to_dict() for f in self.functions],
            "children": [c.to_dict() for c in self.children],
        }


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    name: str
    type: str
    optional: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type, "optional": self.optional}


@dataclass(frozen=True, slots=True)
class TableDescriptor:
    name: str
    fields: tuple[FieldDescriptor, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "fields": [f.to_dict() for f in self.fields]}


def count_functions(modules: tuple[ModuleNode, ...] | list[ModuleNode]) -> int:
    """Total functions across a module forest."""
    return sum(len(m.iter_functions()) for m in modules)


@dataclass(frozen=True, slots=True)
class SchemaSnapshot:
    """One complete, immutable schema document."""

    modules: tuple[ModuleNode, ...]
    tables: tuple[TableDescriptor, ...]
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    generation: int = 0

    @property
    def function_count(self) -> int:
        return count_functions(self.modules)

    def to_dict(self) -> dict[str, Any]:
        return {
            "modules": [m.to_dict() for m in self.modules],
            "tables": [t.to_dict() for t in self.tables],
            "lastUpdated": self.last_updated.isoformat(),
        }
