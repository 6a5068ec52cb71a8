"""Tests for schema/walker.py.

Covers:
- Module tree shape and path composition
- Exclusion of hidden, generated and test entries
- Pruning of directories without functions
- Per-entry failure isolation and root failure
- Idempotence over an unchanged tree
"""

from __future__ import annotations

from pathlib import Path

import pytest

from convex_devtools.core.errors import ErrorCode, SchemaError
from convex_devtools.schema.models import ModuleNode
from convex_devtools.schema.walker import parse_file, walk

QUERY_SOURCE = "export const {name} = query({{ handler: async () => [] }});\n"


def _write(path: Path, *names: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(QUERY_SOURCE.format(name=n) for n in names))


def _all_paths(nodes: list[ModuleNode] | tuple[ModuleNode, ...]) -> set[str]:
    paths: set[str] = set()
    for node in nodes:
        paths.add(node.path)
        paths |= _all_paths(node.children)
    return paths


def _all_function_paths(nodes: list[ModuleNode]) -> set[str]:
    return {f.full_path for node in nodes for f in node.iter_functions()}


class TestWalkStructure:
    """Tree shape and naming."""

    def test_root_level_file(self, tmp_path: Path) -> None:
        _write(tmp_path / "messages.ts", "list")

        [node] = walk(tmp_path)

        assert node.name == "messages"
        assert node.path == "messages"
        assert node.children == ()
        assert [f.full_path for f in node.functions] == ["messages:list"]

    def test_nested_directories(self, tmp_path: Path) -> None:
        _write(tmp_path / "shop" / "orders" / "history.ts", "recent")

        [shop] = walk(tmp_path)

        assert shop.path == "shop"
        assert shop.functions == ()
        [orders] = shop.children
        assert orders.path == "shop/orders"
        [history] = orders.children
        assert history.path == "shop/orders/history"
        assert history.functions[0].full_path == "shop/orders/history:recent"

    def test_child_path_extends_parent_path(self, tmp_path: Path) -> None:
        _write(tmp_path / "a" / "b" / "c.ts", "x")
        _write(tmp_path / "a" / "d.ts", "y")

        def check(node: ModuleNode) -> None:
            for child in node.children:
                assert child.path == f"{node.path}/{child.name}"
                check(child)

        for root in walk(tmp_path):
            check(root)

    def test_entries_sorted_by_name(self, tmp_path: Path) -> None:
        for name in ("zeta", "alpha", "mid"):
            _write(tmp_path / f"{name}.ts", "f")
        assert [n.name for n in walk(tmp_path)] == ["alpha", "mid", "zeta"]

    def test_js_files_included_and_declarations_skipped(self, tmp_path: Path) -> None:
        _write(tmp_path / "legacy.js", "old")
        _write(tmp_path / "types.d.ts", "ignored")
        assert _all_paths(walk(tmp_path)) == {"legacy"}


class TestWalkExclusions:
    """Hidden, generated and test entries never appear."""

    @pytest.mark.parametrize(
        "relative",
        [
            "foo.test.ts",
            "foo.spec.ts",
            "test.setup.ts",
            "tests/helpers.ts",
            "sub/tests/helpers.ts",
            "__tests__/a.ts",
            "_generated/api.ts",
            "_internal.ts",
            ".hidden/x.ts",
            ".eslintrc.ts",
            "node_modules/pkg/index.ts",
        ],
    )
    def test_excluded_entry(self, tmp_path: Path, relative: str) -> None:
        _write(tmp_path / "kept.ts", "ok")
        _write(tmp_path / relative, "excluded")

        nodes = walk(tmp_path)

        assert _all_function_paths(nodes) == {"kept:ok"}

    def test_symlinked_directory_not_followed(self, tmp_path: Path) -> None:
        """A link back to the root does not repeat the tree."""
        _write(tmp_path / "products" / "products.ts", "list")
        (tmp_path / "loop").symlink_to(tmp_path, target_is_directory=True)

        assert _all_function_paths(walk(tmp_path)) == {"products/products:list"}

    def test_symlinked_file_not_followed(self, tmp_path: Path) -> None:
        _write(tmp_path / "real.ts", "one")
        (tmp_path / "alias.ts").symlink_to(tmp_path / "real.ts")

        assert _all_function_paths(walk(tmp_path)) == {"real:one"}

    def test_directory_without_functions_pruned(self, tmp_path: Path) -> None:
        (tmp_path / "empty").mkdir()
        (tmp_path / "lib").mkdir()
        (tmp_path / "lib" / "helpers.ts").write_text("export function add(a, b) { return a + b; }\n")
        assert walk(tmp_path) == []

    def test_non_source_files_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "README.md").write_text("export const x = query({})")
        (tmp_path / "data.json").write_text("{}")
        assert walk(tmp_path) == []


class TestWalkFailures:
    """Failure isolation."""

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(SchemaError) as exc_info:
            walk(tmp_path / "missing")
        assert exc_info.value.code is ErrorCode.SCHEMA_ROOT_UNREADABLE

    def test_undecodable_file_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "binary.ts").write_bytes(b"\xff\xfe\x00export const x = query({})")
        _write(tmp_path / "good.ts", "fine")

        assert _all_function_paths(walk(tmp_path)) == {"good:fine"}

    def test_parse_file_missing_returns_empty(self, tmp_path: Path) -> None:
        assert parse_file(tmp_path / "nope.ts", "nope") == []


class TestWalkIdempotence:
    """Repeated walks of an unchanged tree agree."""

    def test_two_walks_are_equal(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.ts", "one", "two")
        _write(tmp_path / "dir" / "b.ts", "three")
        _write(tmp_path / "dir" / "deeper" / "c.ts", "four")

        assert walk(tmp_path) == walk(tmp_path)
