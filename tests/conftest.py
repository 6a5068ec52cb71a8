"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from pathlib import Path

import pytest

_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project with a products module and a schema file."""
    convex = tmp_path / "convex"
    (convex / "products").mkdir(parents=True)
    (convex / "products" / "products.ts").write_text(
        'import { query } from "../_generated/server";\n'
        "\n"
        "export const list = query({\n"
        "  handler: async (ctx) => ctx.db.query('products').collect(),\n"
        "});\n"
    )
    (convex / "schema.ts").write_text(
        'import { defineSchema, defineTable } from "convex/server";\n'
        'import { v } from "convex/values";\n'
        "\n"
        "export default defineSchema({\n"
        "  products: defineTable({ name: v.string(), price: v.number() }),\n"
        "});\n"
    )
    return tmp_path
