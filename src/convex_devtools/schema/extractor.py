"""Pattern-based extraction of function and table shapes from source text.

No parsing front end is involved: each matcher recognizes one documented
idiom and yields nothing when the idiom is absent. Nothing here performs I/O
or raises on unexpected input; unbalanced braces or comments degrade to
missing metadata.

Recognized idioms:

    /**
     * @param status - one of 'draft', 'published'
     */
    export const list = query({
      args: { status: v.optional(v.string()), paginationOpts: paginationOptsValidator },
      returns: v.array(...),
      handler: ...
    });

    export default defineSchema({
      products: defineTable({ name: v.string(), price: v.number() }),
    });
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from convex_devtools.schema.models import (
    ArgumentDescriptor,
    FieldDescriptor,
    FunctionDescriptor,
    FunctionKind,
    TableDescriptor,
)

_RE_EXPORT = re.compile(
    r"export\s+const\s+(\w+)\s*=\s*"
    r"(query|mutation|action|internalQuery|internalMutation|internalAction)\s*\(\s*\{"
)
_RE_DOC_COMMENT = re.compile(r"/\*\*([\s\S]*?)\*/")
_RE_PARAM = re.compile(r"@param\s+(?:\{[^}]*\}\s*)?(\w+)\s*-?\s*([^@]*)")
_RE_QUOTED = re.compile(r"'([^']+)'")
_RE_ARGS_OPEN = re.compile(r"\bargs\s*:\s*\{")
_RE_RETURNS = re.compile(r"\breturns\s*:\s*v\.(\w+)")
_RE_VALIDATOR_ENTRY = re.compile(r"(\w+)\s*:\s*(v\.optional\(\s*)?v\.(\w+)")
_RE_TABLE = re.compile(r"(\w+)\s*:\s*defineTable\s*\(\s*")

# How far back from a declaration a detached doc comment is still attributed to it
DOC_LOOKBACK_CHARS = 500

PAGINATION_MARKER = "paginationOptsValidator"
PAGINATION_ARG_NAME = "paginationOpts"
PAGINATION_ARG_TYPE = "PaginationOptions"
PAGINATION_ARG_DESCRIPTION = "Pagination options with cursor and numItems"

_OPENERS = "({["
_CLOSERS = ")}]"
_QUOTES = "'\"`"


@dataclass(frozen=True, slots=True)
class ParamDoc:
    """``@param`` metadata mined from a doc comment."""

    description: str | None
    enum_values: tuple[str, ...] | None


# =============================================================================
# Structural helpers
# =============================================================================


def _iter_code(text: str, start: int = 0) -> Iterator[tuple[int, str]]:
    """Yield (index, char) for characters outside string literals and comments."""
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _QUOTES:
            i += 1
            while i < n and text[i] != ch:
                i += 2 if text[i] == "\\" else 1
            i += 1
            continue
        if text.startswith("//", i):
            newline = text.find("\n", i)
            i = n if newline == -1 else newline
            continue
        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = n if close == -1 else close + 2
            continue
        yield i, ch
        i += 1


def _balanced_block(text: str, open_index: int) -> str:
    """Return the text between the bracket at ``open_index`` and its partner.

    Brackets inside strings and comments are ignored. An unbalanced block
    yields everything after the opening bracket.
    """
    depth = 0
    for i, ch in _iter_code(text, open_index):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
            if depth == 0:
                return text[open_index + 1 : i]
    return text[open_index + 1 :]


def _depths(text: str) -> list[int]:
    """Bracket nesting depth in effect at each character of ``text``.

    Characters inside strings and comments get -1 so no match starts there.
    """
    depths = [-1] * len(text)
    depth = 0
    for i, ch in _iter_code(text):
        if ch in _CLOSERS:
            depth -= 1
        depths[i] = depth
        if ch in _OPENERS:
            depth += 1
    return depths


def _top_level_matches(pattern: re.Pattern[str], text: str) -> Iterator[re.Match[str]]:
    """Matches of ``pattern`` that start outside any nested bracket."""
    depths = _depths(text)
    for match in pattern.finditer(text):
        if depths[match.start()] == 0:
            yield match


def _clean_doc_text(text: str) -> str:
    """Drop comment-continuation asterisks and collapse whitespace."""
    lines = (line.strip().lstrip("*").strip() for line in text.splitlines())
    return " ".join(line for line in lines if line)


# =============================================================================
# Doc comments
# =============================================================================


def find_doc_comment(contents: str, position: int) -> str:
    """Find the doc comment attributed to the declaration at ``position``.

    An immediately preceding ``/** ... */`` (only whitespace in between) wins;
    otherwise the nearest complete block inside the lookback window is used.
    Returns the comment body, or an empty string when there is none.
    """
    before = contents[:position]

    end = before.rfind("*/")
    if end != -1 and not before[end + 2 :].strip():
        start = before.rfind("/**", 0, end)
        if start != -1 and "*/" not in before[start + 3 : end]:
            return before[start + 3 : end]

    window = before[-DOC_LOOKBACK_CHARS:]
    matches = list(_RE_DOC_COMMENT.finditer(window))
    return matches[-1].group(1) if matches else ""


def parse_param_docs(comment: str) -> dict[str, ParamDoc]:
    """Map parameter names to their ``@param`` description and enum hint.

    Single-quoted substrings of a description form the parameter's enum
    domain, in order of appearance.
    """
    params: dict[str, ParamDoc] = {}
    for match in _RE_PARAM.finditer(comment):
        name, raw = match.groups()
        description = _clean_doc_text(raw)
        enum_values = tuple(_RE_QUOTED.findall(description))
        params[name] = ParamDoc(
            description=description or None,
            enum_values=enum_values or None,
        )
    return params


# =============================================================================
# Functions
# =============================================================================


def _validator_entries(block: str) -> Iterator[tuple[str, str, bool]]:
    """Yield (name, validator, optional) for top-level ``name: v.x(...)`` entries."""
    for match in _top_level_matches(_RE_VALIDATOR_ENTRY, block):
        name, optional_wrapper, validator = match.groups()
        yield name, validator, optional_wrapper is not None


def extract_arguments(
    config_block: str,
    window: str,
    param_docs: dict[str, ParamDoc] | None = None,
) -> list[ArgumentDescriptor]:
    """Extract declared arguments from a function's config object.

    ``window`` is the full text attributed to the function; it is searched
    for the pagination marker, which adds a synthetic required argument
    after the declared ones. The synthetic entry replaces any declared
    ``paginationOpts`` entry, whatever wrapper the source puts around it.
    """
    param_docs = param_docs or {}
    args: list[ArgumentDescriptor] = []

    args_open = next(_top_level_matches(_RE_ARGS_OPEN, config_block), None)
    if args_open is not None:
        args_block = _balanced_block(config_block, args_open.end() - 1)
        for name, validator, optional in _validator_entries(args_block):
            doc = param_docs.get(name)
            args.append(
                ArgumentDescriptor(
                    name=name,
                    primitive_type=validator,
                    optional=optional,
                    description=doc.description if doc else None,
                    enum_values=doc.enum_values if doc else None,
                )
            )

    if PAGINATION_MARKER in window:
        args = [a for a in args if a.name != PAGINATION_ARG_NAME]
        args.append(
            ArgumentDescriptor(
                name=PAGINATION_ARG_NAME,
                primitive_type=PAGINATION_ARG_TYPE,
                optional=False,
                description=PAGINATION_ARG_DESCRIPTION,
            )
        )

    return args


def _kind_from_keyword(keyword: str) -> FunctionKind:
    """``internalMutation`` -> MUTATION; the internal qualifier is not kept."""
    return FunctionKind(keyword.removeprefix("internal").lower())


def extract_functions(contents: str, module_path: str) -> list[FunctionDescriptor]:
    """Extract exported function declarations from one source file.

    Each function owns the text from its declaration up to the next exported
    declaration, so metadata never leaks between neighbours.
    """
    matches = list(_RE_EXPORT.finditer(contents))
    functions: list[FunctionDescriptor] = []

    for i, match in enumerate(matches):
        name, keyword = match.groups()
        window_end = matches[i + 1].start() if i + 1 < len(matches) else len(contents)
        window = contents[match.start() : window_end]
        # The match ends on the config object's opening brace
        config_block = _balanced_block(window, match.end() - match.start() - 1)

        param_docs = parse_param_docs(find_doc_comment(contents, match.start()))
        returns = next(_top_level_matches(_RE_RETURNS, config_block), None)

        functions.append(
            FunctionDescriptor(
                name=name,
                full_path=f"{module_path}:{name}",
                kind=_kind_from_keyword(keyword),
                arguments=tuple(extract_arguments(config_block, window, param_docs)),
                return_hint=returns.group(1) if returns else None,
            )
        )

    return functions


# =============================================================================
# Tables
# =============================================================================


def extract_tables(contents: str) -> list[TableDescriptor]:
    """Extract ``name: defineTable(...)`` declarations from a schema file.

    Fields come from the top-level keys of the object literal handed to
    ``defineTable``; any other argument shape yields a table with no fields.
    """
    tables: list[TableDescriptor] = []
    for match in _RE_TABLE.finditer(contents):
        fields: list[FieldDescriptor] = []
        if contents[match.end() : match.end() + 1] == "{":
            block = _balanced_block(contents, match.end())
            fields = [
                FieldDescriptor(name=name, type=validator, optional=optional)
                for name, validator, optional in _validator_entries(block)
            ]
        tables.append(TableDescriptor(name=match.group(1), fields=tuple(fields)))
    return tables
