"""Test declaration extraction from JavaScript sources.

Finds call sites shaped like

    test("name", () => { ... })
    it("name", function () { ... })
    describe("name", () => { ... })
    test.skip / test.only / test.todo (also on `it` and `describe`)

where the first argument is a plain string literal and the second one is a
function. Anything else is skipped. Records come out in depth-first
pre-order, each one carrying the names of the declarations enclosing it.
"""

from __future__ import annotations

import re

import structlog
from tree_sitter_language_pack import get_parser

from testid.core.records import TestOccurrence
from testid.plugins.javascript.ts_gate import gate_tree


logger = structlog.get_logger(__name__)

TEST_KEYWORDS: frozenset[str] = frozenset({"test", "it", "describe"})
TEST_QUALIFIERS: frozenset[str] = frozenset({"skip", "only", "todo"})
FUNCTION_NODE_TYPES: frozenset[str] = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function"}
)

_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0",
}
_RE_UNICODE_ESCAPE = re.compile(r"^\\u\{?([0-9a-fA-F]+)\}?$|^\\x([0-9a-fA-F]{2})$")


def _decode_escape(seq: str) -> str:
    m = _RE_UNICODE_ESCAPE.match(seq)
    if m:
        code = int(m.group(1) or m.group(2), 16)
        return chr(code) if code <= 0x10FFFF else seq
    ch = seq[1:]
    if ch.startswith(("\n", "\r")):
        return ""  # line continuation
    return _SIMPLE_ESCAPES.get(ch, ch)


def _node_text(node, data: bytes) -> str:
    return data[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _string_value(node, data: bytes) -> str:
    parts = []
    for child in node.named_children:
        if child.type == "escape_sequence":
            parts.append(_decode_escape(_node_text(child, data)))
        else:
            parts.append(_node_text(child, data))
    return "".join(parts)


def _is_test_callee(callee, data: bytes) -> bool:
    if callee is None:
        return False
    if callee.type == "identifier":
        return _node_text(callee, data) in TEST_KEYWORDS
    if callee.type == "member_expression":
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        return (
            obj is not None
            and prop is not None
            and obj.type == "identifier"
            and _node_text(obj, data) in TEST_KEYWORDS
            and _node_text(prop, data) in TEST_QUALIFIERS
        )
    return False


def _test_declaration(node, data: bytes, containers: tuple[str, ...]) -> TestOccurrence | None:
    if node.type != "call_expression" or not _is_test_callee(node.child_by_field_name("function"), data):
        return None

    args_node = node.child_by_field_name("arguments")
    if args_node is None:
        return None
    args = [a for a in args_node.named_children if a.type != "comment"]
    if len(args) < 2 or args[0].type != "string" or args[1].type not in FUNCTION_NODE_TYPES:
        return None

    body = args[1].child_by_field_name("body")
    if body is None:
        return None

    return TestOccurrence(
        name=_string_value(args[0], data),
        body=_node_text(body, data),
        source=_node_text(node, data),
        containers=containers,
    )


def extract_tests(source_text: str, *, max_error_ratio: float = 0.0) -> list[TestOccurrence]:
    """Return the test declarations found in `source_text`.

    Unparseable sources (by the parse gate) yield an empty list and a warning.
    """

    data = source_text.encode("utf-8", errors="replace")
    try:
        tree = get_parser("javascript").parse(data)
    except (ValueError, RuntimeError, LookupError) as e:
        logger.warning("extract.parse_failed", error=str(e))
        return []

    ok, metrics = gate_tree(tree, max_error_ratio=max_error_ratio)
    if not ok:
        logger.warning(
            "extract.parse_rejected",
            error_ratio=round(metrics.error_ratio, 4),
            error_nodes=metrics.error_nodes,
            missing_nodes=metrics.missing_nodes,
        )
        return []

    out: list[TestOccurrence] = []
    stack = [(tree.root_node, ())]
    while stack:
        node, containers = stack.pop()
        occurrence = _test_declaration(node, data, containers)
        if occurrence is not None:
            out.append(occurrence)
            containers = containers + (occurrence.name,)
        # Reversed push keeps pre-order.
        stack.extend((child, containers) for child in reversed(node.children))
    return out
