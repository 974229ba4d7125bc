"""Test body canonicalization.

Normalization works on the raw text span of a callback body:
- comments removed
- operator runs padded, whitespace collapsed, ends trimmed
- one trailing `;`/`,` dropped
- local identifiers folded to `_var<N>` placeholders (unless preserved)

String and template literals are carried through verbatim: comment markers,
whitespace and words inside them are content, not code.

Only textual differences collapse; `a+b` and `b+a` stay different.
"""

from __future__ import annotations

import re


# Leftmost match wins, so a `//` inside a literal is consumed by the literal branch.
_RE_LEXEME = re.compile(
    r"""(?P<literal>"(?:[^"\\\n]|\\[\s\S])*"|'(?:[^'\\\n]|\\[\s\S])*'|`(?:[^`\\]|\\[\s\S])*`)"""
    r"""|(?P<comment>/\*[\s\S]*?\*/|//[^\n]*)"""
)
_RE_MASK = re.compile("\x00(\\d+)\x00")
_RE_OPERATOR_RUN = re.compile(r"\s*([+\-*/=<>!&|]+)\s*")
_RE_WHITESPACE = re.compile(r"\s+")
_RE_TRAILING_TERMINATOR = re.compile(r"[;,]\s*$")
_RE_IDENTIFIER = re.compile(r"\b([a-zA-Z_$][a-zA-Z0-9_$]*)\b")


# Names kept verbatim so structural calls stay comparable across bodies.
PRESERVED_NAMES: frozenset[str] = frozenset(
    {
        # test vocabulary
        "test", "it", "describe", "expect", "assert",
        "beforeEach", "afterEach", "beforeAll", "afterAll",
        "skip", "only", "todo", "each", "vi", "jest",
        # matchers
        "toBe", "toEqual", "toStrictEqual", "toBeTruthy", "toBeFalsy",
        "toBeNull", "toBeUndefined", "toBeDefined", "toBeNaN",
        "toContain", "toContainEqual", "toMatch", "toMatchObject",
        "toHaveLength", "toHaveProperty", "toThrow", "toThrowError",
        "toBeGreaterThan", "toBeGreaterThanOrEqual", "toBeLessThan",
        "toBeLessThanOrEqual", "toBeCloseTo", "toBeInstanceOf",
        "toHaveBeenCalled", "toHaveBeenCalledTimes", "toHaveBeenCalledWith",
        "toMatchSnapshot", "toMatchInlineSnapshot", "resolves", "rejects", "not",
        # common globals
        "console", "window", "document", "process", "require", "module",
        "exports", "globalThis", "Math", "JSON", "Object", "Array", "String",
        "Number", "Boolean", "Promise", "Error", "Date", "Symbol", "Map", "Set",
        # keywords and literals
        "true", "false", "null", "undefined", "NaN", "Infinity",
        "const", "let", "var", "function", "return", "if", "else", "for",
        "while", "do", "switch", "case", "default", "break", "continue",
        "new", "delete", "typeof", "instanceof", "in", "of", "void", "this",
        "super", "class", "extends", "async", "await", "yield", "try",
        "catch", "finally", "throw", "import", "export", "from", "as",
    }
)


def _mask_literals(text: str, *, drop_comments: bool) -> tuple[str, list[str]]:
    """Swap each literal for a `\\x00<n>\\x00` marker; optionally drop comments."""

    literals: list[str] = []

    def _sub(m: re.Match[str]) -> str:
        literal = m.group("literal")
        if literal is None:
            return "" if drop_comments else m.group(0)
        literals.append(literal)
        return f"\x00{len(literals) - 1}\x00"

    return _RE_LEXEME.sub(_sub, text), literals


def _unmask_literals(text: str, literals: list[str]) -> str:
    return _RE_MASK.sub(lambda m: literals[int(m.group(1))], text)


def strip_comments(body: str) -> str:
    return _RE_LEXEME.sub(lambda m: m.group("literal") or "", body)


def collapse_whitespace(text: str) -> str:
    """Pad operator runs with single spaces and squeeze all whitespace runs."""

    padded = _RE_OPERATOR_RUN.sub(r" \1 ", text)
    return _RE_WHITESPACE.sub(" ", padded)


def _fold(code: str) -> str:
    mapping: dict[str, str] = {}

    def _placeholder(m: re.Match[str]) -> str:
        name = m.group(1)
        if name in PRESERVED_NAMES:
            return name
        if name not in mapping:
            mapping[name] = f"_var{len(mapping)}"
        return mapping[name]

    return _RE_IDENTIFIER.sub(_placeholder, code)


def fold_identifiers(code: str) -> str:
    """Replace non-preserved identifiers outside literals with placeholders in first-seen order."""

    masked, literals = _mask_literals(code, drop_comments=False)
    return _unmask_literals(_fold(masked), literals)


def normalize(body: str, *, preserve_identifiers: bool = False) -> str:
    """Return the canonical form of a test body used for fingerprinting."""

    masked, literals = _mask_literals(body, drop_comments=True)
    text = collapse_whitespace(masked).strip()
    text = _RE_TRAILING_TERMINATOR.sub("", text).rstrip()
    if not preserve_identifiers:
        text = _fold(text)
    return _unmask_literals(text, literals)
