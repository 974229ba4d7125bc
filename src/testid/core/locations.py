"""Location strings: `<relative-file-path>::<container>::...::<test-name>`.

A location says where a test sits right now. It is unstable across renames
and moves, so it is only a matching signal and a debugging aid.
"""

from __future__ import annotations

import re
from pathlib import PurePath


SEPARATOR = "::"

_RE_WHITESPACE = re.compile(r"\s+")
_RE_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_RE_ARROW_TAIL = re.compile(r">\s*([^>]+)\s*$")


def _segment(name: str) -> str:
    return _RE_WHITESPACE.sub(" ", name).strip()


def build_location(relative_path: str, *names: str) -> str:
    """Join a file path and declared names into a location string."""

    return SEPARATOR.join([relative_path, *(_segment(n) for n in names)])


def relative_location_path(file_path: str | PurePath, root: str | PurePath) -> str:
    """Return `file_path` as a POSIX path relative to `root` when it lives under it."""

    p = PurePath(file_path)
    try:
        return p.relative_to(root).as_posix()
    except ValueError:
        return p.as_posix()


def name_from_location(location: str) -> str | None:
    """Recover a readable test name from the last segment of a location.

    `math.test.js::should_work_correctly` -> `should work correctly`
    `a.test.js::parsesInput` -> `parses Input`
    `a.test.js::parses JSON` -> `parses JSON`
    `a.test.js > suite > does things` -> `does things`
    """

    parts = location.split(SEPARATOR)
    if len(parts) > 1:
        tail = parts[-1].replace("_", " ")
        tail = _RE_CAMEL_BOUNDARY.sub(" ", tail)
        return _RE_WHITESPACE.sub(" ", tail).strip()

    m = _RE_ARROW_TAIL.search(location)
    return m.group(1).strip() if m else None
