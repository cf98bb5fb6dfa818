"""JSDoc block parsing."""

from __future__ import annotations

import re

from ..model import Doc, DocTag

_TAG_RE = re.compile(r"^@([A-Za-z][\w-]*)\s*(.*)$")
_TYPE_RE = re.compile(r"^\{[^}]*\}\s*")


def is_jsdoc(text: str) -> bool:
    """True for `/** ... */` blocks, false for `/**/` and plain comments."""
    return text.startswith("/**") and not text.startswith("/**/") and text.endswith("*/")


def _strip_line(line: str) -> str:
    line = line.strip()
    if line.startswith("*"):
        line = line[1:]
        if line.startswith(" "):
            line = line[1:]
    return line.rstrip()


def parse_jsdoc(text: str) -> Doc:
    """Split a JSDoc comment into description and tags.

    Continuation lines belong to the preceding tag (or the description).
    Leading and trailing blank lines of each part are dropped.
    """
    body = text.strip()
    if body.startswith("/**"):
        body = body[3:]
    if body.endswith("*/"):
        body = body[:-2]
    description: list[str] = []
    tags: list[tuple[str, list[str]]] = []
    for raw in body.split("\n"):
        line = _strip_line(raw)
        m = _TAG_RE.match(line)
        if m:
            tags.append((m.group(1), [m.group(2)]))
        elif tags:
            tags[-1][1].append(line)
        else:
            description.append(line)
    doc = Doc(description=_join(description))
    for name, lines in tags:
        content = _join(lines)
        if name in ("param", "arg", "argument", "property", "prop", "returns", "return", "throws"):
            content = _TYPE_RE.sub("", content)
        doc.tags.append(DocTag(name=name, text=content))
    return doc


def _join(lines: list[str]) -> str:
    start = 0
    end = len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(lines[start:end])
