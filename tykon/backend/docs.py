"""JSDoc -> KDoc conversion."""

from __future__ import annotations

from ..model import Doc

# JSDoc tag -> KDoc tag
TAG_RENAMES: dict[str, str] = {
    "returns": "return",
    "arg": "param",
    "argument": "param",
    "exception": "throws",
    "prop": "property",
    "augments": "see",
}

NO_DESCRIPTION = "No description provided."


def _safe(text: str) -> str:
    return text.replace("*/", "*&#47;").replace("/*", "&#47;*")


def doc_lines(doc: Doc) -> list[str]:
    """One KDoc block, without indentation."""
    lines = ["/**"]
    if doc.description:
        for part in doc.description.split("\n"):
            lines.append(" * " + _safe(part) if part else " *")
    for tag in doc.tags:
        name = TAG_RENAMES.get(tag.name, tag.name)
        text = tag.text.strip() or NO_DESCRIPTION
        first, *rest = text.split("\n")
        lines.append(" * @" + name + " " + _safe(first))
        for cont in rest:
            lines.append(" * " + _safe(cont) if cont else " *")
    lines.append(" */")
    return lines


def docs_lines(docs: list[Doc]) -> list[str]:
    """All blocks of a declaration as lines, blank line between blocks."""
    result: list[str] = []
    for i, doc in enumerate(docs):
        if i > 0:
            result.append("")
        result.extend(doc_lines(doc))
    return result


def render_doc(docs: list[Doc], line_break: str = "\n", indent: str = "") -> str:
    """Every block attached to a declaration, blank line between blocks.

    Returns "" when there is nothing to document; otherwise the result ends
    with line_break so callers can prepend it to the declaration line.
    """
    if not docs:
        return ""
    blocks = [line_break.join(indent + line for line in doc_lines(doc)) for doc in docs]
    return (line_break + line_break).join(blocks) + line_break
