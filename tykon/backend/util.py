"""Shared utilities for the Kotlin emitters."""

from __future__ import annotations

import re

# Opaque fallback markers
DYNAMIC = "dynamic"
ANY = "Any"
UNIT = "Unit"
NOTHING = "Nothing"

# Default for optional parameters of external declarations
DEFINED_EXTERNALLY = "definedExternally"

_WS_RE = re.compile(r"\s+")


class Emitter:
    """Line buffer with indentation. Subclassed by the declaration emitters."""

    def __init__(self, indent_str: str = "    ") -> None:
        self.indent: int = 0
        self.lines: list[str] = []
        self._indent_str = indent_str

    def line(self, text: str = "") -> None:
        if text:
            self.lines.append(self._indent_str * self.indent + text)
        else:
            self.lines.append("")

    def take(self) -> list[str]:
        """Return buffered lines and start a fresh buffer."""
        lines = self.lines
        self.lines = []
        self.indent = 0
        return lines


def comment_safe(text: str) -> str:
    """Collapse whitespace and neutralize comment delimiters for `/* ... */`."""
    text = _WS_RE.sub(" ", text).strip()
    return text.replace("*/", "*\\/").replace("/*", "/\\*")


def with_comment(marker: str, source: str, strict: bool = False) -> str:
    """Opaque marker annotated with the original type text."""
    if strict or not source:
        return marker
    return marker + " /* " + comment_safe(source) + " */"


def split_comment(text: str) -> tuple[str, str]:
    """Split `Type /* note */` into ("Type", " /* note */")."""
    if text.endswith("*/"):
        i = text.rfind(" /* ")
        if i >= 0:
            return text[:i], text[i:]
    return text, ""


def is_function_type(text: str) -> bool:
    """True for a top-level Kotlin function type `(A) -> B`."""
    if not text.startswith("("):
        return False
    depth = 0
    for i, c in enumerate(text):
        if c in "(<":
            depth += 1
        elif c == ">" and i > 0 and text[i - 1] == "-":
            continue
        elif c in ")>":
            depth -= 1
            if depth == 0:
                return text[i + 1 :].startswith(" -> ")
    return False


def nullable(text: str) -> str:
    """Nullable form of a mapped type; `dynamic` is already nullable."""
    base, comment = split_comment(text)
    if base == DYNAMIC or base.endswith("?"):
        return text
    if is_function_type(base):
        return "(" + base + ")?" + comment
    return base + "?" + comment


def is_opaque(text: str) -> bool:
    """True when a mapped type is the opaque marker, with or without comment."""
    base, _ = split_comment(text)
    return base in (DYNAMIC, ANY)


def strip_comments(text: str) -> str:
    """Remove every `/* ... */` from rendered text."""
    return re.sub(r"\s*/\*.*?\*/", "", text)
