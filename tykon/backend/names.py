"""Name resolution for emitted Kotlin identifiers."""

from __future__ import annotations

import logging
import re

from ..middleend.constants import ConstantTable
from ..model import Declaration

logger = logging.getLogger(__name__)

# Kotlin hard keywords: never valid as bare identifiers
KOTLIN_RESERVED = frozenset(
    {
        "as",
        "break",
        "class",
        "continue",
        "do",
        "else",
        "false",
        "for",
        "fun",
        "if",
        "in",
        "interface",
        "is",
        "null",
        "object",
        "package",
        "return",
        "super",
        "this",
        "throw",
        "true",
        "try",
        "typealias",
        "typeof",
        "val",
        "var",
        "when",
        "while",
    }
)

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Characters Kotlin refuses even between backticks
_BACKTICK_UNSAFE = re.compile(r"[`\r\n.;\[\]/<>:\\]")


def is_private_name(name: str) -> bool:
    """Conventionally private: leading `__`, `$` or `#`."""
    return name.startswith("__") or name.startswith("$") or name.startswith("#")


def has_kotlin_spelling(name: str) -> bool:
    """False when no backtick form can carry name (`.`, `/`, `:` and the like)."""
    return _BACKTICK_UNSAFE.search(name) is None


def escape_identifier(name: str) -> str:
    """Backtick-quote names that are not plain Kotlin identifiers.

    name must have a Kotlin spelling; see has_kotlin_spelling.
    """
    if _IDENT_RE.match(name) and name not in KOTLIN_RESERVED:
        return name
    return "`" + name + "`"


def _is_quoted(name: str) -> bool:
    return len(name) >= 2 and name[0] == name[-1] and name[0] in "'\""


class NameResolver:
    """Turn raw declaration and member names into Kotlin identifiers.

    Total and deterministic for a given counter state. The anonymous counter
    runs for the whole unit; computed names read the current constant table.
    """

    def __init__(self, constants: ConstantTable) -> None:
        self.constants = constants
        self.counter: int = 0
        self._cache: dict[int, tuple[Declaration, str]] = {}

    def resolve(self, raw: str) -> str:
        name = raw.strip()
        if not name:
            self.counter += 1
            return "Unnamed" + str(self.counter)
        if name.startswith("{"):
            self.counter += 1
            return "object" + str(self.counter)
        if name.startswith("[") and name.endswith("]"):
            return self._computed(name[1:-1].strip())
        if _is_quoted(name):
            return self._literal(name[1:-1])
        if "." in name:
            name = name.rsplit(".", 1)[-1]
        if name.startswith("#"):
            return name
        return escape_identifier(name)

    def _computed(self, expr: str) -> str:
        if _is_quoted(expr):
            return self._literal(expr[1:-1])
        value = self.constants.resolve(expr)
        if value is not None:
            return self._literal(value)
        # Unresolvable: keep it, but mark non-public so every stage skips it
        return "__" + expr

    def _literal(self, value: str) -> str:
        """Name written as a string literal in source."""
        if not has_kotlin_spelling(value):
            # A renamed binding would read a different JS property
            logger.debug("name %r has no Kotlin spelling, skipped", value)
            return "__" + value
        return escape_identifier(value)

    def resolve_declaration(self, decl: Declaration) -> str:
        """Resolved name of a declaration, stable across repeated calls."""
        cached = self._cache.get(id(decl))
        if cached is not None and cached[0] is decl:
            return cached[1]
        resolved = self.resolve(decl.name)
        self._cache[id(decl)] = (decl, resolved)
        return resolved

    def reset(self) -> None:
        self.counter = 0
        self._cache.clear()
