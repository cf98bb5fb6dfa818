"""String constants seen while emitting one container."""

from __future__ import annotations


class ConstantTable:
    """Literal values for computed member names.

    Two kinds of keys share the table:
    - quoted literal text as written in source (`"foo"`, `'foo'`) -> foo
    - const variable names typed with a string literal (`FOO`) -> foo

    A computed name `[FOO]` resolves through either kind. The table is
    cleared at every container boundary so values never leak between
    unrelated modules.
    """

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def record(self, key: str, value: str) -> None:
        self._values[key] = value

    def record_literal(self, value: str, quote: str = '"') -> None:
        """Record a string literal type under its quoted source form."""
        self._values[quote + value + quote] = value

    def resolve(self, key: str) -> str | None:
        key = key.strip()
        if key in self._values:
            return self._values[key]
        # Member access on a const namespace: Symbols.iterator
        if "." in key:
            return self._values.get(key.rsplit(".", 1)[-1])
        return None

    def clear(self) -> None:
        self._values.clear()

    def __contains__(self, key: str) -> bool:
        return self.resolve(key) is not None

    def __len__(self) -> int:
        return len(self._values)
