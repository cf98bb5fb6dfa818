"""Exception types raised by tykon."""

from __future__ import annotations


class TykonError(Exception):
    """Base for every error tykon raises on purpose."""


class ConfigError(TykonError):
    """Invalid configuration or a broken caller contract."""


class AmbientError(ConfigError):
    """A non-ambient declaration reached an emitter that only accepts ambient ones."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind: str = kind
        self.name: str = name
        super().__init__("only ambient " + kind + " declarations are supported: " + repr(name))


class ParseError(TykonError):
    """Syntax error with location info (1-indexed line, 0-indexed column)."""

    def __init__(self, msg: str, lineno: int, col: int):
        self.msg: str = msg
        self.lineno: int = lineno
        self.col: int = col
        super().__init__(msg)

    def __str__(self) -> str:
        return str(self.lineno) + ":" + str(self.col) + ": " + self.msg
