"""Per-unit emission state shared by every emitter."""

from __future__ import annotations

from .backend.names import NameResolver
from .backend.types import TypeMapper
from .config import Config
from .middleend.constants import ConstantTable
from .middleend.index import NameIndex


class EmitContext:
    """Everything one unit's emission reads and writes.

    A fresh context per unit keeps the constant table, the anonymous-name
    counter and the pending alias buffer from leaking between unrelated
    inputs. Hosts that keep a context around call reset() between units.
    """

    def __init__(self, config: Config) -> None:
        self.config: Config = config
        self.constants: ConstantTable = ConstantTable()
        self.names: NameResolver = NameResolver(self.constants)
        self.types: TypeMapper = TypeMapper(self.constants)
        self.index: NameIndex | None = None
        self.aliases: list[list[str]] = []  # rendered typealiases and creators, in order

    @property
    def nl(self) -> str:
        return self.config.new_line

    @property
    def indent(self) -> str:
        return self.config.indent_unit()

    def require_index(self) -> NameIndex:
        if self.index is None:
            raise RuntimeError("name index not built for this unit")
        return self.index

    def buffer_alias(self, lines: list[str]) -> None:
        """Queue one rendered alias or creator for the aliases artifact."""
        self.aliases.append(list(lines))

    def take_aliases(self) -> list[list[str]]:
        pending = self.aliases
        self.aliases = []
        return pending

    def reset(self) -> None:
        self.constants.clear()
        self.names.reset()
        self.index = None
        self.aliases = []
