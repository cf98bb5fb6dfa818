"""Kotlin backend: declaration model -> Kotlin/JS external declaration files.

One artifact per non-empty container (named modules in discovery order,
root last), plus one `<unit>-aliases.kt` artifact holding every typealias
and creator helper of the unit. External declarations and plain Kotlin
code cannot share a file annotated with @file:JsModule, hence the split.
"""

from __future__ import annotations

import logging
import re

from ..config import Config
from ..context import EmitContext
from ..middleend.index import build_index
from ..model import Container, SourceUnit
from .declarations import DeclarationEmitter

logger = logging.getLogger(__name__)

# Diagnostics that merged external declarations provoke by construction
SUPPRESSED = (
    "INTERFACE_WITH_SUPERCLASS",
    "OVERRIDING_FINAL_MEMBER",
    "RETURN_TYPE_MISMATCH_ON_OVERRIDE",
    "CONFLICTING_OVERLOADS",
)

ARTIFACT_SUFFIX = ".kt"
ALIASES_SUFFIX = "-aliases"

_ARTIFACT_STRIP_RE = re.compile(r"[^a-z0-9-]")
_MODULE_SPACE_RE = re.compile(r"\s+")
_MODULE_STRIP_RE = re.compile(r"[^a-z0-9@/._~-]")


def artifact_name(name: str) -> str:
    """`@Scope/My:Mod` -> `scopemy-mod` (suffix not included)."""
    base = _ARTIFACT_STRIP_RE.sub("", name.lower().replace(":", "-"))
    return base.rstrip("-") or "index"


def module_name(base: str) -> str:
    """Default JS module of a unit: `My Lib` -> `my-lib` (npm name characters only)."""
    name = _MODULE_SPACE_RE.sub("-", base.strip().lower())
    return _MODULE_STRIP_RE.sub("", name).strip("-.") or "index"


def _kotlin_string(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$") + '"'


class KotlinBackend:
    """Emit Kotlin/JS externals for one source unit at a time."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.ctx: EmitContext = EmitContext(config)
        self.decls: DeclarationEmitter = DeclarationEmitter(self.ctx)
        self._artifacts: dict[str, str] = {}

    def emit(self, unit: SourceUnit) -> dict[str, str]:
        """Emit every artifact of unit, keyed by file name."""
        self.ctx = EmitContext(self.config)
        self.decls = DeclarationEmitter(self.ctx)
        self._artifacts = {}
        self.ctx.index = build_index(unit, self.ctx.names)
        base = unit.base_name
        module = self.config.module or module_name(base)
        for container in unit.containers():
            blocks = self._emit_container(container)
            if not blocks:
                logger.debug("container %r produced no output", container.name or base)
                continue
            stem = base if container.is_root else container.name
            name = self._claim(artifact_name(stem))
            self._artifacts[name] = self._file(self._header(container, module), blocks)
        pending = self.ctx.take_aliases()
        if pending:
            name = self._claim(artifact_name(base) + ALIASES_SUFFIX)
            self._artifacts[name] = self._file([], pending)
        logger.info("%s: %d artifacts", unit.name, len(self._artifacts))
        return self._artifacts

    def _claim(self, stem: str) -> str:
        """Unique artifact file name for stem."""
        name = stem + ARTIFACT_SUFFIX
        n = 2
        while name in self._artifacts:
            name = stem + "-" + str(n) + ARTIFACT_SUFFIX
            n += 1
        return name

    def _emit_container(self, container: Container) -> list[list[str]]:
        """Declaration blocks of one container in the fixed emission order."""
        self.ctx.constants.clear()
        self.decls.begin_container(container)
        blocks: list[list[str]] = []
        for var in container.variables:
            blocks.append(self.decls.emit_variable(var))
        for func in container.functions:
            if func.ambient:
                blocks.append(self.decls.emit_function(func))
        for cls in container.classes:
            if cls.ambient:
                blocks.append(self.decls.emit_class(cls))
        for iface in container.interfaces:
            if iface.ambient:
                blocks.append(self.decls.emit_interface(iface))
        for alias in container.aliases:
            if alias.ambient:
                blocks.append(self.decls.emit_alias(alias))
        return [b for b in blocks if b]

    def _header(self, container: Container, module: str) -> list[str]:
        lines: list[str] = []
        if container.kind == "module":
            lines.append("@file:JsModule(" + _kotlin_string(container.name) + ")")
        else:
            lines.append("@file:JsModule(" + _kotlin_string(container.js_module or module) + ")")
        if container.kind == "namespace":
            lines.append("@file:JsQualifier(" + _kotlin_string(container.name) + ")")
        lines.append("@file:Suppress(" + ", ".join(_kotlin_string(s) for s in SUPPRESSED) + ")")
        return lines

    def _file(self, header: list[str], blocks: list[list[str]]) -> str:
        nl = self.config.new_line
        lines = list(header)
        if lines:
            lines.append("")
        lines.append("package " + self.config.package)
        lines.append("")
        if self.config.imports:
            for imp in self.config.imports:
                lines.append(imp if imp.startswith("import ") else "import " + imp)
            lines.append("")
        for i, block in enumerate(blocks):
            if i > 0:
                lines.append("")
            lines.extend(block)
        return nl.join(lines) + nl


def emit_kotlin(config: Config, unit: SourceUnit) -> dict[str, str]:
    """Emit one unit with a fresh backend."""
    return KotlinBackend(config).emit(unit)
