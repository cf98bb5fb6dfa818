"""tykon - TypeScript ambient declarations to Kotlin/JS externals."""

from __future__ import annotations

from .backend.kotlin import KotlinBackend, emit_kotlin
from .config import Config, load_config
from .errors import AmbientError, ConfigError, ParseError, TykonError
from .frontend.parse import parse_file, parse_source, parse_type
from .model import SourceUnit
from .project import ProjectSettings, write_project

__version__ = "0.3.0"


def generate(config: Config, unit: SourceUnit) -> dict[str, str]:
    """Kotlin artifacts for a parsed unit, keyed by file name."""
    return emit_kotlin(config, unit)


def transpile(
    config: Config, source: str, name: str = "index.d.ts", tolerant: bool = False
) -> dict[str, str]:
    """Parse TypeScript source and emit its Kotlin artifacts."""
    return emit_kotlin(config, parse_source(source, name, tolerant=tolerant))


__all__ = [
    "AmbientError",
    "Config",
    "ConfigError",
    "KotlinBackend",
    "ParseError",
    "ProjectSettings",
    "SourceUnit",
    "TykonError",
    "emit_kotlin",
    "generate",
    "load_config",
    "parse_file",
    "parse_source",
    "parse_type",
    "transpile",
    "write_project",
]
