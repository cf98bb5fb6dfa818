"""Frontend package - converts TypeScript declarations to the tykon model."""

from ..errors import ParseError
from .docs import parse_jsdoc
from .parse import parse_file, parse_source, parse_type

__all__ = [
    "ParseError",
    "parse_file",
    "parse_jsdoc",
    "parse_source",
    "parse_type",
]
