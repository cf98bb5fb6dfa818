"""Emission settings and their JSON form."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError

# camelCase keys accepted in JSON files -> dataclass field names
_KEY_ALIASES: dict[str, str] = {
    "package": "package",
    "module": "module",
    "newLine": "new_line",
    "new_line": "new_line",
    "spaces": "spaces",
    "tabs": "tabs",
    "imports": "imports",
}


@dataclass
class Config:
    """Settings consumed by the Kotlin backend.

    Invariants:
    - package is a non-empty dotted Kotlin package name
    - spaces >= 0, tabs >= 0; tabs win when both are set
    - new_line is "\\n" or "\\r\\n"
    """

    package: str
    module: str | None = None
    new_line: str = "\n"
    spaces: int = 4
    tabs: int = 0
    imports: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.package or not isinstance(self.package, str):
            raise ConfigError("package is required")
        for part in self.package.split("."):
            if not part.isidentifier():
                raise ConfigError("invalid package name: " + repr(self.package))
        if self.new_line not in ("\n", "\r\n"):
            raise ConfigError("newLine must be \\n or \\r\\n")
        if self.spaces < 0 or self.tabs < 0:
            raise ConfigError("indentation width must not be negative")
        if self.module is not None and not self.module:
            self.module = None

    def indent_unit(self) -> str:
        """One indentation level."""
        if self.tabs > 0:
            return "\t" * self.tabs
        return " " * self.spaces

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Config:
        """Build from a JSON-style dict. Unknown keys are an error."""
        kwargs: dict[str, object] = {}
        for key, value in data.items():
            if key not in _KEY_ALIASES:
                raise ConfigError("unknown config key: " + repr(key))
            kwargs[_KEY_ALIASES[key]] = value
        if "package" not in kwargs:
            raise ConfigError("package is required")
        imports = kwargs.get("imports", [])
        if not isinstance(imports, list) or not all(isinstance(i, str) for i in imports):
            raise ConfigError("imports must be a list of strings")
        for key in ("spaces", "tabs"):
            if key in kwargs and (not isinstance(kwargs[key], int) or isinstance(kwargs[key], bool)):
                raise ConfigError(key + " must be an integer")
        return cls(**kwargs)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, object]:
        result: dict[str, object] = {"package": self.package}
        if self.module is not None:
            result["module"] = self.module
        result["newLine"] = self.new_line
        result["spaces"] = self.spaces
        result["tabs"] = self.tabs
        result["imports"] = list(self.imports)
        return result


def load_config(path: str | Path) -> Config:
    """Read a JSON config file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError("cannot read config '" + str(path) + "': " + str(e.strerror or e)) from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError("invalid JSON in '" + str(path) + "': " + e.msg) from e
    if not isinstance(data, dict):
        raise ConfigError("config must be a JSON object")
    return Config.from_dict(data)
