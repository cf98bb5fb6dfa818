"""Gradle project scaffolding around generated externals.

Lays out a Kotlin Multiplatform (JS) project:

    <out>/build.gradle.kts
    <out>/settings.gradle.kts
    <out>/gradle.properties
    <out>/src/jsMain/kotlin/<group path>/*.kt
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path

from .backend.kotlin import artifact_name, emit_kotlin
from .config import Config
from .errors import ConfigError
from .model import SourceUnit

logger = logging.getLogger(__name__)

DEFAULT_KOTLIN_VERSION = "2.2.10"

DEFAULT_GRADLE_PROPERTIES: dict[str, str] = {
    "org.gradle.daemon": "true",
    "org.gradle.jvmargs": "-Xmx2g -XX:+HeapDumpOnOutOfMemoryError -Dfile.encoding=UTF-8",
    "kotlin.incremental": "true",
    "org.gradle.parallel": "true",
    "org.gradle.cache": "true",
    "org.jetbrains.dokka.experimental.gradle.pluginMode": "V2Enabled",
    "org.jetbrains.dokka.experimental.gradle.pluginMode.noWarn": "true",
}


@dataclass
class ProjectSettings:
    """What the generated Gradle project is called and depends on.

    dependencies are raw Gradle notations, quoted by the caller for Maven
    coordinates (`"group:name:version"`) or written as `npm("name", "1.0")`.
    """

    group_id: str
    npm_name: str
    npm_version: str
    description: str = ""
    kotlin_version: str = DEFAULT_KOTLIN_VERSION
    output_dir: str | None = None
    dependencies: list[str] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    gradle_properties: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.npm_name:
            raise ConfigError("npm package name is required")
        if not self.npm_version:
            raise ConfigError("npm package version is required")

    @property
    def project_name(self) -> str:
        """npm name without its scope: `@scope/pkg` -> `pkg`."""
        if "/" in self.npm_name:
            return self.npm_name.split("/", 1)[1]
        return self.npm_name

    def output_path(self) -> Path:
        return Path(self.output_dir or self.npm_name)


def _template(name: str) -> str:
    return resources.files("tykon").joinpath("templates").joinpath(name).read_text(encoding="utf-8")


def render_build_gradle(settings: ProjectSettings) -> str:
    deps = "\n                ".join("implementation(" + d + ")" for d in settings.dependencies)
    text = _template("build.gradle.kts.template")
    replacements = {
        "{{groupId}}": settings.group_id,
        "{{description}}": settings.description,
        "{{kotlinVersion}}": settings.kotlin_version,
        "{{npmPackageName}}": settings.npm_name,
        "{{npmPackageVersion}}": settings.npm_version,
        "{{dependencies}}": deps,
    }
    for key, value in replacements.items():
        text = text.replace(key, value)
    return text


def render_settings_gradle(settings: ProjectSettings) -> str:
    return 'rootProject.name = "' + settings.project_name + '"\n'


def render_gradle_properties(overrides: dict[str, str]) -> str:
    merged = {**DEFAULT_GRADLE_PROPERTIES, **overrides}
    return "".join(key + "=" + value + "\n" for key, value in merged.items())


def source_dir(settings: ProjectSettings) -> Path:
    return settings.output_path() / "src" / "jsMain" / "kotlin" / Path(*settings.group_id.split("."))


def write_project(units: list[SourceUnit], settings: ProjectSettings, config: Config | None = None) -> Path:
    """Write the project and every unit's artifacts; returns the project root.

    Existing files are replaced. Artifacts of different units that share a
    file name are prefixed with their unit's name.
    """
    if config is None:
        config = Config(package=settings.group_id, module=settings.npm_name, imports=settings.imports)
    out = settings.output_path()
    if out.exists():
        logger.warning("output directory %s already exists, replacing existing files", out)
    out.mkdir(parents=True, exist_ok=True)
    (out / "build.gradle.kts").write_text(render_build_gradle(settings), encoding="utf-8")
    (out / "settings.gradle.kts").write_text(render_settings_gradle(settings), encoding="utf-8")
    (out / "gradle.properties").write_text(
        render_gradle_properties(settings.gradle_properties), encoding="utf-8"
    )
    logger.debug("wrote gradle build files to %s", out)
    sources = source_dir(settings)
    sources.mkdir(parents=True, exist_ok=True)
    written: set[str] = set()
    for unit in units:
        for name, content in emit_kotlin(config, unit).items():
            target = name
            if target in written:
                target = artifact_name(unit.base_name) + "-" + name
            written.add(target)
            (sources / target).write_text(content, encoding="utf-8", newline="")
            logger.debug("wrote %s", sources / target)
    logger.info("Kotlin project generated in %s", out)
    return out
