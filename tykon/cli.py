"""Command-line entry point."""

from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path

from .backend.kotlin import artifact_name, emit_kotlin
from .config import Config, load_config
from .errors import ConfigError, ParseError, TykonError
from .frontend.parse import parse_file, parse_source
from .model import SourceUnit
from .project import DEFAULT_KOTLIN_VERSION, ProjectSettings, write_project

logger = logging.getLogger(__name__)

USAGE: str = """\
tykon [OPTIONS] [INPUT...] [-o DIR]

Translate TypeScript declaration files into Kotlin/JS externals.
Reads stdin when no INPUT is given.

Options:
  --package NAME        Kotlin package of the generated files
  --module NAME         JS module name for @file:JsModule (default: input name)
  --spaces N            Indent with N spaces (default: 4)
  --tabs N              Indent with N tabs (wins over --spaces)
  --newline STYLE       Line endings: lf or crlf (default: lf)
  --import NAME         Add an import to every file (repeatable)
  --config FILE         Read settings from a JSON file; flags override it
  -o, --output DIR      Write one file per artifact into DIR
  --tolerant            Log syntax errors instead of failing
  -v, --verbose         Debug logging
  -h, --help            Show this help

Gradle project (--gradle):
  --group ID            Group id, also the default package
  --npm-name NAME       npm package the externals describe
  --npm-version VER     npm package version
  --description TEXT    Project description
  --kotlin-version VER  Kotlin plugin version (default: """ + DEFAULT_KOTLIN_VERSION + """)
  --dependency DEP      Extra Gradle dependency notation (repeatable)
"""

NEWLINES: dict[str, str] = {"lf": "\n", "crlf": "\r\n"}

# Flags that consume the next argument, mapped to their option key
VALUE_FLAGS: dict[str, str] = {
    "--package": "package",
    "--module": "module",
    "--spaces": "spaces",
    "--tabs": "tabs",
    "--newline": "newline",
    "--config": "config",
    "-o": "output",
    "--output": "output",
    "--group": "group",
    "--npm-name": "npm_name",
    "--npm-version": "npm_version",
    "--description": "description",
    "--kotlin-version": "kotlin_version",
}

REPEAT_FLAGS: dict[str, str] = {
    "--import": "imports",
    "--dependency": "dependencies",
}

SWITCHES: dict[str, str] = {
    "--tolerant": "tolerant",
    "--gradle": "gradle",
    "-v": "verbose",
    "--verbose": "verbose",
}


class UsageError(Exception):
    """Bad command line; exit status 2."""


@dataclasses.dataclass
class Options:
    inputs: list[str] = dataclasses.field(default_factory=list)
    package: str | None = None
    module: str | None = None
    spaces: str | None = None
    tabs: str | None = None
    newline: str | None = None
    config: str | None = None
    output: str | None = None
    tolerant: bool = False
    gradle: bool = False
    verbose: bool = False
    help: bool = False
    imports: list[str] = dataclasses.field(default_factory=list)
    dependencies: list[str] = dataclasses.field(default_factory=list)
    group: str | None = None
    npm_name: str | None = None
    npm_version: str | None = None
    description: str | None = None
    kotlin_version: str | None = None


def parse_args(args: list[str]) -> Options:
    """Parse command-line arguments. Raises UsageError."""
    opts = Options()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            opts.help = True
            i += 1
        elif arg in VALUE_FLAGS or arg in REPEAT_FLAGS:
            if i + 1 >= len(args):
                raise UsageError(arg + " requires an argument")
            value = args[i + 1]
            if arg in VALUE_FLAGS:
                setattr(opts, VALUE_FLAGS[arg], value)
            else:
                getattr(opts, REPEAT_FLAGS[arg]).append(value)
            i += 2
        elif arg in SWITCHES:
            setattr(opts, SWITCHES[arg], True)
            i += 1
        elif arg.startswith("-") and arg != "-":
            raise UsageError("unknown flag '" + arg + "'")
        else:
            opts.inputs.append(arg)
            i += 1
    if opts.newline is not None and opts.newline not in NEWLINES:
        raise UsageError("unknown newline style '" + opts.newline + "'")
    if opts.gradle:
        if opts.npm_name is None or opts.npm_version is None:
            raise UsageError("--gradle requires --npm-name and --npm-version")
        if opts.group is None and opts.package is None:
            raise UsageError("--gradle requires --group")
    return opts


def _int_flag(flag: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise UsageError(flag + " expects an integer, got '" + value + "'") from None


def build_config(opts: Options) -> Config:
    """Config file first, then command-line overrides."""
    overrides: dict[str, object] = {}
    if opts.package is not None:
        overrides["package"] = opts.package
    elif opts.gradle and opts.group is not None:
        overrides["package"] = opts.group
    if opts.module is not None:
        overrides["module"] = opts.module
    elif opts.gradle and opts.npm_name is not None:
        overrides["module"] = opts.npm_name
    if opts.spaces is not None:
        overrides["spaces"] = _int_flag("--spaces", opts.spaces)
    if opts.tabs is not None:
        overrides["tabs"] = _int_flag("--tabs", opts.tabs)
    if opts.newline is not None:
        overrides["new_line"] = NEWLINES[opts.newline]
    if opts.config is not None:
        base = load_config(opts.config)
        if opts.imports:
            overrides["imports"] = [*base.imports, *opts.imports]
        return dataclasses.replace(base, **overrides)
    if "package" not in overrides:
        raise UsageError("--package is required (or set it in --config)")
    overrides["imports"] = list(opts.imports)
    return Config(**overrides)  # type: ignore[arg-type]


def read_units(inputs: list[str], tolerant: bool) -> list[SourceUnit]:
    """Parse every input; stdin stands in when none is given."""
    if not inputs or inputs == ["-"]:
        raw = sys.stdin.buffer.read()
        try:
            source = raw.decode("utf-8")
        except ValueError:
            raise TykonError("invalid utf-8 in input") from None
        return [parse_source(source, "index.d.ts", tolerant=tolerant)]
    units: list[SourceUnit] = []
    for path in inputs:
        try:
            units.append(parse_file(path, tolerant=tolerant))
        except OSError:
            raise TykonError("cannot open '" + path + "'") from None
        except UnicodeDecodeError:
            raise TykonError("invalid utf-8 in '" + path + "'") from None
    return units


def emit_all(config: Config, units: list[SourceUnit]) -> dict[str, str]:
    """Artifacts of every unit; later clashes get their unit's name prefixed."""
    artifacts: dict[str, str] = {}
    for unit in units:
        for name, content in emit_kotlin(config, unit).items():
            target = name
            if target in artifacts:
                target = artifact_name(unit.base_name) + "-" + name
            artifacts[target] = content
    return artifacts


def write_output(artifacts: dict[str, str], output_dir: str | None) -> int:
    """Write artifacts into a directory, or to stdout. Returns an exit code."""
    if output_dir is None:
        for name, content in artifacts.items():
            sys.stdout.write("// " + name + "\n")
            sys.stdout.write(content)
        return 0
    out = Path(output_dir)
    try:
        out.mkdir(parents=True, exist_ok=True)
        for name, content in artifacts.items():
            (out / name).write_text(content, encoding="utf-8", newline="")
            logger.info("wrote %s", out / name)
    except OSError:
        print("error: cannot write '" + output_dir + "'", file=sys.stderr)
        return 1
    return 0


def run(opts: Options) -> int:
    config = build_config(opts)
    units = read_units(opts.inputs, opts.tolerant)
    if opts.gradle:
        assert opts.npm_name is not None and opts.npm_version is not None
        settings = ProjectSettings(
            group_id=opts.group or config.package,
            npm_name=opts.npm_name,
            npm_version=opts.npm_version,
            description=opts.description or "",
            kotlin_version=opts.kotlin_version or DEFAULT_KOTLIN_VERSION,
            output_dir=opts.output,
            dependencies=list(opts.dependencies),
            imports=list(config.imports),
        )
        try:
            write_project(units, settings, config)
        except OSError as e:
            print("error: cannot write project: " + str(e.strerror or e), file=sys.stderr)
            return 1
        return 0
    return write_output(emit_all(config, units), opts.output)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        opts = parse_args(sys.argv[1:] if argv is None else argv)
    except UsageError as e:
        print("error: " + str(e), file=sys.stderr)
        return 2
    if opts.help:
        print(USAGE, end="")
        return 0
    logging.basicConfig(
        level=logging.DEBUG if opts.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return run(opts)
    except UsageError as e:
        print("error: " + str(e), file=sys.stderr)
        return 2
    except ParseError as e:
        print("error: parse: " + str(e), file=sys.stderr)
        return 1
    except ConfigError as e:
        print("error: config: " + str(e), file=sys.stderr)
        return 1
    except TykonError as e:
        print("error: " + str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
