"""CLI tests for the tykon entry point.

Test cases live in 08_cli/*.tests files. Format:

    === test name
    args: --package com.example
    declare function f(): void;
    (stdin for the transpiler)
    ---
    exit: 0
    stdout-contains: external fun f(): Unit
    ---

Input section:
    args:           CLI arguments (first line, split on whitespace)
    stdin-bytes:    hex-encoded raw bytes instead of text

Expected section (each directive may repeat):
    exit:             exact exit code
    stderr:           exact stderr content (trailing newline ignored)
    stderr-contains:  stderr must contain substring
    stderr-empty:     stderr must be empty
    stdout-contains:  stdout must contain substring
    stdout-empty:     stdout must be empty
"""

import subprocess
import sys
from pathlib import Path

import pytest

CLI_DIR = Path(__file__).parent / "08_cli"
ROOT_DIR = Path(__file__).parent.parent


def parse_cli_test_file(path: Path) -> list[tuple[str, dict]]:
    """Parse a .tests file into (name, spec) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, dict]] = []
    i = 0
    while i < len(lines):
        if not lines[i].startswith("=== "):
            i += 1
            continue
        name = lines[i][4:].strip()
        i += 1
        input_lines: list[str] = []
        while i < len(lines) and lines[i] != "---":
            input_lines.append(lines[i])
            i += 1
        i += 1
        expected_lines: list[str] = []
        while i < len(lines) and lines[i] != "---":
            expected_lines.append(lines[i])
            i += 1
        i += 1
        result.append((name, _parse_spec(input_lines, expected_lines)))
    return result


def _parse_spec(input_lines: list[str], expected_lines: list[str]) -> dict:
    spec: dict = {"args": [], "stdin": b"", "assertions": []}
    body = input_lines
    if body and body[0].startswith("args:"):
        spec["args"] = body[0][len("args:") :].split()
        body = body[1:]
    if body and body[0].startswith("stdin-bytes:"):
        spec["stdin"] = bytes.fromhex(body[0][len("stdin-bytes:") :].strip())
    else:
        spec["stdin"] = "\n".join(body).encode()
    for line in expected_lines:
        line = line.strip()
        if not line:
            continue
        key, _, value = line.partition(":")
        value = value.strip()
        if key == "exit":
            spec["assertions"].append(("exit", int(value)))
        elif key in ("stderr", "stderr-contains", "stdout-contains"):
            spec["assertions"].append((key, value))
        elif key in ("stderr-empty", "stdout-empty"):
            spec["assertions"].append((key, None))
        else:
            raise ValueError("unknown directive in " + repr(line))
    return spec


def discover_cli_tests() -> list[tuple[str, dict]]:
    results = []
    for test_file in sorted(CLI_DIR.glob("*.tests")):
        for name, spec in parse_cli_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", spec))
    return results


def run_cli(args: list[str], stdin: bytes = b"", cwd: Path = ROOT_DIR) -> subprocess.CompletedProcess[bytes]:
    """Run `python -m tykon` with the repository on the import path."""
    return subprocess.run(
        [sys.executable, "-m", "tykon", *args],
        input=stdin,
        capture_output=True,
        cwd=cwd,
    )


def check_assertions(result: subprocess.CompletedProcess[bytes], assertions: list[tuple]) -> None:
    stdout = result.stdout.decode(errors="replace")
    stderr = result.stderr.decode(errors="replace")
    for kind, value in assertions:
        if kind == "exit":
            assert result.returncode == value, f"expected exit {value}, got {result.returncode}\nstderr: {stderr}"
        elif kind == "stderr":
            assert stderr.rstrip("\n") == value, f"expected stderr {value!r}, got {stderr!r}"
        elif kind == "stderr-contains":
            assert value in stderr, f"expected stderr to contain {value!r}, got {stderr!r}"
        elif kind == "stderr-empty":
            assert stderr == "", f"expected empty stderr, got {stderr!r}"
        elif kind == "stdout-contains":
            assert value in stdout, f"expected stdout to contain {value!r}, got {stdout!r}"
        elif kind == "stdout-empty":
            assert stdout == "", f"expected empty stdout, got {stdout[:200]!r}"


def pytest_generate_tests(metafunc):
    """Parametrize test_cli over all .tests files."""
    if "cli_spec" in metafunc.fixturenames:
        params = [pytest.param(spec, id=test_id) for test_id, spec in discover_cli_tests()]
        metafunc.parametrize("cli_spec", params)


def test_cli(cli_spec: dict) -> None:
    result = run_cli(cli_spec["args"], cli_spec["stdin"])
    check_assertions(result, cli_spec["assertions"])


def test_crlf_output() -> None:
    result = run_cli(
        ["--package", "com.example", "--newline", "crlf"],
        b"declare function f(): void;",
    )
    assert result.returncode == 0
    assert b"package com.example\r\n\r\nexternal fun f(): Unit\r\n" in result.stdout


def test_verbose_logs_debug(tmp_path: Path) -> None:
    src = tmp_path / "lib.d.ts"
    src.write_text("declare function f(): void;\n")
    result = run_cli(["--package", "com.example", "-v", str(src)])
    assert result.returncode == 0
    assert b"DEBUG tykon.frontend.parse: parsed lib.d.ts" in result.stderr
