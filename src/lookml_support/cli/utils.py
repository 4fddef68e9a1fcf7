"""
lookml-support CLI utilities.

Shared helpers used across CLI commands: version display, configuration
lookup and diagnostic printing.
"""

import json
import platform
from pathlib import Path

import typer

from lookml_support._version import get_version
from lookml_support.core.config import LookMLConfig, find_config, load_config
from lookml_support.core.ir import Violation


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"lookml-support version {get_version()}")
        typer.echo("")
        typer.echo("Environment:")
        typer.echo(f"  Python:        {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform:      {platform.system()} {platform.release()}")
        raise typer.Exit()


def resolve_config(config_path: Path | None, paths: list[Path]) -> LookMLConfig:
    """
    Load the configuration for a command.

    An explicit ``--config`` wins; otherwise the nearest ``lookml.toml`` (or
    ``pyproject.toml`` with a ``[tool.lookml]`` table) above the first path
    is used, falling back to the defaults.
    """
    if config_path is not None:
        return load_config(config_path)
    start = paths[0] if paths and str(paths[0]) != "-" else Path.cwd()
    found = find_config(start)
    return load_config(found) if found is not None else LookMLConfig()


def format_location(file: str, violation: Violation) -> str:
    line = (violation.line or 0) + 1
    return f"{file}:{line}"


def print_human_diagnostics(results: dict[str, list[Violation]]) -> None:
    """Print violations grouped by file in human-readable format."""
    total = 0
    for file, violations in results.items():
        for violation in violations:
            total += 1
            typer.echo(
                f"{format_location(file, violation)}: {violation.severity.value.upper()}: "
                f"[{violation.rule_id}] {violation.message}"
            )

    if total:
        typer.echo(f"\n{total} problem(s) found.")
    else:
        typer.echo("OK: no problems found.")


def print_vscode_diagnostics(results: dict[str, list[Violation]]) -> None:
    """
    Print violations in VS Code problem-matcher format:
    file:line:col: severity: message
    """
    for file, violations in results.items():
        for violation in violations:
            typer.echo(
                f"{format_location(file, violation)}:1: {violation.severity.value}: "
                f"[{violation.rule_id}] {violation.message}"
            )


def print_json_diagnostics(results: dict[str, list[Violation]]) -> None:
    payload = [
        {"file": file, **violation.model_dump(mode="json")}
        for file, violations in results.items()
        for violation in violations
    ]
    typer.echo(json.dumps(payload, indent=2))
