"""
Format, lint and inspect commands.

Each command accepts files or directories; directories are searched for
``*.lkml`` and ``*.lookml`` files. ``-`` reads from stdin.
"""

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from lookml_support.core.builder import build_document
from lookml_support.core.errors import LookMLError
from lookml_support.core.fileset import discover_lookml_files, read_source
from lookml_support.core.formatter import LookMLFormatter
from lookml_support.core.ir import Document, Severity, Violation
from lookml_support.core.lint import lint_text

from .utils import (
    print_human_diagnostics,
    print_json_diagnostics,
    print_vscode_diagnostics,
    resolve_config,
)

console = Console()

STDIN = Path("-")

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to lookml.toml or pyproject.toml"),
]


def _read(path: Path) -> str:
    if path == STDIN:
        return sys.stdin.read()
    return read_source(path)


def _expand(paths: list[Path]) -> list[Path]:
    if paths == [STDIN]:
        return paths
    return discover_lookml_files(paths)


def format_command(
    paths: Annotated[
        list[Path],
        typer.Argument(allow_dash=True, help="Files or directories to format ('-' for stdin)"),
    ],
    check: Annotated[
        bool, typer.Option("--check", help="Report files that would change; do not write")
    ] = False,
    indent: Annotated[
        int | None, typer.Option("--indent", min=1, help="Spaces per indentation level")
    ] = None,
    tabs: Annotated[bool, typer.Option("--tabs", help="Indent with tabs")] = False,
    no_group: Annotated[
        bool, typer.Option("--no-group", help="Do not group fields into sections")
    ] = False,
    no_sort: Annotated[bool, typer.Option("--no-sort", help="Keep fields in source order")] = False,
    config: ConfigOption = None,
) -> None:
    """
    Format LookML files in place.

    With --check, nothing is written and the exit code is 1 if any file
    would be reformatted.
    """
    try:
        settings = resolve_config(config, paths)
        overrides: dict[str, Any] = {}
        if indent is not None:
            overrides["indent_width"] = indent
        if tabs:
            overrides["use_spaces"] = False
        if no_group:
            overrides["group_fields_by_type"] = False
        if no_sort:
            overrides["sort_fields"] = False
        formatter = LookMLFormatter(settings.formatter.model_copy(update=overrides))

        changed: list[Path] = []
        for path in _expand(paths):
            text = _read(path)
            formatted = formatter.format_text(text)
            if path == STDIN:
                sys.stdout.write(formatted)
                continue
            if formatted == text:
                continue
            changed.append(path)
            if check:
                typer.echo(f"would reformat {path}")
            else:
                path.write_text(formatted, encoding="utf-8")
                typer.echo(f"reformatted {path}")

    except LookMLError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if check and changed:
        raise typer.Exit(code=1)


def lint_command(
    paths: Annotated[
        list[Path],
        typer.Argument(allow_dash=True, help="Files or directories to lint ('-' for stdin)"),
    ],
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: 'human', 'vscode' or 'json'")
    ] = "human",
    rule: Annotated[
        list[str] | None, typer.Option("--rule", "-r", help="Only apply these rules (repeatable)")
    ] = None,
    disable: Annotated[
        list[str] | None, typer.Option("--disable", "-d", help="Skip these rules (repeatable)")
    ] = None,
    strict: Annotated[bool, typer.Option("--strict", help="Exit 1 on warnings too")] = False,
    config: ConfigOption = None,
) -> None:
    """
    Lint LookML files.

    Exits with code 1 when an error-severity violation is found, or any
    violation with --strict.
    """
    try:
        settings = resolve_config(config, paths)
        linter = settings.linter
        if rule:
            linter = linter.model_validate({**linter.model_dump(), "rules": rule})
        if disable:
            linter = linter.model_validate(
                {**linter.model_dump(), "disabled_rules": [*linter.disabled_rules, *disable]}
            )
        settings = settings.model_copy(update={"linter": linter})

        results: dict[str, list[Violation]] = {}
        for path in _expand(paths):
            name = "<stdin>" if path == STDIN else str(path)
            results[name] = lint_text(_read(path), settings).violations

    except LookMLError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if format == "vscode":
        print_vscode_diagnostics(results)
    elif format == "json":
        print_json_diagnostics(results)
    else:
        print_human_diagnostics(results)

    violations = [v for found in results.values() for v in found]
    if any(v.severity == Severity.ERROR for v in violations) or (strict and violations):
        raise typer.Exit(code=1)


def document_summary(document: Document) -> dict[str, Any]:
    """JSON-friendly summary of a parsed document."""
    return {
        "includes": document.includes,
        "connection": document.connection,
        "degraded": document.degraded,
        "anomalies": [anomaly.model_dump(mode="json") for anomaly in document.anomalies],
        "declarations": [
            {
                "kind": declaration.kind.value,
                "type": declaration.type_name,
                "name": declaration.name,
                "start_line": declaration.start_line,
                "end_line": declaration.end_line,
                "properties": declaration.properties,
                "fields": [
                    {
                        "kind": field.kind.value,
                        "name": field.name,
                        "type": field.field_type,
                        "start_line": field.start_line,
                        "end_line": field.end_line,
                        "properties": field.properties,
                    }
                    for field in declaration.fields
                ],
            }
            for declaration in document.declarations
        ],
    }


def inspect_command(
    path: Annotated[
        Path, typer.Argument(allow_dash=True, help="LookML file to inspect ('-' for stdin)")
    ],
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    config: ConfigOption = None,
) -> None:
    """Show the structural model of a LookML file."""
    try:
        settings = resolve_config(config, [path])
        document = build_document(_read(path), settings.formatter)
    except LookMLError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if output_json:
        typer.echo(json.dumps(document_summary(document), indent=2))
        return

    if not document.declarations:
        console.print("[dim]No declarations found.[/dim]")

    for declaration in document.declarations:
        end = declaration.end_line + 1 if declaration.end_line is not None else "?"
        table = Table(title=f"{declaration.type_name}: {declaration.name}")
        table.add_column("Kind")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Lines", style="dim")

        for field in declaration.fields:
            field_end = field.end_line + 1 if field.end_line is not None else "?"
            table.add_row(
                field.type_name,
                field.name,
                field.field_type or "",
                f"{field.start_line + 1}-{field_end}",
            )

        console.print(table)
        console.print(
            f"[dim]lines {declaration.start_line + 1}-{end}, "
            f"{len(declaration.fields)} field(s), {len(declaration.blocks)} block(s)[/dim]\n"
        )

    for anomaly in document.anomalies:
        console.print(f"[yellow]warning:[/yellow] {anomaly}")
