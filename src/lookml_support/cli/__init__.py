"""
lookml-support CLI.

- commands.py: format, lint and inspect commands
- utils.py: Shared utilities (version, configuration lookup, diagnostics output)
"""

import logging
from typing import Annotated

import typer

from .commands import format_command, inspect_command, lint_command
from .utils import version_callback

app = typer.Typer(
    help="""LookML formatter and linter

Commands:
  • format   Normalize spacing and SQL, group and sort fields
  • lint     Check primary keys (K1), join references (E1), cross-view references (F1)
  • inspect  Show the structural model of a file
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and environment information",
        ),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """lookml CLI main callback for global options."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


app.command(name="format")(format_command)
app.command(name="lint")(lint_command)
app.command(name="inspect")(inspect_command)


def main() -> None:
    app(standalone_mode=True)


__all__ = ["app", "main", "version_callback"]
