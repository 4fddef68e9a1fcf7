"""
Error types for LookML parsing, formatting and linting.

Structural problems in LookML text (unmatched braces, unterminated SQL
segments, malformed identifiers) are never raised: they are recorded as
``ParseAnomaly`` values on the parse result. The exceptions below are for
genuine caller errors such as invalid configuration or unreadable files.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class LookMLError(Exception):
    """Base exception for all lookml-support errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ConfigError(LookMLError):
    """
    Raised when a configuration file or value is invalid.

    Examples:
    - Non-positive indent width
    - Unreadable or malformed TOML
    - Wrong value type for a known option

    Unknown rule ids are not configuration errors; they are ignored.
    """

    pass


class SourceError(LookMLError):
    """
    Raised when a LookML source file cannot be read.

    Examples:
    - Missing file
    - File is not valid UTF-8
    """

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Path to the file where the error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional snippet showing the error location
    """

    file: Path
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "lookml.toml:3:1"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format snippet with line numbers and an error marker."""
        if not self.snippet:
            return ""

        formatted = []
        start_line = max(1, self.line - 2)
        for i, line in enumerate(self.snippet.split("\n")):
            line_num = start_line + i
            prefix = f"{line_num:4d} | "
            formatted.append(prefix + line)
            if line_num == self.line:
                formatted.append(" " * (len(prefix) + self.column - 1) + "^^^")

        return "\n".join(formatted)


def make_config_error(
    message: str,
    file: Path | None = None,
    line: int | None = None,
    column: int | None = None,
    snippet: str | None = None,
) -> ConfigError:
    """
    Helper to create a ConfigError with optional context.

    Args:
        message: Error description
        file: Optional configuration file path
        line: Optional line number
        column: Optional column number
        snippet: Optional source lines ending at the error line

    Returns:
        ConfigError with context if a location was provided
    """
    if file and line and column:
        return ConfigError(
            message, ErrorContext(file=file, line=line, column=column, snippet=snippet)
        )
    if file:
        return ConfigError(f"{file}: {message}")
    return ConfigError(message)
