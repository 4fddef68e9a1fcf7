"""Core lookml-support functionality: IR, lexer, builder, formatter, linter, configuration."""

from . import ir
from .actions import suggest_actions
from .builder import build_document
from .config import (
    FormatterConfig,
    LinterConfig,
    LookMLConfig,
    find_config,
    load_config,
)
from .errors import (
    ConfigError,
    ErrorContext,
    LookMLError,
    SourceError,
)
from .formatter import LookMLFormatter, format_text
from .lint import LintResult, lint_text
from .simple_parser import parse_simple

__all__ = [
    "ir",
    "LookMLError",
    "ConfigError",
    "SourceError",
    "ErrorContext",
    "FormatterConfig",
    "LinterConfig",
    "LookMLConfig",
    "load_config",
    "find_config",
    "build_document",
    "LookMLFormatter",
    "format_text",
    "LintResult",
    "lint_text",
    "parse_simple",
    "suggest_actions",
]
