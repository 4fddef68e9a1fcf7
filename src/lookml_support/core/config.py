"""
Configuration for the formatter and the linter.

Configuration is an explicit value passed into every entry point. It can be
loaded from a ``lookml.toml`` file or from the ``[tool.lookml]`` table of a
``pyproject.toml``::

    [formatter]
    indent_width = 2
    use_spaces = true
    group_fields_by_type = true
    sort_fields = true

    [linter]
    rules = ["K1", "E1", "F1"]
    disabled_rules = ["F1"]

    [linter.severities]
    K1 = "error"
"""

from __future__ import annotations

import logging
import re
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic import Field as PydanticField

from .errors import make_config_error
from .ir import Severity

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "lookml.toml"
PYPROJECT_FILENAME = "pyproject.toml"

# Properties whose value is raw SQL, terminated by ``;;``. Dialect-specific
# variants from the LookML grammar are included alongside the core set.
DEFAULT_SQL_PROPERTIES: frozenset[str] = frozenset(
    {
        "sql",
        "sql_on",
        "sql_where",
        "sql_always_where",
        "sql_always_having",
        "sql_trigger_value",
        "sql_trigger",
        "sql_table_name",
        "sql_create",
        "sql_start",
        "sql_end",
        "sql_preamble",
        "sql_latitude",
        "sql_longitude",
        "sql_distinct_key",
        "sql_step",
        "sql_foreign_key",
    }
)

# Properties whose value is ``;;``-terminated markup or template text: the
# normalizer re-indents these but never rewrites their content.
DEFAULT_MARKUP_PROPERTIES: frozenset[str] = frozenset({"html", "expression"})

DEFAULT_RULES: frozenset[str] = frozenset({"K1", "E1", "F1"})

# tomllib reports positions as "(at line N, column M)".
_TOML_LOCATION = re.compile(r"at line (?P<line>\d+), column (?P<column>\d+)")


def _normalize_rule_ids(value: Any) -> frozenset[str]:
    if isinstance(value, str):
        value = [value]
    return frozenset(str(rule_id).strip().upper() for rule_id in value if str(rule_id).strip())


class FormatterConfig(BaseModel):
    """
    Formatter options.

    Attributes:
        indent_width: Spaces per indentation level (must be positive)
        use_spaces: Indent with spaces; one tab per level otherwise
        group_fields_by_type: Group fields into categories with section markers
        sort_fields: Sort fields by name within each category
        sql_properties: Property names whose values are normalized as SQL
        markup_properties: ``;;``-terminated properties that are only re-indented
    """

    indent_width: int = PydanticField(default=2, gt=0)
    use_spaces: bool = True
    group_fields_by_type: bool = True
    sort_fields: bool = True
    sql_properties: frozenset[str] = DEFAULT_SQL_PROPERTIES
    markup_properties: frozenset[str] = DEFAULT_MARKUP_PROPERTIES

    model_config = ConfigDict(frozen=True)

    @property
    def indent_unit(self) -> str:
        return " " * self.indent_width if self.use_spaces else "\t"

    @property
    def segment_properties(self) -> frozenset[str]:
        """Every property that opens a ``;;``-terminated segment."""
        return self.sql_properties | self.markup_properties

    def indent(self, depth: int) -> str:
        return self.indent_unit * max(depth, 0)


class LinterConfig(BaseModel):
    """
    Linter options.

    Rule ids are case-insensitive and stored upper-case. Unknown ids are
    accepted here and skipped when rules are applied.
    """

    enabled: bool = True
    rules: frozenset[str] = DEFAULT_RULES
    disabled_rules: frozenset[str] = frozenset()
    severities: dict[str, Severity] = PydanticField(default_factory=dict)
    use_fallback_parser: bool = False

    model_config = ConfigDict(frozen=True)

    @field_validator("rules", "disabled_rules", mode="before")
    @classmethod
    def _upper_rule_ids(cls, value: Any) -> frozenset[str]:
        return _normalize_rule_ids(value)

    @field_validator("severities", mode="before")
    @classmethod
    def _upper_severity_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k).upper(): v for k, v in value.items()}
        return value

    @property
    def active_rules(self) -> frozenset[str]:
        return self.rules - self.disabled_rules


class LookMLConfig(BaseModel):
    """Complete configuration: formatter and linter sections."""

    formatter: FormatterConfig = PydanticField(default_factory=FormatterConfig)
    linter: LinterConfig = PydanticField(default_factory=LinterConfig)

    model_config = ConfigDict(frozen=True)


def config_from_dict(data: dict[str, Any], source: Path | None = None) -> LookMLConfig:
    """
    Build a configuration from already-parsed TOML data.

    Raises:
        ConfigError: If a value is invalid
    """
    try:
        return LookMLConfig(
            formatter=FormatterConfig(**data.get("formatter", {})),
            linter=LinterConfig(**data.get("linter", {})),
        )
    except (ValidationError, TypeError) as e:
        raise make_config_error(f"Invalid configuration: {e}", file=source) from e


def load_config(path: Path) -> LookMLConfig:
    """
    Load configuration from a ``lookml.toml`` or ``pyproject.toml`` file.

    For ``pyproject.toml`` the ``[tool.lookml]`` table is used; a file
    without that table yields the defaults.

    Raises:
        ConfigError: If the file cannot be read or contains invalid values
    """
    try:
        source = path.read_text(encoding="utf-8")
    except OSError as e:
        raise make_config_error(f"Cannot read configuration: {e}", file=path) from e

    try:
        data = tomllib.loads(source)
    except tomllib.TOMLDecodeError as e:
        line, column = _decode_error_location(e)
        raise make_config_error(
            f"Malformed TOML: {e}",
            file=path,
            line=line,
            column=column,
            snippet=_snippet(source, line),
        ) from e

    if path.name == PYPROJECT_FILENAME:
        data = data.get("tool", {}).get("lookml", {})

    logger.debug("Loaded configuration from %s", path)
    return config_from_dict(data, source=path)


def _decode_error_location(error: tomllib.TOMLDecodeError) -> tuple[int | None, int | None]:
    """1-based (line, column) of a TOML decode error, when it names one."""
    line = getattr(error, "lineno", None)
    column = getattr(error, "colno", None)
    if line is not None and column is not None:
        return line, column
    match = _TOML_LOCATION.search(str(error))
    if match is None:
        return None, None
    return int(match.group("line")), int(match.group("column"))


def _snippet(source: str, line: int | None, context: int = 2) -> str | None:
    """The source lines up to ``line``, with ``context`` lines before it."""
    if line is None:
        return None
    lines = source.splitlines()
    start = max(1, line - context)
    return "\n".join(lines[start - 1 : line])


def find_config(start: Path) -> Path | None:
    """
    Find the nearest configuration file at or above ``start``.

    ``lookml.toml`` wins over ``pyproject.toml`` in the same directory; a
    ``pyproject.toml`` only counts when it has a ``[tool.lookml]`` table.
    """
    current = start.resolve()
    if current.is_file():
        current = current.parent

    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _has_tool_table(pyproject):
            return pyproject
    return None


def _has_tool_table(pyproject: Path) -> bool:
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return "lookml" in data.get("tool", {})
