"""
Lint results and editor-facing edit types.

Violations are produced by a single lint pass and are never persisted.
Positions and edits use 0-based lines and columns, the convention editors
use for ranges.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField


class Severity(str, Enum):
    """Four-level severity scale for violations."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


class Violation(BaseModel):
    """
    A single rule-check failure.

    Attributes:
        rule_id: Rule identifier (``K1``, ``E1``, ``F1``)
        message: Human-readable description
        severity: Severity of the violation
        path: Structural location, e.g.
            ``["views", "orders", "dimensions", "user_id"]``
        line: 0-based source line, when known
        data: Rule-specific facts (offending reference, field name, ...)
            used by code-action collaborators
    """

    rule_id: str
    message: str
    severity: Severity = Severity.WARNING
    path: list[str] = PydanticField(default_factory=list)
    line: int | None = None
    data: dict[str, str] = PydanticField(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        where = f"line {self.line + 1}" if self.line is not None else "/".join(self.path)
        return f"{where}: {self.severity.value}: [{self.rule_id}] {self.message}"


class Position(BaseModel):
    """A 0-based line/column position."""

    line: int
    character: int

    model_config = ConfigDict(frozen=True)


class TextEdit(BaseModel):
    """Replace the text between ``start`` and ``end`` with ``new_text``."""

    start: Position
    end: Position
    new_text: str

    model_config = ConfigDict(frozen=True)


class CodeAction(BaseModel):
    """
    A suggested fix for a violation.

    An action either carries text ``edits`` or names an editor ``command``
    to run (e.g. disabling a rule in the workspace settings).
    """

    title: str
    rule_id: str
    edits: list[TextEdit] = PydanticField(default_factory=list)
    command: str | None = None
    command_args: list[str] = PydanticField(default_factory=list)
    is_preferred: bool = False

    model_config = ConfigDict(frozen=True)
