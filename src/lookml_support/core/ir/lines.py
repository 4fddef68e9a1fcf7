"""
Line-level types produced by the LookML lexer.

Every source line is classified once, together with the nesting depth that
was current before the line was consumed. SQL segments group the lines of a
``;;``-terminated property so the normalizer can work on them as a unit.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

TERMINATOR = ";;"


def strip_terminator(text: str) -> str:
    """Remove a trailing `;;` terminator and surrounding whitespace."""
    text = text.strip()
    if text.endswith(TERMINATOR):
        text = text[: -len(TERMINATOR)]
    return text.strip()


class LineKind(str, Enum):
    """Classification of a single LookML line."""

    BLANK = "blank"
    COMMENT = "comment"
    BLOCK_OPEN = "block_open"  # dimension: id {
    INLINE_BLOCK = "inline_block"  # explore: orders {}
    BLOCK_CLOSE = "block_close"  # } or } ;;
    PROPERTY = "property"  # type: number
    SQL_OPEN = "sql_open"  # sql:  (segment continues on later lines)
    SQL_INLINE = "sql_inline"  # sql: ${TABLE}.id ;;
    SQL_CONTENT = "sql_content"
    SQL_CLOSE = "sql_close"  # ;;  or  content ;;
    CONTENT = "content"  # anything else, e.g. list continuation lines


class ClassifiedLine(BaseModel):
    """
    A source line with its classification.

    Attributes:
        number: 0-based line index in the document
        text: Original line text, unmodified
        kind: Line classification
        depth: Nesting depth before this line was consumed
        key: Block type or property name, when the line has one
        name: Block name ("" for anonymous blocks, None when it could not be read)
        value: Raw property value after the colon
    """

    number: int
    text: str
    kind: LineKind
    depth: int
    key: str | None = None
    name: str | None = None
    value: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def stripped(self) -> str:
        return self.text.strip()

    @property
    def indent_depth(self) -> int:
        """Depth this line is rendered at (a closing brace sits one level out)."""
        if self.kind == LineKind.BLOCK_CLOSE:
            return max(self.depth - 1, 0)
        return self.depth


class AnomalyKind(str, Enum):
    """Recoverable structural problems found while parsing."""

    UNMATCHED_CLOSE = "unmatched_close"
    UNTERMINATED_BLOCK = "unterminated_block"
    UNTERMINATED_SQL = "unterminated_sql"
    MALFORMED_IDENTIFIER = "malformed_identifier"

    @property
    def breaks_nesting(self) -> bool:
        """True if the block structure around the anomaly cannot be trusted."""
        return self != AnomalyKind.MALFORMED_IDENTIFIER


class ParseAnomaly(BaseModel):
    """A structural anomaly and the line it was detected on (0-based)."""

    kind: AnomalyKind
    line: int
    message: str

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"line {self.line + 1}: {self.message}"


class SqlSegment(BaseModel):
    """
    A ``;;``-terminated property whose value is raw SQL or markup.

    ``opening`` is the property line itself. For a single-line segment
    (``sql: ${TABLE}.id ;;``) ``body`` is empty and ``closing`` is None.
    An unterminated segment also has no ``closing`` line.
    """

    property: str
    opening: ClassifiedLine
    body: list[ClassifiedLine] = Field(default_factory=list)
    closing: ClassifiedLine | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def depth(self) -> int:
        return self.opening.depth

    @property
    def inline(self) -> bool:
        return self.opening.kind == LineKind.SQL_INLINE

    @property
    def terminated(self) -> bool:
        return self.inline or self.closing is not None

    @property
    def lines(self) -> list[ClassifiedLine]:
        result = [self.opening, *self.body]
        if self.closing is not None:
            result.append(self.closing)
        return result

    @property
    def text(self) -> str:
        """The segment content with the property name and terminator removed."""
        parts: list[str] = []
        head = strip_terminator(self.opening.value or "")
        if head:
            parts.append(head)
        parts.extend(line.text.strip() for line in self.body)
        if self.closing is not None:
            tail = strip_terminator(self.closing.text)
            if tail:
                parts.append(tail)
        return "\n".join(parts).strip()
