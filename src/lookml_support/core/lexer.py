"""
Lexer/Block-Tracker for LookML.

Classifies every source line (block open, block close, property, SQL
segment line, comment, blank, other content) and records the nesting depth
that was current before the line was consumed.

Malformed input never raises: unmatched closing braces, blocks left open at
end of input, unterminated SQL segments and block headers without a
readable name are recorded as ``ParseAnomaly`` values instead.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .config import DEFAULT_MARKUP_PROPERTIES, DEFAULT_SQL_PROPERTIES
from .ir import (
    TERMINATOR,
    AnomalyKind,
    ClassifiedLine,
    LineKind,
    ParseAnomaly,
    SqlSegment,
)

logger = logging.getLogger(__name__)

_LINE_SPLIT = re.compile(r"\r?\n")

IDENTIFIER = r"[A-Za-z_]\w*"
# Block names allow refinement (+orders) and dotted/hyphenated forms.
BLOCK_NAME = r"[\w.+\-]+"

BLOCK_OPEN_PATTERN = re.compile(rf"^(?P<key>{IDENTIFIER})\s*:\s*(?P<name>{BLOCK_NAME})?\s*\{{$")
INLINE_BLOCK_PATTERN = re.compile(
    rf"^(?P<key>{IDENTIFIER})\s*:\s*(?P<name>{BLOCK_NAME})?\s*\{{(?P<body>.*)\}}\s*(;;)?$"
)
_BLOCK_KEY = re.compile(rf"^(?P<key>{IDENTIFIER})\s*:")
_BLOCK_CLOSE = re.compile(r"^\}\s*(;;)?$")
# ``(?!//)`` keeps URL continuation lines (``https://...``) from reading as properties.
PROPERTY_PATTERN = re.compile(rf"^(?P<key>{IDENTIFIER})\s*:(?!//)\s*(?P<value>.*)$")
# ``dimension: id { # pk``: a comment after a brace, outside any quotes.
_TRAILING_COMMENT = re.compile(r"\s+(?P<comment>#[^\"']*)$")


def split_lines(text: str) -> list[str]:
    """Split text on ``\\n`` or ``\\r\\n``. Empty text has no lines."""
    if not text:
        return []
    return _LINE_SPLIT.split(text)


def split_trailing_comment(stripped: str) -> tuple[str, str | None]:
    """
    Split a trailing ``# ...`` comment off a line that ends in a brace or ``;;``.

    >>> split_trailing_comment("dimension: id { # pk")
    ('dimension: id {', '# pk')
    >>> split_trailing_comment('label: "a # b"')
    ('label: "a # b"', None)
    """
    match = _TRAILING_COMMENT.search(stripped)
    if match is None:
        return stripped, None
    code = stripped[: match.start()]
    if not code.endswith(("{", "}", TERMINATOR)):
        return stripped, None
    return code, match.group("comment")


def closes_segment(stripped: str) -> bool:
    return stripped.endswith(TERMINATOR)


@dataclass
class _OpenBlock:
    key: str | None
    name: str | None
    line: int


@dataclass
class LexResult:
    """
    Output of the lexer.

    Attributes:
        lines: One classified line per source line, in order
        anomalies: Recoverable structural problems, in order of detection
    """

    lines: list[ClassifiedLine] = field(default_factory=list)
    anomalies: list[ParseAnomaly] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.anomalies)


class Lexer:
    """
    Single-pass line classifier for LookML.

    The lexer is a small state machine with two pieces of state: the stack
    of open blocks and the SQL segment currently open (if any). While a
    segment is open, braces are part of the SQL and never open or close
    blocks.
    """

    def __init__(
        self,
        text: str,
        segment_properties: Iterable[str] | None = None,
    ):
        """
        Initialize lexer.

        Args:
            text: LookML source text
            segment_properties: Property names that open a ``;;``-terminated
                segment (SQL and markup properties)
        """
        self.text = text
        if segment_properties is None:
            segment_properties = DEFAULT_SQL_PROPERTIES | DEFAULT_MARKUP_PROPERTIES
        self.segment_properties = frozenset(segment_properties)
        self.stack: list[_OpenBlock] = []
        self.open_segment: ClassifiedLine | None = None
        self.result = LexResult()

    @property
    def depth(self) -> int:
        return len(self.stack)

    def classify(self) -> LexResult:
        """Classify every line of the source text."""
        for number, raw in enumerate(split_lines(self.text)):
            self.result.lines.append(self._classify_line(number, raw))
        self._finish()
        return self.result

    def _anomaly(self, kind: AnomalyKind, line: int, message: str) -> None:
        anomaly = ParseAnomaly(kind=kind, line=line, message=message)
        logger.debug("Parse anomaly: %s", anomaly)
        self.result.anomalies.append(anomaly)

    def _line(self, number: int, text: str, kind: LineKind, **kwargs: str | None) -> ClassifiedLine:
        return ClassifiedLine(number=number, text=text, kind=kind, depth=self.depth, **kwargs)

    def _classify_line(self, number: int, raw: str) -> ClassifiedLine:
        stripped = raw.strip()

        if self.open_segment is not None:
            if closes_segment(stripped):
                self.open_segment = None
                return self._line(number, raw, LineKind.SQL_CLOSE)
            return self._line(number, raw, LineKind.SQL_CONTENT)

        if not stripped:
            return self._line(number, raw, LineKind.BLANK)

        if stripped.startswith("#"):
            return self._line(number, raw, LineKind.COMMENT)

        code, _ = split_trailing_comment(stripped)

        if _BLOCK_CLOSE.match(code):
            line = self._line(number, raw, LineKind.BLOCK_CLOSE)
            if self.stack:
                self.stack.pop()
            else:
                self._anomaly(AnomalyKind.UNMATCHED_CLOSE, number, "closing brace without an open block")
            return line

        prop = PROPERTY_PATTERN.match(stripped)
        # Segment values may contain braces ({% if %}, ${...}): never blocks.
        if prop and prop.group("key") in self.segment_properties:
            key, value = prop.group("key"), prop.group("value")
            if closes_segment(value):
                return self._line(number, raw, LineKind.SQL_INLINE, key=key, value=value)
            line = self._line(number, raw, LineKind.SQL_OPEN, key=key, value=value)
            self.open_segment = line
            return line

        if code.endswith("{"):
            return self._open_block(number, raw, code)

        match = INLINE_BLOCK_PATTERN.match(code)
        if match:
            return self._line(
                number,
                raw,
                LineKind.INLINE_BLOCK,
                key=match.group("key"),
                name=match.group("name") or "",
                value=match.group("body").strip(),
            )

        if prop:
            return self._line(
                number, raw, LineKind.PROPERTY, key=prop.group("key"), value=prop.group("value")
            )

        return self._line(number, raw, LineKind.CONTENT)

    def _open_block(self, number: int, raw: str, stripped: str) -> ClassifiedLine:
        match = BLOCK_OPEN_PATTERN.match(stripped)
        if match:
            key: str | None = match.group("key")
            name: str | None = match.group("name") or ""
        else:
            key_match = _BLOCK_KEY.match(stripped)
            key = key_match.group("key") if key_match else None
            name = None
            self._anomaly(
                AnomalyKind.MALFORMED_IDENTIFIER,
                number,
                f"cannot read block name from {stripped!r}",
            )

        line = self._line(number, raw, LineKind.BLOCK_OPEN, key=key, name=name)
        self.stack.append(_OpenBlock(key=key, name=name, line=number))
        return line

    def _finish(self) -> None:
        if self.open_segment is not None:
            self._anomaly(
                AnomalyKind.UNTERMINATED_SQL,
                self.open_segment.number,
                f"'{self.open_segment.key}' is missing its ';;' terminator",
            )
            self.open_segment = None

        for block in reversed(self.stack):
            label = f"{block.key}: {block.name}" if block.name else str(block.key)
            self._anomaly(AnomalyKind.UNTERMINATED_BLOCK, block.line, f"block '{label}' is never closed")
        self.stack.clear()


def classify_lines(text: str, segment_properties: Iterable[str] | None = None) -> LexResult:
    """
    Convenience function to classify LookML text.

    Args:
        text: Source text
        segment_properties: Property names that open ``;;``-terminated segments

    Returns:
        LexResult with classified lines and anomalies
    """
    lexer = Lexer(text, segment_properties)
    return lexer.classify()


def group_segments(lines: Iterable[ClassifiedLine]) -> list[ClassifiedLine | SqlSegment]:
    """
    Fold SQL segment lines into ``SqlSegment`` units.

    Every other line is passed through unchanged. A segment still open at
    the end of the input is returned without a closing line.
    """
    items: list[ClassifiedLine | SqlSegment] = []
    opening: ClassifiedLine | None = None
    body: list[ClassifiedLine] = []

    for line in lines:
        if opening is not None:
            if line.kind == LineKind.SQL_CONTENT:
                body.append(line)
                continue
            if line.kind == LineKind.SQL_CLOSE:
                items.append(
                    SqlSegment(property=opening.key or "", opening=opening, body=body, closing=line)
                )
                opening, body = None, []
                continue
            # Segment interrupted by a non-segment line.
            items.append(SqlSegment(property=opening.key or "", opening=opening, body=body))
            opening, body = None, []

        if line.kind == LineKind.SQL_OPEN:
            opening = line
        elif line.kind == LineKind.SQL_INLINE:
            items.append(SqlSegment(property=line.key or "", opening=line))
        else:
            items.append(line)

    if opening is not None:
        items.append(SqlSegment(property=opening.key or "", opening=opening, body=body))

    return items
