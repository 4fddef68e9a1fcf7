"""
LookML formatter.

Parses a document, normalizes property spacing and embedded SQL, groups and
sorts the fields of every declaration and re-emits the text. Formatting is
idempotent: formatting formatted output with the same configuration yields
byte-identical text.

Documents whose nesting is broken (unbalanced braces, unterminated SQL)
are formatted conservatively: every line is re-indented by its nesting
depth and property spacing is normalized, but nothing is moved and SQL is
left untouched.

A block header with an unreadable name does not break nesting: the block
stays in its declaration's non-field content and the rest of the document
is formatted normally.
"""

import logging
import re

from .builder import build_document
from .config import FormatterConfig
from .ir import (
    TERMINATOR,
    ClassifiedLine,
    Declaration,
    Document,
    Field,
    Interstitial,
    LineKind,
    Position,
    SqlSegment,
    TextEdit,
)
from .lexer import (
    BLOCK_OPEN_PATTERN,
    INLINE_BLOCK_PATTERN,
    PROPERTY_PATTERN,
    classify_lines,
    group_segments,
    split_lines,
    split_trailing_comment,
)
from .reorganizer import organize
from .sql_normalizer import render_segment

logger = logging.getLogger(__name__)

_TRAILING_BRACE = re.compile(r"\s*\{$")


def format_property(line: str) -> str:
    """
    Normalize the spacing of a ``key: value`` line.

    Exactly one space follows the colon and a trailing ``;;`` terminator is
    separated from the value by one space. Lines that are not properties
    are returned stripped.

    >>> format_property("type:number")
    'type: number'
    >>> format_property("sql:${TABLE}.id;;")
    'sql: ${TABLE}.id ;;'
    """
    stripped = line.strip()
    match = PROPERTY_PATTERN.match(stripped)
    if not match:
        return stripped
    key = match.group("key")
    value = match.group("value").strip()
    if value.endswith(TERMINATOR):
        value = value[: -len(TERMINATOR)].strip()
        return f"{key}: {value} {TERMINATOR}" if value else f"{key}: {TERMINATOR}"
    return f"{key}: {value}" if value else f"{key}:"


def format_block_opener(line: str) -> str:
    """
    Normalize a block header: ``dimension:id{`` becomes ``dimension: id {``.

    Inline blocks keep their body: ``explore:orders{}`` becomes
    ``explore: orders {}``. A trailing comment is kept after one space.
    """
    stripped, comment = split_trailing_comment(line.strip())
    text = _format_opener(stripped)
    return f"{text} {comment}" if comment else text


def _format_opener(stripped: str) -> str:
    match = BLOCK_OPEN_PATTERN.match(stripped)
    if match:
        name = match.group("name")
        return f"{match.group('key')}: {name} {{" if name else f"{match.group('key')}: {{"

    match = INLINE_BLOCK_PATTERN.match(stripped)
    if match:
        name = match.group("name")
        head = f"{match.group('key')}: {name} " if name else f"{match.group('key')}: "
        body = match.group("body").strip()
        text = head + (f"{{ {body} }}" if body else "{}")
        return f"{text} {TERMINATOR}" if stripped.endswith(TERMINATOR) else text

    return _TRAILING_BRACE.sub(" {", stripped).lstrip()


def format_block_close(line: str) -> str:
    code, comment = split_trailing_comment(line.strip())
    text = f"}} {TERMINATOR}" if code.endswith(TERMINATOR) else "}"
    return f"{text} {comment}" if comment else text


def collapse_blank_lines(lines: list[str]) -> list[str]:
    """Collapse runs of blank lines to one and drop leading/trailing blanks."""
    result: list[str] = []
    for line in lines:
        if not line and (not result or not result[-1]):
            continue
        result.append(line)
    while result and not result[-1]:
        result.pop()
    return result


class LookMLFormatter:
    """
    Formats LookML documents.

    Example:
        >>> formatter = LookMLFormatter(FormatterConfig(indent_width=4))
        >>> edits = formatter.format(text)
    """

    def __init__(self, config: FormatterConfig | None = None):
        self.config = config or FormatterConfig()

    def indent(self, depth: int) -> str:
        return self.config.indent(depth)

    # ------------------------------------------------------------------
    # Entry points

    def format(self, text: str) -> list[TextEdit]:
        """
        Format a document and return the edits to apply.

        Returns:
            An empty list if the text is already formatted, otherwise a
            single edit replacing the whole document
        """
        formatted = self.format_text(text)
        if formatted == text:
            return []
        lines = split_lines(text)
        last = len(lines) - 1
        end = Position(line=max(last, 0), character=len(lines[last]) if lines else 0)
        return [TextEdit(start=Position(line=0, character=0), end=end, new_text=formatted)]

    def format_text(self, text: str) -> str:
        """Format a document and return the new text. Never raises."""
        if not text:
            return text

        document = build_document(text, self.config)
        if document.nesting_broken:
            logger.debug(
                "Formatting conservatively: %s",
                "; ".join(str(anomaly) for anomaly in document.anomalies),
            )
            return self.format_conservative(text)

        return "\n".join(self.render_document(document))

    def format_conservative(self, text: str) -> str:
        """Re-indent line by line without moving anything or touching SQL."""
        lexed = classify_lines(text, self.config.segment_properties)
        output = []
        for line in lexed.lines:
            if line.kind in (LineKind.SQL_CONTENT, LineKind.SQL_CLOSE, LineKind.CONTENT):
                output.append(line.text)
            elif line.kind == LineKind.BLANK:
                output.append("")
            else:
                output.append(self.render_line(line))
        return "\n".join(output)

    # ------------------------------------------------------------------
    # Rendering

    def render_document(self, document: Document) -> list[str]:
        output: list[str] = []
        for item in document.items:
            if isinstance(item, Interstitial):
                output.extend(self.render_interstitial(item))
            else:
                output.extend(self.render_declaration(item))
        return output

    def render_interstitial(self, item: Interstitial) -> list[str]:
        """Top-level text keeps its position; only property spacing changes."""
        return self.render_lines(item.lines, verbatim_comments=True)

    def render_declaration(self, declaration: Declaration) -> list[str]:
        header = declaration.header
        if header.kind == LineKind.INLINE_BLOCK:
            return [self.render_line(header)]

        output = [self.render_line(header)]
        output.extend(collapse_blank_lines(self.render_lines(declaration.content)))

        chunks: list[list[str]] = []
        for section in organize(
            declaration.fields,
            group=self.config.group_fields_by_type,
            sort=self.config.sort_fields,
        ):
            markers = section.markers
            if markers is None:
                chunks.extend(self.render_field(f) for f in section.fields)
                continue
            start, end = markers
            depth = section.fields[0].depth
            chunk = [self.indent(depth) + start]
            for f in section.fields:
                chunk.append("")
                chunk.extend(self.render_field(f))
            chunk.append(self.indent(depth) + end)
            chunks.append(chunk)

        for chunk in chunks:
            output.append("")
            output.extend(chunk)

        if declaration.trailing_comments:
            output.append("")
            output.extend(collapse_blank_lines(self.render_lines(declaration.trailing_comments)))

        if declaration.footer is not None:
            output.append(self.render_line(declaration.footer))
        return output

    def render_field(self, field: Field) -> list[str]:
        return self.render_lines(field.comments) + self.render_lines(field.lines)

    def render_lines(self, lines: list[ClassifiedLine], verbatim_comments: bool = False) -> list[str]:
        output: list[str] = []
        for item in group_segments(lines):
            if isinstance(item, SqlSegment):
                output.extend(self.render_segment(item))
            elif item.kind == LineKind.BLANK:
                output.append("")
            elif item.kind == LineKind.CONTENT or (verbatim_comments and item.kind == LineKind.COMMENT):
                output.append(item.text.rstrip())
            else:
                output.append(self.render_line(item))
        return output

    def render_segment(self, segment: SqlSegment) -> list[str]:
        markup = segment.property in self.config.markup_properties
        return render_segment(segment, self.config.indent_unit, markup=markup)

    def render_line(self, line: ClassifiedLine) -> str:
        """Re-indent a single structural line and normalize its spacing."""
        indent = self.indent(line.indent_depth)
        if line.kind in (LineKind.BLOCK_OPEN, LineKind.INLINE_BLOCK):
            return indent + format_block_opener(line.text)
        if line.kind == LineKind.BLOCK_CLOSE:
            return indent + format_block_close(line.text)
        if line.kind in (LineKind.PROPERTY, LineKind.SQL_OPEN, LineKind.SQL_INLINE):
            return indent + format_property(line.text)
        return indent + line.stripped


def format_text(text: str, config: FormatterConfig | None = None) -> str:
    """
    Convenience function to format LookML text.

    Args:
        text: Source text
        config: Formatter configuration

    Returns:
        Formatted text
    """
    return LookMLFormatter(config).format_text(text)
