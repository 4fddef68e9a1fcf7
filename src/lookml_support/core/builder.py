"""
Structural builder for LookML.

Consumes the classified line stream from the lexer and builds the Document
tree: top-level declarations (view, explore, model, ...) with their fields
and non-field content, interleaved with interstitial text.

The builder never raises for any input. Whatever was opened before an
anomaly stays in the tree; the anomalies are carried on the Document.
"""

import logging
from collections.abc import Sequence

from .config import FormatterConfig
from .ir import (
    FIELD_BLOCK_TYPES,
    Block,
    BlockRef,
    ClassifiedLine,
    Declaration,
    DeclarationKind,
    Document,
    Field,
    FieldKind,
    Interstitial,
    LineKind,
    SqlSegment,
    strip_terminator,
)
from .lexer import classify_lines, group_segments
from .reorganizer import is_marker_comment

logger = logging.getLogger(__name__)


def read_block_body(
    lines: Sequence[ClassifiedLine], depth: int
) -> tuple[dict[str, str], list[Block]]:
    """
    Read the direct children of a block body.

    Args:
        lines: Lines inside the block (without its opening and closing lines)
        depth: Nesting depth of the block's direct children

    Returns:
        Tuple of (properties, nested blocks). The first occurrence of a
        property wins; values have their ``;;`` terminator removed and SQL
        segment bodies are joined with newlines.
    """
    return _read_items(group_segments(lines), depth)


def _read_items(
    items: Sequence[ClassifiedLine | SqlSegment], depth: int
) -> tuple[dict[str, str], list[Block]]:
    properties: dict[str, str] = {}
    blocks: list[Block] = []

    i = 0
    while i < len(items):
        item = items[i]
        i += 1

        if isinstance(item, SqlSegment):
            if item.depth == depth:
                properties.setdefault(item.property, item.text)
            continue

        if item.depth != depth:
            continue

        if item.kind == LineKind.PROPERTY and item.key:
            properties.setdefault(item.key, strip_terminator(item.value or ""))
        elif item.kind == LineKind.INLINE_BLOCK:
            blocks.append(
                Block(type=item.key, name=item.name, start_line=item.number, end_line=item.number)
            )
        elif item.kind == LineKind.BLOCK_OPEN:
            inner: list[ClassifiedLine | SqlSegment] = []
            end_line = None
            while i < len(items):
                candidate = items[i]
                i += 1
                if (
                    isinstance(candidate, ClassifiedLine)
                    and candidate.kind == LineKind.BLOCK_CLOSE
                    and candidate.depth == depth + 1
                ):
                    end_line = candidate.number
                    break
                inner.append(candidate)
            child_properties, child_blocks = _read_items(inner, depth + 1)
            blocks.append(
                Block(
                    type=item.key,
                    name=item.name,
                    properties=child_properties,
                    blocks=child_blocks,
                    start_line=item.number,
                    end_line=end_line,
                )
            )

    return properties, blocks


class _FieldBuilder:
    """Accumulates the lines of one field until its closing brace."""

    def __init__(self, opening: ClassifiedLine, comments: list[ClassifiedLine], parent: BlockRef):
        self.opening = opening
        self.comments = comments
        self.parent = parent
        self.lines: list[ClassifiedLine] = [opening]
        self.closing: ClassifiedLine | None = None

    def add(self, line: ClassifiedLine) -> bool:
        """Add a line; returns True once the field's closing brace was consumed."""
        self.lines.append(line)
        if line.kind == LineKind.BLOCK_CLOSE and line.depth == self.opening.depth + 1:
            self.closing = line
            return True
        return False

    def build(self) -> Field:
        body = self.lines[1:-1] if self.closing is not None else self.lines[1:]
        properties, blocks = read_block_body(body, self.opening.depth + 1)
        type_name = self.opening.key or ""
        return Field(
            kind=FieldKind.from_block_type(type_name),
            type_name=type_name,
            name=self.opening.name or "",
            depth=self.opening.depth,
            lines=self.lines,
            comments=self.comments,
            parent_blocks=[self.parent],
            properties=properties,
            blocks=blocks,
            start_line=self.opening.number,
            end_line=self.closing.number if self.closing is not None else None,
        )


class _DeclarationBuilder:
    """Accumulates one top-level declaration."""

    def __init__(self, header: ClassifiedLine):
        self.header = header
        self.ref = BlockRef(type=header.key, name=header.name, depth=header.depth)
        self.footer: ClassifiedLine | None = None
        self.content: list[ClassifiedLine] = []
        self.fields: list[Field] = []
        self.pending_comments: list[ClassifiedLine] = []
        self.trailing_comments: list[ClassifiedLine] = []
        self.current_field: _FieldBuilder | None = None

    @property
    def child_depth(self) -> int:
        return self.header.depth + 1

    def add(self, line: ClassifiedLine) -> bool:
        """Add a line; returns True once the declaration's closing brace was consumed."""
        if self.current_field is not None:
            if self.current_field.add(line):
                self.fields.append(self.current_field.build())
                self.current_field = None
            return False

        if line.depth != self.child_depth:
            self._flush_comments()
            self.content.append(line)
            return False

        if line.kind == LineKind.BLOCK_CLOSE:
            self.trailing_comments = self._take_tail_comments() + self.pending_comments
            self.pending_comments = []
            self.footer = line
            return True

        if line.kind == LineKind.COMMENT:
            if not is_marker_comment(line.text):
                self.pending_comments.append(line)
            return False

        if self._opens_field(line):
            self.current_field = _FieldBuilder(line, self.pending_comments, self.ref)
            self.pending_comments = []
            return False

        self._flush_comments()
        self.content.append(line)
        return False

    def _opens_field(self, line: ClassifiedLine) -> bool:
        # A field header without a readable name stays non-field content.
        return line.kind == LineKind.BLOCK_OPEN and line.key in FIELD_BLOCK_TYPES and bool(line.name)

    def _take_tail_comments(self) -> list[ClassifiedLine]:
        """
        Remove the comments and blank lines that follow the last field from
        the content and return them without leading blanks.
        """
        if not self.fields:
            return []
        last_line = self.fields[-1].lines[-1].number
        start = len(self.content)
        while start > 0:
            line = self.content[start - 1]
            if (
                line.number <= last_line
                or line.depth != self.child_depth
                or line.kind not in (LineKind.COMMENT, LineKind.BLANK)
            ):
                break
            start -= 1
        tail = self.content[start:]
        if not any(line.kind == LineKind.COMMENT for line in tail):
            return []
        del self.content[start:]
        while tail[0].kind == LineKind.BLANK:
            tail.pop(0)
        return tail

    def _flush_comments(self) -> None:
        self.content.extend(self.pending_comments)
        self.pending_comments = []

    def build(self) -> Declaration:
        if self.current_field is not None:
            self.fields.append(self.current_field.build())
            self.current_field = None
        if self.footer is None:
            # Unterminated: leftover comments stay where they were read.
            self._flush_comments()

        properties, blocks = read_block_body(self.content, self.child_depth)
        type_name = self.header.key or ""
        return Declaration(
            kind=DeclarationKind.from_block_type(type_name),
            type_name=type_name,
            name=self.header.name or "",
            header=self.header,
            footer=self.footer,
            content=self.content,
            fields=self.fields,
            trailing_comments=self.trailing_comments,
            properties=properties,
            blocks=blocks,
        )


class DocumentBuilder:
    """
    Builds a Document from LookML text.

    Only one declaration is active at a time: any block opened at depth 0
    starts a declaration that ends at its matching closing brace.
    """

    def __init__(self, text: str, config: FormatterConfig | None = None):
        self.text = text
        self.config = config or FormatterConfig()
        self.items: list[Declaration | Interstitial] = []
        self.interstitial: list[ClassifiedLine] = []
        self.declaration: _DeclarationBuilder | None = None

    def build(self) -> Document:
        lexed = classify_lines(self.text, self.config.segment_properties)

        for line in lexed.lines:
            if self.declaration is not None:
                if self.declaration.add(line):
                    self._close_declaration()
                continue

            if line.depth == 0 and line.kind == LineKind.BLOCK_OPEN:
                self._flush_interstitial()
                self.declaration = _DeclarationBuilder(line)
            elif line.depth == 0 and line.kind == LineKind.INLINE_BLOCK:
                self._flush_interstitial()
                self.items.append(_inline_declaration(line))
            else:
                self.interstitial.append(line)

        if self.declaration is not None:
            logger.debug("Declaration '%s' is unterminated", self.declaration.header.stripped)
            self._close_declaration()
        self._flush_interstitial()

        return Document(
            items=self.items,
            anomalies=lexed.anomalies,
            includes=self._top_level_values(lexed.lines, "include"),
            connection=next(iter(self._top_level_values(lexed.lines, "connection")), None),
            line_count=len(lexed.lines),
        )

    def _close_declaration(self) -> None:
        assert self.declaration is not None
        self.items.append(self.declaration.build())
        self.declaration = None

    def _flush_interstitial(self) -> None:
        if self.interstitial:
            self.items.append(Interstitial(lines=self.interstitial))
            self.interstitial = []

    @staticmethod
    def _top_level_values(lines: list[ClassifiedLine], key: str) -> list[str]:
        return [
            _unquote(strip_terminator(line.value or ""))
            for line in lines
            if line.depth == 0 and line.kind == LineKind.PROPERTY and line.key == key
        ]


def _inline_declaration(line: ClassifiedLine) -> Declaration:
    type_name = line.key or ""
    return Declaration(
        kind=DeclarationKind.from_block_type(type_name),
        type_name=type_name,
        name=line.name or "",
        header=line,
        footer=line,
    )


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def build_document(text: str, config: FormatterConfig | None = None) -> Document:
    """
    Convenience function to parse LookML text into a Document.

    Args:
        text: LookML source text
        config: Formatter configuration (supplies the SQL property names)

    Returns:
        Document tree; never raises for any text input
    """
    return DocumentBuilder(text, config).build()
