"""
SQL/template-aware normalizer.

Reformats the body of ``;;``-terminated SQL properties:

- SQL keywords are upper-cased (whole words only, multi-word keywords
  matched across any run of whitespace)
- comparison operators get one space on each side
- runs of spaces collapse to one
- primary clauses (SELECT, FROM, WHERE, ...) are indented one level below
  the property, every other line two levels below

Templating tags (``{% ... %}``, ``{{ ... }}``), substitution tokens
(``${...}``), string literals, quoted identifiers and ``--`` comments are
opaque atoms: their characters are never altered. An atom left open at the
end of a line stays open on the next one, and a line that starts inside an
open atom is emitted exactly as written.

Normalization is line-local and never raises.
"""

import re
from dataclasses import dataclass
from enum import Enum

from .ir import TERMINATOR, SqlSegment, strip_terminator

SQL_KEYWORDS: tuple[str, ...] = (
    "SELECT",
    "FROM",
    "WHERE",
    "GROUP BY",
    "ORDER BY",
    "HAVING",
    "JOIN",
    "LEFT JOIN",
    "RIGHT JOIN",
    "INNER JOIN",
    "FULL JOIN",
    "OUTER JOIN",
    "ON",
    "AND",
    "OR",
    "AS",
    "WITH",
    "UNION",
    "EXCEPT",
    "INTERSECT",
    "CASE",
    "WHEN",
    "THEN",
    "ELSE",
    "END",
    "LIMIT",
    "OFFSET",
    "COUNT",
    "SUM",
    "AVG",
    "MIN",
    "MAX",
    "BETWEEN",
    "IN",
    "EXISTS",
    "DISTINCT",
    "ALL",
)


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    # Longest first so "LEFT JOIN" wins over "LEFT"/"JOIN".
    ordered = sorted(keywords, key=len, reverse=True)
    alternatives = "|".join(r"\s+".join(re.escape(part) for part in kw.split()) for kw in ordered)
    return re.compile(rf"(?<![.\w])(?:{alternatives})(?![\w.])", re.IGNORECASE)


_KEYWORD = _keyword_pattern(SQL_KEYWORDS)
_OPERATOR = re.compile(r"(?<![-<>=!])(<=|>=|<>|!=|==|=|<|>)(?![<>=!])")
_SPACES = re.compile(r" {2,}")
_WHITESPACE = re.compile(r"\s+")

_PRIMARY_CLAUSE = re.compile(
    r"^(?:SELECT|FROM|WHERE|GROUP\s+BY|ORDER\s+BY|HAVING|LIMIT|UNION"
    r"|(?:(?:LEFT|RIGHT|INNER|FULL|CROSS)\s+)?(?:OUTER\s+)?JOIN)\b",
    re.IGNORECASE,
)

# Opening delimiter -> closing delimiter. "\n" closes at end of line.
ATOM_DELIMITERS: dict[str, str] = {
    "{%": "%}",
    "{{": "}}",
    "${": "}",
    "--": "\n",
    "'": "'",
    '"': '"',
}
# Markup segments only treat template tags and substitutions as atoms.
MARKUP_ATOM_DELIMITERS: dict[str, str] = {
    opener: closer for opener, closer in ATOM_DELIMITERS.items() if opener in ("{%", "{{", "${")
}


def _opener_pattern(delimiters: dict[str, str]) -> re.Pattern[str]:
    return re.compile("|".join(re.escape(opener) for opener in delimiters))


_ATOM_OPEN = _opener_pattern(ATOM_DELIMITERS)
_MARKUP_ATOM_OPEN = _opener_pattern(MARKUP_ATOM_DELIMITERS)

COMMENT_PREFIXES = ("--", "#")


class TokenKind(str, Enum):
    TEXT = "text"
    ATOM = "atom"


@dataclass(frozen=True)
class SqlToken:
    kind: TokenKind
    text: str


def tokenize_sql(
    line: str, open_atom: str | None = None, markup: bool = False
) -> tuple[list[SqlToken], str | None]:
    """
    Split one line into TEXT and ATOM tokens.

    Args:
        line: Line text (without newline)
        open_atom: Closing delimiter of an atom still open from a previous
            line, or None
        markup: Only track template tags and substitution tokens

    Returns:
        Tuple of (tokens, closing delimiter of an atom still open at the end
        of the line or None). Concatenating the tokens reproduces ``line``.
    """
    delimiters = MARKUP_ATOM_DELIMITERS if markup else ATOM_DELIMITERS
    opener_pattern = _MARKUP_ATOM_OPEN if markup else _ATOM_OPEN
    tokens: list[SqlToken] = []
    pos = 0

    if open_atom is not None:
        end = _find_close(line, 0, open_atom)
        if end is None:
            return [SqlToken(TokenKind.ATOM, line)], open_atom
        tokens.append(SqlToken(TokenKind.ATOM, line[:end]))
        pos = end

    while pos < len(line):
        match = opener_pattern.search(line, pos)
        if match is None:
            tokens.append(SqlToken(TokenKind.TEXT, line[pos:]))
            break
        if match.start() > pos:
            tokens.append(SqlToken(TokenKind.TEXT, line[pos : match.start()]))
        closer = delimiters[match.group()]
        end = _find_close(line, match.end(), closer)
        if end is None:
            tokens.append(SqlToken(TokenKind.ATOM, line[match.start() :]))
            return tokens, closer if closer != "\n" else None
        tokens.append(SqlToken(TokenKind.ATOM, line[match.start() : end]))
        pos = end

    return tokens, None


def _find_close(line: str, start: int, closer: str) -> int | None:
    """Index just past ``closer`` at or after ``start``, None if absent."""
    if closer == "\n":
        return None
    index = line.find(closer, start)
    if index < 0:
        return None
    return index + len(closer)


def _canonical_keyword(match: re.Match[str]) -> str:
    return _WHITESPACE.sub(" ", match.group()).upper()


def normalize_sql_text(text: str) -> str:
    """
    Apply keyword casing, operator spacing and space collapsing to SQL text
    that contains no opaque atoms.
    """
    text = _KEYWORD.sub(_canonical_keyword, text)
    text = _OPERATOR.sub(r" \1 ", text)
    return _SPACES.sub(" ", text)


def normalize_line(line: str, open_atom: str | None = None) -> tuple[str, str | None]:
    """
    Normalize one SQL line outside the atoms it contains.

    Returns:
        Tuple of (normalized line, atom still open at end of line)
    """
    tokens, still_open = tokenize_sql(line, open_atom)
    parts = [
        normalize_sql_text(token.text) if token.kind == TokenKind.TEXT else token.text
        for token in tokens
    ]
    result = "".join(parts)
    if tokens and tokens[0].kind == TokenKind.TEXT:
        result = result.lstrip()
    if still_open is None:
        result = result.rstrip()
    return result, still_open


def is_primary_clause(line: str) -> bool:
    """True if the line starts with a primary SQL clause keyword."""
    return bool(_PRIMARY_CLAUSE.match(line.lstrip()))


def is_comment_line(line: str) -> bool:
    return line.lstrip().startswith(COMMENT_PREFIXES)


class SegmentRenderer:
    """
    Renders one SQL or markup segment at a given indentation.

    Markup segments (``html`` and the like) only get indentation: every body
    line is placed one level below the property and its text is left alone.
    """

    def __init__(self, indent_unit: str, markup: bool = False):
        self.indent_unit = indent_unit
        self.markup = markup
        self.open_atom: str | None = None

    def indent(self, depth: int) -> str:
        return self.indent_unit * max(depth, 0)

    def render(self, segment: SqlSegment) -> list[str]:
        depth = segment.depth
        prefix = self.indent(depth) + f"{segment.property}:"
        self.open_atom = None

        if segment.inline:
            content, _ = self._rewrite(strip_terminator(segment.opening.value or ""))
            if content:
                return [f"{prefix} {content} {TERMINATOR}"]
            return [f"{prefix} {TERMINATOR}"]

        head, _ = self._rewrite(segment.opening.value or "")
        output = [f"{prefix} {head}" if head else prefix]

        for line in segment.body:
            output.append(self._render_body_line(line.text, depth))

        if segment.closing is not None:
            raw = segment.closing.text
            before = raw[: raw.rfind(TERMINATOR)]
            if before.strip():
                output.append(self._render_body_line(before, depth))
            output.append(self.indent(depth) + TERMINATOR)

        return output

    def _rewrite(self, text: str) -> tuple[str, bool]:
        """Rewrite text, tracking atom state. Returns (text, started inside an atom)."""
        started_inside = self.open_atom is not None
        if self.markup:
            _, self.open_atom = tokenize_sql(text, self.open_atom, markup=True)
            if started_inside:
                return text, started_inside
            text = text.lstrip()
            return (text.rstrip() if self.open_atom is None else text), started_inside
        result, self.open_atom = normalize_line(text, self.open_atom)
        return result, started_inside

    def _render_body_line(self, raw: str, depth: int) -> str:
        if self.open_atom is not None:
            # Inside an atom spanning lines: byte-for-byte.
            self._rewrite(raw)
            return raw

        if not raw.strip():
            return ""

        if is_comment_line(raw):
            return self.indent(depth + 1) + raw.strip()

        text, _ = self._rewrite(raw.lstrip())
        if self.markup or is_primary_clause(text):
            return self.indent(depth + 1) + text
        return self.indent(depth + 2) + text


def render_segment(segment: SqlSegment, indent_unit: str, markup: bool = False) -> list[str]:
    """
    Render a segment as formatted lines.

    Args:
        segment: Segment to render
        indent_unit: One level of indentation
        markup: Only re-indent, never rewrite content

    Returns:
        Output lines, starting with the property line
    """
    return SegmentRenderer(indent_unit, markup=markup).render(segment)
