"""Tests for the LookML line classifier."""

from lookml_support.core.ir import AnomalyKind, LineKind, SqlSegment
from lookml_support.core.lexer import (
    classify_lines,
    group_segments,
    split_lines,
    split_trailing_comment,
)

VIEW = """view: orders {
  sql_table_name: public.orders ;;
  # comment

  dimension: id {
    sql:
      CASE WHEN x = '{' THEN 1 END
    ;;
  }
}"""


class TestClassification:
    """Tests for per-line kinds and depths."""

    def test_kinds(self) -> None:
        """Every line gets the expected classification."""
        result = classify_lines(VIEW)
        assert [line.kind for line in result.lines] == [
            LineKind.BLOCK_OPEN,
            LineKind.SQL_INLINE,
            LineKind.COMMENT,
            LineKind.BLANK,
            LineKind.BLOCK_OPEN,
            LineKind.SQL_OPEN,
            LineKind.SQL_CONTENT,
            LineKind.SQL_CLOSE,
            LineKind.BLOCK_CLOSE,
            LineKind.BLOCK_CLOSE,
        ]
        assert not result.degraded

    def test_depth_is_recorded_before_the_line(self) -> None:
        """Depth is the nesting depth before each line is consumed."""
        result = classify_lines(VIEW)
        assert [line.depth for line in result.lines] == [0, 1, 1, 1, 1, 2, 2, 2, 2, 1]

    def test_closing_brace_renders_one_level_out(self) -> None:
        """A closing brace is indented like the line that opened its block."""
        result = classify_lines(VIEW)
        assert result.lines[8].indent_depth == 1
        assert result.lines[9].indent_depth == 0

    def test_block_key_and_name(self) -> None:
        result = classify_lines(VIEW)
        assert result.lines[0].key == "view"
        assert result.lines[0].name == "orders"
        assert result.lines[4].key == "dimension"
        assert result.lines[4].name == "id"

    def test_braces_inside_sql_do_not_open_blocks(self) -> None:
        """A brace inside an open SQL segment is SQL text."""
        result = classify_lines("view: a {\n  sql:\n    x = '{\n  ;;\n}")
        assert result.lines[2].kind == LineKind.SQL_CONTENT
        assert result.lines[4].kind == LineKind.BLOCK_CLOSE
        assert not result.degraded

    def test_compact_spacing(self) -> None:
        """Headers and properties are recognized without spaces."""
        result = classify_lines("view:orders{\ntype:number\nsql:${TABLE}.id;;\n}")
        assert result.lines[0].kind == LineKind.BLOCK_OPEN
        assert result.lines[0].name == "orders"
        assert result.lines[1].kind == LineKind.PROPERTY
        assert result.lines[1].value == "number"
        assert result.lines[2].kind == LineKind.SQL_INLINE

    def test_inline_block(self) -> None:
        result = classify_lines("explore: orders {}")
        line = result.lines[0]
        assert line.kind == LineKind.INLINE_BLOCK
        assert line.key == "explore"
        assert line.name == "orders"
        assert line.value == ""

    def test_refinement_name(self) -> None:
        """Refinement names keep their leading plus sign."""
        result = classify_lines("view: +orders {\n}")
        assert result.lines[0].name == "+orders"

    def test_anonymous_block(self) -> None:
        result = classify_lines("view: a {\n  derived_table: {\n  }\n}")
        assert result.lines[1].kind == LineKind.BLOCK_OPEN
        assert result.lines[1].name == ""

    def test_url_line_is_not_a_property(self) -> None:
        """A colon followed by // does not make a property."""
        result = classify_lines("https://example.com/a")
        assert result.lines[0].kind == LineKind.CONTENT

    def test_markup_property_opens_segment(self) -> None:
        result = classify_lines("html: <b>{{ value }}</b> ;;")
        assert result.lines[0].kind == LineKind.SQL_INLINE
        assert result.lines[0].key == "html"

    def test_templated_sql_is_not_an_inline_block(self) -> None:
        """A segment ending in a template tag is still a segment."""
        result = classify_lines("sql: {% if x %} ${TABLE}.a {% endif %} ;;")
        assert result.lines[0].kind == LineKind.SQL_INLINE

        result = classify_lines("sql:\n  {% if x %} a {% else %} b {% endif %}\n;;")
        assert result.lines[0].kind == LineKind.SQL_OPEN
        assert not result.degraded

    def test_comment_after_brace(self) -> None:
        """A trailing comment does not hide the brace that opens or closes a block."""
        result = classify_lines(
            "view: a {\n  dimension: id { # pk\n    type: number\n  } # end of id\n  measure: m {\n  }\n}"
        )
        assert result.lines[1].kind == LineKind.BLOCK_OPEN
        assert (result.lines[1].key, result.lines[1].name) == ("dimension", "id")
        assert result.lines[3].kind == LineKind.BLOCK_CLOSE
        assert result.lines[4].depth == 1
        assert not result.degraded

    def test_hash_inside_quotes_is_not_a_comment(self) -> None:
        assert split_trailing_comment('label: "a # b"') == ('label: "a # b"', None)
        assert split_trailing_comment("} ;; # done") == ("} ;;", "# done")

    def test_custom_segment_properties(self) -> None:
        """Only the configured property names open segments."""
        result = classify_lines("sql_custom: a\n;;", segment_properties={"sql_custom"})
        assert result.lines[0].kind == LineKind.SQL_OPEN
        assert result.lines[1].kind == LineKind.SQL_CLOSE

        result = classify_lines("sql: a", segment_properties={"sql_custom"})
        assert result.lines[0].kind == LineKind.PROPERTY


class TestAnomalies:
    """Tests for recoverable structural problems."""

    def test_unmatched_close(self) -> None:
        result = classify_lines("}")
        assert [a.kind for a in result.anomalies] == [AnomalyKind.UNMATCHED_CLOSE]
        assert result.lines[0].depth == 0
        assert result.degraded

    def test_unterminated_blocks_innermost_first(self) -> None:
        result = classify_lines("view: a {\n  dimension: b {")
        assert [a.kind for a in result.anomalies] == [
            AnomalyKind.UNTERMINATED_BLOCK,
            AnomalyKind.UNTERMINATED_BLOCK,
        ]
        assert [a.line for a in result.anomalies] == [1, 0]

    def test_unterminated_sql(self) -> None:
        """An open segment swallows the closing brace."""
        result = classify_lines("view: a {\n  sql: select 1\n}")
        assert result.lines[2].kind == LineKind.SQL_CONTENT
        assert [a.kind for a in result.anomalies] == [
            AnomalyKind.UNTERMINATED_SQL,
            AnomalyKind.UNTERMINATED_BLOCK,
        ]

    def test_malformed_identifier(self) -> None:
        """A header without a readable name still opens a block."""
        result = classify_lines("view: my view {\n}")
        assert result.lines[0].kind == LineKind.BLOCK_OPEN
        assert result.lines[0].key == "view"
        assert result.lines[0].name is None
        assert result.lines[1].depth == 1
        assert [a.kind for a in result.anomalies] == [AnomalyKind.MALFORMED_IDENTIFIER]

    def test_anomaly_str_is_one_based(self) -> None:
        result = classify_lines("}")
        assert str(result.anomalies[0]).startswith("line 1:")


class TestSplitLines:
    def test_empty(self) -> None:
        assert split_lines("") == []

    def test_crlf(self) -> None:
        assert split_lines("view: a {\r\n}\r\n") == ["view: a {", "}", ""]


class TestGroupSegments:
    """Tests for folding segment lines into SqlSegment units."""

    def test_segments_are_grouped(self) -> None:
        items = group_segments(classify_lines(VIEW).lines)
        assert len(items) == 8
        segments = [item for item in items if isinstance(item, SqlSegment)]
        assert [s.property for s in segments] == ["sql_table_name", "sql"]
        assert segments[0].inline
        assert not segments[1].inline
        assert segments[1].terminated

    def test_segment_text(self) -> None:
        """Segment text drops the property name and the terminator."""
        items = group_segments(classify_lines(VIEW).lines)
        segments = [item for item in items if isinstance(item, SqlSegment)]
        assert segments[0].text == "public.orders"
        assert segments[1].text == "CASE WHEN x = '{' THEN 1 END"

    def test_unterminated_segment(self) -> None:
        items = group_segments(classify_lines("sql: select 1\nfrom t").lines)
        assert len(items) == 1
        segment = items[0]
        assert isinstance(segment, SqlSegment)
        assert not segment.terminated
        assert segment.text == "select 1\nfrom t"
