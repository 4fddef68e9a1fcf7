"""Tests for the structural document builder."""

from lookml_support.core.builder import build_document
from lookml_support.core.ir import (
    AnomalyKind,
    DeclarationKind,
    FieldKind,
    Interstitial,
    LineKind,
)


class TestDeclarations:
    """Tests for top-level declaration structure."""

    def test_view_and_explore(self, orders_view: str) -> None:
        """Declarations come out in source order with their kinds."""
        document = build_document(orders_view)
        assert [(d.kind, d.name) for d in document.declarations] == [
            (DeclarationKind.VIEW, "orders"),
            (DeclarationKind.EXPLORE, "orders"),
        ]
        assert not document.degraded

    def test_interstitial_text_is_kept(self, orders_view: str) -> None:
        document = build_document(orders_view)
        first = document.items[0]
        assert isinstance(first, Interstitial)
        assert first.lines[0].text == "# Orders view"

    def test_includes_and_connection(self, ecommerce_model: str) -> None:
        """Top-level include and connection values are unquoted."""
        document = build_document(ecommerce_model)
        assert document.includes == ["/views/*.view.lkml"]
        assert document.connection == "warehouse"

    def test_other_declaration_kinds(self, ecommerce_model: str) -> None:
        document = build_document(ecommerce_model)
        kinds = [d.kind for d in document.declarations]
        assert kinds == [DeclarationKind.DATAGROUP, DeclarationKind.EXPLORE]

        unknown = build_document("test: my_test {\n}")
        assert unknown.declarations[0].kind == DeclarationKind.OTHER
        assert unknown.declarations[0].type_name == "test"

    def test_inline_declaration(self) -> None:
        """An inline block at the top level is a complete declaration."""
        document = build_document("explore: orders {}")
        declaration = document.declarations[0]
        assert declaration.kind == DeclarationKind.EXPLORE
        assert declaration.name == "orders"
        assert declaration.terminated
        assert declaration.fields == []

    def test_declaration_lines(self, orders_view: str) -> None:
        document = build_document(orders_view)
        view = document.get_view("orders")
        assert view is not None
        assert view.start_line == 3
        assert view.end_line is not None
        assert view.end_line > view.start_line

    def test_view_properties_and_blocks(self) -> None:
        """Direct-child properties and nested blocks are exposed."""
        document = build_document(
            """view: orders_summary {
  derived_table: {
    sql: SELECT 1 ;;
  }
  label: "Summary"
}
"""
        )
        view = document.views[0]
        assert view.get("label") == '"Summary"'
        derived = view.first_block("derived_table")
        assert derived is not None
        assert derived.name == ""
        assert derived.get("sql") == "SELECT 1"

    def test_explore_joins(self, ecommerce_model: str) -> None:
        document = build_document(ecommerce_model)
        explore = document.explores[0]
        assert explore.get("view_name") == "order_items"
        joins = explore.blocks_of("join")
        assert [j.name for j in joins] == ["orders", "users"]
        assert joins[0].get("sql_on") == "order_items.order_id = orders.id"
        assert joins[0].get("relationship") == "many_to_one"


class TestFields:
    """Tests for fields inside declarations."""

    def test_field_kinds(self, orders_view: str) -> None:
        view = build_document(orders_view).get_view("orders")
        assert view is not None
        assert [(f.kind, f.name) for f in view.fields] == [
            (FieldKind.FILTER, "date_filter"),
            (FieldKind.PARAMETER, "metric"),
            (FieldKind.DIMENSION_GROUP, "created"),
            (FieldKind.DIMENSION, "pk"),
            (FieldKind.DIMENSION, "status"),
            (FieldKind.MEASURE, "count"),
        ]

    def test_field_properties(self, orders_view: str) -> None:
        view = build_document(orders_view).get_view("orders")
        assert view is not None
        pk = view.get_field("pk")
        assert pk is not None
        assert pk.primary_key
        assert pk.field_type == "number"
        assert pk.sql == "${TABLE}.id"

        status = view.get_field("status")
        assert status is not None
        assert status.sql == "case when ${TABLE}.status='a' then 'Active'\nelse 'Other' end"
        assert status.html == "<b>{{ value }}</b>"

    def test_raw_lines_are_preserved(self, orders_view: str) -> None:
        view = build_document(orders_view).get_view("orders")
        assert view is not None
        count = view.get_field("count")
        assert count is not None
        assert count.raw_lines == ["  measure: count {", "    type: count", "  }"]

    def test_leading_comment_travels_with_field(self, orders_view: str) -> None:
        view = build_document(orders_view).get_view("orders")
        assert view is not None
        date_filter = view.get_field("date_filter")
        assert date_filter is not None
        assert [c.stripped for c in date_filter.comments] == ["# filters first"]

    def test_blank_line_detaches_comment(self) -> None:
        document = build_document(
            "view: a {\n  # about a\n\n  dimension: b {\n  }\n}"
        )
        view = document.views[0]
        assert view.fields[0].comments == []
        assert [line.stripped for line in view.content if line.stripped] == ["# about a"]

    def test_trailing_comments(self) -> None:
        document = build_document("view: a {\n  dimension: b {\n  }\n  # the end\n}")
        view = document.views[0]
        assert [c.stripped for c in view.trailing_comments] == ["# the end"]

    def test_trailing_comments_before_blank_line(self) -> None:
        """A blank line between the last comment and the brace does not detach it."""
        document = build_document("view: a {\n  dimension: b {\n  }\n\n  # the end\n\n}")
        view = document.views[0]
        assert [c.stripped for c in view.trailing_comments if c.stripped] == ["# the end"]
        assert all(line.kind != LineKind.COMMENT for line in view.content)

    def test_section_markers_are_dropped(self) -> None:
        """Generated marker comments are not kept as content or comments."""
        document = build_document(
            """view: a {
  # ----- Dimensions -----
  dimension: b {
  }
  # ----- End of Dimensions -----
}
"""
        )
        view = document.views[0]
        assert view.fields[0].comments == []
        assert view.trailing_comments == []
        assert all(line.kind != LineKind.COMMENT for line in view.content)

    def test_field_parent_block(self, orders_view: str) -> None:
        view = build_document(orders_view).get_view("orders")
        assert view is not None
        assert view.fields[0].in_block("view")
        assert not view.fields[0].in_block("explore")

    def test_nested_blocks_in_fields(self, orders_view: str) -> None:
        view = build_document(orders_view).get_view("orders")
        assert view is not None
        metric = view.get_field("metric")
        assert metric is not None
        assert [b.type for b in metric.blocks] == ["allowed_value"]


class TestDegradedInput:
    """Tests for partial trees on malformed input."""

    def test_unterminated_dimension_and_view(self) -> None:
        """Whatever was opened stays in the tree."""
        document = build_document("view: orders {\n  dimension: id {\n    type: number\n")
        assert document.degraded
        assert {a.kind for a in document.anomalies} == {AnomalyKind.UNTERMINATED_BLOCK}

        view = document.get_view("orders")
        assert view is not None
        assert not view.terminated
        assert [f.name for f in view.fields] == ["id"]
        assert not view.fields[0].terminated
        assert view.fields[0].field_type == "number"

    def test_unmatched_close(self) -> None:
        document = build_document("}\nview: a {\n}")
        assert document.degraded
        assert document.nesting_broken
        assert [d.name for d in document.declarations] == ["a"]

    def test_malformed_field_header_is_content(self) -> None:
        document = build_document("view: a {\n  dimension: bad name {\n  }\n}")
        view = document.views[0]
        assert view.fields == []
        assert any(a.kind == AnomalyKind.MALFORMED_IDENTIFIER for a in document.anomalies)
        assert document.degraded
        assert not document.nesting_broken


class TestEmptyInput:
    def test_empty_document(self) -> None:
        """Collections are empty, not absent."""
        document = build_document("")
        assert document.items == []
        assert document.declarations == []
        assert document.views == []
        assert document.includes == []
        assert document.anomalies == []
        assert document.connection is None
