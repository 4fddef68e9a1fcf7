"""Tests for the simplified regex-based parser."""

from lookml_support.core.simple_parser import extract_fields, parse_simple


class TestParseSimple:
    """Tests for the fallback lint-model extractor."""

    def test_empty_input(self) -> None:
        model = parse_simple("")
        assert model.views == {}
        assert model.explores == {}
        assert model.models == {}

    def test_view_fields(self, orders_view: str) -> None:
        view = parse_simple(orders_view).views["orders"]
        assert view.sql_table_name == "public.orders"
        assert list(view.dimensions) == ["pk", "status"]
        assert list(view.dimension_groups) == ["created"]
        assert list(view.measures) == ["count"]
        assert list(view.filters) == ["date_filter"]
        assert list(view.parameters) == ["metric"]

    def test_field_properties(self, pk_naming_view: str) -> None:
        dimension = parse_simple(pk_naming_view).views["orders"].dimensions["user_id"]
        assert dimension.primary_key
        assert dimension.type == "number"
        assert dimension.sql == "${TABLE}.user_id"
        assert dimension.line is None

    def test_explore_joins(self, ecommerce_model: str) -> None:
        explore = parse_simple(ecommerce_model).explores["order_items"]
        assert explore.view_name == "order_items"
        assert list(explore.joins) == ["orders", "users"]
        assert explore.joins["orders"].sql_on == "order_items.order_id = orders.id"
        assert explore.joins["orders"].relationship == "many_to_one"

    def test_model_block(self) -> None:
        model = parse_simple('model: shop {\n  connection: "warehouse"\n  include: "/views/*.lkml"\n}')
        spec = model.models["shop"]
        assert spec.connection == "warehouse"
        assert spec.includes == ["/views/*.lkml"]

    def test_derived_table(self) -> None:
        view = parse_simple(
            "view: summary {\n  derived_table: {\n    sql: SELECT 1 ;;\n  }\n}"
        ).views["summary"]
        assert view.derived_table is not None
        assert view.derived_table.sql == "SELECT 1"
        assert view.is_table_backed

    def test_unterminated_input(self) -> None:
        """Whatever the patterns can see is still returned."""
        model = parse_simple("view: orders {\n  sql_table_name: public.orders ;;\n  dimension: id {\n")
        assert model.views["orders"].sql_table_name == "public.orders"

    def test_extract_fields_first_wins(self) -> None:
        body = "\n  measure: m {\n    type: sum\n  }\n  measure: m {\n    type: count\n  }"
        assert extract_fields(body, "measure")["m"].type == "sum"
