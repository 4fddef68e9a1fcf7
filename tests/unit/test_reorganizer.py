"""Tests for field grouping and sorting."""

import pytest

from lookml_support.core.builder import build_document
from lookml_support.core.ir import Field, FieldKind
from lookml_support.core.reorganizer import (
    CATEGORY_ORDER,
    FieldCategory,
    is_marker_comment,
    organize,
    section_markers,
    sort_key,
)

VIEW = """view: sales {
  measure: total_sales {
    type: sum
  }
  dimension: zebra {
  }
  parameter: metric {
  }
  dimension_group: created {
  }
  dimension: apple {
  }
  filter: date_filter {
  }
}
"""


@pytest.fixture
def fields() -> list[Field]:
    return build_document(VIEW).views[0].fields


def names(sections) -> list[list[str]]:
    return [[f.name for f in section.fields] for section in sections]


class TestCategories:
    def test_emission_order(self) -> None:
        assert CATEGORY_ORDER == (
            FieldCategory.FILTERS,
            FieldCategory.PARAMETERS,
            FieldCategory.DIMENSIONS,
            FieldCategory.MEASURES,
            FieldCategory.OTHERS,
        )

    def test_dimension_groups_share_dimensions(self) -> None:
        assert FieldCategory.for_kind(FieldKind.DIMENSION_GROUP) == FieldCategory.DIMENSIONS
        assert FieldCategory.for_kind(FieldKind.OTHER) == FieldCategory.OTHERS

    def test_others_have_no_markers(self) -> None:
        assert not FieldCategory.OTHERS.has_markers
        assert FieldCategory.MEASURES.has_markers


class TestMarkers:
    def test_marker_text(self) -> None:
        assert section_markers(FieldCategory.DIMENSIONS) == (
            "# ----- Dimensions -----",
            "# ----- End of Dimensions -----",
        )

    def test_markers_match_exactly(self) -> None:
        """Only the exact generated text counts as a marker."""
        assert is_marker_comment("    # ----- Measures -----")
        assert not is_marker_comment("# ----- measures -----")
        assert not is_marker_comment("# ----- Others -----")


class TestSortKey:
    def test_case_insensitive_then_exact(self) -> None:
        assert sorted(["b", "Amount", "amount", "A"], key=sort_key) == ["A", "Amount", "amount", "b"]


class TestOrganize:
    """Tests for arranging fields into sections."""

    def test_group_and_sort(self, fields: list[Field]) -> None:
        sections = organize(fields, group=True, sort=True)
        assert [s.category for s in sections] == [
            FieldCategory.FILTERS,
            FieldCategory.PARAMETERS,
            FieldCategory.DIMENSIONS,
            FieldCategory.MEASURES,
        ]
        assert names(sections) == [
            ["date_filter"],
            ["metric"],
            ["apple", "created", "zebra"],
            ["total_sales"],
        ]
        assert all(s.marked for s in sections)

    def test_group_without_sort(self, fields: list[Field]) -> None:
        """Grouping alone keeps source order inside each category."""
        sections = organize(fields, group=True, sort=False)
        assert names(sections)[2] == ["zebra", "created", "apple"]

    def test_sort_without_group(self, fields: list[Field]) -> None:
        """Sorting alone keeps the category order but emits no markers."""
        sections = organize(fields, group=False, sort=True)
        assert names(sections)[2] == ["apple", "created", "zebra"]
        assert not any(s.marked for s in sections)
        assert all(s.markers is None for s in sections)

    def test_neither(self, fields: list[Field]) -> None:
        """With both off, a single section in source order."""
        sections = organize(fields, group=False, sort=False)
        assert len(sections) == 1
        assert sections[0].category is None
        assert names(sections) == [
            ["total_sales", "zebra", "metric", "created", "apple", "date_filter"]
        ]

    def test_no_fields(self) -> None:
        assert organize([], group=True, sort=True) == []

    def test_sorting_is_stable_for_duplicates(self) -> None:
        view = build_document(
            "view: a {\n  dimension: x {\n    type: number\n  }\n  dimension: x {\n    type: string\n  }\n}"
        ).views[0]
        sections = organize(view.fields, group=True, sort=True)
        assert [f.field_type for f in sections[0].fields] == ["number", "string"]
