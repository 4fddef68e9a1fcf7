"""
Field grouping and sorting.

Fields of a declaration are grouped into a fixed sequence of categories
(filters, parameters, dimensions, measures, others) and optionally sorted by
name inside each category. Grouped categories are wrapped in generated
marker comments; the builder recognizes those markers by their exact text
and drops them, so formatting an already formatted document regenerates
the markers instead of duplicating them.
"""

from dataclasses import dataclass, field
from enum import Enum

from .ir import Field, FieldKind


class FieldCategory(str, Enum):
    """Output categories, declared in emission order."""

    FILTERS = "Filters"
    PARAMETERS = "Parameters"
    DIMENSIONS = "Dimensions"
    MEASURES = "Measures"
    OTHERS = "Others"

    @classmethod
    def for_kind(cls, kind: FieldKind) -> "FieldCategory":
        return _CATEGORY_BY_KIND.get(kind, cls.OTHERS)

    @property
    def has_markers(self) -> bool:
        """Others never get section markers."""
        return self is not FieldCategory.OTHERS


_CATEGORY_BY_KIND = {
    FieldKind.FILTER: FieldCategory.FILTERS,
    FieldKind.PARAMETER: FieldCategory.PARAMETERS,
    # Dimension groups share the dimensions section and interleave with dimensions.
    FieldKind.DIMENSION: FieldCategory.DIMENSIONS,
    FieldKind.DIMENSION_GROUP: FieldCategory.DIMENSIONS,
    FieldKind.MEASURE: FieldCategory.MEASURES,
}

CATEGORY_ORDER: tuple[FieldCategory, ...] = tuple(FieldCategory)


def section_markers(category: FieldCategory) -> tuple[str, str]:
    """Leading and trailing marker comments for a category."""
    return (
        f"# ----- {category.value} -----",
        f"# ----- End of {category.value} -----",
    )


MARKER_COMMENTS: frozenset[str] = frozenset(
    marker
    for category in CATEGORY_ORDER
    if category.has_markers
    for marker in section_markers(category)
)


def is_marker_comment(text: str) -> bool:
    """True if the line is a generated section marker."""
    return text.strip() in MARKER_COMMENTS


def sort_key(name: str) -> tuple[str, str]:
    """
    Ordering key for field names.

    Case-insensitive first, then by exact name so that ``Amount`` and
    ``amount`` always come out in the same order. Independent of the
    process locale.
    """
    return (name.casefold(), name)


@dataclass
class FieldSection:
    """
    A run of fields emitted together.

    Attributes:
        category: Category of the fields, None when fields keep source order
        fields: Fields in emission order
        marked: Whether the section is wrapped in marker comments
    """

    category: FieldCategory | None
    fields: list[Field] = field(default_factory=list)
    marked: bool = False

    @property
    def markers(self) -> tuple[str, str] | None:
        if not self.marked or self.category is None:
            return None
        return section_markers(self.category)


def categorize(fields: list[Field]) -> dict[FieldCategory, list[Field]]:
    """Bucket fields by category, keeping source order inside each bucket."""
    buckets: dict[FieldCategory, list[Field]] = {category: [] for category in CATEGORY_ORDER}
    for f in fields:
        buckets[FieldCategory.for_kind(f.kind)].append(f)
    return buckets


def organize(fields: list[Field], group: bool, sort: bool) -> list[FieldSection]:
    """
    Arrange fields into sections for emission.

    Args:
        fields: Fields in source order
        group: Wrap non-empty categories in marker comments
        sort: Sort by name within each category

    Returns:
        Non-empty sections in emission order. With neither grouping nor
        sorting, a single unmarked section in source order.
    """
    if not fields:
        return []
    if not group and not sort:
        return [FieldSection(category=None, fields=list(fields))]

    sections = []
    for category, members in categorize(fields).items():
        if not members:
            continue
        if sort:
            members = sorted(members, key=lambda f: sort_key(f.name))
        sections.append(
            FieldSection(
                category=category,
                fields=members,
                marked=group and category.has_markers,
            )
        )
    return sections
