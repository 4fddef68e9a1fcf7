"""
The keyed LookML model consumed by lint rules.

Both the structural builder (via ``extract_lint_model``) and the simplified
fallback parser produce this shape, so rules never depend on which parser
ran. Collections are keyed by name, mirroring how LookML itself addresses
views, explores and fields. Line numbers are 0-based and only known when the
structural parser produced the model.
"""

from __future__ import annotations

from pydantic import BaseModel
from pydantic import Field as PydanticField


class FieldSpec(BaseModel):
    """A dimension, dimension group, measure, filter or parameter."""

    name: str
    type: str | None = None
    sql: str | None = None
    html: str | None = None
    primary_key: bool = False
    label: str | None = None
    description: str | None = None
    line: int | None = None


class DerivedTableSpec(BaseModel):
    """The ``derived_table`` block of a view."""

    sql: str | None = None
    explore_source: str | None = None
    line: int | None = None


class ViewSpec(BaseModel):
    """
    A view with its fields grouped by kind.

    Attributes:
        name: View name
        sql_table_name: Backing table, if declared
        derived_table: Derived table block, if declared
        dimensions / dimension_groups / measures / filters / parameters:
            Fields keyed by name
    """

    name: str
    sql_table_name: str | None = None
    derived_table: DerivedTableSpec | None = None
    dimensions: dict[str, FieldSpec] = PydanticField(default_factory=dict)
    dimension_groups: dict[str, FieldSpec] = PydanticField(default_factory=dict)
    measures: dict[str, FieldSpec] = PydanticField(default_factory=dict)
    filters: dict[str, FieldSpec] = PydanticField(default_factory=dict)
    parameters: dict[str, FieldSpec] = PydanticField(default_factory=dict)
    line: int | None = None

    @property
    def is_table_backed(self) -> bool:
        """True if the view declares a backing table or a derived table."""
        return bool(self.sql_table_name) or self.derived_table is not None

    def field_collections(self) -> dict[str, dict[str, FieldSpec]]:
        return {
            "dimensions": self.dimensions,
            "dimension_groups": self.dimension_groups,
            "measures": self.measures,
            "filters": self.filters,
            "parameters": self.parameters,
        }


class JoinSpec(BaseModel):
    """A ``join`` block inside an explore."""

    name: str
    sql_on: str | None = None
    relationship: str | None = None
    type: str | None = None
    view_label: str | None = None
    line: int | None = None


class ExploreSpec(BaseModel):
    """An explore and its joins."""

    name: str
    view_name: str | None = None
    joins: dict[str, JoinSpec] = PydanticField(default_factory=dict)
    line: int | None = None


class ModelSpec(BaseModel):
    """A ``model`` block."""

    name: str
    connection: str | None = None
    includes: list[str] = PydanticField(default_factory=list)
    line: int | None = None


class LintModel(BaseModel):
    """Views, explores and models of one document, keyed by name."""

    views: dict[str, ViewSpec] = PydanticField(default_factory=dict)
    explores: dict[str, ExploreSpec] = PydanticField(default_factory=dict)
    models: dict[str, ModelSpec] = PydanticField(default_factory=dict)
