"""
Structural model of a LookML document.

A Document is an ordered sequence of top-level declarations (view, explore,
model, datagroup, ...) interleaved with interstitial text such as
``include:`` statements, comments and blank lines. Declarations carry their
fields (dimensions, measures, ...) and their remaining non-field content.

The tree is rebuilt from scratch for every format or lint run and is meant
to be read by editor collaborators (hover, completion, code actions)
without re-parsing.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField

from .lines import ClassifiedLine, ParseAnomaly


class DeclarationKind(str, Enum):
    """Kinds of top-level declaration."""

    VIEW = "view"
    EXPLORE = "explore"
    MODEL = "model"
    DATAGROUP = "datagroup"
    OTHER = "other"

    @classmethod
    def from_block_type(cls, block_type: str | None) -> DeclarationKind:
        for kind in cls:
            if kind.value == block_type and kind is not cls.OTHER:
                return kind
        return cls.OTHER


class FieldKind(str, Enum):
    """Kinds of field inside a declaration."""

    DIMENSION = "dimension"
    DIMENSION_GROUP = "dimension_group"
    MEASURE = "measure"
    FILTER = "filter"
    PARAMETER = "parameter"
    OTHER = "other"

    @classmethod
    def from_block_type(cls, block_type: str | None) -> FieldKind:
        for kind in cls:
            if kind.value == block_type and kind is not cls.OTHER:
                return kind
        return cls.OTHER

    @property
    def collection(self) -> str:
        """Plural key used in structural paths (``dimensions``, ``measures``, ...)."""
        return f"{self.value}s"


# Block types that open a Field when they appear directly inside a declaration
FIELD_BLOCK_TYPES = frozenset(
    kind.value for kind in FieldKind if kind is not FieldKind.OTHER
)


class BlockRef(BaseModel):
    """An enclosing block on the nesting stack."""

    type: str | None
    name: str | None
    depth: int

    model_config = ConfigDict(frozen=True)


class Block(BaseModel):
    """
    A nested block that is not a field, e.g. ``derived_table``, ``join`` or
    ``always_filter``.

    Attributes:
        type: Block type before the colon
        name: Block name ("" for anonymous blocks)
        properties: Direct-child properties (first occurrence wins), with any
            ``;;`` terminator removed
        blocks: Direct-child blocks
        start_line: 0-based line of the opening brace
        end_line: 0-based line of the closing brace (None if unterminated)
    """

    type: str | None
    name: str | None = ""
    properties: dict[str, str] = PydanticField(default_factory=dict)
    blocks: list[Block] = PydanticField(default_factory=list)
    start_line: int
    end_line: int | None = None

    model_config = ConfigDict(frozen=True)

    def get(self, key: str) -> str | None:
        return self.properties.get(key)

    def blocks_of(self, block_type: str) -> list[Block]:
        return [b for b in self.blocks if b.type == block_type]

    def first_block(self, block_type: str) -> Block | None:
        found = self.blocks_of(block_type)
        return found[0] if found else None


class Field(BaseModel):
    """
    A typed, named member of a declaration (dimension, measure, ...).

    ``lines`` holds the exact original lines from the opening line to the
    closing brace, so the field can be re-emitted conservatively anywhere.
    ``comments`` are the comment lines that immediately preceded the
    field without an intervening blank line; they travel with the field
    when it is re-ordered.
    """

    kind: FieldKind
    type_name: str
    name: str
    depth: int
    lines: list[ClassifiedLine]
    comments: list[ClassifiedLine] = PydanticField(default_factory=list)
    parent_blocks: list[BlockRef] = PydanticField(default_factory=list)
    properties: dict[str, str] = PydanticField(default_factory=dict)
    blocks: list[Block] = PydanticField(default_factory=list)
    start_line: int
    end_line: int | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def raw_lines(self) -> list[str]:
        return [line.text for line in self.lines]

    @property
    def field_type(self) -> str | None:
        """The LookML ``type:`` property of the field."""
        return self.properties.get("type")

    @property
    def sql(self) -> str | None:
        return self.properties.get("sql")

    @property
    def html(self) -> str | None:
        return self.properties.get("html")

    @property
    def primary_key(self) -> bool:
        value = self.properties.get("primary_key", "")
        return value.strip().lower() in ("yes", "true")

    @property
    def terminated(self) -> bool:
        return self.end_line is not None

    def in_block(self, block_type: str) -> bool:
        """True if the field is nested (at any level) inside a block of this type."""
        return any(ref.type == block_type for ref in self.parent_blocks)


class Declaration(BaseModel):
    """
    A top-level block: view, explore, model, datagroup or another block type.

    Attributes:
        kind: Declaration kind
        type_name: Block type as written (``view``, ``explore``, ``test``, ...)
        name: Declaration name ("" if anonymous)
        header: The opening line
        footer: The closing-brace line, None when unterminated
        content: Non-field lines in source order (properties, nested blocks,
            blank lines and comments not attached to a field)
        fields: Fields in source order
        trailing_comments: Comments after the last field or directly before
            the closing brace, with the blank lines between them
        properties: Direct-child properties of the declaration
        blocks: Direct-child non-field blocks (``join``, ``derived_table``, ...)
    """

    kind: DeclarationKind
    type_name: str
    name: str
    header: ClassifiedLine
    footer: ClassifiedLine | None = None
    content: list[ClassifiedLine] = PydanticField(default_factory=list)
    fields: list[Field] = PydanticField(default_factory=list)
    trailing_comments: list[ClassifiedLine] = PydanticField(default_factory=list)
    properties: dict[str, str] = PydanticField(default_factory=dict)
    blocks: list[Block] = PydanticField(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def start_line(self) -> int:
        return self.header.number

    @property
    def end_line(self) -> int | None:
        return self.footer.number if self.footer is not None else None

    @property
    def terminated(self) -> bool:
        return self.footer is not None

    def get(self, key: str) -> str | None:
        return self.properties.get(key)

    def fields_of(self, kind: FieldKind) -> list[Field]:
        return [f for f in self.fields if f.kind == kind]

    def get_field(self, name: str) -> Field | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def blocks_of(self, block_type: str) -> list[Block]:
        return [b for b in self.blocks if b.type == block_type]

    def first_block(self, block_type: str) -> Block | None:
        found = self.blocks_of(block_type)
        return found[0] if found else None


class Interstitial(BaseModel):
    """Top-level text between declarations, preserved and never restructured."""

    lines: list[ClassifiedLine] = PydanticField(default_factory=list)

    model_config = ConfigDict(frozen=True)


class Document(BaseModel):
    """
    A parsed LookML document.

    ``items`` keeps declarations and interstitial text in source order.
    ``anomalies`` lists every recoverable structural problem; a document
    with anomalies is *degraded* but still exposes everything that was
    successfully opened.
    """

    items: list[Declaration | Interstitial] = PydanticField(default_factory=list)
    anomalies: list[ParseAnomaly] = PydanticField(default_factory=list)
    includes: list[str] = PydanticField(default_factory=list)
    connection: str | None = None
    line_count: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def degraded(self) -> bool:
        return bool(self.anomalies)

    @property
    def nesting_broken(self) -> bool:
        """True if an anomaly leaves the block structure unreliable."""
        return any(anomaly.kind.breaks_nesting for anomaly in self.anomalies)

    @property
    def declarations(self) -> list[Declaration]:
        return [item for item in self.items if isinstance(item, Declaration)]

    def declarations_of(self, kind: DeclarationKind) -> list[Declaration]:
        return [d for d in self.declarations if d.kind == kind]

    @property
    def views(self) -> list[Declaration]:
        return self.declarations_of(DeclarationKind.VIEW)

    @property
    def explores(self) -> list[Declaration]:
        return self.declarations_of(DeclarationKind.EXPLORE)

    @property
    def models(self) -> list[Declaration]:
        return self.declarations_of(DeclarationKind.MODEL)

    def get_view(self, name: str) -> Declaration | None:
        for view in self.views:
            if view.name == name:
                return view
        return None


Block.model_rebuild()
