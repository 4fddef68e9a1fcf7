"""
Extract the keyed lint model from a structural Document.
"""

from .ir import (
    Block,
    Declaration,
    DeclarationKind,
    DerivedTableSpec,
    Document,
    ExploreSpec,
    Field,
    FieldSpec,
    JoinSpec,
    LineKind,
    LintModel,
    ModelSpec,
    ViewSpec,
    strip_terminator,
)


def unquote(value: str | None) -> str | None:
    if value is None:
        return None
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _field_spec(field: Field) -> FieldSpec:
    return FieldSpec(
        name=field.name,
        type=field.field_type,
        sql=field.sql,
        html=field.html,
        primary_key=field.primary_key,
        label=unquote(field.properties.get("label")),
        description=unquote(field.properties.get("description")),
        line=field.start_line,
    )


def _view_spec(declaration: Declaration) -> ViewSpec:
    derived = declaration.first_block("derived_table")
    derived_spec = None
    if derived is not None:
        source = derived.first_block("explore_source")
        derived_spec = DerivedTableSpec(
            sql=derived.get("sql"),
            explore_source=source.name if source is not None else None,
            line=derived.start_line,
        )

    view = ViewSpec(
        name=declaration.name,
        sql_table_name=declaration.get("sql_table_name"),
        derived_table=derived_spec,
        line=declaration.start_line,
    )
    collections = view.field_collections()
    for field in declaration.fields:
        collection = collections.get(field.kind.collection)
        if collection is not None:
            collection.setdefault(field.name, _field_spec(field))
    return view


def _join_spec(block: Block) -> JoinSpec:
    return JoinSpec(
        name=block.name or "",
        sql_on=block.get("sql_on"),
        relationship=block.get("relationship"),
        type=block.get("type"),
        view_label=unquote(block.get("view_label")),
        line=block.start_line,
    )


def _explore_spec(name: str, properties: dict[str, str], joins: list[Block], line: int) -> ExploreSpec:
    explore = ExploreSpec(name=name, view_name=properties.get("view_name"), line=line)
    for join in joins:
        explore.joins.setdefault(join.name or "", _join_spec(join))
    return explore


def _model_spec(declaration: Declaration) -> ModelSpec:
    includes = [
        unquote(strip_terminator(line.value or "")) or ""
        for line in declaration.content
        if line.kind == LineKind.PROPERTY
        and line.key == "include"
        and line.depth == declaration.header.depth + 1
    ]
    return ModelSpec(
        name=declaration.name,
        connection=unquote(declaration.get("connection")),
        includes=includes,
        line=declaration.start_line,
    )


def extract_lint_model(document: Document) -> LintModel:
    """
    Build the lint model from a parsed document.

    Explores declared inside a ``model`` block are included alongside
    top-level explores. When names repeat, the first declaration wins.
    Line numbers are 0-based.
    """
    model = LintModel()

    for declaration in document.declarations:
        if declaration.kind == DeclarationKind.VIEW:
            model.views.setdefault(declaration.name, _view_spec(declaration))

        elif declaration.kind == DeclarationKind.EXPLORE:
            model.explores.setdefault(
                declaration.name,
                _explore_spec(
                    declaration.name,
                    declaration.properties,
                    declaration.blocks_of("join"),
                    declaration.start_line,
                ),
            )

        elif declaration.kind == DeclarationKind.MODEL:
            model.models.setdefault(declaration.name, _model_spec(declaration))
            for block in declaration.blocks_of("explore"):
                model.explores.setdefault(
                    block.name or "",
                    _explore_spec(
                        block.name or "", block.properties, block.blocks_of("join"), block.start_line
                    ),
                )

    return model
