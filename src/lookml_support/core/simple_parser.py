"""
Simplified regex-based LookML parser.

Used as the fallback path for linting: it extracts views, explores and
models with a handful of regular expressions, without tracking structure.
It never raises and returns empty collections for empty input. Line numbers
are not tracked; violations built from this model are located afterwards.
"""

import logging
import re

from .ir import (
    DerivedTableSpec,
    ExploreSpec,
    FieldSpec,
    JoinSpec,
    LintModel,
    ModelSpec,
    ViewSpec,
    strip_terminator,
)

logger = logging.getLogger(__name__)

_NAME = r"([A-Za-z0-9_+]+)"
_NEXT_DECLARATION = r"(?=\n\s*view:|\n\s*explore:|\n\s*model:|\s*\Z)"

_VIEW = re.compile(rf"(?<![\w])view:\s+{_NAME}\s*\{{([\s\S]*?){_NEXT_DECLARATION}")
_EXPLORE = re.compile(rf"(?<![\w])explore:\s+{_NAME}\s*\{{([\s\S]*?){_NEXT_DECLARATION}")
_MODEL = re.compile(rf"(?<![\w])model:\s+{_NAME}\s*\{{([\s\S]*?){_NEXT_DECLARATION}")
_JOIN = re.compile(rf"(?<![\w])join:\s+{_NAME}\s*\{{([\s\S]*?)(?=\n\s*join:|\n\s*\}})")

_SQL_TABLE_NAME = re.compile(r"sql_table_name:\s*([^\n]+)")
_DERIVED_TABLE = re.compile(r"derived_table:\s*\{([\s\S]*?)(?=\n\s*\})")
_EXPLORE_SOURCE = re.compile(r"explore_source:\s*([A-Za-z0-9_]+)")
_VIEW_NAME = re.compile(r"view_name:\s*([^\n]+)")
_RELATIONSHIP = re.compile(r"relationship:\s*([^\n]+)")
_CONNECTION = re.compile(r"connection:\s*([^\n]+)")
_INCLUDE = re.compile(r'include:\s*"([^"]+)"')

_TYPE = re.compile(r"(?<![\w])type:\s*([^\n]+)")
_PRIMARY_KEY = re.compile(r"primary_key:\s*(yes|true|no|false)", re.IGNORECASE)
_LABEL = re.compile(r'(?<![\w])label:\s*"([^"]+)"')
_DESCRIPTION = re.compile(r'description:\s*"([^"]+)"')

FIELD_TYPES = ("dimension", "dimension_group", "measure", "filter", "parameter")


def _segment(prop: str, content: str) -> str | None:
    """Value of a ;;-terminated property, up to the next property line."""
    match = re.search(rf"(?<![\w]){prop}:\s*([\s\S]*?)(?=\n\s*[A-Za-z_]+:|\Z)", content)
    if not match:
        return None
    return strip_terminator(match.group(1))


def _first(pattern: re.Pattern[str], content: str) -> str | None:
    match = pattern.search(content)
    return match.group(1).strip() if match else None


def _field_pattern(field_type: str) -> re.Pattern[str]:
    others = "|".join(rf"\n\s*{t}:" for t in FIELD_TYPES)
    return re.compile(
        rf"(?<![\w]){field_type}:\s+{_NAME}\s*\{{([\s\S]*?)(?=\n\s*{field_type}:|{others}|\n\s*\}})"
    )


_FIELD_PATTERNS = {field_type: _field_pattern(field_type) for field_type in FIELD_TYPES}


def extract_fields(content: str, field_type: str) -> dict[str, FieldSpec]:
    fields: dict[str, FieldSpec] = {}
    for match in _FIELD_PATTERNS[field_type].finditer(content):
        name, body = match.group(1), match.group(2)
        pk = _PRIMARY_KEY.search(body)
        fields.setdefault(
            name,
            FieldSpec(
                name=name,
                type=_first(_TYPE, body),
                sql=_segment("sql", body),
                html=_segment("html", body),
                primary_key=bool(pk) and pk.group(1).lower() in ("yes", "true"),
                label=_first(_LABEL, body),
                description=_first(_DESCRIPTION, body),
            ),
        )
    return fields


def extract_views(content: str, model: LintModel) -> None:
    for match in _VIEW.finditer(content):
        name, body = match.group(1), match.group(2)

        derived = None
        derived_match = _DERIVED_TABLE.search(body)
        if derived_match:
            derived = DerivedTableSpec(
                sql=_segment("sql", derived_match.group(1)) or "",
                explore_source=_first(_EXPLORE_SOURCE, derived_match.group(1)),
            )

        sql_table_name = _first(_SQL_TABLE_NAME, body)
        model.views.setdefault(
            name,
            ViewSpec(
                name=name,
                sql_table_name=strip_terminator(sql_table_name) if sql_table_name else None,
                derived_table=derived,
                dimensions=extract_fields(body, "dimension"),
                dimension_groups=extract_fields(body, "dimension_group"),
                measures=extract_fields(body, "measure"),
                filters=extract_fields(body, "filter"),
                parameters=extract_fields(body, "parameter"),
            ),
        )


def extract_joins(content: str) -> dict[str, JoinSpec]:
    joins: dict[str, JoinSpec] = {}
    for match in _JOIN.finditer(content):
        name, body = match.group(1), match.group(2)
        joins.setdefault(
            name,
            JoinSpec(
                name=name,
                sql_on=_segment("sql_on", body),
                relationship=_first(_RELATIONSHIP, body),
                type=_first(_TYPE, body),
            ),
        )
    return joins


def extract_explores(content: str, model: LintModel) -> None:
    for match in _EXPLORE.finditer(content):
        name, body = match.group(1), match.group(2)
        model.explores.setdefault(
            name,
            ExploreSpec(name=name, view_name=_first(_VIEW_NAME, body), joins=extract_joins(body)),
        )


def extract_models(content: str, model: LintModel) -> None:
    for match in _MODEL.finditer(content):
        name, body = match.group(1), match.group(2)
        connection = _first(_CONNECTION, body)
        model.models.setdefault(
            name,
            ModelSpec(
                name=name,
                connection=connection.strip('"') if connection else None,
                includes=_INCLUDE.findall(body),
            ),
        )


def parse_simple(text: str) -> LintModel:
    """
    Parse LookML text with the simplified extractor.

    Never raises: if an extractor fails, whatever was collected so far is
    returned.
    """
    model = LintModel()
    try:
        extract_views(text, model)
        extract_explores(text, model)
        extract_models(text, model)
    except Exception:
        logger.exception("Simplified LookML parser failed; returning partial model")
    return model
