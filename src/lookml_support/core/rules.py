"""
Lint rules for LookML.

Each rule is an independent, side-effect-free check over the lint model.
Rules never short-circuit one another: an exception inside one rule is
logged and that rule contributes no violations for the run.

Rules:
    K1  Views backed by a table need a primary key dimension named ``pk``
        (optionally followed by digits).
    E1  Explore joins should reference fields through ``${...}`` substitution
        instead of bare ``table.column`` references.
    F1  Fields should not reference fields of other views.
"""

import logging
import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from .ir import LintModel, Severity, Violation, ViewSpec

logger = logging.getLogger(__name__)

_PK_NAME = re.compile(r"^pk\d*$", re.IGNORECASE)

# Spans removed from sql_on before looking for bare references.
_SUBSTITUTION_SPANS = (
    re.compile(r"\$\{[^}]*\}"),
    re.compile(r"\{\{.*?\}\}", re.DOTALL),
    re.compile(r"\{%.*?%\}", re.DOTALL),
)
_BARE_REFERENCE = re.compile(r"(?<![\w.])[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)+")
_SAFE_PREFIX = "safe."

_FIELD_REFERENCE = re.compile(r"\$\{(\w+)\.(\w+)\}")

# Field collections checked by F1, with the singular used in messages.
_F1_COLLECTIONS = (
    ("dimensions", "dimension"),
    ("dimension_groups", "dimension_group"),
    ("measures", "measure"),
    ("filters", "filter"),
)


@dataclass(frozen=True)
class Rule:
    """A lint rule: identifier, description and check function."""

    id: str
    description: str
    check: Callable[[LintModel], list[Violation]]


def _table_backed_views(model: LintModel) -> Iterable[ViewSpec]:
    """Views with a backing table or derived table; others are not real tables."""
    return (view for view in model.views.values() if view.is_table_backed)


def check_primary_keys(model: LintModel) -> list[Violation]:
    """K1: primary key present and named ``pk``/``pkN``."""
    violations = []

    for view in _table_backed_views(model):
        pk_dimensions = [dim for dim in view.dimensions.values() if dim.primary_key]

        if not pk_dimensions:
            violations.append(
                Violation(
                    rule_id="K1",
                    message=f'View "{view.name}" is missing a primary key dimension',
                    path=["views", view.name],
                    line=view.line,
                    data={"view": view.name},
                )
            )
            continue

        for dim in pk_dimensions:
            if not _PK_NAME.match(dim.name):
                violations.append(
                    Violation(
                        rule_id="K1",
                        message=(
                            f'Primary key dimension "{dim.name}" in view "{view.name}" '
                            "should follow naming convention (pk)"
                        ),
                        path=["views", view.name, "dimensions", dim.name],
                        line=dim.line,
                        data={"view": view.name, "field": dim.name},
                    )
                )

    return violations


def strip_substitutions(sql: str) -> str:
    """Blank out ``${...}``, ``{{...}}`` and ``{%...%}`` spans."""
    for pattern in _SUBSTITUTION_SPANS:
        sql = pattern.sub(" ", sql)
    return sql


def find_bare_references(sql: str) -> list[str]:
    """Bare ``table.column`` references outside substitutions, in order."""
    return [
        ref
        for ref in _BARE_REFERENCE.findall(strip_substitutions(sql))
        if not ref.startswith(_SAFE_PREFIX)
    ]


def check_join_references(model: LintModel) -> list[Violation]:
    """E1: one violation per bare reference in each join's ``sql_on``."""
    violations = []

    for explore in model.explores.values():
        for join in explore.joins.values():
            if not join.sql_on:
                continue
            for ref in find_bare_references(join.sql_on):
                violations.append(
                    Violation(
                        rule_id="E1",
                        message=(
                            f'Join "{join.name}" in explore "{explore.name}" uses direct table '
                            f'reference "{ref}" - use ${{}} substitution instead'
                        ),
                        path=["explores", explore.name, "joins", join.name, "sql_on"],
                        line=join.line,
                        data={"explore": explore.name, "join": join.name, "reference": ref},
                    )
                )

    return violations


def find_cross_view_references(text: str, view_name: str) -> list[str]:
    """``view.field`` references to views other than ``view_name`` and ``TABLE``."""
    return [
        f"{ref_view}.{ref_field}"
        for ref_view, ref_field in _FIELD_REFERENCE.findall(text)
        if ref_view not in (view_name, "TABLE")
    ]


def check_cross_view_references(model: LintModel) -> list[Violation]:
    """F1: fields referencing another view in their sql or html."""
    violations = []

    for view in _table_backed_views(model):
        collections = view.field_collections()
        for collection, field_type in _F1_COLLECTIONS:
            for field in collections[collection].values():
                for prop, where in (("sql", ""), ("html", " in HTML")):
                    text = getattr(field, prop)
                    if not text:
                        continue
                    for ref in find_cross_view_references(text, view.name):
                        violations.append(
                            Violation(
                                rule_id="F1",
                                message=(
                                    f'{field_type} "{field.name}" in view "{view.name}" '
                                    f'references another view{where} via "{ref}"'
                                ),
                                path=["views", view.name, collection, field.name, prop],
                                line=field.line,
                                data={
                                    "view": view.name,
                                    "field": field.name,
                                    "field_type": field_type,
                                    "property": prop,
                                    "reference": ref,
                                },
                            )
                        )

    return violations


RULES: dict[str, Rule] = {
    rule.id: rule
    for rule in (
        Rule(
            id="K1",
            description="Primary keys should be explicitly defined and follow naming conventions",
            check=check_primary_keys,
        ),
        Rule(
            id="E1",
            description="Explore joins should use substitution operators instead of direct table references",
            check=check_join_references,
        ),
        Rule(
            id="F1",
            description="Fields should not reference other views directly",
            check=check_cross_view_references,
        ),
    )
}


def apply_rules(
    model: LintModel,
    enabled: Iterable[str],
    disabled: Iterable[str] = (),
    severities: Mapping[str, Severity] | None = None,
) -> list[Violation]:
    """
    Apply the enabled rules (minus the disabled ones) to a lint model.

    Args:
        model: Lint model to check
        enabled: Rule ids to apply, case-insensitive; unknown ids are skipped
        disabled: Rule ids to skip, case-insensitive
        severities: Optional severity override per rule id

    Returns:
        Violations of all applied rules, in rule-registry order
    """
    active = {rule_id.upper() for rule_id in enabled} - {rule_id.upper() for rule_id in disabled}
    unknown = active - RULES.keys()
    if unknown:
        logger.debug("Skipping unknown rule ids: %s", ", ".join(sorted(unknown)))

    violations: list[Violation] = []
    for rule in RULES.values():
        if rule.id not in active:
            continue
        try:
            found = rule.check(model)
        except Exception:
            logger.exception("Error applying rule %s", rule.id)
            continue

        severity = (severities or {}).get(rule.id)
        if severity is not None:
            found = [v.model_copy(update={"severity": Severity(severity)}) for v in found]
        violations.extend(found)

    return violations
