"""
Code-action suggestions for lint violations.

Suggestions are derived from a violation's rule id, path and data (or its
message) plus the current document text. Nothing here mutates text: each
suggestion carries the edits an editor would apply.
"""

import re

from .builder import build_document
from .ir import CodeAction, Position, TextEdit, Violation
from .lexer import split_lines

DISABLE_RULE_COMMAND = "lookml.disableRule"

_REFERENCE_IN_MESSAGE = re.compile(r'direct table reference "([^"]+)"')
_DIMENSION_IN_MESSAGE = re.compile(r'dimension "([^"]+)"')


def primary_key_template(indent_unit: str = "  ") -> str:
    """Dimension inserted by the "Add primary key dimension" action."""
    one, two = indent_unit, indent_unit * 2
    return (
        f"\n{one}dimension: pk {{\n"
        f"{two}primary_key: yes\n"
        f"{two}type: string\n"
        f"{two}sql: ${{TABLE}}.id ;;\n"
        f"{one}}}\n"
    )


def _search_lines(lines: list[str], pattern: re.Pattern[str], start: int) -> tuple[int, re.Match[str]] | None:
    for number in range(max(start, 0), len(lines)):
        match = pattern.search(lines[number])
        if match:
            return number, match
    return None


def _add_primary_key_action(violation: Violation, text: str, indent_unit: str) -> CodeAction | None:
    view_name = violation.data.get("view") or violation.path[1]
    view = build_document(text).get_view(view_name)
    if view is None or view.footer is None:
        return None
    position = Position(line=view.footer.number, character=0)
    return CodeAction(
        title="Add primary key dimension",
        rule_id=violation.rule_id,
        edits=[TextEdit(start=position, end=position, new_text=primary_key_template(indent_unit))],
        is_preferred=True,
    )


def _rename_primary_key_action(violation: Violation, text: str) -> CodeAction | None:
    name = violation.data.get("field")
    if name is None:
        match = _DIMENSION_IN_MESSAGE.search(violation.message)
        if match is None:
            return None
        name = match.group(1)

    pattern = re.compile(rf"dimension\s*:\s*{re.escape(name)}\s*\{{")
    found = _search_lines(split_lines(text), pattern, violation.line or 0)
    if found is None:
        return None
    number, match = found
    return CodeAction(
        title='Rename dimension to "pk"',
        rule_id=violation.rule_id,
        edits=[
            TextEdit(
                start=Position(line=number, character=match.start()),
                end=Position(line=number, character=match.end()),
                new_text="dimension: pk {",
            )
        ],
    )


def _substitution_action(violation: Violation, text: str) -> CodeAction | None:
    reference = violation.data.get("reference")
    if reference is None:
        match = _REFERENCE_IN_MESSAGE.search(violation.message)
        if match is None:
            return None
        reference = match.group(1)

    # Not already inside ${...}
    pattern = re.compile(rf"(?<![\w.{{]){re.escape(reference)}(?![\w])")
    found = _search_lines(split_lines(text), pattern, violation.line or 0)
    if found is None:
        return None
    number, match = found
    replacement = f"${{{reference}}}"
    return CodeAction(
        title=f'Replace "{reference}" with {replacement}',
        rule_id=violation.rule_id,
        edits=[
            TextEdit(
                start=Position(line=number, character=match.start()),
                end=Position(line=number, character=match.end()),
                new_text=replacement,
            )
        ],
        is_preferred=True,
    )


def disable_rule_action(rule_id: str) -> CodeAction:
    return CodeAction(
        title=f"Disable {rule_id} rule",
        rule_id=rule_id,
        command=DISABLE_RULE_COMMAND,
        command_args=[rule_id],
    )


def suggest_actions(violation: Violation, text: str, indent_unit: str = "  ") -> list[CodeAction]:
    """
    Suggest fixes for a violation.

    K1 gets "Add primary key dimension" (missing key) or "Rename dimension
    to pk" (naming); E1 gets a substitution rewrite of the bare reference.
    Every rule also gets a "Disable <rule> rule" command action.
    """
    rule_id = violation.rule_id.upper()
    actions: list[CodeAction] = []

    fix: CodeAction | None = None
    if rule_id == "K1":
        if len(violation.path) == 2:
            fix = _add_primary_key_action(violation, text, indent_unit)
        else:
            fix = _rename_primary_key_action(violation, text)
    elif rule_id == "E1":
        fix = _substitution_action(violation, text)

    if fix is not None:
        actions.append(fix)
    actions.append(disable_rule_action(rule_id))
    return actions
