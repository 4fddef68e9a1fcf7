"""Tests for code-action suggestions."""

from lookml_support.core.actions import (
    DISABLE_RULE_COMMAND,
    primary_key_template,
    suggest_actions,
)
from lookml_support.core.ir import Position, Violation
from lookml_support.core.lint import lint_text


class TestPrimaryKeyActions:
    """K1 fixes."""

    def test_add_primary_key(self, missing_pk_view: str) -> None:
        violation = lint_text(missing_pk_view).violations[0]
        actions = suggest_actions(violation, missing_pk_view)
        assert [a.title for a in actions] == ["Add primary key dimension", "Disable K1 rule"]

        add = actions[0]
        assert add.is_preferred
        assert len(add.edits) == 1
        edit = add.edits[0]
        assert edit.start == edit.end == Position(line=7, character=0)
        assert edit.new_text == primary_key_template("  ")
        assert "dimension: pk {" in edit.new_text
        assert "primary_key: yes" in edit.new_text

    def test_template_uses_indent(self) -> None:
        assert "\n\t\tprimary_key: yes\n" in primary_key_template("\t")

    def test_rename_primary_key(self, pk_naming_view: str) -> None:
        violation = lint_text(pk_naming_view).violations[0]
        actions = suggest_actions(violation, pk_naming_view)
        assert actions[0].title == 'Rename dimension to "pk"'

        edit = actions[0].edits[0]
        assert edit.start == Position(line=3, character=2)
        assert edit.end == Position(line=3, character=22)
        assert edit.new_text == "dimension: pk {"

    def test_unknown_view_only_disables(self) -> None:
        violation = Violation(rule_id="K1", message="m", path=["views", "ghost"], data={"view": "ghost"})
        actions = suggest_actions(violation, "view: orders {\n}")
        assert [a.title for a in actions] == ["Disable K1 rule"]


class TestSubstitutionActions:
    """E1 fixes."""

    def test_wrap_reference(self, bare_join_explore: str) -> None:
        violations = lint_text(bare_join_explore).violations
        first = suggest_actions(violations[0], bare_join_explore)[0]
        assert first.title == 'Replace "orders.user_id" with ${orders.user_id}'
        edit = first.edits[0]
        assert (edit.start, edit.end) == (Position(line=2, character=12), Position(line=2, character=26))
        assert edit.new_text == "${orders.user_id}"

        second = suggest_actions(violations[1], bare_join_explore)[0]
        edit = second.edits[0]
        assert (edit.start, edit.end) == (Position(line=2, character=29), Position(line=2, character=37))
        assert edit.new_text == "${users.id}"

    def test_reference_from_message(self, bare_join_explore: str) -> None:
        """Without data, the reference is read from the message."""
        violation = Violation(
            rule_id="E1",
            message='Join "users" in explore "orders" uses direct table reference "users.id" - use ${} substitution instead',
            path=["explores", "orders", "joins", "users", "sql_on"],
        )
        edit = suggest_actions(violation, bare_join_explore)[0].edits[0]
        assert edit.start == Position(line=2, character=29)


class TestDisableAction:
    def test_every_rule_can_be_disabled(self) -> None:
        violation = Violation(rule_id="F1", message="m", path=["views", "a"])
        actions = suggest_actions(violation, "")
        assert len(actions) == 1
        disable = actions[0]
        assert disable.title == "Disable F1 rule"
        assert disable.command == DISABLE_RULE_COMMAND
        assert disable.command_args == ["F1"]
        assert disable.edits == []
