"""Tests for auto-trigger rules."""

from edubot.orchestration.triggers import (
    DEFAULT_TRIGGER_RULES,
    TriggerRule,
    referenced_tools,
    select_follow_up,
)


class TestDefaultRule:
    def test_flagged_grade_result_triggers_resources(self):
        payload = {"needs_resources": True, "critical_subject": "Cálculo"}
        call = select_follow_up(DEFAULT_TRIGGER_RULES, "get_grades", payload)

        assert call.tool_name == "search_study_resources"
        assert call.arguments == {
            "materia": "Cálculo",
            "tipo_recurso": "general",
            "nivel_urgencia": "alta",
        }

    def test_unflagged_result(self):
        assert select_follow_up(DEFAULT_TRIGGER_RULES, "get_grades", {"average": 85}) is None

    def test_flag_without_subject(self):
        payload = {"needs_resources": True}
        assert select_follow_up(DEFAULT_TRIGGER_RULES, "get_grades", payload) is None

    def test_other_tool_never_triggers(self):
        payload = {"needs_resources": True, "critical_subject": "Cálculo"}
        assert (
            select_follow_up(DEFAULT_TRIGGER_RULES, "search_study_resources", payload)
            is None
        )

    def test_referenced_tools(self):
        assert referenced_tools(DEFAULT_TRIGGER_RULES) == {
            "get_grades",
            "search_study_resources",
        }


class TestCustomRules:
    def test_only_first_matching_rule_fires(self):
        rules = (
            TriggerRule("a", "t", "x", lambda p: True, lambda p: {"n": 1}),
            TriggerRule("b", "t", "y", lambda p: True, lambda p: {"n": 2}),
        )
        call = select_follow_up(rules, "t", {})
        assert call.rule == "a"
        assert call.tool_name == "x"

    def test_failing_condition_does_not_match(self):
        rule = TriggerRule("bad", "t", "x", lambda p: p["missing"], lambda p: {})
        assert select_follow_up((rule,), "t", {}) is None
