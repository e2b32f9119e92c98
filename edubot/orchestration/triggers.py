"""
Auto-trigger rules.

A rule watches the result of one tool and, when its condition holds,
names a follow-up tool call the loop performs without asking the model.
Rules are plain data so new chains can be added without touching the
loop itself.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from ..tools.grades import TOOL_NAME as GRADES_TOOL
from ..tools.resources import TOOL_NAME as RESOURCES_TOOL

logger = logging.getLogger(__name__)

Condition = Callable[[dict], bool]
ArgumentBuilder = Callable[[dict], dict[str, Any]]


@dataclass(frozen=True)
class TriggerRule:
    """When ``source_tool`` returns a payload matching ``condition``, call ``target_tool``."""

    name: str
    source_tool: str
    target_tool: str
    condition: Condition
    build_arguments: ArgumentBuilder

    def matches(self, tool_name: str, payload: dict) -> bool:
        if tool_name != self.source_tool:
            return False
        try:
            return bool(self.condition(payload))
        except Exception as e:
            logger.warning("Trigger rule '%s' condition failed: %s", self.name, e)
            return False


@dataclass(frozen=True)
class TriggeredCall:
    """A follow-up call selected by a rule."""

    rule: str
    tool_name: str
    arguments: dict[str, Any]


def _critical_subject_flagged(payload: dict) -> bool:
    return bool(payload.get("needs_resources")) and bool(payload.get("critical_subject"))


def _urgent_resources_for(payload: dict) -> dict[str, Any]:
    return {
        "materia": payload["critical_subject"],
        "tipo_recurso": "general",
        "nivel_urgencia": "alta",
    }


DEFAULT_TRIGGER_RULES: tuple[TriggerRule, ...] = (
    TriggerRule(
        name="resources_for_failing_subject",
        source_tool=GRADES_TOOL,
        target_tool=RESOURCES_TOOL,
        condition=_critical_subject_flagged,
        build_arguments=_urgent_resources_for,
    ),
)


def referenced_tools(rules: Iterable[TriggerRule]) -> set[str]:
    """Every tool name a rule set depends on."""
    names: set[str] = set()
    for rule in rules:
        names.add(rule.source_tool)
        names.add(rule.target_tool)
    return names


def select_follow_up(
    rules: Iterable[TriggerRule], tool_name: str, payload: dict
) -> Optional[TriggeredCall]:
    """
    Pick the follow-up call for a tool result.

    Only the first matching rule fires; a tool result yields at most one
    follow-up.
    """
    for rule in rules:
        if rule.matches(tool_name, payload):
            return TriggeredCall(
                rule=rule.name,
                tool_name=rule.target_tool,
                arguments=rule.build_arguments(payload),
            )
    return None
