"""
Conversation orchestration.

A bounded tool-calling loop over a per-session conversation log, with
data-driven follow-up tool calls.
"""

from .conversation import ConversationState
from .tool_defs import build_function_definition, build_function_definitions
from .triggers import DEFAULT_TRIGGER_RULES, TriggerRule, select_follow_up
from .prompts import build_system_prompt
from .loop import (
    ABORT_MESSAGE,
    LoopState,
    OrchestrationLoop,
    OrchestrationResult,
    OrchestrationStep,
)

__all__ = [
    "ConversationState",
    "build_function_definition",
    "build_function_definitions",
    "DEFAULT_TRIGGER_RULES",
    "TriggerRule",
    "select_follow_up",
    "build_system_prompt",
    "ABORT_MESSAGE",
    "LoopState",
    "OrchestrationLoop",
    "OrchestrationResult",
    "OrchestrationStep",
]
