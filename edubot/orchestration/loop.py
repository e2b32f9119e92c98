"""
Core orchestration loop.

Drives one user message through the model and the tools:

    AWAITING_MODEL_TURN --tool request--> EXECUTING_TOOL
    EXECUTING_TOOL ----------------------> CHECKING_AUTO_TRIGGER
    CHECKING_AUTO_TRIGGER ---------------> AWAITING_MODEL_TURN
    AWAITING_MODEL_TURN --text----------> DONE
    (iteration ceiling or model failure) -> ABORTED

Every model invocation counts as one iteration. Auto-triggered follow-up
calls are executed by the loop itself, are never chained further and do not
consume an iteration. All turns are appended to the session's
ConversationState, which is compacted once a final answer is produced.
"""

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union

from ..config import config
from ..llm_call import LLMClient, ModelReply
from ..models import ANONYMOUS, SessionContext, ToolRequest, Turn
from ..tools.executor import ToolExecutor
from ..tools.schemas import ToolResult
from ..tracing import TracingContext
from .conversation import ConversationState
from .prompts import build_system_prompt
from .tool_defs import build_function_definitions
from .triggers import DEFAULT_TRIGGER_RULES, TriggerRule, select_follow_up

logger = logging.getLogger(__name__)

ABORT_MESSAGE = "Lo siento, tuve problemas procesando tu solicitud. ¿Podrías reformularla?"
EMPTY_ANSWER_MESSAGE = "No pude generar una respuesta."
MODEL_FAILURE_TEMPLATE = "Error: {error}. Por favor intenta nuevamente."


class LoopState(str, Enum):
    AWAITING_MODEL_TURN = "awaiting_model_turn"
    EXECUTING_TOOL = "executing_tool"
    CHECKING_AUTO_TRIGGER = "checking_auto_trigger"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class OrchestrationStep:
    """A single step in the orchestration process."""

    step_number: int
    iteration: int
    action: Optional[str] = None
    action_input: Optional[dict] = None
    observation: Optional[str] = None
    auto_triggered: bool = False
    is_final: bool = False
    final_answer: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class OrchestrationResult:
    """Result from a complete orchestration run."""

    answer: str
    state: LoopState
    iterations: int
    steps: list[OrchestrationStep] = field(default_factory=list)
    tools_used: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is LoopState.DONE


class OrchestrationLoop:
    """
    Bounded tool-calling loop over one session's conversation.

    Collaborators are injected so the loop can be driven by fakes in tests:
    the LLM client only needs ``complete(messages, functions)`` and the
    executor only ``execute(name, arguments, session)``.
    """

    def __init__(
        self,
        conversation: ConversationState,
        llm_client: LLMClient,
        executor: ToolExecutor,
        max_iterations: Optional[int] = None,
        trigger_rules: Optional[Iterable[TriggerRule]] = None,
        tracing_context: Optional[TracingContext] = None,
        execution_id: Optional[str] = None,
    ):
        self.conversation = conversation
        self.llm_client = llm_client
        self.executor = executor
        self.max_iterations = (
            max_iterations if max_iterations is not None else config.assistant.max_iterations
        )
        if self.max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.trigger_rules = tuple(
            trigger_rules if trigger_rules is not None else DEFAULT_TRIGGER_RULES
        )
        self.tracing_context = tracing_context
        self.execution_id = execution_id

        self.state = LoopState.DONE
        self.steps: list[OrchestrationStep] = []

    @property
    def _id_prefix(self) -> str:
        return f"[{self.execution_id}] " if self.execution_id else ""

    def send_message(
        self, user_text: str, session: Optional[SessionContext] = None
    ) -> OrchestrationResult:
        """
        Run the loop for one user message.

        Args:
            user_text: The student's message.
            session: Caller identity, forwarded to tools.

        Returns:
            OrchestrationResult with the final answer and step trace.
        """
        session = session or ANONYMOUS
        self.steps = []

        if len(self.conversation) == 0:
            self.conversation.seed(build_system_prompt(session))
        self.conversation.append(Turn.user(user_text))

        logger.debug("%sStarting orchestration for: %s", self._id_prefix, user_text)

        if self.tracing_context:
            return self._run_with_tracing(user_text, session)
        return self._run_loop(session)

    def get_trace(self) -> list[dict]:
        """Steps of the last run as plain dicts."""
        return [step.to_dict() for step in self.steps]

    def _run_with_tracing(
        self, user_text: str, session: SessionContext
    ) -> OrchestrationResult:
        """Run orchestration inside a tracing span."""
        if self.tracing_context is None:
            return self._run_loop(session)
        with self.tracing_context.span(
            name="orchestration",
            metadata={"max_iterations": self.max_iterations},
            input={"message": user_text},
        ) as orch_span:
            result = self._run_loop(session)
            orch_span.set_output(
                {
                    "state": result.state.value,
                    "iterations": result.iterations,
                    "final_answer": result.answer[:500],
                }
            )
            if not result.succeeded:
                orch_span.set_status("error")
            return result

    def _run_loop(self, session: SessionContext) -> OrchestrationResult:
        self.state = LoopState.AWAITING_MODEL_TURN
        iterations = 0
        pending: Optional[ToolRequest] = None
        last_result: Optional[ToolResult] = None

        while True:
            if self.state is LoopState.AWAITING_MODEL_TURN:
                if iterations >= self.max_iterations:
                    logger.warning(
                        "%sMax iterations (%d) reached without an answer",
                        self._id_prefix,
                        self.max_iterations,
                    )
                    return self._finish(LoopState.ABORTED, ABORT_MESSAGE, iterations)

                iterations += 1
                step = OrchestrationStep(step_number=len(self.steps) + 1, iteration=iterations)
                self.steps.append(step)
                try:
                    reply = self._invoke_model(iterations)
                except Exception as e:
                    logger.error(
                        "%sModel call failed at iteration %d: %s",
                        self._id_prefix,
                        iterations,
                        e,
                    )
                    step.error = str(e)
                    return self._finish(
                        LoopState.ABORTED,
                        MODEL_FAILURE_TEMPLATE.format(error=e),
                        iterations,
                    )

                if reply.wants_tool:
                    pending = reply.tool_request
                    step.action = pending.name
                    step.action_input = {"arguments": pending.arguments}
                    self.conversation.append(
                        Turn.assistant(reply.text, tool_request=pending)
                    )
                    self.state = LoopState.EXECUTING_TOOL
                else:
                    answer = reply.text.strip() or EMPTY_ANSWER_MESSAGE
                    step.is_final = True
                    step.final_answer = answer
                    self.conversation.append(Turn.assistant(answer))
                    self.conversation.compact_if_needed()
                    return self._finish(LoopState.DONE, answer, iterations)

            elif self.state is LoopState.EXECUTING_TOOL:
                step = self.steps[-1]
                last_result = self._execute_tool(pending.name, pending.arguments, session)
                step.observation = last_result.to_json()
                self.state = LoopState.CHECKING_AUTO_TRIGGER

            elif self.state is LoopState.CHECKING_AUTO_TRIGGER:
                if last_result is not None and not last_result.is_error:
                    self._run_follow_up(last_result, session, iterations)
                self.state = LoopState.AWAITING_MODEL_TURN

    def _finish(self, state: LoopState, answer: str, iterations: int) -> OrchestrationResult:
        self.state = state
        self._log_trace_summary(iterations)
        return OrchestrationResult(
            answer=answer,
            state=state,
            iterations=iterations,
            steps=list(self.steps),
            tools_used=self._unique_tools_used(),
        )

    def _invoke_model(self, iteration: int) -> ModelReply:
        """Call the chat model with the full conversation and the tool schema."""
        messages = self.conversation.to_messages()
        functions = build_function_definitions()

        if self.tracing_context is None:
            logger.debug("%sIteration %d: calling model", self._id_prefix, iteration)
            return self.llm_client.complete(messages, functions)

        with self.tracing_context.generation(
            name=f"assistant_iteration_{iteration}",
            model=getattr(self.llm_client, "chat_model", ""),
            input=messages,
        ) as gen:
            try:
                reply = self.llm_client.complete(messages, functions)
            except Exception:
                gen.set_status("error")
                raise
            if reply.wants_tool:
                gen.set_output(
                    f"function_call {reply.tool_request.name}({reply.tool_request.arguments})"
                )
            else:
                gen.set_output(reply.text[:2000])
            if reply.usage:
                gen.set_usage(**reply.usage)
            return reply

    def _execute_tool(
        self,
        tool_name: str,
        arguments: Union[str, dict],
        session: SessionContext,
    ) -> ToolResult:
        """Run a tool and append its result as a tool turn."""
        if self.tracing_context is None:
            result = self.executor.execute(tool_name, arguments, session)
        else:
            with self.tracing_context.span(
                name=f"tool:{tool_name}",
                input={"arguments": arguments},
            ) as span:
                result = self.executor.execute(tool_name, arguments, session)
                span.set_output({"result": result.to_json()[:500]})
                if result.is_error:
                    span.set_status("error")

        if result.is_error:
            logger.info(
                "%sTool '%s' returned error: %s",
                self._id_prefix,
                tool_name,
                result.payload.get("error"),
            )
        self.conversation.append(Turn.tool(tool_name, result.to_json()))
        return result

    def _run_follow_up(
        self, result: ToolResult, session: SessionContext, iteration: int
    ) -> None:
        """Execute at most one auto-triggered call for a tool result."""
        follow_up = select_follow_up(self.trigger_rules, result.tool_name, result.payload)
        if follow_up is None:
            return

        logger.info(
            "%sAuto-trigger '%s': %s(%s)",
            self._id_prefix,
            follow_up.rule,
            follow_up.tool_name,
            follow_up.arguments,
        )
        step = OrchestrationStep(
            step_number=len(self.steps) + 1,
            iteration=iteration,
            action=follow_up.tool_name,
            action_input=dict(follow_up.arguments),
            auto_triggered=True,
        )
        self.steps.append(step)
        follow_result = self._execute_tool(follow_up.tool_name, follow_up.arguments, session)
        step.observation = follow_result.to_json()

    def _unique_tools_used(self) -> list[str]:
        """Tool names in first-use order."""
        seen: set[str] = set()
        result: list[str] = []
        for step in self.steps:
            if step.action and step.action not in seen:
                seen.add(step.action)
                result.append(step.action)
        return result

    def _log_trace_summary(self, iterations: int) -> None:
        lines: list[str] = [
            f"{self._id_prefix}Orchestration {self.state.value} after "
            f"{iterations}/{self.max_iterations} iterations"
        ]
        for step in self.steps:
            if step.is_final:
                lines.append(f"  [{step.step_number}] answer")
            elif step.error:
                lines.append(f"  [{step.step_number}] model error: {step.error[:100]}")
            elif step.action:
                marker = " (auto)" if step.auto_triggered else ""
                lines.append(f"  [{step.step_number}] {step.action}{marker}")
        logger.info("\n".join(lines))
