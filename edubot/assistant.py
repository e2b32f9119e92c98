"""
Assistant session facade.

One AssistantSession owns one conversation and serialises access to it:
a request arriving while another is still being processed is rejected
with SessionBusyError instead of interleaving turns.

Without a usable OpenAI key the session runs in degraded mode and answers
every request with a fixed notice, without any network call.
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Iterable, Optional

from .config import config
from .exceptions import SessionBusyError
from .intake import ImageAdapter, IntakeReply, TranscriptionAdapter
from .llm_call import LLMClient
from .models import ANONYMOUS, SessionContext
from .orchestration import (
    ConversationState,
    LoopState,
    OrchestrationLoop,
    OrchestrationResult,
    TriggerRule,
)
from .orchestration.triggers import DEFAULT_TRIGGER_RULES, referenced_tools
from .records_client import AcademicRecordsClient
from .tools import ToolExecutor, ToolRegistry
from .tracing import TracingContext

logger = logging.getLogger(__name__)

AI_UNAVAILABLE_MESSAGE = "El servicio de IA no está disponible. Configura la API Key de OpenAI."
IMAGE_UNAVAILABLE_MESSAGE = "El servicio de análisis de imágenes no está disponible."


def create_llm_client() -> Optional[LLMClient]:
    """Build the OpenAI client, or None when the service must run degraded."""
    if not config.inference.is_configured:
        logger.warning("OpenAI API key missing or invalid; running in fallback mode")
        return None
    try:
        return LLMClient()
    except Exception as e:
        logger.error(f"Failed to create OpenAI client: {e}")
        return None


class AssistantSession:
    """Entry point for one student conversation."""

    def __init__(
        self,
        session_id: Optional[str] = None,
        llm_client: Optional[LLMClient] = None,
        executor: Optional[ToolExecutor] = None,
        history_limit: Optional[int] = None,
        max_iterations: Optional[int] = None,
        trigger_rules: Optional[Iterable[TriggerRule]] = None,
        use_default_client: bool = True,
    ):
        """
        Args:
            session_id: Identifier used in logs and traces.
            llm_client: Inference client; built from config when omitted.
            executor: Tool executor; one backed by the records API when omitted.
            history_limit: Conversation ceiling (defaults to config).
            max_iterations: Loop ceiling (defaults to config).
            trigger_rules: Auto-trigger rules (defaults to the built-in set).
            use_default_client: Build a client from config when none is given.
        """
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.llm_client = llm_client
        if self.llm_client is None and use_default_client:
            self.llm_client = create_llm_client()
        self.executor = executor or ToolExecutor(records_client=AcademicRecordsClient())
        self.max_iterations = max_iterations
        self.trigger_rules = tuple(
            trigger_rules if trigger_rules is not None else DEFAULT_TRIGGER_RULES
        )
        ToolRegistry.validate(referenced_tools(self.trigger_rules))

        self.conversation = ConversationState(
            history_limit=history_limit or config.assistant.history_limit
        )
        self.last_result: Optional[OrchestrationResult] = None
        self._lock = threading.Lock()

    @property
    def available(self) -> bool:
        return self.llm_client is not None

    def service_status(self) -> dict:
        return {
            "available": self.available,
            "mode": "openai" if self.available else "fallback",
        }

    @contextmanager
    def _busy(self):
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError(self.session_id)
        try:
            yield
        finally:
            self._lock.release()

    def send_message(
        self,
        text: str,
        session: Optional[SessionContext] = None,
        tracing_context: Optional[TracingContext] = None,
    ) -> OrchestrationResult:
        """
        Process one text message.

        Raises:
            SessionBusyError: If the session is already processing a message.
        """
        with self._busy():
            return self._send(text, session or ANONYMOUS, tracing_context)

    def send_message_with_image(
        self,
        caption: Optional[str],
        image: bytes,
        mime_type: str = "image/jpeg",
        session: Optional[SessionContext] = None,
    ) -> IntakeReply:
        with self._busy():
            if not self.available:
                return IntakeReply(answer=IMAGE_UNAVAILABLE_MESSAGE)
            adapter = ImageAdapter(self.llm_client, self.conversation)
            return adapter.handle(caption, image, mime_type, session or ANONYMOUS)

    def send_message_with_audio(
        self,
        audio: bytes,
        filename: str = "audio.webm",
        session: Optional[SessionContext] = None,
        tracing_context: Optional[TracingContext] = None,
    ) -> IntakeReply:
        with self._busy():
            if not self.available:
                return IntakeReply(answer=AI_UNAVAILABLE_MESSAGE)

            def forward(transcript: str, ctx: SessionContext) -> str:
                return self._send(transcript, ctx, tracing_context).answer

            adapter = TranscriptionAdapter(self.llm_client, forward)
            return adapter.handle(audio, filename, session or ANONYMOUS)

    def _send(
        self,
        text: str,
        session: SessionContext,
        tracing_context: Optional[TracingContext],
    ) -> OrchestrationResult:
        if not self.available:
            logger.info("[%s] Fallback mode: no model call", self.session_id)
            return OrchestrationResult(
                answer=AI_UNAVAILABLE_MESSAGE, state=LoopState.ABORTED, iterations=0
            )

        loop = OrchestrationLoop(
            conversation=self.conversation,
            llm_client=self.llm_client,
            executor=self.executor,
            max_iterations=self.max_iterations,
            trigger_rules=self.trigger_rules,
            tracing_context=tracing_context,
            execution_id=self.session_id,
        )
        self.last_result = loop.send_message(text, session)
        return self.last_result

    def get_trace(self) -> list[dict]:
        """Steps of the last text run."""
        if self.last_result is None:
            return []
        return [step.to_dict() for step in self.last_result.steps]

    def history(self) -> list[dict]:
        return [turn.to_dict() for turn in self.conversation.snapshot()]

    def reset(self) -> None:
        """Start a new conversation."""
        with self._busy():
            self.conversation.reset()
            self.last_result = None
            logger.info("[%s] Conversation reset", self.session_id)
