"""
Request-scoped tracing context.

One TracingContext covers one assistant request: a root span opened by
``start_trace`` and closed by ``end_trace``, with the loop's model calls
recorded as generations and tool executions as spans underneath it.
Parent linking passes the root span's ids explicitly, so nesting is correct
whatever the OpenTelemetry context state is.

Every method is a no-op when the global tracing client is disabled.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

from langfuse.types import TraceContext

from .client import get_tracing_client

logger = logging.getLogger(__name__)


def _open_observation(trace_context: Optional[TraceContext], **kwargs) -> tuple[Any, Any]:
    """Start an observation; returns (context manager, observation) or (None, None)."""
    client = get_tracing_client()
    if not client or not client.client:
        return None, None
    manager = client.client.start_as_current_observation(
        trace_context=trace_context, **kwargs
    )
    return manager, manager.__enter__()


@dataclass
class _Observation:
    """Shared lifecycle of spans and generations."""

    name: str
    enabled: bool = False
    metadata: Optional[dict] = None
    input: Optional[Any] = None
    _trace_context: Optional[TraceContext] = field(default=None, repr=False)
    _context_manager: Any = field(default=None, repr=False)
    _observation: Any = field(default=None, repr=False)
    _start_time: float = field(default=0.0, repr=False)
    _output: Optional[Any] = field(default=None, repr=False)
    _status: str = field(default="success", repr=False)

    def _start_kwargs(self) -> dict:
        return {
            "as_type": "span",
            "name": self.name,
            "metadata": self.metadata,
            "input": self.input,
        }

    def _end_kwargs(self) -> dict:
        duration_ms = (time.time() - self._start_time) * 1000
        kwargs: dict[str, Any] = {
            "metadata": {"status": self._status, "duration_ms": round(duration_ms, 2)}
        }
        if self._output is not None:
            kwargs["output"] = self._output
        return kwargs

    def start(self) -> None:
        if not self.enabled:
            return
        try:
            self._start_time = time.time()
            self._context_manager, self._observation = _open_observation(
                self._trace_context, **self._start_kwargs()
            )
        except Exception as e:
            logger.warning(f"Failed to start observation '{self.name}': {e}")
            self._observation = None

    def end(self) -> None:
        if not self.enabled or not self._observation:
            return
        try:
            self._observation.update(**self._end_kwargs())
            if self._context_manager:
                self._context_manager.__exit__(None, None, None)
        except Exception as e:
            logger.warning(f"Failed to end observation '{self.name}': {e}")

    def set_output(self, output: Any) -> None:
        self._output = output

    def set_status(self, status: str) -> None:
        self._status = status


@dataclass
class SpanContext(_Observation):
    """A traced unit of work (tool execution, orchestration run)."""


@dataclass
class GenerationContext(_Observation):
    """A traced LLM call."""

    model: str = ""
    model_parameters: Optional[dict] = None
    _usage: Optional[dict] = field(default=None, repr=False)

    def _start_kwargs(self) -> dict:
        kwargs = super()._start_kwargs()
        kwargs.update(
            as_type="generation",
            model=self.model,
            model_parameters=self.model_parameters,
        )
        return kwargs

    def _end_kwargs(self) -> dict:
        kwargs = super()._end_kwargs()
        if self._usage:
            kwargs["usage"] = self._usage
        return kwargs

    def set_usage(
        self,
        prompt_tokens: Optional[int] = None,
        completion_tokens: Optional[int] = None,
        total_tokens: Optional[int] = None,
    ) -> None:
        """Set token usage for the generation."""
        self._usage = {}
        if prompt_tokens is not None:
            self._usage["promptTokens"] = prompt_tokens
        if completion_tokens is not None:
            self._usage["completionTokens"] = completion_tokens
        if total_tokens is not None:
            self._usage["totalTokens"] = total_tokens


@dataclass
class TracingContext:
    """
    Request-scoped tracing context.

    Attributes:
        execution_id: Identifier of the request, used in log prefixes.
        session_id: Conversation the request belongs to.
        user_id: Display name of the student, when known.
    """

    execution_id: str
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    _root: Optional[SpanContext] = field(default=None, repr=False)
    _enabled: bool = field(default=False, repr=False)

    def __post_init__(self):
        client = get_tracing_client()
        self._enabled = client is not None and client.enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def start_trace(
        self,
        name: str = "assistant_request",
        query: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> None:
        """Open the root span of this request."""
        if not self._enabled:
            return

        trace_metadata = {"execution_id": self.execution_id, **(metadata or {})}
        self._root = SpanContext(
            name=name,
            enabled=True,
            metadata=trace_metadata,
            input={"query": query} if query else None,
        )
        self._root.start()
        root_span = self._root._observation
        if root_span is None:
            self._root = None
            return
        try:
            root_span.update_trace(user_id=self.user_id, session_id=self.session_id)
        except Exception as e:
            logger.warning(f"[{self.execution_id}] Failed to tag trace: {e}")
        logger.debug(f"[{self.execution_id}] Trace '{name}' started")

    def get_trace_context(self) -> Optional[TraceContext]:
        """Parent link for observations created under the root span."""
        if not self._root or not self._root._observation:
            return None
        root_span = self._root._observation
        trace_id = getattr(root_span, "trace_id", None)
        span_id = getattr(root_span, "id", None)
        if not trace_id or not span_id:
            return None
        return TraceContext(trace_id=trace_id, parent_span_id=span_id)

    def end_trace(self, output: Optional[str] = None, status: str = "success") -> None:
        """Close the root span."""
        if not self._root:
            return
        self._root.set_output(output)
        self._root.set_status(status)
        self._root.end()
        self._root = None

    @contextmanager
    def span(
        self,
        name: str,
        metadata: Optional[dict] = None,
        input: Optional[Any] = None,
    ) -> Generator[SpanContext, None, None]:
        span_ctx = SpanContext(
            name=name,
            enabled=self._enabled,
            metadata=metadata,
            input=input,
            _trace_context=self.get_trace_context(),
        )
        try:
            span_ctx.start()
            yield span_ctx
        finally:
            span_ctx.end()

    @contextmanager
    def generation(
        self,
        name: str,
        model: str,
        input: Optional[Any] = None,
        metadata: Optional[dict] = None,
        model_parameters: Optional[dict] = None,
    ) -> Generator[GenerationContext, None, None]:
        """Context manager recording one LLM call."""
        gen_ctx = GenerationContext(
            name=name,
            enabled=self._enabled,
            metadata=metadata,
            input=input,
            model=model,
            model_parameters=model_parameters,
            _trace_context=self.get_trace_context(),
        )
        try:
            gen_ctx.start()
            yield gen_ctx
        finally:
            gen_ctx.end()
