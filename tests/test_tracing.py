"""
Tests for Langfuse tracing integration.

Covers the disabled (no credentials) path, the mocked-SDK path and the
graceful degradation of every tracing call.
"""

from unittest.mock import MagicMock, patch

import pytest

from edubot.models import LangfuseConfig
from edubot.tracing import client as tracing_client_module
from edubot.tracing.client import (
    TracingClient,
    get_tracing_client,
    init_tracing_client,
    shutdown_tracing,
)
from edubot.tracing.context import GenerationContext, SpanContext, TracingContext


@pytest.fixture(autouse=True)
def reset_tracing_client():
    """Every test starts and ends without a global tracing client."""
    tracing_client_module._tracing_client = None
    yield
    tracing_client_module._tracing_client = None


def _mock_langfuse(mock_langfuse_class, observation=None):
    """Wire a Langfuse mock whose observations enter as ``observation``."""
    instance = MagicMock()
    instance.auth_check.return_value = True
    manager = MagicMock()
    manager.__enter__ = MagicMock(return_value=observation or MagicMock())
    manager.__exit__ = MagicMock(return_value=None)
    instance.start_as_current_observation.return_value = manager
    mock_langfuse_class.return_value = instance
    return instance, manager


class TestTracingClient:
    """Tests for TracingClient without a Langfuse backend."""

    def test_disabled_without_credentials(self):
        client = TracingClient(public_key="", secret_key="")

        assert client.enabled is False
        assert client.client is None
        assert "not configured" in client.error

    def test_disabled_with_only_public_key(self):
        client = TracingClient(public_key="pk-test", secret_key="")
        assert client.enabled is False

    def test_flush_and_shutdown_are_noops_when_disabled(self):
        client = TracingClient()
        client.flush()
        client.shutdown()


class TestTracingClientSingleton:
    """Tests for the process-wide client."""

    def test_no_client_before_init(self):
        assert get_tracing_client() is None

    def test_init_from_settings(self):
        client = init_tracing_client(LangfuseConfig())

        assert get_tracing_client() is client
        assert client.enabled is False

    def test_shutdown_clears_client(self):
        init_tracing_client(LangfuseConfig())
        shutdown_tracing()
        assert get_tracing_client() is None


class TestTracingWithMockedLangfuse:
    """Tests with a mocked Langfuse SDK."""

    @patch("edubot.tracing.client.Langfuse")
    def test_enabled_with_valid_credentials(self, mock_langfuse_class):
        _mock_langfuse(mock_langfuse_class)

        client = TracingClient(public_key="pk-test", secret_key="sk-test", host="http://lf:3000")

        assert client.enabled is True
        assert client.error is None
        kwargs = mock_langfuse_class.call_args[1]
        assert kwargs["host"] == "http://lf:3000"

    @patch("edubot.tracing.client.Langfuse")
    def test_failed_auth_check_disables(self, mock_langfuse_class):
        instance, _ = _mock_langfuse(mock_langfuse_class)
        instance.auth_check.return_value = False

        client = TracingClient(public_key="pk-test", secret_key="sk-test")

        assert client.enabled is False
        assert "auth_check" in client.error

    @patch("edubot.tracing.client.Langfuse")
    def test_constructor_exception_disables(self, mock_langfuse_class):
        mock_langfuse_class.side_effect = RuntimeError("unreachable")

        client = TracingClient(public_key="pk-test", secret_key="sk-test")

        assert client.enabled is False
        assert "unreachable" in client.error

    @patch("edubot.tracing.client.Langfuse")
    def test_flush_and_shutdown_call_langfuse(self, mock_langfuse_class):
        instance, _ = _mock_langfuse(mock_langfuse_class)
        client = TracingClient(public_key="pk-test", secret_key="sk-test")

        client.flush()
        client.shutdown()

        instance.flush.assert_called_once()
        instance.shutdown.assert_called_once()

    @patch("edubot.tracing.client.Langfuse")
    def test_flush_swallows_sdk_errors(self, mock_langfuse_class):
        instance, _ = _mock_langfuse(mock_langfuse_class)
        instance.flush.side_effect = Exception("Flush error")
        client = TracingClient(public_key="pk-test", secret_key="sk-test")

        client.flush()

    @patch("edubot.tracing.client.Langfuse")
    def test_span_starts_observation(self, mock_langfuse_class):
        instance, manager = _mock_langfuse(mock_langfuse_class)
        init_tracing_client(LangfuseConfig(public_key="pk-test", secret_key="sk-test"))

        span = SpanContext(name="tool:get_grades", enabled=True)
        span.start()
        span.set_output({"success": True})
        span.end()

        kwargs = instance.start_as_current_observation.call_args[1]
        assert kwargs["as_type"] == "span"
        assert kwargs["name"] == "tool:get_grades"
        manager.__exit__.assert_called_once_with(None, None, None)

    @patch("edubot.tracing.client.Langfuse")
    def test_generation_records_usage(self, mock_langfuse_class):
        generation = MagicMock()
        instance, _ = _mock_langfuse(mock_langfuse_class, observation=generation)
        init_tracing_client(LangfuseConfig(public_key="pk-test", secret_key="sk-test"))

        gen = GenerationContext(name="model_turn_1", model="gpt-3.5-turbo", enabled=True)
        gen.start()
        gen.set_usage(prompt_tokens=10, completion_tokens=20, total_tokens=30)
        gen.end()

        kwargs = instance.start_as_current_observation.call_args[1]
        assert kwargs["as_type"] == "generation"
        assert kwargs["model"] == "gpt-3.5-turbo"
        update = generation.update.call_args[1]
        assert update["usage"] == {
            "promptTokens": 10,
            "completionTokens": 20,
            "totalTokens": 30,
        }

    @patch("edubot.tracing.client.Langfuse")
    def test_trace_tags_user_and_session(self, mock_langfuse_class):
        root = MagicMock()
        root.trace_id = "trace-1"
        root.id = "span-1"
        _, manager = _mock_langfuse(mock_langfuse_class, observation=root)
        init_tracing_client(LangfuseConfig(public_key="pk-test", secret_key="sk-test"))

        ctx = TracingContext(execution_id="abc", session_id="s1", user_id="Ana")
        ctx.start_trace(query="hola")

        root.update_trace.assert_called_once_with(user_id="Ana", session_id="s1")
        trace_context = ctx.get_trace_context()
        assert trace_context["trace_id"] == "trace-1"
        assert trace_context["parent_span_id"] == "span-1"

        ctx.end_trace(output="respuesta", status="success")
        manager.__exit__.assert_called_once_with(None, None, None)
        assert root.update.call_args[1]["output"] == "respuesta"


class TestGracefulDegradation:
    """Tracing calls never fail when tracing is off."""

    def test_context_disabled_without_client(self):
        ctx = TracingContext(execution_id="abc")

        assert ctx.enabled is False
        ctx.start_trace(query="hola")
        assert ctx.get_trace_context() is None
        ctx.end_trace(output="x")

    def test_span_and_generation_are_noops(self):
        ctx = TracingContext(execution_id="abc")

        with ctx.span("tool:get_grades", input={"a": 1}) as span:
            span.set_output("done")
            assert span.enabled is False
        with ctx.generation("model_turn_1", model="gpt") as gen:
            gen.set_usage(prompt_tokens=1)
            assert gen.enabled is False

    def test_span_start_failure_is_swallowed(self):
        span = SpanContext(name="broken", enabled=True)
        with patch(
            "edubot.tracing.context._open_observation",
            side_effect=RuntimeError("boom"),
        ):
            span.start()
        span.end()
        assert span._observation is None
