"""
Tests for the Tool Executor.

The executor must turn every failure into a ToolError result and never
raise to its caller.
"""

import json
from unittest.mock import Mock

from edubot.exceptions import RecordsAPIError
from edubot.tools import ToolExecutor


class TestDispatch:
    """Name lookup and argument handling."""

    def test_unknown_tool(self, student):
        executor = ToolExecutor(records_client=Mock())
        result = executor.execute("send_email", {}, student)

        assert result.is_error
        assert result.payload == {"error": "unrecognized tool"}

    def test_unknown_tool_json(self, student):
        executor = ToolExecutor(records_client=Mock())
        result = executor.execute("send_email", "{}", student)
        assert json.loads(result.to_json()) == {"error": "unrecognized tool"}

    def test_accepts_json_text(self):
        executor = ToolExecutor()
        result = executor.execute("search_study_resources", '{"materia": "Física"}')

        assert not result.is_error
        assert result.payload["subject"] == "Física"
        assert result.payload["urgency"] == "media"

    def test_malformed_json(self):
        executor = ToolExecutor()
        result = executor.execute("search_study_resources", '{"materia": ')

        assert result.payload["error"] == "invalid arguments"
        assert "JSON" in result.payload["detail"]

    def test_non_object_json(self):
        executor = ToolExecutor()
        result = executor.execute("search_study_resources", "[1, 2]")
        assert result.payload["error"] == "invalid arguments"

    def test_missing_required_argument(self):
        executor = ToolExecutor()
        result = executor.execute("search_study_resources", {})

        assert result.payload["error"] == "invalid arguments"
        assert "materia" in result.payload["detail"]

    def test_enum_violation(self, student, records_client):
        executor = ToolExecutor(records_client=records_client)
        result = executor.execute("get_grades", {"tipo_consulta": "mediana"}, student)

        assert result.payload["error"] == "invalid arguments"
        records_client.fetch_enrollments.assert_not_called()

    def test_unknown_fields_ignored(self):
        executor = ToolExecutor()
        result = executor.execute(
            "search_study_resources", {"materia": "Química", "idioma": "es"}
        )
        assert not result.is_error


class TestAuthentication:
    """Record lookups require a logged-in session with a token."""

    def test_anonymous_rejected_without_network(self, anonymous, records_client):
        executor = ToolExecutor(records_client=records_client)
        result = executor.execute("get_grades", {"tipo_consulta": "todas"}, anonymous)

        assert result.payload == {
            "error": "not authenticated",
            "detail": "El estudiante debe iniciar sesión para consultar calificaciones",
        }
        records_client.fetch_enrollments.assert_not_called()

    def test_login_checked_before_arguments(self, anonymous, records_client):
        executor = ToolExecutor(records_client=records_client)

        for arguments in ({"tipo_consulta": "bogus"}, "{not json"):
            result = executor.execute("get_grades", arguments, anonymous)
            assert result.payload["error"] == "not authenticated"
        records_client.fetch_enrollments.assert_not_called()

    def test_logged_in_without_token_rejected(self, records_client):
        from edubot.models import SessionContext

        executor = ToolExecutor(records_client=records_client)
        session = SessionContext(is_logged_in=True, display_name="Ana", token="")
        result = executor.execute("get_grades", {"tipo_consulta": "todas"}, session)

        assert result.payload["error"] == "not authenticated"
        records_client.fetch_enrollments.assert_not_called()

    def test_token_forwarded(self, student, records_client):
        executor = ToolExecutor(records_client=records_client)
        executor.execute("get_grades", {"tipo_consulta": "promedio"}, student)
        records_client.fetch_enrollments.assert_called_once_with("tok-123")

    def test_resources_do_not_need_login(self, anonymous):
        executor = ToolExecutor()
        result = executor.execute("search_study_resources", {"materia": "Física"}, anonymous)
        assert not result.is_error


class TestHandlerFailures:
    """Backend errors become tool errors."""

    def test_backend_error(self, student):
        client = Mock()
        client.fetch_enrollments.side_effect = RecordsAPIError("Error HTTP: 401")
        executor = ToolExecutor(records_client=client)

        result = executor.execute("get_grades", {"tipo_consulta": "todas"}, student)

        assert result.payload == {"error": "tool execution failed", "detail": "Error HTTP: 401"}

    def test_long_error_truncated(self, student):
        client = Mock()
        client.fetch_enrollments.side_effect = RuntimeError("x" * 2000)
        executor = ToolExecutor(records_client=client)

        result = executor.execute("get_grades", {"tipo_consulta": "todas"}, student)

        assert len(result.payload["detail"]) == 503
        assert result.payload["detail"].endswith("...")

    def test_missing_records_client(self, student):
        executor = ToolExecutor(records_client=None)
        result = executor.execute("get_grades", {"tipo_consulta": "todas"}, student)
        assert result.payload["error"] == "tool execution failed"

    def test_threshold_passed_to_handler(self, student, records_client):
        executor = ToolExecutor(records_client=records_client, low_grade_threshold=90)
        result = executor.execute("get_grades", {"tipo_consulta": "peor"}, student)

        names = [s["name"] for s in result.payload["subjects_needing_attention"]]
        assert names == ["Cálculo", "Programación"]
