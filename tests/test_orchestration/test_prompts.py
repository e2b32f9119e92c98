"""Tests for the system prompt builder."""

from datetime import datetime

from edubot.models import SessionContext
from edubot.orchestration.prompts import build_system_prompt, format_spanish_date

MOMENT = datetime(2026, 10, 19, 14, 5, 9)


class TestFormatSpanishDate:
    def test_weekday_and_month_names(self):
        assert format_spanish_date(MOMENT) == "lunes, 19 de octubre de 2026"

    def test_sunday(self):
        assert format_spanish_date(datetime(2026, 3, 1)) == "domingo, 1 de marzo de 2026"


class TestBuildSystemPrompt:
    def test_student_fields(self, student):
        prompt = build_system_prompt(student, now=MOMENT)

        assert "- Nombre: Ana" in prompt
        assert "- Sesión activa: Sí" in prompt
        assert "lunes, 19 de octubre de 2026" in prompt
        assert "14:05:09" in prompt

    def test_anonymous_defaults(self, anonymous):
        prompt = build_system_prompt(anonymous, now=MOMENT)

        assert "- Nombre: Usuario" in prompt
        assert "- Sesión activa: No" in prompt

    def test_threshold_rendered(self):
        prompt = build_system_prompt(SessionContext(), now=MOMENT, low_grade_threshold=65)
        assert "calificación < 65" in prompt

    def test_names_both_tools(self):
        prompt = build_system_prompt(SessionContext(), now=MOMENT)

        assert "get_grades" in prompt
        assert "search_study_resources" in prompt
        assert "[LINK:url]" in prompt

    def test_defaults_to_current_time(self):
        assert "Fecha actual:" in build_system_prompt(SessionContext())
