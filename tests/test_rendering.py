"""Tests for the answer renderer."""

import pytest

from edubot.rendering import Segment, classify_line, parse_segments, render, render_plain


class TestClassifyLine:
    @pytest.mark.parametrize(
        "line,kind",
        [
            ("", "blank"),
            ("   ", "blank"),
            ("---", "separator"),
            ("🎓 Tus calificaciones", "title"),
            ("⚠️ Atención", "title"),
            ("📚 Recursos", "subtitle"),
            ("• Cálculo: 55", "bullet"),
            ("2. Repasa límites", "numbered"),
            ("   detalle", "indented"),
            ("Hola Ana", "normal"),
        ],
    )
    def test_kinds(self, line, kind):
        assert classify_line(line) == kind

    def test_title_wins_over_indent(self):
        assert classify_line("   🎯 Meta") == "title"


class TestParseSegments:
    def test_plain_text(self):
        assert parse_segments("Hola") == (Segment("text", "Hola"),)

    def test_bold_and_link(self):
        segments = parse_segments("Mira **esto**: [LINK:https://khanacademy.org]")

        assert segments == (
            Segment("text", "Mira "),
            Segment("bold", "esto"),
            Segment("text", ": "),
            Segment("link", "Enlace", url="https://khanacademy.org"),
        )

    def test_unclosed_bold_is_text(self):
        assert parse_segments("**abierto") == (Segment("text", "**abierto"),)


class TestRender:
    def test_one_line_per_input_line(self):
        lines = render("🎓 Notas\n\n• **Cálculo**: 55")

        assert [line.kind for line in lines] == ["title", "blank", "bullet"]
        assert lines[2].plain_text == "• Cálculo: 55"

    def test_indent_recorded(self):
        assert render("    texto")[0].indent == 4

    def test_is_deterministic(self):
        text = "📊 Promedio\n1. **70**\n[LINK:https://x.org]"
        assert render(text) == render(text)

    def test_render_plain(self):
        text = "**Hola**\n---\nVideo: [LINK:https://youtube.com/x]"

        assert render_plain(text) == (
            "Hola\n" + "-" * 40 + "\nVideo: Enlace: https://youtube.com/x"
        )
