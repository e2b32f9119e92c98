"""Tests for the audio and image intake adapters."""

from unittest.mock import Mock

from edubot.intake import (
    AUDIO_ERROR_MESSAGE,
    DEFAULT_IMAGE_CAPTION,
    EMPTY_IMAGE_ANSWER,
    IMAGE_ERROR_MESSAGE,
    UNCLEAR_AUDIO_MESSAGE,
    ImageAdapter,
    TranscriptionAdapter,
    to_data_url,
)
from edubot.models import Role
from edubot.orchestration import ConversationState


class TestTranscriptionAdapter:
    """Audio is transcribed then forwarded as text."""

    def test_forwards_transcript(self, mock_llm, student):
        mock_llm.transcribe.return_value = "  ¿Cuál es mi promedio?  "
        send = Mock(return_value="Tu promedio es 70.")

        reply = TranscriptionAdapter(mock_llm, send).handle(b"audio", "clip.webm", student)

        send.assert_called_once_with("¿Cuál es mi promedio?", student)
        assert reply.answer == "Tu promedio es 70."
        assert reply.transcript == "¿Cuál es mi promedio?"
        assert reply.forwarded is True
        mock_llm.transcribe.assert_called_once_with(b"audio", "clip.webm")

    def test_short_transcript_not_forwarded(self, mock_llm):
        mock_llm.transcribe.return_value = " ok "
        send = Mock()

        reply = TranscriptionAdapter(mock_llm, send).handle(b"audio")

        send.assert_not_called()
        assert reply.answer == UNCLEAR_AUDIO_MESSAGE
        assert reply.forwarded is False

    def test_three_characters_is_enough(self, mock_llm):
        mock_llm.transcribe.return_value = "sí?"
        send = Mock(return_value="...")

        reply = TranscriptionAdapter(mock_llm, send).handle(b"audio")

        assert reply.forwarded is True

    def test_empty_transcript(self, mock_llm):
        mock_llm.transcribe.return_value = None

        reply = TranscriptionAdapter(mock_llm, Mock()).handle(b"audio")

        assert reply.answer == UNCLEAR_AUDIO_MESSAGE

    def test_transcription_error(self, mock_llm):
        mock_llm.transcribe.side_effect = RuntimeError("bad format")
        send = Mock()

        reply = TranscriptionAdapter(mock_llm, send).handle(b"audio")

        assert reply.answer == AUDIO_ERROR_MESSAGE
        assert reply.transcript is None
        send.assert_not_called()


class TestImageAdapter:
    """Images get one vision call outside the tool loop."""

    def test_successful_analysis_is_recorded(self, mock_llm, student):
        mock_llm.describe_image.return_value = "Es una función cuadrática."
        conversation = ConversationState()

        reply = ImageAdapter(mock_llm, conversation).handle(
            "¿Qué función es?", b"png", "image/png", student
        )

        assert reply.answer == "Es una función cuadrática."
        turns = conversation.snapshot()
        assert [t.role for t in turns] == [Role.SYSTEM, Role.USER, Role.ASSISTANT]
        assert turns[1].content == "[Imagen: ¿Qué función es?]"
        system_prompt, caption, data_url = mock_llm.describe_image.call_args[0]
        assert "Ana" in system_prompt
        assert caption == "¿Qué función es?"
        assert data_url == to_data_url(b"png", "image/png")

    def test_default_caption(self, mock_llm):
        mock_llm.describe_image.return_value = "Una foto."
        conversation = ConversationState()

        ImageAdapter(mock_llm, conversation).handle("   ", b"jpg")

        assert mock_llm.describe_image.call_args[0][1] == DEFAULT_IMAGE_CAPTION
        assert conversation.snapshot()[1].content == f"[Imagen: {DEFAULT_IMAGE_CAPTION}]"

    def test_existing_conversation_not_reseeded(self, mock_llm):
        mock_llm.describe_image.return_value = "Ok"
        conversation = ConversationState()
        conversation.seed("prompt")

        ImageAdapter(mock_llm, conversation).handle("mira", b"jpg")

        roles = [t.role for t in conversation.snapshot()]
        assert roles.count(Role.SYSTEM) == 1

    def test_failure_leaves_conversation_untouched(self, mock_llm):
        mock_llm.describe_image.side_effect = RuntimeError("timeout")
        conversation = ConversationState()

        reply = ImageAdapter(mock_llm, conversation).handle("mira", b"jpg")

        assert reply.answer == IMAGE_ERROR_MESSAGE
        assert len(conversation) == 0

    def test_non_image_rejected_without_call(self, mock_llm):
        conversation = ConversationState()

        reply = ImageAdapter(mock_llm, conversation).handle("mira", b"%PDF", "application/pdf")

        assert reply.answer == IMAGE_ERROR_MESSAGE
        mock_llm.describe_image.assert_not_called()

    def test_empty_answer_replaced(self, mock_llm):
        mock_llm.describe_image.return_value = "  "

        reply = ImageAdapter(mock_llm, ConversationState()).handle("mira", b"jpg")

        assert reply.answer == EMPTY_IMAGE_ANSWER

    def test_data_url(self):
        assert to_data_url(b"abc", "image/gif") == "data:image/gif;base64,YWJj"
