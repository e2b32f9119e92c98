"""
Multimodal intake adapters.

Audio is transcribed and, when the transcript is usable, forwarded to the
text pipeline as if the student had typed it. Images get one vision call
outside the tool loop; only a successful analysis is recorded in the
conversation.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .llm_call import LLMClient
from .models import ANONYMOUS, SessionContext, Turn
from .orchestration.conversation import ConversationState
from .orchestration.prompts import build_system_prompt

logger = logging.getLogger(__name__)

MIN_TRANSCRIPT_LENGTH = 3
DEFAULT_IMAGE_CAPTION = "Analiza esta imagen."

UNCLEAR_AUDIO_MESSAGE = "No pude entender el audio. Habla más claro e intenta nuevamente."
AUDIO_ERROR_MESSAGE = "Error procesando el audio. Intenta nuevamente."
IMAGE_ERROR_MESSAGE = "Error al procesar la imagen. Verifica que el archivo sea válido."
EMPTY_IMAGE_ANSWER = "No pude analizar la imagen"


@dataclass
class IntakeReply:
    """What an adapter produced for one upload."""

    answer: str
    transcript: Optional[str] = None
    forwarded: bool = False


def to_data_url(image: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(image).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class TranscriptionAdapter:
    """Turns a recorded clip into a text message."""

    def __init__(
        self,
        llm_client: LLMClient,
        send_message: Callable[[str, SessionContext], str],
    ):
        """
        Args:
            llm_client: Client providing ``transcribe(audio, filename)``.
            send_message: Text pipeline entry point; returns the answer.
        """
        self.llm_client = llm_client
        self.send_message = send_message

    def handle(
        self,
        audio: bytes,
        filename: str = "audio.webm",
        session: Optional[SessionContext] = None,
    ) -> IntakeReply:
        session = session or ANONYMOUS
        try:
            transcript = self.llm_client.transcribe(audio, filename)
        except Exception as e:
            logger.error(f"Audio transcription failed: {e}")
            return IntakeReply(answer=AUDIO_ERROR_MESSAGE)

        transcript = (transcript or "").strip()
        if len(transcript) < MIN_TRANSCRIPT_LENGTH:
            logger.info("Transcript too short (%d chars), not forwarding", len(transcript))
            return IntakeReply(answer=UNCLEAR_AUDIO_MESSAGE, transcript=transcript)

        logger.debug("Transcript: %s", transcript)
        answer = self.send_message(transcript, session)
        return IntakeReply(answer=answer, transcript=transcript, forwarded=True)


class ImageAdapter:
    """Answers a question about an uploaded image."""

    def __init__(self, llm_client: LLMClient, conversation: ConversationState):
        self.llm_client = llm_client
        self.conversation = conversation

    def handle(
        self,
        caption: Optional[str],
        image: bytes,
        mime_type: str = "image/jpeg",
        session: Optional[SessionContext] = None,
    ) -> IntakeReply:
        """
        Analyse an image with a single vision call.

        No tools are offered to the model. On failure nothing is appended
        to the conversation.
        """
        session = session or ANONYMOUS
        caption = (caption or "").strip() or DEFAULT_IMAGE_CAPTION
        if not image or not mime_type.startswith("image/"):
            logger.warning("Rejected upload with type %r", mime_type)
            return IntakeReply(answer=IMAGE_ERROR_MESSAGE)

        system_prompt = build_system_prompt(session)
        try:
            answer = self.llm_client.describe_image(
                system_prompt, caption, to_data_url(image, mime_type)
            )
        except Exception as e:
            logger.error(f"Image analysis failed: {e}")
            return IntakeReply(answer=IMAGE_ERROR_MESSAGE)

        answer = answer.strip() or EMPTY_IMAGE_ANSWER
        if len(self.conversation) == 0:
            self.conversation.seed(system_prompt)
        self.conversation.append(Turn.user(f"[Imagen: {caption}]"))
        self.conversation.append(Turn.assistant(answer))
        self.conversation.compact_if_needed()
        return IntakeReply(answer=answer)
