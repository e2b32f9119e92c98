"""
LLM Call Interface for EduBot

Thin wrapper over the OpenAI SDK covering the three kinds of calls the
assistant makes:
- chat completion with function calling (orchestration loop)
- single-shot image description (vision model)
- audio transcription (Whisper)

Errors are not swallowed here; callers decide how a failed call degrades.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from openai import OpenAI

from .config import config
from .models import ToolRequest

logger = logging.getLogger(__name__)


@dataclass
class ModelReply:
    """One assistant message returned by the chat model."""

    text: str = ""
    tool_request: Optional[ToolRequest] = None
    finish_reason: Optional[str] = None
    usage: dict = field(default_factory=dict)

    @property
    def wants_tool(self) -> bool:
        return self.tool_request is not None


def _extract_tool_request(message) -> Optional[ToolRequest]:
    function_call = getattr(message, "function_call", None)
    if function_call is not None and getattr(function_call, "name", None):
        return ToolRequest(function_call.name, function_call.arguments or "{}")

    # Some endpoints answer with the newer tool_calls field instead
    tool_calls = getattr(message, "tool_calls", None) or []
    if tool_calls:
        function = tool_calls[0].function
        return ToolRequest(function.name, function.arguments or "{}")
    return None


def _usage_dict(response) -> dict:
    usage = getattr(response, "usage", None)
    if not usage:
        return {}
    return {
        "prompt_tokens": usage.prompt_tokens,
        "completion_tokens": usage.completion_tokens,
        "total_tokens": usage.total_tokens,
    }


class LLMClient:
    """OpenAI client configured for the assistant."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = config.inference
        self.chat_model = settings.chat_model
        self.vision_model = settings.vision_model
        self.transcription_model = settings.transcription_model
        self.transcription_language = settings.transcription_language
        self.temperature = settings.temperature
        self.max_tokens = settings.max_tokens
        self.image_max_tokens = settings.image_max_tokens

        client_kwargs: dict = {
            "api_key": api_key if api_key is not None else settings.api_key,
            "timeout": timeout if timeout is not None else settings.timeout,
        }
        resolved_url = base_url or settings.base_url
        if resolved_url:
            client_kwargs["base_url"] = resolved_url
        self._client = OpenAI(**client_kwargs)

    def complete(
        self,
        messages: list[dict],
        functions: Optional[list[dict]] = None,
    ) -> ModelReply:
        """
        Ask the chat model for the next assistant message.

        Args:
            messages: Conversation in chat-completion wire format.
            functions: Function definitions the model may call.

        Returns:
            The model's reply: either text or a tool request.
        """
        create_kwargs: dict = {
            "model": self.chat_model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if functions:
            create_kwargs["functions"] = functions
            create_kwargs["function_call"] = "auto"

        response = self._client.chat.completions.create(**create_kwargs)
        choice = response.choices[0]
        reply = ModelReply(
            text=choice.message.content or "",
            tool_request=_extract_tool_request(choice.message),
            finish_reason=choice.finish_reason,
            usage=_usage_dict(response),
        )
        if reply.wants_tool:
            logger.info(f"Model requested tool: {reply.tool_request.name}")
        return reply

    def describe_image(self, system_prompt: str, caption: str, data_url: str) -> str:
        """Single vision call; returns the raw answer text (may be empty)."""
        response = self._client.chat.completions.create(
            model=self.vision_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": caption},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                },
            ],
            max_tokens=self.image_max_tokens,
        )
        return response.choices[0].message.content or ""

    def transcribe(self, audio: bytes, filename: str = "audio.webm") -> str:
        """Transcribe an audio clip; returns the transcript text."""
        transcription = self._client.audio.transcriptions.create(
            model=self.transcription_model,
            file=(filename, audio),
            language=self.transcription_language,
        )
        return getattr(transcription, "text", "") or ""
