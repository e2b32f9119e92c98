"""
Conversation turn models.

A turn is one immutable entry of the conversation log. Assistant turns may
carry the tool request the model issued; tool turns carry the name of the
tool that produced their content.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Author of a turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ArgumentsDecodeError(ValueError):
    """Raised when tool arguments produced by the model are not a JSON object."""


@dataclass(frozen=True)
class ToolRequest:
    """A tool call requested by the model: name plus JSON-encoded arguments."""

    name: str
    arguments: str = "{}"

    def parse_arguments(self) -> dict[str, Any]:
        """
        Decode the serialized arguments.

        Raises:
            ArgumentsDecodeError: If the text is not valid JSON or does not
                decode to an object.
        """
        if not self.arguments or not self.arguments.strip():
            return {}
        try:
            data = json.loads(self.arguments)
        except json.JSONDecodeError as e:
            raise ArgumentsDecodeError(f"malformed JSON arguments: {e}") from e
        # Some models double-encode the arguments object
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                raise ArgumentsDecodeError(f"malformed JSON arguments: {e}") from e
        if not isinstance(data, dict):
            raise ArgumentsDecodeError(
                f"arguments must be a JSON object, got {type(data).__name__}"
            )
        return data


@dataclass(frozen=True)
class Turn:
    """One entry in the conversation log."""

    role: Role
    content: str = ""
    tool_name: Optional[str] = None
    tool_request: Optional[ToolRequest] = None

    def __post_init__(self):
        if self.tool_name is not None and self.role is not Role.TOOL:
            raise ValueError("tool_name is only valid on tool turns")
        if self.tool_request is not None and self.role is not Role.ASSISTANT:
            raise ValueError("tool_request is only valid on assistant turns")

    @classmethod
    def system(cls, content: str) -> "Turn":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str = "", tool_request: Optional[ToolRequest] = None
    ) -> "Turn":
        return cls(role=Role.ASSISTANT, content=content, tool_request=tool_request)

    @classmethod
    def tool(cls, tool_name: str, content: str) -> "Turn":
        return cls(role=Role.TOOL, content=content, tool_name=tool_name)

    def to_message(self) -> dict:
        """
        Convert to an OpenAI chat message.

        Tool results use the ``function`` role so that results which were
        not requested by the model (auto-triggered follow-ups) are still
        accepted by the endpoint.
        """
        if self.role is Role.TOOL:
            return {"role": "function", "name": self.tool_name, "content": self.content}

        message: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_request is not None:
            message["function_call"] = {
                "name": self.tool_request.name,
                "arguments": self.tool_request.arguments,
            }
        return message

    def to_dict(self) -> dict:
        """Plain representation used by the API and the CLI."""
        data: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_name:
            data["tool_name"] = self.tool_name
        if self.tool_request:
            data["tool_request"] = {
                "name": self.tool_request.name,
                "arguments": self.tool_request.arguments,
            }
        return data
