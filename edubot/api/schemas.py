"""
Pydantic schemas for the EduBot HTTP API.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class StudentFields(BaseModel):
    """Identity fields sent with every conversational request.

    The credential itself travels in the ``Authorization`` header.
    """

    is_logged_in: bool = Field(default=False, description="Whether the student is logged in")
    display_name: Optional[str] = Field(default=None, description="Student's display name")


class MessageRequest(StudentFields):
    """A text message from the student."""

    message: str = Field(..., description="The student's message")
    include_trace: bool = Field(
        default=False, description="Include the orchestration steps in the response"
    )

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("message must not be empty")
        return v


class ImageRequest(StudentFields):
    """An image upload, base64-encoded."""

    message: Optional[str] = Field(default=None, description="Question about the image")
    image_base64: str = Field(..., description="Image bytes, base64-encoded")
    mime_type: str = Field(default="image/jpeg", description="MIME type of the image")


class AudioRequest(StudentFields):
    """A recorded voice message, base64-encoded."""

    audio_base64: str = Field(..., description="Audio bytes, base64-encoded")
    filename: str = Field(default="audio.webm", description="Original file name")


class TraceStep(BaseModel):
    """A single step in the orchestration trace."""

    step: int = Field(..., description="Step number in the run")
    iteration: int = Field(..., description="Model iteration the step belongs to")
    action: Optional[str] = Field(default=None, description="Tool that was invoked")
    action_input: Optional[dict] = Field(default=None, description="Arguments passed to the tool")
    observation: Optional[str] = Field(default=None, description="Serialized tool result")
    auto_triggered: bool = Field(default=False, description="Run by a trigger rule, not the model")
    is_final: bool = Field(default=False, description="Whether this was the final step")
    error: Optional[str] = Field(default=None, description="Model error, if the step failed")


class MessageResponse(BaseModel):
    answer: str
    state: str
    iterations: int
    tools_used: list[str] = Field(default_factory=list)
    trace: Optional[list[TraceStep]] = Field(
        default=None, description="Orchestration steps (only when include_trace is true)"
    )


class IntakeResponse(BaseModel):
    """Answer to an image or audio upload."""

    answer: str
    transcript: Optional[str] = None


class TurnModel(BaseModel):
    role: str
    content: str
    tool_name: Optional[str] = None
    tool_request: Optional[dict] = None


class HistoryResponse(BaseModel):
    session_id: str
    turns: list[TurnModel]


class StatusResponse(BaseModel):
    """Availability of the inference service."""

    available: bool
    mode: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str
    model: str
    assistant_available: bool
