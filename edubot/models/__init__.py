"""
Data models for EduBot.
"""

from .config import (
    InferenceConfig,
    AcademicApiConfig,
    AssistantConfig,
    ServerConfig,
    LoggingConfig,
    LangfuseConfig,
    AppConfig,
)
from .session import ANONYMOUS, EnrollmentRecord, SessionContext
from .turns import ArgumentsDecodeError, Role, ToolRequest, Turn

__all__ = [
    # Config models
    "InferenceConfig",
    "AcademicApiConfig",
    "AssistantConfig",
    "ServerConfig",
    "LoggingConfig",
    "LangfuseConfig",
    "AppConfig",
    # Session models
    "ANONYMOUS",
    "EnrollmentRecord",
    "SessionContext",
    # Conversation models
    "ArgumentsDecodeError",
    "Role",
    "ToolRequest",
    "Turn",
]
