"""
Configuration models for EduBot.

Defines dataclasses for the unified YAML configuration file.
"""

from dataclasses import dataclass, field


@dataclass
class InferenceConfig:
    """Configuration for the OpenAI inference backend."""
    api_key: str = ""
    base_url: str = ""
    chat_model: str = "gpt-3.5-turbo-0125"
    vision_model: str = "gpt-4o-mini"
    transcription_model: str = "whisper-1"
    transcription_language: str = "es"
    temperature: float = 0.7
    max_tokens: int = 1500
    image_max_tokens: int = 1000
    timeout: float = 60.0

    @property
    def is_configured(self) -> bool:
        """An OpenAI secret key always starts with ``sk-``."""
        return self.api_key.startswith("sk-")


@dataclass
class AcademicApiConfig:
    """Configuration for the academic records backend."""
    base_url: str = "http://localhost:8000/api"
    timeout: float = 15.0


@dataclass
class AssistantConfig:
    """Knobs for the orchestration loop and conversation history."""
    max_iterations: int = 5
    history_limit: int = 20
    low_grade_threshold: float = 70.0
    timezone: str = "America/Guayaquil"
    max_sessions: int = 1000
    session_ttl: float = 3600.0


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1
    reload: bool = False


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = ""
    secret_key: str = ""
    host: str = ""
    debug: bool = False

    @property
    def is_configured(self) -> bool:
        """Check if Langfuse is configured (both keys present)."""
        return bool(self.public_key and self.secret_key)


@dataclass
class AppConfig:
    """
    Unified application configuration container.

    Holds all configuration sections loaded from config/config.yaml
    or from the environment.
    """
    version: str = "1.0"
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    academic_api: AcademicApiConfig = field(default_factory=AcademicApiConfig)
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    langfuse: LangfuseConfig = field(default_factory=LangfuseConfig)

    @property
    def log_level(self) -> str:
        """Shortcut for logging.level."""
        return self.logging.level
