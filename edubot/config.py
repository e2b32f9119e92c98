"""
Configuration management for EduBot.

Reads config/config.yaml (or the file named by CONFIG_PATH) when present,
otherwise builds the configuration from environment variables with
sensible defaults for local development.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .config_loader import DEFAULT_CONFIG_PATH, load_app_config, parse_app_config
from .models import AppConfig

load_dotenv()

logger = logging.getLogger(__name__)


def config_from_env() -> AppConfig:
    """Build the configuration from environment variables only."""
    return parse_app_config(
        {
            "inference": {
                "api_key": "${OPENAI_API_KEY:-}",
                "base_url": "${OPENAI_BASE_URL:-}",
                "chat_model": "${OPENAI_CHAT_MODEL:-}",
                "vision_model": "${OPENAI_VISION_MODEL:-}",
                "transcription_model": "${OPENAI_TRANSCRIPTION_MODEL:-}",
                "temperature": os.getenv("OPENAI_TEMPERATURE", "0.7"),
                "max_tokens": os.getenv("OPENAI_MAX_TOKENS", "1500"),
                "timeout": os.getenv("OPENAI_TIMEOUT", "60"),
            },
            "academic_api": {
                "base_url": "${ACADEMIC_API_URL:-}",
                "timeout": os.getenv("ACADEMIC_API_TIMEOUT", "15"),
            },
            "assistant": {
                "max_iterations": os.getenv("ASSISTANT_MAX_ITERATIONS", "5"),
                "history_limit": os.getenv("ASSISTANT_HISTORY_LIMIT", "20"),
                "low_grade_threshold": os.getenv("ASSISTANT_LOW_GRADE_THRESHOLD", "70"),
                "timezone": "${ASSISTANT_TIMEZONE:-}",
                "max_sessions": os.getenv("ASSISTANT_MAX_SESSIONS", "1000"),
                "session_ttl": os.getenv("ASSISTANT_SESSION_TTL", "3600"),
            },
            "server": {
                "host": os.getenv("SERVER_HOST", "0.0.0.0"),
                "port": os.getenv("SERVER_PORT", "8000"),
                "workers": os.getenv("SERVER_WORKERS", "1"),
                "reload": os.getenv("SERVER_RELOAD", "false"),
            },
            "logging": {"level": os.getenv("LOG_LEVEL", "INFO")},
            "langfuse": {
                "public_key": "${LANGFUSE_PUBLIC_KEY:-}",
                "secret_key": "${LANGFUSE_SECRET_KEY:-}",
                "host": "${LANGFUSE_HOST:-}",
                "debug": os.getenv("LANGFUSE_DEBUG", "false"),
            },
        }
    )


def get_config() -> AppConfig:
    """Get the application configuration."""
    path = Path(os.environ.get("CONFIG_PATH", str(DEFAULT_CONFIG_PATH)))
    if path.exists():
        return load_app_config(str(path))
    logger.debug("No configuration file at %s, using environment", path)
    return config_from_env()


# Global config instance
config = get_config()
