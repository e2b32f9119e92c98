"""
Configuration loader for EduBot.

Loads configuration from a YAML file with support for
environment variable interpolation.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .models import (
    AcademicApiConfig,
    AppConfig,
    AssistantConfig,
    InferenceConfig,
    LangfuseConfig,
    LoggingConfig,
    ServerConfig,
)

logger = logging.getLogger(__name__)

# Default config path relative to project root
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "config.yaml"

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

# Singleton cache for app config
_app_config: Optional[AppConfig] = None


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.

    Args:
        value: String potentially containing env var references

    Returns:
        String with env vars resolved
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a data structure."""
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _as_bool(value: Any, default: bool = False) -> bool:
    """Interpret YAML booleans and interpolated "true"/"false" strings."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _parse_inference_config(data: dict) -> InferenceConfig:
    """Parse inference backend configuration from dict."""
    defaults = InferenceConfig()
    return InferenceConfig(
        api_key=data.get("api_key", "") or "",
        base_url=data.get("base_url", "") or "",
        chat_model=data.get("chat_model") or defaults.chat_model,
        vision_model=data.get("vision_model") or defaults.vision_model,
        transcription_model=(
            data.get("transcription_model") or defaults.transcription_model
        ),
        transcription_language=(
            data.get("transcription_language") or defaults.transcription_language
        ),
        temperature=float(data.get("temperature", defaults.temperature)),
        max_tokens=int(data.get("max_tokens", defaults.max_tokens)),
        image_max_tokens=int(data.get("image_max_tokens", defaults.image_max_tokens)),
        timeout=float(data.get("timeout", defaults.timeout)),
    )


def _parse_academic_api_config(data: dict) -> AcademicApiConfig:
    """Parse academic records backend configuration from dict."""
    defaults = AcademicApiConfig()
    return AcademicApiConfig(
        base_url=data.get("base_url") or defaults.base_url,
        timeout=float(data.get("timeout", defaults.timeout)),
    )


def _parse_assistant_config(data: dict) -> AssistantConfig:
    """Parse orchestration knobs from dict."""
    defaults = AssistantConfig()
    return AssistantConfig(
        max_iterations=int(data.get("max_iterations", defaults.max_iterations)),
        history_limit=int(data.get("history_limit", defaults.history_limit)),
        low_grade_threshold=float(
            data.get("low_grade_threshold", defaults.low_grade_threshold)
        ),
        timezone=data.get("timezone") or defaults.timezone,
        max_sessions=int(data.get("max_sessions", defaults.max_sessions)),
        session_ttl=float(data.get("session_ttl", defaults.session_ttl)),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server configuration from dict."""
    return ServerConfig(
        host=data.get("host", "0.0.0.0"),
        port=int(data.get("port", 8000)),
        workers=int(data.get("workers", 1)),
        reload=_as_bool(data.get("reload"), False),
    )


def _parse_logging_config(data: dict) -> LoggingConfig:
    """Parse logging configuration from dict."""
    return LoggingConfig(level=data.get("level") or "INFO")


def _parse_langfuse_config(data: dict) -> LangfuseConfig:
    """Parse Langfuse configuration from dict."""
    return LangfuseConfig(
        public_key=data.get("public_key", "") or "",
        secret_key=data.get("secret_key", "") or "",
        host=data.get("host", "") or "",
        debug=_as_bool(data.get("debug"), False),
    )


def validate_app_config(app_config: AppConfig) -> list[str]:
    """
    Validate an application configuration.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []
    assistant = app_config.assistant

    if assistant.max_iterations <= 0:
        errors.append("assistant.max_iterations must be positive")
    if assistant.history_limit < 2:
        errors.append("assistant.history_limit must be at least 2")
    if not 0 <= assistant.low_grade_threshold <= 100:
        errors.append("assistant.low_grade_threshold must be between 0 and 100")
    if assistant.max_sessions < 1:
        errors.append("assistant.max_sessions must be positive")
    if assistant.session_ttl < 0:
        errors.append("assistant.session_ttl must not be negative")
    if app_config.inference.timeout <= 0:
        errors.append("inference.timeout must be positive")
    if app_config.academic_api.timeout <= 0:
        errors.append("academic_api.timeout must be positive")

    return errors


def parse_app_config(raw_config: dict) -> AppConfig:
    """
    Build an AppConfig from an already-loaded mapping.

    Raises:
        ValueError: If the resulting configuration is invalid
    """
    raw_config = _substitute_env_vars_recursive(raw_config)

    app_config = AppConfig(
        version=str(raw_config.get("version", "1.0")),
        inference=_parse_inference_config(raw_config.get("inference") or {}),
        academic_api=_parse_academic_api_config(raw_config.get("academic_api") or {}),
        assistant=_parse_assistant_config(raw_config.get("assistant") or {}),
        server=_parse_server_config(raw_config.get("server") or {}),
        logging=_parse_logging_config(raw_config.get("logging") or {}),
        langfuse=_parse_langfuse_config(raw_config.get("langfuse") or {}),
    )

    errors = validate_app_config(app_config)
    if errors:
        raise ValueError("Invalid configuration: " + "; ".join(errors))

    return app_config


def load_app_config(path: Optional[str] = None, reload: bool = False) -> AppConfig:
    """
    Load unified application configuration from a YAML file.

    Uses a singleton pattern - subsequent calls return the cached config
    unless reload=True is specified.

    Args:
        path: Path to the YAML configuration file. If None, uses
              CONFIG_PATH env var or the default path (config/config.yaml).
        reload: If True, force reload from disk instead of using cache.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config is invalid
    """
    global _app_config

    if _app_config is not None and not reload:
        return _app_config

    if path is None:
        path = os.environ.get("CONFIG_PATH", str(DEFAULT_CONFIG_PATH))

    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found at {config_path}. "
            f"Create one from config/config.yaml or set CONFIG_PATH env var."
        )

    logger.info(f"Loading configuration from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        raise ValueError(f"Configuration file {config_path} is empty")

    app_config = parse_app_config(raw_config)
    _app_config = app_config

    logger.debug(
        f"Configuration loaded: version={app_config.version}, "
        f"model={app_config.inference.chat_model}"
    )

    return app_config


def reset_config_cache() -> None:
    """Reset the configuration cache, forcing a reload on next access."""
    global _app_config
    _app_config = None
    logger.debug("Configuration cache reset")
