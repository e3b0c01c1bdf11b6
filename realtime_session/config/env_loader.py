"""
Environment variable loader for realtime session configuration.

This module handles loading configuration from environment variables,
with type conversion, validation, and fallback to defaults.

Environment variables must be explicitly loaded using load_env_file() before
accessing any configuration functions.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, cast, get_origin

from dotenv import load_dotenv

from .constants import (
    DEFAULT_BETA_HEADER,
    DEFAULT_COMPLETION_MODEL,
    DEFAULT_HISTORY_FILE_PATH,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_INITIAL_INSTRUCTIONS,
    DEFAULT_INITIAL_MODALITIES,
    DEFAULT_REALTIME_BASE_URL,
    DEFAULT_REALTIME_MODEL,
    DEFAULT_RECONNECT_BASE_DELAY_MS,
    DEFAULT_RECONNECT_MAX_ATTEMPTS,
    DEFAULT_RECONNECT_MAX_DELAY_MS,
    DEFAULT_SAMPLE_RATE,
)
from .models import (
    ApplicationConfig,
    AudioConfig,
    HistoryConfig,
    LoggingConfig,
    LogLevel,
    OpenAIHTTPConfig,
    RealtimeConfig,
    ReconnectConfig,
    WebSocketConfig,
)


# Track if environment variables have been loaded
_env_loaded = False


def load_env_file(env_file: Optional[str] = None) -> None:
    """Load environment variables from a .env file.

    This function must be called before accessing any configuration functions.

    Args:
        env_file: Path to the .env file. If None, uses default behavior.
    """
    global _env_loaded
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()
    _env_loaded = True


def _check_env_loaded() -> None:
    """Check if environment variables have been loaded, raise error if not."""
    if not _env_loaded:
        raise RuntimeError(
            "Environment variables not loaded. Call load_env_file() before accessing configuration."
        )


T = TypeVar("T")


def safe_convert(value: Optional[str], target_type: Type[T], default: T) -> T:
    """Safely convert environment variable string to target type."""
    if value is None:
        return default

    try:
        if target_type == bool:
            return cast(T, value.strip().lower() in ("true", "1", "yes"))
        elif target_type == int:
            return cast(T, int(value))
        elif target_type == float:
            return cast(T, float(value))
        elif target_type == str:
            return cast(T, value)
        elif target_type == Path:
            return cast(T, Path(value))
        elif get_origin(target_type) == list:
            return cast(
                T,
                (
                    [item.strip() for item in value.split(",") if item.strip()]
                    if value
                    else default
                ),
            )
        else:
            return default
    except (ValueError, TypeError):
        return default


def safe_string_or_none(value: Optional[str]) -> Optional[str]:
    """Convert environment variable to string or None if empty."""
    if value is None or value.strip() == "":
        return None
    return value.strip()


def load_realtime_config() -> RealtimeConfig:
    """Load realtime connection configuration from environment variables."""
    _check_env_loaded()

    return RealtimeConfig(
        api_key=safe_string_or_none(os.getenv("OPENAI_API_KEY")),
        model=os.getenv("REALTIME_MODEL", DEFAULT_REALTIME_MODEL),
        base_url=os.getenv("REALTIME_BASE_URL", DEFAULT_REALTIME_BASE_URL),
        url=safe_string_or_none(os.getenv("REALTIME_URL")),
        beta_header=os.getenv("REALTIME_BETA_HEADER", DEFAULT_BETA_HEADER),
        initial_instructions=os.getenv(
            "REALTIME_INSTRUCTIONS", DEFAULT_INITIAL_INSTRUCTIONS
        ),
        initial_modalities=safe_convert(
            os.getenv("REALTIME_MODALITIES"),
            List[str],
            list(DEFAULT_INITIAL_MODALITIES),
        ),
    )


def load_reconnect_config() -> ReconnectConfig:
    """Load reconnect backoff configuration from environment variables."""
    _check_env_loaded()

    return ReconnectConfig(
        enabled=safe_convert(os.getenv("RECONNECT_ENABLED"), bool, True),
        base_delay_ms=safe_convert(
            os.getenv("RECONNECT_BASE_DELAY_MS"), int, DEFAULT_RECONNECT_BASE_DELAY_MS
        ),
        max_delay_ms=safe_convert(
            os.getenv("RECONNECT_MAX_DELAY_MS"), int, DEFAULT_RECONNECT_MAX_DELAY_MS
        ),
        max_attempts=safe_convert(
            os.getenv("RECONNECT_MAX_ATTEMPTS"), int, DEFAULT_RECONNECT_MAX_ATTEMPTS
        ),
    )


def load_history_config() -> HistoryConfig:
    """Load session journal configuration from environment variables."""
    _check_env_loaded()

    return HistoryConfig(
        file_path=safe_convert(
            os.getenv("HISTORY_FILE_PATH"), Path, Path(DEFAULT_HISTORY_FILE_PATH)
        ),
        persist_on_end=safe_convert(os.getenv("HISTORY_PERSIST_ON_END"), bool, True),
    )


def load_websocket_config() -> WebSocketConfig:
    """Load WebSocket configuration from environment variables."""
    _check_env_loaded()

    return WebSocketConfig(
        ping_interval=safe_convert(os.getenv("WS_PING_INTERVAL"), float, 20.0),
        ping_timeout=safe_convert(os.getenv("WS_PING_TIMEOUT"), float, 30.0),
        close_timeout=safe_convert(os.getenv("WS_CLOSE_TIMEOUT"), float, 10.0),
        open_timeout=safe_convert(os.getenv("WS_OPEN_TIMEOUT"), float, 10.0),
    )


def load_audio_config() -> AudioConfig:
    """Load audio configuration from environment variables."""
    _check_env_loaded()

    return AudioConfig(
        sample_rate=safe_convert(
            os.getenv("AUDIO_SAMPLE_RATE"), int, DEFAULT_SAMPLE_RATE
        ),
        channels=safe_convert(os.getenv("AUDIO_CHANNELS"), int, 1),
        bits_per_sample=safe_convert(os.getenv("AUDIO_BITS_PER_SAMPLE"), int, 16),
    )


def load_openai_http_config() -> OpenAIHTTPConfig:
    """Load configuration for the one-shot HTTP endpoints."""
    _check_env_loaded()

    return OpenAIHTTPConfig(
        api_key=safe_string_or_none(os.getenv("OPENAI_API_KEY")),
        completion_model=os.getenv("OPENAI_COMPLETION_MODEL", DEFAULT_COMPLETION_MODEL),
        image_model=os.getenv("OPENAI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
        timeout=safe_convert(os.getenv("OPENAI_TIMEOUT"), float, 30.0),
    )


def load_logging_config() -> LoggingConfig:
    """Load logging configuration from environment variables."""
    _check_env_loaded()

    level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    try:
        level = LogLevel(level_str)
    except ValueError:
        level = LogLevel.INFO

    return LoggingConfig(
        level=level,
        log_dir=safe_convert(os.getenv("LOG_DIR"), Path, Path("logs")),
        log_filename=os.getenv("LOG_FILENAME", "realtime_session.log"),
        console_output=safe_convert(os.getenv("LOG_CONSOLE_OUTPUT"), bool, True),
        file_output=safe_convert(os.getenv("LOG_FILE_OUTPUT"), bool, True),
    )


def load_application_config(validate: bool = True) -> ApplicationConfig:
    """Load complete application configuration from environment variables.

    Args:
        validate: Raise ``ValueError`` when the loaded configuration is invalid.
    """
    _check_env_loaded()

    config = ApplicationConfig(
        realtime=load_realtime_config(),
        reconnect=load_reconnect_config(),
        history=load_history_config(),
        websocket=load_websocket_config(),
        audio=load_audio_config(),
        openai=load_openai_http_config(),
        logging=load_logging_config(),
    )

    if validate:
        validation_errors = config.validate()
        if validation_errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(
                f"  - {error}" for error in validation_errors
            )
            raise ValueError(error_msg)

    return config


def get_environment_info() -> Dict[str, Any]:
    """Get information about current environment variables for debugging."""
    _check_env_loaded()

    return {
        "environment_variables_loaded": len(
            [
                k
                for k in os.environ.keys()
                if k.startswith(
                    ("OPENAI_", "REALTIME_", "RECONNECT_", "HISTORY_", "WS_", "LOG_")
                )
            ]
        ),
        "dotenv_loaded": Path(".env").exists(),
        "openai_api_key_set": bool(os.getenv("OPENAI_API_KEY")),
    }
