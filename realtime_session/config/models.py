"""
Configuration models for the realtime session client.

This module defines dataclasses for different configuration domains,
providing type safety and validation for all client settings. A fully
built ``ApplicationConfig`` is passed explicitly to the components that
need it; nothing inside the connection layer reads ambient state.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from realtime_session.config.constants import (
    DEFAULT_BETA_HEADER,
    DEFAULT_BITS_PER_SAMPLE,
    DEFAULT_CHANNELS,
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


class LogLevel(Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class RealtimeConfig:
    """Connection parameters for the realtime event service."""

    api_key: Optional[str] = None
    model: str = DEFAULT_REALTIME_MODEL
    base_url: str = DEFAULT_REALTIME_BASE_URL
    url: Optional[str] = None  # full URL override, wins over base_url/model
    beta_header: str = DEFAULT_BETA_HEADER
    initial_instructions: str = DEFAULT_INITIAL_INSTRUCTIONS
    initial_modalities: List[str] = field(
        default_factory=lambda: list(DEFAULT_INITIAL_MODALITIES)
    )

    def get_websocket_url(self) -> str:
        """Get the realtime WebSocket URL."""
        if self.url:
            return self.url
        return f"{self.base_url}/v1/realtime?model={self.model}"

    def get_headers(self) -> Dict[str, str]:
        """Get the authentication and protocol-version headers."""
        if not self.api_key:
            raise ValueError("Realtime API key is required")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": self.beta_header,
        }


@dataclass
class ReconnectConfig:
    """Reconnect backoff settings."""

    enabled: bool = True
    base_delay_ms: int = DEFAULT_RECONNECT_BASE_DELAY_MS
    max_delay_ms: int = DEFAULT_RECONNECT_MAX_DELAY_MS
    max_attempts: int = DEFAULT_RECONNECT_MAX_ATTEMPTS


@dataclass
class HistoryConfig:
    """Session journal settings."""

    file_path: Path = field(default_factory=lambda: Path(DEFAULT_HISTORY_FILE_PATH))
    persist_on_end: bool = True


@dataclass
class WebSocketConfig:
    """WebSocket connection configuration."""

    ping_interval: Optional[float] = 20.0
    ping_timeout: Optional[float] = 30.0
    close_timeout: float = 10.0
    open_timeout: float = 10.0


@dataclass
class AudioConfig:
    """Audio processing configuration."""

    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = DEFAULT_CHANNELS
    bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE


@dataclass
class OpenAIHTTPConfig:
    """Settings for the one-shot completion and image endpoints."""

    api_key: Optional[str] = None
    completion_model: str = DEFAULT_COMPLETION_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    timeout: float = 30.0


@dataclass
class LoggingConfig:
    """Logging configuration settings."""

    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_filename: str = "realtime_session.log"
    max_log_size: int = 10 * 1024 * 1024  # 10 MB
    backup_count: int = 5
    console_output: bool = True
    file_output: bool = True


@dataclass
class ApplicationConfig:
    """Master configuration containing all domain configs."""

    realtime: RealtimeConfig = field(default_factory=RealtimeConfig)
    reconnect: ReconnectConfig = field(default_factory=ReconnectConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    websocket: WebSocketConfig = field(default_factory=WebSocketConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    openai: OpenAIHTTPConfig = field(default_factory=OpenAIHTTPConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.realtime.api_key:
            errors.append(
                "Realtime API key is required. Set the OPENAI_API_KEY environment variable."
            )

        if not self.realtime.get_websocket_url().startswith(("ws://", "wss://")):
            errors.append("Realtime URL must use the ws:// or wss:// scheme")

        if self.reconnect.base_delay_ms <= 0:
            errors.append("Reconnect base delay must be positive")

        if self.reconnect.max_delay_ms < self.reconnect.base_delay_ms:
            errors.append("Reconnect max delay must not be smaller than the base delay")

        if self.reconnect.max_attempts < 0:
            errors.append("Reconnect max attempts must not be negative")

        if self.audio.sample_rate <= 0:
            errors.append("Audio sample rate must be positive")

        return errors
