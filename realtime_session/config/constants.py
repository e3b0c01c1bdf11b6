"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for default values and making it easier to
maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "realtime_session"

# Realtime service connection defaults
DEFAULT_REALTIME_BASE_URL = "wss://api.openai.com"
DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-12-17"
DEFAULT_BETA_HEADER = "realtime=v1"

# Handshake sent right after the socket opens
DEFAULT_INITIAL_INSTRUCTIONS = "Please assist the user."
DEFAULT_INITIAL_MODALITIES = ["text"]
SYSTEM_INITIALIZED_TEXT = "System initialized."

# Reconnect backoff defaults (milliseconds)
DEFAULT_RECONNECT_BASE_DELAY_MS = 1000
DEFAULT_RECONNECT_MAX_DELAY_MS = 30000
DEFAULT_RECONNECT_MAX_ATTEMPTS = 5

# Session journal
DEFAULT_HISTORY_FILE_PATH = "session_history.json"

# Audio constants used throughout the application
DEFAULT_SAMPLE_RATE = 24000  # 24kHz (Realtime API PCM16 rate)
DEFAULT_CHANNELS = 1  # Mono
DEFAULT_BITS_PER_SAMPLE = 16  # 16-bit PCM
WAV_HEADER_SIZE = 44

# Base64 encoding works on chunks whose size is a multiple of 3 so the
# per-chunk encodings concatenate without padding in the middle.
BASE64_CHUNK_SIZE = 0x8000 - (0x8000 % 3)

# One-shot HTTP endpoint defaults
DEFAULT_COMPLETION_MODEL = "gpt-4o"
DEFAULT_IMAGE_MODEL = "dall-e-3"
