"""
Shared utility modules for the realtime session client.

This package contains the audio codec, the reconnect backoff policy and
WebSocket helpers.
"""

from .audio_utils import AudioUtils
from .retry_utils import ReconnectPolicy, calculate_backoff_delay
from .websocket_utils import WebSocketUtils

__all__ = ["AudioUtils", "ReconnectPolicy", "WebSocketUtils", "calculate_backoff_delay"]
