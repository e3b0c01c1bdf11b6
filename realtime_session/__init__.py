"""
Resilient client for a realtime, JSON-event conversational service.

``ConnectionManager`` keeps one WebSocket session open, reconnects with
exponential backoff, journals every event and persists the journal when the
session ends. ``AudioUtils`` converts between float samples, PCM16, base64
and WAV.
"""

from .connection_manager import ConnectionManager
from .exceptions import (
    MalformedFrame,
    NotConnected,
    PersistenceError,
    RealtimeSessionError,
    ReconnectExhausted,
    TransportError,
)
from .handlers import ErrorContext, ErrorHandler, ErrorSeverity, EventRouter
from .history import HistoryJournal, HistoryRecord
from .models import ConnectionState, ConversationItemCreateEvent, RealtimeEvent
from .utils import AudioUtils, ReconnectPolicy

__version__ = "0.1.0"

__all__ = [
    "AudioUtils",
    "ConnectionManager",
    "ConnectionState",
    "ConversationItemCreateEvent",
    "ErrorContext",
    "ErrorHandler",
    "ErrorSeverity",
    "EventRouter",
    "HistoryJournal",
    "HistoryRecord",
    "MalformedFrame",
    "NotConnected",
    "PersistenceError",
    "RealtimeEvent",
    "RealtimeSessionError",
    "ReconnectExhausted",
    "ReconnectPolicy",
    "TransportError",
]
