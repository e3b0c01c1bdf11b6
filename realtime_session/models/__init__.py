"""
Models module for the realtime session client.

- realtime_api: pydantic models for protocol events, conversation items
  and content parts
- connection_state: lifecycle enums used by the connection manager and
  the session journal
"""

from .connection_state import ConnectionState, HistoryDirection
from .realtime_api import (
    ClientEvent,
    ClientEventType,
    ContentPart,
    ContentPartType,
    ConversationItem,
    ConversationItemCreateEvent,
    MessageRole,
    RealtimeEvent,
    ResponseCreateEvent,
    ResponseCreateOptions,
    ServerEventType,
)

__all__ = [
    "ClientEvent",
    "ClientEventType",
    "ConnectionState",
    "ContentPart",
    "ContentPartType",
    "ConversationItem",
    "ConversationItemCreateEvent",
    "HistoryDirection",
    "MessageRole",
    "RealtimeEvent",
    "ResponseCreateEvent",
    "ResponseCreateOptions",
    "ServerEventType",
]
