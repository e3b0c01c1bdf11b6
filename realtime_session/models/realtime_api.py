"""
Pydantic models for the realtime event protocol.

Messages are exchanged as JSON objects carrying a ``type`` discriminant. This
module provides:
- ``RealtimeEvent``: the immutable, kind-agnostic event used at the router
  boundary (``kind`` + ``payload``), able to carry unknown kinds opaquely
- Typed client events for the kinds this client creates itself
  (``conversation.item.create``, ``response.create``)
- Conversation item and content part models, including audio parts that
  carry base64-encoded PCM16
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Role of a participant in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ContentPartType(str, Enum):
    """Kinds of content parts inside a conversation item."""

    INPUT_TEXT = "input_text"
    INPUT_AUDIO = "input_audio"
    TEXT = "text"
    AUDIO = "audio"


class ClientEventType(str, Enum):
    """Types of events that can be sent to the server."""

    SESSION_UPDATE = "session.update"
    INPUT_AUDIO_BUFFER_APPEND = "input_audio_buffer.append"
    INPUT_AUDIO_BUFFER_COMMIT = "input_audio_buffer.commit"
    INPUT_AUDIO_BUFFER_CLEAR = "input_audio_buffer.clear"
    CONVERSATION_ITEM_CREATE = "conversation.item.create"
    CONVERSATION_ITEM_TRUNCATE = "conversation.item.truncate"
    CONVERSATION_ITEM_DELETE = "conversation.item.delete"
    RESPONSE_CREATE = "response.create"
    RESPONSE_CANCEL = "response.cancel"


class ServerEventType(str, Enum):
    """Types of events received from the server."""

    ERROR = "error"
    SESSION_CREATED = "session.created"
    SESSION_UPDATED = "session.updated"
    CONVERSATION_CREATED = "conversation.created"
    CONVERSATION_ITEM_CREATED = "conversation.item.created"
    INPUT_AUDIO_BUFFER_COMMITTED = "input_audio_buffer.committed"
    INPUT_AUDIO_BUFFER_SPEECH_STARTED = "input_audio_buffer.speech_started"
    INPUT_AUDIO_BUFFER_SPEECH_STOPPED = "input_audio_buffer.speech_stopped"
    RESPONSE_CREATED = "response.created"
    RESPONSE_DONE = "response.done"
    RESPONSE_TEXT_DELTA = "response.text.delta"
    RESPONSE_TEXT_DONE = "response.text.done"
    RESPONSE_AUDIO_DELTA = "response.audio.delta"
    RESPONSE_AUDIO_DONE = "response.audio.done"
    RESPONSE_AUDIO_TRANSCRIPT_DELTA = "response.audio_transcript.delta"
    RESPONSE_AUDIO_TRANSCRIPT_DONE = "response.audio_transcript.done"
    RATE_LIMITS_UPDATED = "rate_limits.updated"


class RealtimeEvent(BaseModel):
    """An immutable protocol event.

    ``kind`` is the wire ``type`` discriminant; ``payload`` holds every other
    top-level field of the frame. Unknown kinds are carried as-is.
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    payload: Dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        """Return the JSON-serializable frame structure."""
        return {"type": self.kind, **self.payload}

    @classmethod
    def from_wire(cls, frame: Dict[str, Any]) -> "RealtimeEvent":
        """Build an event from a decoded frame object that has a ``type``."""
        payload = {key: value for key, value in frame.items() if key != "type"}
        return cls(kind=frame["type"], payload=payload)


class ContentPart(BaseModel):
    """A single part of a conversation item's content.

    Text parts carry ``text``; audio parts carry base64-encoded PCM16 in
    ``audio`` and an optional ``transcript``.
    """

    type: ContentPartType
    text: Optional[str] = None
    audio: Optional[str] = None
    transcript: Optional[str] = None


class ConversationItem(BaseModel):
    """A message unit inside a ``conversation.item.create`` event."""

    type: Literal["message"] = "message"
    role: MessageRole
    content: List[ContentPart] = Field(default_factory=list)


class ClientEvent(BaseModel):
    """Base model for events sent to the server."""

    type: str
    event_id: Optional[str] = None

    def to_event(self) -> RealtimeEvent:
        """Convert to the kind-agnostic event form."""
        return RealtimeEvent.from_wire(self.model_dump(mode="json", exclude_none=True))


class ConversationItemCreateEvent(ClientEvent):
    """Event to add a conversation item to the conversation context."""

    type: Literal["conversation.item.create"] = "conversation.item.create"
    item: ConversationItem
    previous_item_id: Optional[str] = None

    @classmethod
    def text(
        cls, text: str, role: MessageRole = MessageRole.USER
    ) -> "ConversationItemCreateEvent":
        """Create a message item with a single ``input_text`` part."""
        return cls(
            item=ConversationItem(
                role=role,
                content=[ContentPart(type=ContentPartType.INPUT_TEXT, text=text)],
            )
        )

    @classmethod
    def audio(
        cls,
        audio_b64: str,
        transcript: Optional[str] = None,
        role: MessageRole = MessageRole.USER,
    ) -> "ConversationItemCreateEvent":
        """Create a message item with a single ``input_audio`` part."""
        return cls(
            item=ConversationItem(
                role=role,
                content=[
                    ContentPart(
                        type=ContentPartType.INPUT_AUDIO,
                        audio=audio_b64,
                        transcript=transcript,
                    )
                ],
            )
        )


class ResponseCreateOptions(BaseModel):
    """Options for creating a response."""

    modalities: List[Literal["audio", "text"]] = Field(default_factory=lambda: ["text"])
    instructions: Optional[str] = None
    voice: Optional[str] = None
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None


class ResponseCreateEvent(ClientEvent):
    """Event to trigger model inference.

    With no ``response`` options this is the bare ``{"type": "response.create"}``
    trigger sent after every outbound event.
    """

    type: Literal["response.create"] = "response.create"
    response: Optional[ResponseCreateOptions] = None
