"""Event router for the realtime session protocol.

Encodes outbound events into JSON wire frames, decodes inbound frames into
``RealtimeEvent`` instances and dispatches decoded events to registered
handlers. Only structural validity is checked: a frame must be a JSON object
with a string ``type``. Unrecognized kinds are passed through untouched.
"""

import asyncio
import copy
import json
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from realtime_session.config.logging_config import configure_logging
from realtime_session.exceptions import MalformedFrame
from realtime_session.models.realtime_api import (
    ClientEvent,
    RealtimeEvent,
    ServerEventType,
)
from realtime_session.utils.websocket_utils import WebSocketUtils

logger = configure_logging("event_router")

OutboundEvent = Union[RealtimeEvent, ClientEvent, Mapping[str, Any]]

WILDCARD = "*"


class EventRouter:
    """Router class for encoding, decoding and dispatching realtime events.

    Features:
    - Multiple handlers per event kind with priority ordering
    - Wildcard handlers (``"*"``) that see every dispatched event
    - Middleware that can transform or filter events before handlers run
    - Error isolation so a failing handler does not affect the others

    Attributes:
        handlers (Dict[str, List[Tuple[int, Callable]]]): Priority-ordered handlers per kind
        log_event_types (List[str]): Kinds that get detailed logging on dispatch
    """

    def __init__(self):
        self.handlers: Dict[str, List[Tuple[int, Callable]]] = {}
        self._handler_middleware: List[Tuple[int, Callable]] = []
        self.log_event_types = [
            ServerEventType.ERROR.value,
            ServerEventType.RESPONSE_DONE.value,
        ]

    # ------------------------------------------------------------------
    # Wire codec
    # ------------------------------------------------------------------

    def to_event(self, event: OutboundEvent) -> RealtimeEvent:
        """Normalize an outbound event into a ``RealtimeEvent``.

        Accepts a ``RealtimeEvent``, a typed ``ClientEvent`` model or a
        mapping carrying a string ``type`` (or ``kind``) field.

        Raises:
            ValueError: If the event has no string discriminant
        """
        if isinstance(event, RealtimeEvent):
            return event
        if isinstance(event, ClientEvent):
            return event.to_event()
        if isinstance(event, Mapping):
            frame = dict(event)
            if "type" not in frame and isinstance(frame.get("kind"), str):
                kind = frame.pop("kind")
                frame = {"type": kind, **frame}
            if not isinstance(frame.get("type"), str):
                raise ValueError("Outbound event must carry a string 'type'")
            return RealtimeEvent.from_wire(copy.deepcopy(frame))
        raise ValueError(f"Unsupported outbound event: {type(event).__name__}")

    def encode(self, event: OutboundEvent) -> str:
        """Encode an event into a single JSON wire frame.

        Raises:
            ValueError: If the event cannot be represented as a JSON object
        """
        frame = self.to_event(event).to_wire()
        try:
            return json.dumps(frame)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Event is not JSON-serializable: {e}") from e

    def decode(self, raw: Union[str, bytes]) -> RealtimeEvent:
        """Decode an inbound wire frame.

        Raises:
            MalformedFrame: If the frame is not UTF-8 JSON, is nested too
                deeply to parse, is not an object or has no string ``type``. The connection manager reports it
                on the error channel and drops the frame.
        """
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedFrame(f"Frame is not valid UTF-8: {e}", raw) from e

        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise MalformedFrame(f"Frame is not valid JSON: {e}", raw) from e
        except RecursionError as e:
            raise MalformedFrame("Frame is nested too deeply to decode", raw) from e

        if not isinstance(data, dict):
            raise MalformedFrame(
                f"Frame must be a JSON object, got {type(data).__name__}", raw
            )
        if not isinstance(data.get("type"), str):
            raise MalformedFrame("Frame has no string 'type' field", raw)

        return RealtimeEvent.from_wire(data)

    # ------------------------------------------------------------------
    # Handler registration
    # ------------------------------------------------------------------

    def register_handler(
        self, event_kind: str, handler: Callable, priority: int = 0
    ) -> None:
        """Register a handler for an event kind.

        Args:
            event_kind: The event kind to handle, or ``"*"`` for every event
            handler: Sync or async callable taking a ``RealtimeEvent``
            priority: Handler priority (higher numbers execute first)
        """
        if event_kind not in self.handlers:
            self.handlers[event_kind] = []

        self.handlers[event_kind].append((priority, handler))
        self.handlers[event_kind].sort(key=lambda x: x[0], reverse=True)
        logger.debug(
            f"Registered handler for event kind: {event_kind} (priority: {priority})"
        )

    def unregister_handler(self, event_kind: str, handler: Callable) -> bool:
        """Unregister an event handler.

        Returns:
            bool: True if handler was found and removed
        """
        if event_kind not in self.handlers:
            return False

        handlers = self.handlers[event_kind]
        for i, (priority, h) in enumerate(handlers):
            if h == handler:
                handlers.pop(i)
                logger.debug(f"Unregistered handler for event kind: {event_kind}")
                return True
        return False

    def register_middleware(self, middleware: Callable, priority: int = 0) -> None:
        """Register middleware for event processing.

        Middleware is called before handlers with the event and returns the
        (possibly replaced) event, or None to stop processing.

        Args:
            middleware: Callable taking a ``RealtimeEvent``
            priority: Middleware priority (higher numbers execute first)
        """
        self._handler_middleware.append((priority, middleware))
        self._handler_middleware.sort(key=lambda x: x[0], reverse=True)
        logger.debug(f"Registered event middleware with priority {priority}")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, event: RealtimeEvent) -> None:
        """Run middleware and the registered handlers for a decoded event."""
        logger.debug(WebSocketUtils.format_event_log(event.kind, event.payload))

        if event.kind in self.log_event_types:
            self.handle_log_event(event)

        processed = await self._apply_middleware(event)
        if processed is None:
            logger.debug(f"Event {event.kind} filtered out by middleware")
            return

        handlers = self.handlers.get(processed.kind, []) + self.handlers.get(
            WILDCARD, []
        )
        if handlers:
            await self._execute_handlers(handlers, processed, f"event {processed.kind}")
        else:
            logger.debug(f"No handler for event kind: {processed.kind}")

    def handle_log_event(self, event: RealtimeEvent) -> None:
        """Log the details of server errors and failed responses."""
        if event.kind == ServerEventType.ERROR.value:
            error = event.payload.get("error")
            if not isinstance(error, dict):
                error = event.payload
            logger.error(
                "Server error: type=%s, code=%s, message=%s, param=%s, event_id=%s",
                error.get("type", "unknown"),
                error.get("code", "unknown"),
                error.get("message", "No message provided"),
                error.get("param"),
                error.get("event_id", event.payload.get("event_id")),
            )
        elif event.kind == ServerEventType.RESPONSE_DONE.value:
            response = event.payload.get("response") or {}
            if response.get("status") == "failed":
                error_info = (response.get("status_details") or {}).get("error") or {}
                logger.error(
                    f"Response failed: {error_info.get('message', 'Unknown error')} "
                    f"(type={error_info.get('type')}, code={error_info.get('code')})"
                )

    async def _apply_middleware(
        self, event: RealtimeEvent
    ) -> Optional[RealtimeEvent]:
        current = event

        for priority, middleware in self._handler_middleware:
            try:
                if asyncio.iscoroutinefunction(middleware):
                    result = await middleware(current)
                else:
                    result = middleware(current)

                if result is None:
                    return None

                current = result

            except Exception as e:
                logger.error(f"Error in event middleware: {e}")
                continue

        return current

    async def _execute_handlers(
        self,
        handlers: List[Tuple[int, Callable]],
        event: RealtimeEvent,
        context: str,
    ) -> None:
        """Execute multiple handlers with error isolation."""
        for priority, handler in handlers:
            try:
                if asyncio.iscoroutinefunction(handler):
                    await handler(event)
                else:
                    handler(event)
            except Exception as e:
                logger.error(f"Error in {context} handler (priority {priority}): {e}")

    def get_handler_stats(self) -> Dict[str, Any]:
        """Get statistics about registered handlers."""
        return {
            "handlers": {
                "total": sum(len(h) for h in self.handlers.values()),
                "by_kind": {
                    event_kind: len(handlers)
                    for event_kind, handlers in self.handlers.items()
                },
            },
            "middleware_count": len(self._handler_middleware),
        }
