"""Connection lifecycle state for the realtime session connection manager.

State machine::

    IDLE -> CONNECTING -> OPEN <-> RECONNECTING -> CLOSED

``CONNECTING -> CLOSED`` happens when ``end()`` cancels a pending connect,
``OPEN -> CLOSED`` on ``end()``, and ``RECONNECTING -> CLOSED`` on either
``end()`` or reconnect exhaustion. ``CLOSED`` is terminal.
"""

from enum import Enum


class ConnectionState(Enum):
    """Connection lifecycle states.

    Attributes:
        IDLE: Manager constructed, ``start()`` not yet called
        CONNECTING: Transport connect in flight
        OPEN: Socket open, handshake sent, ``send`` allowed
        RECONNECTING: Connection lost, waiting for the backoff timer
        CLOSED: Terminal; reached via ``end()`` or reconnect exhaustion
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        return self is ConnectionState.CLOSED


class HistoryDirection(str, Enum):
    """Direction of a journaled event."""

    SENT = "sent"
    RECEIVED = "received"
