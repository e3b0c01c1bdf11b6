"""
Exception hierarchy for the realtime session client.

Transport and frame errors are handled inside the connection layer (retry or
drop) and reported on the error channel. ``NotConnected`` and
``PersistenceError`` are raised to the caller.
"""

from typing import Optional


class RealtimeSessionError(Exception):
    """Base class for all realtime session errors."""


class TransportError(RealtimeSessionError):
    """Connect, send or receive failure at the socket layer."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class MalformedFrame(RealtimeSessionError):
    """An inbound frame could not be decoded into an event."""

    def __init__(self, message: str, raw: object = None):
        super().__init__(message)
        self.raw = raw


class NotConnected(RealtimeSessionError):
    """``send`` was called while the connection was not open."""

    def __init__(self, state: object):
        super().__init__(f"Connection is not open (state: {getattr(state, 'value', state)})")
        self.state = state


class PersistenceError(RealtimeSessionError):
    """Saving or loading the session journal failed."""


class ReconnectExhausted(RealtimeSessionError):
    """Reconnect attempts reached the configured maximum."""

    def __init__(self, attempts: int, max_attempts: int):
        super().__init__(
            f"Max reconnect attempts exceeded ({attempts}/{max_attempts})"
        )
        self.attempts = attempts
        self.max_attempts = max_attempts
