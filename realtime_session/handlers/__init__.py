"""
Handlers module for the realtime session client.

- event_router: wire codec and handler dispatch for protocol events
- error_handler: error channel with categorized, severity-mapped reporting
"""

from .error_handler import ErrorContext, ErrorHandler, ErrorInfo, ErrorSeverity
from .event_router import EventRouter

__all__ = [
    "ErrorContext",
    "ErrorHandler",
    "ErrorInfo",
    "ErrorSeverity",
    "EventRouter",
]
