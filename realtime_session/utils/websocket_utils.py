"""
Shared WebSocket utilities for the realtime session client.

This module contains common WebSocket helpers used by the transport and
the connection manager.
"""

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class WebSocketUtils:
    """Shared WebSocket utility functions."""

    @staticmethod
    def is_websocket_closed(websocket: Any) -> bool:
        """
        Check if a WebSocket connection is closed.

        Args:
            websocket: WebSocket connection to check

        Returns:
            bool: True if closed, False otherwise
        """
        if not websocket:
            return True

        try:
            if hasattr(websocket, "close_code") and websocket.close_code is not None:
                return True

            if hasattr(websocket, "state"):
                return getattr(websocket.state, "name", "") in ["CLOSED", "CLOSING"]

            if hasattr(websocket, "closed"):
                return bool(websocket.closed)

            return False
        except AttributeError:
            return True

    @staticmethod
    def format_event_log(event_type: str, data: Dict[str, Any]) -> str:
        """
        Format an event for logging.

        Large payloads (audio deltas, base64 content) are truncated.

        Args:
            event_type (str): Type of event
            data (Dict[str, Any]): Event data

        Returns:
            str: Formatted log message
        """
        data_str = str(data)
        if len(data_str) > 200:
            data_str = data_str[:200] + "..."

        return f"Event[{event_type}]: {data_str}"
