"""
WebSocket transport for the realtime session client.

``open_websocket`` is the default connector used by ``ConnectionManager``.
It returns a ``WebSocketConnection``, a thin wrapper that maps the
websockets library's failures onto ``TransportError`` so the connection
manager only has one failure type to react to.

Any object with the same ``send``/``recv``/``close`` coroutines and a
``closed`` property can be returned by a custom connector (tests use an
in-memory fake).
"""

import asyncio
import time
import uuid
from typing import Any, Dict, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from realtime_session.config.logging_config import configure_logging
from realtime_session.config.models import WebSocketConfig
from realtime_session.exceptions import TransportError
from realtime_session.utils.websocket_utils import WebSocketUtils

logger = configure_logging("transport")


class WebSocketConnection:
    """Wrapper for a single WebSocket connection to the realtime service."""

    def __init__(self, websocket: Any, connection_id: Optional[str] = None):
        self.websocket = websocket
        self.connection_id = connection_id or f"ws_{uuid.uuid4().hex[:8]}"
        self.created_at = time.time()

    @property
    def age_seconds(self) -> float:
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return WebSocketUtils.is_websocket_closed(self.websocket)

    async def send(self, frame: str) -> None:
        """Send one text frame.

        Raises:
            TransportError: If the socket is closed or the write fails
        """
        try:
            await self.websocket.send(frame)
        except ConnectionClosed as e:
            raise TransportError(f"Connection closed while sending: {e}", e.rcvd.code if e.rcvd else None) from e
        except (WebSocketException, OSError) as e:
            raise TransportError(f"Send failed: {e}") from e

    async def recv(self) -> Union[str, bytes]:
        """Wait for the next inbound frame.

        Raises:
            TransportError: If the socket closes or the read fails
        """
        try:
            return await self.websocket.recv()
        except ConnectionClosed as e:
            raise TransportError(f"Connection closed: {e}", e.rcvd.code if e.rcvd else None) from e
        except (WebSocketException, OSError) as e:
            raise TransportError(f"Receive failed: {e}") from e

    async def close(self) -> None:
        """Close the connection if it is still open."""
        if self.closed:
            return
        try:
            await self.websocket.close()
        except (WebSocketException, OSError) as e:
            logger.warning(f"Error closing connection {self.connection_id}: {e}")


async def open_websocket(
    url: str,
    headers: Dict[str, str],
    ws_config: Optional[WebSocketConfig] = None,
) -> WebSocketConnection:
    """
    Open a WebSocket connection to the realtime service.

    Args:
        url: Service URL
        headers: Authorization and protocol-version headers
        ws_config: Keepalive and timeout settings

    Returns:
        WebSocketConnection: The open connection

    Raises:
        TransportError: If the connection cannot be established
    """
    ws_config = ws_config or WebSocketConfig()
    try:
        websocket = await websockets.connect(
            url,
            additional_headers=headers,
            ping_interval=ws_config.ping_interval,
            ping_timeout=ws_config.ping_timeout,
            close_timeout=ws_config.close_timeout,
            open_timeout=ws_config.open_timeout,
        )
    except (WebSocketException, OSError, asyncio.TimeoutError) as e:
        logger.error(f"Failed to connect to {url}: {e}")
        raise TransportError(f"Failed to connect to {url}: {e}") from e

    connection = WebSocketConnection(websocket)
    logger.info(f"Created new realtime connection: {connection.connection_id}")
    return connection
