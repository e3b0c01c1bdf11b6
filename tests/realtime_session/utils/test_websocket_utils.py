"""Tests for the shared WebSocket helpers."""

from types import SimpleNamespace
from unittest.mock import MagicMock

from realtime_session.utils.websocket_utils import WebSocketUtils


class TestIsWebSocketClosed:
    def test_none_is_closed(self):
        assert WebSocketUtils.is_websocket_closed(None) is True

    def test_close_code_set(self):
        assert WebSocketUtils.is_websocket_closed(SimpleNamespace(close_code=1000)) is True

    def test_state_name(self):
        open_ws = SimpleNamespace(close_code=None, state=SimpleNamespace(name="OPEN"))
        closing_ws = SimpleNamespace(close_code=None, state=SimpleNamespace(name="CLOSING"))
        assert WebSocketUtils.is_websocket_closed(open_ws) is False
        assert WebSocketUtils.is_websocket_closed(closing_ws) is True

    def test_closed_attribute(self):
        assert WebSocketUtils.is_websocket_closed(SimpleNamespace(closed=True)) is True
        assert WebSocketUtils.is_websocket_closed(SimpleNamespace(closed=False)) is False

    def test_unknown_object_is_open(self):
        ws = MagicMock(spec=["send", "recv"])
        assert WebSocketUtils.is_websocket_closed(ws) is False


class TestFormatEventLog:
    def test_short_payload(self):
        assert WebSocketUtils.format_event_log("session.created", {"a": 1}) == (
            "Event[session.created]: {'a': 1}"
        )

    def test_long_payload_truncated(self):
        message = WebSocketUtils.format_event_log("response.audio.delta", {"delta": "x" * 500})
        assert message.endswith("...")
        assert len(message) == len("Event[response.audio.delta]: ") + 203
