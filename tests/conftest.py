import pytest
import logging
import os

from realtime_session.config.models import (
    ApplicationConfig,
    HistoryConfig,
    RealtimeConfig,
    ReconnectConfig,
)

"""
Pytest configuration file for the realtime session test suite.

This file contains fixtures that are shared across multiple test files.
"""


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


@pytest.fixture(autouse=True)
def skip_integration_when_no_api_key(request):
    if request.node.get_closest_marker("integration") and not os.environ.get("OPENAI_API_KEY"):
        pytest.skip("Skipping integration tests: OPENAI_API_KEY not set")


@pytest.fixture
def app_config(tmp_path):
    """Application config with a test credential, short backoff and a temp journal path."""
    return ApplicationConfig(
        realtime=RealtimeConfig(api_key="test-key", url="wss://example.test/v1/realtime"),
        reconnect=ReconnectConfig(base_delay_ms=10, max_delay_ms=80, max_attempts=5),
        history=HistoryConfig(file_path=tmp_path / "session_history.json"),
    )
