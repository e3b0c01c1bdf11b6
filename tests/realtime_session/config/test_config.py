"""
Tests for the configuration system: models, environment loading and YAML
configuration files.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from unittest.mock import patch

import pytest

from realtime_session.config import env_loader, settings
from realtime_session.config.env_loader import (
    load_application_config,
    load_env_file,
    load_realtime_config,
    load_reconnect_config,
    safe_convert,
)
from realtime_session.config.models import (
    ApplicationConfig,
    LoggingConfig,
    LogLevel,
    RealtimeConfig,
    ReconnectConfig,
)
from realtime_session.config.logging_config import apply_logging_config
from realtime_session.config.settings import apply_overrides, load_config_file


@pytest.fixture
def env_loaded():
    with patch.object(env_loader, "_env_loaded", True):
        yield


@pytest.fixture(autouse=True)
def reset_global_config():
    settings.set_config(None)
    yield
    settings.set_config(None)


class TestRealtimeConfig:
    def test_default_url(self):
        config = RealtimeConfig(model="gpt-4o-realtime-preview")
        assert config.get_websocket_url() == (
            "wss://api.openai.com/v1/realtime?model=gpt-4o-realtime-preview"
        )

    def test_url_override(self):
        config = RealtimeConfig(url="ws://localhost:9000/realtime")
        assert config.get_websocket_url() == "ws://localhost:9000/realtime"

    def test_headers(self):
        headers = RealtimeConfig(api_key="sk-test").get_headers()
        assert headers == {"Authorization": "Bearer sk-test", "OpenAI-Beta": "realtime=v1"}

    def test_headers_require_credential(self):
        with pytest.raises(ValueError):
            RealtimeConfig().get_headers()


class TestApplicationConfigValidate:
    def test_missing_key_reported(self):
        errors = ApplicationConfig().validate()
        assert any("API key" in e for e in errors)

    def test_valid_config(self):
        config = ApplicationConfig(realtime=RealtimeConfig(api_key="k"))
        assert config.validate() == []

    def test_bad_values_reported(self):
        config = ApplicationConfig(
            realtime=RealtimeConfig(api_key="k", url="http://not-a-socket"),
            reconnect=ReconnectConfig(base_delay_ms=0, max_delay_ms=-1, max_attempts=-2),
        )
        assert len(config.validate()) == 4


class TestEnvLoader:
    def test_requires_load_env_file(self):
        with patch.object(env_loader, "_env_loaded", False):
            with pytest.raises(RuntimeError):
                load_realtime_config()

    def test_load_env_file_reads_dotenv(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("RECONNECT_MAX_ATTEMPTS=9\n")
        with patch.dict(os.environ, {}, clear=True), patch.object(env_loader, "_env_loaded", False):
            load_env_file(str(env_file))
            assert load_reconnect_config().max_attempts == 9

    @pytest.mark.parametrize(
        "value, target, default, expected",
        [
            (None, int, 3, 3),
            ("7", int, 3, 7),
            ("abc", int, 3, 3),
            ("1.5", float, 0.0, 1.5),
            ("yes", bool, False, True),
            ("off", bool, True, False),
            ("a/b.json", Path, Path("x"), Path("a/b.json")),
        ],
    )
    def test_safe_convert(self, value, target, default, expected):
        assert safe_convert(value, target, default) == expected

    def test_environment_overrides(self, env_loaded):
        env = {
            "OPENAI_API_KEY": "sk-env",
            "REALTIME_URL": "wss://proxy.example/realtime",
            "REALTIME_MODALITIES": "text, audio",
            "RECONNECT_BASE_DELAY_MS": "250",
            "RECONNECT_MAX_DELAY_MS": "5000",
            "RECONNECT_MAX_ATTEMPTS": "3",
            "RECONNECT_ENABLED": "false",
            "HISTORY_FILE_PATH": "out/history.json",
            "HISTORY_PERSIST_ON_END": "0",
            "WS_PING_INTERVAL": "5",
            "AUDIO_SAMPLE_RATE": "16000",
            "LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            config = load_application_config()

        assert config.realtime.api_key == "sk-env"
        assert config.realtime.get_websocket_url() == "wss://proxy.example/realtime"
        assert config.realtime.initial_modalities == ["text", "audio"]
        assert config.reconnect == ReconnectConfig(
            enabled=False, base_delay_ms=250, max_delay_ms=5000, max_attempts=3
        )
        assert config.history.file_path == Path("out/history.json")
        assert config.history.persist_on_end is False
        assert config.websocket.ping_interval == 5.0
        assert config.audio.sample_rate == 16000
        assert config.logging.level is LogLevel.DEBUG
        assert config.openai.api_key == "sk-env"

    def test_defaults(self, env_loaded):
        with patch.dict(os.environ, {}, clear=True):
            config = load_application_config(validate=False)
        assert config.reconnect == ReconnectConfig()
        assert config.history.file_path == Path("session_history.json")
        assert config.realtime.initial_instructions == "Please assist the user."

    def test_validation_failure_raises(self, env_loaded):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="API key"):
                load_application_config(validate=True)


class TestConfigFile:
    def test_yaml_overlay(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "realtime:\n"
            "  api_key: sk-file\n"
            "  initial_instructions: Be brief.\n"
            "reconnect:\n"
            "  max_attempts: 2\n"
            "history:\n"
            "  file_path: journals/session.json\n"
            "logging:\n"
            "  level: warning\n"
        )
        config = load_config_file(path, base=ApplicationConfig())

        assert config.realtime.api_key == "sk-file"
        assert config.realtime.initial_instructions == "Be brief."
        assert config.reconnect.max_attempts == 2
        assert config.reconnect.base_delay_ms == 1000
        assert config.history.file_path == Path("journals/session.json")
        assert config.logging.level is LogLevel.WARNING

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("reconnect:\n  jitter: true\nmystery:\n  a: 1\n")
        config = load_config_file(path, base=ApplicationConfig())
        assert config.reconnect == ReconnectConfig()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config_file(path, base=ApplicationConfig()) == ApplicationConfig()

    @pytest.mark.parametrize("content", ["realtime: [unclosed", "- a\n- b\n", "reconnect: 5\n"])
    def test_malformed_file(self, tmp_path, content):
        path = tmp_path / "config.yaml"
        path.write_text(content)
        with pytest.raises(ValueError):
            load_config_file(path, base=ApplicationConfig())

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError):
            load_config_file(tmp_path / "missing.yaml", base=ApplicationConfig())

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            apply_overrides(ApplicationConfig(), {"logging": {"level": "loud"}})

    def test_uses_global_config_by_default(self, tmp_path):
        base = ApplicationConfig()
        settings.set_config(base)
        path = tmp_path / "config.yaml"
        path.write_text("audio:\n  sample_rate: 8000\n")

        load_config_file(path)

        assert settings.get_config() is base
        assert base.audio.sample_rate == 8000


class TestLoggingConfig:
    def test_file_output_disabled(self, tmp_path):
        config = LoggingConfig(
            level=LogLevel.WARNING,
            log_dir=tmp_path / "logs",
            file_output=False,
        )

        loggers = apply_logging_config(config, names=["test_component"])

        logger = loggers[0]
        assert logger.level == logging.WARNING
        assert not any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
        assert not (tmp_path / "logs").exists()

    def test_file_and_console_settings_applied(self, tmp_path):
        config = LoggingConfig(
            level=LogLevel.DEBUG,
            log_dir=tmp_path / "logs",
            log_filename="session.log",
            console_output=False,
            backup_count=2,
        )

        logger = apply_logging_config(config, names=["test_component"])[0]

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        handler = logger.handlers[0]
        assert isinstance(handler, RotatingFileHandler)
        assert Path(handler.baseFilename) == tmp_path / "logs" / "session.log"
        assert handler.backupCount == 2
        handler.close()

    def test_reload_config_applies_logging(self, env_loaded, tmp_path):
        env = {"LOG_FILE_OUTPUT": "false", "LOG_DIR": str(tmp_path / "logs")}
        with patch.dict(os.environ, env, clear=True):
            with patch.object(settings, "apply_logging_config") as mock_apply:
                config = settings.reload_config()

        mock_apply.assert_called_once_with(config.logging)
        assert config.logging.file_output is False

    def test_config_file_logging_section_reapplied(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  file_output: false\n")

        with patch.object(settings, "apply_logging_config") as mock_apply:
            config = load_config_file(path, base=ApplicationConfig())

        mock_apply.assert_called_once_with(config.logging)
        assert config.logging.file_output is False
