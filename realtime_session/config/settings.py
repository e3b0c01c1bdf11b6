"""
Centralized configuration settings for the realtime session client.

This module provides the configuration interface for application code,
including singleton access to configuration and loading of a YAML
configuration file layered over the environment-derived defaults.
"""

import logging
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .env_loader import get_environment_info, load_application_config
from .logging_config import apply_logging_config
from .models import ApplicationConfig, LogLevel

logger = logging.getLogger(__name__)

# Global configuration instance
_config: Optional[ApplicationConfig] = None


def get_config() -> ApplicationConfig:
    """Get the global application configuration instance."""
    global _config
    if _config is None:
        _config = load_application_config(validate=False)
        apply_logging_config(_config.logging)
    return _config


def reload_config() -> ApplicationConfig:
    """Reload configuration from environment variables and reapply logging."""
    global _config
    _config = load_application_config(validate=False)
    apply_logging_config(_config.logging)
    return _config


def set_config(config: ApplicationConfig) -> None:
    """Set a custom configuration instance (useful for testing)."""
    global _config
    _config = config


def _coerce(current: Any, value: Any) -> Any:
    """Convert a raw YAML value to the type of the field it replaces."""
    if isinstance(current, Path):
        return Path(value)
    if isinstance(current, LogLevel):
        return LogLevel(str(value).upper())
    return value


def apply_overrides(
    config: ApplicationConfig, overrides: Dict[str, Any]
) -> ApplicationConfig:
    """Overlay a nested mapping of section -> {field: value} onto a config.

    Unknown sections and keys are ignored with a warning.
    """
    for section_name, section_values in overrides.items():
        section = getattr(config, section_name, None)
        if section is None or not is_dataclass(section):
            logger.warning(f"Ignoring unknown configuration section: {section_name}")
            continue
        if not isinstance(section_values, dict):
            raise ValueError(
                f"Configuration section '{section_name}' must be a mapping"
            )

        known = {f.name for f in fields(section)}
        for key, value in section_values.items():
            if key not in known:
                logger.warning(f"Ignoring unknown configuration key: {section_name}.{key}")
                continue
            try:
                setattr(section, key, _coerce(getattr(section, key), value))
            except (TypeError, ValueError) as e:
                raise ValueError(
                    f"Invalid value for {section_name}.{key}: {value!r} ({e})"
                ) from e

    return config


def load_config_file(
    path: Union[str, Path], base: Optional[ApplicationConfig] = None
) -> ApplicationConfig:
    """Load a YAML configuration file on top of ``base`` (or the global config).

    Args:
        path: Path to the YAML file
        base: Configuration to overlay; defaults to ``get_config()``

    Returns:
        ApplicationConfig: The updated configuration

    Raises:
        ValueError: If the file is missing or not a valid YAML mapping
    """
    config_path = Path(path)
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError as e:
        raise ValueError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")

    config = base if base is not None else get_config()
    apply_overrides(config, data)
    if "logging" in data:
        apply_logging_config(config.logging)
    logger.info(f"Loaded configuration file: {config_path}")
    return config


def validate_configuration() -> List[str]:
    """Validate the current configuration and return any errors."""
    return get_config().validate()


def print_configuration_summary() -> None:
    """Print a summary of the current configuration."""
    config = get_config()
    env_info = get_environment_info()

    print("=== Realtime Session Configuration Summary ===")
    print(f"Realtime URL: {config.realtime.get_websocket_url()}")
    print(f"API key set: {bool(config.realtime.api_key)}")
    print(
        f"Reconnect: enabled={config.reconnect.enabled} "
        f"base={config.reconnect.base_delay_ms}ms max={config.reconnect.max_delay_ms}ms "
        f"attempts={config.reconnect.max_attempts}"
    )
    print(f"History file: {config.history.file_path}")
    print(f"Log level: {config.logging.level.value}")
    print(f"Audio: {config.audio.sample_rate}Hz, {config.audio.channels}ch")
    print(f"Environment variables loaded: {env_info['environment_variables_loaded']}")
    print(f".env file present: {env_info['dotenv_loaded']}")

    errors = validate_configuration()
    if errors:
        print("\nConfiguration Issues:")
        for error in errors:
            print(f"  - {error}")
    else:
        print("\nConfiguration is valid")


# Convenience aliases for common configurations
def realtime_config():
    """Get realtime connection configuration."""
    return get_config().realtime


def reconnect_config():
    """Get reconnect configuration."""
    return get_config().reconnect


def history_config():
    """Get session journal configuration."""
    return get_config().history


def websocket_config():
    """Get WebSocket configuration."""
    return get_config().websocket


def audio_config():
    """Get audio configuration."""
    return get_config().audio


def logging_config():
    """Get logging configuration."""
    return get_config().logging
