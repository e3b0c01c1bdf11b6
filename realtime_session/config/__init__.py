"""
Configuration module for the realtime session client.

The configuration system provides:
- Type-safe configuration models organized by domain
- Environment variable loading (optionally from a .env file)
- YAML configuration files layered over the environment defaults
- Singleton configuration access for application code

Library components such as ``ConnectionManager`` take an explicit
``ApplicationConfig`` and never consult the singleton themselves.

### Usage Examples:

```python
from realtime_session.config import load_env_file, get_config, load_config_file

load_env_file()
config = get_config()
load_config_file("config.yaml", base=config)
print(config.realtime.get_websocket_url())
```
"""

from .constants import *
from .env_loader import get_environment_info, load_application_config, load_env_file
from .logging_config import apply_logging_config, configure_logging
from .models import (
    ApplicationConfig,
    AudioConfig,
    HistoryConfig,
    LoggingConfig,
    LogLevel,
    OpenAIHTTPConfig,
    RealtimeConfig,
    ReconnectConfig,
    WebSocketConfig,
)
from .settings import (
    apply_overrides,
    audio_config,
    get_config,
    history_config,
    load_config_file,
    logging_config,
    print_configuration_summary,
    realtime_config,
    reconnect_config,
    reload_config,
    set_config,
    validate_configuration,
    websocket_config,
)

__all__ = [
    # Core configuration
    "get_config",
    "reload_config",
    "set_config",
    "load_env_file",
    "load_application_config",
    "load_config_file",
    "apply_overrides",
    # Domain configs
    "realtime_config",
    "reconnect_config",
    "history_config",
    "websocket_config",
    "audio_config",
    "logging_config",
    # Utilities
    "validate_configuration",
    "print_configuration_summary",
    "get_environment_info",
    "configure_logging",
    "apply_logging_config",
    # Models
    "ApplicationConfig",
    "RealtimeConfig",
    "ReconnectConfig",
    "HistoryConfig",
    "WebSocketConfig",
    "AudioConfig",
    "OpenAIHTTPConfig",
    "LoggingConfig",
    "LogLevel",
]
