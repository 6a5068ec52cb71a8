"""Config module exports."""

from convex_devtools.config.loader import load_config
from convex_devtools.config.models import (
    DevtoolsConfig,
    LoggingConfig,
    ProjectConfig,
    ServerConfig,
    WatcherConfig,
)

__all__ = [
    "load_config",
    "DevtoolsConfig",
    "LoggingConfig",
    "ProjectConfig",
    "ServerConfig",
    "WatcherConfig",
]
