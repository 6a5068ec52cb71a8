"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (CONVEX_DEVTOOLS__SECTION__KEY)
3. Project YAML (<project>/.convex-devtools/config.yaml)
4. Global YAML (~/.config/convex-devtools/config.yaml)
5. Built-in defaults (this file)

Examples:
    CONVEX_DEVTOOLS__LOGGING__LEVEL=DEBUG
    CONVEX_DEVTOOLS__SERVER__PORT=8080
    CONVEX_DEVTOOLS__PROJECT__FUNCTIONS_DIR=backend/convex
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        CONVEX_DEVTOOLS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every queued file event.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ServerConfig(BaseModel):
    """Server configuration.

    Env vars:
        CONVEX_DEVTOOLS__SERVER__HOST: Bind address (default: 127.0.0.1)
        CONVEX_DEVTOOLS__SERVER__PORT: Port number (default: 5173)
    """

    host: str = Field(
        default="127.0.0.1",
        description="Bind address. The console is meant for local development only.",
    )
    port: int = Field(
        default=5173,
        description="Port for the devtools server.",
    )

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not (0 <= v <= 65535):
            raise ValueError(f"Port must be 0-65535, got {v}")
        return v


class ProjectConfig(BaseModel):
    """Layout of the backend project being inspected.

    Env vars:
        CONVEX_DEVTOOLS__PROJECT__FUNCTIONS_DIR: Functions root, relative to the project
        CONVEX_DEVTOOLS__PROJECT__SCHEMA_FILE: Table definition file inside the functions root
    """

    functions_dir: str = Field(
        default="convex",
        description="Directory holding the deployable functions, relative to the project root.",
    )
    schema_file: str = Field(
        default="schema.ts",
        description="Table definition file, relative to the functions directory.",
    )


class WatcherConfig(BaseModel):
    """File watcher configuration.

    Env vars:
        CONVEX_DEVTOOLS__WATCHER__DEBOUNCE_SEC: Quiet window before rescanning
        CONVEX_DEVTOOLS__WATCHER__MAX_DEBOUNCE_WAIT_SEC: Upper bound on batching delay
        CONVEX_DEVTOOLS__WATCHER__POLL_INTERVAL_SEC: Polling interval on cross-filesystem mounts
    """

    debounce_sec: float = Field(
        default=0.3,
        description="Quiet time after the last change before a rescan starts.",
    )
    max_debounce_wait_sec: float = Field(
        default=2.0,
        description="Maximum delay for a continuous burst of changes.",
    )
    poll_interval_sec: float = Field(
        default=1.0,
        description="Polling interval for cross-filesystem mounts (WSL /mnt/*).",
    )

    @field_validator("debounce_sec", "max_debounce_wait_sec", "poll_interval_sec")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Must be positive, got {v}")
        return v


class TimeoutsConfig(BaseModel):
    """Shutdown timeouts."""

    force_exit_sec: float = Field(
        default=3.0,
        description="Force exit timeout after graceful shutdown fails.",
    )


class DevtoolsConfig(BaseModel):
    """Root configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
