"""Core module exports."""

from convex_devtools.core.errors import (
    ConfigError,
    DevtoolsError,
    ErrorCode,
    SchemaError,
)
from convex_devtools.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "DevtoolsError",
    "ConfigError",
    "ErrorCode",
    "SchemaError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
