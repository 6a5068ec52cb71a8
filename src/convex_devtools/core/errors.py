"""Devtools error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Schema discovery
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Schema (3xxx)
    SCHEMA_ROOT_UNREADABLE = 3001
    SCHEMA_NOT_READY = 3002


@dataclass(frozen=True, slots=True)
class DevtoolsError(Exception):
    """Base error with structured context for API responses."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(DevtoolsError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class SchemaError(DevtoolsError):
    """Schema discovery errors that cannot be absorbed per file."""

    @classmethod
    def root_unreadable(cls, path: str, reason: str) -> "SchemaError":
        return cls(
            code=ErrorCode.SCHEMA_ROOT_UNREADABLE,
            message=f"Cannot read functions directory {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def not_ready(cls) -> "SchemaError":
        return cls(
            code=ErrorCode.SCHEMA_NOT_READY,
            message="Schema not yet loaded",
            retryable=True,
        )
