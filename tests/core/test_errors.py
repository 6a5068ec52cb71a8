"""Tests for core/errors.py."""

from __future__ import annotations

import dataclasses

import pytest

from convex_devtools.core.errors import ConfigError, DevtoolsError, ErrorCode, SchemaError


class TestErrorCodes:
    def test_ranges(self) -> None:
        for code in ErrorCode:
            if code.name.startswith("CONFIG_"):
                assert 2000 <= code < 3000
            elif code.name.startswith("SCHEMA_"):
                assert 3000 <= code < 4000

    def test_codes_unique(self) -> None:
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))


class TestDevtoolsError:
    def test_to_dict(self) -> None:
        err = SchemaError.root_unreadable("/p/convex", "No such file or directory")
        assert err.to_dict() == {
            "code": 3001,
            "error": "SCHEMA_ROOT_UNREADABLE",
            "message": "Cannot read functions directory /p/convex: No such file or directory",
            "retryable": False,
            "details": {"path": "/p/convex", "reason": "No such file or directory"},
        }

    def test_str(self) -> None:
        err = SchemaError.not_ready()
        assert str(err) == "[3002] SCHEMA_NOT_READY: Schema not yet loaded"

    def test_not_ready_is_retryable(self) -> None:
        assert SchemaError.not_ready().retryable is True

    def test_is_raisable(self) -> None:
        with pytest.raises(DevtoolsError):
            raise ConfigError.parse_error("/x.yaml", "bad indent")

    def test_frozen(self) -> None:
        err = ConfigError.invalid_value("server.port", 70000, "out of range")
        with pytest.raises(dataclasses.FrozenInstanceError):
            err.message = "changed"  # type: ignore[misc]

    def test_invalid_value_details(self) -> None:
        err = ConfigError.invalid_value("server.port", 70000, "out of range")
        assert err.code is ErrorCode.CONFIG_INVALID_VALUE
        assert err.details == {"field": "server.port", "value": "70000", "reason": "out of range"}
