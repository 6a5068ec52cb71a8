"""Tests for config/models.py validators and defaults."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from convex_devtools.config.models import (
    DevtoolsConfig,
    LogOutputConfig,
    ServerConfig,
    WatcherConfig,
)


class TestServerConfig:
    def test_defaults(self) -> None:
        config = ServerConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 5173

    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_out_of_range(self, port: int) -> None:
        with pytest.raises(ValidationError):
            ServerConfig(port=port)

    def test_port_zero_allowed(self) -> None:
        assert ServerConfig(port=0).port == 0


class TestWatcherConfig:
    def test_defaults(self) -> None:
        config = WatcherConfig()
        assert config.debounce_sec == 0.3
        assert config.max_debounce_wait_sec == 2.0

    @pytest.mark.parametrize(
        "field", ["debounce_sec", "max_debounce_wait_sec", "poll_interval_sec"]
    )
    def test_non_positive_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            WatcherConfig(**{field: 0})


class TestLogOutputConfig:
    def test_stream_destinations(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"

    def test_relative_file_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/devtools.log")

    def test_absolute_file_accepted(self, tmp_path) -> None:
        path = str(tmp_path / "devtools.log")
        assert LogOutputConfig(destination=path).destination == path


class TestDevtoolsConfig:
    def test_sections_present(self) -> None:
        config = DevtoolsConfig()
        assert config.project.schema_file == "schema.ts"
        assert config.timeouts.force_exit_sec == 3.0
        assert config.logging.level == "INFO"
        assert len(config.logging.outputs) == 1
