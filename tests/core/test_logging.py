"""Tests for structured logging."""

import json
import logging
from pathlib import Path

import pytest
import structlog

from convex_devtools.config.models import LoggingConfig, LogOutputConfig
from convex_devtools.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)


class TestRequestIdCorrelation:
    """Request ID context variable tests."""

    def setup_method(self) -> None:
        clear_request_id()

    def test_given_request_id_when_set_then_can_retrieve(self) -> None:
        result = set_request_id("req-123")

        assert result == "req-123"
        assert get_request_id() == "req-123"

    def test_given_no_id_when_set_then_generates_one(self) -> None:
        rid = set_request_id()
        assert len(rid) == 12
        assert get_request_id() == rid

    def test_given_set_id_when_clear_then_removes_id(self) -> None:
        set_request_id("req-1")
        clear_request_id()
        assert get_request_id() is None


class TestConfigureLogging:
    """Logging configuration tests."""

    def setup_method(self) -> None:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        clear_request_id()

    def test_given_json_format_when_log_then_valid_json_output(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(LoggingConfig(outputs=[LogOutputConfig(format="json")]))

        get_logger("test").info("schema_built", functions=3)

        lines = [line for line in capsys.readouterr().err.splitlines() if line]
        data = json.loads(lines[-1])
        assert data["event"] == "schema_built"
        assert data["functions"] == 3
        assert data["logger"] == "test"
        assert data["level"] == "info"
        assert "timestamp" in data

    def test_given_request_id_when_log_then_included(self, tmp_path: Path) -> None:
        log_file = tmp_path / "req.log"
        configure_logging(
            config=LoggingConfig(
                outputs=[LogOutputConfig(format="json", destination=str(log_file))],
            )
        )
        set_request_id("abc")

        get_logger().info("handled")

        data = json.loads(log_file.read_text().splitlines()[-1])
        assert data["request_id"] == "abc"

    def test_given_verbose_when_configure_then_debug_reaches_outputs(
        self, tmp_path: Path
    ) -> None:
        log_file = tmp_path / "test.log"
        config = LoggingConfig(
            level="INFO",
            outputs=[LogOutputConfig(format="json", destination=str(log_file))],
        )

        configure_logging(config, verbose=True)
        get_logger().debug("path_queued")

        assert "path_queued" in log_file.read_text()
        # The caller's config is left untouched
        assert config.level == "INFO"

    def test_given_default_level_when_debug_then_dropped(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        configure_logging(
            LoggingConfig(outputs=[LogOutputConfig(format="json", destination=str(log_file))])
        )
        get_logger().debug("path_queued")
        get_logger().info("schema_built")

        content = log_file.read_text()
        assert "schema_built" in content
        assert "path_queued" not in content

    def test_given_multi_output_config_when_configure_then_levels_apply(
        self, tmp_path: Path
    ) -> None:
        debug_file = tmp_path / "debug.log"
        info_file = tmp_path / "info.log"
        config = LoggingConfig(
            level="DEBUG",
            outputs=[
                LogOutputConfig(format="json", destination=str(info_file), level="INFO"),
                LogOutputConfig(format="json", destination=str(debug_file)),
            ],
        )

        configure_logging(config=config)
        logger = get_logger()
        logger.debug("debug only")
        logger.info("info msg")

        info_content = info_file.read_text()
        assert "info msg" in info_content
        assert "debug only" not in info_content
        debug_content = debug_file.read_text()
        assert "debug only" in debug_content
        assert "info msg" in debug_content

    def test_third_party_noise_capped(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("watchfiles.main").level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
