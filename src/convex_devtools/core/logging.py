"""structlog setup for the devtools server.

Log events are snake_case names with key/value context (``schema_built``,
``changes_detected``, ``schema_distributed``). HTTP handlers run with a
request id bound, so every line they emit can be correlated with the
``X-Request-ID`` response header.

Outputs come from the ``logging`` config section: any number of stderr,
stdout or file destinations, each with its own renderer and level.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from convex_devtools.config.models import LoggingConfig, LogOutputConfig

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

# Third-party loggers capped regardless of the configured level
_QUIET_LOGGERS: dict[str, int] = {
    # One debug line per raw filesystem event
    "watchfiles.main": logging.WARNING,
    # Request lines duplicate what the middleware already correlates
    "uvicorn.access": logging.WARNING,
}


def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(request_id: str | None = None) -> str:
    """Bind a correlation id for the current request, generating one if absent."""
    rid = request_id or uuid4().hex[:12]
    _request_id.set(rid)
    return rid


def clear_request_id() -> None:
    _request_id.set(None)


def _add_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := get_request_id():
        event_dict["request_id"] = rid
    return event_dict


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _formatter(
    output: LogOutputConfig,
    shared_processors: list[structlog.types.Processor],
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        renderer = structlog.dev.ConsoleRenderer(
            colors=output.destination in ("stderr", "stdout") and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )


def _create_handler(destination: str) -> logging.Handler:
    """Create handler for stderr, stdout, or file path."""
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def configure_logging(config: LoggingConfig | None = None, *, verbose: bool = False) -> None:
    """Route structlog through stdlib handlers built from ``config``.

    Safe to call again: the CLI configures console logging first and
    reconfigures once the project config is loaded. ``verbose`` (the ``-v``
    flag) lowers the root level to DEBUG; outputs with an explicit level keep
    it.
    """
    from convex_devtools.config.models import LoggingConfig

    config = config or LoggingConfig()
    if verbose:
        config = config.model_copy(update={"level": "DEBUG"})

    root_level = _level(config.level)
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_request_id,  # type: ignore[list-item]
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Not cached, so reconfiguration reaches loggers created at import time
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(root_level)
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    for output in config.outputs:
        handler = _create_handler(output.destination)
        handler.setLevel(_level(output.level) if output.level else root_level)
        handler.setFormatter(_formatter(output, shared_processors))
        root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
