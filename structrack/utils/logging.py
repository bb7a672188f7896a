from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import Any

import structlog

_BASE_LOGGER_NAME = "structrack"
_FORMAT_ENV = "STRUCTRACK_LOG_FORMAT"
_CONFIGURED = False


def _select_renderer(force_json: bool) -> Any:
    requested = os.environ.get(_FORMAT_ENV, "").lower()
    if force_json or requested == "json":
        return structlog.processors.JSONRenderer()
    if requested == "console" or sys.stderr.isatty():
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def _configure_structlog(level_name: str, force_json: bool = False) -> None:
    """Configure structlog processors and route stdlib records through them."""
    renderer = _select_renderer(force_json)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    # Only the package logger is touched; host applications keep their root handlers.
    package_logger = logging.getLogger(_BASE_LOGGER_NAME)
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(level_name.upper())
    package_logger.propagate = False


def configure_logging(
    level: int | str = "INFO", force: bool = False, *, force_json: bool = False
) -> Any:
    """Configure the shared structrack logger with structlog."""
    global _CONFIGURED

    level_name = logging.getLevelName(level) if isinstance(level, int) else level

    if _CONFIGURED and not force:
        return structlog.get_logger(_BASE_LOGGER_NAME)

    _configure_structlog(str(level_name), force_json=force_json)
    _CONFIGURED = True
    return structlog.get_logger(_BASE_LOGGER_NAME)


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger under the structrack namespace."""
    configure_logging()
    if name is None:
        return structlog.get_logger(_BASE_LOGGER_NAME)
    return structlog.get_logger(name)


def log_event(
    logger: Any,
    event: str,
    *,
    level: int | str = "INFO",
    fields: Mapping[str, Any] | None = None,
) -> None:
    """Emit structured key/value event logs."""
    payload = dict(fields or {})

    if isinstance(level, int):
        level_name = logging.getLevelName(level).lower()
    else:
        level_name = str(level).lower()

    log_method = getattr(logger, level_name, logger.info)
    log_method(event, **payload)
