"""Logging for the checkout core: stdlib handlers underneath, structlog on top.

Everything is driven by ``StorefrontSettings``: the environment picks the
renderer and the default level, ``log_level`` overrides the level, and
``log_dir`` turns on rotating files.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from storefront.config import StorefrontSettings, get_settings

LEVELS_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

JSON_ENVIRONMENTS = ("production", "staging")

_MAX_LOG_BYTES = 10 * 1024 * 1024


def log_level_for(settings: StorefrontSettings) -> str:
    if settings.log_level:
        return settings.log_level.upper()
    return LEVELS_BY_ENVIRONMENT.get(settings.environment.lower(), "INFO")


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_MAX_LOG_BYTES, backupCount=5, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(settings: StorefrontSettings) -> None:
    level = log_level_for(settings)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if settings.log_dir is not None:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_rotating_handler(settings.log_dir / "storefront.log", level))
        root_logger.addHandler(_rotating_handler(settings.log_dir / "storefront_error.log", logging.ERROR))

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _renderer(settings: StorefrontSettings):
    if settings.environment.lower() in JSON_ENVIRONMENTS:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=True, max_frames=2),
    )


def setup_structlog(settings: StorefrontSettings) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            ),
            _renderer(settings),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: StorefrontSettings | None = None) -> None:
    settings = settings or get_settings()
    setup_stdlib_logging(settings)
    setup_structlog(settings)


def add_context(**kwargs: Any) -> None:
    """Bind values (request id, order id) onto every later log line of this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
