"""Logging configuration shared by the HTTP app and the management CLI.

Standard-library logging carries the records; structlog renders them, as a
console view locally and as JSON lines everywhere else.
"""

import logging
import sys
from typing import Any

import structlog

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

# Library loggers that drown the till's own events
_NOISY_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore", "urllib3", "asyncio")


def get_log_level(env: str, override: str | None = None) -> str:
    """Log level for ``env``; an explicit ``override`` wins."""
    return (override or _LEVELS.get(env.lower(), "INFO")).upper()


def setup_stdlib_logging(level: str) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_structlog(env: str) -> None:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if env in ("production", "staging"):
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=env == "development",
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=4),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(env: str = "development", level: str | None = None) -> None:
    """Configure all logging for the application."""
    setup_stdlib_logging(get_log_level(env, level))
    setup_structlog(env)


def add_context(**kwargs: Any) -> None:
    """Bind context (session id, correlation id) to every following log line."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
