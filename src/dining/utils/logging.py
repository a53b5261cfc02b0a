"""Logging configuration for the Dining domain.

The stdlib root logger owns the sinks: stdout plus two rotating files, one of
them collecting errors only. structlog renders on top of it, JSON lines in
production and staging, the console renderer everywhere else.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_QUIET_LOGGERS = ("protean", "urllib3", "asyncio", "sqlalchemy.engine")

_MAX_BYTES = 10 * 1024 * 1024


def current_environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    """``LOG_LEVEL`` wins; otherwise the level follows the environment."""
    return os.getenv("LOG_LEVEL", _LEVELS.get(current_environment(), "INFO"))


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(filename=path, maxBytes=_MAX_BYTES, backupCount=5, encoding="utf-8")
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(log_dir: str = "logs", prefix: str = "dining") -> None:
    level = get_log_level()
    directory = Path(log_dir)
    directory.mkdir(exist_ok=True)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [
        console,
        _rotating_handler(directory / f"{prefix}.log", level),
        _rotating_handler(directory / f"{prefix}_error.log", logging.ERROR),
    ]

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _renderer():
    if current_environment() in ("production", "staging"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            ),
            _renderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str = "logs", prefix: str = "dining") -> None:
    setup_stdlib_logging(log_dir=log_dir, prefix=prefix)
    setup_structlog()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request(**kwargs: Any) -> None:
    """Attach request-scoped values (request id, actor) to every log line that follows."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_request() -> None:
    structlog.contextvars.clear_contextvars()
