from __future__ import annotations

import json
import logging
import logging.config
import os
from contextvars import ContextVar

LOG_LEVELS: dict[str, str] = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}

# Each per-source task runs in its own copy of the context, so concurrent
# sources never see each other's name.
_CURRENT_SOURCE_NAME: ContextVar[str] = ContextVar("netzcam_source_name", default="-")
_STANDARD_LOGRECORD_ATTRS = {
    "name",
    "msg",
    "message",
    "asctime",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class _SourceNameFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "source_name") or getattr(record, "source_name") in (None, ""):
            record.source_name = _CURRENT_SOURCE_NAME.get()
        return True


class _JsonExtraFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _extract_extras(record)
        if not extras:
            return base
        extras_json = json.dumps(extras, indent=2, default=str, sort_keys=True)
        return f"{base}\n{extras_json}"


def _extract_extras(record: logging.LogRecord) -> dict[str, object]:
    extras: dict[str, object] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOGRECORD_ATTRS:
            continue
        if key == "source_name":
            continue
        extras[key] = value
    return extras


def normalize_log_level(level: str) -> str:
    """Map a CLI level name (debug/info/warn/error) to a logging level name.

    Raises:
        ValueError: If the level is not recognized
    """
    key = str(level).strip().lower()
    if key not in LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}")
    return LOG_LEVELS[key]


def set_source_name(name: str | None) -> None:
    """Set the `source_name` value injected into log records for the current context."""
    _CURRENT_SOURCE_NAME.set(name or "-")


def _install_source_filter() -> None:
    root = logging.getLogger()
    for handler in root.handlers:
        if any(isinstance(f, _SourceNameFilter) for f in handler.filters):
            continue
        handler.addFilter(_SourceNameFilter())


def configure_logging(*, log_level: str = "info") -> None:
    """Configure root logging with a consistent format.

    Format includes `source_name` plus `module:lineno` so interleaved output of
    concurrently polled sources stays readable.
    """
    console_level_name = normalize_log_level(log_level)
    default_console_fmt = (
        "%(asctime)s %(levelname)s [%(source_name)s] "
        "%(module)s:%(lineno)d %(message)s"
    )
    console_fmt = os.getenv("CONSOLE_LOG_FORMAT", default_console_fmt)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "()": "netzcam.logging_setup._JsonExtraFormatter",
                    "format": console_fmt,
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": console_level_name,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"level": "DEBUG", "handlers": ["console"]},
        }
    )

    _install_source_filter()
    logging.captureWarnings(True)

    # Reduce noisy third-party request logs by default.
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
