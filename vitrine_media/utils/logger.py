"""
Structured Logging Configuration Module for Vitrine Media

This module configures application-wide logging with JSON or plain-text
output, optional rotating file output, uvicorn integration, and per-request
context enrichment via a LoggerAdapter.

Usage:
    from vitrine_media.utils.logger import setup_logging, add_log_context

    # Initialize logging at application startup
    setup_logging(log_level="INFO", json_logs=True)

    # Modules log through the standard library
    logger = logging.getLogger(__name__)

    # Add context to every line of one upload request
    ctx_logger = add_log_context(logger, request_id="abc123", mode="multiple")
    ctx_logger.info("Admitted 3 file(s)")
"""

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any


# =============================================================================
# Constants
# =============================================================================

DEFAULT_LOG_DIR: str = "logs"
DEFAULT_LOG_FILENAME: str = "vitrine_media.log"

# 10 MB per file, keep 5 backup files
LOG_MAX_BYTES: int = 10 * 1024 * 1024
LOG_BACKUP_COUNT: int = 5

LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers to reduce verbosity
THIRD_PARTY_LOGGERS: list[str] = [
    "fastapi",
    "cloudinary",
    "urllib3",
    "python_multipart",
    "multipart",
    "httpx",
    "httpcore",
    "asyncio",
]

UVICORN_LOGGERS: tuple[str, ...] = ("uvicorn", "uvicorn.access", "uvicorn.error")


# =============================================================================
# Formatters
# =============================================================================


class LogJSONEncoder(json.JSONEncoder):
    """JSON encoder that falls back to ``str()`` for values json cannot handle."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, bytes):
            return obj.decode("utf-8", errors="replace")
        if isinstance(obj, set):
            return list(obj)
        try:
            return str(obj)
        except Exception:
            return f"<non-serializable: {type(obj).__name__}>"


class JSONFormatter(logging.Formatter):
    """
    Logging formatter that outputs each record as a single JSON line.

    Includes timestamp, level, logger name and message, plus exception
    details and any extra fields supplied via ``extra=`` or a
    ContextLoggerAdapter.

    Example output:
        {"timestamp":"2025-01-15T10:30:45.123456+00:00","level":"INFO",
         "logger":"vitrine_media.services.upload_service",
         "message":"Admitted 2 file(s) totalling 1048576 bytes",
         "extra":{"request_id":"abc123","mode":"multiple"}}
    """

    # Standard LogRecord attributes to exclude from extra fields
    RESERVED_ATTRS: frozenset[str] = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
        }
    )

    def __init__(
        self,
        include_extra_fields: bool = True,
        include_source_location: bool = False,
    ) -> None:
        super().__init__()
        self.include_extra_fields = include_extra_fields
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            log_entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            exc_type, exc_value, _exc_tb = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        if self.include_extra_fields:
            extra_fields = {
                key: value
                for key, value in record.__dict__.items()
                if not key.startswith("_") and key not in self.RESERVED_ATTRS
            }
            if extra_fields:
                log_entry["extra"] = extra_fields

        return json.dumps(
            log_entry,
            cls=LogJSONEncoder,
            ensure_ascii=False,
            separators=(",", ":"),
        )


class StandardFormatter(logging.Formatter):
    """
    Human-readable formatter for local development.

    Format: [TIMESTAMP] LEVEL logger_name: message
    """

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATE_FORMAT,
        )


# =============================================================================
# Application Logging Setup
# =============================================================================


def _create_file_handler(
    log_dir: str,
    log_filename: str,
    log_level: int,
    formatter: logging.Formatter,
) -> RotatingFileHandler | None:
    """
    Create a RotatingFileHandler (10 MB, 5 backups) under ``log_dir``.

    Returns None and warns on stderr if the directory cannot be created.
    """
    try:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=os.path.join(log_dir, log_filename),
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not create log file handler: {e}\n")
        return None

    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    return file_handler


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    include_file_logging: bool = False,
    log_dir: str | None = None,
    log_filename: str | None = None,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure application-wide logging.

    Call once at application startup. Configures the root logger, the
    uvicorn loggers and the verbosity of third-party libraries.

    Args:
        log_level: Application log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON lines; if False, plain text
        include_file_logging: If True, add a rotating file handler
        log_dir: Directory for log files (defaults to "logs")
        log_filename: Log filename (defaults to "vitrine_media.log")
        third_party_level: Log level for third-party libraries
    """
    level_str = log_level.upper()
    level = LOG_LEVEL_MAP.get(level_str, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if json_logs:
        formatter: logging.Formatter = JSONFormatter(
            include_extra_fields=True,
            include_source_location=level <= logging.DEBUG,
        )
    else:
        formatter = StandardFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if include_file_logging:
        file_handler = _create_file_handler(
            log_dir=log_dir or DEFAULT_LOG_DIR,
            log_filename=log_filename or DEFAULT_LOG_FILENAME,
            log_level=level,
            formatter=formatter,
        )
        if file_handler:
            root_logger.addHandler(file_handler)

    # uvicorn installs its own handlers; route them through our formatter
    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False
        uvicorn_logger.handlers.clear()
        handler = logging.StreamHandler(sys.stderr if name == "uvicorn.error" else sys.stdout)
        handler.setFormatter(formatter)
        uvicorn_logger.addHandler(handler)

    third_party_log_level = LOG_LEVEL_MAP.get(third_party_level.upper(), logging.WARNING)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_log_level)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, json=%s, file_logging=%s",
        level_str,
        json_logs,
        include_file_logging,
    )


# =============================================================================
# Context Enrichment
# =============================================================================


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that merges its context into each call's ``extra`` dict.

    Values passed explicitly via ``extra=`` win over the adapter's context.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        extra = dict(kwargs.get("extra") or {})
        for key, value in (self.extra or {}).items():
            extra.setdefault(key, value)
        kwargs["extra"] = extra
        return msg, kwargs


def add_log_context(logger: logging.Logger, **kwargs: Any) -> ContextLoggerAdapter:
    """
    Wrap a logger so every message carries the given context fields.

    Example:
        ctx_logger = add_log_context(logger, request_id="abc-123", mode="single")
        ctx_logger.info("Admitted 1 file(s)")
    """
    return ContextLoggerAdapter(logger, kwargs)


__all__ = [
    "DEFAULT_LOG_DIR",
    "DEFAULT_LOG_FILENAME",
    "LOG_BACKUP_COUNT",
    "LOG_LEVEL_MAP",
    "LOG_MAX_BYTES",
    "ContextLoggerAdapter",
    "JSONFormatter",
    "StandardFormatter",
    "add_log_context",
    "setup_logging",
]
