"""
Structured JSON Logging Module.

Provides the injectable ``StructuredLogger`` used by every repository and
service.  Output is one JSON object per line on stdout and, when a log
file is configured, in a size-rotated file next to the process.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO, Union


class JSONFormatter(logging.Formatter):
    """Formats log records as structured JSON objects.

    Each entry carries ``timestamp`` (ISO-8601, UTC), ``level``,
    ``logger_name`` and ``message``.  Fields passed through the ``extra``
    kwarg are collected under ``extra``; exception text under
    ``exception``.
    """

    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Union[str, dict[str, str]]] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, str] = {
            key: str(value)
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if extra_fields:
            entry["extra"] = extra_fields

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


def _attach_file_handler(
    logger: logging.Logger,
    formatter: logging.Formatter,
    level: int,
    log_file: str,
    max_bytes: int,
    backup_count: int,
) -> None:
    """Attach a rotating file handler, degrading to console-only on OS errors."""
    try:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except OSError as exc:
        logger.warning(
            "Could not open log file '%s': %s. Continuing with console logging only.",
            log_file,
            exc,
        )
        return
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)


class StructuredLogger:
    """Injectable logger wrapper.

    Usage::

        log = StructuredLogger(name="session_store")
        log.info("Session restored", extra={"user_id": "abc"})

    Dependency Injection::

        class SomeService:
            def __init__(self, logger: StructuredLogger) -> None:
                self._logger = logger

    Passing ``log_file=""`` disables the file handler.
    """

    def __init__(
        self,
        name: str = "minersafe",
        level: int = logging.INFO,
        stream: Union[TextIO, None] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Lazy import to avoid circular dependency at module level
        from minersafe.config import get_config
        _cfg = get_config()

        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(level)

        # Reusing a name must not stack duplicate handlers.
        if self._logger.handlers:
            return

        formatter = JSONFormatter()

        stream_handler = logging.StreamHandler(stream or sys.stdout)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        resolved_log_file: str = _cfg.LOG_FILE if log_file is None else log_file
        if resolved_log_file:
            _attach_file_handler(
                self._logger,
                formatter,
                level,
                resolved_log_file,
                max_bytes if max_bytes is not None else _cfg.LOG_MAX_BYTES,
                backup_count if backup_count is not None else _cfg.LOG_BACKUP_COUNT,
            )

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying ``logging.Logger`` directly."""
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)

    def critical(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.critical(msg, *args, **kwargs)


def get_logger(name: str = "minersafe") -> StructuredLogger:
    """Create and return a ``StructuredLogger`` named *name*."""
    return StructuredLogger(name=name)
