"""
Structured JSON Logging Module.

Every line is one JSON object, written to stdout and to a rotating log
file.  Context bound with :meth:`StructuredLogger.bind` (a bonus cycle
id, an operator) is attached to each line under ``"context"``, so one
payout can be followed across the service log, the audit trail and the
ledger rows that share its ``cycle_id``.
"""

from __future__ import annotations

import copy
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, TextIO


class JSONFormatter(logging.Formatter):
    """Render a record as ``{timestamp, level, logger, message[, context][, exception]}``.

    Context values keep their JSON type; anything JSON cannot encode
    (``Decimal``, ``datetime``) is written with ``str``.
    """

    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger:
    """Injectable JSON logger.

    Handlers are attached once per logger name; later instances with the
    same name share them.  Level, file and rotation default to the
    ``LOG_*`` settings of :class:`~commission_engine.config.AppConfig`.

    Usage::

        log = StructuredLogger(name="bonus_fund")
        cycle_log = log.bind(cycle_id="3f9a1c2b7d4e")
        cycle_log.info("Bonus cycle paid", extra={"beneficiaries": 4})
    """

    def __init__(
        self,
        name: str = "commission_engine",
        level: Optional[int] = None,
        stream: Optional[TextIO] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Lazy import: config logs through the standard library at import time.
        from commission_engine.config import get_config
        cfg = get_config()

        resolved_level = (
            level if level is not None else getattr(logging, cfg.LOG_LEVEL.upper(), logging.INFO)
        )
        self._context: dict[str, Any] = {}
        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(resolved_level)

        if not self._logger.handlers:
            self._attach_handlers(
                formatter=JSONFormatter(),
                level=resolved_level,
                stream=stream or sys.stdout,
                log_file=log_file or cfg.LOG_FILE,
                max_bytes=max_bytes if max_bytes is not None else cfg.LOG_MAX_BYTES,
                backup_count=backup_count if backup_count is not None else cfg.LOG_BACKUP_COUNT,
            )

    def _attach_handlers(
        self,
        formatter: logging.Formatter,
        level: int,
        stream: TextIO,
        log_file: str,
        max_bytes: int,
        backup_count: int,
    ) -> None:
        stream_handler = logging.StreamHandler(stream)
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

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
            self._logger.warning(
                "Could not open log file '%s': %s. Logging to the console only.",
                log_file,
                exc,
            )
            return
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying ``logging.Logger`` directly."""
        return self._logger

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    def bind(self, **context: Any) -> StructuredLogger:
        """Return a logger writing to the same handlers with *context* added to every line."""
        child = copy.copy(self)
        child._context = {**self._context, **context}
        return child

    def _log(self, level: int, msg: str, args: tuple[object, ...], kwargs: dict[str, Any]) -> None:
        extra = {**self._context, **(kwargs.pop("extra", None) or {})}
        self._logger.log(level, msg, *args, extra=extra or None, **kwargs)

    def debug(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args: object, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, args, kwargs)


def get_logger(name: str = "commission_engine") -> StructuredLogger:
    """Create and return a ``StructuredLogger`` instance with the given *name*."""
    return StructuredLogger(name=name)
