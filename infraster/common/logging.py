"""
Structured logging configuration.

Call ``setup_logging()`` once at process start. Every record gets the service
name and the correlation id of the request being served (``-`` outside a
request), whichever formatter is selected by ``LOG_FORMAT``.
"""

from __future__ import annotations

import logging
import sys

from pythonjsonlogger import jsonlogger

from infraster.common.config import LOG_FORMAT, LOG_LEVEL
from infraster.common.middleware import get_correlation_id

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "sqlalchemy.pool")


class _RequestContextFilter(logging.Filter):
    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"  # type: ignore[attr-defined]
        record.service = self.service_name  # type: ignore[attr-defined]
        return True


def _formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(service)s %(name)s %(correlation_id)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    return logging.Formatter("%(asctime)s [%(levelname)s] %(name)s (%(correlation_id)s) %(message)s")


def setup_logging(service_name: str, level: str = LOG_LEVEL, fmt: str = LOG_FORMAT) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_formatter(fmt))
    handler.addFilter(_RequestContextFilter(service_name))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(service_name).info("Logging initialised (format=%s, level=%s)", fmt, level.upper())
