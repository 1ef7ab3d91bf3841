"""
Structured Logging Configuration
=================================

The library only emits records through ``logging.getLogger(__name__)`` and
nothing here runs on import. Applications embedding influxwire may call
``setup_logging()`` to attach a handler to the ``influxwire`` logger, JSON
in production and plain text elsewhere.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Optional

from .config import settings

PACKAGE_LOGGER = "influxwire"

TEXT_FORMAT = "%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


# =================================================================
# FORMATTER
# =================================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON formatter: one object per record with timestamp (UTC, "Z"), level,
    logger, message and call site. Keys passed through
    ``extra={"extra_data": {...}}`` are merged in.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data, ensure_ascii=False, default=str)


# =================================================================
# SETUP
# =================================================================

def setup_logging(
    log_level: Optional[str] = None,
    json_output: Optional[bool] = None,
    stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Attach one handler to the ``influxwire`` logger.

    Calling it again replaces the handler. Records still propagate to the
    application's root handlers.

    Args:
        log_level: Defaults to settings.LOG_LEVEL
        json_output: Defaults to True when settings.ENVIRONMENT is "production"
        stream: Defaults to stdout

    Returns:
        The configured package logger

    Example:
        >>> setup_logging(log_level="DEBUG", json_output=False)
    """
    level = (log_level or settings.LOG_LEVEL).upper()
    if json_output is None:
        json_output = settings.ENVIRONMENT == "production"

    handler = logging.StreamHandler(stream or sys.stdout)
    if json_output:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, level, logging.INFO))
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.debug(f"🔧 Logging configured: level={level}, json={json_output}")
    return logger


# =================================================================
# PERFORMANCE LOGGING
# =================================================================

class PerformanceLogger:
    """
    Context manager logging the duration of a block.

    Example:
        >>> with PerformanceLogger("write 500 points to telemetry", __name__):
        ...     database.write_payload(lines)
    """

    def __init__(self, operation_name: str, logger_name: Optional[str] = None):
        self.operation_name = operation_name
        self.logger = logging.getLogger(logger_name or __name__)
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.debug(f"⏱️  Started: {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = (datetime.now() - self.start_time).total_seconds()

        if exc_type:
            self.logger.error(
                f"❌ Failed: {self.operation_name} ({elapsed:.2f}s)",
                exc_info=True
            )
        else:
            self.logger.info(
                f"✅ Completed: {self.operation_name} ({elapsed:.2f}s)"
            )
