# logging_utils.py
"""Structured logging utilities for the lead qualifier.

Log records are emitted as one JSON object per line outside development and
as colored single lines in development. Fields passed with ``extra={...}``
and fields bound with LogContext are carried into both formats.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

LOGGER_NAMESPACE = "lead_qualifier"

# Attributes every LogRecord has; anything else on a record came from extra
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

NOISY_LOGGERS = (
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.identity",
    "azure.storage",
    "urllib3",
    "requests",
    "python_http_client",
)


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the extra fields attached to a log record."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class StructuredFormatter(logging.Formatter):
    """Formats log records as single-line JSON documents."""

    def __init__(self, service_name: str = "lead-qualifier"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON string.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log string
        """
        document: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        fields = record_fields(record)
        if fields:
            document["extra"] = fields

        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)

        # default=str keeps non-serializable extras (datetimes, enums) printable
        return json.dumps(document, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Single-line formatter for development, with optional ANSI colors."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, stream: Optional[TextIO] = None):
        super().__init__(datefmt="%H:%M:%S")
        target = stream or sys.stdout
        self.use_colors = use_colors and hasattr(target, "isatty") and target.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        line = f"{self.formatTime(record, self.datefmt)} {level} {record.name}: {record.getMessage()}"

        fields = record_fields(record)
        if fields:
            line += " | " + " ".join(f"{key}={value}" for key, value in sorted(fields.items()))

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class LogContext:
    """Binds fields to every record logged inside a ``with`` block.

    Example:
        >>> with LogContext(owner_id="user-1"):
        ...     logger.info("Listing qualifications")  # carries owner_id
    """

    _context: Dict[str, Any] = {}

    def __init__(self, **fields: Any):
        self.fields = fields
        self._saved: Dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._saved = LogContext._context
        LogContext._context = {**self._saved, **self.fields}
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        LogContext._context = self._saved

    @classmethod
    def get_context(cls) -> Dict[str, Any]:
        """Get a copy of the currently bound fields."""
        return dict(cls._context)


class ContextFilter(logging.Filter):
    """Copies LogContext fields onto records that do not already set them."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in LogContext.get_context().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def setup_logging(
    level: Optional[str] = None,
    structured: Optional[bool] = None,
    service_name: str = "lead-qualifier",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Set up logging configuration for the lead qualifier.

    Replaces the root logger's handlers with a single stream handler and
    returns the package logger.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL env var or INFO.
        structured: Whether to use structured JSON logging.
                   Defaults to True when APP_ENV is not 'dev'.
        service_name: Service name to include in structured logs.
        stream: Output stream for log records. Defaults to stdout.

    Returns:
        Logger instance for lead_qualifier

    Example:
        >>> logger = setup_logging(level="DEBUG", structured=False)
        >>> logger.info("Scoring lead", extra={"company": "Acme"})
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    if structured is None:
        structured = os.environ.get("APP_ENV", "prod") != "dev"

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(ContextFilter())
    if structured:
        handler.setFormatter(StructuredFormatter(service_name=service_name))
    else:
        handler.setFormatter(HumanReadableFormatter(stream=handler.stream))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # Third-party clients stay at WARNING unless we are debugging
    third_party_level = log_level if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.debug(
        "Logging initialized",
        extra={"log_level": level_name, "structured": structured, "service": service_name}
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the lead_qualifier namespace.

    Module names already under the package (``lead_qualifier.store``) are
    used as they are; any other name is prefixed.
    """
    if name != LOGGER_NAMESPACE and not name.startswith(f"{LOGGER_NAMESPACE}."):
        name = f"{LOGGER_NAMESPACE}.{name}"
    return logging.getLogger(name)
