"""
Logging configuration for the web bootstrap service.

Every record can carry structured fields (``log_event``). The JSON formatter
merges them into the line, the console formatter renders them as
``key=value`` pairs. Both stamp the current request ID.
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict, Optional
from uuid import uuid4

# Context variable for request ID tracking across async calls
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_FIELDS_ATTR = "extra_fields"


def log_event(logger: logging.Logger, level: int, message: str, **fields: Any) -> None:
    """
    Log ``message`` with structured fields attached to the record.

    Args:
        logger: Logger to emit on
        level: Logging level
        message: Human-readable summary
        **fields: Structured context (method, path, status_code, ...)
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={_FIELDS_ATTR: fields})


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return getattr(record, _FIELDS_ATTR, None) or {}


class StructuredFormatter(logging.Formatter):
    """
    Formatter emitting one JSON object per record.

    The service name and request ID come first so log aggregation can group
    lines without parsing the message.
    """

    def __init__(self, service_name: str, datefmt: Optional[str] = None) -> None:
        super().__init__(datefmt=datefmt)
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "service": self.service_name,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_data["request_id"] = request_id

        for key, value in _record_fields(record).items():
            log_data.setdefault(key, value)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Colored console formatter: level, logger, request ID, message, fields."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        parts = [
            self.formatTime(record, self.datefmt),
            f"{color}{record.levelname:8}{self.RESET}",
            f"[{record.name}]",
        ]

        request_id = get_request_id()
        if request_id:
            parts.append(f"[req:{request_id[:8]}]")

        parts.append(record.getMessage())
        parts.extend(
            f"{key}={value}"
            for key, value in _record_fields(record).items()
            if value is not None
        )

        message = " ".join(parts)
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(
    log_level: str = "INFO",
    service_name: str = "web-bootstrap",
    use_json: bool = False,
) -> logging.Logger:
    """
    Configure application logging.

    Replaces any handlers on the root logger with a single stdout handler.
    Per-request lines come from ``RequestLoggingMiddleware``, so uvicorn's
    own access log is quieted.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Name of the service, stamped on JSON lines
        use_json: Use JSON lines instead of the console format

    Returns:
        Configured service logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    formatter: logging.Formatter
    if use_json:
        formatter = StructuredFormatter(service_name, datefmt="%Y-%m-%dT%H:%M:%S")
    else:
        formatter = HumanReadableFormatter(datefmt="%H:%M:%S")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger = logging.getLogger(service_name)
    logger.setLevel(numeric_level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger, defaulting to the service logger."""
    return logging.getLogger(name or "web-bootstrap")


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set request ID in context.

    Args:
        request_id: Request ID to set, generates new UUID if None

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid4())
    request_id_context.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    """Get current request ID from context."""
    return request_id_context.get()


def clear_request_id() -> None:
    """Clear request ID from context."""
    request_id_context.set(None)
