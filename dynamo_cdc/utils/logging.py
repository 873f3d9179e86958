"""Structured logging configuration for CDC operations."""

import json
import logging
import os
import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional

PACKAGE_LOGGER = "dynamo_cdc"

# Attributes every LogRecord has; anything else came in through ``extra=``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "extra_fields", "taskName"}


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_obj: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "component": "dynamo_cdc",
        }

        # Fields passed with the standard extra= keyword
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_obj[key] = value

        # Fields passed through CdcOperationLogger
        if hasattr(record, "extra_fields"):
            log_obj.update(record.extra_fields)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Add X-Ray trace ID if available
        trace_id = os.environ.get("_X_AMZN_TRACE_ID")
        if trace_id:
            log_obj["trace_id"] = trace_id

        return json.dumps(log_obj, default=str)


class CdcOperationLogger:
    """Logger that takes keyword context and carries a correlation id."""

    def __init__(
        self, logger: logging.Logger, correlation_id: Optional[str] = None
    ):
        self.logger = logger
        self.correlation_id = correlation_id or str(uuid.uuid4())

    def info(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.INFO, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.ERROR, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.WARNING, message, **kwargs)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log_with_context(logging.DEBUG, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log_with_context(logging.ERROR, message, exc_info=True, **kwargs)

    def _log_with_context(
        self, level: int, message: str, exc_info: bool = False, **kwargs: Any
    ) -> None:
        extra_fields = {"correlation_id": self.correlation_id, **kwargs}
        self.logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={"extra_fields": extra_fields},
        )

    @contextmanager
    def operation_timer(self, operation_name: str, **context: Any) -> Iterator[str]:
        """Context manager for timing an operation."""
        start_time = time.time()
        operation_id = str(uuid.uuid4())

        self.debug(
            f"Starting operation: {operation_name}",
            operation_id=operation_id,
            operation_name=operation_name,
            **context,
        )

        try:
            yield operation_id
        except Exception as e:
            self.error(
                f"Operation failed: {operation_name}",
                operation_id=operation_id,
                operation_name=operation_name,
                duration_seconds=time.time() - start_time,
                error=str(e),
                **context,
            )
            raise

        self.info(
            f"Operation completed: {operation_name}",
            operation_id=operation_id,
            operation_name=operation_name,
            duration_seconds=time.time() - start_time,
            **context,
        )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger whose records reach the configured package handler.

    Args:
        name: Logger name (defaults to the package logger)

    Returns:
        Logger instance; module loggers under ``dynamo_cdc`` propagate to
        the package logger, which is configured on first use
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    # Only configure if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler()

        if (
            os.environ.get("ENABLE_STRUCTURED_LOGGING", "true").lower()
            == "true"
        ):
            formatter: logging.Formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(
                "[%(levelname)s] %(asctime)s.%(msecs)03dZ %(name)s - "
                "%(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        handler.setFormatter(formatter)
        logger.addHandler(handler)

        level = os.environ.get("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))

    return logging.getLogger(name or PACKAGE_LOGGER)


def get_operation_logger(
    name: Optional[str] = None, correlation_id: Optional[str] = None
) -> CdcOperationLogger:
    """Get an operation logger with timing and correlation features."""
    return CdcOperationLogger(get_logger(name), correlation_id)


__all__ = [
    "CdcOperationLogger",
    "StructuredFormatter",
    "get_logger",
    "get_operation_logger",
]
