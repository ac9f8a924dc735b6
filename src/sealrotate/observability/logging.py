"""
Structured logging configuration for sealrotate.

Provides consistent, structured logging across all modules with
human-readable and JSON output formats.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

ROOT_LOGGER_NAME = "sealrotate"

# Attributes every LogRecord has; anything else came in through extra=
_RECORD_ATTRIBUTES = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    )
)


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRIBUTES
    }


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs structured JSON logs, one object per line.

    Useful when the job runs as a Kubernetes CronJob and logs are shipped
    to an aggregation system.
    """

    def __init__(self, include_timestamp: bool = True):
        """
        Initialize structured formatter.

        Args:
            include_timestamp: Include timestamp in output
        """
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, Any] = {}

        if self.include_timestamp:
            log_data["timestamp"] = (
                datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
            )

        log_data["level"] = record.levelname.lower()
        log_data["logger"] = record.name

        log_data["message"] = record.getMessage()

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(_record_fields(record))

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable logs.

    Structured fields are appended as key=value pairs.
    """

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True, include_timestamp: bool = True):
        """
        Initialize human-readable formatter.

        Args:
            use_colors: Use ANSI colors in output when attached to a terminal
            include_timestamp: Include timestamp in output
        """
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        parts = []

        if self.include_timestamp:
            timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
            parts.append(f"[{timestamp}]")

        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.RESET}"
        parts.append(f"{level:>8}")

        parts.append(f"{record.name}:")
        parts.append(record.getMessage())

        fields = _record_fields(record)
        if fields:
            parts.append(" ".join(f"{key}={value}" for key, value in fields.items()))

        output = " ".join(parts)

        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)

        return output


class RotationLogger:
    """
    Wrapper around Python logging for structured rotation logs.

    Keyword arguments become structured fields on the record.
    """

    def __init__(self, name: str):
        """
        Initialize rotation logger.

        Args:
            name: Logger name
        """
        self.logger = logging.getLogger(name)
        self._context: dict[str, Any] = {}

    def set_context(self, **kwargs: Any) -> None:
        """Set persistent context fields for all logs."""
        self._context.update(kwargs)

    def clear_context(self) -> None:
        """Clear context fields."""
        self._context.clear()

    def _log(
        self,
        level: int,
        message: str,
        exc_info: bool = False,
        **kwargs: Any,
    ) -> None:
        """Internal logging method with context."""
        extra = {**self._context, **kwargs}
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log error message."""
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def step_started(self, step: str) -> None:
        """Log step start event."""
        self.debug(f"Entering step {step}", event_type="step.started", step=step)

    def step_completed(self, step: str, **kwargs: Any) -> None:
        """Log step completion event."""
        self.info(
            f"Step {step} completed",
            event_type="step.completed",
            step=step,
            **kwargs,
        )

    def step_failed(self, step: str, error: str, resource: str | None = None) -> None:
        """Log step failure event."""
        fields: dict[str, Any] = {"event_type": "step.failed", "step": step, "error": error}
        if resource:
            fields["resource"] = resource
        self.error(f"Step {step} failed", **fields)


def configure_logging(
    level: str = "INFO",
    format: str = "human",
) -> None:
    """
    Configure logging for sealrotate.

    Logs go to stderr; stdout is reserved for command output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Output format (human, json)
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)

    if format == "json":
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = HumanReadableFormatter()

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> RotationLogger:
    """
    Get a rotation logger instance.

    Args:
        name: Logger name (typically module name)

    Returns:
        RotationLogger instance
    """
    if name.startswith(f"{ROOT_LOGGER_NAME}.") or name == ROOT_LOGGER_NAME:
        return RotationLogger(name)
    return RotationLogger(f"{ROOT_LOGGER_NAME}.{name}")
