"""
Centralized logging configuration for the chat sessions core.

This module provides:
- Console output with colored level names
- File output with JSON structured logging
- Rotating file handler to prevent disk space issues
- A LoggerAdapter that attaches per-user context (user_id, session_id)
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotating file handler limits (10MB per file, keep 5 backups)
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


class ColoredFormatter(logging.Formatter):
    """Custom formatter to add colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',      # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with a colored level name."""
        level_color = self.COLORS.get(record.levelname, self.COLORS['RESET'])

        # Color a copy; the file handler sees the same record afterwards
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{level_color}{record.levelname:8s}{self.COLORS['RESET']}"

        line = super().format(record)

        # Context fields are only in the JSON output otherwise
        context = getattr(record, 'extra_fields', None)
        if context:
            line += " | " + " ".join(f"{key}={value}" for key, value in context.items())
        return line


class JSONFormatter(logging.Formatter):
    """Custom formatter to output structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        # user_id / session_id attached through LoggerAdapter
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def _build_console_handler(log_level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _build_file_handler(config: Any, log_level: int) -> logging.Handler:
    # Create logs directory if it doesn't exist
    log_path = Path(config.log_file_path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=log_path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding='utf-8'
    )
    handler.setLevel(log_level)

    if config.log_json_format:
        handler.setFormatter(JSONFormatter())
    else:
        # Plain text format as fallback
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(config: Any) -> None:
    """
    Setup logging configuration for the application.

    Safe to call more than once (e.g. one context per test); existing
    root handlers are replaced, not duplicated.

    Args:
        config: Settings object with logging configuration
    """
    root_logger = logging.getLogger()

    # Clear any existing handlers
    root_logger.handlers.clear()

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if config.log_console_enabled:
        root_logger.addHandler(_build_console_handler(log_level))

    if config.log_file_enabled:
        root_logger.addHandler(_build_file_handler(config, log_level))

    # Selector/debug chatter from the event loop
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={config.log_level.upper()}, "
        f"console={config.log_console_enabled}, "
        f"file={config.log_file_enabled}"
    )


class LoggerAdapter(logging.LoggerAdapter):
    """
    Custom logger adapter to add contextual information to log records.

    Usage:
        logger = LoggerAdapter(logging.getLogger(__name__), {"user_id": "123"})
        logger.info("Archived 2 sessions")  # JSON record includes user_id
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Add extra fields to the log record."""
        if 'extra' not in kwargs:
            kwargs['extra'] = {}

        # Per-call fields win over the adapter's own
        kwargs['extra']['extra_fields'] = {**self.extra, **kwargs['extra'].get('extra_fields', {})}

        return msg, kwargs


def session_logger(logger: logging.Logger, user_id: str, session_id: Optional[str] = None) -> LoggerAdapter:
    """Adapter carrying the user (and optionally session) a log line is about."""
    context = {"user_id": user_id}
    if session_id:
        context["session_id"] = session_id
    return LoggerAdapter(logger, context)


def truncate_large_data(data: str, max_length: int = 200) -> str:
    """
    Truncate long strings before they go into a log line.

    Message contents and search queries are user text; a log line only
    needs the start of them.

    Args:
        data: String data to truncate
        max_length: Maximum length in characters

    Returns:
        Truncated string with a length note if needed
    """
    if len(data) <= max_length:
        return data
    return data[:max_length] + f"... (truncated, total length: {len(data)})"
