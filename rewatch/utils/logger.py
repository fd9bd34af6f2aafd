"""
Logging setup for Rewatch

Diagnostics go to stderr; stdout belongs to the command transcript.
"""
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUPS = 5

# Chatty at debug level; their events are already logged by the translator
QUIET_LOGGERS = ('watchdog', 'asyncio')


class JsonFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'time': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'thread': record.threadName,
        }
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColorFormatter(logging.Formatter):
    """Text formatter with ANSI-colored level names"""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[41m',   # Red background
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        # Work on a copy; the file handler shares the record
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def make_formatter(log_format: str) -> logging.Formatter:
    log_format = log_format.lower()
    if log_format == "json":
        return JsonFormatter()
    if log_format == "color":
        return ColorFormatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)
    return logging.Formatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: str = "WARNING",
    log_file: Optional[str] = None,
    log_format: str = "text",
    stream: Optional[TextIO] = None
) -> logging.Logger:
    """
    Configure the root logger for a rewatch process

    Replaces any handlers already installed, so it is safe to call again
    once the real configuration is known.

    Args:
        log_level: Level name; unknown names fall back to WARNING
        log_file: Also log to this file, rotated at LOG_FILE_MAX_BYTES
        log_format: text, color, or json
        stream: Console stream (stderr by default)
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setFormatter(make_formatter(log_format))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8'
        )
        # No escape codes in files
        file_handler.setFormatter(make_formatter("json" if log_format == "json" else "text"))
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.debug(f"Logging at {logging.getLevelName(level)} ({log_format})")
    if log_file:
        root_logger.debug(f"Also logging to {log_file}")

    return root_logger
