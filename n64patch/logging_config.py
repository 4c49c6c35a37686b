#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Logging setup for the N64 ROM Patcher.

- Per-level formatter with optional ANSI colors on a TTY
- Structured JSON output (``--log-json`` or ``N64PATCH_LOG_JSON=1``)
- Optional rotating file log
- Stage timing at debug level
"""

import logging
import logging.handlers
import os
import sys
import time
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Dict, Any
from functools import lru_cache

ROOT_LOGGER_NAME = "n64patch"
DEFAULT_MAX_LOG_SIZE = 5 * 1024 * 1024

# =====================================================================================================
# Formatters
# =====================================================================================================

class FastFormatter(logging.Formatter):
    """Formatter with one pre-built template per level."""

    def __init__(self, enable_colors: bool = False):
        super().__init__()
        self.enable_colors = enable_colors

        self._formatters = {
            level: logging.Formatter(fmt, style='{', datefmt='%H:%M:%S')
            for level, fmt in {
                logging.ERROR: "[{asctime}] ERROR   [{name}] {message}",
                logging.WARNING: "[{asctime}] WARNING [{name}] {message}",
                logging.INFO: "[{asctime}] INFO    {message}",
                logging.DEBUG: "[{asctime}] DEBUG   {name}:{lineno} - {message}",
            }.items()
        }

        self.colors = {
            logging.ERROR: '\033[91m',     # Red
            logging.WARNING: '\033[93m',   # Yellow
            logging.INFO: '\033[92m',      # Green
            logging.DEBUG: '\033[94m',     # Blue
        } if enable_colors else {}

    def format(self, record):
        level = record.levelno
        if level >= logging.ERROR:
            key = logging.ERROR
        elif level >= logging.WARNING:
            key = logging.WARNING
        elif level >= logging.INFO:
            key = logging.INFO
        else:
            key = logging.DEBUG
        text = self._formatters[key].format(record)

        if self.enable_colors and key in self.colors:
            return f"{self.colors[key]}{text}\033[0m"
        return text


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
        }
        error_details = getattr(record, "error", None)
        if error_details is not None:
            payload["error"] = error_details
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

# =====================================================================================================
# Setup
# =====================================================================================================

def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_file_logging: bool = False,
    structured_json: Optional[bool] = None,
    stream=None,
) -> Dict[str, Any]:
    """Configure the ``n64patch`` logger tree.

    Console output goes to stderr so it never mixes with the patch report
    on stdout.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    use_json = structured_json if structured_json is not None else _env_bool("N64PATCH_LOG_JSON")
    stream = stream or sys.stderr

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)

# Replace handlers from a previous call only
    for handler in logger.handlers[:]:
        if getattr(handler, "_n64patch_handler", False):
            logger.removeHandler(handler)
            handler.close()

    handlers = {}

    enable_colors = (hasattr(stream, 'isatty') and
                     stream.isatty() and
                     os.environ.get('TERM') != 'dumb')

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(JsonFormatter() if use_json else FastFormatter(enable_colors=enable_colors))
    console_handler._n64patch_handler = True
    logger.addHandler(console_handler)
    handlers['console'] = console_handler

    if enable_file_logging:
        log_dir_path = Path(log_dir or "logs")
        log_dir_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            str(log_dir_path / "n64patch.log"),
            maxBytes=DEFAULT_MAX_LOG_SIZE,
            backupCount=3,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter() if use_json else FastFormatter())
        file_handler._n64patch_handler = True
        logger.addHandler(file_handler)
        handlers['file'] = file_handler

    return {'logger': logger, 'handlers': handlers}


@lru_cache(maxsize=32)
def get_logger(name: str) -> logging.Logger:
    """Get cached logger instance."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LoggingTimer:
    """Logs how long a pipeline stage took."""

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.start_time = None
        self.duration = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            self.duration = time.perf_counter() - self.start_time
            self.logger.debug("%s took %.3fs", self.operation_name, self.duration)
