# common/logging_config.py
# -*- coding: utf-8 -*-
"""
Logging configuration for the bootstrap tool.

Human-readable log lines go to the console (stderr, so that the per-step
status lines on stdout stay readable); an optional log file receives
JSON-structured records that keep the step metadata passed via `extra`.
"""

import json
import logging
import os
import socket
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_RECORD_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
        "message",
        "asctime",
    ]
)


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON objects.

    Each entry has timestamp (ISO, UTC), level, service, logger, message,
    module, function, line and hostname, plus an "extra" mapping holding
    any fields passed through the `extra` argument of a logging call.
    """

    def __init__(self, service_name: str = "dotfiles-bootstrap"):
        super().__init__()
        self.service_name = service_name
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "hostname": self.hostname,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(
    service_name: str,
    log_level: Optional[str] = None,
    enable_console: bool = True,
    log_file_path: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Set up logging for the process.

    Args:
        service_name: Name of the service logger to return.
        log_level: Logging level name. Defaults to $LOG_LEVEL, then INFO.
            Unknown names fall back to INFO.
        enable_console: Whether to log human-readable lines to stderr.
        log_file_path: If given, also write JSON records to this file.
            Parent directories are created as needed.

    Returns:
        The service logger.
    """
    if log_level is None:
        log_level = os.environ.get("LOG_LEVEL", "INFO")

    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
        log_level = "INFO"

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root_logger.addHandler(console_handler)

    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        # The file keeps everything, regardless of console verbosity.
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter(service_name))
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.DEBUG)

    logger = logging.getLogger(service_name)
    logger.debug(
        "Logging initialized",
        extra={
            "log_level": log_level.upper(),
            "console_enabled": enable_console,
            "log_file": str(log_file_path) if log_file_path else None,
        },
    )
    return logger
