"""
Logging configuration for the uiauto_heal logger namespace.
Console and optional file output with thread-aware formatting.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "uiauto_heal"

_initialized: bool = False


class HealLogFormatter(logging.Formatter):
    """Formatter with timestamp, level and (optionally) thread name."""

    def __init__(self, include_thread: bool = True):
        self.include_thread = include_thread
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = record.levelname.ljust(8)

        if self.include_thread:
            thread = record.threadName[:12].ljust(12)
            prefix = f"[{timestamp}] [{level}] [{thread}] {record.name}: "
        else:
            prefix = f"[{timestamp}] [{level}] {record.name}: "

        message = record.getMessage()
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return prefix + message


def setup_logging(
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Attach console (stderr) and optional file handlers to the package logger.
    Repeated calls are no-ops.
    """
    global _initialized

    root_logger = logging.getLogger(ROOT_LOGGER)
    if _initialized:
        return root_logger

    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(HealLogFormatter(include_thread=False))
    root_logger.addHandler(console_handler)

    if log_file is not None:
        log_file = Path(log_file)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(file_level)
            file_handler.setFormatter(HealLogFormatter(include_thread=True))
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning("Could not create log file: %s", e)

    _initialized = True
    return root_logger
