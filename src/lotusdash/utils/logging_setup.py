from __future__ import annotations

import logging
import logging.handlers
import os
from typing import Optional

LOG_FILE = "lotusdash.log"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 2 * 1024 * 1024
LOG_BACKUPS = 3

# Chatty at INFO: one line per HTTP request or websocket frame.
_NOISY_LOGGERS = ("httpx", "httpcore", "websockets")


def _file_handler(log_dir: Optional[str]) -> logging.Handler:
    directory = log_dir or os.path.join(os.getcwd(), "logs")
    os.makedirs(directory, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        os.path.join(directory, LOG_FILE),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )


def setup_logging(level: str = "INFO", to_file: bool = True, log_dir: Optional[str] = None) -> None:
    """Route every ``lotusdash`` logger to the console and, optionally, a log file.

    Safe to call more than once: whatever handlers the root logger had are
    replaced. Unknown level names fall back to INFO. The HTTP and websocket
    libraries only get through at WARNING unless ``level`` is DEBUG.

    Args:
        level: Log level name, e.g. "DEBUG" or "INFO".
        to_file: Also write ``lotusdash.log`` under ``log_dir`` (rotated at 2 MiB, 3 kept).
        log_dir: Directory of the log file; ./logs when omitted.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if to_file:
        handlers.append(_file_handler(log_dir))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    root = logging.getLogger()
    for old in list(root.handlers):
        root.removeHandler(old)
    for handler in handlers:
        handler.setLevel(numeric)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(numeric)

    library_level = numeric if numeric <= logging.DEBUG else max(numeric, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


__all__ = ["LOG_FILE", "setup_logging"]
