"""
Logging setup: console output plus a size-rotated file under LOG_DIR.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from fileagent.core.config import settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
LOG_FILE_NAME = "fileagent.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Chatty at INFO during multipart uploads and reloads
QUIET_LOGGERS = ("multipart", "python_multipart", "watchfiles")


def _with_format(handler: logging.Handler, fmt: str, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """
    Attach console and rotating file handlers to the root logger.

    Handlers are added once per process; later calls only change the level.

    Args:
        level: Level name, defaults to LOG_LEVEL
        log_dir: Directory for the log file, defaults to LOG_DIR
    """
    log_level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers:
        if getattr(handler, "_fileagent", False):
            handler.setLevel(log_level)
    if getattr(root, "_fileagent_configured", False):
        return

    directory = Path(log_dir or settings.LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)

    handlers = [
        _with_format(logging.StreamHandler(sys.stdout), CONSOLE_FORMAT, log_level),
        _with_format(
            RotatingFileHandler(directory / LOG_FILE_NAME, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS),
            FILE_FORMAT,
            log_level,
        ),
    ]
    for handler in handlers:
        handler._fileagent = True
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    root._fileagent_configured = True
