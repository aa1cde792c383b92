"""
Error log sink for the optimizer.

Errors are appended to a plain-text file, one timestamped line per message,
e.g. ``[19/Oct/2026 10:15:02] Source file (a.png) does not exist.``
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .config import settings
from ..utils.file_utils import ensure_directory

LOGGER_NAME = "resmush_optimizer"
ERROR_LOGGER_NAME = f"{LOGGER_NAME}.errors"
ERROR_LOG_FORMAT = "[%(asctime)s] %(message)s"
ERROR_LOG_DATEFMT = "%d/%b/%Y %H:%M:%S"

logger = logging.getLogger(__name__)


def configure_logging(log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """
    Attach the append-only error file handler.

    Calling it again with the same path is a no-op; a different path
    replaces the previous file handler. A path that cannot be written
    leaves the error logger without a file handler.

    Args:
        log_file: Path of the error log. Defaults to settings.LOG_FILE.

    Returns:
        The error logger
    """
    path = Path(log_file or settings.LOG_FILE).resolve()
    error_logger = logging.getLogger(ERROR_LOGGER_NAME)
    error_logger.setLevel(logging.ERROR)

    for handler in list(error_logger.handlers):
        if not isinstance(handler, logging.FileHandler):
            continue
        if handler.baseFilename == str(path):
            return error_logger
        error_logger.removeHandler(handler)
        handler.close()

    try:
        ensure_directory(path.parent)
        path.touch(exist_ok=True)
        handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    except OSError as e:
        logger.warning(f"Error log {path} is not writable, errors are not written to file: {e}")
        return error_logger

    handler.setLevel(logging.ERROR)
    handler.setFormatter(logging.Formatter(ERROR_LOG_FORMAT, datefmt=ERROR_LOG_DATEFMT))
    error_logger.addHandler(handler)

    logger.debug(f"Error log attached at {path}")
    return error_logger


def log_error(message: str = "") -> None:
    """Write one line to the error log. Empty messages are ignored."""
    if not message:
        return
    logging.getLogger(ERROR_LOGGER_NAME).error(message)
