"""
Logging Configuration - Centralized logging setup

Cung cap logging nhat quan cho toan bo tool.
Log file duoc luu tai ~/.chonkometer/logs/

- Console handler ghi ra stderr (stdout danh cho report)
- Log rotation (max 5 files, 2MB each)
- Buffered writes (reduce disk I/O)
"""

import logging
import logging.handlers
import sys
from typing import Optional

from chonkometer.config import paths

# Logger singleton
_logger: Optional[logging.Logger] = None

# Log rotation config
MAX_LOG_SIZE = 2 * 1024 * 1024  # 2MB per file
MAX_LOG_FILES = 5  # Keep 5 backup files
BUFFER_CAPACITY = 100  # Buffer 100 log records before flush

LOGGER_NAME = "chonkometer"


def _console_level() -> int:
    # CLI im lang mac dinh, chi hien warning tro len
    return logging.DEBUG if paths.DEBUG_MODE else logging.WARNING


def _file_level() -> int:
    return logging.DEBUG if paths.DEBUG_MODE else logging.INFO


def get_logger() -> logging.Logger:
    """
    Get hoac tao logger singleton.

    Returns:
        Configured logger instance
    """
    global _logger

    if _logger is not None:
        return _logger

    _logger = logging.getLogger(LOGGER_NAME)
    _logger.setLevel(logging.DEBUG)

    # Avoid duplicate handlers
    if _logger.handlers:
        return _logger

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_console_level())
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    _logger.addHandler(console_handler)

    try:
        paths.LOG_DIR.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            paths.LOG_DIR / "chonkometer.log",
            maxBytes=MAX_LOG_SIZE,
            backupCount=MAX_LOG_FILES,
            encoding="utf-8",
        )
        file_handler.setLevel(_file_level())
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

        # Wrap with MemoryHandler for buffered writes
        memory_handler = logging.handlers.MemoryHandler(
            capacity=BUFFER_CAPACITY,
            flushLevel=logging.ERROR,
            target=file_handler,
        )
        memory_handler.setLevel(_file_level())
        _logger.addHandler(memory_handler)

    except OSError as e:
        _logger.warning(f"Could not create log file: {e}")

    return _logger


def flush_logs() -> None:
    """
    Flush buffered logs to disk.
    Goi truoc khi process exit.
    """
    if _logger:
        for handler in _logger.handlers:
            handler.flush()


def set_debug_mode(enabled: bool) -> None:
    """
    Enable or disable debug mode at runtime (vd: CLI --debug).

    Args:
        enabled: True to enable DEBUG level logging
    """
    paths.DEBUG_MODE = enabled

    logger = get_logger()
    for handler in logger.handlers:
        if isinstance(handler, logging.handlers.MemoryHandler):
            handler.setLevel(_file_level())
        else:
            handler.setLevel(_console_level())


def log_error(message: str, exc: Optional[BaseException] = None) -> None:
    """Log error voi optional exception details"""
    logger = get_logger()
    if exc:
        logger.error(f"{message}: {exc}", exc_info=paths.DEBUG_MODE)
    else:
        logger.error(message)


def log_warning(message: str) -> None:
    """Log warning"""
    get_logger().warning(message)


def log_info(message: str) -> None:
    """Log info"""
    get_logger().info(message)


def log_debug(message: str) -> None:
    """Log debug - only written if DEBUG_MODE is enabled"""
    if paths.DEBUG_MODE:
        get_logger().debug(message)
