"""
Logging Configuration - Centralized logging setup

Cung cap logging nhat quan cho toan bo engine.
Log file duoc luu tai ~/.code-prompt-helper/logs/

- Console: stderr, de stdout chi chua combined context cua CLI
- File: rotation (5 files x 2MB) + MemoryHandler buffer, flush ngay khi ERROR
"""

import logging
import logging.handlers
import sys
import time
from typing import Optional

from config.paths import APP_NAME, LOG_DIR, DEBUG_MODE

_logger: Optional[logging.Logger] = None

MAX_LOG_SIZE = 2 * 1024 * 1024
MAX_LOG_FILES = 5
BUFFER_CAPACITY = 100
LOG_FILE_NAME = "app.log"

_debug_mode = DEBUG_MODE


def _level() -> int:
    return logging.DEBUG if _debug_mode else logging.INFO


def _build_file_handler() -> logging.Handler:
    """
    Tao handler ghi ra LOG_DIR, buffer qua MemoryHandler.

    Raises:
        OSError: Khi khong tao duoc thu muc log hoac file log
    """
    LOG_DIR.mkdir(parents=True, exist_ok=True)

    rotating = logging.handlers.RotatingFileHandler(
        LOG_DIR / LOG_FILE_NAME,
        maxBytes=MAX_LOG_SIZE,
        backupCount=MAX_LOG_FILES,
        encoding="utf-8",
    )
    rotating.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s (%(threadName)s): %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    buffered = logging.handlers.MemoryHandler(
        capacity=BUFFER_CAPACITY,
        flushLevel=logging.ERROR,
        target=rotating,
    )
    return buffered


def get_logger() -> logging.Logger:
    """
    Get hoac tao logger singleton cua engine.

    Returns:
        Logger da gan console handler (stderr) va file handler (neu tao duoc)
    """
    global _logger

    if _logger is not None:
        return _logger

    logger = logging.getLogger(APP_NAME)
    logger.setLevel(_level())

    if not logger.handlers:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        logger.addHandler(console)

        try:
            logger.addHandler(_build_file_handler())
        except OSError as e:
            logger.warning(f"Could not create log file: {e}")

        for handler in logger.handlers:
            handler.setLevel(_level())

    _logger = logger
    return _logger


def flush_logs() -> None:
    """Flush buffered records xuong disk. Goi truoc khi CLI exit."""
    if _logger is None:
        return
    for handler in _logger.handlers:
        try:
            handler.flush()
        except (OSError, ValueError):
            # Handler da dong (interpreter shutdown)
            continue


def set_debug_mode(enabled: bool) -> None:
    """
    Bat/tat DEBUG level luc runtime (vd: CLI flag --debug).

    Args:
        enabled: True de ghi ca log_debug
    """
    global _debug_mode
    _debug_mode = enabled

    if _logger is not None:
        _logger.setLevel(_level())
        for handler in _logger.handlers:
            handler.setLevel(_level())


def cleanup_old_logs(max_age_days: int = 7) -> int:
    """
    Xoa cac log file cu hon max_age_days.

    Returns:
        So file da xoa
    """
    if not LOG_DIR.exists():
        return 0

    cutoff = time.time() - max_age_days * 24 * 60 * 60
    removed = 0
    for log_file in LOG_DIR.glob(f"{LOG_FILE_NAME}*"):
        try:
            if log_file.stat().st_mtime < cutoff:
                log_file.unlink()
                removed += 1
        except OSError:
            continue
    return removed


def log_error(message: str, exc: Optional[BaseException] = None) -> None:
    """Log error, kem exception (traceback chi khi debug mode)"""
    logger = get_logger()
    if exc is not None:
        logger.error(f"{message}: {exc}", exc_info=_debug_mode)
    else:
        logger.error(message)


def log_warning(message: str) -> None:
    get_logger().warning(message)


def log_info(message: str) -> None:
    get_logger().info(message)


def log_debug(message: str) -> None:
    """Chi ghi khi debug mode bat"""
    if _debug_mode:
        get_logger().debug(message)
