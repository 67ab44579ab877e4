"""
Centralized Logging Configuration for Arbor

Usage in any module:
    from arbor.core.logging_config import setup_logging, get_logger

    # Call once at process startup (the CLI does this)
    setup_logging()

    # Get a logger for your module
    logger = get_logger(__name__)
    logger.info("My message")

Library modules only call logging.getLogger(__name__); nothing is configured
until an entry point calls setup_logging().
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# =============================================================================
# Configuration
# =============================================================================

LOG_FILE_NAME = "arbor.log"
MAX_LOG_SIZE = 5 * 1024 * 1024  # 5 MB per file
BACKUP_COUNT = 3

DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)-20s | %(message)s"
CONSOLE_DATE_FORMAT = "%H:%M:%S"

# =============================================================================
# Global State
# =============================================================================

_logging_configured = False
_file_handler: Optional[RotatingFileHandler] = None
_console_handler: Optional[logging.StreamHandler] = None


# =============================================================================
# Setup Functions
# =============================================================================


def setup_logging(
    level: Optional[str] = None,
    log_to_console: bool = True,
    log_to_file: bool = False,
    log_dir: Optional[Path] = None,
) -> None:
    """
    Configure logging for an Arbor process.

    Safe to call more than once; only the first call has an effect.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO.
        log_to_console: Whether to log to stderr (stdout is reserved for command output)
        log_to_file: Whether to also log to <log_dir>/arbor.log
        log_dir: Directory for the rotating log file (default: .arbor/logs)
    """
    global _logging_configured, _file_handler, _console_handler

    if _logging_configured:
        return

    if level is None:
        level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove any existing handlers (prevents duplicates)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_to_file:
        log_dir = log_dir or Path(".arbor") / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        _file_handler = RotatingFileHandler(
            log_dir / LOG_FILE_NAME,
            maxBytes=MAX_LOG_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        _file_handler.setLevel(log_level)
        _file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root_logger.addHandler(_file_handler)

    if log_to_console:
        _console_handler = logging.StreamHandler(sys.stderr)
        _console_handler.setLevel(log_level)
        _console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, CONSOLE_DATE_FORMAT))
        root_logger.addHandler(_console_handler)

    _logging_configured = True
    logging.getLogger("arbor").debug(f"Logging initialized at level {level.upper()}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Usually __name__ to get the module's dotted path

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def reset_logging() -> None:
    """Forget the configured state so setup_logging() runs again (for testing)."""
    global _logging_configured, _file_handler, _console_handler

    root_logger = logging.getLogger()
    if _file_handler is not None:
        root_logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None
    if _console_handler is not None:
        root_logger.removeHandler(_console_handler)
        _console_handler = None
    _logging_configured = False
