"""
Logging module for the Genie Dialer input core
Provides structured logging with different log levels
"""

import logging
import sys
import traceback
from datetime import datetime

import config

# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_log_file = None


def _get_log_file():
    """Log file with timestamp, created on first use"""
    global _log_file
    if _log_file is None:
        config.LOG_DIR.mkdir(parents=True, exist_ok=True)
        _log_file = config.LOG_DIR / f"genie_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    return _log_file


def setup_logger(name, level=logging.INFO):
    """
    Set up a logger with file and console handlers

    Args:
        name: Logger name (usually __name__)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if config.DEBUG_MODE else level)

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    # File handler (all logs)
    if config.LOG_TO_FILE:
        file_handler = logging.FileHandler(_get_log_file())
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    # Console handler (INFO and above, or DEBUG if config.DEBUG_MODE)
    console_level = logging.DEBUG if config.DEBUG_MODE else logging.INFO
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))
    logger.addHandler(console_handler)

    return logger


def log_error(logger, error, context=""):
    """
    Log an error with context and traceback

    Args:
        logger: Logger instance
        error: Exception object
        context: Additional context string
    """
    error_msg = f"{context}: {type(error).__name__}: {str(error)}"
    logger.error(error_msg)
    if config.DEBUG_MODE:
        logger.debug(f"Traceback:\n{''.join(traceback.format_exception(type(error), error, error.__traceback__))}")


def log_warning(logger, message, context=""):
    """Log a warning with optional context"""
    if context:
        logger.warning(f"{context}: {message}")
    else:
        logger.warning(message)


def log_info(logger, message, context=""):
    """Log info with optional context"""
    if context:
        logger.info(f"{context}: {message}")
    else:
        logger.info(message)


def log_debug(logger, message, context=""):
    """Log debug message with optional context"""
    if context:
        logger.debug(f"{context}: {message}")
    else:
        logger.debug(message)


def conditional_log(logger, level, message, condition=True):
    """
    Conditional logging - only log if condition is True
    Keeps per-tick chatter out of the logs unless a debug flag asks for it
    """
    if condition:
        getattr(logger, level)(message)
