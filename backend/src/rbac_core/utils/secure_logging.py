"""Secure logging utilities to prevent information disclosure."""

import logging
import re
from typing import Any

from rbac_core.config import get_settings


def is_debug_mode() -> bool:
    """Check if the application is running in debug mode."""
    try:
        return get_settings().debug
    except ValueError:
        # Settings not configured, log conservatively
        return False


def sanitize_exception_message(error: Exception) -> str:
    """Sanitize exception message for logging in production.

    Removes file system paths, connection strings, and email addresses,
    then truncates long messages.

    Args:
        error: The exception to sanitize

    Returns:
        Sanitized error message suitable for production logs
    """
    error_msg = str(error)

    # Connection strings first, they contain path-like segments
    url_pattern = r"(postgresql|postgres|sqlite)(\+\w+)?://[^\s]+"
    error_msg = re.sub(url_pattern, "[URL]", error_msg)

    # File paths (Unix and Windows)
    error_msg = re.sub(r"['\"]?(/[a-zA-Z0-9_./\-]+|[A-Z]:\\[^\s'\"]+)['\"]?", "[PATH]", error_msg)

    # Email addresses
    error_msg = re.sub(r"[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+", "[EMAIL]", error_msg)

    if len(error_msg) > 200:
        error_msg = error_msg[:197] + "..."

    return error_msg


def log_error(
    logger: logging.Logger,
    message: str,
    error: Exception | None = None,
    **kwargs: Any,
) -> None:
    """Log an error with detail level based on environment.

    In debug mode, logs full exception details. Otherwise logs a sanitized
    message without the traceback.

    Args:
        logger: The logger instance to use
        message: The log message (should be generic, no sensitive data)
        error: Optional exception to include
        **kwargs: Additional context, only attached in debug mode
    """
    if is_debug_mode():
        if error:
            logger.error(f"{message}: {error}", exc_info=error, extra=kwargs)
        else:
            logger.error(message, extra=kwargs)
    elif error:
        logger.error(f"{message}: {sanitize_exception_message(error)}")
    else:
        logger.error(message)


def log_warning(
    logger: logging.Logger,
    message: str,
    error: Exception | None = None,
    **kwargs: Any,
) -> None:
    """Log a warning with detail level based on environment.

    Args:
        logger: The logger instance to use
        message: The log message (should be generic, no sensitive data)
        error: Optional exception to include
        **kwargs: Additional context, only attached in debug mode
    """
    if is_debug_mode():
        if error:
            logger.warning(f"{message}: {error}", extra=kwargs)
        else:
            logger.warning(message, extra=kwargs)
    elif error:
        logger.warning(f"{message}: {sanitize_exception_message(error)}")
    else:
        logger.warning(message)
