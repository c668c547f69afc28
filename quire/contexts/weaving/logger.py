"""
Weaving context logger.

Provides logging interface for weaving context with automatic [weave] prefix.
All weaving modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[weave]"


def _log_info(message: str) -> None:
    """Log info message with [weave] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [weave] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [weave] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [weave] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")
