"""
Generic logger setup utilities.

Provides reusable loguru configuration with a provenance header, so every
session log starts with what was run and with which settings.
Context-specific wrappers are defined in contexts/{context}/logger.py.
"""

import sys
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from quire import __version__

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"


def setup_logger(
    context_name: str,
    log_dir: Path,
    provenance: Optional[Dict[str, str]] = None,
    console_level: str = "INFO",
) -> Path:
    """
    Configure loguru for one session of a context.

    Everything goes to <log_dir>/<context_name>.log; the console (stderr, so it
    does not interleave with compiler output on stdout) only shows
    `console_level` and above.

    Args:
        context_name: Context identifier (e.g., "render")
        log_dir: Directory for this logging session
        provenance: Session-specific key-value pairs for the header
        console_level: Minimum level echoed to the console

    Returns:
        Path to log file
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(provenance)
    return log_file


def log_provenance(provenance: Optional[Dict[str, str]] = None) -> None:
    """Write the session header: quire version, command line, then `provenance`."""
    logger.debug("=" * 80)
    logger.debug(f"quire {__version__} (Python {sys.version.split()[0]})")
    logger.debug(f"Command: {' '.join(sys.argv)}")
    logger.debug(f"Working directory: {Path.cwd()}")

    for key, value in (provenance or {}).items():
        logger.debug(f"{key}: {value}")

    logger.debug("=" * 80)
