"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from quire.utils.logger import setup_logger as _setup_logger
from quire.utils.settings import CompilePdfSettings
from quire.utils.timestamp import format_elapsed

CONTEXT_PREFIX = "[render]"


def compile_provenance(
    settings: CompilePdfSettings, config_path: Optional[Path] = None
) -> Dict[str, str]:
    """Settings that decide how a document is compiled, for the log header."""
    return {
        "Settings file": str(config_path) if config_path is not None else "(defaults and environment)",
        "LaTeX program": settings.default_latex_program,
        "Driver preference": "texi2dvi" if settings.use_texi2dvi else "emulated",
        "Shell escape": "enabled" if settings.enable_shell_escape else "disabled",
        "Clean output": "yes" if settings.clean_output else "no (keep artifacts)",
        "Weave engine": settings.default_weave_engine,
    }


def setup_rendering_logger(
    log_dir: Path,
    settings: CompilePdfSettings,
    config_path: Optional[Path] = None,
    verbose: bool = False,
) -> Path:
    """
    Setup logger for rendering context.

    Args:
        log_dir: Directory for this rendering session
        settings: Effective settings, recorded in the provenance header
        config_path: Settings file the settings were loaded from, if any
        verbose: Echo DEBUG messages to the console as well

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        provenance=compile_provenance(settings, config_path),
        console_level="DEBUG" if verbose else "INFO",
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def _log_exception(message: str) -> None:
    """Log message with [render] prefix and the active traceback."""
    logger.opt(exception=True).error(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_compilation_start(target: Path, completion_action: str) -> None:
    """Log start of compilation with context."""
    _log_info(f"Starting compilation: {target.name}")
    _log_debug(f"  Source: {target}")
    _log_debug(f"  On completion: {completion_action}")


def log_compilation_result(
    target: Path,
    outcome,  # CompilationOutcome
    elapsed_time: float,
    verbose: bool = False,
) -> None:
    """
    Log compilation outcome with diagnostics.

    Args:
        target: Document that was compiled
        outcome: CompilationOutcome from PdfCompiler.run()
        elapsed_time: Time taken to compile
        verbose: Show all diagnostics and raw compiler output (default: False)
    """
    if outcome.success:
        _log_success(f"{target.name}: compilation succeeded ({format_elapsed(elapsed_time)})")
        if outcome.pdf_path:
            _log_debug(f"  PDF: {outcome.pdf_path}")
    else:
        _log_error(
            f"{target.name}: compilation failed [{outcome.kind.value}] "
            f"({format_elapsed(elapsed_time)})"
        )
        if outcome.message:
            _log_error(f"  {outcome.message}")
        limit = len(outcome.diagnostics) if verbose else 5
        for i, line in enumerate(outcome.diagnostics[:limit], 1):
            _log_error(f"  Diagnostic {i}: {line}")
        if len(outcome.diagnostics) > limit:
            _log_error(f"  ... and {len(outcome.diagnostics) - limit} more diagnostics")

    # Use opt(raw=True) so multi-line compiler output is not prefixed line by line
    if verbose or not outcome.success:
        if outcome.stdout:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nCOMPILER STDOUT:\n{'=' * 80}\n{outcome.stdout}\n"
            )
        if outcome.stderr:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nCOMPILER STDERR:\n{'=' * 80}\n{outcome.stderr}\n"
            )
