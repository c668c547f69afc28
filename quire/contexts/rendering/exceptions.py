"""Custom exceptions for the rendering context."""

from pathlib import Path
from typing import Optional


class CompilePdfError(Exception):
    """Base class for failures that end a compilation."""


class InvalidInputError(CompilePdfError):
    """Raised when the target document cannot be compiled as given (e.g. spaces in the filename)."""


class ToolResolutionError(CompilePdfError):
    """Raised when no usable TeX program can be determined for the document."""


class WeaveError(CompilePdfError):
    """Raised when weaving a literate document fails; the message is the weaver's own."""


class ToolchainLaunchError(CompilePdfError):
    """
    Exception raised when a toolchain program cannot be started at all.

    Attributes:
        program: Program that failed to launch
        original_error: The underlying OSError
    """

    def __init__(self, program: str, original_error: Optional[Exception] = None):
        self.program = program
        self.original_error = original_error

        message = f"could not run {program}"
        if original_error:
            message += f" ({original_error})"

        super().__init__(message)


class ProcessError(CompilePdfError):
    """
    Exception raised when the TeX program exits non-zero and no diagnostics explain why.

    Attributes:
        program_path: TeX program that was run
        exit_status: Its exit code
    """

    def __init__(self, program_path: Path, exit_status: int):
        self.program_path = program_path
        self.exit_status = exit_status
        super().__init__(f"Error running {program_path} (exit code {exit_status})")


class VersionProbeError(CompilePdfError):
    """Raised when `<program> --version` fails to run or exits non-zero."""


class VersionProbeWarning(UserWarning):
    """Emitted when the TeX program's version banner could not be read. Never fatal."""
