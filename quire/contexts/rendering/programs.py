"""TeX program resolution from magic comments and settings."""

import shutil
from pathlib import Path
from typing import Callable, Optional

from quire.contexts.rendering.exceptions import ToolResolutionError
from quire.utils.magic_comments import Directives
from quire.utils.settings import CompilePdfSettings

SUPPORTED_PROGRAMS = ("pdflatex", "xelatex", "lualatex")

# TeX-scoped magic comments that select the program, in priority order
PROGRAM_DIRECTIVES = ("tex program", "tex ts-program")


def requested_program(directives: Directives, settings: CompilePdfSettings) -> str:
    """Program name selected by magic comment, falling back to the configured default."""
    for name in PROGRAM_DIRECTIVES:
        if directives.get(name):
            return directives[name].strip()
    return settings.default_latex_program


def latex_program_for_file(
    directives: Directives,
    settings: CompilePdfSettings,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> Path:
    """
    Resolve the TeX program to compile a document with.

    Args:
        directives: Magic comments of the document
        settings: Compilation settings (supplies the default program)
        which: Executable lookup (shutil.which unless testing)

    Returns:
        Absolute path of the program

    Raises:
        ToolResolutionError: If the program is unsupported or not installed
    """
    program = requested_program(directives, settings)

    if program.lower() not in SUPPORTED_PROGRAMS:
        valid = ", ".join(SUPPORTED_PROGRAMS)
        raise ToolResolutionError(
            f"Unknown LaTeX program type '{program}' specified (valid types are {valid})"
        )

    located = which(program.lower())
    if located is None:
        raise ToolResolutionError(
            f"Unable to find {program.lower()} (please install TeX before compiling)"
        )

    return Path(located).absolute()
