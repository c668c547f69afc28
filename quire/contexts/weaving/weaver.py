"""
Rnw weaving.

Runs a weave engine (Sweave or knitr) through Rscript to turn a literate
.Rnw document into a sibling .tex file, then reads the concordance the engine
writes alongside it. Weaving is the one asynchronous step of a compilation:
the compiler awaits `RnwWeaver.weave()` and resumes with its WeaveResult.
"""

import asyncio
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from typing_extensions import Protocol

from quire.contexts.weaving.concordance import (
    Concordance,
    concordance_path,
    read_concordance_file,
)
from quire.contexts.weaving.logger import _log_debug, _log_info, _log_warning
from quire.utils.magic_comments import Directives
from quire.utils.settings import CompilePdfSettings

# Engine name (lower case) -> R expression template
WEAVE_ENGINES: Dict[str, str] = {
    "sweave": "utils::Sweave('{file}', concordance = TRUE)",
    "knitr": "knitr::opts_knit$set(concordance = TRUE); knitr::knit('{file}')",
}

ENGINE_DISPLAY_NAMES = "Sweave and knitr"

# Rnw-scoped magic comment that selects the engine
WEAVE_DIRECTIVE = "rnw weave"


@dataclass
class WeaveResult:
    """
    Outcome of a weave.

    Attributes:
        succeeded: Whether the .tex file was produced
        tex_path: The woven .tex file (None on failure)
        concordance: Line mapping back to the source (empty if none was written)
        error_message: Reason for failure, passed to the user verbatim
    """

    succeeded: bool
    tex_path: Optional[Path] = None
    concordance: Concordance = field(default_factory=Concordance.empty)
    error_message: str = ""

    @classmethod
    def failure(cls, message: str) -> "WeaveResult":
        return cls(succeeded=False, error_message=message)


class Weaver(Protocol):
    """Anything that can weave a literate document into a .tex file."""

    async def weave(self, target: Path, directives: Directives) -> WeaveResult:
        ...


def _r_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def weave_engine_for_file(directives: Directives, settings: CompilePdfSettings) -> str:
    """Weave engine selected by the "% !Rnw weave" magic comment, or the configured default."""
    return directives.get(WEAVE_DIRECTIVE) or settings.default_weave_engine


class RnwWeaver:
    """Weaves .Rnw documents by running R in a subprocess."""

    def __init__(self, settings: CompilePdfSettings):
        self.settings = settings

    async def weave(self, target: Path, directives: Directives) -> WeaveResult:
        """
        Weave `target` into <stem>.tex next to it.

        Failures are returned, not raised, so the caller can report the
        message as-is.
        """
        target = Path(target)
        engine = weave_engine_for_file(directives, self.settings)
        template = WEAVE_ENGINES.get(engine.lower())
        if template is None:
            return WeaveResult.failure(
                f"Unknown Rnw weave method '{engine}' specified "
                f"(valid values are {ENGINE_DISPLAY_NAMES})"
            )

        rscript = shutil.which(self.settings.rscript_program)
        if rscript is None:
            return WeaveResult.failure(
                f"Unable to find {self.settings.rscript_program} (is R installed?)"
            )

        expression = template.format(file=_r_string(target.name))
        _log_info(f"Weaving {target.name} with {engine}")
        _log_debug(f"  {rscript} -e \"{expression}\"")

        try:
            proc = await asyncio.create_subprocess_exec(
                rscript,
                "-e",
                expression,
                cwd=str(target.parent),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            return WeaveResult.failure(f"Unable to run {engine}: {e}")

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            _log_debug(stdout.decode(errors="replace"))
            return WeaveResult.failure(
                message or f"Error weaving {target.name} (exit code {proc.returncode})"
            )

        tex_path = target.parent / f"{target.stem}.tex"
        if not tex_path.exists():
            return WeaveResult.failure(f"Weaving {target.name} did not produce {tex_path.name}")

        try:
            concordance = read_concordance_file(concordance_path(target))
        except (OSError, ValueError) as e:
            _log_warning(f"Ignoring unreadable concordance for {target.name}: {e}")
            concordance = Concordance.empty()

        return WeaveResult(succeeded=True, tex_path=tex_path, concordance=concordance)
