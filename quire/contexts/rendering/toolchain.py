"""
TeX toolchain execution.

Two interchangeable drivers compile a .tex file to PDF:

- Texi2DviDriver: hands the whole job to the system's texi2dvi, which decides
  how many compiler passes and which auxiliary tools (bibtex, makeindex) to run.
- PdfLatexDriver: emulates texi2dvi by running the TeX program directly,
  then bibtex/makeindex when the document needs them, then re-running the
  TeX program until cross-references settle.

`select_driver()` picks one from settings and what is installed. Both run
synchronously in the document's directory and report combined output plus the
exit status of the step that ended the run. There are no retries: a program
that cannot be started raises ToolchainLaunchError immediately.
"""

import os
import re
import shlex
import shutil
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from quire.contexts.rendering.exceptions import ToolchainLaunchError, VersionProbeError
from quire.contexts.rendering.logger import _log_debug, _log_info
from quire.utils.settings import CompilePdfSettings

RERUN_PATTERN = re.compile(r"Rerun to get|Please rerun|Rerun LaTeX")

# Extra TeX passes needed after bibtex (resolve citations, then references)
PASSES_AFTER_BIBTEX = 2

# bibtex exits 1 for warnings (e.g. an undefined citation), 2 or more for errors
BIBTEX_ERROR_STATUS = 2


@dataclass
class ToolchainOptions:
    """
    How to invoke the TeX program.

    Attributes:
        program_path: Resolved TeX program (pdflatex, xelatex, ...)
        file_line_error: Report errors as file:line: message
        synctex: Write SyncTeX data for editor/PDF position sync
        shell_escape: Allow \\write18 shell commands
        version_info: Banner from `<program> --version` (blank if the probe failed)
    """

    program_path: Path
    file_line_error: bool = True
    synctex: bool = True
    shell_escape: bool = False
    version_info: str = ""

    def program_args(self) -> List[str]:
        args = ["-interaction=nonstopmode"]
        if self.file_line_error:
            args.append("-file-line-error")
        if self.synctex:
            args.append("-synctex=-1")
        if self.shell_escape:
            args.append("-shell-escape")
        return args


@dataclass
class ProcessResult:
    """Captured output and exit status of one or more toolchain programs."""

    exit_status: int = 0
    stdout: str = ""
    stderr: str = ""
    commands: List[List[str]] = field(default_factory=list)

    def extend(self, other: "ProcessResult") -> None:
        """Append another step's output; its exit status becomes the overall status."""
        self.stdout = "\n".join(part for part in (self.stdout, other.stdout) if part)
        self.stderr = "\n".join(part for part in (self.stderr, other.stderr) if part)
        self.exit_status = other.exit_status
        self.commands.extend(other.commands)


def run_program(
    cmd: List[str], cwd: Optional[Path] = None, env: Optional[Dict[str, str]] = None
) -> ProcessResult:
    """
    Run a program to completion and capture its output.

    Raises:
        ToolchainLaunchError: If the program cannot be started
    """
    _log_debug(f"  $ {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",  # Replace invalid UTF-8 bytes instead of crashing
        )
    except OSError as e:
        raise ToolchainLaunchError(cmd[0], e) from e

    return ProcessResult(
        exit_status=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
        commands=[list(cmd)],
    )


def probe_version(program_path: Path) -> str:
    """
    Read the version banner of a TeX program.

    Raises:
        VersionProbeError: If the program cannot be run or exits non-zero
    """
    try:
        result = run_program([str(program_path), "--version"])
    except ToolchainLaunchError as e:
        raise VersionProbeError(f"Error probing for latex version: {e}") from e

    if result.exit_status != 0:
        raise VersionProbeError(f"Error probing for latex version: {result.stderr.strip()}")

    return result.stdout


class TexDriver(ABC):
    """Runs the TeX toolchain over one document."""

    name = "driver"

    @abstractmethod
    def run(self, tex_path: Path, options: ToolchainOptions) -> ProcessResult:
        """Compile `tex_path` to PDF; blocks until the toolchain exits."""


class Texi2DviDriver(TexDriver):
    """Native driver: delegates pass and tool scheduling to texi2dvi."""

    name = "texi2dvi"

    def __init__(self, texi2dvi_path: str = "texi2dvi"):
        self.texi2dvi_path = texi2dvi_path

    def run(self, tex_path: Path, options: ToolchainOptions) -> ProcessResult:
        program = " ".join(
            [shlex.quote(str(options.program_path)), *options.program_args()]
        )
        env = os.environ.copy()
        env["PDFLATEX"] = program
        env["LATEX"] = program

        _log_info(f"Running texi2dvi with {options.program_path.name}")
        return run_program(
            [self.texi2dvi_path, "--pdf", "--quiet", "--batch", tex_path.name],
            cwd=tex_path.parent,
            env=env,
        )


class PdfLatexDriver(TexDriver):
    """Emulated driver: runs the TeX program, bibtex and makeindex itself."""

    name = "emulated"

    def __init__(
        self,
        max_passes: int = 10,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.max_passes = max_passes
        self.which = which

    def _needs_bibtex(self, aux_path: Path) -> bool:
        if not aux_path.exists() or self.which("bibtex") is None:
            return False
        return "\\bibdata" in aux_path.read_text(encoding="latin-1")

    def _needs_makeindex(self, idx_path: Path) -> bool:
        return idx_path.exists() and self.which("makeindex") is not None

    def _needs_rerun(self, log_path: Path) -> bool:
        if not log_path.exists():
            return False
        return RERUN_PATTERN.search(log_path.read_text(encoding="latin-1")) is not None

    def run(self, tex_path: Path, options: ToolchainOptions) -> ProcessResult:
        cwd = tex_path.parent
        stem = tex_path.stem
        compile_cmd = [str(options.program_path), *options.program_args(), tex_path.name]

        _log_info(f"Running {options.program_path.name} (emulated texi2dvi)")
        combined = run_program(compile_cmd, cwd=cwd)
        passes = 1
        if combined.exit_status != 0:
            return combined

        pending_passes = 0

        if self._needs_bibtex(cwd / f"{stem}.aux"):
            combined.extend(run_program(["bibtex", stem], cwd=cwd))
            if combined.exit_status >= BIBTEX_ERROR_STATUS:
                return combined
            if combined.exit_status != 0:
                _log_debug(f"  bibtex reported warnings (exit code {combined.exit_status})")
                combined.exit_status = 0
            pending_passes = PASSES_AFTER_BIBTEX

        if self._needs_makeindex(cwd / f"{stem}.idx"):
            combined.extend(run_program(["makeindex", f"{stem}.idx"], cwd=cwd))
            if combined.exit_status != 0:
                return combined
            pending_passes = max(pending_passes, 1)

        # Multiple passes resolve cross-references, citations and page numbers
        while passes < self.max_passes and (
            pending_passes > 0 or self._needs_rerun(cwd / f"{stem}.log")
        ):
            combined.extend(run_program(compile_cmd, cwd=cwd))
            passes += 1
            pending_passes -= 1
            if combined.exit_status != 0:
                break

        _log_debug(f"  Passes: {passes}")
        return combined


def select_driver(
    settings: CompilePdfSettings,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> TexDriver:
    """
    Choose the driver for a compilation.

    texi2dvi is used when preferred in settings and installed; otherwise the
    emulated driver.
    """
    if settings.use_texi2dvi:
        texi2dvi_path = which("texi2dvi")
        if texi2dvi_path is not None:
            return Texi2DviDriver(texi2dvi_path)
    return PdfLatexDriver(max_passes=settings.max_passes, which=which)
