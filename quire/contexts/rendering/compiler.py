"""
PDF Compilation Module

Compiles a LaTeX or literate (.Rnw) document to PDF:

    CREATED -> VALIDATING -> (WEAVING) -> TYPESETTING -> REPORTING -> FINISHED

Weaving is awaited; typesetting blocks until the toolchain exits. Every exit
path, including unexpected exceptions, ends in FINISHED, where byproduct files
are cleaned up exactly once. Failures are reported on the CompileOutput
stream and in the returned CompilationOutcome; they never propagate to the
caller of compile_pdf().
"""

import asyncio
import os
import shutil
import time
import warnings
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

import typer

from quire.contexts.rendering.cleanup import AuxiliaryFileCleanupContext
from quire.contexts.rendering.diagnostics import (
    collect_diagnostics,
    remove_existing_logs,
    show_compilation_errors,
)
from quire.contexts.rendering.exceptions import (
    CompilePdfError,
    InvalidInputError,
    ProcessError,
    ToolchainLaunchError,
    ToolResolutionError,
    VersionProbeError,
    VersionProbeWarning,
    WeaveError,
)
from quire.contexts.rendering.logger import (
    _log_debug,
    _log_error,
    _log_exception,
    _log_info,
    _log_warning,
    log_compilation_result,
    log_compilation_start,
)
from quire.contexts.rendering.output import CompileOutput
from quire.contexts.rendering.programs import latex_program_for_file
from quire.contexts.rendering.toolchain import (
    ProcessResult,
    TexDriver,
    ToolchainOptions,
    probe_version,
    select_driver,
)
from quire.contexts.weaving.concordance import Concordance
from quire.contexts.weaving.weaver import RnwWeaver, Weaver
from quire.utils.magic_comments import Directives, parse_magic_comments
from quire.utils.settings import CompilePdfSettings, load_settings


class CompletionAction(Enum):
    VIEW = "view"
    PUBLISH = "publish"
    NONE = "none"

    @classmethod
    def parse(cls, value: Union[str, "CompletionAction", None]) -> "CompletionAction":
        """Map "view"/"publish" to their actions; anything else means no action."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.NONE


class CompileState(Enum):
    CREATED = "created"
    VALIDATING = "validating"
    WEAVING = "weaving"
    TYPESETTING = "typesetting"
    REPORTING = "reporting"
    FINISHED = "finished"


class OutcomeKind(Enum):
    SUCCESS = "success"
    INVALID_INPUT = "invalid_input"
    TOOL_RESOLUTION_ERROR = "tool_resolution_error"
    WEAVE_ERROR = "weave_error"
    PROCESS_ERROR = "process_error"
    DIAGNOSTICS_AVAILABLE = "diagnostics_available"
    LAUNCH_ERROR = "launch_error"
    UNEXPECTED_ERROR = "unexpected_error"


OUTCOME_BY_ERROR = {
    InvalidInputError: OutcomeKind.INVALID_INPUT,
    ToolResolutionError: OutcomeKind.TOOL_RESOLUTION_ERROR,
    WeaveError: OutcomeKind.WEAVE_ERROR,
    ProcessError: OutcomeKind.PROCESS_ERROR,
}


@dataclass(frozen=True)
class CompilationRequest:
    """
    A request to compile one document.

    Attributes:
        target_path: Document to compile (.tex or a literate extension)
        completion_action: What to do with the PDF after a successful compile
    """

    target_path: Path
    completion_action: CompletionAction = CompletionAction.NONE


@dataclass
class CompilationOutcome:
    """
    Result of a compilation.

    Attributes:
        kind: How the compilation ended
        message: Human-readable failure message (empty on success)
        diagnostics: Formatted log entries, TeX log first (only for DIAGNOSTICS_AVAILABLE)
        pdf_path: Generated PDF (only on success)
        exit_status: Exit status of the toolchain (None if it never ran)
        stdout: Standard output from the toolchain
        stderr: Standard error from the toolchain
    """

    kind: OutcomeKind
    message: str = ""
    diagnostics: List[str] = field(default_factory=list)
    pdf_path: Optional[Path] = None
    exit_status: Optional[int] = None
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


def pdf_path_for(target_path: Path) -> Path:
    return target_path.parent / f"{target_path.stem}.pdf"


def create_aliased_path(path: Path, home: Optional[Path] = None) -> str:
    """Path with the user's home directory shown as "~"."""
    home = Path(home) if home is not None else Path.home()
    try:
        return str(Path("~") / Path(path).relative_to(home))
    except ValueError:
        return str(path)


def view_pdf(pdf_path: Path) -> None:
    """Open the PDF in the system viewer."""
    typer.launch(str(pdf_path))


def publish_pdf(aliased_path: str) -> None:
    """Default publish notification."""
    _log_info(f"PDF ready to publish: {aliased_path}")


class PdfCompiler:
    """
    Runs one compilation request through the pipeline.

    Collaborators are injectable; by default the Rnw weaver, the driver picked
    by select_driver(), the system PDF viewer and a log-only publisher are used.
    An instance handles exactly one request; create a new one per attempt.
    """

    def __init__(
        self,
        request: CompilationRequest,
        settings: CompilePdfSettings,
        output: Optional[CompileOutput] = None,
        weaver: Optional[Weaver] = None,
        driver: Optional[TexDriver] = None,
        viewer: Callable[[Path], None] = view_pdf,
        publisher: Callable[[str], None] = publish_pdf,
        version_probe: Callable[[Path], str] = probe_version,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.request = request
        self.settings = settings
        self.output = output if output is not None else CompileOutput()
        self.weaver = weaver if weaver is not None else RnwWeaver(settings)
        self.driver = driver
        self.viewer = viewer
        self.publisher = publisher
        self.version_probe = version_probe
        self.which = which

        self.state = CompileState.CREATED
        self._cleanup_context = AuxiliaryFileCleanupContext()
        self._directives: Directives = {}
        self._program_path: Optional[Path] = None
        self._process_result: Optional[ProcessResult] = None
        self._reached_typeset = False

    @property
    def target_path(self) -> Path:
        return self.request.target_path

    def _transition(self, state: CompileState) -> None:
        _log_debug(f"{self.target_path.name}: {self.state.value} -> {state.value}")
        self.state = state

    async def run(self) -> CompilationOutcome:
        """
        Compile the requested document.

        Raises:
            RuntimeError: If this compiler has already been run
        """
        if self.state is not CompileState.CREATED:
            raise RuntimeError("PdfCompiler handles exactly one compilation; create a new one")

        log_compilation_start(self.target_path, self.request.completion_action.value)
        start_time = time.time()

        try:
            outcome = await self._run_pipeline()
        except ToolchainLaunchError as e:
            outcome = self._fail(OutcomeKind.LAUNCH_ERROR, f"Unable to compile pdf: {e}")
        except CompilePdfError as e:
            outcome = self._fail(OUTCOME_BY_ERROR.get(type(e), OutcomeKind.UNEXPECTED_ERROR), str(e))
        except Exception as e:
            _log_exception(f"Unexpected error compiling {self.target_path.name}")
            outcome = self._fail(OutcomeKind.UNEXPECTED_ERROR, f"Unexpected error: {e}")
        finally:
            self._finish()

        log_compilation_result(self.target_path, outcome, time.time() - start_time)
        return outcome

    async def _run_pipeline(self) -> CompilationOutcome:
        self._validate()

        concordance = Concordance.empty()
        if self._requires_weave():
            concordance = await self._weave()

        tex_path = self._typeset()
        return self._report(tex_path, concordance)

    def _validate(self) -> None:
        self._transition(CompileState.VALIDATING)

        filename = self.target_path.name
        if any(char.isspace() for char in filename):
            raise InvalidInputError(
                f"Invalid filename: '{filename}' (TeX does not understand paths with spaces)"
            )
        if not self.target_path.exists():
            raise InvalidInputError(f"File not found: {self.target_path}")

        if self.settings.clean_output:
            self._cleanup_context.init(self.target_path)

        try:
            self._directives = parse_magic_comments(self.target_path)
        except OSError as e:
            _log_error(f"Unable to read magic comments from {filename}: {e}")
            self._directives = {}

        self._program_path = latex_program_for_file(self._directives, self.settings, self.which)
        _log_debug(f"  Program: {self._program_path}")

    def _requires_weave(self) -> bool:
        return self.target_path.suffix.lower() in self.settings.literate_extensions

    async def _weave(self) -> Concordance:
        self._transition(CompileState.WEAVING)
        result = await self.weaver.weave(self.target_path, self._directives)
        if not result.succeeded:
            raise WeaveError(result.error_message)
        return result.concordance

    def _typeset(self) -> Path:
        self._transition(CompileState.TYPESETTING)
        self._reached_typeset = True

        options = ToolchainOptions(
            program_path=self._program_path,
            file_line_error=True,
            synctex=True,
            shell_escape=self.settings.enable_shell_escape,
        )

        try:
            options.version_info = self.version_probe(self._program_path)
            banner = options.version_info.splitlines()
            _log_debug(f"  Version: {banner[0] if banner else ''}")
        except VersionProbeError as e:
            _log_warning(str(e))
            warnings.warn(str(e), VersionProbeWarning)

        tex_path = self.target_path.parent / f"{self.target_path.stem}.tex"
        remove_existing_logs(tex_path)

        driver = self.driver if self.driver is not None else select_driver(self.settings, self.which)
        _log_debug(f"  Driver: {driver.name}")

        self.output.show_output("\nRunning LaTeX compiler...")
        self._process_result = driver.run(tex_path, options)
        return tex_path

    def _report(self, tex_path: Path, concordance: Concordance) -> CompilationOutcome:
        self._transition(CompileState.REPORTING)
        result = self._process_result

        if result.exit_status == 0:
            self.output.show_output("completed\n")
            pdf_path = pdf_path_for(self.target_path)
            self._run_completion_action(pdf_path)
            return CompilationOutcome(
                kind=OutcomeKind.SUCCESS,
                pdf_path=pdf_path,
                exit_status=result.exit_status,
                stdout=result.stdout,
                stderr=result.stderr,
            )

        self.output.show_output("\n")
        self._cleanup_context.preserve_log()

        report = collect_diagnostics(tex_path, concordance)
        if not show_compilation_errors(report, self.output):
            raise ProcessError(self._program_path, result.exit_status)

        return CompilationOutcome(
            kind=OutcomeKind.DIAGNOSTICS_AVAILABLE,
            message=f"{len(report.lines)} problems found compiling {self.target_path.name}",
            diagnostics=report.lines,
            exit_status=result.exit_status,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def _run_completion_action(self, pdf_path: Path) -> None:
        action = self.request.completion_action
        try:
            if action is CompletionAction.VIEW:
                self.viewer(pdf_path)
            elif action is CompletionAction.PUBLISH:
                self.publisher(create_aliased_path(pdf_path))
        except Exception as e:
            _log_error(f"Completion action '{action.value}' failed: {e}")
            self.output.show_error(f"Unable to {action.value} {pdf_path.name}: {e}\n")

    def _fail(self, kind: OutcomeKind, message: str) -> CompilationOutcome:
        self._transition(CompileState.REPORTING)

        # Logs of a run that reached the toolchain are kept for diagnosis
        if self._reached_typeset:
            self._cleanup_context.preserve_log()

        self.output.show_error(message + "\n")

        result = self._process_result
        return CompilationOutcome(
            kind=kind,
            message=message,
            exit_status=result.exit_status if result else None,
            stdout=result.stdout if result else "",
            stderr=result.stderr if result else "",
        )

    def _finish(self) -> None:
        self._transition(CompileState.FINISHED)
        try:
            self._cleanup_context.cleanup()
        except Exception as e:
            _log_error(f"Cleanup failed for {self.target_path.name}: {e}")


def compile_pdf(
    target_path: Union[str, Path],
    completion_action: Union[str, CompletionAction] = CompletionAction.NONE,
    settings: Optional[CompilePdfSettings] = None,
    output: Optional[CompileOutput] = None,
    **collaborators,
) -> CompilationOutcome:
    """
    Compile a document to PDF.

    Blocks until the compilation finishes; run it off any interactive thread.
    Progress and errors go to `output`; nothing is raised for a failed compile.

    Args:
        target_path: Document to compile
        completion_action: "view", "publish" or "none"
        settings: Compilation settings (default: load_settings())
        output: Progress stream (default: a new in-memory CompileOutput)
        **collaborators: Overrides passed to PdfCompiler (weaver, driver, viewer, ...)

    Returns:
        CompilationOutcome describing how the compilation ended

    Example:
        outcome = compile_pdf("paper/notes.Rnw", "view")
        if not outcome.success:
            print("\\n".join(outcome.diagnostics) or outcome.message)
    """
    request = CompilationRequest(
        target_path=Path(os.path.abspath(target_path)),
        completion_action=CompletionAction.parse(completion_action),
    )
    compiler = PdfCompiler(
        request,
        settings if settings is not None else load_settings(),
        output=output,
        **collaborators,
    )
    return asyncio.run(compiler.run())
