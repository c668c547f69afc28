#!/usr/bin/env python3
"""
PDF Compilation CLI

Compiles LaTeX and literate (.Rnw) documents to PDF using the rendering context.

Commands:
    compile - Compile a document to PDF
    clean   - Remove LaTeX byproduct files left next to a document

Examples:\n

    compile_pdf.py compile paper/notes.Rnw                  # Weave and compile

    compile_pdf.py compile paper/report.tex --view          # Compile and open the PDF

    compile_pdf.py compile paper/report.tex --keep-artifacts

    compile_pdf.py clean paper/report.tex                   # Remove .aux, .log, ...
"""

import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from quire.contexts.rendering import (
    AuxiliaryFileCleanupContext,
    CompileOutput,
    CompletionAction,
    compile_pdf,
)
from quire.contexts.rendering.logger import setup_rendering_logger
from quire.utils.settings import load_settings
from quire.utils.timestamp import now

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))


def echo_output(text: str, is_error: bool) -> None:
    """Stream compile output to the terminal as it arrives."""
    if is_error:
        typer.secho(text, fg=typer.colors.RED, nl=False, err=True)
    else:
        typer.echo(text, nl=False)


app = typer.Typer(
    help="Compile LaTeX and Rnw documents to PDF with diagnostics mapped to the source",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("compile")
def compile_command(
    target: Annotated[
        Path,
        typer.Argument(help="Document to compile (.tex, .Rnw, .Snw, .nw)"),
    ],
    view: Annotated[
        bool,
        typer.Option("--view", help="Open the PDF after a successful compile"),
    ] = False,
    publish: Annotated[
        bool,
        typer.Option("--publish", help="Announce the PDF for publishing after a successful compile"),
    ] = False,
    shell_escape: Annotated[
        Optional[bool],
        typer.Option(
            "--shell-escape/--no-shell-escape",
            help="Allow the TeX program to run shell commands (default: from settings)",
        ),
    ] = None,
    texi2dvi: Annotated[
        Optional[bool],
        typer.Option(
            "--texi2dvi/--no-texi2dvi",
            help="Prefer texi2dvi over the emulated driver (default: from settings)",
        ),
    ] = None,
    keep_artifacts: Annotated[
        bool,
        typer.Option(
            "--keep-artifacts",
            "-k",
            help="Keep LaTeX artifacts (.aux, .log, etc.) after compiling",
        ),
    ] = False,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="YAML settings file"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show detailed compilation output (compiler stdout/stderr)",
        ),
    ] = False,
):
    """
    Compile a document to PDF.

    Literate documents are woven first; errors in the woven .tex are reported
    at their line in the original document.

    Examples:\n

        $ compile_pdf.py compile notes.Rnw                    # Weave and compile

        $ compile_pdf.py compile report.tex --view            # Open PDF when done

        $ compile_pdf.py compile report.tex --shell-escape    # Allow \\write18
    """
    if view and publish:
        typer.secho("Error: choose at most one of --view and --publish\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)

    try:
        settings = load_settings(config)
    except (FileNotFoundError, ValueError) as e:
        typer.secho(f"Error: {e}\n", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if shell_escape is not None:
        settings.enable_shell_escape = shell_escape
    if texi2dvi is not None:
        settings.use_texi2dvi = texi2dvi
    if keep_artifacts:
        settings.clean_output = False

    log_dir = LOGS_PATH / f"render_{now()}"
    settings_file = config if config is not None else os.getenv("QUIRE_CONFIG")
    setup_rendering_logger(log_dir, settings, config_path=settings_file, verbose=verbose)

    action = CompletionAction.NONE
    if view:
        action = CompletionAction.VIEW
    elif publish:
        action = CompletionAction.PUBLISH

    typer.secho(f"\nCompiling: {target}", fg=typer.colors.BLUE, bold=True)

    outcome = compile_pdf(
        target,
        action,
        settings=settings,
        output=CompileOutput(sink=echo_output),
    )

    typer.echo("")
    if outcome.success:
        typer.secho("✓ Compilation succeeded", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  PDF: {outcome.pdf_path}")
    else:
        problems = len(outcome.diagnostics)
        summary = f"with {problems} problems" if problems else f"({outcome.kind.value})"
        typer.secho(f"✗ Compilation failed {summary}", fg=typer.colors.RED, bold=True)

    typer.echo(f"  Log: {log_dir / 'render.log'}")
    typer.echo("")

    raise typer.Exit(code=0 if outcome.success else 1)


@app.command("clean")
def clean_command(
    target: Annotated[
        Path,
        typer.Argument(help="Document whose byproducts should be removed"),
    ],
    keep_log: Annotated[
        bool,
        typer.Option("--keep-log", help="Keep .log and .blg files"),
    ] = False,
):
    """
    Remove LaTeX byproducts (.aux, .out, .log, .blg, and .bbl when a .bib exists).

    Examples:\n

        $ compile_pdf.py clean report.tex

        $ compile_pdf.py clean report.tex --keep-log
    """
    cleanup_context = AuxiliaryFileCleanupContext()
    cleanup_context.init(target.resolve())
    if keep_log:
        cleanup_context.preserve_log()

    removed = cleanup_context.cleanup()
    if removed:
        typer.secho(f"Removed {len(removed)} files:", fg=typer.colors.GREEN)
        for name in removed:
            typer.echo(f"  - {name}")
    else:
        typer.echo("Nothing to clean.")


if __name__ == "__main__":
    app()
