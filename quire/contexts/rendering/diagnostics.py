"""
Compilation diagnostics.

After a failed compile, the TeX log (<stem>.log) and the BibTeX log
(<stem>.blg) are parsed and merged for display: all TeX entries first, each
remapped through the concordance to the literate source, then all BibTeX
entries as-is (they already point at the .bib file).
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, List

from quire.contexts.rendering.logger import _log_debug, _log_error
from quire.contexts.rendering.output import CompileOutput
from quire.contexts.rendering.tex_log import LogEntry, parse_bibtex_log, parse_latex_log
from quire.contexts.weaving.concordance import Concordance


def latex_log_path(tex_path: Path) -> Path:
    return tex_path.parent / f"{tex_path.stem}.log"


def bibtex_log_path(tex_path: Path) -> Path:
    return tex_path.parent / f"{tex_path.stem}.blg"


def remove_existing_logs(tex_path: Path) -> None:
    """Delete stale logs so a new run is never diagnosed with an old run's errors."""
    for path in (latex_log_path(tex_path), bibtex_log_path(tex_path)):
        try:
            path.unlink()
            _log_debug(f"Removed stale log: {path.name}")
        except FileNotFoundError:
            pass
        except OSError as e:
            _log_error(f"Unable to remove {path}: {e}")


def remap_log_entry(entry: LogEntry, concordance: Concordance) -> LogEntry:
    """
    Express a TeX log entry in terms of the literate source.

    Entries are returned unchanged when there is no concordance, when they
    refer to a file other than the one the concordance was generated for, or
    when their line is outside the concordance.
    """
    if not concordance.maps_file(entry.file) or not concordance.covers(entry.line):
        return entry
    return replace(
        entry,
        file=concordance.input_file,
        line=concordance.rnw_line(entry.line),
    )


def format_log_entry(entry: LogEntry, base_dir: Path) -> str:
    """Format as "<file> (line <line>): <message>", file relative to base_dir when possible."""
    base_dir = Path(os.path.normpath(base_dir))
    try:
        display = entry.file.relative_to(base_dir)
    except ValueError:
        display = entry.file
    return f"{display} (line {entry.line}): {entry.message}"


def _read_entries(path: Path, parser: Callable[[Path], List[LogEntry]]) -> List[LogEntry]:
    if not path.exists():
        return []
    try:
        return parser(path)
    except (OSError, UnicodeError, ValueError) as e:
        _log_error(f"Unable to parse {path.name}: {e}")
        return []


@dataclass
class DiagnosticsReport:
    """
    Merged diagnostics of one compile.

    Attributes:
        base_dir: Directory file names are shown relative to
        latex_entries: TeX log entries, remapped to the literate source
        bibtex_entries: BibTeX log entries
    """

    base_dir: Path
    latex_entries: List[LogEntry] = field(default_factory=list)
    bibtex_entries: List[LogEntry] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.latex_entries or self.bibtex_entries)

    @property
    def lines(self) -> List[str]:
        """Formatted entries, TeX log first."""
        return [
            format_log_entry(entry, self.base_dir)
            for entry in self.latex_entries + self.bibtex_entries
        ]


def collect_diagnostics(tex_path: Path, concordance: Concordance) -> DiagnosticsReport:
    """
    Parse and merge the logs of `tex_path`.

    Missing logs contribute nothing. A log that cannot be parsed is logged
    and also contributes nothing.
    """
    tex_path = Path(tex_path)
    latex_entries = [
        remap_log_entry(entry, concordance)
        for entry in _read_entries(latex_log_path(tex_path), parse_latex_log)
    ]
    bibtex_entries = _read_entries(bibtex_log_path(tex_path), parse_bibtex_log)

    return DiagnosticsReport(
        base_dir=tex_path.parent,
        latex_entries=latex_entries,
        bibtex_entries=bibtex_entries,
    )


def show_compilation_errors(report: DiagnosticsReport, output: CompileOutput) -> bool:
    """
    Write diagnostics to the progress stream.

    Returns:
        True if at least one entry was shown
    """
    if report.latex_entries:
        output.show_output("\nLaTeX errors:\n")
        for entry in report.latex_entries:
            output.show_error(format_log_entry(entry, report.base_dir) + "\n")
        output.show_output("\n")

    if report.bibtex_entries:
        output.show_output("BibTeX errors:\n")
        for entry in report.bibtex_entries:
            output.show_error(format_log_entry(entry, report.base_dir) + "\n")
        output.show_output("\n")

    return report.found
