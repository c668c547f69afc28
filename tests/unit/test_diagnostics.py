"""Unit tests for diagnostics aggregation and concordance remapping."""

from pathlib import Path

import pytest

from quire.contexts.rendering.diagnostics import (
    collect_diagnostics,
    format_log_entry,
    remap_log_entry,
    remove_existing_logs,
    show_compilation_errors,
)
from quire.contexts.rendering.output import CompileOutput
from quire.contexts.rendering.tex_log import LogEntry, LogEntryKind
from quire.contexts.weaving.concordance import Concordance

LATEX_LOG = """(./notes.tex
./notes.tex:5: Undefined control sequence.
./notes.tex:7: Missing $ inserted.
)
"""

BIBTEX_LOG = "I was expecting a `,' or a `}'---line 3 of file notes.bib\n"


def notes_concordance(directory: Path) -> Concordance:
    """Concordance mapping notes.tex line 5 to notes.Rnw line 2."""
    return Concordance(
        output_file=directory / "notes.tex",
        input_file=directory / "notes.Rnw",
        rnw_lines=[1, 1, 1, 1, 2],
    )


@pytest.mark.unit
class TestRemapLogEntry:
    """Tests for remapping TeX log entries through a concordance."""

    def test_remaps_file_and_line(self, tmp_path):
        entry = LogEntry(LogEntryKind.ERROR, tmp_path / "notes.tex", 5, "Undefined control sequence")

        remapped = remap_log_entry(entry, notes_concordance(tmp_path))

        assert remapped.file == tmp_path / "notes.Rnw"
        assert remapped.line == 2
        assert remapped.message == "Undefined control sequence"
        assert remapped.kind is LogEntryKind.ERROR

    def test_other_file_unchanged(self, tmp_path):
        entry = LogEntry(LogEntryKind.ERROR, tmp_path / "chapter.tex", 5, "Oops")

        assert remap_log_entry(entry, notes_concordance(tmp_path)) == entry

    def test_empty_concordance_unchanged(self, tmp_path):
        entry = LogEntry(LogEntryKind.ERROR, tmp_path / "notes.tex", 5, "Oops")

        assert remap_log_entry(entry, Concordance.empty()) == entry

    def test_uncovered_line_unchanged(self, tmp_path):
        entry = LogEntry(LogEntryKind.ERROR, tmp_path / "notes.tex", 40, "Oops")

        assert remap_log_entry(entry, notes_concordance(tmp_path)) == entry


@pytest.mark.unit
def test_format_log_entry_relative_and_absolute(tmp_path):
    inside = LogEntry(LogEntryKind.ERROR, tmp_path / "notes.Rnw", 2, "Undefined control sequence")
    outside = LogEntry(LogEntryKind.WARNING, Path("/usr/share/texmf/article.cls"), 9, "Odd")

    assert format_log_entry(inside, tmp_path) == "notes.Rnw (line 2): Undefined control sequence"
    assert format_log_entry(outside, tmp_path) == "/usr/share/texmf/article.cls (line 9): Odd"


@pytest.mark.unit
class TestCollectDiagnostics:
    """Tests for reading and merging the TeX and BibTeX logs."""

    def test_no_logs_found_nothing(self, tmp_path):
        report = collect_diagnostics(tmp_path / "notes.tex", Concordance.empty())

        assert not report.found
        assert report.lines == []

    def test_latex_entries_precede_bibtex_entries(self, tmp_path):
        (tmp_path / "notes.log").write_text(LATEX_LOG)
        (tmp_path / "notes.blg").write_text(BIBTEX_LOG)

        report = collect_diagnostics(tmp_path / "notes.tex", Concordance.empty())

        assert report.found
        assert report.lines == [
            "notes.tex (line 5): Undefined control sequence",
            "notes.tex (line 7): Missing $ inserted",
            "notes.bib (line 3): I was expecting a `,' or a `}'",
        ]

    def test_only_latex_entries_are_remapped(self, tmp_path):
        (tmp_path / "notes.log").write_text(LATEX_LOG)
        (tmp_path / "notes.blg").write_text(BIBTEX_LOG)

        report = collect_diagnostics(tmp_path / "notes.tex", notes_concordance(tmp_path))

        assert report.lines == [
            "notes.Rnw (line 2): Undefined control sequence",
            "notes.tex (line 7): Missing $ inserted",
            "notes.bib (line 3): I was expecting a `,' or a `}'",
        ]

    def test_unparseable_log_counts_as_empty(self, tmp_path):
        # A directory where the log should be cannot be read
        (tmp_path / "notes.log").mkdir()
        (tmp_path / "notes.blg").write_text(BIBTEX_LOG)

        report = collect_diagnostics(tmp_path / "notes.tex", Concordance.empty())

        assert report.latex_entries == []
        assert len(report.bibtex_entries) == 1


@pytest.mark.unit
class TestShowCompilationErrors:
    """Tests for writing diagnostics to the progress stream."""

    def test_writes_grouped_entries(self, tmp_path):
        (tmp_path / "notes.log").write_text(LATEX_LOG)
        (tmp_path / "notes.blg").write_text(BIBTEX_LOG)
        output = CompileOutput()

        found = show_compilation_errors(
            collect_diagnostics(tmp_path / "notes.tex", Concordance.empty()), output
        )

        assert found is True
        assert output.text == (
            "\nLaTeX errors:\n"
            "notes.tex (line 5): Undefined control sequence\n"
            "notes.tex (line 7): Missing $ inserted\n"
            "\n"
            "BibTeX errors:\n"
            "notes.bib (line 3): I was expecting a `,' or a `}'\n"
            "\n"
        )
        assert len(output.errors) == 3

    def test_nothing_shown_without_entries(self, tmp_path):
        output = CompileOutput()

        found = show_compilation_errors(
            collect_diagnostics(tmp_path / "notes.tex", Concordance.empty()), output
        )

        assert found is False
        assert output.lines == []


@pytest.mark.unit
def test_remove_existing_logs(tmp_path):
    (tmp_path / "notes.log").write_text("old")
    (tmp_path / "notes.blg").write_text("old")
    (tmp_path / "notes.aux").write_text("keep")

    remove_existing_logs(tmp_path / "notes.tex")
    remove_existing_logs(tmp_path / "notes.tex")

    assert not (tmp_path / "notes.log").exists()
    assert not (tmp_path / "notes.blg").exists()
    assert (tmp_path / "notes.aux").exists()
