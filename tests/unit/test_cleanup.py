"""Unit tests for AuxiliaryFileCleanupContext."""

import pytest

from quire.contexts.rendering.cleanup import AuxiliaryFileCleanupContext

BYPRODUCTS = [".aux", ".out", ".log", ".blg", ".bbl"]


def make_byproducts(directory, stem="report", extensions=BYPRODUCTS):
    for ext in extensions:
        (directory / f"{stem}{ext}").write_text("byproduct")


def remaining(directory, stem="report"):
    return sorted(p.suffix for p in directory.glob(f"{stem}.*"))


@pytest.mark.unit
class TestCleanup:
    """Tests for byproduct removal rules."""

    def test_removes_everything_but_bbl_without_bib(self, tmp_path):
        make_byproducts(tmp_path)
        (tmp_path / "report.tex").write_text("source")
        context = AuxiliaryFileCleanupContext()
        context.init(tmp_path / "report.tex")

        removed = context.cleanup()

        assert remaining(tmp_path) == [".bbl", ".tex"]
        assert sorted(removed) == ["report.aux", "report.blg", "report.log", "report.out"]

    def test_removes_bbl_when_bib_exists(self, tmp_path):
        make_byproducts(tmp_path)
        (tmp_path / "report.bib").write_text("@book{}")
        context = AuxiliaryFileCleanupContext()
        context.init(tmp_path / "report.Rnw")

        context.cleanup()

        assert remaining(tmp_path) == [".bib"]

    def test_preserve_log_keeps_logs(self, tmp_path):
        make_byproducts(tmp_path)
        context = AuxiliaryFileCleanupContext()
        context.init(tmp_path / "report.tex")
        context.preserve_log()

        context.cleanup()

        assert remaining(tmp_path) == [".bbl", ".blg", ".log"]

    def test_missing_files_are_skipped(self, tmp_path):
        context = AuxiliaryFileCleanupContext()
        context.init(tmp_path / "report.tex")

        assert context.cleanup() == []

    def test_runs_only_once(self, tmp_path):
        context = AuxiliaryFileCleanupContext()
        context.init(tmp_path / "report.tex")
        context.cleanup()
        assert not context.active

        make_byproducts(tmp_path)
        assert context.cleanup() == []
        assert remaining(tmp_path) == sorted(BYPRODUCTS)

    def test_uninitialised_context_is_noop(self, tmp_path):
        make_byproducts(tmp_path)

        assert AuxiliaryFileCleanupContext().cleanup() == []
        assert remaining(tmp_path) == sorted(BYPRODUCTS)

    def test_removal_errors_do_not_stop_cleanup(self, tmp_path):
        # A directory cannot be unlinked like a file
        (tmp_path / "report.aux").mkdir()
        make_byproducts(tmp_path, extensions=[".out", ".log"])
        context = AuxiliaryFileCleanupContext()
        context.init(tmp_path / "report.tex")

        removed = context.cleanup()

        assert sorted(removed) == ["report.log", "report.out"]
        assert (tmp_path / "report.aux").is_dir()
