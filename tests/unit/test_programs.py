"""Unit tests for TeX program resolution."""

from pathlib import Path

import pytest

from quire.contexts.rendering.exceptions import ToolResolutionError
from quire.contexts.rendering.programs import latex_program_for_file, requested_program
from quire.utils.settings import CompilePdfSettings


def which_all(name):
    return f"/usr/bin/{name}"


@pytest.mark.unit
class TestLatexProgramForFile:
    """Tests for choosing the TeX program from magic comments and settings."""

    def test_default_program(self):
        path = latex_program_for_file({}, CompilePdfSettings(), which=which_all)

        assert path == Path("/usr/bin/pdflatex")

    def test_program_directive(self):
        path = latex_program_for_file({"tex program": "XeLaTeX"}, CompilePdfSettings(), which=which_all)

        assert path == Path("/usr/bin/xelatex")

    def test_ts_program_directive(self):
        assert requested_program({"tex ts-program": "lualatex"}, CompilePdfSettings()) == "lualatex"

    def test_program_takes_priority_over_ts_program(self):
        directives = {"tex ts-program": "lualatex", "tex program": "xelatex"}

        assert requested_program(directives, CompilePdfSettings()) == "xelatex"

    def test_configured_default(self):
        settings = CompilePdfSettings(default_latex_program="lualatex")

        assert latex_program_for_file({}, settings, which=which_all) == Path("/usr/bin/lualatex")

    def test_unknown_program(self):
        with pytest.raises(ToolResolutionError, match="Unknown LaTeX program type 'troff'"):
            latex_program_for_file({"tex program": "troff"}, CompilePdfSettings(), which=which_all)

    def test_program_not_installed(self):
        with pytest.raises(ToolResolutionError, match="please install TeX"):
            latex_program_for_file({}, CompilePdfSettings(), which=lambda name: None)

    def test_other_scopes_do_not_select_program(self):
        directives = {"tex program": "xelatex", "bib program": "biber"}

        path = latex_program_for_file(directives, CompilePdfSettings(), which=which_all)

        assert path == Path("/usr/bin/xelatex")

    def test_bibliography_scope_is_ignored(self):
        assert requested_program({"bib program": "biber"}, CompilePdfSettings()) == "pdflatex"
