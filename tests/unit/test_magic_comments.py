"""Unit tests for magic comment parsing."""

import pytest

from quire.utils.magic_comments import parse_magic_comment_lines, parse_magic_comments


@pytest.mark.unit
class TestMagicComments:
    """Tests for directive extraction from document headers."""

    def test_program_and_weave_directives(self):
        text = "% !TeX program = xelatex\n% !Rnw weave = knitr\n\\documentclass{article}\n"

        assert parse_magic_comment_lines(text) == {"tex program": "xelatex", "rnw weave": "knitr"}

    def test_texshop_style(self):
        text = "%!TEX TS-program = lualatex\n"

        assert parse_magic_comment_lines(text) == {"tex ts-program": "lualatex"}

    def test_header_ends_at_first_content_line(self):
        text = "\\documentclass{article}\n% !TeX program = xelatex\n"

        assert parse_magic_comment_lines(text) == {}

    def test_blank_lines_and_plain_comments_in_header(self):
        text = "\n% A report\n\n%  !TeX   program   =   pdflatex  \n\\begin{document}"

        assert parse_magic_comment_lines(text) == {"tex program": "pdflatex"}

    def test_first_duplicate_wins(self):
        text = "% !TeX program = xelatex\n% !TeX program = lualatex\n"

        assert parse_magic_comment_lines(text) == {"tex program": "xelatex"}

    def test_scopes_are_kept_apart(self):
        text = "% !TeX program = xelatex\n% !BIB program = biber\n\\documentclass{article}\n"

        assert parse_magic_comment_lines(text) == {"tex program": "xelatex", "bib program": "biber"}

    def test_scope_and_variable_are_case_insensitive(self):
        text = "% !RNW Weave = knitr\n"

        assert parse_magic_comment_lines(text) == {"rnw weave": "knitr"}

    def test_no_directives(self):
        assert parse_magic_comment_lines("") == {}

    def test_reads_file(self, tmp_path):
        path = tmp_path / "notes.Rnw"
        path.write_text("% !Rnw weave = Sweave\n\\documentclass{article}\n")

        assert parse_magic_comments(path) == {"rnw weave": "Sweave"}
