"""Unit tests for session logging setup."""

import sys
from pathlib import Path

import pytest
from loguru import logger

from quire import __version__
from quire.contexts.rendering.logger import (
    _log_debug,
    compile_provenance,
    setup_rendering_logger,
)
from quire.utils.settings import CompilePdfSettings


@pytest.fixture(autouse=True)
def restore_loguru():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.mark.unit
class TestCompileProvenance:
    """Tests for the settings recorded in the log header."""

    def test_defaults(self):
        provenance = compile_provenance(CompilePdfSettings())

        assert provenance["Settings file"] == "(defaults and environment)"
        assert provenance["LaTeX program"] == "pdflatex"
        assert provenance["Driver preference"] == "texi2dvi"
        assert provenance["Shell escape"] == "disabled"

    def test_overridden_settings(self):
        settings = CompilePdfSettings(
            use_texi2dvi=False, enable_shell_escape=True, clean_output=False
        )

        provenance = compile_provenance(settings, Path("quire.yaml"))

        assert provenance["Settings file"] == "quire.yaml"
        assert provenance["Driver preference"] == "emulated"
        assert provenance["Shell escape"] == "enabled"
        assert provenance["Clean output"] == "no (keep artifacts)"


@pytest.mark.unit
def test_rendering_log_starts_with_provenance(tmp_path):
    settings = CompilePdfSettings(default_latex_program="xelatex", use_texi2dvi=False)

    log_file = setup_rendering_logger(tmp_path / "session", settings, config_path=Path("quire.yaml"))
    _log_debug("Driver: emulated")
    logger.remove()

    assert log_file == tmp_path / "session" / "render.log"
    content = log_file.read_text()
    assert f"quire {__version__}" in content
    assert "Settings file: quire.yaml" in content
    assert "LaTeX program: xelatex" in content
    assert "Driver preference: emulated" in content
    assert content.index("Driver preference") < content.index("[render] Driver: emulated")
