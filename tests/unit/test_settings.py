"""Unit tests for settings loading."""

import pytest

from quire.utils.settings import ENV_OVERRIDES, CompilePdfSettings, load_settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for name in list(ENV_OVERRIDES) + ["QUIRE_CONFIG"]:
        monkeypatch.delenv(name, raising=False)
    # load_dotenv() looks for a .env file starting from the working directory
    monkeypatch.chdir(tmp_path)


@pytest.mark.unit
class TestLoadSettings:
    """Tests for defaults, YAML config and environment overrides."""

    def test_defaults(self):
        settings = load_settings()

        assert settings == CompilePdfSettings()
        assert settings.enable_shell_escape is False
        assert settings.use_texi2dvi is True
        assert settings.clean_output is True
        assert settings.literate_extensions == [".rnw", ".snw", ".nw"]

    def test_yaml_config(self, tmp_path):
        config = tmp_path / "quire.yaml"
        config.write_text(
            "enable_shell_escape: true\n"
            "default_latex_program: xelatex\n"
            "literate_extensions: ['.Rnw', '.lit']\n"
        )

        settings = load_settings(config)

        assert settings.enable_shell_escape is True
        assert settings.default_latex_program == "xelatex"
        assert settings.literate_extensions == [".rnw", ".lit"]

    def test_config_from_environment_variable(self, tmp_path, monkeypatch):
        config = tmp_path / "quire.yaml"
        config.write_text("max_passes: 4\n")
        monkeypatch.setenv("QUIRE_CONFIG", str(config))

        assert load_settings().max_passes == 4

    def test_environment_overrides_yaml(self, tmp_path, monkeypatch):
        config = tmp_path / "quire.yaml"
        config.write_text("use_texi2dvi: true\nclean_output: true\n")
        monkeypatch.setenv("QUIRE_USE_TEXI2DVI", "false")
        monkeypatch.setenv("QUIRE_CLEAN_OUTPUT", "no")
        monkeypatch.setenv("QUIRE_MAX_PASSES", "6")

        settings = load_settings(config)

        assert settings.use_texi2dvi is False
        assert settings.clean_output is False
        assert settings.max_passes == 6

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_value(self, tmp_path):
        config = tmp_path / "quire.yaml"
        config.write_text("max_passes: lots\n")

        with pytest.raises(ValueError):
            load_settings(config)
