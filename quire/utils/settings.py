"""
Compilation settings.

Settings are resolved once and handed to the compiler explicitly. Resolution
order (later overrides earlier):

1. Structured defaults from CompilePdfSettings
2. Optional YAML file (config_path argument or QUIRE_CONFIG env variable)
3. QUIRE_* environment variables (a .env file is honored via python-dotenv)

Examples:
    >>> settings = load_settings()
    >>> settings.use_texi2dvi
    True

    # quire.yaml
    # enable_shell_escape: true
    # default_latex_program: xelatex
    >>> settings = load_settings(Path("quire.yaml"))
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

# Environment variable -> settings field
ENV_OVERRIDES = {
    "QUIRE_SHELL_ESCAPE": "enable_shell_escape",
    "QUIRE_USE_TEXI2DVI": "use_texi2dvi",
    "QUIRE_CLEAN_OUTPUT": "clean_output",
    "QUIRE_LATEX_PROGRAM": "default_latex_program",
    "QUIRE_WEAVE_ENGINE": "default_weave_engine",
    "QUIRE_RSCRIPT": "rscript_program",
    "QUIRE_MAX_PASSES": "max_passes",
}


@dataclass
class CompilePdfSettings:
    """
    Toolchain preferences consulted during a compilation.

    Attributes:
        enable_shell_escape: Allow the TeX program to run shell commands (\\write18)
        use_texi2dvi: Prefer the native texi2dvi driver when it is installed
        clean_output: Remove byproduct files (.aux, .out, ...) after compiling
        default_latex_program: Program used when no magic comment selects one
        default_weave_engine: Weave engine used when no magic comment selects one
        rscript_program: Executable used to run weave engines
        max_passes: Upper bound on compiler passes for the emulated driver
        literate_extensions: Lower-case extensions that require weaving
    """

    enable_shell_escape: bool = False
    use_texi2dvi: bool = True
    clean_output: bool = True
    default_latex_program: str = "pdflatex"
    default_weave_engine: str = "Sweave"
    rscript_program: str = "Rscript"
    max_passes: int = 10
    literate_extensions: List[str] = field(default_factory=lambda: [".rnw", ".snw", ".nw"])


def _env_overrides() -> Dict[str, str]:
    overrides = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is not None and value != "":
            overrides[field_name] = value
    return overrides


def load_settings(config_path: Optional[Path] = None) -> CompilePdfSettings:
    """
    Load compilation settings from defaults, YAML config and environment.

    Args:
        config_path: Optional YAML file (defaults to QUIRE_CONFIG env variable)

    Returns:
        Fully resolved CompilePdfSettings

    Raises:
        FileNotFoundError: If an explicit config file does not exist
        omegaconf.errors.ValidationError: If a value has the wrong type
    """
    load_dotenv()

    config = OmegaConf.structured(CompilePdfSettings)

    if config_path is None and os.getenv("QUIRE_CONFIG"):
        config_path = Path(os.getenv("QUIRE_CONFIG"))

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Settings file not found: {config_path}")
        config = OmegaConf.merge(config, OmegaConf.load(config_path))

    overrides = _env_overrides()
    if overrides:
        config = OmegaConf.merge(config, OmegaConf.create(overrides))

    settings = OmegaConf.to_object(config)
    settings.literate_extensions = [ext.lower() for ext in settings.literate_extensions]
    return settings
