"""
Byproduct file cleanup.

A fresh AuxiliaryFileCleanupContext is created for every compilation attempt.
Once initialised with the document path it removes the attempt's byproducts
exactly once, however the attempt ends.
"""

from pathlib import Path
from typing import List, Optional

from quire.contexts.rendering.logger import _log_debug, _log_error

# Always removed
AUXILIARY_EXTENSIONS = [".out", ".aux"]

# Removed only if the bibliography source (.bib) sits next to the document
BIBLIOGRAPHY_EXTENSION = ".bbl"
BIBLIOGRAPHY_SOURCE_EXTENSION = ".bib"

# Removed unless the log was preserved for diagnosis
LOG_EXTENSIONS = [".blg", ".log"]


class AuxiliaryFileCleanupContext:
    """
    Removes LaTeX byproducts for one document stem.

    Example:
        cleanup_context = AuxiliaryFileCleanupContext()
        cleanup_context.init(Path("paper/notes.tex"))
        try:
            ...  # compile
            cleanup_context.preserve_log()  # on failure
        finally:
            cleanup_context.cleanup()
    """

    def __init__(self):
        self._base_path: Optional[Path] = None
        self.clean_log = True

    def init(self, target_path: Path) -> None:
        """Start tracking byproducts of `target_path` (any extension)."""
        target_path = Path(target_path)
        self._base_path = (target_path.parent / target_path.stem).absolute()

    def preserve_log(self) -> None:
        """Keep .log and .blg so a failed run can be diagnosed."""
        self.clean_log = False

    @property
    def active(self) -> bool:
        return self._base_path is not None

    def _path(self, extension: str) -> Path:
        return self._base_path.with_name(self._base_path.name + extension)

    def _remove(self, extension: str, removed: List[str]) -> None:
        path = self._path(extension)
        try:
            path.unlink()
            removed.append(path.name)
        except FileNotFoundError:
            pass
        except OSError as e:
            _log_error(f"Unable to remove {path}: {e}")

    def cleanup(self) -> List[str]:
        """
        Remove byproducts; a no-op once it has run.

        Never raises: removal failures are logged and skipped.

        Returns:
            Names of the files that were removed
        """
        removed: List[str] = []
        if self._base_path is None:
            return removed

        try:
            for ext in AUXILIARY_EXTENSIONS:
                self._remove(ext, removed)

            if self._path(BIBLIOGRAPHY_SOURCE_EXTENSION).exists():
                self._remove(BIBLIOGRAPHY_EXTENSION, removed)

            if self.clean_log:
                for ext in LOG_EXTENSIONS:
                    self._remove(ext, removed)
        except Exception as e:
            _log_error(f"Unexpected error during cleanup of {self._base_path}: {e}")
        finally:
            self._base_path = None

        if removed:
            _log_debug(f"Cleaned up: {', '.join(removed)}")
        return removed
