"""
TeX and BibTeX log parsing.

Turns a compiler .log or a BibTeX .blg file into structured LogEntry records
in order of appearance. The LaTeX parser understands -file-line-error output
("./notes.tex:5: Undefined control sequence."), classic "! message" / "l.N"
errors, LaTeX and package warnings that name an input line, and over/underfull
box reports. Files are attributed by tracking the "(file ... )" nesting TeX
prints as it opens and closes inputs.
"""

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

# pdflatex writes log files in latin-1 (font metadata is not UTF-8)
LOG_ENCODING = "latin-1"

FILE_LINE_ERROR_PATTERN = re.compile(r"^(\.{0,2}/?[^:\s()][^:()]*?\.\w+):(\d+): (.+)$")
BANG_ERROR_PATTERN = re.compile(r"^! (.+)$")
ERROR_LINE_PATTERN = re.compile(r"^l\.(\d+)")
WARNING_PATTERN = re.compile(r"^(?:LaTeX|Package [\w-]+|Class [\w-]+) Warning: (.+)$")
INPUT_LINE_PATTERN = re.compile(r"\s*on input line (\d+)\.?$")
BOX_PATTERN = re.compile(r"^((?:Over|Under)full \\[hv]box .*?) (?:in paragraph |in alignment )?at lines? (\d+)")

BIBTEX_LOCATION_PATTERN = re.compile(r"^(.*)---line (\d+) of file (.+)$")
BIBTEX_WARNING_PATTERN = re.compile(r"^Warning--(.+)$")
BIBTEX_WARNING_LOCATION_PATTERN = re.compile(r"^--line (\d+) of file (.+)$")

# Opening parenthesis followed by something that looks like a file path
FILE_OPEN_PATTERN = re.compile(r"\(([^()\s]+\.\w+)")

# How far to look for "l.N" after a "! message" error
ERROR_LOOKAHEAD = 10

# Warning text wraps across lines until it ends with a period
WARNING_CONTINUATION_LIMIT = 4


class LogEntryKind(Enum):
    ERROR = "error"
    WARNING = "warning"
    BOX = "box"


@dataclass(frozen=True)
class LogEntry:
    """
    One diagnostic parsed from a log file.

    Attributes:
        kind: Error, warning or bad box
        file: File the diagnostic refers to
        line: 1-based line number within that file
        message: Diagnostic text
    """

    kind: LogEntryKind
    file: Path
    line: int
    message: str


def _resolve(base_dir: Path, name: str) -> Path:
    path = Path(name)
    if not path.is_absolute():
        path = base_dir / path
    return Path(os.path.normpath(path))


def _clean_message(message: str) -> str:
    message = message.strip()
    if message.endswith(".") and not message.endswith(".."):
        message = message[:-1]
    return message


class _FileStack:
    """Tracks which input file TeX is reading from its "(file" ... ")" output."""

    def __init__(self, base_dir: Path, main_file: Path):
        self.base_dir = base_dir
        self.main_file = main_file
        self._stack: List[Optional[Path]] = []

    def current(self) -> Path:
        for path in reversed(self._stack):
            if path is not None:
                return path
        return self.main_file

    def feed(self, line: str) -> None:
        i = 0
        while i < len(line):
            char = line[i]
            if char == "(":
                match = FILE_OPEN_PATTERN.match(line, i)
                if match:
                    self._stack.append(_resolve(self.base_dir, match.group(1)))
                    i = match.end()
                    continue
                self._stack.append(None)
            elif char == ")" and self._stack:
                self._stack.pop()
            i += 1


def _warning_text(lines: List[str], index: int, first: str) -> str:
    text = first
    j = index + 1
    while (
        not text.rstrip().endswith(".")
        and j < len(lines)
        and j <= index + WARNING_CONTINUATION_LIMIT
        and lines[j].strip()
    ):
        text = f"{text.rstrip()} {lines[j].strip()}"
        j += 1
    return text


def parse_latex_log_text(text: str, base_dir: Path, main_file: Path) -> List[LogEntry]:
    """
    Parse the content of a LaTeX .log file.

    Args:
        text: Log content
        base_dir: Directory relative file names are resolved against
        main_file: File to attribute diagnostics to when no input is open

    Returns:
        Log entries in order of appearance
    """
    entries: List[LogEntry] = []
    files = _FileStack(base_dir, main_file)
    lines = text.splitlines()

    for index, line in enumerate(lines):
        match = FILE_LINE_ERROR_PATTERN.match(line)
        if match:
            entries.append(
                LogEntry(
                    kind=LogEntryKind.ERROR,
                    file=_resolve(base_dir, match.group(1)),
                    line=int(match.group(2)),
                    message=_clean_message(match.group(3)),
                )
            )
            continue

        match = BANG_ERROR_PATTERN.match(line)
        if match:
            if match.group(1).startswith(" ==>"):
                continue
            line_number = None
            for following in lines[index + 1 : index + 1 + ERROR_LOOKAHEAD]:
                line_match = ERROR_LINE_PATTERN.match(following)
                if line_match:
                    line_number = int(line_match.group(1))
                    break
            if line_number is not None:
                entries.append(
                    LogEntry(
                        kind=LogEntryKind.ERROR,
                        file=files.current(),
                        line=line_number,
                        message=_clean_message(match.group(1)),
                    )
                )
            continue

        match = WARNING_PATTERN.match(line)
        if match:
            warning = _warning_text(lines, index, match.group(1))
            line_match = INPUT_LINE_PATTERN.search(warning)
            if line_match:
                entries.append(
                    LogEntry(
                        kind=LogEntryKind.WARNING,
                        file=files.current(),
                        line=int(line_match.group(1)),
                        message=_clean_message(warning[: line_match.start()]),
                    )
                )
            continue

        match = BOX_PATTERN.match(line)
        if match:
            entries.append(
                LogEntry(
                    kind=LogEntryKind.BOX,
                    file=files.current(),
                    line=int(match.group(2)),
                    message=match.group(1).strip(),
                )
            )
            continue

        files.feed(line)

    return entries


def parse_latex_log(log_path: Path) -> List[LogEntry]:
    """
    Parse a LaTeX .log file.

    Raises:
        OSError: If the log cannot be read
    """
    log_path = Path(log_path)
    text = log_path.read_text(encoding=LOG_ENCODING)
    main_file = _resolve(log_path.parent, f"{log_path.stem}.tex")
    return parse_latex_log_text(text, log_path.parent, main_file)


def parse_bibtex_log_text(text: str, base_dir: Path) -> List[LogEntry]:
    """
    Parse the content of a BibTeX .blg file.

    Errors are reported as "<message>---line N of file F", sometimes with the
    message on the preceding line; warnings as "Warning--<message>" followed
    by "--line N of file F". Warnings without a location are skipped.
    """
    entries: List[LogEntry] = []
    lines = text.splitlines()

    for index, line in enumerate(lines):
        match = BIBTEX_LOCATION_PATTERN.match(line)
        if match:
            message = match.group(1).strip()
            if not message and index > 0:
                message = lines[index - 1].strip()
            entries.append(
                LogEntry(
                    kind=LogEntryKind.ERROR,
                    file=_resolve(base_dir, match.group(3).strip()),
                    line=int(match.group(2)),
                    message=message,
                )
            )
            continue

        match = BIBTEX_WARNING_PATTERN.match(line)
        if match and index + 1 < len(lines):
            location = BIBTEX_WARNING_LOCATION_PATTERN.match(lines[index + 1])
            if location:
                entries.append(
                    LogEntry(
                        kind=LogEntryKind.WARNING,
                        file=_resolve(base_dir, location.group(2).strip()),
                        line=int(location.group(1)),
                        message=match.group(1).strip(),
                    )
                )

    return entries


def parse_bibtex_log(blg_path: Path) -> List[LogEntry]:
    """
    Parse a BibTeX .blg file.

    Raises:
        OSError: If the log cannot be read
    """
    blg_path = Path(blg_path)
    return parse_bibtex_log_text(blg_path.read_text(encoding=LOG_ENCODING), blg_path.parent)
