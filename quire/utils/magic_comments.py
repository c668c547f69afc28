"""
Magic comment (directive) parsing.

Magic comments are header comments that steer the toolchain, in the form
understood by TeXShop, TeXworks and RStudio:

    % !TeX program = xelatex
    %!TEX TS-program = xelatex
    % !Rnw weave = knitr

Only the leading block of comment and blank lines is scanned; the first line
of real content ends the header. Each directive is keyed by its scope and
variable ("tex program", "rnw weave"), so a `% !BIB program = biber` line never
stands in for the TeX program.
"""

import re
from pathlib import Path
from typing import Dict

Directives = Dict[str, str]

MAGIC_COMMENT_PATTERN = re.compile(r"^%+\s*!\s*(\w+)\s+([\w-]+)\s*=\s*(.*?)\s*$")


def directive_key(scope: str, variable: str) -> str:
    """Lookup key for a directive, e.g. directive_key("TeX", "program") -> "tex program"."""
    return f"{scope.lower()} {variable.lower()}"


def parse_magic_comment_lines(text: str) -> Directives:
    """
    Extract directives from the header of a document.

    Keys are the lower-cased scope and variable joined by a space (e.g.
    "tex program", "tex ts-program", "rnw weave"); values are kept verbatim.
    The first occurrence of a key wins.

    Args:
        text: Document content

    Returns:
        Ordered mapping of directive name to value (empty if none)

    Example:
        >>> parse_magic_comment_lines("% !TeX program = xelatex\\n\\\\documentclass{article}")
        {'tex program': 'xelatex'}
    """
    directives: Directives = {}

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if not stripped.startswith("%"):
            break

        match = MAGIC_COMMENT_PATTERN.match(stripped)
        if match:
            key = directive_key(match.group(1), match.group(2))
            directives.setdefault(key, match.group(3))

    return directives


def parse_magic_comments(path: Path) -> Directives:
    """
    Read a document and extract its magic comments.

    Raises:
        OSError: If the file cannot be read
    """
    text = Path(path).read_text(encoding="utf-8", errors="replace")
    return parse_magic_comment_lines(text)
