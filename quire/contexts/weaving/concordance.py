"""
Concordance between a woven .tex file and its literate source.

Sweave (with concordance=TRUE) and knitr write a <stem>-concordance.tex file
containing one or more entries of the form:

    \\Sconcordance{concordance:notes.tex:notes.Rnw:%
    1 12 1 1 2 1 0 3 1}

An optional "ofs N" field after the input file shifts the first covered
output line. The numbers are a run-length encoding of source line numbers:
the first value is the source line of the first covered output line, and
each following (count, step) pair means "the next `count` output lines each
advance the source line by `step`".
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

CONCORDANCE_PATTERN = re.compile(r"\\Sconcordance\{(.*?)\}", re.DOTALL)

# Comment-newline continuations inside \Sconcordance{...}
CONTINUATION_PATTERN = re.compile(r"%\s*\n")


@dataclass
class Concordance:
    """
    Line mapping from a generated .tex file to its literate source.

    Attributes:
        output_file: Generated .tex file (None for the empty concordance)
        input_file: Literate source file the output was woven from
        rnw_lines: Source line for each covered output line, in order
        offset: Number of output lines preceding the first covered line
    """

    output_file: Optional[Path] = None
    input_file: Optional[Path] = None
    rnw_lines: List[int] = field(default_factory=list)
    offset: int = 0

    @classmethod
    def empty(cls) -> "Concordance":
        """The identity mapping, used when no weaving took place."""
        return cls()

    def is_empty(self) -> bool:
        return self.output_file is None or not self.rnw_lines

    def covers(self, tex_line: int) -> bool:
        """Whether the concordance has a mapping for this output line."""
        index = tex_line - 1 - self.offset
        return not self.is_empty() and 0 <= index < len(self.rnw_lines)

    def rnw_line(self, tex_line: int) -> int:
        """
        Map a line of the generated .tex file to a line of the source.

        Lines the concordance does not cover are returned unchanged.
        """
        if not self.covers(tex_line):
            return tex_line
        return self.rnw_lines[tex_line - 1 - self.offset]

    def maps_file(self, path: Path) -> bool:
        """Whether `path` is the generated file this concordance describes."""
        if self.is_empty():
            return False
        return Path(path).resolve() == self.output_file.resolve()


def _decode_lines(values: List[int]) -> List[int]:
    if not values:
        return []

    lines = [values[0]]
    pairs = values[1:]
    if len(pairs) % 2 != 0:
        raise ValueError(f"Unpaired run-length value in concordance: {values}")

    for count, step in zip(pairs[0::2], pairs[1::2]):
        for _ in range(count):
            lines.append(lines[-1] + step)

    return lines


def _parse_entry(body: str, base_dir: Path) -> Concordance:
    parts = [part.strip() for part in body.split(":")]
    if len(parts) < 4 or parts[0] != "concordance":
        raise ValueError(f"Malformed concordance entry: {body[:80]}")

    output_name, input_name = parts[1], parts[2]
    offset = 0
    values_field = parts[3]

    if values_field.startswith("ofs"):
        offset = int(values_field.split()[1])
        if len(parts) < 5:
            raise ValueError(f"Concordance entry has offset but no lines: {body[:80]}")
        values_field = parts[4]

    values = [int(token) for token in values_field.split()]

    return Concordance(
        output_file=base_dir / output_name,
        input_file=base_dir / input_name,
        rnw_lines=_decode_lines(values),
        offset=offset,
    )


def parse_concordances(text: str, base_dir: Path) -> List[Concordance]:
    """
    Parse every \\Sconcordance entry in a concordance file.

    Args:
        text: Content of a <stem>-concordance.tex file
        base_dir: Directory the file names in the entries are relative to

    Returns:
        Concordances in file order (empty list if there are none)

    Raises:
        ValueError: If an entry is malformed
    """
    text = CONTINUATION_PATTERN.sub(" ", text)
    return [
        _parse_entry(match.group(1), Path(base_dir))
        for match in CONCORDANCE_PATTERN.finditer(text)
    ]


def read_concordance_file(path: Path) -> Concordance:
    """
    Read the concordance for a woven document.

    Returns the empty concordance when the file does not exist or holds no
    entries. When several entries are present (child documents), the first
    one describes the main document.
    """
    path = Path(path)
    if not path.exists():
        return Concordance.empty()

    concordances = parse_concordances(path.read_text(encoding="utf-8"), path.parent)
    return concordances[0] if concordances else Concordance.empty()


def concordance_path(target: Path) -> Path:
    """Path of the concordance file Sweave writes for `target`."""
    target = Path(target)
    return target.parent / f"{target.stem}-concordance.tex"
