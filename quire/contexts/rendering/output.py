"""Progress stream shown to the user while a compilation runs."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional


@dataclass(frozen=True)
class OutputLine:
    text: str
    is_error: bool = False


@dataclass
class CompileOutput:
    """
    Append-only compile output.

    Every piece of text is recorded in `lines` and, if a sink is given,
    forwarded to it as it arrives (the CLI passes a typer.echo wrapper).

    Attributes:
        lines: Output in arrival order
        sink: Optional callback receiving (text, is_error)
    """

    lines: List[OutputLine] = field(default_factory=list)
    sink: Optional[Callable[[str, bool], None]] = None

    def show_output(self, text: str) -> None:
        self._append(OutputLine(text))

    def show_error(self, text: str) -> None:
        self._append(OutputLine(text, is_error=True))

    def _append(self, line: OutputLine) -> None:
        self.lines.append(line)
        if self.sink is not None:
            self.sink(line.text, line.is_error)

    @property
    def text(self) -> str:
        """Everything shown so far, concatenated."""
        return "".join(line.text for line in self.lines)

    @property
    def errors(self) -> List[str]:
        return [line.text for line in self.lines if line.is_error]
