"""
Weaving Context

Responsibilities:
- Expands literate documents (Sweave/knitr .Rnw) into typesettable .tex
- Reads the concordance produced alongside the woven .tex
- Maps generated .tex lines back to lines of the literate source

Owns: Weave engine invocation, concordance parsing and line mapping
Never: Runs the TeX toolchain
"""

from quire.contexts.weaving.concordance import (
    Concordance,
    parse_concordances,
    read_concordance_file,
)
from quire.contexts.weaving.weaver import RnwWeaver, Weaver, WeaveResult

__all__ = [
    "Concordance",
    "parse_concordances",
    "read_concordance_file",
    "RnwWeaver",
    "Weaver",
    "WeaveResult",
]
