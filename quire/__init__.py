"""
QUIRE - Literate document compilation to PDF

Turns a Sweave/knitr literate document, or a plain LaTeX document, into a
finished PDF by running the TeX toolchain and reporting diagnostics against
the document the user actually edited.

Architecture:
- Weaving Context: Literate document expansion and concordance mapping
- Rendering Context: PDF compilation, diagnostics and byproduct cleanup
"""

__version__ = "0.1.0"
