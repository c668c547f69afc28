"""
Rendering Context

Responsibilities:
- Compiles LaTeX (and woven literate documents) to PDF
- Selects and runs the TeX toolchain driver
- Parses compiler and BibTeX logs into diagnostics
- Cleans up byproduct files

Owns: Compilation pipeline, toolchain execution, diagnostics, byproduct cleanup
Never: Edits document content
"""

from quire.contexts.rendering.cleanup import AuxiliaryFileCleanupContext
from quire.contexts.rendering.compiler import (
    CompilationOutcome,
    CompilationRequest,
    CompletionAction,
    OutcomeKind,
    PdfCompiler,
    compile_pdf,
)
from quire.contexts.rendering.output import CompileOutput

__all__ = [
    "AuxiliaryFileCleanupContext",
    "CompilationOutcome",
    "CompilationRequest",
    "CompileOutput",
    "CompletionAction",
    "OutcomeKind",
    "PdfCompiler",
    "compile_pdf",
]
