"""
Shared utilities for QUIRE.

Common functionality used across contexts:
- Logger setup
- Settings loading
- Magic comment parsing
- Timestamps
"""

from quire.utils.magic_comments import Directives, parse_magic_comments
from quire.utils.settings import CompilePdfSettings, load_settings
from quire.utils.timestamp import now

__all__ = [
    "CompilePdfSettings",
    "Directives",
    "load_settings",
    "now",
    "parse_magic_comments",
]
