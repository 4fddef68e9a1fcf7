"""
lookml-support - structural parser, formatter and linter for LookML.

Reconstructs the block structure of LookML documents (views, explores,
models and their fields), re-serializes them under deterministic
formatting rules and evaluates semantic lint rules against the result.
"""

from __future__ import annotations

# Re-export commonly used types for convenience
from ._version import get_version
from .core import ir
from .core.errors import ConfigError, LookMLError

__version__ = get_version()

__all__ = [
    "__version__",
    "ir",
    "LookMLError",
    "ConfigError",
]
