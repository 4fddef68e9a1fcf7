"""
lookml-support intermediate representation (IR) types.

Line-level lexer output, the structural document tree, the keyed model
consumed by lint rules, and the diagnostic types handed to editors.

All types are re-exported from this package.
"""

# Diagnostics
from .diagnostics import (
    CodeAction,
    Position,
    Severity,
    TextEdit,
    Violation,
)

# Document tree
from .document import (
    FIELD_BLOCK_TYPES,
    Block,
    BlockRef,
    Declaration,
    DeclarationKind,
    Document,
    Field,
    FieldKind,
    Interstitial,
)

# Lexer output
from .lines import (
    TERMINATOR,
    AnomalyKind,
    ClassifiedLine,
    LineKind,
    ParseAnomaly,
    SqlSegment,
    strip_terminator,
)

# Lint model
from .lint_model import (
    DerivedTableSpec,
    ExploreSpec,
    FieldSpec,
    JoinSpec,
    LintModel,
    ModelSpec,
    ViewSpec,
)

__all__ = [
    # Diagnostics
    "CodeAction",
    "Position",
    "Severity",
    "TextEdit",
    "Violation",
    # Document tree
    "FIELD_BLOCK_TYPES",
    "Block",
    "BlockRef",
    "Declaration",
    "DeclarationKind",
    "Document",
    "Field",
    "FieldKind",
    "Interstitial",
    # Lexer output
    "TERMINATOR",
    "AnomalyKind",
    "ClassifiedLine",
    "LineKind",
    "ParseAnomaly",
    "SqlSegment",
    "strip_terminator",
    # Lint model
    "DerivedTableSpec",
    "ExploreSpec",
    "FieldSpec",
    "JoinSpec",
    "LintModel",
    "ModelSpec",
    "ViewSpec",
]
