import logging
from dataclasses import dataclass, field
from enum import Enum

from . import ir
from .builder import build_document
from .config import LookMLConfig
from .locator import find_line_by_path
from .model_extract import extract_lint_model
from .rules import apply_rules
from .simple_parser import parse_simple

logger = logging.getLogger(__name__)


class ParserKind(str, Enum):
    """Which parser produced the lint model."""

    STRUCTURAL = "structural"
    SIMPLE = "simple"


@dataclass
class LintResult:
    """
    Outcome of a lint run.

    Attributes:
        violations: Violations in rule order, each with a resolved line
        parser: Parser that produced the lint model
        anomalies: Structural anomalies found by the structural parser
    """

    violations: list[ir.Violation] = field(default_factory=list)
    parser: ParserKind = ParserKind.STRUCTURAL
    anomalies: list[ir.ParseAnomaly] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.anomalies)

    @property
    def errors(self) -> list[ir.Violation]:
        return [v for v in self.violations if v.severity == ir.Severity.ERROR]

    @property
    def warnings(self) -> list[ir.Violation]:
        return [v for v in self.violations if v.severity == ir.Severity.WARNING]


def build_lint_model(text: str, config: LookMLConfig) -> tuple[ir.LintModel, LintResult]:
    """
    Build the lint model for a document.

    The structural parser is tried first; if it fails, or the configuration
    asks for it, the simplified parser is used instead. A degraded
    structural parse is still used: it exposes everything that was opened.
    """
    if config.linter.use_fallback_parser:
        return parse_simple(text), LintResult(parser=ParserKind.SIMPLE)

    try:
        document = build_document(text, config.formatter)
        return extract_lint_model(document), LintResult(anomalies=list(document.anomalies))
    except Exception:
        logger.exception("Structural parse failed; falling back to simplified parser")
        return parse_simple(text), LintResult(parser=ParserKind.SIMPLE)


def lint_text(text: str, config: LookMLConfig | None = None) -> LintResult:
    """
    Lint LookML text.

    Applies the configured rules and resolves a source line for every
    violation. Never raises; returns an empty result when linting is
    disabled or the text is empty.

    Args:
        text: LookML source text
        config: Configuration (defaults apply all rules)

    Returns:
        LintResult with located violations
    """
    config = config or LookMLConfig()
    if not config.linter.enabled:
        return LintResult()

    model, result = build_lint_model(text, config)
    violations = apply_rules(
        model,
        config.linter.rules,
        config.linter.disabled_rules,
        severities=config.linter.severities,
    )
    result.violations = [locate(violation, text) for violation in violations]
    return result


def locate(violation: ir.Violation, text: str) -> ir.Violation:
    """Fill in a missing line from the violation's path."""
    if violation.line is not None:
        return violation
    return violation.model_copy(update={"line": find_line_by_path(text, violation.path)})
