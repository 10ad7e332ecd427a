"""Analysis protocol, rule registry and analysis session."""

from gherkinlint.rules.schemas import (
    CrossDocumentDiagnostic,
    Diagnostic,
    DiagnosticRank,
    RuleSeverity,
)
from gherkinlint.rules.base import (
    PARSE_ERROR_RULE_ID,
    Analysis,
    AnalysisContext,
    CrossDocumentAnalysis,
    DiagnosticSink,
)
from gherkinlint.rules.config import (
    CONFIG_FILE_NAME,
    LintConfig,
    RuleSettings,
    find_config,
    save_config,
)
from gherkinlint.rules.registry import RuleDefinition, RuleRegistry, default_registry
from gherkinlint.rules.engine import AnalysisSession, DocumentResult, SessionResult

__all__ = [
    "Analysis",
    "AnalysisContext",
    "AnalysisSession",
    "CONFIG_FILE_NAME",
    "CrossDocumentAnalysis",
    "CrossDocumentDiagnostic",
    "Diagnostic",
    "DiagnosticRank",
    "DiagnosticSink",
    "DocumentResult",
    "LintConfig",
    "PARSE_ERROR_RULE_ID",
    "RuleDefinition",
    "RuleRegistry",
    "RuleSettings",
    "RuleSeverity",
    "SessionResult",
    "default_registry",
    "find_config",
    "save_config",
]
