"""Diagnostic data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class RuleSeverity(Enum):
    """Severity configured for a rule."""

    BLOCKER = "blocker"
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"

    @property
    def is_error(self) -> bool:
        """Check if diagnostics of this severity fail a run."""
        return self in (RuleSeverity.BLOCKER, RuleSeverity.CRITICAL, RuleSeverity.MAJOR)

    @property
    def rank(self) -> int:
        """Sort key, most severe first."""
        return list(RuleSeverity).index(self)


class DiagnosticRank(Enum):
    """How precisely a diagnostic is located."""

    POSITIONED = "positioned"  # line and column
    LINE = "line"  # line only
    DOCUMENT = "document"  # the whole document


@dataclass(frozen=True)
class Diagnostic:
    """A finding reported against one document."""

    rule_id: str
    message: str
    line: int | None = None
    column: int | None = None
    cost: float | None = None  # informational only
    severity: RuleSeverity = RuleSeverity.MAJOR

    @property
    def rank(self) -> DiagnosticRank:
        """Derive the rank from the location fields."""
        if self.line is None:
            return DiagnosticRank.DOCUMENT
        if self.column is None:
            return DiagnosticRank.LINE
        return DiagnosticRank.POSITIONED

    def to_dict(self) -> dict[str, Any]:
        """Convert diagnostic to dictionary."""
        return {
            "rule_id": self.rule_id,
            "message": self.message,
            "line": self.line,
            "column": self.column,
            "cost": self.cost,
            "severity": self.severity.value,
            "rank": self.rank.value,
        }

    def __str__(self) -> str:
        """Human-readable representation."""
        location = ""
        if self.line is not None:
            location = f"{self.line}"
            if self.column is not None:
                location += f":{self.column}"
            location += " "
        return f"{location}[{self.severity.value.upper()}] {self.rule_id}: {self.message}"


@dataclass(frozen=True)
class CrossDocumentDiagnostic:
    """A finding that only exists across several documents.

    It is reported against the document named by ``uri``.
    """

    rule_id: str
    uri: str
    line: int
    message: str
    severity: RuleSeverity = RuleSeverity.MAJOR

    @property
    def sort_key(self) -> tuple[str, int, str, str]:
        return (self.uri, self.line, self.rule_id, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert diagnostic to dictionary."""
        return {
            "rule_id": self.rule_id,
            "uri": self.uri,
            "line": self.line,
            "message": self.message,
            "severity": self.severity.value,
        }

    def __str__(self) -> str:
        return f"{self.uri}:{self.line} [{self.severity.value.upper()}] {self.rule_id}: {self.message}"
