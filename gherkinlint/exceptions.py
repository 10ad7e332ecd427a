"""Exceptions raised by gherkin-lint."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gherkinlint.document.model import TextPosition


class GherkinLintError(Exception):
    """Base class for all gherkin-lint errors."""


class GherkinSyntaxError(GherkinLintError):
    """Raised inside the parser when the text is not a valid feature document.

    The parser catches it at its public boundary and records it on the
    returned document instead of propagating it.
    """

    def __init__(self, message: str, position: TextPosition | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"({self.position.line}:{self.position.column}): {self.message}"


class UnknownRuleError(GherkinLintError, KeyError):
    """Raised when a rule id is not registered."""

    def __init__(self, rule_id: str) -> None:
        super().__init__(rule_id)
        self.rule_id = rule_id

    def __str__(self) -> str:
        return f"Unknown rule: {self.rule_id}"


class DuplicateRuleError(GherkinLintError, ValueError):
    """Raised when a rule id is registered twice."""


class SessionClosedError(GherkinLintError, RuntimeError):
    """Raised when a finished analysis session is used again."""
