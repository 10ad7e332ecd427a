"""Built-in per-document analyses."""

from __future__ import annotations

from dataclasses import dataclass, field

from gherkinlint.document.model import (
    Document,
    Feature,
    KeywordType,
    Rule,
    Scenario,
    Step,
    TextPosition,
)
from gherkinlint.rules.base import Analysis, AnalysisContext


class NoByteOrderMark(Analysis):
    """Flags files starting with a UTF-8 byte order mark."""

    rule_id = "no-byte-order-mark"

    def enter_document(self, document: Document, ctx: AnalysisContext) -> None:
        if document.has_byte_order_mark:
            ctx.add_line_issue(
                1, "Remove the UTF-8 Byte Order Mark (BOM) from the beginning of this file."
            )


class FeatureFileMaxLines(Analysis):
    """Flags files with more lines than ``max_lines``."""

    rule_id = "feature-file-max-lines"
    DEFAULT_MAX_LINES = 300

    def __init__(self, max_lines: int = DEFAULT_MAX_LINES) -> None:
        self.max_lines = max_lines

    def enter_document(self, document: Document, ctx: AnalysisContext) -> None:
        count = count_lines(ctx.raw_text)
        if count > self.max_lines:
            ctx.add_document_issue(
                f"This file has {count} lines, which exceeds the limit of {self.max_lines}. "
                "Split it into smaller feature files.",
                cost=float(count - self.max_lines),
            )


def count_lines(text: str) -> int:
    """Count lines; a final line break does not start a new line."""
    if not text:
        return 0
    count = text.count("\n") + 1
    if text.endswith("\n"):
        count -= 1
    return count


_PHASES = {
    KeywordType.CONTEXT: 0,
    KeywordType.ACTION: 1,
    KeywordType.OUTCOME: 2,
}


@dataclass
class _StepOrderState:
    phase: int = 0
    in_scenario: bool = False


class StepOrderGivenWhenThen(Analysis):
    """Flags scenario steps that go back to an earlier Given/When/Then phase.

    And, But and bullet steps keep the current phase. Background steps
    are not checked.
    """

    rule_id = "step-order-given-when-then"

    def create_state(self) -> _StepOrderState:
        return _StepOrderState()

    def enter_scenario(self, scenario: Scenario, ctx: AnalysisContext) -> None:
        ctx.state.phase = 0
        ctx.state.in_scenario = True

    def leave_scenario(self, scenario: Scenario, ctx: AnalysisContext) -> None:
        ctx.state.in_scenario = False

    def enter_step(self, step: Step, ctx: AnalysisContext) -> None:
        state: _StepOrderState = ctx.state
        phase = _PHASES.get(step.keyword_type)
        if not state.in_scenario or phase is None:
            return
        if phase < state.phase:
            ctx.add_issue(
                step.position,
                f"Unexpected {step.keyword.strip()} step. "
                "Reorder the steps of this scenario to follow Given/When/Then order.",
            )
        else:
            state.phase = phase


class SingleWhenPerScenario(Analysis):
    """Flags scenarios with more than one When step."""

    rule_id = "single-when-per-scenario"

    def leave_scenario(self, scenario: Scenario, ctx: AnalysisContext) -> None:
        count = sum(1 for step in scenario.steps if step.keyword_type == KeywordType.ACTION)
        if count > 1:
            ctx.add_issue(
                scenario.position,
                f"This Scenario has {count} When steps. Reduce to a single When step per Scenario.",
            )


@dataclass
class _RuleNames:
    occurrences: dict[str, list[TextPosition]] = field(default_factory=dict)


class UniqueRuleName(Analysis):
    """Flags Rule names used more than once in the same feature."""

    rule_id = "unique-rule-name"

    def create_state(self) -> _RuleNames:
        return _RuleNames()

    def enter_rule(self, rule: Rule, ctx: AnalysisContext) -> None:
        if rule.name.strip():
            ctx.state.occurrences.setdefault(rule.name, []).append(rule.position)

    def leave_feature(self, feature: Feature, ctx: AnalysisContext) -> None:
        for name, positions in ctx.state.occurrences.items():
            for position in positions[1:]:
                ctx.add_issue(
                    position,
                    f'Rename this Rule. The name "{name}" is already used in this Feature.',
                )
