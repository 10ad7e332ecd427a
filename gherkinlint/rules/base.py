"""Analysis protocol: visitor base classes, per-walk context and the sink."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from gherkinlint.document.model import (
    Background,
    Comment,
    Document,
    Examples,
    Feature,
    Rule,
    Scenario,
    Step,
    Tag,
    TextPosition,
)
from gherkinlint.document.walker import walk
from gherkinlint.rules.schemas import CrossDocumentDiagnostic, Diagnostic, RuleSeverity

PARSE_ERROR_RULE_ID = "parse-error"

HOOKS = (
    "enter_document",
    "leave_document",
    "enter_feature",
    "leave_feature",
    "enter_tag",
    "leave_tag",
    "enter_background",
    "leave_background",
    "enter_scenario",
    "leave_scenario",
    "enter_step",
    "leave_step",
    "enter_examples",
    "leave_examples",
    "enter_rule",
    "leave_rule",
    "visit_comment",
)


class DiagnosticSink:
    """Collects the diagnostics of one document.

    Each rule gets its own bucket so the flattened list does not depend on
    the order in which analyses happened to run: the parse error comes
    first, then every registered rule in registration order.
    """

    def __init__(self, rule_ids: list[str] | None = None) -> None:
        self._buckets: dict[str, list[Diagnostic]] = {PARSE_ERROR_RULE_ID: []}
        for rule_id in rule_ids or []:
            self._buckets.setdefault(rule_id, [])

    def add(self, diagnostic: Diagnostic) -> None:
        self._buckets.setdefault(diagnostic.rule_id, []).append(diagnostic)

    def for_rule(self, rule_id: str) -> list[Diagnostic]:
        """Return the diagnostics reported so far for one rule."""
        return list(self._buckets.get(rule_id, []))

    def diagnostics(self) -> list[Diagnostic]:
        """Flatten every bucket into one ordered list."""
        return [d for bucket in self._buckets.values() for d in bucket]

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())


@dataclass
class AnalysisContext:
    """Per-document, per-analysis state handed to every hook.

    ``state`` holds whatever the analysis' ``create_state`` returned and is
    discarded after the walk.
    """

    document: Document
    raw_text: str
    rule_id: str
    severity: RuleSeverity
    sink: DiagnosticSink = field(default_factory=DiagnosticSink)
    state: Any = None

    @property
    def uri(self) -> str:
        return self.document.uri

    def add_issue(self, position: TextPosition, message: str, cost: float | None = None) -> None:
        """Report a diagnostic at a line and column."""
        self._add(message, position.line, position.column, cost)

    def add_line_issue(self, line: int, message: str, cost: float | None = None) -> None:
        """Report a diagnostic on a whole line."""
        self._add(message, line, None, cost)

    def add_document_issue(self, message: str, cost: float | None = None) -> None:
        """Report a diagnostic against the whole document."""
        self._add(message, None, None, cost)

    def _add(self, message: str, line: int | None, column: int | None, cost: float | None) -> None:
        self.sink.add(
            Diagnostic(
                rule_id=self.rule_id,
                message=message,
                line=line,
                column=column,
                cost=cost,
                severity=self.severity,
            )
        )


class Analysis:
    """Base class for per-document analyses.

    Subclasses set ``rule_id``, override the hooks they need and report
    through the context. Instances may be shared by worker threads, so
    anything that changes during a walk belongs in the state returned by
    :meth:`create_state`, not on ``self``.
    """

    rule_id: str = ""
    severity: RuleSeverity = RuleSeverity.MAJOR

    def create_state(self) -> Any:
        """Return a fresh accumulator for one walk."""
        return None

    def observe(self, document: Document, ctx: AnalysisContext) -> None:
        """Walk a document with this analysis bound to ``ctx``."""
        walk(document, _BoundAnalysis(self, ctx))

    def enter_document(self, document: Document, ctx: AnalysisContext) -> None:
        pass

    def leave_document(self, document: Document, ctx: AnalysisContext) -> None:
        pass

    def enter_feature(self, feature: Feature, ctx: AnalysisContext) -> None:
        pass

    def leave_feature(self, feature: Feature, ctx: AnalysisContext) -> None:
        pass

    def enter_tag(self, tag: Tag, ctx: AnalysisContext) -> None:
        pass

    def leave_tag(self, tag: Tag, ctx: AnalysisContext) -> None:
        pass

    def enter_background(self, background: Background, ctx: AnalysisContext) -> None:
        pass

    def leave_background(self, background: Background, ctx: AnalysisContext) -> None:
        pass

    def enter_scenario(self, scenario: Scenario, ctx: AnalysisContext) -> None:
        pass

    def leave_scenario(self, scenario: Scenario, ctx: AnalysisContext) -> None:
        pass

    def enter_step(self, step: Step, ctx: AnalysisContext) -> None:
        pass

    def leave_step(self, step: Step, ctx: AnalysisContext) -> None:
        pass

    def enter_examples(self, examples: Examples, ctx: AnalysisContext) -> None:
        pass

    def leave_examples(self, examples: Examples, ctx: AnalysisContext) -> None:
        pass

    def enter_rule(self, rule: Rule, ctx: AnalysisContext) -> None:
        pass

    def leave_rule(self, rule: Rule, ctx: AnalysisContext) -> None:
        pass

    def visit_comment(self, comment: Comment, ctx: AnalysisContext) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(rule_id={self.rule_id!r}, severity={self.severity.value})"


class CrossDocumentAnalysis(Analysis):
    """Analysis whose findings need every document of a session.

    ``observe`` is called once per document, in input order, on the
    session's calling thread; data is accumulated on the instance.
    ``finalize`` runs once after the last document.
    """

    def finalize(self) -> list[CrossDocumentDiagnostic]:
        """Return the findings accumulated over the session."""
        return []

    def diagnostic(self, uri: str, line: int, message: str) -> CrossDocumentDiagnostic:
        """Create a cross-document diagnostic for this rule."""
        return CrossDocumentDiagnostic(
            rule_id=self.rule_id,
            uri=uri,
            line=line,
            message=message,
            severity=self.severity,
        )


class _BoundAnalysis:
    """Adapts an :class:`Analysis` to the walker's single-argument hooks."""

    def __init__(self, analysis: Analysis, ctx: AnalysisContext) -> None:
        self._analysis = analysis
        self._ctx = ctx

    def __getattr__(self, name: str) -> Callable[[Any], None]:
        if name not in HOOKS:
            raise AttributeError(name)
        hook = getattr(self._analysis, name, None)
        if hook is None:
            raise AttributeError(name)
        ctx = self._ctx
        return lambda node: hook(node, ctx)
