"""Built-in analyses that compare documents with each other."""

from __future__ import annotations

from dataclasses import dataclass

from gherkinlint.document.model import Feature, Scenario
from gherkinlint.rules.base import AnalysisContext, CrossDocumentAnalysis
from gherkinlint.rules.schemas import CrossDocumentDiagnostic


@dataclass(frozen=True)
class Occurrence:
    """Where a value was seen: document uri and line."""

    uri: str
    line: int


class UniqueNameAnalysis(CrossDocumentAnalysis):
    """Base for analyses requiring names to be unique across documents.

    The first occurrence of a name is canonical; every later one is
    reported and points back to the document of the first.
    """

    noun = ""

    def __init__(self) -> None:
        self.occurrences: dict[str, list[Occurrence]] = {}

    def record(self, name: str, uri: str, line: int) -> None:
        if name.strip():
            self.occurrences.setdefault(name, []).append(Occurrence(uri, line))

    def finalize(self) -> list[CrossDocumentDiagnostic]:
        diagnostics = []
        for name, occurrences in self.occurrences.items():
            first = occurrences[0]
            for occurrence in occurrences[1:]:
                diagnostics.append(self.diagnostic(
                    occurrence.uri,
                    occurrence.line,
                    f'Rename this {self.noun}. The name "{name}" is already used in {first.uri}.',
                ))
        return diagnostics


class UniqueFeatureName(UniqueNameAnalysis):
    rule_id = "unique-feature-name"
    noun = "Feature"

    def enter_feature(self, feature: Feature, ctx: AnalysisContext) -> None:
        self.record(feature.name, ctx.uri, feature.position.line)


class UniqueScenarioName(UniqueNameAnalysis):
    rule_id = "unique-scenario-name"
    noun = "Scenario"

    def enter_scenario(self, scenario: Scenario, ctx: AnalysisContext) -> None:
        self.record(scenario.name, ctx.uri, scenario.position.line)


class ConsistentFeatureLanguage(CrossDocumentAnalysis):
    """Flags features whose language differs from the first feature's."""

    rule_id = "consistent-feature-language"

    def __init__(self) -> None:
        self.expected: str | None = None
        self.languages: list[tuple[str, Occurrence]] = []

    def enter_feature(self, feature: Feature, ctx: AnalysisContext) -> None:
        if self.expected is None:
            self.expected = feature.language
        self.languages.append((feature.language, Occurrence(ctx.uri, feature.position.line)))

    def finalize(self) -> list[CrossDocumentDiagnostic]:
        return [
            self.diagnostic(
                occurrence.uri,
                occurrence.line,
                f'Use the language "{self.expected}" for consistency. '
                f'This Feature uses "{language}".',
            )
            for language, occurrence in self.languages
            if language != self.expected
        ]
