"""Tests for the built-in analyses."""

from __future__ import annotations

from gherkinlint.rules.checks import (
    FeatureFileMaxLines,
    NoByteOrderMark,
    SingleWhenPerScenario,
    StepOrderGivenWhenThen,
    UniqueRuleName,
    count_lines,
)
from gherkinlint.rules.cross_document import ConsistentFeatureLanguage, UniqueFeatureName
from gherkinlint.rules.engine import AnalysisSession
from gherkinlint.rules.schemas import Diagnostic, DiagnosticRank


def analyze(analysis, text: str | bytes) -> list[Diagnostic]:
    return AnalysisSession([analysis]).analyze("x.feature", text).diagnostics


class TestNoByteOrderMark:
    """Tests for the byte order mark check."""

    def test_reports_bom(self) -> None:
        """Test a file starting with a BOM."""
        diagnostics = analyze(NoByteOrderMark(), b"\xef\xbb\xbfFeature: X\n")

        assert len(diagnostics) == 1
        assert diagnostics[0].line == 1
        assert diagnostics[0].rank == DiagnosticRank.LINE
        assert diagnostics[0].message == (
            "Remove the UTF-8 Byte Order Mark (BOM) from the beginning of this file."
        )

    def test_clean_file(self) -> None:
        """Test a file without a BOM."""
        assert analyze(NoByteOrderMark(), "Feature: X\n") == []


class TestFeatureFileMaxLines:
    """Tests for the file length check."""

    def test_count_lines(self) -> None:
        """Test that a final line break does not count as a line."""
        assert count_lines("") == 0
        assert count_lines("a") == 1
        assert count_lines("a\n") == 1
        assert count_lines("a\nb") == 2
        assert count_lines("a\n\n") == 2

    def test_reports_long_file(self) -> None:
        """Test a file over the limit."""
        text = "Feature: X\n" + "  # filler\n" * 3
        diagnostics = analyze(FeatureFileMaxLines(max_lines=3), text)

        assert len(diagnostics) == 1
        assert diagnostics[0].rank == DiagnosticRank.DOCUMENT
        assert diagnostics[0].message == (
            "This file has 4 lines, which exceeds the limit of 3. "
            "Split it into smaller feature files."
        )
        assert diagnostics[0].cost == 1.0

    def test_file_at_limit(self) -> None:
        """Test a file exactly at the limit."""
        assert analyze(FeatureFileMaxLines(max_lines=2), "Feature: X\n  # a\n") == []

    def test_default_limit(self) -> None:
        """Test the default limit."""
        assert FeatureFileMaxLines().max_lines == 300


class TestStepOrderGivenWhenThen:
    """Tests for the step order check."""

    def test_in_order(self) -> None:
        """Test a scenario in Given/When/Then order."""
        text = "Feature: X\n  Scenario: Y\n    Given a\n    And b\n    When c\n    Then d\n    But e\n"
        assert analyze(StepOrderGivenWhenThen(), text) == []

    def test_given_after_then(self) -> None:
        """Test a Given step after a Then step."""
        text = "Feature: X\n  Scenario: Y\n    Given a\n    Then b\n    And c\n    Given d\n"
        diagnostics = analyze(StepOrderGivenWhenThen(), text)

        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (6, 5)
        assert diagnostics[0].message == (
            "Unexpected Given step. Reorder the steps of this scenario to follow Given/When/Then order."
        )

    def test_phase_kept_after_violation(self) -> None:
        """Test that a violating step does not lower the phase."""
        text = "Feature: X\n  Scenario: Y\n    Then a\n    When b\n    Given c\n"
        diagnostics = analyze(StepOrderGivenWhenThen(), text)

        assert [d.message.split()[1] for d in diagnostics] == ["When", "Given"]

    def test_phase_resets_per_scenario(self) -> None:
        """Test that each scenario starts at Given."""
        text = (
            "Feature: X\n"
            "  Scenario: A\n    Then a\n"
            "  Scenario: B\n    Given b\n"
        )
        assert analyze(StepOrderGivenWhenThen(), text) == []

    def test_background_not_checked(self) -> None:
        """Test that background steps are ignored."""
        text = "Feature: X\n  Background:\n    Then a\n    Given b\n  Scenario: Y\n    Given c\n"
        assert analyze(StepOrderGivenWhenThen(), text) == []


class TestSingleWhenPerScenario:
    """Tests for the single When check."""

    def test_two_when_steps(self) -> None:
        """Test a scenario with two When steps."""
        text = "Feature: X\n  Scenario: Y\n    When a\n    Then b\n    When c\n"
        diagnostics = analyze(SingleWhenPerScenario(), text)

        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (2, 3)
        assert diagnostics[0].message == (
            "This Scenario has 2 When steps. Reduce to a single When step per Scenario."
        )

    def test_and_after_when_not_counted(self) -> None:
        """Test that a conjunction after When is not a second When."""
        text = "Feature: X\n  Scenario: Y\n    When a\n    And b\n"
        assert analyze(SingleWhenPerScenario(), text) == []


class TestUniqueRuleName:
    """Tests for the Rule name check."""

    def test_duplicate_rule_names(self) -> None:
        """Test two rules with the same name."""
        text = "Feature: X\n  Rule: R\n  Rule: Other\n  Rule: R\n  Rule:\n  Rule:\n"
        diagnostics = analyze(UniqueRuleName(), text)

        assert len(diagnostics) == 1
        assert diagnostics[0].line == 4
        assert diagnostics[0].message == 'Rename this Rule. The name "R" is already used in this Feature.'


class TestCrossDocumentChecks:
    """Tests for the built-in cross-document analyses."""

    def test_consistent_language(self) -> None:
        """Test that the first feature's language is canonical."""
        session = AnalysisSession([ConsistentFeatureLanguage()])
        result = session.run([
            ("a.feature", "Feature: A\n"),
            ("b.feature", "# language: fr\nFonctionnalité: B\n"),
            ("c.feature", "Feature: C\n"),
        ])

        assert len(result.cross_document) == 1
        diagnostic = result.cross_document[0]
        assert (diagnostic.uri, diagnostic.line) == ("b.feature", 2)
        assert diagnostic.message == 'Use the language "en" for consistency. This Feature uses "fr".'

    def test_unique_feature_name_ignores_blank_names(self) -> None:
        """Test that unnamed features are not compared."""
        session = AnalysisSession([UniqueFeatureName()])
        result = session.run([("a.feature", "Feature:\n"), ("b.feature", "Feature:\n")])

        assert result.cross_document == []
