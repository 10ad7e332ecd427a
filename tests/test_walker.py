"""Tests for document traversal."""

from __future__ import annotations

from typing import Any

from gherkinlint.document.model import Document, TextPosition
from gherkinlint.document.parser import GherkinParser
from gherkinlint.document.walker import Visitor, walk


class Recorder:
    """Records every hook call, whatever its name."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    def __getattr__(self, name: str):
        if not (name.startswith("enter_") or name.startswith("leave_") or name.startswith("visit_")):
            raise AttributeError(name)
        return lambda node: self.calls.append((name, node))


class TestWalkOrder:
    """Tests for the order of hook calls."""

    def test_small_document_order(self, parser: GherkinParser) -> None:
        """Test the exact call sequence for a small document."""
        text = (
            "# top\n"
            "@f\n"
            "Feature: X\n"
            "  Background:\n"
            "    Given b\n"
            "  Scenario: S\n"
            "    Given a\n"
            "    Examples:\n"
            "      | x |\n"
            "  Rule: R\n"
            "    Scenario: T\n"
            "      Then c\n"
        )
        recorder = Recorder()
        walk(parser.parse("x.feature", text), recorder)

        assert [name for name, _ in recorder.calls] == [
            "enter_document",
            "enter_feature",
            "enter_tag",
            "leave_tag",
            "enter_background",
            "enter_step",
            "leave_step",
            "leave_background",
            "enter_scenario",
            "enter_step",
            "leave_step",
            "enter_examples",
            "leave_examples",
            "leave_scenario",
            "enter_rule",
            "enter_scenario",
            "enter_step",
            "leave_step",
            "leave_scenario",
            "leave_rule",
            "leave_feature",
            "visit_comment",
            "leave_document",
        ]

    def test_call_count(self, parser: GherkinParser, full_feature: str) -> None:
        """Test 2N enter/leave calls plus document and comment calls."""
        document = parser.parse("x.feature", full_feature)
        recorder = Recorder()
        walk(document, recorder)

        # 1 feature, 4 tags, 2 backgrounds, 3 scenarios, 1 rule, 11 steps, 1 examples
        structural = 23
        assert len(recorder.calls) == 2 * structural + 2 + len(document.comments)
        assert len(document.comments) == 2

    def test_structural_positions_non_decreasing(self, parser: GherkinParser, full_feature: str) -> None:
        """Test that structural nodes are entered in source order."""
        recorder = Recorder()
        walk(parser.parse("x.feature", full_feature), recorder)

        positions = [
            node.position
            for name, node in recorder.calls
            if name.startswith("enter_") and name not in ("enter_document", "enter_tag")
        ]
        assert positions == sorted(positions)
        assert positions[0] == TextPosition(3, 1)

    def test_every_node_visited_once(self, parser: GherkinParser, full_feature: str) -> None:
        """Test that no node is entered twice."""
        recorder = Recorder()
        walk(parser.parse("x.feature", full_feature), recorder)

        entered = [id(node) for name, node in recorder.calls if name.startswith("enter_")]
        assert len(entered) == len(set(entered))


class TestWalkDocumentsWithoutFeature:
    """Tests for documents that have no feature."""

    def test_failed_document_gets_document_and_comment_hooks(self, parser: GherkinParser) -> None:
        """Test walking a document that failed to parse."""
        document = parser.parse("x.feature", "# note\nScenario: orphan\n")
        recorder = Recorder()
        walk(document, recorder)

        assert [name for name, _ in recorder.calls] == [
            "enter_document",
            "visit_comment",
            "leave_document",
        ]

    def test_empty_document(self) -> None:
        """Test walking an empty document."""
        recorder = Recorder()
        walk(Document(uri="x.feature", language="en"), recorder)
        assert len(recorder.calls) == 2


class TestVisitors:
    """Tests for partial and base visitors."""

    def test_base_visitor_is_noop(self, parser: GherkinParser, full_feature: str) -> None:
        """Test that the base visitor accepts every hook."""
        walk(parser.parse("x.feature", full_feature), Visitor())

    def test_subclass_overrides_some_hooks(self, parser: GherkinParser, full_feature: str) -> None:
        """Test a visitor that only counts steps."""

        class StepCounter(Visitor):
            def __init__(self) -> None:
                self.steps = 0

            def enter_step(self, step) -> None:
                self.steps += 1

        counter = StepCounter()
        walk(parser.parse("x.feature", full_feature), counter)
        assert counter.steps == 11

    def test_plain_object_with_missing_hooks(self, parser: GherkinParser, full_feature: str) -> None:
        """Test that hooks missing on a plain object are skipped."""

        class ScenarioNames:
            def __init__(self) -> None:
                self.names: list[str] = []

            def enter_scenario(self, scenario) -> None:
                self.names.append(scenario.name)

        visitor = ScenarioNames()
        walk(parser.parse("x.feature", full_feature), visitor)
        assert visitor.names == ["Pay an invoice", "Discounts", "Full refund"]
