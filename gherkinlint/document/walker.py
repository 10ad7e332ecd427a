"""Depth-first traversal of a parsed document."""

from __future__ import annotations

from typing import Any

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
)


class Visitor:
    """Base visitor with a no-op hook for every node kind.

    Subclasses override only the hooks they need. Objects that do not
    inherit from this class can be walked as well; hooks they do not
    define are skipped.
    """

    def enter_document(self, document: Document) -> None:
        pass

    def leave_document(self, document: Document) -> None:
        pass

    def enter_feature(self, feature: Feature) -> None:
        pass

    def leave_feature(self, feature: Feature) -> None:
        pass

    def enter_tag(self, tag: Tag) -> None:
        pass

    def leave_tag(self, tag: Tag) -> None:
        pass

    def enter_background(self, background: Background) -> None:
        pass

    def leave_background(self, background: Background) -> None:
        pass

    def enter_scenario(self, scenario: Scenario) -> None:
        pass

    def leave_scenario(self, scenario: Scenario) -> None:
        pass

    def enter_step(self, step: Step) -> None:
        pass

    def leave_step(self, step: Step) -> None:
        pass

    def enter_examples(self, examples: Examples) -> None:
        pass

    def leave_examples(self, examples: Examples) -> None:
        pass

    def enter_rule(self, rule: Rule) -> None:
        pass

    def leave_rule(self, rule: Rule) -> None:
        pass

    def visit_comment(self, comment: Comment) -> None:
        pass


class _Walker:
    """Drives one visitor over one document."""

    def __init__(self, visitor: Any) -> None:
        self.visitor = visitor

    def call(self, hook: str, node: Any) -> None:
        method = getattr(self.visitor, hook, None)
        if method is not None:
            method(node)

    def document(self, document: Document) -> None:
        self.call("enter_document", document)
        if document.feature is not None:
            self.feature(document.feature)
        for comment in document.comments:
            self.call("visit_comment", comment)
        self.call("leave_document", document)

    def feature(self, feature: Feature) -> None:
        self.call("enter_feature", feature)
        self.tags(feature.tags)
        if feature.background is not None:
            self.background(feature.background)
        for scenario in feature.scenarios:
            self.scenario(scenario)
        for rule in feature.rules:
            self.rule(rule)
        self.call("leave_feature", feature)

    def rule(self, rule: Rule) -> None:
        self.call("enter_rule", rule)
        self.tags(rule.tags)
        if rule.background is not None:
            self.background(rule.background)
        for scenario in rule.scenarios:
            self.scenario(scenario)
        self.call("leave_rule", rule)

    def background(self, background: Background) -> None:
        self.call("enter_background", background)
        self.steps(background.steps)
        self.call("leave_background", background)

    def scenario(self, scenario: Scenario) -> None:
        self.call("enter_scenario", scenario)
        self.tags(scenario.tags)
        self.steps(scenario.steps)
        for examples in scenario.examples:
            self.call("enter_examples", examples)
            self.tags(examples.tags)
            self.call("leave_examples", examples)
        self.call("leave_scenario", scenario)

    def steps(self, steps: tuple[Step, ...]) -> None:
        for step in steps:
            self.call("enter_step", step)
            self.call("leave_step", step)

    def tags(self, tags: tuple[Tag, ...]) -> None:
        for tag in tags:
            self.call("enter_tag", tag)
            self.call("leave_tag", tag)


def walk(document: Document, visitor: Any) -> None:
    """Walk a document depth-first, calling the visitor's hooks.

    Order: the feature with its tags, then its background, top-level
    scenarios (tags, steps, examples) and rules; then every comment in
    source order. The document hooks wrap everything.

    Args:
        document: Document to walk. Documents without a feature only get
            the document and comment hooks.
        visitor: A :class:`Visitor` or any object with a subset of its hooks.
    """
    _Walker(visitor).document(document)
