"""Registry mapping rule ids to analysis factories."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from gherkinlint.exceptions import DuplicateRuleError, UnknownRuleError
from gherkinlint.rules.base import PARSE_ERROR_RULE_ID, Analysis
from gherkinlint.rules.checks import (
    FeatureFileMaxLines,
    NoByteOrderMark,
    SingleWhenPerScenario,
    StepOrderGivenWhenThen,
    UniqueRuleName,
)
from gherkinlint.rules.config import LintConfig, coerce_parameter
from gherkinlint.rules.cross_document import (
    ConsistentFeatureLanguage,
    UniqueFeatureName,
    UniqueScenarioName,
)
from gherkinlint.rules.schemas import RuleSeverity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleDefinition:
    """Everything needed to list, configure and instantiate one rule.

    ``factory`` is called with the resolved parameters as keyword
    arguments. It is None for rules reported by the session itself.
    """

    rule_id: str
    name: str
    description: str
    factory: Callable[..., Analysis] | None
    severity: RuleSeverity = RuleSeverity.MAJOR
    enabled: bool = True
    parameters: dict[str, Any] = field(default_factory=dict)
    cross_document: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert definition to dictionary."""
        return {
            "rule_id": self.rule_id,
            "name": self.name,
            "description": self.description,
            "severity": self.severity.value,
            "enabled": self.enabled,
            "parameters": dict(self.parameters),
            "cross_document": self.cross_document,
        }


class RuleRegistry:
    """Registry of rule definitions, in registration order."""

    def __init__(self) -> None:
        self._rules: dict[str, RuleDefinition] = {}

    def register(self, definition: RuleDefinition) -> None:
        """Register a rule definition.

        Raises:
            DuplicateRuleError: If the rule id is already registered.
        """
        if definition.rule_id in self._rules:
            raise DuplicateRuleError(f"Rule already registered: {definition.rule_id}")
        self._rules[definition.rule_id] = definition

    def get(self, rule_id: str) -> RuleDefinition:
        """Get a rule definition by id.

        Raises:
            UnknownRuleError: If no rule has this id.
        """
        try:
            return self._rules[rule_id]
        except KeyError:
            raise UnknownRuleError(rule_id) from None

    def list_rules(self) -> list[RuleDefinition]:
        """List all registered definitions."""
        return list(self._rules.values())

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def is_enabled(self, rule_id: str, config: LintConfig | None = None) -> bool:
        """Check if a rule is enabled under a config."""
        definition = self.get(rule_id)
        settings = (config or LintConfig()).settings_for(rule_id)
        return definition.enabled if settings.enabled is None else settings.enabled

    def severity_for(self, rule_id: str, config: LintConfig | None = None) -> RuleSeverity:
        """Return the configured severity of a rule."""
        definition = self.get(rule_id)
        settings = (config or LintConfig()).settings_for(rule_id)
        return settings.severity or definition.severity

    def resolve_parameters(self, rule_id: str, config: LintConfig | None = None) -> dict[str, Any]:
        """Merge configured parameters over the rule's defaults.

        Unknown parameter names are logged and dropped.
        """
        definition = self.get(rule_id)
        configured = (config or LintConfig()).settings_for(rule_id).parameters
        parameters = dict(definition.parameters)
        for name, value in configured.items():
            if name not in definition.parameters:
                logger.warning("Ignoring unknown parameter %r for rule %s", name, rule_id)
                continue
            parameters[name] = coerce_parameter(rule_id, name, value, definition.parameters[name])
        return parameters

    def create(self, rule_id: str, config: LintConfig | None = None) -> Analysis:
        """Instantiate the analysis for a rule.

        Args:
            rule_id: Rule to instantiate.
            config: Optional config supplying severity and parameters.

        Returns:
            A fresh analysis instance.

        Raises:
            UnknownRuleError: If no rule has this id.
            ValueError: If the rule has no analysis factory.
        """
        definition = self.get(rule_id)
        if definition.factory is None:
            raise ValueError(f"Rule {rule_id} is reported by the session and has no analysis")
        analysis = definition.factory(**self.resolve_parameters(rule_id, config))
        analysis.rule_id = rule_id
        analysis.severity = self.severity_for(rule_id, config)
        return analysis

    def create_enabled(self, config: LintConfig | None = None) -> list[Analysis]:
        """Instantiate every enabled rule that has an analysis.

        Rule ids in the config that are not registered are logged and
        ignored.
        """
        config = config or LintConfig()
        for rule_id in config.rules:
            if rule_id not in self._rules:
                logger.warning("Ignoring unknown rule in config: %s", rule_id)

        return [
            self.create(definition.rule_id, config)
            for definition in self._rules.values()
            if definition.factory is not None and self.is_enabled(definition.rule_id, config)
        ]


def default_registry() -> RuleRegistry:
    """Create a registry holding the built-in rules."""
    registry = RuleRegistry()
    registry.register(RuleDefinition(
        rule_id=PARSE_ERROR_RULE_ID,
        name="Parse error",
        description="The file is not a valid Gherkin document.",
        factory=None,
        severity=RuleSeverity.CRITICAL,
    ))
    registry.register(RuleDefinition(
        rule_id=NoByteOrderMark.rule_id,
        name="No byte order mark",
        description="Feature files should not start with a UTF-8 byte order mark.",
        factory=NoByteOrderMark,
        severity=RuleSeverity.MAJOR,
    ))
    registry.register(RuleDefinition(
        rule_id=FeatureFileMaxLines.rule_id,
        name="Feature file max lines",
        description="Feature files should not have too many lines.",
        factory=FeatureFileMaxLines,
        severity=RuleSeverity.MINOR,
        parameters={"max_lines": FeatureFileMaxLines.DEFAULT_MAX_LINES},
    ))
    registry.register(RuleDefinition(
        rule_id=StepOrderGivenWhenThen.rule_id,
        name="Step order Given/When/Then",
        description="Steps of a scenario should follow Given, When, Then order.",
        factory=StepOrderGivenWhenThen,
        severity=RuleSeverity.CRITICAL,
    ))
    registry.register(RuleDefinition(
        rule_id=SingleWhenPerScenario.rule_id,
        name="Single When per scenario",
        description="A scenario should have a single When step.",
        factory=SingleWhenPerScenario,
        severity=RuleSeverity.MAJOR,
    ))
    registry.register(RuleDefinition(
        rule_id=UniqueRuleName.rule_id,
        name="Unique Rule name",
        description="Rule names should be unique within a feature.",
        factory=UniqueRuleName,
        severity=RuleSeverity.MAJOR,
    ))
    registry.register(RuleDefinition(
        rule_id=UniqueFeatureName.rule_id,
        name="Unique Feature name",
        description="Feature names should be unique across all feature files.",
        factory=UniqueFeatureName,
        severity=RuleSeverity.MAJOR,
        cross_document=True,
    ))
    registry.register(RuleDefinition(
        rule_id=UniqueScenarioName.rule_id,
        name="Unique Scenario name",
        description="Scenario names should be unique across all feature files.",
        factory=UniqueScenarioName,
        severity=RuleSeverity.MAJOR,
        cross_document=True,
    ))
    registry.register(RuleDefinition(
        rule_id=ConsistentFeatureLanguage.rule_id,
        name="Consistent feature language",
        description="All feature files should use the same Gherkin language.",
        factory=ConsistentFeatureLanguage,
        severity=RuleSeverity.MAJOR,
        cross_document=True,
    ))
    return registry
