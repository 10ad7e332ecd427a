"""Lint configuration loaded from YAML."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from gherkinlint.rules.schemas import RuleSeverity

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".gherkin-lint.yaml"

_RESERVED_KEYS = ("enabled", "severity")


@dataclass
class RuleSettings:
    """Overrides for one rule. ``None`` means "use the rule's default"."""

    enabled: bool | None = None
    severity: RuleSeverity | None = None
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to the YAML mapping form."""
        data: dict[str, Any] = {}
        if self.enabled is not None:
            data["enabled"] = self.enabled
        if self.severity is not None:
            data["severity"] = self.severity.value
        data.update(self.parameters)
        return data

    @classmethod
    def from_dict(cls, rule_id: str, data: dict[str, Any] | bool | None) -> RuleSettings:
        """Create settings from a YAML mapping.

        A bare boolean (``rule-id: false``) is accepted as the enabled flag.
        """
        if isinstance(data, bool):
            return cls(enabled=data)
        if not isinstance(data, dict):
            if data is not None:
                logger.warning("Ignoring settings for rule %s: expected a mapping", rule_id)
            return cls()

        enabled = data.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            logger.warning("Ignoring non-boolean 'enabled' for rule %s: %r", rule_id, enabled)
            enabled = None

        severity = None
        if data.get("severity") is not None:
            try:
                severity = RuleSeverity(str(data["severity"]).lower())
            except ValueError:
                logger.warning(
                    "Ignoring unknown severity for rule %s: %r", rule_id, data["severity"]
                )

        parameters = {k: v for k, v in data.items() if k not in _RESERVED_KEYS}
        return cls(enabled=enabled, severity=severity, parameters=parameters)


@dataclass
class LintConfig:
    """Per-rule settings for a lint run.

    Rules not listed keep the defaults from their registry definition.
    """

    rules: dict[str, RuleSettings] = field(default_factory=dict)
    source: Path | None = None

    def settings_for(self, rule_id: str) -> RuleSettings:
        """Return the settings for a rule, empty when not configured."""
        return self.rules.get(rule_id) or RuleSettings()

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {"rules": {rule_id: s.to_dict() for rule_id, s in self.rules.items()}}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None, source: Path | None = None) -> LintConfig:
        """Create config from dictionary."""
        rules_data = (data or {}).get("rules") or {}
        if not isinstance(rules_data, dict):
            logger.warning("Ignoring 'rules' in %s: expected a mapping", source or "config")
            rules_data = {}
        rules = {
            str(rule_id): RuleSettings.from_dict(str(rule_id), settings)
            for rule_id, settings in rules_data.items()
        }
        return cls(rules=rules, source=source)

    @classmethod
    def load(cls, path: Path | str) -> LintConfig:
        """Load config from a YAML file.

        A missing, unreadable or invalid file is logged and yields the
        default configuration.

        Args:
            path: Path to the YAML file.

        Returns:
            Loaded LintConfig.
        """
        path = Path(path)
        if not path.exists():
            logger.warning("Config file %s not found, using defaults", path)
            return cls()

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning("Could not load config %s: %s", path, e)
            return cls()

        if not isinstance(data, dict):
            logger.warning("Could not load config %s: expected a mapping", path)
            return cls()

        return cls.from_dict(data, source=path)


def find_config(start: Path | str) -> Path | None:
    """Look for a config file in ``start`` and its parents."""
    start = Path(start).resolve()
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.parents):
        path = candidate / CONFIG_FILE_NAME
        if path.is_file():
            return path
    return None


def save_config(config: LintConfig, path: Path | str) -> None:
    """Save config to a YAML file.

    Args:
        config: Config to save.
        path: Path to the YAML file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False))


def coerce_parameter(rule_id: str, name: str, value: Any, default: Any) -> Any:
    """Coerce a configured parameter to the type of its default.

    Values that cannot be coerced are logged and the default is returned.
    """
    if default is None or isinstance(value, type(default)) and not (
        isinstance(value, bool) and not isinstance(default, bool)
    ):
        return value

    try:
        if isinstance(default, bool):
            if isinstance(value, str) and value.lower() in ("true", "false"):
                return value.lower() == "true"
            raise ValueError(f"expected a boolean, got {value!r}")
        if isinstance(default, (int, float)):
            if isinstance(value, bool):
                raise ValueError(f"expected a number, got {value!r}")
            return type(default)(value)
        if isinstance(default, str):
            return str(value)
    except (TypeError, ValueError) as e:
        logger.warning(
            "Invalid value for %s.%s (%s), using default %r", rule_id, name, e, default
        )
        return default

    logger.warning("Unsupported value for %s.%s: %r, using default %r", rule_id, name, value, default)
    return default
