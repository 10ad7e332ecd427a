"""CLI commands for gherkin-lint."""

from gherkinlint.cli.commands.lint import languages_command, lint_command, rules_command

__all__ = [
    "languages_command",
    "lint_command",
    "rules_command",
]
