"""Main CLI entry point for gherkin-lint."""

import click

from gherkinlint import __version__
from gherkinlint.cli.commands.lint import languages_command, lint_command, rules_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Gherkin Lint - structural analysis of Gherkin feature files.

    \b
    COMMANDS:
      gherkin-lint lint features/        Lint every .feature file below a directory
      gherkin-lint lint a.feature --strict  Fail on any diagnostic
      gherkin-lint rules                 List rules and their defaults
      gherkin-lint languages             List supported Gherkin languages

    \b
    CONFIGURATION:
      Rules are configured in .gherkin-lint.yaml:

      rules:
        feature-file-max-lines:
          max_lines: 200
        consistent-feature-language:
          enabled: false
    """
    pass


cli.add_command(lint_command)
cli.add_command(rules_command)
cli.add_command(languages_command)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
