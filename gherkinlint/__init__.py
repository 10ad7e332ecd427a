"""gherkin-lint: structural analysis of Gherkin feature files."""

__version__ = "0.1.0"
