"""Command line interface for gherkin-lint."""
