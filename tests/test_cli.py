"""Tests for the command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from gherkinlint import __version__
from gherkinlint.cli.commands.lint import discover_feature_files
from gherkinlint.cli.main import cli

CLEAN_FEATURE = """Feature: Login
  Scenario: Valid password
    Given a registered user
    When they log in
    Then they see the dashboard
"""

MISORDERED_FEATURE = """Feature: Logout
  Scenario: Log out
    Then they see the login page
    Given a logged in user
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def project(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A working directory with one clean feature file."""
    monkeypatch.chdir(temp_dir)
    features = temp_dir / "features"
    features.mkdir()
    (features / "login.feature").write_text(CLEAN_FEATURE, encoding="utf-8")
    return temp_dir


class TestLintCommand:
    """Tests for the lint command."""

    def test_clean_directory(self, runner: CliRunner, project: Path) -> None:
        """Test linting files without issues."""
        result = runner.invoke(cli, ["lint", str(project / "features")])

        assert result.exit_code == 0
        assert "Files: 1" in result.output
        assert "No issues found" in result.output

    def test_error_exits_nonzero(self, runner: CliRunner, project: Path) -> None:
        """Test that an error severity diagnostic fails the run."""
        (project / "features" / "logout.feature").write_text(MISORDERED_FEATURE, encoding="utf-8")

        result = runner.invoke(cli, ["lint", str(project / "features")])

        assert result.exit_code == 1
        assert "Files: 2" in result.output

    def test_json_output(self, runner: CliRunner, project: Path) -> None:
        """Test machine readable output."""
        (project / "features" / "logout.feature").write_text(MISORDERED_FEATURE, encoding="utf-8")

        result = runner.invoke(cli, ["lint", "--json", str(project / "features")])
        data = json.loads(result.stdout)

        assert result.exit_code == 1
        assert data["summary"]["files"] == 2
        assert data["summary"]["total"] == 1
        assert data["summary"]["by_severity"]["critical"] == 1
        logout = next(d for d in data["documents"] if d["uri"].endswith("logout.feature"))
        assert logout["diagnostics"][0]["rule_id"] == "step-order-given-when-then"
        assert logout["diagnostics"][0]["line"] == 4

    def test_strict_fails_on_minor(self, runner: CliRunner, project: Path) -> None:
        """Test that --strict fails on non-error diagnostics."""
        config = project / "strict.yaml"
        config.write_text("rules:\n  feature-file-max-lines:\n    max_lines: 1\n", encoding="utf-8")
        args = ["lint", "--config", str(config), str(project / "features")]

        assert runner.invoke(cli, args).exit_code == 0
        assert runner.invoke(cli, [*args, "--strict"]).exit_code == 1

    def test_nearest_config_is_used(self, runner: CliRunner, project: Path) -> None:
        """Test that a config in the working directory is picked up."""
        (project / ".gherkin-lint.yaml").write_text(
            "rules:\n  step-order-given-when-then: false\n", encoding="utf-8"
        )
        (project / "features" / "logout.feature").write_text(MISORDERED_FEATURE, encoding="utf-8")

        result = runner.invoke(cli, ["lint", "--json", str(project / "features")])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["summary"]["total"] == 0

    def test_cross_document_duplicates(self, runner: CliRunner, project: Path) -> None:
        """Test that duplicate names across files are reported."""
        (project / "features" / "copy.feature").write_text(CLEAN_FEATURE, encoding="utf-8")

        result = runner.invoke(cli, ["lint", "--json", "--workers", "2", str(project / "features")])
        data = json.loads(result.stdout)

        rule_ids = sorted(d["rule_id"] for d in data["cross_document"])
        assert rule_ids == ["unique-feature-name", "unique-scenario-name"]
        assert all(d["uri"].endswith("login.feature") for d in data["cross_document"])

    def test_no_feature_files(self, runner: CliRunner, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a directory without feature files."""
        monkeypatch.chdir(temp_dir)
        (temp_dir / "empty").mkdir()

        result = runner.invoke(cli, ["lint", str(temp_dir / "empty")])

        assert result.exit_code == 0
        assert "No feature files found" in result.output

    def test_missing_path(self, runner: CliRunner, project: Path) -> None:
        """Test that a missing path is a usage error."""
        result = runner.invoke(cli, ["lint", str(project / "nope")])
        assert result.exit_code == 2

    def test_invalid_workers(self, runner: CliRunner, project: Path) -> None:
        """Test that the worker count must be positive."""
        result = runner.invoke(cli, ["lint", "--workers", "0", str(project / "features")])
        assert result.exit_code == 2


class TestDiscoverFeatureFiles:
    """Tests for expanding paths into feature files."""

    def test_directories_and_files(self, temp_dir: Path) -> None:
        """Test recursive search, sorting and de-duplication."""
        (temp_dir / "b").mkdir()
        (temp_dir / "a.feature").write_text("Feature: A\n", encoding="utf-8")
        (temp_dir / "b" / "c.feature").write_text("Feature: C\n", encoding="utf-8")
        (temp_dir / "notes.txt").write_text("not a feature\n", encoding="utf-8")

        files = discover_feature_files([temp_dir, temp_dir / "a.feature"])

        assert files == [temp_dir / "a.feature", temp_dir / "b" / "c.feature"]


class TestInfoCommands:
    """Tests for the listing commands."""

    def test_rules(self, runner: CliRunner) -> None:
        """Test listing the rules."""
        result = runner.invoke(cli, ["rules"])

        assert result.exit_code == 0
        assert "Rules" in result.output

    def test_languages(self, runner: CliRunner) -> None:
        """Test listing the languages."""
        result = runner.invoke(cli, ["languages"])

        assert result.exit_code == 0
        assert "Languages" in result.output
        assert "fr" in result.output

    def test_version(self, runner: CliRunner) -> None:
        """Test the version option."""
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
