"""Pytest fixtures for gherkin-lint tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from gherkinlint.document.parser import GherkinParser


FULL_FEATURE = '''# leading comment
@billing @smoke
Feature: Billing
  As a customer
  I want invoices

  Background:
    Given a registered customer

  @happy
  Scenario: Pay an invoice
    Given an open invoice
    When the customer pays
    Then the invoice is closed
    And a receipt is sent

  Scenario Outline: Discounts
    Given a cart worth <amount>
    When the customer checks out
    Then the discount is <discount>

    @small
    Examples: Small carts
      | amount | discount |
      | 10     | 0        |
      | 50     | 5        |

  Rule: Refunds
    Background:
      Given a paid invoice

    Scenario: Full refund
      When the customer asks for a refund
      Then the invoice is reopened
      """json
      {"status": "open"}
      """
  # trailing comment
'''

FRENCH_FEATURE = """# language: fr
Fonctionnalité: Connexion
  Plan du scénario: Essai
    Soit un utilisateur
    Quand il se connecte
    Alors il voit <page>
    Et que le menu est affiché

    Exemples:
      | page    |
      | accueil |
"""

ENGLISH_FEATURE = """Feature: Login
  Scenario Outline: Attempt
    Given a user
    When they log in
    Then they see <page>
    And the menu is shown

    Examples:
      | page |
      | home |
"""

GERMAN_FEATURE = """# language: de
Funktionalität: Anmeldung
  Szenariogrundriss: Versuch
    Angenommen ein Benutzer
    Wenn er sich anmeldet
    Dann sieht er <seite>
    Und das Menü wird angezeigt

    Beispiele:
      | seite |
      | start |
"""


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for tests."""
    return tmp_path


@pytest.fixture
def parser() -> GherkinParser:
    """Create a parser bound to the packaged dialects."""
    return GherkinParser()


@pytest.fixture
def full_feature() -> str:
    """Feature text using every structural construct."""
    return FULL_FEATURE


@pytest.fixture
def features_dir(temp_dir: Path) -> Path:
    """Create a features directory."""
    features = temp_dir / "features"
    features.mkdir()
    return features


@pytest.fixture
def write_feature(features_dir: Path) -> Callable[[str, str], Path]:
    """Return a helper writing a feature file below the features directory."""

    def _write(name: str, content: str) -> Path:
        path = features_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def english_feature() -> str:
    """English outline used for translation comparisons."""
    return ENGLISH_FEATURE


@pytest.fixture
def french_feature() -> str:
    """The English outline translated to French."""
    return FRENCH_FEATURE


@pytest.fixture
def german_feature() -> str:
    """The English outline translated to German."""
    return GERMAN_FEATURE
