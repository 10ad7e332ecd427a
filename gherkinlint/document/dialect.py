"""Gherkin dialect table: localized keyword spellings per language code."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from gherkin.dialect import DIALECTS

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

STEP_CONSTRUCTS = ("given", "when", "then", "and", "but")


@dataclass(frozen=True)
class Dialect:
    """Keyword spellings accepted for one language.

    Every construct maps to an ordered tuple of literal spellings, in the
    order the dialect data lists them. Step spellings include their
    trailing separator (usually a space).
    """

    code: str
    name: str
    native: str
    feature: tuple[str, ...]
    background: tuple[str, ...]
    scenario: tuple[str, ...]
    scenario_outline: tuple[str, ...]
    examples: tuple[str, ...]
    rule: tuple[str, ...]
    given: tuple[str, ...]
    when: tuple[str, ...]
    then: tuple[str, ...]
    and_: tuple[str, ...]
    but: tuple[str, ...]

    @property
    def step_keywords(self) -> tuple[str, ...]:
        """All distinct step spellings, longest first."""
        seen: dict[str, None] = {}
        for keywords in (self.given, self.when, self.then, self.and_, self.but):
            for keyword in keywords:
                seen.setdefault(keyword, None)
        return tuple(sorted(seen, key=len, reverse=True))

    def step_constructs(self, keyword: str) -> frozenset[str]:
        """Return the step constructs (given/when/then/and/but) listing a spelling."""
        constructs = set()
        for construct, keywords in (
            ("given", self.given),
            ("when", self.when),
            ("then", self.then),
            ("and", self.and_),
            ("but", self.but),
        ):
            if keyword in keywords:
                constructs.add(construct)
        return frozenset(constructs)

    @classmethod
    def from_dict(cls, code: str, data: dict[str, Any]) -> Dialect:
        """Create a dialect from one entry of the languages file."""

        def spellings(key: str) -> tuple[str, ...]:
            return tuple(str(value) for value in data.get(key) or ())

        return cls(
            code=code,
            name=str(data.get("name", code)),
            native=str(data.get("native", code)),
            feature=spellings("feature"),
            background=spellings("background"),
            scenario=spellings("scenario"),
            scenario_outline=spellings("scenario_outline") or spellings("scenarioOutline"),
            examples=spellings("examples"),
            rule=spellings("rule"),
            given=spellings("given"),
            when=spellings("when"),
            then=spellings("then"),
            and_=spellings("and"),
            but=spellings("but"),
        )


class DialectTable:
    """Read-only lookup from language code to :class:`Dialect`.

    Unknown codes resolve to the default language rather than failing.
    """

    def __init__(self, dialects: dict[str, Dialect], default: str = DEFAULT_LANGUAGE) -> None:
        if default not in dialects:
            raise ValueError(f"Default language '{default}' is not in the dialect table")
        self._dialects = dict(dialects)
        self.default = default

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> DialectTable:
        """Create a table from a mapping of language code to keyword entry.

        Entries use the gherkin-languages layout; ``scenario_outline`` is
        accepted as well as ``scenarioOutline``.
        """
        dialects = {
            str(code): Dialect.from_dict(str(code), entry) for code, entry in data.items()
        }
        return cls(dialects)

    @classmethod
    def from_gherkin_languages(cls) -> DialectTable:
        """Load the complete Cucumber gherkin-languages table."""
        return cls.from_mapping(DIALECTS)

    @classmethod
    def from_yaml(cls, path: Path | str) -> DialectTable:
        """Load a custom dialect table from a YAML languages file."""
        return cls.from_mapping(yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {})

    def has(self, code: str) -> bool:
        """Check if a language code is known."""
        return code in self._dialects

    def resolve(self, code: str | None) -> Dialect:
        """Return the dialect for a code, falling back to the default language."""
        if code and code in self._dialects:
            return self._dialects[code]
        if code:
            logger.debug("Unknown Gherkin language %r, using %r", code, self.default)
        return self._dialects[self.default]

    def languages(self) -> list[str]:
        """List all known language codes."""
        return sorted(self._dialects)

    def __len__(self) -> int:
        return len(self._dialects)


_table: DialectTable | None = None
_table_lock = threading.Lock()


def get_dialect_table() -> DialectTable:
    """Return the shared dialect table, loading it on first use."""
    global _table
    if _table is None:
        with _table_lock:
            if _table is None:
                _table = DialectTable.from_gherkin_languages()
    return _table


def get_dialect(code: str | None) -> Dialect:
    """Resolve a language code against the shared dialect table."""
    return get_dialect_table().resolve(code)
