"""Immutable document tree produced by the Gherkin parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator


class KeywordType(Enum):
    """Semantic role of a step, independent of the literal keyword."""

    CONTEXT = "CONTEXT"  # Given
    ACTION = "ACTION"  # When
    OUTCOME = "OUTCOME"  # Then
    CONJUNCTION = "CONJUNCTION"  # And / But
    UNKNOWN = "UNKNOWN"  # "*" or ambiguous spellings


@dataclass(frozen=True, order=True)
class TextPosition:
    """1-based line and column in the source text."""

    line: int
    column: int = 1

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Tag:
    """A tag, stored without its leading marker."""

    position: TextPosition
    name: str


@dataclass(frozen=True)
class Comment:
    """A comment line. Comments are collected file-wide."""

    position: TextPosition
    text: str


@dataclass(frozen=True)
class DataTable:
    """Rows of cells. Rows are not required to have the same width."""

    position: TextPosition
    rows: tuple[tuple[str, ...], ...]

    @property
    def header(self) -> tuple[str, ...]:
        """First row, or an empty tuple for an empty table."""
        return self.rows[0] if self.rows else ()

    @property
    def body(self) -> tuple[tuple[str, ...], ...]:
        """All rows after the first."""
        return self.rows[1:]


@dataclass(frozen=True)
class DocString:
    """A delimited block of text attached to a step."""

    position: TextPosition
    content_type: str
    content: str
    delimiter: str


@dataclass(frozen=True)
class Step:
    """A single step.

    ``keyword`` is the literal spelling including its trailing separator,
    e.g. ``"Given "``. ``keyword_type`` is purely syntactic: And/But steps
    are CONJUNCTION here, see :func:`effective_keyword_types`.
    """

    position: TextPosition
    keyword: str
    keyword_type: KeywordType
    text: str
    data_table: DataTable | None = None
    doc_string: DocString | None = None


@dataclass(frozen=True)
class Examples:
    """An Examples section of a scenario outline."""

    position: TextPosition
    keyword: str
    name: str = ""
    description: str = ""
    tags: tuple[Tag, ...] = ()
    table: DataTable | None = None


@dataclass(frozen=True)
class Background:
    """Steps shared by every scenario of a feature or rule."""

    position: TextPosition
    keyword: str
    name: str = ""
    description: str = ""
    steps: tuple[Step, ...] = ()


@dataclass(frozen=True)
class Scenario:
    """A scenario or scenario outline."""

    position: TextPosition
    keyword: str
    name: str = ""
    description: str = ""
    tags: tuple[Tag, ...] = ()
    steps: tuple[Step, ...] = ()
    examples: tuple[Examples, ...] = ()
    is_outline: bool = False


@dataclass(frozen=True)
class Rule:
    """A Rule block grouping scenarios inside a feature."""

    position: TextPosition
    keyword: str
    name: str = ""
    description: str = ""
    tags: tuple[Tag, ...] = ()
    background: Background | None = None
    scenarios: tuple[Scenario, ...] = ()


@dataclass(frozen=True)
class Feature:
    """The feature of a document.

    ``scenarios`` holds only the top-level scenarios; scenarios declared
    inside a Rule live on that rule.
    """

    position: TextPosition
    keyword: str
    language: str
    name: str = ""
    description: str = ""
    tags: tuple[Tag, ...] = ()
    background: Background | None = None
    scenarios: tuple[Scenario, ...] = ()
    rules: tuple[Rule, ...] = ()

    def iter_scenarios(self) -> Iterator[Scenario]:
        """Yield top-level scenarios, then the scenarios of each rule."""
        yield from self.scenarios
        for rule in self.rules:
            yield from rule.scenarios


@dataclass(frozen=True)
class ParseFailure:
    """Why a document could not be parsed.

    ``position`` is None when the failure concerns the whole document.
    """

    message: str
    position: TextPosition | None = None


@dataclass(frozen=True)
class Document:
    """Root of the tree for one source unit."""

    uri: str
    language: str
    feature: Feature | None = None
    comments: tuple[Comment, ...] = ()
    parse_error: ParseFailure | None = None
    has_byte_order_mark: bool = False

    @property
    def parsed(self) -> bool:
        """Check if the document was parsed without a syntax error."""
        return self.parse_error is None


def effective_keyword_types(steps: Iterable[Step]) -> list[KeywordType]:
    """Resolve conjunction steps to the type of the nearest preceding step.

    And/But steps inherit the type of the closest earlier step in the same
    sequence that is not a conjunction (which may itself be UNKNOWN). A
    conjunction with nothing before it is UNKNOWN.
    """
    resolved: list[KeywordType] = []
    current = KeywordType.UNKNOWN
    for step in steps:
        if step.keyword_type == KeywordType.CONJUNCTION:
            resolved.append(current)
        else:
            current = step.keyword_type
            resolved.append(current)
    return resolved
