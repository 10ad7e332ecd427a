"""Gherkin document parsing and traversal."""

from gherkinlint.document.dialect import (
    DEFAULT_LANGUAGE,
    Dialect,
    DialectTable,
    get_dialect,
    get_dialect_table,
)
from gherkinlint.document.model import (
    Background,
    Comment,
    DataTable,
    DocString,
    Document,
    Examples,
    Feature,
    KeywordType,
    ParseFailure,
    Rule,
    Scenario,
    Step,
    Tag,
    TextPosition,
    effective_keyword_types,
)
from gherkinlint.document.parser import GherkinParser, parse
from gherkinlint.document.walker import Visitor, walk

__all__ = [
    "Background",
    "Comment",
    "DataTable",
    "DEFAULT_LANGUAGE",
    "Dialect",
    "DialectTable",
    "DocString",
    "Document",
    "Examples",
    "Feature",
    "GherkinParser",
    "KeywordType",
    "ParseFailure",
    "Rule",
    "Scenario",
    "Step",
    "Tag",
    "TextPosition",
    "Visitor",
    "effective_keyword_types",
    "get_dialect",
    "get_dialect_table",
    "parse",
    "walk",
]
