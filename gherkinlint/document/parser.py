"""Line-oriented parser for Gherkin feature files."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from gherkinlint.document.dialect import Dialect, DialectTable, get_dialect_table
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
)
from gherkinlint.exceptions import GherkinSyntaxError

logger = logging.getLogger(__name__)

BYTE_ORDER_MARK = "\ufeff"
DOC_STRING_DELIMITERS = ('"""', "```")

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_LANGUAGE_LINE = re.compile(r"^\s*#\s*language\s*:\s*([a-zA-Z\-_]+)\s*$")
_TAG_COMMENT = re.compile(r"\s#")


class TokenKind(Enum):
    """Classification of one physical line."""

    EMPTY = "empty"
    COMMENT = "comment"
    LANGUAGE = "language"
    TAGS = "tags"
    FEATURE = "feature"
    RULE = "rule"
    BACKGROUND = "background"
    SCENARIO = "scenario"
    SCENARIO_OUTLINE = "scenario_outline"
    EXAMPLES = "examples"
    STEP = "step"
    TABLE_ROW = "table_row"
    DOC_STRING = "doc_string"
    OTHER = "other"


@dataclass
class Token:
    """A classified line (a doc string token spans several lines)."""

    kind: TokenKind
    position: TextPosition
    text: str  # the line without its line break
    keyword: str = ""
    rest: str = ""
    tags: list[Tag] = field(default_factory=list)
    cells: list[str] = field(default_factory=list)
    doc_string: DocString | None = None
    error: GherkinSyntaxError | None = None  # raised when the line is assembled


@dataclass
class _StepBuilder:
    token: Token
    keyword_type: KeywordType
    rows: list[tuple[str, ...]] = field(default_factory=list)
    table_position: TextPosition | None = None
    doc_string: DocString | None = None

    def build(self) -> Step:
        table = None
        if self.table_position is not None:
            table = DataTable(position=self.table_position, rows=tuple(self.rows))
        return Step(
            position=self.token.position,
            keyword=self.token.keyword,
            keyword_type=self.keyword_type,
            text=self.token.rest,
            data_table=table,
            doc_string=self.doc_string,
        )


@dataclass
class _Described:
    """Common state of keyword-line builders that accept a description."""

    token: Token
    tags: list[Tag] = field(default_factory=list)
    description: list[str] = field(default_factory=list)

    @property
    def description_text(self) -> str:
        lines = list(self.description)
        while lines and not lines[-1].strip():
            lines.pop()
        return "\n".join(lines)


@dataclass
class _ExamplesBuilder(_Described):
    rows: list[tuple[str, ...]] = field(default_factory=list)
    table_position: TextPosition | None = None

    def build(self) -> Examples:
        table = None
        if self.table_position is not None:
            table = DataTable(position=self.table_position, rows=tuple(self.rows))
        return Examples(
            position=self.token.position,
            keyword=self.token.keyword,
            name=self.token.rest,
            description=self.description_text,
            tags=tuple(self.tags),
            table=table,
        )


@dataclass
class _BackgroundBuilder(_Described):
    steps: list[_StepBuilder] = field(default_factory=list)

    def build(self) -> Background:
        return Background(
            position=self.token.position,
            keyword=self.token.keyword,
            name=self.token.rest,
            description=self.description_text,
            steps=tuple(step.build() for step in self.steps),
        )


@dataclass
class _ScenarioBuilder(_Described):
    steps: list[_StepBuilder] = field(default_factory=list)
    examples: list[_ExamplesBuilder] = field(default_factory=list)

    def build(self) -> Scenario:
        examples = tuple(examples.build() for examples in self.examples)
        return Scenario(
            position=self.token.position,
            keyword=self.token.keyword,
            name=self.token.rest,
            description=self.description_text,
            tags=tuple(self.tags),
            steps=tuple(step.build() for step in self.steps),
            examples=examples,
            is_outline=self.token.kind == TokenKind.SCENARIO_OUTLINE or bool(examples),
        )


@dataclass
class _RuleBuilder(_Described):
    background: _BackgroundBuilder | None = None
    scenarios: list[_ScenarioBuilder] = field(default_factory=list)

    def build(self) -> Rule:
        return Rule(
            position=self.token.position,
            keyword=self.token.keyword,
            name=self.token.rest,
            description=self.description_text,
            tags=tuple(self.tags),
            background=self.background.build() if self.background else None,
            scenarios=tuple(scenario.build() for scenario in self.scenarios),
        )


@dataclass
class _FeatureBuilder(_Described):
    language: str = ""
    background: _BackgroundBuilder | None = None
    scenarios: list[_ScenarioBuilder] = field(default_factory=list)
    rules: list[_RuleBuilder] = field(default_factory=list)

    def build(self) -> Feature:
        return Feature(
            position=self.token.position,
            keyword=self.token.keyword,
            language=self.language,
            name=self.token.rest,
            description=self.description_text,
            tags=tuple(self.tags),
            background=self.background.build() if self.background else None,
            scenarios=tuple(scenario.build() for scenario in self.scenarios),
            rules=tuple(rule.build() for rule in self.rules),
        )


class GherkinParser:
    """Parser turning Gherkin text into an immutable :class:`Document`.

    The parser never raises for malformed Gherkin. When the text cannot be
    recognized as a feature document the returned document has no feature
    and carries a :class:`ParseFailure` describing the first problem.
    """

    def __init__(self, dialects: DialectTable | None = None) -> None:
        """Initialize parser.

        Args:
            dialects: Dialect table used for keyword matching. Defaults to
                the shared table loaded from the packaged languages file.
        """
        self.dialects = dialects or get_dialect_table()

    def parse_file(self, file_path: Path | str) -> Document:
        """Parse a feature file from disk.

        Args:
            file_path: Path to the feature file.

        Returns:
            Parsed Document, identified by the file path.
        """
        file_path = Path(file_path)
        return self.parse(str(file_path), file_path.read_bytes())

    def parse(self, uri: str, raw: bytes | str) -> Document:
        """Parse raw Gherkin text.

        Args:
            uri: Source identifier (path or URI) recorded on the document.
            raw: UTF-8 bytes or already decoded text. A leading byte order
                mark is stripped.

        Returns:
            Parsed Document. ``feature`` is None when the document has no
            feature or could not be parsed; see ``parse_error``.
        """
        text = decode_source(raw)
        has_bom = text.startswith(BYTE_ORDER_MARK)
        if has_bom:
            text = text[len(BYTE_ORDER_MARK):]

        lines = _LINE_BREAK.split(text)
        dialect = self.dialects.resolve(self._detect_language(lines))
        comments: list[Comment] = []

        try:
            tokens = self._tokenize(lines, dialect, comments)
            feature = self._build(tokens, dialect)
        except GherkinSyntaxError as e:
            logger.debug("Parse error in %s: %s", uri, e)
            return Document(
                uri=uri,
                language=dialect.code,
                feature=None,
                comments=tuple(comments),
                parse_error=ParseFailure(message=e.message, position=e.position),
                has_byte_order_mark=has_bom,
            )

        return Document(
            uri=uri,
            language=dialect.code,
            feature=feature,
            comments=tuple(comments),
            has_byte_order_mark=has_bom,
        )

    def _detect_language(self, lines: list[str]) -> str | None:
        """Find a ``# language:`` line before the first structural line."""
        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            match = _LANGUAGE_LINE.match(line)
            if match:
                return match.group(1)
            if not stripped.startswith("#"):
                return None
        return None

    def _tokenize(
        self, lines: list[str], dialect: Dialect, comments: list[Comment]
    ) -> list[Token]:
        """Classify every physical line.

        Comment lines are appended to ``comments`` and left out of the
        returned tokens, as is the language line. Doc strings are consumed
        whole. Malformed tag lines and unterminated doc strings become
        tokens carrying their error, so every line is classified and the
        tree builder decides which problem is reported first.
        """
        title_keywords = _title_keywords(dialect)
        step_keywords = dialect.step_keywords
        tokens: list[Token] = []
        in_header = True
        index = 0

        while index < len(lines):
            line = lines[index]
            line_no = index + 1
            stripped = line.strip()
            indent = len(line) - len(line.lstrip())
            position = TextPosition(line_no, indent + 1)
            index += 1

            if not stripped:
                tokens.append(Token(TokenKind.EMPTY, position, line))
                continue

            if stripped.startswith("#"):
                if in_header and _LANGUAGE_LINE.match(line):
                    in_header = False
                    continue
                comments.append(Comment(position=TextPosition(line_no, 1), text=line))
                continue

            in_header = False

            if stripped.startswith("@"):
                try:
                    tokens.append(self._tag_token(line, position))
                except GherkinSyntaxError as e:
                    tokens.append(Token(TokenKind.OTHER, position, line, error=e))
                continue

            title = _match_title(stripped, title_keywords)
            if title is not None:
                kind, keyword = title
                rest = stripped[len(keyword) + 1:].strip()
                tokens.append(Token(kind, position, line, keyword=keyword, rest=rest))
                continue

            step_keyword = _match_step(stripped, step_keywords)
            if step_keyword is not None:
                rest = stripped[len(step_keyword):].strip()
                tokens.append(
                    Token(TokenKind.STEP, position, line, keyword=step_keyword, rest=rest)
                )
                continue

            if stripped.startswith("|"):
                tokens.append(
                    Token(TokenKind.TABLE_ROW, position, line, cells=split_table_row(stripped))
                )
                continue

            delimiter = next((d for d in DOC_STRING_DELIMITERS if stripped.startswith(d)), None)
            if delimiter is not None:
                try:
                    doc_string, index = self._read_doc_string(lines, index, position, delimiter)
                except GherkinSyntaxError as e:
                    tokens.append(Token(TokenKind.DOC_STRING, position, line, error=e))
                    break
                tokens.append(Token(TokenKind.DOC_STRING, position, line, doc_string=doc_string))
                continue

            tokens.append(Token(TokenKind.OTHER, position, line))

        return tokens

    def _tag_token(self, line: str, position: TextPosition) -> Token:
        """Split a tag line into tags, ignoring a trailing comment."""
        content = line
        comment = _TAG_COMMENT.search(content, position.column - 1)
        if comment:
            content = content[: comment.start()]

        tags = []
        for match in re.finditer(r"\S+", content):
            item = match.group(0)
            tag_position = TextPosition(position.line, match.start() + 1)
            if not item.startswith("@") or len(item) == 1:
                raise GherkinSyntaxError(
                    f"Expected a tag starting with '@', got '{item}'", tag_position
                )
            tags.append(Tag(position=tag_position, name=item[1:]))
        return Token(TokenKind.TAGS, position, line, tags=tags)

    def _read_doc_string(
        self, lines: list[str], index: int, position: TextPosition, delimiter: str
    ) -> tuple[DocString, int]:
        """Consume a doc string body up to its closing delimiter.

        Args:
            lines: All physical lines.
            index: Index of the first line after the opening delimiter.
            position: Position of the opening delimiter.
            delimiter: The delimiter that opened the doc string.

        Returns:
            The doc string and the index of the line after the closing
            delimiter.
        """
        opening = lines[index - 1].strip()
        content_type = opening[len(delimiter):].strip()
        indent = position.column - 1
        escaped = "\\" + "\\".join(delimiter)
        body: list[str] = []

        while index < len(lines):
            line = lines[index]
            index += 1
            if line.strip() == delimiter:
                return (
                    DocString(
                        position=position,
                        content_type=content_type,
                        content="\n".join(body),
                        delimiter=delimiter,
                    ),
                    index,
                )
            body.append(_dedent(line, indent).replace(escaped, delimiter))

        raise GherkinSyntaxError(f"Unterminated doc string, expected closing {delimiter}", position)

    def _build(self, tokens: list[Token], dialect: Dialect) -> Feature | None:
        """Assemble the feature tree from classified lines."""
        builder = _TreeBuilder(dialect)
        for token in tokens:
            builder.feed(token)
        return builder.finish()


class _TreeBuilder:
    """Top-down assembly of one feature; raises on structural errors."""

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.feature: _FeatureBuilder | None = None
        self.rule: _RuleBuilder | None = None
        self.block: _BackgroundBuilder | _ScenarioBuilder | None = None
        self.examples: _ExamplesBuilder | None = None
        self.step: _StepBuilder | None = None
        self.table_target: _StepBuilder | _ExamplesBuilder | None = None
        self.described: _Described | None = None
        self.pending_tags: list[Tag] = []

    def feed(self, token: Token) -> None:
        if self.feature is None and token.kind not in (
            TokenKind.EMPTY,
            TokenKind.TAGS,
            TokenKind.FEATURE,
        ):
            expected = ", ".join(f"'{k}:'" for k in self.dialect.feature)
            raise GherkinSyntaxError(
                f"Expected the document to start with one of {expected}, "
                f"got '{token.text.strip()}'"
            )
        if token.error is not None:
            raise token.error

        handler = getattr(self, f"_on_{token.kind.value}")
        handler(token)

    def finish(self) -> Feature | None:
        if self.pending_tags:
            raise GherkinSyntaxError(
                "Tags must be followed by a Feature, Rule, Scenario or Examples",
                self.pending_tags[0].position,
            )
        return self.feature.build() if self.feature else None

    # Line handlers

    def _on_empty(self, token: Token) -> None:
        if self.described is not None and self.described.description:
            self.described.description.append("")

    def _on_other(self, token: Token) -> None:
        if self.pending_tags:
            self._tags_not_allowed(token)
        if self.described is None:
            raise GherkinSyntaxError(f"Unexpected text '{token.text.strip()}'", token.position)
        self.described.description.append(token.text.rstrip())

    def _on_tags(self, token: Token) -> None:
        self._end_description()
        self.table_target = None
        self.pending_tags.extend(token.tags)

    def _on_feature(self, token: Token) -> None:
        if self.feature is not None:
            raise GherkinSyntaxError("A document may contain only one Feature", token.position)
        self.feature = _FeatureBuilder(
            token=token, tags=self._take_tags(), language=self.dialect.code
        )
        self.described = self.feature

    def _on_rule(self, token: Token) -> None:
        assert self.feature is not None
        self.rule = _RuleBuilder(token=token, tags=self._take_tags())
        self.feature.rules.append(self.rule)
        self.block = None
        self.examples = None
        self.step = None
        self.table_target = None
        self.described = self.rule

    def _on_background(self, token: Token) -> None:
        if self.pending_tags:
            self._tags_not_allowed(token)
        container = self._container()
        if container.background is not None:
            raise GherkinSyntaxError(
                "Only one Background is allowed per Feature or Rule", token.position
            )
        if container.scenarios:
            raise GherkinSyntaxError(
                "Background must come before the first Scenario", token.position
            )
        background = _BackgroundBuilder(token=token)
        container.background = background
        self._open_block(background)

    def _on_scenario(self, token: Token) -> None:
        scenario = _ScenarioBuilder(token=token, tags=self._take_tags())
        self._container().scenarios.append(scenario)
        self._open_block(scenario)

    _on_scenario_outline = _on_scenario

    def _on_examples(self, token: Token) -> None:
        if not isinstance(self.block, _ScenarioBuilder):
            raise GherkinSyntaxError("Examples must belong to a Scenario Outline", token.position)
        self.examples = _ExamplesBuilder(token=token, tags=self._take_tags())
        self.block.examples.append(self.examples)
        self.step = None
        self.table_target = self.examples
        self.described = self.examples

    def _on_step(self, token: Token) -> None:
        if self.pending_tags:
            self._tags_not_allowed(token)
        if self.block is None:
            raise GherkinSyntaxError(
                "Steps must belong to a Scenario or Background", token.position
            )
        if self.examples is not None:
            raise GherkinSyntaxError("Steps are not allowed after Examples", token.position)
        self._end_description()
        self.step = _StepBuilder(token=token, keyword_type=self._keyword_type(token.keyword))
        self.block.steps.append(self.step)
        self.table_target = self.step

    def _on_table_row(self, token: Token) -> None:
        if self.pending_tags:
            self._tags_not_allowed(token)
        self._end_description()
        target = self.table_target
        if target is None or (isinstance(target, _StepBuilder) and target.doc_string is not None):
            raise GherkinSyntaxError(
                "A table row must follow a step or an Examples line", token.position
            )
        if target.table_position is None:
            target.table_position = token.position
        target.rows.append(tuple(token.cells))

    def _on_doc_string(self, token: Token) -> None:
        if self.pending_tags:
            self._tags_not_allowed(token)
        step = self.table_target
        if (
            not isinstance(step, _StepBuilder)
            or step.table_position is not None
            or step.doc_string is not None
        ):
            raise GherkinSyntaxError("A doc string must follow a step", token.position)
        step.doc_string = token.doc_string
        self.table_target = None

    # Helpers

    def _container(self) -> _FeatureBuilder | _RuleBuilder:
        assert self.feature is not None
        return self.rule if self.rule is not None else self.feature

    def _open_block(self, block: _BackgroundBuilder | _ScenarioBuilder) -> None:
        self.block = block
        self.examples = None
        self.step = None
        self.table_target = None
        self.described = block

    def _take_tags(self) -> list[Tag]:
        tags, self.pending_tags = self.pending_tags, []
        return tags

    def _end_description(self) -> None:
        self.described = None

    def _tags_not_allowed(self, token: Token) -> None:
        raise GherkinSyntaxError(
            f"Tags are not allowed before '{token.text.strip()}'",
            self.pending_tags[0].position,
        )

    def _keyword_type(self, keyword: str) -> KeywordType:
        return classify_step_keyword(self.dialect, keyword)


def classify_step_keyword(dialect: Dialect, keyword: str) -> KeywordType:
    """Map a literal step keyword to its semantic role.

    A spelling listed only under Given, When or Then maps to CONTEXT,
    ACTION or OUTCOME; one listed only under And and/or But maps to
    CONJUNCTION. The bullet and any spelling shared between roles, or not
    in the dialect at all, is UNKNOWN.
    """
    constructs = dialect.step_constructs(keyword)
    if constructs == {"given"}:
        return KeywordType.CONTEXT
    if constructs == {"when"}:
        return KeywordType.ACTION
    if constructs == {"then"}:
        return KeywordType.OUTCOME
    if constructs and constructs <= {"and", "but"}:
        return KeywordType.CONJUNCTION
    return KeywordType.UNKNOWN


def split_table_row(row: str) -> list[str]:
    """Split a ``| a | b |`` row into trimmed cell values.

    ``\\|``, ``\\n`` and ``\\\\`` are unescaped; text after the last
    unescaped pipe is ignored.
    """
    cells: list[str] = []
    current: list[str] = []
    chars = iter(row.strip()[1:])
    for char in chars:
        if char == "|":
            cells.append("".join(current).strip())
            current = []
        elif char == "\\":
            escaped = next(chars, "")
            if escaped == "|":
                current.append("|")
            elif escaped == "n":
                current.append("\n")
            elif escaped == "\\":
                current.append("\\")
            else:
                current.append("\\" + escaped)
        else:
            current.append(char)
    return cells


def decode_source(raw: bytes | str) -> str:
    """Decode UTF-8 bytes, replacing undecodable sequences."""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def _title_keywords(dialect: Dialect) -> list[tuple[str, TokenKind]]:
    keywords = [
        *((k, TokenKind.FEATURE) for k in dialect.feature),
        *((k, TokenKind.RULE) for k in dialect.rule),
        *((k, TokenKind.BACKGROUND) for k in dialect.background),
        *((k, TokenKind.SCENARIO_OUTLINE) for k in dialect.scenario_outline),
        *((k, TokenKind.SCENARIO) for k in dialect.scenario),
        *((k, TokenKind.EXAMPLES) for k in dialect.examples),
    ]
    # Stable sort keeps the construct order above for equal lengths.
    return sorted(keywords, key=lambda item: len(item[0]), reverse=True)


def _match_title(stripped: str, keywords: list[tuple[str, TokenKind]]) -> tuple[TokenKind, str] | None:
    for keyword, kind in keywords:
        if stripped.startswith(keyword + ":"):
            return kind, keyword
    return None


def _match_step(stripped: str, keywords: tuple[str, ...]) -> str | None:
    for keyword in keywords:
        if stripped.startswith(keyword):
            return keyword
    return None


def _dedent(line: str, indent: int) -> str:
    """Remove up to ``indent`` leading whitespace characters."""
    removed = 0
    while removed < indent and removed < len(line) and line[removed].isspace():
        removed += 1
    return line[removed:]


_default_parser: GherkinParser | None = None
_default_parser_lock = threading.Lock()


def parse(uri: str, raw: bytes | str) -> Document:
    """Parse Gherkin text with a parser bound to the shared dialect table."""
    global _default_parser
    if _default_parser is None:
        with _default_parser_lock:
            if _default_parser is None:
                _default_parser = GherkinParser()
    return _default_parser.parse(uri, raw)
