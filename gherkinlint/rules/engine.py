"""Analysis session: runs analyses over documents and aggregates findings."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from gherkinlint.document.model import Document
from gherkinlint.document.parser import GherkinParser, decode_source
from gherkinlint.exceptions import SessionClosedError
from gherkinlint.rules.base import (
    PARSE_ERROR_RULE_ID,
    Analysis,
    AnalysisContext,
    CrossDocumentAnalysis,
    DiagnosticSink,
)
from gherkinlint.rules.config import LintConfig
from gherkinlint.rules.registry import RuleRegistry, default_registry
from gherkinlint.rules.schemas import CrossDocumentDiagnostic, Diagnostic, RuleSeverity

logger = logging.getLogger(__name__)


@dataclass
class DocumentResult:
    """Diagnostics reported for one document."""

    uri: str
    document: Document
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        """Count diagnostics whose severity fails a run."""
        return sum(1 for d in self.diagnostics if d.severity.is_error)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        return {
            "uri": self.uri,
            "language": self.document.language,
            "parsed": self.document.parsed,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class SessionResult:
    """Everything a session reported, in input order."""

    documents: list[DocumentResult] = field(default_factory=list)
    cross_document: list[CrossDocumentDiagnostic] = field(default_factory=list)

    def diagnostics_for(self, uri: str) -> list[Diagnostic | CrossDocumentDiagnostic]:
        """Return the per-document then cross-document diagnostics of one uri."""
        found: list[Diagnostic | CrossDocumentDiagnostic] = []
        for result in self.documents:
            if result.uri == uri:
                found.extend(result.diagnostics)
        found.extend(d for d in self.cross_document if d.uri == uri)
        return found

    @property
    def total(self) -> int:
        """Count all diagnostics."""
        return sum(len(r.diagnostics) for r in self.documents) + len(self.cross_document)

    @property
    def error_count(self) -> int:
        """Count diagnostics whose severity fails a run."""
        return sum(r.error_count for r in self.documents) + sum(
            1 for d in self.cross_document if d.severity.is_error
        )

    def count_by_severity(self) -> dict[RuleSeverity, int]:
        """Count diagnostics per severity, most severe first."""
        counts = {severity: 0 for severity in RuleSeverity}
        for result in self.documents:
            for diagnostic in result.diagnostics:
                counts[diagnostic.severity] += 1
        for diagnostic in self.cross_document:
            counts[diagnostic.severity] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        return {
            "documents": [r.to_dict() for r in self.documents],
            "cross_document": [d.to_dict() for d in self.cross_document],
            "summary": {
                "files": len(self.documents),
                "total": self.total,
                "by_severity": {
                    s.value: count for s, count in self.count_by_severity().items()
                },
            },
        }


@dataclass
class _Processed:
    uri: str
    document: Document
    raw_text: str
    sink: DiagnosticSink


class AnalysisSession:
    """One analysis run over a collection of documents.

    Per-document analyses run for each document as it is analyzed.
    Cross-document analyses observe every document in input order and
    report once, when the session is finished. A session is used once:
    after :meth:`finish` it rejects further documents.

    Example:
        session = AnalysisSession.from_config(LintConfig.load(".gherkin-lint.yaml"))
        result = session.run([(path, path.read_bytes()) for path in paths])
    """

    def __init__(
        self,
        analyses: Sequence[Analysis],
        parser: GherkinParser | None = None,
        max_workers: int = 1,
        report_parse_errors: bool = True,
        parse_error_severity: RuleSeverity = RuleSeverity.CRITICAL,
    ) -> None:
        """Initialize session.

        Args:
            analyses: Analyses to run, in registration order.
            parser: Parser to use. Defaults to a new GherkinParser.
            max_workers: Worker threads used by :meth:`run` for parsing and
                per-document analyses. 1 runs everything on the caller.
            report_parse_errors: Whether to report parse failures.
            parse_error_severity: Severity of parse failure diagnostics.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.analyses = list(analyses)
        self.parser = parser or GherkinParser()
        self.max_workers = max_workers
        self.report_parse_errors = report_parse_errors
        self.parse_error_severity = parse_error_severity
        self._rule_ids = [a.rule_id for a in self.analyses]
        self._document_analyses = [
            a for a in self.analyses if not isinstance(a, CrossDocumentAnalysis)
        ]
        self._cross_analyses = [a for a in self.analyses if isinstance(a, CrossDocumentAnalysis)]
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: LintConfig | None = None,
        registry: RuleRegistry | None = None,
        **kwargs: Any,
    ) -> AnalysisSession:
        """Create a session with fresh analyses for every enabled rule.

        Args:
            config: Lint configuration. Defaults to the rule defaults.
            registry: Rule registry. Defaults to the built-in rules.
            **kwargs: Passed through to the constructor.

        Returns:
            New AnalysisSession.
        """
        config = config or LintConfig()
        registry = registry or default_registry()
        analyses = registry.create_enabled(config)
        if PARSE_ERROR_RULE_ID in registry:
            kwargs.setdefault(
                "report_parse_errors", registry.is_enabled(PARSE_ERROR_RULE_ID, config)
            )
            kwargs.setdefault(
                "parse_error_severity", registry.severity_for(PARSE_ERROR_RULE_ID, config)
            )
        return cls(analyses, **kwargs)

    @property
    def closed(self) -> bool:
        return self._closed

    def analyze(self, uri: str, raw: bytes | str) -> DocumentResult:
        """Parse and analyze one document.

        Args:
            uri: Source identifier.
            raw: Document text or UTF-8 bytes.

        Returns:
            The document's diagnostics.

        Raises:
            SessionClosedError: If the session was already finished.
        """
        self._check_open()
        return self._complete(self._process(uri, raw))

    def finish(self) -> list[CrossDocumentDiagnostic]:
        """Finalize cross-document analyses and close the session.

        Returns:
            Cross-document diagnostics sorted by uri, line, rule id and
            message.

        Raises:
            SessionClosedError: If the session was already finished.
        """
        self._check_open()
        self._closed = True

        diagnostics: list[CrossDocumentDiagnostic] = []
        for analysis in self._cross_analyses:
            try:
                diagnostics.extend(analysis.finalize())
            except Exception as e:
                logger.warning("Finalizing %s failed: %s", analysis.rule_id, e, exc_info=True)
        diagnostics.sort(key=lambda d: d.sort_key)
        return diagnostics

    def run(self, sources: Iterable[tuple[str, bytes | str]]) -> SessionResult:
        """Analyze documents in order and finish the session.

        Args:
            sources: ``(uri, raw)`` pairs.

        Returns:
            SessionResult with documents in input order.
        """
        self._check_open()
        sources = list(sources)

        if self.max_workers > 1 and len(sources) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                processed = list(executor.map(lambda s: self._process(*s), sources))
        else:
            processed = [self._process(uri, raw) for uri, raw in sources]

        documents = [self._complete(item) for item in processed]
        return SessionResult(documents=documents, cross_document=self.finish())

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Analysis session is already finished")

    def _process(self, uri: str, raw: bytes | str) -> _Processed:
        """Parse a document and run the per-document analyses."""
        logger.debug("Analyzing %s", uri)
        raw_text = decode_source(raw)
        document = self.parser.parse(uri, raw_text)
        sink = DiagnosticSink(self._rule_ids)

        failure = document.parse_error
        if failure is not None and self.report_parse_errors:
            sink.add(Diagnostic(
                rule_id=PARSE_ERROR_RULE_ID,
                message=failure.message,
                line=failure.position.line if failure.position else None,
                column=failure.position.column if failure.position else None,
                severity=self.parse_error_severity,
            ))

        for analysis in self._document_analyses:
            self._observe(analysis, document, raw_text, sink)
        return _Processed(uri, document, raw_text, sink)

    def _complete(self, item: _Processed) -> DocumentResult:
        """Feed a processed document to the cross-document analyses."""
        for analysis in self._cross_analyses:
            self._observe(analysis, item.document, item.raw_text, item.sink)
        return DocumentResult(uri=item.uri, document=item.document, diagnostics=item.sink.diagnostics())

    def _observe(
        self, analysis: Analysis, document: Document, raw_text: str, sink: DiagnosticSink
    ) -> None:
        """Run one analysis over one document, isolating its failures."""
        ctx = AnalysisContext(
            document=document,
            raw_text=raw_text,
            rule_id=analysis.rule_id,
            severity=analysis.severity,
            sink=sink,
        )
        try:
            ctx.state = analysis.create_state()
            analysis.observe(document, ctx)
        except Exception as e:
            logger.warning(
                "Analysis %s failed on %s: %s", analysis.rule_id, document.uri, e, exc_info=True
            )
            ctx.add_document_issue(f"Analysis failed: {e}")
