"""One pass over one log: preprocess -> classify -> extract.

The pass never raises for bad log content. Anything it cannot use ends up
in ``ParseResult.diagnostics`` with the raw line number it started at.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from gc_events.classifier import COLLECTOR_NAMES, classify, detect_collector
from gc_events.errors import MalformedFieldError, UnreadableLogError
from gc_events.extract import extract
from gc_events.kinds import CollectorFamily, EventKind
from gc_events.models import (
    CanonicalLine,
    Diagnostic,
    DiagnosticReason,
    Event,
    ParseOptions,
    ParseResult,
    RawLine,
)
from gc_events.preprocess import Preprocessor, preprocess_numbered

logger = logging.getLogger(__name__)


def _numbered(lines: Iterable[RawLine]) -> Iterator[tuple[int, CanonicalLine]]:
    """Raw lines as they are, for logs that must not be reassembled."""
    for number, line in enumerate(lines, start=1):
        line = line.rstrip()
        if line:
            yield number, line


class EventPipeline:
    """Drives a single pass and collects its events and diagnostics.

    Build one per input; the preprocessing context it owns is never shared.
    With ``collect`` off only diagnostics are kept on ``result``; events and
    canonical lines are yielded and forgotten.
    """

    def __init__(
        self,
        options: ParseOptions | None = None,
        collector: CollectorFamily = CollectorFamily.UNKNOWN,
        collect: bool = True,
    ) -> None:
        self.options = options or ParseOptions()
        self.collect = collect
        self.collector = self.options.collector or collector
        self.result = ParseResult(collector=self.collector)
        self._preprocessor = Preprocessor()
        self._last_timestamp: int | None = None

    def events(self, lines: Iterable[RawLine]) -> Iterator[Event]:
        """Yield events in file order while recording diagnostics on ``result``."""
        if self.options.preprocess:
            canonical = preprocess_numbered(lines, self._preprocessor)
        else:
            canonical = _numbered(lines)

        hint = self.options.collector

        for line_number, line in canonical:
            if self.collect:
                self.result.canonical_lines.append(line)
            classification = classify(line, hint)

            if classification.kind is EventKind.UNKNOWN:
                logger.debug("Unrecognized line %d: %s", line_number, line)
                self._diagnose(DiagnosticReason.UNRECOGNIZED, line, line_number)
                continue

            if classification.kind is EventKind.UNIFIED_HEADER:
                name = classification.entry_groups.get("collector_name")
                if name:
                    self.collector = COLLECTOR_NAMES[name]
                    self.result.collector = self.collector
                continue

            try:
                event = extract(line, classification, line_number, self.options.check_capacity)
            except MalformedFieldError as exc:
                logger.warning("Dropping event at line %d: %s", line_number, exc)
                self._diagnose(DiagnosticReason.MALFORMED_FIELD, line, line_number, str(exc))
                continue
            if event is None:
                continue

            if event.collector is CollectorFamily.UNKNOWN and self.collector is not CollectorFamily.UNKNOWN:
                event = event.model_copy(update={"collector": self.collector})

            if event.malformed_timestamp:
                self._diagnose(DiagnosticReason.MALFORMED_TIMESTAMP, line, line_number)
            elif self.options.check_ordering:
                self._check_order(event)

            if self.collect:
                self.result.events.append(event)
            yield event

        self.result.diagnostics.extend(self._preprocessor.diagnostics)
        self.result.diagnostics.sort(key=lambda d: d.line_number or 0)

    def run(self, lines: Iterable[RawLine]) -> ParseResult:
        for _ in self.events(lines):
            pass
        return self.result

    def _check_order(self, event: Event) -> None:
        if self._last_timestamp is not None and event.timestamp < self._last_timestamp:
            self._diagnose(
                DiagnosticReason.OUT_OF_ORDER,
                event.log_entry,
                event.line_number,
                f"starts at {event.timestamp} ms, before the previous event at {self._last_timestamp} ms",
            )
        self._last_timestamp = max(event.timestamp, self._last_timestamp or 0)

    def _diagnose(
        self,
        reason: DiagnosticReason,
        text: str,
        line_number: int | None,
        detail: str | None = None,
    ) -> None:
        self.result.diagnostics.append(
            Diagnostic(reason=reason, text=text, line_number=line_number, detail=detail)
        )


def parse(lines: Iterable[RawLine], options: ParseOptions | None = None) -> ParseResult:
    """Parse a whole log held in memory."""
    options = options or ParseOptions()
    lines = list(lines)
    collector = options.collector or detect_collector(lines)
    logger.debug("Parsing %d lines as %s", len(lines), collector.value)
    return EventPipeline(options, collector).run(lines)


def iter_events(lines: Iterable[RawLine], options: ParseOptions | None = None) -> Iterator[Event]:
    """Stream events without keeping the whole log in memory.

    No collector auto-detection happens here; pass ``options.collector`` to
    narrow the catalogue.
    """
    yield from EventPipeline(options, collect=False).events(lines)


def parse_file(path: Path | str, options: ParseOptions | None = None) -> ParseResult:
    """Parse a log file.

    Raises:
        UnreadableLogError: The file cannot be opened or read.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8", errors="replace") as handle:
            lines = handle.readlines()
    except OSError as exc:
        raise UnreadableLogError(f"Cannot read {path}: {exc}") from exc
    return parse(lines, options)
