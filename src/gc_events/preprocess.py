"""Preprocessor: reassemble multi-line unified logging into canonical lines.

Unified logging writes one pause as a begin line, detail lines and a
closing line with totals and cpu times. Concurrent phases and safepoint
brackets logged by other threads can land in the middle of that group.
The preprocessor walks the raw lines once, with one line of lookback and
one of lookahead, and joins every logical event onto a single line:

    [0.112s][info][gc,start ] GC(3) Pause Young (Allocation Failure)
    [0.112s][info][gc,heap  ] GC(3) DefNew: 1016K->128K(1152K)
    ...
    [0.112s][info][gc,cpu   ] GC(3) User=0.00s Sys=0.00s Real=0.00s

becomes

    [0.112s][info][gc,start ] GC(3) Pause Young (Allocation Failure) DefNew: 1016K->128K(1152K) ... User=0.00s Sys=0.00s Real=0.00s

Lines from another event that arrive while one is being assembled are
parked in the context's entangled buffer and written out, each on its own
line, once the enclosing event is complete. Lines this pass does not
recognize (legacy logging included) are passed through unchanged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator

from gc_events.classifier import classify
from gc_events.kinds import EventKind
from gc_events.models import (
    CanonicalLine,
    Diagnostic,
    DiagnosticReason,
    PreprocessContext,
    RawLine,
)
from gc_events.regex import (
    DURATION_MS,
    G1_YOUNG_TYPES,
    SIZE,
    TIMES_UNIFIED,
    TRIGGER_TEXT,
    UNIFIED_DECORATOR,
)

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\n"

# Context tokens
BEGINNING_OF_EVENT = "BEGINNING_OF_EVENT"
UNIFIED_EVENT = "UNIFIED_EVENT"
UNIFIED_PAUSE = "UNIFIED_PAUSE"
UNIFIED_SAFEPOINT = "UNIFIED_SAFEPOINT"

_EVENT_TOKENS = frozenset({BEGINNING_OF_EVENT, UNIFIED_EVENT, UNIFIED_PAUSE})

# ============================================================
# PATTERNS
# ============================================================

_DECORATOR = r"(?:" + UNIFIED_DECORATOR + r")"
_OCCUPANCY = SIZE + r"->" + SIZE + r"\(" + SIZE + r"\)"
_PAUSE_TYPES = G1_YOUNG_TYPES + r"|Mixed"

# [0.054s][info][gc] GC(1) Concurrent Mark 1.260ms
BEGIN_CONCURRENT: re.Pattern[str] = re.compile(
    _DECORATOR + r" Concurrent (?:Mark|Preclean|Reset|Sweep) " + DURATION_MS + r"[ ]*"
)

# [0.055s][info][gc] GC(1) Pause Remark 0M->0M(2M) 0.332ms
BEGIN_COMPLETE: re.Pattern[str] = re.compile(
    _DECORATOR + r" Pause (?:Initial Mark|Remark|Cleanup) " + _OCCUPANCY + r" " + DURATION_MS + r"[ ]*"
)

# [0.112s][info][gc,start] GC(3) Pause Young (Allocation Failure)
BEGIN_YOUNG: re.Pattern[str] = re.compile(
    _DECORATOR + r" Pause Young(?: \((?:" + _PAUSE_TYPES + r")\))? \((?:" + TRIGGER_TEXT + r")\)[ ]*"
)

# [0.075s][info][gc,start] GC(2) Pause Full (Allocation Failure)
BEGIN_FULL: re.Pattern[str] = re.compile(
    _DECORATOR + r" Pause Full \((?:" + TRIGGER_TEXT + r")\)[ ]*"
)

# [144.035s][info][safepoint] Entering safepoint region: CollectForMetadataAllocation
BEGIN_SAFEPOINT: re.Pattern[str] = re.compile(
    _DECORATOR + r" Entering safepoint region: (?!(?:Exit|Halt)[ ]*$)\w+[ ]*"
)

# [0.112s][info][gc,heap] GC(3) DefNew: 1016K->128K(1152K)
SPACE_DATA: re.Pattern[str] = re.compile(
    _DECORATOR
    + r"(?P<payload> (?:CMS|DefNew|Metaspace|ParNew|PSYoungGen|PSOldGen|ParOldGen|Tenured): "
    + _OCCUPANCY
    + r")[ ]*"
)

# JDK 16+: Metaspace: 9085K(9344K)->9085K(9344K) NonClass: ... Class: ...
SPACE_DATA_METASPACE: re.Pattern[str] = re.compile(
    _DECORATOR
    + r" Metaspace: (?P<before>" + SIZE + r")\(" + SIZE + r"\)->(?P<after>" + SIZE + r")"
    r"\((?P<capacity>" + SIZE + r")\)(?: NonClass: .*)?"
)

# [0.112s][info][gc] GC(3) Pause Young (Allocation Failure) 1M->1M(2M) 0.700ms
PAUSE_SUMMARY: re.Pattern[str] = re.compile(
    _DECORATOR
    + r" Pause (?:Young|Full)(?: \((?:" + _PAUSE_TYPES + r")\))? \((?:" + TRIGGER_TEXT + r")\)"
    + r"(?P<payload> " + _OCCUPANCY + r" " + DURATION_MS + r")[ ]*"
)

# [144.036s][info][safepoint] Leaving safepoint region
LEAVING_SAFEPOINT: re.Pattern[str] = re.compile(_DECORATOR + r" Leaving safepoint region[ ]*")

# [144.036s][info][safepoint] Total time for which application threads were stopped: ...
END_SAFEPOINT: re.Pattern[str] = re.compile(
    _DECORATOR
    + r" Total time for which application threads were stopped: \d{1,4}[.,]\d{7} seconds, "
    r"Stopping threads took: \d{1,4}[.,]\d{7} seconds[ ]*"
)

# [0.112s][info][gc,cpu] GC(3) User=0.00s Sys=0.00s Real=0.00s
END_TIMES: re.Pattern[str] = re.compile(_DECORATOR + r"(?P<payload>" + TIMES_UNIFIED + r")[ ]*")

# Noise relative to the canonical event: phase sub-timings, worker counts,
# region deltas, archive mapping, adaptive sizing dumps, sentinels.
THROWAWAY_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(_DECORATOR + body)
    for body in (
        r" Phase \d: .+?",
        r" Using \d{1,3} workers of \d{1,3} for (?:evacuation|full compaction|marking)",
        r"   (?:(?:Pre Evacuate|Evacuate|Post Evacuate) Collection Set|Merge Heap Roots|Other): "
        r"\d{1,7}[.,]\d{1,3}ms",
        r" (?:Eden|Survivor|Old|Humongous|Archive) regions: \d{1,6}->\d{1,6}(?:\(\d{1,6}\))?",
        r" Pause (?:Remark|Cleanup|Initial Mark)[ ]*",
        r" Cleaned string and symbol table, strings: \d{1,7} processed, \d{1,6} removed, "
        r"symbols: \d{1,7} processed, \d{1,5} removed",
        r" Mark (?:closed|open) archive regions in map:.+",
        r" MMU target violated:.+",
        r" Attempting maximally compacting collection",
        r" (?:Adjust Roots|Compaction Phase|Marking Phase|Post Compact|Summary Phase)"
        r"(?: " + DURATION_MS + r")?",
        r" Old: " + _OCCUPANCY,
        r" Concurrent (?:Cycle|Mark|Mark Cycle|Mark From Roots|Preclean|Reset|Sweep|"
        r"Scan Root Regions|Rebuild Remembered Sets|Cleanup for Next Mark|Clear Claimed Marks|"
        r"Undo Cycle)[ ]*",
        r" Application time:.+",
        r" To-space exhausted",
        r" (?:PS)?AdaptiveSize.*",
        r" (?:(?:Adjusting|Scaled) eden|avg_promoted|avg_survived|Base_footprint:|    capacities|"
        r"Desired survivor size|Do scavenge:|    eden:|    \[ {0,2}(?:eden|from|to)_start|"
        r"  Eden, (?:from|to), (?:to|from):|    from:|Live_space:|  minor pause:|Minor_pause:|"
        r"No full after scavenge|Old eden_size:|old_gen_capacity:|PSYoungGen::resize_spaces|"
        r"      to:|Young generation size:).*",
        r" Entering safepoint region: (?:Exit|Halt)[ ]*",
    )
)


def _matches(pattern: re.Pattern[str], line: str | None) -> bool:
    return line is not None and pattern.fullmatch(line.rstrip()) is not None


def is_throwaway(line: str) -> bool:
    """Whether a raw line is noise to be dropped."""
    return any(pattern.fullmatch(line) for pattern in THROWAWAY_PATTERNS)


# ============================================================
# STATE MACHINE
# ============================================================


class Preprocessor:
    """One reassembly pass over one file.

    ``feed`` is called once per raw line with its neighbours and returns
    the text to append to the output, or ``None``. Text that starts with
    ``LINE_SEPARATOR`` starts a new canonical line.
    """

    def __init__(self, context: PreprocessContext | None = None) -> None:
        self.context = context if context is not None else PreprocessContext()
        self.diagnostics: list[Diagnostic] = []
        self.line_number = 0
        self.partial = False

    @property
    def tokens(self) -> set[str]:
        return self.context.tokens

    @property
    def entangled(self) -> list[str]:
        return self.context.entangled

    @property
    def assembling(self) -> bool:
        """Whether a pause or an opened safepoint bracket is in progress."""
        if UNIFIED_PAUSE in self.tokens:
            return True
        return UNIFIED_SAFEPOINT in self.tokens and not self.safepoint_stashed

    @property
    def safepoint_stashed(self) -> bool:
        """A safepoint begin is parked waiting for its Leaving line and nothing is open."""
        return (
            UNIFIED_PAUSE not in self.tokens
            and bool(self.entangled)
            and BEGIN_SAFEPOINT.fullmatch(self.entangled[0]) is not None
        )

    def feed(self, prior: RawLine | None, line: RawLine, next_line: RawLine | None) -> str | None:
        self.line_number += 1
        line = line.rstrip()
        if not line:
            return None

        # Begin lines
        if BEGIN_CONCURRENT.fullmatch(line):
            return self._concurrent(line)
        if BEGIN_COMPLETE.fullmatch(line):
            if self.assembling:
                self.entangled.append(line)
                return None
            return self._open(line, UNIFIED_EVENT)
        if BEGIN_YOUNG.fullmatch(line):
            if _matches(BEGIN_FULL, next_line):
                # The full collection that follows reports this young collection.
                self.tokens.update((BEGINNING_OF_EVENT, UNIFIED_EVENT, UNIFIED_PAUSE))
                return None
            return self._open(line, UNIFIED_EVENT, UNIFIED_PAUSE)
        if BEGIN_FULL.fullmatch(line):
            return self._open(line, UNIFIED_EVENT, UNIFIED_PAUSE)
        if BEGIN_SAFEPOINT.fullmatch(line):
            return self._safepoint(line, next_line)

        # Middle lines
        if match := SPACE_DATA_METASPACE.fullmatch(line):
            payload = " Metaspace: {}->{}({})".format(
                match.group("before"), match.group("after"), match.group("capacity")
            )
            return self._space(line, payload)
        if match := SPACE_DATA.fullmatch(line):
            return self._space(line, match.group("payload"))
        if match := PAUSE_SUMMARY.fullmatch(line):
            return self._summary(line, match.group("payload"), next_line)
        if LEAVING_SAFEPOINT.fullmatch(line):
            return self._leaving(prior, line, next_line)

        # End lines
        if END_SAFEPOINT.fullmatch(line):
            return self._end_safepoint(line, next_line)
        if match := END_TIMES.fullmatch(line):
            return self._end_times(line, match.group("payload"), next_line)

        if is_throwaway(line):
            return None

        if classify(line).kind is EventKind.UNIFIED_CONCURRENT:
            return self._concurrent(line)

        # Anything else belongs to no open event.
        if self.assembling:
            self.entangled.append(line)
            return None
        return self._new_line(line)

    def finish(self) -> str | None:
        """Close the pass at end of input.

        An event still missing its closing lines is marked ``partial`` so the
        caller can discard it. Parked lines that are whole events are
        written out; a safepoint begin whose bracket never closed is dropped.
        """
        if UNIFIED_PAUSE in self.tokens:
            self.partial = True
        fragments: list[str] = []
        while self.entangled:
            text = self._take_entangled()
            if BEGIN_SAFEPOINT.fullmatch(text):
                logger.debug("Dropping unterminated safepoint bracket: %s", text)
                continue
            fragments.append(self._new_line(text))
        self.context.reset()
        return "".join(fragments) or None

    # --------------------------------------------------------
    # transitions
    # --------------------------------------------------------

    def _open(self, line: str, *tokens: str) -> str:
        self.tokens.add(BEGINNING_OF_EVENT)
        self.tokens.update(tokens)
        return self._new_line(line)

    def _concurrent(self, line: str) -> str | None:
        if self.safepoint_stashed:
            # The stashed safepoint begin is not entangled with a pause after all.
            fragment = self._new_line(self.entangled.pop(0))
            self.tokens.update((BEGINNING_OF_EVENT, UNIFIED_SAFEPOINT))
            self.entangled.append(line)
            return fragment
        if not self.assembling:
            # Left open so a trailing cpu times line attaches.
            return self._open(line, UNIFIED_EVENT)
        self.entangled.append(line)
        return None

    def _safepoint(self, line: str, next_line: str | None) -> str | None:
        if UNIFIED_PAUSE not in self.tokens and (
            next_line is None or _matches(LEAVING_SAFEPOINT, next_line)
        ):
            return self._open(line, UNIFIED_SAFEPOINT)
        # A GC safepoint: written after the collection it encloses.
        self.entangled.append(line)
        self.tokens.add(UNIFIED_SAFEPOINT)
        return None

    def _space(self, line: str, payload: str) -> str:
        if UNIFIED_PAUSE in self.tokens:
            self.tokens.discard(BEGINNING_OF_EVENT)
            return payload
        return self._stray(line)

    def _summary(self, line: str, payload: str, next_line: str | None) -> str | None:
        if UNIFIED_PAUSE not in self.tokens:
            # Single line event
            return self._open(line, UNIFIED_EVENT)
        self.tokens.discard(BEGINNING_OF_EVENT)
        if _matches(SPACE_DATA, next_line) or _matches(SPACE_DATA_METASPACE, next_line):
            # A nested collection follows and reports the totals.
            return None
        if _matches(END_TIMES, next_line):
            return payload
        return payload + self._complete(next_line)

    def _leaving(self, prior: str | None, line: str, next_line: str | None) -> str | None:
        if UNIFIED_PAUSE in self.tokens:
            self.entangled.append(line)
            return None
        if _matches(BEGIN_SAFEPOINT, prior):
            fragment = line
        elif self.entangled and BEGIN_SAFEPOINT.fullmatch(self.entangled[0]):
            self.tokens.add(UNIFIED_SAFEPOINT)
            fragment = self._new_line(self.entangled.pop(0)) + line
        elif UNIFIED_SAFEPOINT in self.tokens:
            fragment = line
        else:
            return self._stray(line)
        self.tokens.discard(BEGINNING_OF_EVENT)
        if not _matches(END_SAFEPOINT, next_line):
            # Bracket logged without a stopped-time summary.
            self.tokens.discard(UNIFIED_SAFEPOINT)
            fragment += self._flush(next_line)
        return fragment

    def _end_safepoint(self, line: str, next_line: str | None) -> str:
        if UNIFIED_PAUSE in self.tokens:
            self.entangled.append(line)
            return ""
        if UNIFIED_SAFEPOINT not in self.tokens:
            return self._new_line(line)
        fragment = line
        if self.entangled and BEGIN_SAFEPOINT.fullmatch(self.entangled[0]):
            fragment = self._new_line(self.entangled.pop(0)) + line
        self.context.reset()
        return fragment + self._flush(next_line)

    def _end_times(self, line: str, payload: str, next_line: str | None) -> str:
        if self.tokens & {UNIFIED_EVENT, UNIFIED_PAUSE}:
            fragment = payload
        else:
            fragment = self._stray(line)
        return fragment + self._complete(next_line)

    def _complete(self, next_line: str | None) -> str:
        """The event being assembled is done: drop its tokens, write parked lines."""
        self.tokens.difference_update(_EVENT_TOKENS)
        return self._flush(next_line)

    def _flush(self, next_line: str | None) -> str:
        fragments: list[str] = []
        while self.entangled:
            head = self.entangled[0]
            if BEGIN_SAFEPOINT.fullmatch(head) and not (
                len(self.entangled) > 1 and LEAVING_SAFEPOINT.fullmatch(self.entangled[1])
            ):
                if _matches(LEAVING_SAFEPOINT, next_line):
                    # Its bracket closes on the next line.
                    self.entangled.pop(0)
                    self.tokens.add(UNIFIED_SAFEPOINT)
                    fragments.append(self._new_line(head))
                # Otherwise it may still be a standalone safepoint; keep waiting.
                break
            fragments.append(self._new_line(self._take_entangled()))
        return "".join(fragments)

    def _take_entangled(self) -> str:
        """Pop the next parked line, joining a parked safepoint bracket back together."""
        text = self.entangled.pop(0)
        if BEGIN_SAFEPOINT.fullmatch(text):
            while self.entangled and LEAVING_SAFEPOINT.fullmatch(self.entangled[0]):
                text += self.entangled.pop(0)
                if self.entangled and END_SAFEPOINT.fullmatch(self.entangled[0]):
                    text += self.entangled.pop(0)
        return text

    def _stray(self, line: str) -> str:
        """A detail or end line with no event open: pass it through on its own line."""
        logger.debug("Stray line %d outside any open event: %s", self.line_number, line)
        self.diagnostics.append(
            Diagnostic(
                reason=DiagnosticReason.STRAY_LINE,
                text=line,
                line_number=self.line_number,
            )
        )
        return self._new_line(line)

    def _new_line(self, text: str) -> str:
        if self.context.emitted:
            return LINE_SEPARATOR + text
        self.context.emitted = True
        return text


# ============================================================
# DRIVERS
# ============================================================


class _LineJoiner:
    """Turns the fragment stream into complete canonical lines."""

    def __init__(self) -> None:
        self.pending: list[str] = []
        self.start = 0

    def push(self, fragment: str, line_number: int) -> Iterator[tuple[int, CanonicalLine]]:
        head, *rest = fragment.split(LINE_SEPARATOR)
        self._extend(head, line_number)
        for text in rest:
            yield from self.drain()
            self._extend(text, line_number)

    def drain(self) -> Iterator[tuple[int, CanonicalLine]]:
        if self.pending:
            line = "".join(self.pending)
            self.pending = []
            yield self.start, line

    def discard(self) -> tuple[int, str] | None:
        if not self.pending:
            return None
        dropped = (self.start, "".join(self.pending))
        self.pending = []
        return dropped

    def _extend(self, text: str, line_number: int) -> None:
        if text:
            if not self.pending:
                self.start = line_number
            self.pending.append(text)


def _windows(lines: Iterable[RawLine]) -> Iterator[tuple[RawLine | None, RawLine, RawLine | None]]:
    """Yield (prior, line, next) for every line."""
    prior: RawLine | None = None
    current: RawLine | None = None
    for following in lines:
        following = following.rstrip("\r\n")
        if current is not None:
            yield prior, current, following
            prior = current
        current = following
    if current is not None:
        yield prior, current, None


def preprocess_numbered(
    lines: Iterable[RawLine], preprocessor: Preprocessor | None = None
) -> Iterator[tuple[int, CanonicalLine]]:
    """Canonical lines paired with the raw line number each one starts at."""
    preprocessor = preprocessor if preprocessor is not None else Preprocessor()
    joiner = _LineJoiner()

    for prior, line, next_line in _windows(lines):
        fragment = preprocessor.feed(prior, line, next_line)
        if fragment:
            yield from joiner.push(fragment, preprocessor.line_number)

    tail = preprocessor.finish()
    if preprocessor.partial and (dropped := joiner.discard()):
        line_number, text = dropped
        logger.warning("Discarding partially assembled event at line %d", line_number)
        preprocessor.diagnostics.append(
            Diagnostic(
                reason=DiagnosticReason.PARTIAL_EVENT,
                text=text,
                line_number=line_number,
            )
        )
    if tail:
        yield from joiner.push(tail, preprocessor.line_number)
    yield from joiner.drain()


def preprocess(lines: Iterable[RawLine], preprocessor: Preprocessor | None = None) -> Iterator[CanonicalLine]:
    """Reassemble raw lines into canonical lines, one per logical event."""
    for _, line in preprocess_numbered(lines, preprocessor):
        yield line
