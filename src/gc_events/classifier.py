"""Event classifier: canonical line -> event kind."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from itertools import islice
from typing import NamedTuple

from gc_events.catalogue import active_entries
from gc_events.kinds import CollectorFamily, EventKind
from gc_events.regex import UNIFIED_DECORATOR

logger = logging.getLogger(__name__)

# Number of leading lines inspected when auto-detecting the collector.
DETECTION_SAMPLE_SIZE = 300

USING_COLLECTOR_PATTERN: re.Pattern[str] = re.compile(
    r"(?:" + UNIFIED_DECORATOR + r")? ?Using (?P<name>Serial|Parallel|Concurrent Mark Sweep|G1|"
    r"Shenandoah|The Z Garbage Collector)\s*$"
)

COLLECTOR_NAMES: dict[str, CollectorFamily] = {
    "Serial": CollectorFamily.SERIAL,
    "Parallel": CollectorFamily.PARALLEL,
    "Concurrent Mark Sweep": CollectorFamily.CMS,
    "G1": CollectorFamily.G1,
    "Shenandoah": CollectorFamily.SHENANDOAH,
    "The Z Garbage Collector": CollectorFamily.Z,
}

# Checked in order; the first family with a marker in the sample wins.
COLLECTOR_MARKERS: tuple[tuple[CollectorFamily, tuple[str, ...]], ...] = (
    (CollectorFamily.PARALLEL, ("PSYoungGen", "ParOldGen", "PSOldGen")),
    (CollectorFamily.G1, ("G1 Evacuation", "GC pause (", "G1 Humongous", "GC concurrent-")),
    (CollectorFamily.CMS, ("ParNew", "CMS-concurrent", "CMS-initial-mark")),
    (CollectorFamily.SERIAL, ("DefNew", "Tenured")),
    (CollectorFamily.SHENANDOAH, ("Shenandoah",)),
    (CollectorFamily.Z, ("ZGC", "Garbage Collection (")),
)


class Classification(NamedTuple):
    """Result of classifying one canonical line.

    ``match`` carries the named groups the extractor reads; it is ``None``
    for unknown lines. ``collector`` is the family the matching entry
    belongs to.
    """

    kind: EventKind
    match: re.Match[str] | None = None
    collector: CollectorFamily = CollectorFamily.UNKNOWN

    @property
    def entry_groups(self) -> dict[str, str | None]:
        return self.match.groupdict() if self.match else {}


UNKNOWN = Classification(EventKind.UNKNOWN)


def classify(line: str, collector: CollectorFamily | None = None) -> Classification:
    """Return the first catalogue entry that matches the whole line.

    A ``collector`` hint limits the catalogue to that family and the
    family-neutral entries. Lines nothing matches are ``UNKNOWN``; that is
    never an error.
    """
    for entry in active_entries(collector):
        if match := entry.match(line):
            return Classification(entry.kind, match, entry.collector)
    return UNKNOWN


def identify(line: str, collector: CollectorFamily | None = None) -> EventKind:
    """Shorthand for ``classify(line).kind``."""
    return classify(line, collector).kind


def detect_collector(lines: Iterable[str]) -> CollectorFamily:
    """Detect the collector family from the first lines of a log.

    A unified ``Using G1`` style header is authoritative. Otherwise the
    sample is searched for markers only one family logs.
    """
    sample = list(islice(lines, DETECTION_SAMPLE_SIZE))

    for line in sample:
        # Substring guard: only run regex if "Using " present
        if "Using " in line and (match := USING_COLLECTOR_PATTERN.search(line.rstrip())):
            return COLLECTOR_NAMES[match.group("name")]

    text = "".join(sample)
    for family, markers in COLLECTOR_MARKERS:
        if any(marker in text for marker in markers):
            logger.debug("Detected %s collector from log markers", family.value)
            return family

    logger.debug("Could not detect collector from %d sample lines", len(sample))
    return CollectorFamily.UNKNOWN
