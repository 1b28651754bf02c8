"""Ordered pattern catalogue.

Each entry pairs an event kind with one compiled pattern. Entries are tried
in declaration order and the first full match wins, so the more qualified
shape of a line is always declared before the generic shape it overlaps
(``Pause Young (Normal) (G1 Evacuation Pause)`` before ``Pause Young
(...)``). A kind may have several entries when its log shape varies.

The table is built once at import and never written to afterwards.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import NamedTuple

from gc_events.kinds import CollectorFamily, EventKind
from gc_events.regex import (
    DURATION_SECS,
    G1_TRIGGERS,
    G1_YOUNG_TYPES,
    LEGACY_DECORATOR,
    LEGACY_TIMESTAMP,
    SIZE,
    TRIGGER_TEXT,
    UNIFIED_DECORATOR,
    duration_ms,
    duration_secs,
    occupancy,
    times_legacy,
    times_unified,
)


class CatalogueEntry(NamedTuple):
    """One (kind, pattern) row.

    ``guard`` is a literal substring every matching line contains; it is
    checked before the regex runs. ``loose`` entries are searched instead of
    fully matched and are reserved for composite lines that report several
    collections at once.
    """

    kind: EventKind
    collector: CollectorFamily
    guard: str
    pattern: re.Pattern[str]
    loose: bool = False

    def match(self, line: str) -> re.Match[str] | None:
        if self.guard not in line:
            return None
        if self.loose:
            return self.pattern.search(line)
        return self.pattern.fullmatch(line)


# ============================================================
# UNIFIED LOGGING FRAGMENTS
# ============================================================

_U_DECORATOR = r"(?P<decorator>" + UNIFIED_DECORATOR + r")"
_U_TRIGGER = r" \((?P<trigger>" + TRIGGER_TEXT + r")\)"
_U_G1_TRIGGER = r" \((?P<trigger>" + G1_TRIGGERS + r")\)"

# Canonical pause tail: combined occupancy, duration, optional cpu times.
_U_TAIL = r" " + occupancy("combined") + r" " + duration_ms() + r"(?:" + times_unified() + r")?[ ]*"


def _u_space(names: str, generation: str) -> str:
    return r" (?:" + names + r"): " + occupancy(generation)


_U_METASPACE = r" Metaspace: " + occupancy("metaspace")
_U_OPTIONAL_METASPACE = r"(?:" + _U_METASPACE + r")?"

_U_STOPPED = (
    r" Total time for which application threads were stopped: "
    r"(?P<stopped>\d{1,4}[.,]\d{7}) seconds, "
    r"Stopping threads took: (?P<stopping>\d{1,4}[.,]\d{7}) seconds[ ]*"
)

_U_CONCURRENT_PHASES = (
    r"Abortable Preclean|Clear Claimed Marks|Cleanup for Next Mark|Complete Cleanup|"
    r"Create Live Data|Cycle|Mark Abort|Mark Cycle|Mark From Roots|Mark|Preclean|"
    r"Rebuild Remembered Sets(?: and Scrub Regions)?|Reset|Scan Root Regions|Sweep|Undo Cycle"
)

_U_HEADERS = (
    r"Using (?P<collector_name>Serial|Parallel|Concurrent Mark Sweep|G1|Shenandoah|"
    r"The Z Garbage Collector)|"
    r"Version:|CPUs:|Memory:|Large Page Support:|NUMA Support:|Compressed Oops:|"
    r"Heap (?:Min|Initial|Max) Capacity:|Heap Region Size:|Pre-touch:|Parallel Workers:|"
    r"Concurrent (?:Refinement )?Workers:|Periodic GC:|CardTable entry size:|Alignments:|"
    r"Heap address:|Narrow klass base:|Compressed class space mapped at:|"
    r"CDS archive\(s\) mapped at:|Humongous object threshold:|Initialize mark stack"
)


def _unified(head: str, *parts: str) -> re.Pattern[str]:
    return re.compile(_U_DECORATOR + head + "".join(parts))


# ============================================================
# LEGACY LOGGING FRAGMENTS
# ============================================================

_L_DECORATOR = r"(?P<decorator>" + LEGACY_DECORATOR + r")"
_L_TRIGGER = r"(?: \((?P<trigger>" + TRIGGER_TEXT + r")\))?"
_L_SECS = r", " + duration_secs() + r" secs\]"
_L_TIMES = r"(?:" + times_legacy() + r")?[ ]*"
_L_INNER_SECS = r", " + DURATION_SECS + r" secs\]"
_L_PERM_OR_METASPACE = (
    r"(?:,? \[(?:(?:PSPermGen|CMS Perm |Perm ): "
    + occupancy("perm")
    + r"|Metaspace: "
    + occupancy("metaspace")
    + r")\])?"
)

# Trailing totals of a composite line: "... ] 8K->6K(9K), [CMS Perm : ...], 2.5 secs]"
_L_COMPOSITE_TAIL = (
    r".*\] " + occupancy("combined") + r",(?: \[[^\]]*\],)? " + duration_secs() + r" secs\]"
)

_G1_CONCURRENT_PHASES = (
    r"root-region-scan-start|root-region-scan-end|mark-start|mark-end|"
    r"mark-reset-for-overflow|mark-abort|cleanup-start|cleanup-end|string-deduplication"
)


def _legacy(body: str) -> re.Pattern[str]:
    return re.compile(_L_DECORATOR + body)


# ============================================================
# THE CATALOGUE
# ============================================================

CATALOGUE: tuple[CatalogueEntry, ...] = (
    # --- unified: collector specific pauses (preprocessed) ---
    CatalogueEntry(
        EventKind.UNIFIED_SERIAL_NEW,
        CollectorFamily.SERIAL,
        "DefNew",
        _unified(
            r" Pause Young",
            _U_TRIGGER,
            _u_space("DefNew", "young"),
            _u_space("Tenured", "old"),
            _U_OPTIONAL_METASPACE,
            _U_TAIL,
        ),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_PARALLEL_SCAVENGE,
        CollectorFamily.PARALLEL,
        "PSYoungGen",
        _unified(
            r" Pause Young",
            _U_TRIGGER,
            _u_space("PSYoungGen", "young"),
            _u_space("ParOldGen|PSOldGen", "old"),
            _U_OPTIONAL_METASPACE,
            _U_TAIL,
        ),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_PAR_NEW,
        CollectorFamily.CMS,
        "ParNew",
        _unified(
            r" Pause Young",
            _U_TRIGGER,
            _u_space("ParNew", "young"),
            _u_space("CMS", "old"),
            _U_OPTIONAL_METASPACE,
            _U_TAIL,
        ),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_SERIAL_OLD,
        CollectorFamily.SERIAL,
        "Tenured",
        _unified(
            r" Pause Full",
            _U_TRIGGER,
            r"(?:" + _u_space("DefNew", "young") + r")?",
            _u_space("Tenured", "old"),
            _U_OPTIONAL_METASPACE,
            _U_TAIL,
        ),
    ),
    # Parallel collector running the serial old collector (-XX:-UseParallelOldGC)
    CatalogueEntry(
        EventKind.UNIFIED_SERIAL_OLD,
        CollectorFamily.PARALLEL,
        "PSOldGen",
        _unified(
            r" Pause Full",
            _U_TRIGGER,
            _u_space("PSYoungGen", "young"),
            _u_space("PSOldGen", "old"),
            _U_OPTIONAL_METASPACE,
            _U_TAIL,
        ),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_PARALLEL_COMPACTING_OLD,
        CollectorFamily.PARALLEL,
        "ParOldGen",
        _unified(
            r" Pause Full",
            _U_TRIGGER,
            _u_space("PSYoungGen", "young"),
            _u_space("ParOldGen", "old"),
            _U_OPTIONAL_METASPACE,
            _U_TAIL,
        ),
    ),
    # --- unified: G1 ---
    CatalogueEntry(
        EventKind.UNIFIED_G1_MIXED_PAUSE,
        CollectorFamily.G1,
        "Pause Young (Mixed)",
        _unified(r" Pause Young \(Mixed\)", _U_TRIGGER, _U_OPTIONAL_METASPACE, _U_TAIL),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_G1_YOUNG_PAUSE,
        CollectorFamily.G1,
        "Pause Young (",
        _unified(
            r" Pause Young \((?P<type>" + G1_YOUNG_TYPES + r")\)",
            _U_TRIGGER,
            _U_OPTIONAL_METASPACE,
            _U_TAIL,
        ),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_G1_YOUNG_PAUSE,
        CollectorFamily.G1,
        "Pause Young (G1 ",
        _unified(r" Pause Young", _U_G1_TRIGGER, _U_OPTIONAL_METASPACE, _U_TAIL),
    ),
    # Only G1 reports metaspace without any generation detail
    CatalogueEntry(
        EventKind.UNIFIED_G1_YOUNG_PAUSE,
        CollectorFamily.G1,
        "Metaspace",
        _unified(r" Pause Young", _U_TRIGGER, _U_METASPACE, _U_TAIL),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_G1_FULL_GC,
        CollectorFamily.G1,
        "Pause Full (G1 ",
        _unified(r" Pause Full", _U_G1_TRIGGER, _U_OPTIONAL_METASPACE, _U_TAIL),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_G1_FULL_GC,
        CollectorFamily.G1,
        "Metaspace",
        _unified(r" Pause Full", _U_TRIGGER, _U_METASPACE, _U_TAIL),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_G1_CLEANUP,
        CollectorFamily.G1,
        "Pause Cleanup",
        _unified(r" Pause Cleanup", _U_TAIL),
    ),
    # --- unified: other blocking phases ---
    CatalogueEntry(
        EventKind.UNIFIED_CMS_INITIAL_MARK,
        CollectorFamily.CMS,
        "Pause Initial Mark",
        _unified(r" Pause Initial Mark", _U_TAIL),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_REMARK,
        CollectorFamily.UNKNOWN,
        "Pause Remark",
        _unified(r" Pause Remark", _U_TAIL),
    ),
    # --- unified: generic fallbacks ---
    CatalogueEntry(
        EventKind.UNIFIED_YOUNG,
        CollectorFamily.UNKNOWN,
        "Pause Young",
        _unified(r" Pause Young", _U_TRIGGER, _U_TAIL),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_OLD,
        CollectorFamily.UNKNOWN,
        "Pause Full",
        _unified(r" Pause Full", _U_TRIGGER, _U_TAIL),
    ),
    # --- unified: concurrent, safepoint, header ---
    CatalogueEntry(
        EventKind.UNIFIED_CONCURRENT,
        CollectorFamily.UNKNOWN,
        " Concurrent ",
        _unified(
            r" Concurrent (?P<phase>" + _U_CONCURRENT_PHASES + r")",
            r"(?: \(\d{1,7}[.,]\d{3}s(?:, \d{1,7}[.,]\d{3}s)?\))?",
            r"(?: " + duration_ms() + r")?",
            r"(?:" + times_unified() + r")?[ ]*",
        ),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_SAFEPOINT,
        CollectorFamily.UNKNOWN,
        "Entering safepoint region",
        _unified(
            r" Entering safepoint region: (?P<operation>\w+)",
            r"(?P<leaving_decorator>" + UNIFIED_DECORATOR + r") Leaving safepoint region",
            r"(?P<end_decorator>" + UNIFIED_DECORATOR + r")",
            _U_STOPPED,
        ),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_SAFEPOINT,
        CollectorFamily.UNKNOWN,
        "Total time for which",
        _unified(_U_STOPPED),
    ),
    CatalogueEntry(
        EventKind.UNIFIED_HEADER,
        CollectorFamily.UNKNOWN,
        "",
        _unified(r" (?:" + _U_HEADERS + r").*"),
    ),
    # --- legacy: composite lines reporting a failed collection ---
    CatalogueEntry(
        EventKind.PAR_NEW_PROMOTION_FAILED,
        CollectorFamily.CMS,
        "promotion failed",
        re.compile(
            r"^" + _L_DECORATOR + r"\[GC" + _L_TRIGGER + r" .*?\[ParNew \(promotion failed\)"
            + _L_COMPOSITE_TAIL
            + _L_TIMES
        ),
        loose=True,
    ),
    CatalogueEntry(
        EventKind.CMS_CONCURRENT_MODE_FAILURE,
        CollectorFamily.CMS,
        "concurrent mode failure",
        re.compile(
            r"^" + _L_DECORATOR + r"\[(?:Full )?GC" + _L_TRIGGER + r" .*?\(concurrent mode failure\)"
            + _L_COMPOSITE_TAIL
            + _L_TIMES
        ),
        loose=True,
    ),
    # --- legacy: serial ---
    CatalogueEntry(
        EventKind.SERIAL_NEW,
        CollectorFamily.SERIAL,
        "DefNew",
        _legacy(
            r"\[GC" + _L_TRIGGER + r" " + LEGACY_TIMESTAMP + r"\[DefNew: " + occupancy("young")
            + _L_INNER_SECS + r" " + occupancy("combined") + _L_SECS + _L_TIMES
        ),
    ),
    CatalogueEntry(
        EventKind.SERIAL_OLD,
        CollectorFamily.SERIAL,
        "Tenured",
        _legacy(
            r"\[Full GC" + _L_TRIGGER + r" " + LEGACY_TIMESTAMP + r"\[Tenured: " + occupancy("old")
            + _L_INNER_SECS + r" " + occupancy("combined") + _L_PERM_OR_METASPACE + _L_SECS
            + _L_TIMES
        ),
    ),
    # --- legacy: parallel ---
    CatalogueEntry(
        EventKind.PARALLEL_SCAVENGE,
        CollectorFamily.PARALLEL,
        "PSYoungGen",
        _legacy(
            r"\[GC" + _L_TRIGGER + r"(?: ?--)? ?\[PSYoungGen: " + occupancy("young") + r"\] "
            + occupancy("combined") + _L_SECS + _L_TIMES
        ),
    ),
    CatalogueEntry(
        EventKind.PARALLEL_SERIAL_OLD,
        CollectorFamily.PARALLEL,
        "PSOldGen",
        _legacy(
            r"\[Full GC" + _L_TRIGGER + r" \[PSYoungGen: " + occupancy("young") + r"\] \[PSOldGen: "
            + occupancy("old") + r"\] " + occupancy("combined") + _L_PERM_OR_METASPACE + _L_SECS
            + _L_TIMES
        ),
    ),
    CatalogueEntry(
        EventKind.PARALLEL_COMPACTING_OLD,
        CollectorFamily.PARALLEL,
        "ParOldGen",
        _legacy(
            r"\[Full GC" + _L_TRIGGER + r" \[PSYoungGen: " + occupancy("young") + r"\] \[ParOldGen: "
            + occupancy("old") + r"\] " + occupancy("combined") + _L_PERM_OR_METASPACE + _L_SECS
            + _L_TIMES
        ),
    ),
    # --- legacy: CMS ---
    CatalogueEntry(
        EventKind.PAR_NEW,
        CollectorFamily.CMS,
        "ParNew",
        _legacy(
            r"\[GC" + _L_TRIGGER + r" " + LEGACY_TIMESTAMP + r"\[ParNew: " + occupancy("young")
            + _L_INNER_SECS + r" " + occupancy("combined") + _L_SECS + _L_TIMES
        ),
    ),
    CatalogueEntry(
        EventKind.CMS_INITIAL_MARK,
        CollectorFamily.CMS,
        "CMS-initial-mark",
        _legacy(
            r"\[GC" + _L_TRIGGER + r" " + LEGACY_TIMESTAMP + r"\[1 CMS-initial-mark: "
            r"(?P<old_before>" + SIZE + r")\((?P<old_capacity>" + SIZE + r")\)\] "
            r"(?P<combined_before>" + SIZE + r")\((?P<combined_capacity>" + SIZE + r")\)"
            + _L_SECS + _L_TIMES
        ),
    ),
    CatalogueEntry(
        EventKind.CMS_REMARK,
        CollectorFamily.CMS,
        "CMS-remark",
        _legacy(
            r"\[GC" + _L_TRIGGER + r" .*?\[1 CMS-remark: "
            r"(?P<old_before>" + SIZE + r")\((?P<old_capacity>" + SIZE + r")\)\] "
            r"(?P<combined_before>" + SIZE + r")\((?P<combined_capacity>" + SIZE + r")\)"
            + _L_SECS + _L_TIMES
        ),
    ),
    CatalogueEntry(
        EventKind.CMS_CONCURRENT,
        CollectorFamily.CMS,
        "CMS-concurrent-",
        _legacy(
            r"\[CMS-concurrent-(?P<phase>[a-z-]+?)(?:-start)?"
            r"(?:: (?P<cpu>\d{1,7}[.,]\d{3})/(?P<wall>\d{1,7}[.,]\d{3}) secs)?\]" + _L_TIMES
        ),
    ),
    # --- legacy: G1 ---
    CatalogueEntry(
        EventKind.G1_MIXED_PAUSE,
        CollectorFamily.G1,
        "(mixed)",
        _legacy(
            r"\[GC pause" + _L_TRIGGER + r" \(mixed\)(?: \([a-z -]+\))* " + occupancy("combined")
            + _L_SECS + _L_TIMES
        ),
    ),
    CatalogueEntry(
        EventKind.G1_YOUNG_PAUSE,
        CollectorFamily.G1,
        "(young)",
        _legacy(
            r"\[GC pause" + _L_TRIGGER + r" \(young\)(?: \([a-z -]+\))* " + occupancy("combined")
            + _L_SECS + _L_TIMES
        ),
    ),
    CatalogueEntry(
        EventKind.G1_REMARK,
        CollectorFamily.G1,
        "GC remark",
        _legacy(r"\[GC remark.*?" + _L_SECS + _L_TIMES),
    ),
    CatalogueEntry(
        EventKind.G1_CLEANUP,
        CollectorFamily.G1,
        "GC cleanup",
        _legacy(r"\[GC cleanup " + occupancy("combined") + _L_SECS + _L_TIMES),
    ),
    # Tolerates the truncated and garbled variants older JDKs wrote.
    CatalogueEntry(
        EventKind.G1_CONCURRENT,
        CollectorFamily.G1,
        "GC concurrent-",
        _legacy(
            r"\[GC concurrent-(?P<phase>" + _G1_CONCURRENT_PHASES + r")"
            r"(?:, (?:.*, )?" + duration_secs() + r"(?: secs?)?)?\].*"
        ),
    ),
    # --- legacy: generic fallbacks ---
    CatalogueEntry(
        EventKind.VERBOSE_GC_OLD,
        CollectorFamily.UNKNOWN,
        "[Full GC",
        _legacy(r"\[Full GC" + _L_TRIGGER + r" {1,2}" + occupancy("combined") + _L_SECS + _L_TIMES),
    ),
    CatalogueEntry(
        EventKind.VERBOSE_GC_YOUNG,
        CollectorFamily.UNKNOWN,
        "[GC",
        _legacy(r"\[GC" + _L_TRIGGER + r" {1,2}" + occupancy("combined") + _L_SECS + _L_TIMES),
    ),
    CatalogueEntry(
        EventKind.APPLICATION_STOPPED_TIME,
        CollectorFamily.UNKNOWN,
        "Total time for which",
        _legacy(
            r"Total time for which application threads were stopped: "
            r"(?P<stopped>\d{1,4}[.,]\d{7}) seconds"
            r"(?:, Stopping threads took: (?P<stopping>\d{1,4}[.,]\d{7}) seconds)?[ ]*"
        ),
    ),
)


@lru_cache(maxsize=None)
def active_entries(collector: CollectorFamily | None = None) -> tuple[CatalogueEntry, ...]:
    """Entries for a declared collector family, plus the family-neutral ones."""
    if collector is None or collector is CollectorFamily.UNKNOWN:
        return CATALOGUE
    return tuple(
        entry
        for entry in CATALOGUE
        if entry.collector is collector or entry.collector is CollectorFamily.UNKNOWN
    )
