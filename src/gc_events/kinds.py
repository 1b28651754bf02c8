"""Event kind catalogue tags and the capability queries over them.

``EventKind`` is the closed set of event shapes the classifier can return.
Everything that used to be a marker interface on an event class (blocking,
young/old collection, combined memory, trigger) is a pure function of the
tag here, so it can be asked without building an event.
"""

from __future__ import annotations

from enum import Enum


class CollectorFamily(str, Enum):
    """Garbage collector that produced an event."""

    SERIAL = "Serial"
    PARALLEL = "Parallel"
    CMS = "CMS"
    G1 = "G1"
    SHENANDOAH = "Shenandoah"
    Z = "Z"
    UNKNOWN = "Unknown"


class EventKind(str, Enum):
    """Tag of the event variant a canonical line was classified as."""

    # Unified logging (JDK 9+)
    UNIFIED_SERIAL_NEW = "UNIFIED_SERIAL_NEW"
    UNIFIED_PARALLEL_SCAVENGE = "UNIFIED_PARALLEL_SCAVENGE"
    UNIFIED_PAR_NEW = "UNIFIED_PAR_NEW"
    UNIFIED_SERIAL_OLD = "UNIFIED_SERIAL_OLD"
    UNIFIED_PARALLEL_COMPACTING_OLD = "UNIFIED_PARALLEL_COMPACTING_OLD"
    UNIFIED_G1_YOUNG_PAUSE = "UNIFIED_G1_YOUNG_PAUSE"
    UNIFIED_G1_MIXED_PAUSE = "UNIFIED_G1_MIXED_PAUSE"
    UNIFIED_G1_FULL_GC = "UNIFIED_G1_FULL_GC"
    UNIFIED_YOUNG = "UNIFIED_YOUNG"
    UNIFIED_OLD = "UNIFIED_OLD"
    UNIFIED_CMS_INITIAL_MARK = "UNIFIED_CMS_INITIAL_MARK"
    UNIFIED_REMARK = "UNIFIED_REMARK"
    UNIFIED_G1_CLEANUP = "UNIFIED_G1_CLEANUP"
    UNIFIED_CONCURRENT = "UNIFIED_CONCURRENT"
    UNIFIED_SAFEPOINT = "UNIFIED_SAFEPOINT"
    UNIFIED_HEADER = "UNIFIED_HEADER"

    # Legacy logging (JDK 8 and earlier)
    SERIAL_NEW = "SERIAL_NEW"
    SERIAL_OLD = "SERIAL_OLD"
    PARALLEL_SCAVENGE = "PARALLEL_SCAVENGE"
    PARALLEL_SERIAL_OLD = "PARALLEL_SERIAL_OLD"
    PARALLEL_COMPACTING_OLD = "PARALLEL_COMPACTING_OLD"
    PAR_NEW = "PAR_NEW"
    PAR_NEW_PROMOTION_FAILED = "PAR_NEW_PROMOTION_FAILED"
    CMS_INITIAL_MARK = "CMS_INITIAL_MARK"
    CMS_REMARK = "CMS_REMARK"
    CMS_CONCURRENT = "CMS_CONCURRENT"
    CMS_CONCURRENT_MODE_FAILURE = "CMS_CONCURRENT_MODE_FAILURE"
    G1_YOUNG_PAUSE = "G1_YOUNG_PAUSE"
    G1_MIXED_PAUSE = "G1_MIXED_PAUSE"
    G1_REMARK = "G1_REMARK"
    G1_CLEANUP = "G1_CLEANUP"
    G1_CONCURRENT = "G1_CONCURRENT"
    VERBOSE_GC_YOUNG = "VERBOSE_GC_YOUNG"
    VERBOSE_GC_OLD = "VERBOSE_GC_OLD"
    APPLICATION_STOPPED_TIME = "APPLICATION_STOPPED_TIME"

    UNKNOWN = "UNKNOWN"


_COLLECTORS: dict[EventKind, CollectorFamily] = {
    EventKind.UNIFIED_SERIAL_NEW: CollectorFamily.SERIAL,
    EventKind.UNIFIED_SERIAL_OLD: CollectorFamily.SERIAL,
    EventKind.UNIFIED_PARALLEL_SCAVENGE: CollectorFamily.PARALLEL,
    EventKind.UNIFIED_PARALLEL_COMPACTING_OLD: CollectorFamily.PARALLEL,
    EventKind.UNIFIED_PAR_NEW: CollectorFamily.CMS,
    EventKind.UNIFIED_CMS_INITIAL_MARK: CollectorFamily.CMS,
    EventKind.UNIFIED_G1_YOUNG_PAUSE: CollectorFamily.G1,
    EventKind.UNIFIED_G1_MIXED_PAUSE: CollectorFamily.G1,
    EventKind.UNIFIED_G1_FULL_GC: CollectorFamily.G1,
    EventKind.UNIFIED_G1_CLEANUP: CollectorFamily.G1,
    EventKind.SERIAL_NEW: CollectorFamily.SERIAL,
    EventKind.SERIAL_OLD: CollectorFamily.SERIAL,
    EventKind.PARALLEL_SCAVENGE: CollectorFamily.PARALLEL,
    EventKind.PARALLEL_SERIAL_OLD: CollectorFamily.PARALLEL,
    EventKind.PARALLEL_COMPACTING_OLD: CollectorFamily.PARALLEL,
    EventKind.PAR_NEW: CollectorFamily.CMS,
    EventKind.PAR_NEW_PROMOTION_FAILED: CollectorFamily.CMS,
    EventKind.CMS_INITIAL_MARK: CollectorFamily.CMS,
    EventKind.CMS_REMARK: CollectorFamily.CMS,
    EventKind.CMS_CONCURRENT: CollectorFamily.CMS,
    EventKind.CMS_CONCURRENT_MODE_FAILURE: CollectorFamily.CMS,
    EventKind.G1_YOUNG_PAUSE: CollectorFamily.G1,
    EventKind.G1_MIXED_PAUSE: CollectorFamily.G1,
    EventKind.G1_REMARK: CollectorFamily.G1,
    EventKind.G1_CLEANUP: CollectorFamily.G1,
    EventKind.G1_CONCURRENT: CollectorFamily.G1,
}

_YOUNG = frozenset(
    {
        EventKind.UNIFIED_SERIAL_NEW,
        EventKind.UNIFIED_PARALLEL_SCAVENGE,
        EventKind.UNIFIED_PAR_NEW,
        EventKind.UNIFIED_G1_YOUNG_PAUSE,
        EventKind.UNIFIED_G1_MIXED_PAUSE,
        EventKind.UNIFIED_YOUNG,
        EventKind.SERIAL_NEW,
        EventKind.PARALLEL_SCAVENGE,
        EventKind.PAR_NEW,
        EventKind.G1_YOUNG_PAUSE,
        EventKind.G1_MIXED_PAUSE,
        EventKind.VERBOSE_GC_YOUNG,
    }
)

_OLD = frozenset(
    {
        EventKind.UNIFIED_SERIAL_OLD,
        EventKind.UNIFIED_PARALLEL_COMPACTING_OLD,
        EventKind.UNIFIED_G1_FULL_GC,
        EventKind.UNIFIED_OLD,
        EventKind.SERIAL_OLD,
        EventKind.PARALLEL_SERIAL_OLD,
        EventKind.PARALLEL_COMPACTING_OLD,
        EventKind.PAR_NEW_PROMOTION_FAILED,
        EventKind.CMS_CONCURRENT_MODE_FAILURE,
        EventKind.VERBOSE_GC_OLD,
    }
)

_CONCURRENT = frozenset(
    {
        EventKind.UNIFIED_CONCURRENT,
        EventKind.CMS_CONCURRENT,
        EventKind.G1_CONCURRENT,
    }
)

_SAFEPOINT = frozenset({EventKind.UNIFIED_SAFEPOINT, EventKind.APPLICATION_STOPPED_TIME})

# Blocking pauses that are neither young nor old collections.
_OTHER_BLOCKING = frozenset(
    {
        EventKind.UNIFIED_CMS_INITIAL_MARK,
        EventKind.UNIFIED_REMARK,
        EventKind.UNIFIED_G1_CLEANUP,
        EventKind.CMS_INITIAL_MARK,
        EventKind.CMS_REMARK,
        EventKind.G1_REMARK,
        EventKind.G1_CLEANUP,
    }
)

_NOT_COMBINED = frozenset(
    {
        EventKind.UNIFIED_CONCURRENT,
        EventKind.UNIFIED_SAFEPOINT,
        EventKind.UNIFIED_HEADER,
        EventKind.CMS_CONCURRENT,
        EventKind.G1_CONCURRENT,
        EventKind.G1_REMARK,
        EventKind.APPLICATION_STOPPED_TIME,
        EventKind.UNKNOWN,
    }
)

_TRIGGERED = frozenset(
    (_YOUNG | _OLD | {EventKind.CMS_INITIAL_MARK, EventKind.CMS_REMARK})
    - {EventKind.PAR_NEW_PROMOTION_FAILED}
)

_NON_EVENTS = frozenset({EventKind.UNIFIED_HEADER, EventKind.UNKNOWN})


def collector_of(kind: EventKind) -> CollectorFamily:
    """Collector family implied by the kind alone (``UNKNOWN`` when shared)."""
    return _COLLECTORS.get(kind, CollectorFamily.UNKNOWN)


def is_young(kind: EventKind) -> bool:
    return kind in _YOUNG


def is_old(kind: EventKind) -> bool:
    return kind in _OLD


def is_concurrent(kind: EventKind) -> bool:
    return kind in _CONCURRENT


def is_safepoint(kind: EventKind) -> bool:
    return kind in _SAFEPOINT


def is_blocking(kind: EventKind) -> bool:
    """Whether the event stops application threads."""
    return kind in _YOUNG or kind in _OLD or kind in _OTHER_BLOCKING or kind in _SAFEPOINT


def is_unified(kind: EventKind) -> bool:
    return kind.value.startswith("UNIFIED_")


def is_event(kind: EventKind) -> bool:
    """Whether lines of this kind become events (headers and unknowns do not)."""
    return kind not in _NON_EVENTS


def reports_combined(kind: EventKind) -> bool:
    """Whether the kind carries combined young + old occupancy."""
    return kind not in _NOT_COMBINED


def reports_trigger(kind: EventKind) -> bool:
    return kind in _TRIGGERED


def is_end_anchored(kind: EventKind) -> bool:
    """Whether the logged timestamp marks the end of the event rather than its start.

    Unified logging stamps a pause when it completes; legacy logging stamps it
    when it begins. Stopped-time summaries are written once the threads resume.
    """
    if kind is EventKind.APPLICATION_STOPPED_TIME:
        return True
    return is_unified(kind) and is_blocking(kind)
