"""Trigger vocabulary: why a collection happened."""

from __future__ import annotations

import re
from enum import Enum


class Trigger(str, Enum):
    """Enumerated collection cause. Values are the phrasing the JVM logs."""

    METADATA_GC_CLEAR_SOFT_REFERENCES = "Metadata GC Clear Soft References"
    METADATA_GC_THRESHOLD = "Metadata GC Threshold"
    G1_HUMONGOUS_ALLOCATION = "G1 Humongous Allocation"
    G1_EVACUATION_PAUSE = "G1 Evacuation Pause"
    G1_PREVENTIVE_COLLECTION = "G1 Preventive Collection"
    G1_COMPACTION_PAUSE = "G1 Compaction Pause"
    GCLOCKER_INITIATED_GC = "GCLocker Initiated GC"
    HEAP_DUMP_INITIATED_GC = "Heap Dump Initiated GC"
    HEAP_INSPECTION_INITIATED_GC = "Heap Inspection Initiated GC"
    SYSTEM_GC = "System.gc()"
    ALLOCATION_FAILURE = "Allocation Failure"
    ERGONOMICS = "Ergonomics"
    CMS_INITIAL_MARK = "CMS Initial Mark"
    CMS_FINAL_REMARK = "CMS Final Remark"
    JVMTI_FORCED_GC = "JvmtiEnv ForceGarbageCollection"
    LAST_DITCH_COLLECTION = "Last ditch collection"
    WHITEBOX_YOUNG_GC = "WhiteBox Initiated Young GC"
    CLASS_HISTOGRAM = "Class Histogram"
    DIAGNOSTIC_COMMAND = "Diagnostic Command"
    PROMOTION_FAILED = "Promotion Failed"
    TO_SPACE_EXHAUSTED = "To-space exhausted"
    UNKNOWN = "Unknown"


# Ordered: the first matching alternative wins, so longer phrasings that share
# a prefix with a shorter one are declared first.
TRIGGER_VOCABULARY: tuple[tuple[Trigger, re.Pattern[str]], ...] = (
    (
        Trigger.METADATA_GC_CLEAR_SOFT_REFERENCES,
        re.compile(r"Metadata GC Clear Soft References"),
    ),
    (Trigger.METADATA_GC_THRESHOLD, re.compile(r"Metadata GC Threshold")),
    (Trigger.G1_HUMONGOUS_ALLOCATION, re.compile(r"G1 Humongous Allocation")),
    (Trigger.G1_EVACUATION_PAUSE, re.compile(r"G1 Evacuation Pause")),
    (Trigger.G1_PREVENTIVE_COLLECTION, re.compile(r"G1 Preventive Collection")),
    (Trigger.G1_COMPACTION_PAUSE, re.compile(r"G1 Compaction Pause")),
    (Trigger.GCLOCKER_INITIATED_GC, re.compile(r"GCLocker Initiated GC")),
    (Trigger.HEAP_DUMP_INITIATED_GC, re.compile(r"Heap Dump Initiated GC")),
    (Trigger.HEAP_INSPECTION_INITIATED_GC, re.compile(r"Heap Inspection Initiated GC")),
    # JDK 6 logged plain "System"
    (Trigger.SYSTEM_GC, re.compile(r"System(?:\.gc\(\))?")),
    (Trigger.ALLOCATION_FAILURE, re.compile(r"Allocation Failure")),
    (Trigger.ERGONOMICS, re.compile(r"Ergonomics")),
    (Trigger.CMS_INITIAL_MARK, re.compile(r"CMS Initial Mark")),
    (Trigger.CMS_FINAL_REMARK, re.compile(r"CMS Final Remark")),
    (Trigger.JVMTI_FORCED_GC, re.compile(r"JvmtiEnv ForceGarbageCollection")),
    (Trigger.LAST_DITCH_COLLECTION, re.compile(r"Last ditch collection")),
    (Trigger.WHITEBOX_YOUNG_GC, re.compile(r"WhiteBox Initiated Young GC")),
    (Trigger.CLASS_HISTOGRAM, re.compile(r"Class Histogram")),
    (Trigger.DIAGNOSTIC_COMMAND, re.compile(r"Diagnostic Command")),
    (Trigger.PROMOTION_FAILED, re.compile(r"[Pp]romotion [Ff]ailed")),
    (Trigger.TO_SPACE_EXHAUSTED, re.compile(r"[Tt]o-space (?:exhausted|overflow)")),
)


def match_trigger(text: str | None) -> Trigger:
    """Map raw trigger text to the vocabulary; unrecognized text is ``UNKNOWN``."""
    if not text:
        return Trigger.UNKNOWN
    text = text.strip()
    for trigger, pattern in TRIGGER_VOCABULARY:
        if pattern.search(text):
            return trigger
    return Trigger.UNKNOWN
