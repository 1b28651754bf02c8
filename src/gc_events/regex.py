"""Regular expression fragments shared by the catalogue and the preprocessor.

Fragments are plain strings so they can be composed into larger patterns.
None of the decorator fragments define capture groups; callers wrap them in
a named group (usually ``decorator``) where the prefix is needed.
"""

from __future__ import annotations

# ============================================================
# TIMESTAMPS & DECORATORS
# ============================================================

# 2021-09-14T06:51:15.478-0500
DATESTAMP = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}[.,]\d{3}(?:[-+]\d{4}|Z)"

# 28039.161 (uptime in seconds, always millisecond precision)
UPTIME_SECONDS = r"\d{1,10}[.,]\d{3}"

# 5355ms
UPTIME_MILLIS = r"\d{1,13}ms"

LEVEL = r"(?:trace|debug|info|warning|error)"

# [gc,phases,start] or [gc,start       ]
TAGS = r"[a-z][a-z0-9_]*(?:,[a-z0-9_]+)*[ ]*"

# Unified logging decorator: [time][uptime][pid][tid][level][tags] GC(n)
UNIFIED_DECORATOR = (
    r"\[(?:" + DATESTAMP + r"|" + UPTIME_SECONDS + r"s|" + UPTIME_MILLIS + r")\]"
    r"(?:\[(?:" + UPTIME_SECONDS + r"s|" + UPTIME_MILLIS + r")\])?"
    r"(?:\[\d{1,10}\]){0,2}"
    r"(?:\[" + LEVEL + r"[ ]*\])?"
    r"(?:\[" + TAGS + r"\])?"
    r"(?: GC\(\d{1,8}\))?"
)

# Legacy decorator. Datestamps and uptimes may be duplicated, glued together
# without a separator, or carry a misplaced colon.
LEGACY_DECORATOR = r"(?:" + DATESTAMP + r"|" + UPTIME_SECONDS + r"|:|[ ])*"

# Timestamp embedded inside a legacy event body, e.g. "1.234: [DefNew: ..."
LEGACY_TIMESTAMP = r"(?:" + DATESTAMP + r": )?(?:" + UPTIME_SECONDS + r": )?"

# ============================================================
# SIZES, DURATIONS, TIMES
# ============================================================

SIZE = r"\d{1,12}(?:[.,]\d{1,3})?[BKMG]"

# 0.914ms
DURATION_MS = r"\d{1,7}[.,]\d{3}ms"

# 0.0346620 secs
DURATION_SECS = r"\d{1,7}[.,]\d{7}"

TIMES_UNIFIED = r" User=\d{1,5}[.,]\d{2}s Sys=\d{1,5}[.,]\d{2}s Real=\d{1,5}[.,]\d{2}s"

# Trigger text inside parentheses. The vocabulary lives in triggers.py; the
# catalogue accepts any text so unrecognized causes still classify.
TRIGGER_TEXT = r"System\.gc\(\)|[^()]+?"

# Triggers only the G1 collector reports.
G1_TRIGGERS = r"G1 Evacuation Pause|G1 Humongous Allocation|G1 Preventive Collection|G1 Compaction Pause"

G1_YOUNG_TYPES = r"Normal|Prepare Mixed|Concurrent Start|Concurrent Undo Cycle"


def size(name: str) -> str:
    """Named size token such as ``1016K``."""
    return r"(?P<" + name + r">" + SIZE + r")"


def occupancy(prefix: str) -> str:
    """Named ``before->after(capacity)`` triple, e.g. ``1016K->128K(1152K)``."""
    return (
        size(prefix + "_before")
        + r"->"
        + size(prefix + "_after")
        + r"\("
        + size(prefix + "_capacity")
        + r"\)"
    )


def duration_ms(name: str = "duration_ms") -> str:
    """Named unified duration; the group captures the number without ``ms``."""
    return r"(?P<" + name + r">\d{1,7}[.,]\d{3})ms"


def duration_secs(name: str = "duration_secs") -> str:
    """Named legacy duration in seconds; the group captures the number only."""
    return r"(?P<" + name + r">" + DURATION_SECS + r")"


def times_unified() -> str:
    """Named unified cpu times: ``User=0.01s Sys=0.00s Real=0.01s``."""
    return (
        r" User=(?P<user>\d{1,5}[.,]\d{2})s"
        r" Sys=(?P<sys>\d{1,5}[.,]\d{2})s"
        r" Real=(?P<real>\d{1,5}[.,]\d{2})s"
    )


def times_legacy() -> str:
    """Named legacy cpu times: ``[Times: user=0.98 sys=0.00, real=0.33 secs]``."""
    return (
        r" \[Times: user=(?P<user>\d{1,5}[.,]\d{2})"
        r" sys=(?P<sys>\d{1,5}[.,]\d{2}),"
        r" real=(?P<real>\d{1,5}[.,]\d{2}) secs\]"
    )
