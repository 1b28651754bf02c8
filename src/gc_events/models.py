"""Pydantic models for decorators, memory, events and diagnostics."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from gc_events.errors import MalformedFieldError
from gc_events.kinds import CollectorFamily, EventKind
from gc_events.triggers import Trigger

# ============================================================
# TYPE ALIASES
# ============================================================

RawLine: TypeAlias = str
CanonicalLine: TypeAlias = str
MillisValue: TypeAlias = int
MicrosValue: TypeAlias = int

# ============================================================
# MEMORY
# ============================================================


class MemoryUnit(str, Enum):
    BYTES = "B"
    KILOBYTES = "K"
    MEGABYTES = "M"
    GIGABYTES = "G"

    @property
    def factor(self) -> int:
        """Number of bytes in one unit."""
        return {"B": 1, "K": 1024, "M": 1024**2, "G": 1024**3}[self.value]


class Memory(BaseModel):
    """A size as logged: a number plus a unit.

    Always compare or add through ``bytes`` or ``kilobytes``; the raw value
    is only meaningful together with its unit.
    """

    model_config = ConfigDict(frozen=True)

    value: float
    unit: MemoryUnit = MemoryUnit.KILOBYTES

    @classmethod
    def parse(cls, token: str) -> Memory:
        """Parse a JVM size token like '1024K', '1.5M' or '0.0B'."""
        text = token.strip()
        if not text or text[-1].upper() not in "BKMG":
            raise MalformedFieldError("size", token)
        try:
            value = float(text[:-1].replace(",", "."))
        except ValueError as exc:
            raise MalformedFieldError("size", token) from exc
        return cls(value=value, unit=MemoryUnit(text[-1].upper()))

    @property
    def bytes(self) -> float:
        return self.value * self.unit.factor

    @property
    def kilobytes(self) -> int:
        return int(self.bytes / 1024)

    def convert_to(self, unit: MemoryUnit) -> Memory:
        return Memory(value=self.bytes / unit.factor, unit=unit)

    def __str__(self) -> str:
        if self.value == int(self.value):
            return f"{int(self.value)}{self.unit.value}"
        return f"{self.value}{self.unit.value}"


class Generation(str, Enum):
    """Heap area a memory triple describes. Values match extractor group prefixes."""

    YOUNG = "young"
    OLD = "old"
    COMBINED = "combined"
    METASPACE = "metaspace"
    PERM = "perm"


class SpaceUsage(BaseModel):
    """Occupancy of one generation before and after an event."""

    model_config = ConfigDict(frozen=True)

    generation: Generation
    before: Memory | None = None
    after: Memory | None = None
    capacity: Memory | None = None

    def violations(self) -> list[str]:
        """Occupancy values larger than the reported capacity."""
        if self.capacity is None:
            return []
        problems: list[str] = []
        for label, value in (("before", self.before), ("after", self.after)):
            if value is not None and value.bytes > self.capacity.bytes:
                problems.append(
                    f"{self.generation.value} occupancy {label} ({value}) "
                    f"exceeds capacity ({self.capacity})"
                )
        return problems


class TimesData(BaseModel):
    """CPU times reported with a pause, in milliseconds."""

    model_config = ConfigDict(frozen=True)

    user: MillisValue
    sys: MillisValue
    real: MillisValue


# ============================================================
# DECORATOR
# ============================================================


class Decorator(BaseModel):
    """Parsed line prefix.

    ``timestamp`` is the single resolved value in milliseconds: uptime when an
    uptime token is present, otherwise the datestamp as epoch milliseconds.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    timestamp: MillisValue = 0
    datestamp: datetime | None = None
    uptime_seconds: str | None = None
    uptime_millis: int | None = None
    level: str | None = None
    tags: tuple[str, ...] = ()
    gc_id: int | None = None
    malformed: bool = False


# ============================================================
# EVENTS
# ============================================================


class Event(BaseModel):
    """One logical GC event extracted from a canonical line."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    log_entry: CanonicalLine
    line_number: int | None = None

    timestamp: MillisValue  # start, ms after JVM start (or epoch ms if datestamp only)
    duration: MicrosValue = 0  # time application threads were stopped
    elapsed: MicrosValue | None = None  # wall time of a concurrent phase
    datestamp: datetime | None = None
    malformed_timestamp: bool = False  # no usable timestamp in the decorator

    collector: CollectorFamily = CollectorFamily.UNKNOWN
    trigger: Trigger | None = None
    gc_id: int | None = None
    phase: str | None = None
    safepoint_operation: str | None = None

    spaces: tuple[SpaceUsage, ...] = ()
    times: TimesData | None = None

    diagnostics: tuple[str, ...] = ()

    @property
    def end_timestamp(self) -> MillisValue:
        """Start plus duration, rounded to the nearest millisecond."""
        return self.timestamp + (self.duration + 500) // 1000

    def space(self, generation: Generation) -> SpaceUsage | None:
        for usage in self.spaces:
            if usage.generation is generation:
                return usage
        return None


# ============================================================
# PREPROCESSING STATE
# ============================================================


class PreprocessContext(BaseModel):
    """Cross-line state for one preprocessing pass over one file."""

    tokens: set[str] = Field(default_factory=set)
    entangled: list[str] = Field(default_factory=list)
    emitted: bool = False

    def reset(self) -> None:
        """Forget every open-event token; the entangled buffer is kept."""
        self.tokens.clear()


# ============================================================
# DIAGNOSTICS & RESULTS
# ============================================================


class DiagnosticReason(str, Enum):
    UNRECOGNIZED = "unrecognized"
    MALFORMED_TIMESTAMP = "malformed-timestamp"
    MALFORMED_FIELD = "malformed-field"
    STRAY_LINE = "stray-line"
    PARTIAL_EVENT = "partial-event"
    OUT_OF_ORDER = "out-of-order"


class Diagnostic(BaseModel):
    """A non-fatal problem found while parsing."""

    model_config = ConfigDict(frozen=True)

    reason: DiagnosticReason
    text: str
    line_number: int | None = None
    detail: str | None = None


class ParseOptions(BaseModel):
    """Knobs consumed by the pipeline. Defaults rely on auto-detection alone."""

    preprocess: bool = True
    collector: CollectorFamily | None = None
    check_capacity: bool = True
    check_ordering: bool = True


class ParseResult(BaseModel):
    """Everything one pass over one log produced."""

    events: list[Event] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    canonical_lines: list[CanonicalLine] = Field(default_factory=list)
    collector: CollectorFamily = CollectorFamily.UNKNOWN

    def unrecognized(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.reason is DiagnosticReason.UNRECOGNIZED]
