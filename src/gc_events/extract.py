"""Structured extractor: canonical line + classification -> Event."""

from __future__ import annotations

from collections.abc import Callable

from gc_events.classifier import Classification
from gc_events.decorator import (
    micros_to_millis,
    millis_to_micros,
    resolve,
    seconds_to_micros,
    seconds_to_millis,
)
from gc_events.kinds import (
    CollectorFamily,
    EventKind,
    collector_of,
    is_concurrent,
    is_end_anchored,
    is_event,
    reports_trigger,
)
from gc_events.models import (
    CanonicalLine,
    Decorator,
    Event,
    Generation,
    Memory,
    MicrosValue,
    MillisValue,
    SpaceUsage,
    TimesData,
)
from gc_events.triggers import Trigger, match_trigger

Groups = dict[str, str | None]
Timing = tuple[MillisValue, MicrosValue, MicrosValue | None]

# Kinds whose cause is implied by the kind rather than logged in parentheses.
IMPLIED_TRIGGERS: dict[EventKind, Trigger] = {
    EventKind.PAR_NEW_PROMOTION_FAILED: Trigger.PROMOTION_FAILED,
}


# ============================================================
# TIMING
# ============================================================


def _duration(groups: Groups) -> MicrosValue:
    """Reported duration in microseconds, whichever unit the line used."""
    if groups.get("duration_ms"):
        return millis_to_micros(groups["duration_ms"])
    if groups.get("duration_secs"):
        return seconds_to_micros(groups["duration_secs"])
    if groups.get("stopped"):
        return seconds_to_micros(groups["stopped"])
    return 0


def _end_anchored(decorator: Decorator, end: Decorator, groups: Groups) -> Timing:
    duration = _duration(groups)
    return end.timestamp - micros_to_millis(duration), duration, None


def _start_anchored(decorator: Decorator, end: Decorator, groups: Groups) -> Timing:
    return decorator.timestamp, _duration(groups), None


def _concurrent(decorator: Decorator, end: Decorator, groups: Groups) -> Timing:
    # Concurrent phases do not stop application threads.
    if groups.get("wall"):
        elapsed: MicrosValue | None = seconds_to_micros(groups["wall"])
    elif groups.get("duration_ms") or groups.get("duration_secs"):
        elapsed = _duration(groups)
    else:
        elapsed = None
    return decorator.timestamp, 0, elapsed


TimingFunction = Callable[[Decorator, Decorator, Groups], Timing]

EXTRACTORS: dict[EventKind, TimingFunction] = {
    kind: (
        _concurrent
        if is_concurrent(kind)
        else _end_anchored
        if is_end_anchored(kind)
        else _start_anchored
    )
    for kind in EventKind
    if is_event(kind)
}


# ============================================================
# FIELDS
# ============================================================


def _spaces(groups: Groups) -> tuple[SpaceUsage, ...]:
    spaces: list[SpaceUsage] = []
    for generation in Generation:
        values = {
            field: groups.get(f"{generation.value}_{field}")
            for field in ("before", "after", "capacity")
        }
        if not any(values.values()):
            continue
        spaces.append(
            SpaceUsage(
                generation=generation,
                **{field: Memory.parse(text) for field, text in values.items() if text},
            )
        )
    return tuple(spaces)


def _times(groups: Groups) -> TimesData | None:
    if not groups.get("real"):
        return None
    return TimesData(
        user=seconds_to_millis(groups["user"]),
        sys=seconds_to_millis(groups["sys"]),
        real=seconds_to_millis(groups["real"]),
    )


def _trigger(kind: EventKind, groups: Groups) -> Trigger | None:
    text = groups.get("trigger")
    if text:
        return match_trigger(text)
    if kind in IMPLIED_TRIGGERS:
        return IMPLIED_TRIGGERS[kind]
    if reports_trigger(kind):
        return Trigger.UNKNOWN
    return None


# ============================================================
# EXTRACTION
# ============================================================


def extract(
    line: CanonicalLine,
    classification: Classification,
    line_number: int | None = None,
    check_capacity: bool = True,
) -> Event | None:
    """Build the Event for one classified canonical line.

    Returns ``None`` for lines that are not events (headers, unknown lines).

    Raises:
        MalformedFieldError: A size, duration or time capture is not a
            number. Only this line is affected; callers drop the event.
    """
    kind = classification.kind
    timing = EXTRACTORS.get(kind)
    if timing is None:
        return None

    groups = classification.entry_groups
    decorator = resolve(groups.get("decorator"))
    end = resolve(groups["end_decorator"]) if groups.get("end_decorator") else decorator
    timestamp, duration, elapsed = timing(decorator, end, groups)

    diagnostics: list[str] = []
    if decorator.malformed:
        diagnostics.append(f"No timestamp in decorator {decorator.text!r}")

    spaces = _spaces(groups)
    if check_capacity:
        for usage in spaces:
            diagnostics.extend(usage.violations())

    collector = classification.collector
    if collector is CollectorFamily.UNKNOWN:
        collector = collector_of(kind)

    return Event(
        kind=kind,
        log_entry=line,
        line_number=line_number,
        timestamp=timestamp,
        duration=duration,
        elapsed=elapsed,
        datestamp=decorator.datestamp,
        malformed_timestamp=decorator.malformed,
        collector=collector,
        trigger=_trigger(kind, groups),
        gc_id=decorator.gc_id,
        phase=groups.get("phase") or groups.get("type"),
        safepoint_operation=groups.get("operation"),
        spaces=spaces,
        times=_times(groups),
        diagnostics=tuple(diagnostics),
    )
