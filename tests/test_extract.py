"""Field extraction from classified canonical lines."""

from __future__ import annotations

import pytest

from gc_events.classifier import classify
from gc_events.extract import extract
from gc_events.kinds import CollectorFamily, EventKind
from gc_events.models import Event, Generation, TimesData
from gc_events.triggers import Trigger


def event_for(line: str, line_number: int | None = None) -> Event:
    event = extract(line, classify(line), line_number)
    assert event is not None
    return event


def test_unified_young_single_line() -> None:
    event = event_for("[0.053s][info][gc] GC(0) Pause Young (Allocation Failure) 0M->0M(1M) 0.914ms", 7)
    assert event.kind is EventKind.UNIFIED_YOUNG
    assert event.timestamp == 52
    assert event.duration == 914
    assert event.end_timestamp == 53
    assert event.trigger is Trigger.ALLOCATION_FAILURE
    assert event.gc_id == 0
    assert event.line_number == 7
    combined = event.space(Generation.COMBINED)
    assert combined is not None
    assert combined.before.kilobytes == 0
    assert combined.after.kilobytes == 0
    assert combined.capacity.kilobytes == 1024
    assert event.times is None
    assert event.diagnostics == ()


def test_unified_serial_new_reassembled() -> None:
    line = (
        "[0.112s][info][gc,start       ] GC(3) Pause Young (Allocation Failure) DefNew: 1016K->128K(1152K) "
        "Tenured: 929K->1044K(1552K) Metaspace: 1222K->1222K(1056768K) 1M->1M(2M) 0.700ms "
        "User=0.00s Sys=0.00s Real=0.00s"
    )
    event = event_for(line)
    assert event.kind is EventKind.UNIFIED_SERIAL_NEW
    assert event.collector is CollectorFamily.SERIAL
    assert event.timestamp == 111
    assert event.duration == 700
    assert [usage.generation for usage in event.spaces] == [
        Generation.YOUNG,
        Generation.OLD,
        Generation.COMBINED,
        Generation.METASPACE,
    ]
    young = event.space(Generation.YOUNG)
    assert young.before.kilobytes == 1016
    assert young.after.kilobytes == 128
    assert young.capacity.kilobytes == 1152
    assert event.space(Generation.METASPACE).capacity.kilobytes == 1056768
    assert event.times == TimesData(user=0, sys=0, real=0)


def test_g1_young_with_type() -> None:
    line = (
        "[0.369s][info][gc,start     ] GC(6) Pause Young (Normal) (G1 Evacuation Pause) "
        "Metaspace: 9085K->9085K(1058816K) 3M->2M(7M) 0.929ms User=0.01s Sys=0.00s Real=0.01s"
    )
    event = event_for(line)
    assert event.kind is EventKind.UNIFIED_G1_YOUNG_PAUSE
    assert event.collector is CollectorFamily.G1
    assert event.phase == "Normal"
    assert event.trigger is Trigger.G1_EVACUATION_PAUSE
    assert event.timestamp == 368
    assert event.times == TimesData(user=10, sys=0, real=10)


def test_unified_concurrent_is_not_a_pause() -> None:
    event = event_for("[0.054s][info][gc           ] GC(1) Concurrent Mark 1.260ms")
    assert event.kind is EventKind.UNIFIED_CONCURRENT
    assert event.timestamp == 54
    assert event.duration == 0
    assert event.elapsed == 1260
    assert event.phase == "Mark"
    assert event.trigger is None


def test_unified_concurrent_with_cpu_times() -> None:
    event = event_for(
        "[0.054s][info][gc           ] GC(1) Concurrent Mark 1.260ms User=0.01s Sys=0.00s Real=0.00s"
    )
    assert event.kind is EventKind.UNIFIED_CONCURRENT
    assert event.duration == 0
    assert event.elapsed == 1260
    assert event.times == TimesData(user=10, sys=0, real=0)


def test_unified_safepoint_bracket_uses_closing_timestamp() -> None:
    line = (
        "[0.200s][info][safepoint    ] Entering safepoint region: RevokeBias"
        "[0.205s][info][safepoint    ] Leaving safepoint region"
        "[0.205s][info][safepoint    ] Total time for which application threads were stopped: "
        "0.0012340 seconds, Stopping threads took: 0.0000150 seconds"
    )
    event = event_for(line)
    assert event.kind is EventKind.UNIFIED_SAFEPOINT
    assert event.safepoint_operation == "RevokeBias"
    assert event.duration == 1234
    assert event.timestamp == 204


def test_legacy_parallel_scavenge_is_start_anchored() -> None:
    line = (
        "2.193: [GC (Allocation Failure) [PSYoungGen: 1536K->496K(2048K)] 1536K->928K(7680K), "
        "0.0036582 secs] [Times: user=0.01 sys=0.00, real=0.00 secs]"
    )
    event = event_for(line)
    assert event.kind is EventKind.PARALLEL_SCAVENGE
    assert event.timestamp == 2193
    assert event.duration == 3658
    assert event.trigger is Trigger.ALLOCATION_FAILURE
    assert event.space(Generation.YOUNG).capacity.kilobytes == 2048
    assert event.space(Generation.OLD) is None
    assert event.times == TimesData(user=10, sys=0, real=0)


def test_legacy_serial_without_trigger() -> None:
    line = (
        "10.204: [GC 10.204: [DefNew: 36825K->4352K(39424K), 0.0224830 secs] "
        "44983K->14441K(126848K), 0.0225800 secs]"
    )
    event = event_for(line)
    assert event.kind is EventKind.SERIAL_NEW
    assert event.timestamp == 10204
    assert event.duration == 22580
    assert event.trigger is Trigger.UNKNOWN


def test_legacy_cms_concurrent_elapsed() -> None:
    event = event_for("2.187: [CMS-concurrent-mark: 0.003/0.005 secs]")
    assert event.kind is EventKind.CMS_CONCURRENT
    assert event.duration == 0
    assert event.elapsed == 5000
    assert event.phase == "mark"


def test_legacy_g1_concurrent_without_timestamp() -> None:
    event = event_for(": [GC concurrent-root-region-scan-start]")
    assert event.kind is EventKind.G1_CONCURRENT
    assert event.timestamp == 0
    assert event.elapsed is None
    assert event.malformed_timestamp
    assert event.diagnostics


def test_application_stopped_time_is_end_anchored() -> None:
    line = (
        "2.193: Total time for which application threads were stopped: 0.0037210 seconds, "
        "Stopping threads took: 0.0000190 seconds"
    )
    event = event_for(line)
    assert event.kind is EventKind.APPLICATION_STOPPED_TIME
    assert event.duration == 3721
    assert event.timestamp == 2189


def test_promotion_failed_trigger_is_implied() -> None:
    line = (
        "27.167: [GC 27.167: [ParNew (promotion failed): 471872K->471872K(471872K), 0.7943520 secs]"
        "27.961: [CMS: 1086343K->1102112K(1125888K), 5.2154840 secs] 1558215K->1102112K(1597760K), "
        "[CMS Perm : 109046K->109046K(262144K)], 6.0101240 secs] [Times: user=6.54 sys=0.02, real=6.01 secs]"
    )
    event = event_for(line)
    assert event.trigger is Trigger.PROMOTION_FAILED
    assert event.duration == 6010124
    assert event.space(Generation.COMBINED).before.kilobytes == 1558215


def test_capacity_violation_is_a_diagnostic() -> None:
    line = "[0.053s][info][gc] GC(0) Pause Young (Allocation Failure) 3M->1M(2M) 0.914ms"
    event = event_for(line)
    assert event.space(Generation.COMBINED).before.kilobytes == 3072
    assert any("exceeds capacity" in note for note in event.diagnostics)
    assert extract(line, classify(line), check_capacity=False).diagnostics == ()


def test_unit_conversion_preserves_comparison() -> None:
    event = event_for("[0.053s][info][gc] GC(0) Pause Young (Allocation Failure) 1024K->1M(2M) 0.914ms")
    combined = event.space(Generation.COMBINED)
    assert combined.before.bytes == combined.after.bytes


@pytest.mark.parametrize(
    "line",
    [
        "[0.004s][info][gc] Using G1",
        "not a gc line at all",
    ],
)
def test_non_events(line: str) -> None:
    assert extract(line, classify(line)) is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0.001", 1),
        ("0.914", 914),
        ("12.345", 12345),
    ],
)
def test_end_timestamp_is_the_decorator(text: str, expected: int) -> None:
    line = f"[5.000s][info][gc] GC(9) Pause Young (Allocation Failure) 1M->0M(2M) {text}ms"
    event = event_for(line)
    assert event.duration == expected
    assert event.end_timestamp == 5000
