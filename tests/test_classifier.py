"""Classification against the ordered catalogue."""

from __future__ import annotations

import pytest

from gc_events.catalogue import CATALOGUE, active_entries
from gc_events.classifier import classify, detect_collector, identify
from gc_events.kinds import CollectorFamily, EventKind


@pytest.mark.parametrize(
    ("line", "kind"),
    [
        # unified, preprocessed
        (
            "[0.112s][info][gc,start       ] GC(3) Pause Young (Allocation Failure) DefNew: 1016K->128K(1152K) "
            "Tenured: 929K->1044K(1552K) Metaspace: 1222K->1222K(1056768K) 1M->1M(2M) 0.700ms "
            "User=0.00s Sys=0.00s Real=0.00s",
            EventKind.UNIFIED_SERIAL_NEW,
        ),
        (
            "[0.029s][info][gc,start     ] GC(0) Pause Young (Allocation Failure) PSYoungGen: 512K->432K(1024K) "
            "ParOldGen: 0K->8K(512K) Metaspace: 121K->121K(1056768K) 0M->0M(1M) 0.762ms "
            "User=0.00s Sys=0.00s Real=0.00s",
            EventKind.UNIFIED_PARALLEL_SCAVENGE,
        ),
        (
            "[0.075s][info][gc,start     ] GC(2) Pause Full (Allocation Failure) DefNew: 1152K->0K(1152K) "
            "Tenured: 458K->929K(960K) Metaspace: 697K->697K(1056768K) 1M->0M(2M) 3.061ms "
            "User=0.00s Sys=0.00s Real=0.00s",
            EventKind.UNIFIED_SERIAL_OLD,
        ),
        (
            "[0.083s][info][gc,start     ] GC(3) Pause Full (Ergonomics) PSYoungGen: 502K->496K(1536K) "
            "ParOldGen: 472K->432K(2048K) Metaspace: 701K->701K(1056768K) 0M->0M(3M) 4.336ms "
            "User=0.01s Sys=0.00s Real=0.01s",
            EventKind.UNIFIED_PARALLEL_COMPACTING_OLD,
        ),
        (
            "[0.369s][info][gc,start     ] GC(6) Pause Young (Normal) (G1 Evacuation Pause) "
            "Metaspace: 9085K->9085K(1058816K) 3M->2M(7M) 0.929ms User=0.01s Sys=0.00s Real=0.01s",
            EventKind.UNIFIED_G1_YOUNG_PAUSE,
        ),
        (
            "[16.053s][info][gc            ] GC(969) Pause Remark 29M->29M(46M) 2.328ms "
            "User=0.01s Sys=0.00s Real=0.00s",
            EventKind.UNIFIED_REMARK,
        ),
        (
            "[16.082s][info][gc            ] GC(969) Pause Cleanup 28M->28M(46M) 0.064ms "
            "User=0.00s Sys=0.00s Real=0.00s",
            EventKind.UNIFIED_G1_CLEANUP,
        ),
        # unified, single line
        (
            "[0.053s][info][gc] GC(0) Pause Young (Allocation Failure) 0M->0M(1M) 0.914ms",
            EventKind.UNIFIED_YOUNG,
        ),
        (
            "[0.053s][info][gc           ] GC(1) Pause Initial Mark 0M->0M(2M) 0.278ms",
            EventKind.UNIFIED_CMS_INITIAL_MARK,
        ),
        ("[0.054s][info][gc           ] GC(1) Concurrent Mark 1.260ms", EventKind.UNIFIED_CONCURRENT),
        (
            "[16.600s][info][gc            ] GC(1032) Concurrent Mark (16.601s, 16.646s) 45.147ms",
            EventKind.UNIFIED_CONCURRENT,
        ),
        (
            "[2.969s][info][safepoint] Total time for which application threads were stopped: "
            "0.0001750 seconds, Stopping threads took: 0.0000210 seconds",
            EventKind.UNIFIED_SAFEPOINT,
        ),
        ("[0.004s][info][gc] Using Serial", EventKind.UNIFIED_HEADER),
        # legacy
        (
            "10.204: [GC 10.204: [DefNew: 36825K->4352K(39424K), 0.0224830 secs] "
            "44983K->14441K(126848K), 0.0225800 secs]",
            EventKind.SERIAL_NEW,
        ),
        (
            "2.193: [GC (Allocation Failure) [PSYoungGen: 1536K->496K(2048K)] 1536K->928K(7680K), "
            "0.0036582 secs] [Times: user=0.01 sys=0.00, real=0.00 secs]",
            EventKind.PARALLEL_SCAVENGE,
        ),
        (
            "1.305: [GC pause (G1 Evacuation Pause) (young) 18M->4437K(256M), 0.0163452 secs]",
            EventKind.G1_YOUNG_PAUSE,
        ),
        (
            "2.187: [CMS-concurrent-mark: 0.003/0.003 secs] [Times: user=0.01 sys=0.00, real=0.00 secs]",
            EventKind.CMS_CONCURRENT,
        ),
        ("50.101: [GC concurrent-root-region-scan-start]", EventKind.G1_CONCURRENT),
        ("449391.442: [GC concurrent-mark-end, 0.1620950 sec]", EventKind.G1_CONCURRENT),
        (
            "2.193: Total time for which application threads were stopped: 0.0037210 seconds, "
            "Stopping threads took: 0.0000190 seconds",
            EventKind.APPLICATION_STOPPED_TIME,
        ),
        ("1.111: [GC 9178K->3214K(11904K), 0.0012090 secs]", EventKind.VERBOSE_GC_YOUNG),
        ("5.222: [Full GC 9178K->3214K(11904K), 0.0512090 secs]", EventKind.VERBOSE_GC_OLD),
    ],
)
def test_classify(line: str, kind: EventKind) -> None:
    assert identify(line) is kind


@pytest.mark.parametrize(
    "line",
    [
        "",
        "Java HotSpot(TM) 64-Bit Server VM (25.66-b17) for linux-amd64",
        "CommandLine flags: -XX:+PrintGC",
        "[0.112s][info][gc,heap        ] GC(3) DefNew: 1016K->128K(1152K) trailing garbage (",
        "Pause Young (Allocation Failure) 0M->0M(1M) 0.914ms",
    ],
)
def test_unknown_is_not_an_error(line: str) -> None:
    classification = classify(line)
    assert classification.kind is EventKind.UNKNOWN
    assert classification.match is None
    assert classification.entry_groups == {}


def test_qualified_pattern_wins_over_generic() -> None:
    line = (
        "[0.369s][info][gc] GC(6) Pause Young (Concurrent Start) (G1 Evacuation Pause) "
        "3M->2M(7M) 0.929ms"
    )
    classification = classify(line)
    assert classification.kind is EventKind.UNIFIED_G1_YOUNG_PAUSE
    assert classification.entry_groups["type"] == "Concurrent Start"


def test_whole_line_must_match() -> None:
    line = "[0.053s][info][gc] GC(0) Pause Young (Allocation Failure) 0M->0M(1M) 0.914ms and more"
    assert identify(line) is EventKind.UNKNOWN


def test_composite_line_is_searched() -> None:
    line = (
        "27.167: [GC 27.167: [ParNew (promotion failed): 471872K->471872K(471872K), 0.7943520 secs]"
        "27.961: [CMS: 1086343K->1102112K(1125888K), 5.2154840 secs] 1558215K->1102112K(1597760K), "
        "[CMS Perm : 109046K->109046K(262144K)], 6.0101240 secs] [Times: user=6.54 sys=0.02, real=6.01 secs]"
    )
    assert identify(line) is EventKind.PAR_NEW_PROMOTION_FAILED


def test_collector_hint_limits_catalogue() -> None:
    line = "[0.053s][info][gc] GC(0) Pause Young (Allocation Failure) 0M->0M(1M) 0.914ms"
    assert identify(line, CollectorFamily.SERIAL) is EventKind.UNIFIED_YOUNG
    g1 = "1.305: [GC pause (G1 Evacuation Pause) (young) 18M->4437K(256M), 0.0163452 secs]"
    assert identify(g1, CollectorFamily.PARALLEL) is EventKind.UNKNOWN


def test_active_entries_keep_order() -> None:
    entries = active_entries(CollectorFamily.G1)
    assert all(entry.collector in (CollectorFamily.G1, CollectorFamily.UNKNOWN) for entry in entries)
    positions = [CATALOGUE.index(entry) for entry in entries]
    assert positions == sorted(positions)
    assert active_entries(None) == CATALOGUE


class TestDetectCollector:
    def test_unified_header(self) -> None:
        lines = ["[0.003s][info][gc] Using G1\n", "[0.010s][info][gc] GC(0) Pause Young ..."]
        assert detect_collector(lines) is CollectorFamily.G1

    def test_unified_header_cms(self) -> None:
        assert detect_collector(["[0.003s][info][gc] Using Concurrent Mark Sweep"]) is CollectorFamily.CMS

    def test_legacy_markers(self) -> None:
        lines = ["2.193: [GC (Allocation Failure) [PSYoungGen: 1536K->496K(2048K)] 1536K->928K(7680K), 0.0036582 secs]"]
        assert detect_collector(lines) is CollectorFamily.PARALLEL

    def test_unknown(self) -> None:
        assert detect_collector(["nothing to see here"]) is CollectorFamily.UNKNOWN
        assert detect_collector([]) is CollectorFamily.UNKNOWN
