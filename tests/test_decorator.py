"""Decorator/timestamp resolution, including the broken legacy prefixes."""

from __future__ import annotations

import pytest

from gc_events.decorator import (
    datestamp_to_millis,
    micros_to_millis,
    millis_to_micros,
    resolve,
    seconds_to_micros,
    seconds_to_millis,
    split,
)
from gc_events.errors import MalformedFieldError


class TestConversions:
    def test_seconds_to_millis(self) -> None:
        assert seconds_to_millis("0.053") == 53
        assert seconds_to_millis("28039.161") == 28039161

    def test_seconds_to_millis_accepts_comma(self) -> None:
        assert seconds_to_millis("0,053") == 53

    def test_seconds_to_micros(self) -> None:
        assert seconds_to_micros("0.0346620") == 34662

    def test_millis_to_micros(self) -> None:
        assert millis_to_micros("0.914") == 914
        assert millis_to_micros("1.195") == 1195

    def test_micros_to_millis_rounds_half_up(self) -> None:
        assert micros_to_millis(914) == 1
        assert micros_to_millis(499) == 0
        assert micros_to_millis(500) == 1
        assert micros_to_millis(1499) == 1

    def test_datestamp_to_millis(self) -> None:
        assert datestamp_to_millis("2021-09-14T06:51:15.478-0500") == 1631620275478

    def test_bad_number(self) -> None:
        with pytest.raises(MalformedFieldError) as excinfo:
            seconds_to_millis("abc")
        assert excinfo.value.field == "seconds"

    def test_bad_datestamp(self) -> None:
        with pytest.raises(MalformedFieldError):
            datestamp_to_millis("2021-13-45T99:99:99.999-0500")


class TestUnifiedDecorator:
    def test_uptime_seconds(self) -> None:
        decorator = resolve("[0.112s][info][gc,start       ] GC(3)")
        assert decorator.timestamp == 112
        assert decorator.uptime_seconds == "0.112"
        assert decorator.level == "info"
        assert decorator.tags == ("gc", "start")
        assert decorator.gc_id == 3
        assert not decorator.malformed

    def test_uptime_millis_wins_over_datestamp(self) -> None:
        decorator = resolve("[2021-03-13T03:37:40.051+0530][79853119ms] GC(8646)")
        assert decorator.timestamp == 79853119
        assert decorator.uptime_millis == 79853119
        assert decorator.datestamp is not None

    def test_uptime_seconds_wins_over_datestamp(self) -> None:
        decorator = resolve("[2021-09-14T06:51:15.478-0500][3.530s][info][gc,start     ] GC(1)")
        assert decorator.timestamp == 3530

    def test_datestamp_only(self) -> None:
        decorator = resolve("[2021-09-14T06:51:15.478-0500][info][gc]")
        assert decorator.timestamp == 1631620275478
        assert decorator.uptime_seconds is None

    def test_pid_and_tid_are_not_uptimes(self) -> None:
        decorator = resolve("[0.053s][12345][12346][info][gc]")
        assert decorator.timestamp == 53


class TestLegacyDecorator:
    @pytest.mark.parametrize(
        ("prefix", "expected"),
        [
            ("50.101: ", 50101),
            ("2016-02-09T06:17:15.377-0500: 27744.139: ", 27744139),
            ("23743.632: 23743.632: ", 23743632),
            ("2017-01-20T23:18:29.584-0500: 1513296.456: 2017-01-20T23:18:29.584-0500: ", 1513296456),
            ("2017-01-20T23:20:52.028-0500: 1513438.9002017-01-20T23:20:52.028-0500: : ", 1513438900),
            ("2017-01-20T23:49:17.968-0500: 2017-01-20T23:49:17.968-05001515144.840: : ", 1515144840),
            ("2017-01-21T00:58:45.921-05002017-01-21T00:58:45.921-0500: : 1519312.793: ", 1519312793),
            ("1516186.5322017-01-21T00:06:39.660-0500: : 1516186.532: ", 1516186532),
            (": 2017-01-21T09:59:17.908-0500: 1551744.7801551744.780: : ", 1551744780),
        ],
    )
    def test_glued_and_duplicated_tokens(self, prefix: str, expected: int) -> None:
        decorator = resolve(prefix)
        assert decorator.timestamp == expected
        assert not decorator.malformed

    def test_datestamp_only(self) -> None:
        assert resolve("2016-02-09T06:22:10.399-0500: ").timestamp == 1455016930399

    def test_no_timestamp(self) -> None:
        decorator = resolve(": ")
        assert decorator.timestamp == 0
        assert decorator.malformed

    def test_empty(self) -> None:
        assert resolve(None).malformed


class TestSplit:
    def test_unified(self) -> None:
        decorator, body = split("[0.053s][info][gc] GC(0) Pause Young (Allocation Failure) 0M->0M(1M) 0.914ms")
        assert decorator.timestamp == 53
        assert decorator.gc_id == 0
        assert body == " Pause Young (Allocation Failure) 0M->0M(1M) 0.914ms"

    def test_legacy(self) -> None:
        decorator, body = split("2.193: [GC (Allocation Failure) [PSYoungGen: 1536K->496K(2048K)]")
        assert decorator.timestamp == 2193
        assert body.startswith("[GC (Allocation Failure)")

    def test_no_decorator(self) -> None:
        decorator, body = split("Java HotSpot(TM) 64-Bit Server VM")
        assert decorator.malformed
        assert body == "Java HotSpot(TM) 64-Bit Server VM"
