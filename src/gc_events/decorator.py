"""Decorator/timestamp resolution.

A line prefix may carry a wall-clock datestamp, an uptime in seconds, an
uptime in milliseconds, or several of them. Older JVMs also wrote broken
prefixes: duplicated timestamps, timestamps glued to datestamps, colons in
the wrong place. Resolution always produces one millisecond value:

1. the last ``[N ms]`` uptime token;
2. otherwise the last seconds token, once datestamps are removed so their
   fractional seconds cannot be mistaken for an uptime;
3. otherwise the last datestamp, as epoch milliseconds;
4. otherwise zero, flagged as malformed.

When a datestamp and an uptime disagree the uptime is trusted.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from gc_events.errors import MalformedFieldError
from gc_events.models import Decorator, MicrosValue, MillisValue
from gc_events.regex import DATESTAMP, LEGACY_DECORATOR, LEVEL, UNIFIED_DECORATOR

logger = logging.getLogger(__name__)

DATESTAMP_PATTERN: re.Pattern[str] = re.compile(DATESTAMP)
UPTIME_MILLIS_PATTERN: re.Pattern[str] = re.compile(r"\[(\d{1,13})ms\]")
UPTIME_SECONDS_PATTERN: re.Pattern[str] = re.compile(r"\d{1,10}[.,]\d{3}")
UNIFIED_PREFIX_PATTERN: re.Pattern[str] = re.compile(UNIFIED_DECORATOR)
LEGACY_PREFIX_PATTERN: re.Pattern[str] = re.compile(LEGACY_DECORATOR)
FIELD_PATTERN: re.Pattern[str] = re.compile(r"\[([^\]]*)\]")
LEVEL_PATTERN: re.Pattern[str] = re.compile(LEVEL)
GC_ID_PATTERN: re.Pattern[str] = re.compile(r"GC\((\d{1,8})\)")


def datestamp_to_datetime(text: str) -> datetime:
    """Parse '2021-09-14T06:51:15.478-0500' into an aware datetime."""
    try:
        return datetime.strptime(text.replace(",", "."), "%Y-%m-%dT%H:%M:%S.%f%z")
    except ValueError as exc:
        raise MalformedFieldError("datestamp", text) from exc


def datestamp_to_millis(text: str) -> MillisValue:
    """Epoch milliseconds for a datestamp."""
    return round(datestamp_to_datetime(text).timestamp() * 1000)


def seconds_to_millis(text: str) -> MillisValue:
    """'0.053' -> 53, rounding half up."""
    return _scaled(text, 1000, "seconds")


def seconds_to_micros(text: str) -> MicrosValue:
    """'0.0346620' -> 34662."""
    return _scaled(text, 1_000_000, "seconds")


def millis_to_micros(text: str) -> MicrosValue:
    """'0.914' (ms) -> 914 microseconds."""
    return _scaled(text, 1000, "milliseconds")


def micros_to_millis(micros: MicrosValue) -> MillisValue:
    """914 -> 1, rounding half up."""
    return (micros + 500) // 1000


def _scaled(text: str, factor: int, field: str) -> int:
    try:
        value = float(text.replace(",", "."))
    except (AttributeError, ValueError) as exc:
        raise MalformedFieldError(field, text) from exc
    return int(value * factor + 0.5)


def resolve(prefix: str | None) -> Decorator:
    """Resolve a decorator prefix (unified or legacy) to a single timestamp."""
    prefix = prefix or ""

    datestamps = DATESTAMP_PATTERN.findall(prefix)
    datestamp = None
    if datestamps:
        try:
            datestamp = datestamp_to_datetime(datestamps[-1])
        except MalformedFieldError:
            logger.debug("Unparseable datestamp in prefix %r", prefix)

    millis = [int(token) for token in UPTIME_MILLIS_PATTERN.findall(prefix)]
    undated = DATESTAMP_PATTERN.sub(" ", prefix)
    seconds = UPTIME_SECONDS_PATTERN.findall(undated)

    malformed = False
    if millis:
        timestamp = millis[-1]
    elif seconds:
        timestamp = seconds_to_millis(seconds[-1])
    elif datestamp is not None:
        timestamp = round(datestamp.timestamp() * 1000)
    else:
        timestamp = 0
        malformed = True

    level, tags = _level_and_tags(prefix)
    gc_id_match = GC_ID_PATTERN.search(prefix)

    return Decorator(
        text=prefix,
        timestamp=timestamp,
        datestamp=datestamp,
        uptime_seconds=seconds[-1].replace(",", ".") if seconds else None,
        uptime_millis=millis[-1] if millis else None,
        level=level,
        tags=tags,
        gc_id=int(gc_id_match.group(1)) if gc_id_match else None,
        malformed=malformed,
    )


def split(line: str) -> tuple[Decorator, str]:
    """Split a raw line into its resolved decorator and the message body.

    A unified decorator is a run of bracketed fields; a legacy decorator is
    the leading run of datestamps, uptimes, colons and spaces.
    """
    match = UNIFIED_PREFIX_PATTERN.match(line) or LEGACY_PREFIX_PATTERN.match(line)
    prefix = match.group(0) if match else ""
    return resolve(prefix), line[len(prefix) :]


def _level_and_tags(prefix: str) -> tuple[str | None, tuple[str, ...]]:
    level: str | None = None
    tags: tuple[str, ...] = ()
    for field in FIELD_PATTERN.findall(prefix):
        field = field.strip()
        if LEVEL_PATTERN.fullmatch(field):
            level = field
        elif field and field[0].isalpha():
            tags = tuple(tag for tag in field.split(",") if tag)
    return level, tags
