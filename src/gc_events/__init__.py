"""Classify and reassemble JVM garbage collector logs into structured events."""

from gc_events.classifier import Classification, classify, detect_collector, identify
from gc_events.decorator import resolve
from gc_events.errors import GCEventsError, MalformedFieldError, UnreadableLogError
from gc_events.extract import extract
from gc_events.kinds import CollectorFamily, EventKind
from gc_events.models import (
    Decorator,
    Diagnostic,
    DiagnosticReason,
    Event,
    Generation,
    Memory,
    MemoryUnit,
    ParseOptions,
    ParseResult,
    SpaceUsage,
    TimesData,
)
from gc_events.pipeline import EventPipeline, iter_events, parse, parse_file
from gc_events.preprocess import Preprocessor, preprocess
from gc_events.triggers import Trigger

__version__ = "0.1.0"

__all__ = [
    "Classification",
    "CollectorFamily",
    "Decorator",
    "Diagnostic",
    "DiagnosticReason",
    "Event",
    "EventKind",
    "EventPipeline",
    "GCEventsError",
    "Generation",
    "MalformedFieldError",
    "Memory",
    "MemoryUnit",
    "ParseOptions",
    "ParseResult",
    "Preprocessor",
    "SpaceUsage",
    "TimesData",
    "Trigger",
    "UnreadableLogError",
    "__version__",
    "classify",
    "detect_collector",
    "extract",
    "identify",
    "iter_events",
    "parse",
    "parse_file",
    "preprocess",
    "resolve",
]
