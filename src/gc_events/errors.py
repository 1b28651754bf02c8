"""Exception types raised by gc-events."""

from __future__ import annotations


class GCEventsError(Exception):
    """Base class for all gc-events errors."""


class MalformedFieldError(GCEventsError, ValueError):
    """A size, duration or timestamp capture could not be read as a number.

    Raised while extracting a single event; the pipeline drops that event and
    records a diagnostic instead of aborting the pass.
    """

    def __init__(self, field: str, text: str | None) -> None:
        super().__init__(f"Malformed {field}: {text!r}")
        self.field = field
        self.text = text


class UnreadableLogError(GCEventsError, OSError):
    """The input log could not be opened or decoded."""
