#!/usr/bin/env python3
"""gc-events command line.

Thin I/O layer over the parsing pipeline:
- preprocess: reassemble multi-line unified logging into canonical lines
- parse: classify and extract events, print them as a table
- version
"""

from __future__ import annotations

import cProfile
import logging
import pstats
import sys
from collections import Counter
from io import StringIO
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.theme import Theme

from gc_events import __version__
from gc_events.errors import UnreadableLogError
from gc_events.kinds import CollectorFamily
from gc_events.models import Event, ParseOptions, ParseResult
from gc_events.pipeline import parse_file
from gc_events.preprocess import preprocess

# ============================================================
# RICH OUTPUT RENDERING
# ============================================================

GC_EVENTS_THEME = Theme(
    {
        "critical": "bold red",
        "warning": "bold yellow",
        "success": "bold green",
        "info": "cyan",
        "metric": "white",
        "label": "dim white",
        "header": "bold magenta",
    }
)

console = Console(theme=GC_EVENTS_THEME)

# Rows printed before the table is cut short.
MAX_TABLE_ROWS = 200


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich; DEBUG when verbose."""
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=verbose)
    package_logger = logging.getLogger("gc_events")
    package_logger.handlers = [handler]
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


def create_key_value_table(title: str, rows: list[tuple[str, str]]) -> Table:
    """Create a simple two-column key/value table."""
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="label")
    table.add_column("Value", style="metric")
    for label, value in rows:
        table.add_row(label, value)
    return table


def _format_space(event: Event) -> str:
    return "  ".join(
        f"{usage.generation.value}: {usage.before or '-'}->{usage.after or '-'}({usage.capacity or '-'})"
        for usage in event.spaces
    )


def render_events(events: list[Event], limit: int = MAX_TABLE_ROWS) -> Table:
    """Table of events in file order."""
    table = Table(title="GC Events", header_style="header")
    table.add_column("Line", justify="right", style="label")
    table.add_column("Start (ms)", justify="right", style="metric")
    table.add_column("Kind", style="info")
    table.add_column("Pause (ms)", justify="right", style="metric")
    table.add_column("Trigger")
    table.add_column("Memory", overflow="fold")

    for event in events[:limit]:
        pause = f"{event.duration / 1000:.3f}" if event.duration else "-"
        style = "warning" if event.diagnostics else None
        table.add_row(
            str(event.line_number or ""),
            str(event.timestamp),
            event.kind.value,
            pause,
            event.trigger.value if event.trigger else "",
            _format_space(event),
            style=style,
        )
    return table


def render_summary(result: ParseResult, log_file: Path) -> Table:
    kinds = Counter(event.kind.value for event in result.events)
    reasons = Counter(diagnostic.reason.value for diagnostic in result.diagnostics)
    rows = [
        ("Log file", str(log_file)),
        ("Collector", result.collector.value),
        ("Canonical lines", str(len(result.canonical_lines))),
        ("Events", str(len(result.events))),
    ]
    rows.extend((f"  {kind}", str(count)) for kind, count in kinds.most_common())
    rows.append(("Diagnostics", str(len(result.diagnostics))))
    rows.extend((f"  {reason}", str(count)) for reason, count in reasons.most_common())
    return create_key_value_table("Summary", rows)


# ============================================================
# TYPER CLI INTERFACE
# ============================================================

app = typer.Typer(
    name="gc-events",
    help="Classify and reassemble JVM garbage collector logs into structured events",
    add_completion=False,
    rich_markup_mode="rich",
)

LogFileArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to GC log file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]


@app.command(name="preprocess")
def preprocess_command(
    log_file: LogFileArgument,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write canonical lines to this file instead of stdout",
            file_okay=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log preprocessing decisions"),
    ] = False,
) -> None:
    """Reassemble a log so every event sits on one line."""
    configure_logging(verbose)
    try:
        with log_file.open(encoding="utf-8", errors="replace") as f:
            lines = list(preprocess(f))

        text = "\n".join(lines) + ("\n" if lines else "")
        if output:
            output.write_text(text, encoding="utf-8")
            console.print(f"[success]Wrote {len(lines)} canonical lines to {output}[/success]")
        else:
            sys.stdout.write(text)

    except OSError as e:
        console.print(f"[critical]ERROR: {e}[/critical]")
        sys.exit(1)


@app.command(name="parse")
def parse_command(
    log_file: LogFileArgument,
    collector: Annotated[
        CollectorFamily | None,
        typer.Option(
            "--collector",
            "-c",
            help="Collector that wrote the log (auto-detected when omitted)",
            case_sensitive=False,
        ),
    ] = None,
    no_preprocess: Annotated[
        bool,
        typer.Option("--no-preprocess", help="Classify raw lines without reassembling them"),
    ] = False,
    show_unknown: Annotated[
        bool,
        typer.Option("--show-unknown", help="List lines that matched no event pattern"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with detailed parsing information",
        ),
    ] = False,
    profile: Annotated[
        bool,
        typer.Option(
            "--profile",
            help="Enable performance profiling and display timing statistics",
        ),
    ] = False,
) -> None:
    """Parse a JVM GC log and print its events.

    Exit codes: 0 = events found, 1 = no events or unreadable file.
    """
    configure_logging(verbose)

    profiler = None
    if profile:
        profiler = cProfile.Profile()
        profiler.enable()

    options = ParseOptions(preprocess=not no_preprocess, collector=collector)

    try:
        with Progress(
            SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console
        ) as progress:
            parse_task = progress.add_task(f"[cyan]Parsing {log_file.name}...", total=None)
            result = parse_file(log_file, options)
            progress.update(parse_task, completed=100)

        if verbose:
            console.print(f"[info]Detected collector: {result.collector.value}[/info]")

        if not result.events:
            console.print("[critical]ERROR: No GC events found in log file[/critical]")
            sys.exit(1)

        console.print(render_events(result.events))
        if len(result.events) > MAX_TABLE_ROWS:
            console.print(f"[label]... {len(result.events) - MAX_TABLE_ROWS} more events[/label]")
        console.print(render_summary(result, log_file))

        if show_unknown:
            for diagnostic in result.unrecognized():
                console.print(
                    f"[warning]{diagnostic.line_number}:[/warning] {escape(diagnostic.text)}", highlight=False
                )

        if profiler:
            profiler.disable()
            console.print("\n[bold cyan] Performance Profile (Top 20 Functions) [/bold cyan]\n")
            stats_stream = StringIO()
            stats = pstats.Stats(profiler, stream=stats_stream)
            stats.strip_dirs()
            stats.sort_stats("cumulative")
            stats.print_stats(20)
            console.print(stats_stream.getvalue())

    except UnreadableLogError as e:
        console.print(f"[critical]ERROR: {e}[/critical]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[critical]ERROR: {e}[/critical]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@app.command()
def version() -> None:
    """Display version."""
    console.print(f"gc-events {__version__}")


if __name__ == "__main__":
    app()
