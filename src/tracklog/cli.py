"""Command-line interface for the interval tracker."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer

from .config import DB_ENV_VAR, TrackerSettings
from .db import IntervalStore, open_store
from .editing import edit_intervals
from .errors import AlreadyTrackingError, DurationParseError, NotFoundError, TrackerError
from .filters import KEYS, resolve_day
from .models import Interval, classify_tokens
from .reporting import SummaryPrinter
from .timeparse import parse_duration

app = typer.Typer(help="Track your activity as time intervals.")

TOKENS_HELP = "Annotation words, +tag, proj:NAME (or project:NAME) and ref:ID."
FILTER_HELP = f"One of {', '.join(KEYS)} or a date as YYYY-MM-DD."


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        envvar=DB_ENV_VAR,
        path_type=Path,
        help="Location of the interval JSON store.",
    ),
    editor: Optional[str] = typer.Option(
        None,
        "--editor",
        help="Editor command for `edit` (defaults to $VISUAL, $EDITOR, then vi).",
    ),
) -> None:
    """Without a command, show the running interval."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    ctx.obj = TrackerSettings.from_environment(db_path=db_path, editor=editor)
    if ctx.invoked_subcommand is None:
        with _tracker(ctx) as store:
            SummaryPrinter(store).print_running_status()


@contextmanager
def _tracker(ctx: typer.Context) -> Iterator[IntervalStore]:
    """Open the store for one command and turn tracker failures into exit code 1."""
    settings: TrackerSettings = ctx.obj
    try:
        with open_store(settings.db_path) as store:
            yield store
    except TrackerError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def status(ctx: typer.Context) -> None:
    """Show the running interval."""
    with _tracker(ctx) as store:
        SummaryPrinter(store).print_running_status()


@app.command()
def start(
    ctx: typer.Context,
    tokens: Optional[list[str]] = typer.Argument(None, help=TOKENS_HELP),
) -> None:
    """Start tracking a new interval."""
    with _tracker(ctx) as store:
        store.start(Interval.from_tokens(tokens or []))
        SummaryPrinter(store).print_running_status()


@app.command()
def stop(ctx: typer.Context) -> None:
    """Stop the running interval."""
    with _tracker(ctx) as store:
        SummaryPrinter(store).print_status(store.stop())


@app.command()
def cancel(ctx: typer.Context) -> None:
    """Discard the running interval."""
    with _tracker(ctx) as store:
        if store.cancel() is None:
            typer.echo("no tracking in progress")


@app.command()
def annotate(
    ctx: typer.Context,
    tokens: Optional[list[str]] = typer.Argument(None, help=TOKENS_HELP),
) -> None:
    """Replace the annotation of the running interval."""
    with _tracker(ctx) as store:
        current = store.get_current()
        if current is None:
            raise NotFoundError("no tracking in progress; annotate only applies to a running interval")
        classify_tokens(current, tokens or [])
        SummaryPrinter(store).print_running_status()


@app.command("continue")
def continue_(ctx: typer.Context) -> None:
    """Start a new interval with the tokens of the most recent one."""
    with _tracker(ctx) as store:
        if store.get_current() is not None:
            raise AlreadyTrackingError("there is a tracking in progress. Nothing to continue.")
        latest = store.latest()
        store.start(Interval.from_tokens(latest.raw.split()))
        SummaryPrinter(store).print_running_status()


@app.command()
def track(
    ctx: typer.Context,
    day: str = typer.Argument(..., help=":today, :yesterday or YYYY-MM-DD."),
    duration: str = typer.Argument(..., help="Amount of time, e.g. 1h30m or 45m."),
    tokens: Optional[list[str]] = typer.Argument(None, help=TOKENS_HELP),
) -> None:
    """Book an amount of time on a day without clock times."""
    with _tracker(ctx) as store:
        interval = Interval.from_tokens(tokens or [])
        interval.begin = interval.end = resolve_day(day)
        try:
            interval.duration = parse_duration(duration)
        except ValueError as exc:
            raise DurationParseError(f"invalid duration format {duration!r}") from exc
        store.append(interval)


@app.command()
def summary(
    ctx: typer.Context,
    filter_args: Optional[list[str]] = typer.Argument(None, metavar="[FILTER]", help=FILTER_HELP),
) -> None:
    """Print the intervals of a period with day and week totals."""
    settings: TrackerSettings = ctx.obj
    with _tracker(ctx) as store:
        SummaryPrinter(store).print_summary(filter_args or [settings.default_filter])


@app.command()
def edit(
    ctx: typer.Context,
    filter_args: Optional[list[str]] = typer.Argument(None, metavar="[FILTER]", help=FILTER_HELP),
) -> None:
    """Edit the intervals of a period in your text editor."""
    settings: TrackerSettings = ctx.obj
    with _tracker(ctx) as store:
        result = edit_intervals(store, filter_args or [settings.default_filter], settings.editor)
        typer.echo(
            f"{len(result.added)} added, {len(result.updated)} updated, "
            f"{len(result.removed)} removed"
        )


@app.command()
def web(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the dashboard."
    ),
    open_browser: bool = typer.Option(
        True,
        "--open-browser/--no-open-browser",
        help="Automatically launch the dashboard in your default browser.",
    ),
) -> None:
    """Serve a read-only dashboard of the tracked intervals."""
    from .server_runner import run_dashboard

    settings: TrackerSettings = ctx.obj
    run_dashboard(
        host=host,
        port=port,
        db_path=settings.db_path,
        open_browser=open_browser,
    )
