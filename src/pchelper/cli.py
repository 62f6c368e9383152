"""CLI interface for PC Helper."""

from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path

import click

from pchelper.core.counter import PersistentCounter
from pchelper.core.error_log import ErrorLogStore
from pchelper.core.event_log import CommandLogReader
from pchelper.core.maintenance import ERROR_SCAN_TIMER, MAINTENANCE_TIMER, register_default_timers
from pchelper.core.scheduler import Scheduler
from pchelper.core.session import CleanupSession, SessionState, SortKey
from pchelper.core.sizer import compute_size
from pchelper.models.file_entry import FileEntry
from pchelper.models.timer_state import TimerState
from pchelper.settings import Settings
from pchelper.utils import bytes_to_human, remove_path

_TIMER_SETTINGS = {
    MAINTENANCE_TIMER: "timers.maintenance.interval_days",
    ERROR_SCAN_TIMER: "timers.error_scan.interval_days",
}


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _entry_to_dict(entry: FileEntry) -> dict:
    return {
        "path": str(entry.path),
        "name": entry.name,
        "is_dir": entry.is_dir,
        "size_bytes": entry.size_bytes if entry.is_sized else None,
        "last_modified": entry.modified_at.isoformat(timespec="seconds"),
    }


def _timer_states(settings: Settings) -> list[TimerState]:
    counter = PersistentCounter()
    return [
        TimerState(name, int(settings.get(key)), counter.last_reset(name))
        for name, key in _TIMER_SETTINGS.items()
    ]


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """PC Helper — file cleanup and maintenance reminders."""
    _setup_logging(verbose)


# ── files ────────────────────────────────────────────────────────────────

@main.command()
@click.argument("directory", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--sort", "-s", "sort_key", default=None,
    type=click.Choice([k.value for k in SortKey]), help="Sort column",
)
@click.option("--desc/--asc", "descending", default=None, help="Sort direction")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def files(directory: Path | None, sort_key: str | None, descending: bool | None, as_json: bool) -> None:
    """List a directory's files with their total sizes."""
    settings = Settings.instance()
    directory = directory or Path(settings.get("cleanup.directory") or Path.home())
    session = CleanupSession(
        sort_key=sort_key or settings.get("cleanup.sort_key"),
        descending=settings.get("cleanup.descending") if descending is None else descending,
    )

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Sizing {directory}...\n")

    session.open(directory)
    try:
        session.wait()
    except KeyboardInterrupt:
        session.cancel()

    snap = session.snapshot()

    if as_json:
        data = {
            "directory": str(snap.directory),
            "state": snap.state.value,
            "entries": [_entry_to_dict(e) for e in snap.entries],
        }
        click.echo(json.dumps(data, indent=2))
        return

    if not snap.entries:
        click.echo("Nothing here.")
        return

    for entry in snap.entries:
        size_str = bytes_to_human(entry.size_bytes) if entry.is_sized else "…"
        name = entry.name + ("/" if entry.is_dir else "")
        style = {"fg": "blue", "bold": True} if entry.is_dir else {}
        click.echo(
            f"  {size_str:>10s}  {entry.modified_at:%Y-%m-%d %H:%M}  {click.style(name, **style)}"
        )

    total = sum(e.size_bytes for e in snap.entries if e.is_sized)
    click.echo(f"\nTotal: {click.style(bytes_to_human(total), fg='green', bold=True)}")
    if snap.state is SessionState.CANCELLED:
        click.echo(click.style("(cancelled: sizes are partial)", fg="yellow"))
    click.echo()


# ── delete ───────────────────────────────────────────────────────────────

@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def delete(paths: tuple[Path, ...], yes: bool) -> None:
    """Permanently delete files or directories."""
    total = 0
    for path in paths:
        size = compute_size(path)
        total += size
        click.echo(f"  {bytes_to_human(size):>10s}  {path}")
    click.echo(f"\nTotal: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")

    if not yes and not click.confirm(f"Delete {len(paths)} item(s)? This cannot be undone"):
        click.echo("Aborted.")
        return

    failed = 0
    for path in paths:
        try:
            remove_path(path)
        except OSError as e:
            failed += 1
            click.echo(f"  {click.style('✗', fg='red')} {path}: {e}", err=True)
    if failed:
        sys.exit(1)
    click.echo(f"{click.style('✓', fg='green')} Deleted {len(paths)} item(s).")


# ── errors ───────────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def errors(as_json: bool) -> None:
    """Show critical errors saved by past log scans."""
    saved = ErrorLogStore().errors

    if as_json:
        click.echo(json.dumps(list(saved), indent=2))
        return

    if not saved:
        click.echo("No saved error records.")
        return

    for line in saved:
        click.echo(line)
        click.echo(click.style("-" * 33, fg="bright_black"))


# ── timers ───────────────────────────────────────────────────────────────

@main.group()
def timers() -> None:
    """Maintenance timer commands."""


@timers.command("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def timers_status(as_json: bool) -> None:
    """Show when each timer was last reset and whether it is due."""
    today = date.today()
    states = _timer_states(Settings.instance())

    if as_json:
        data = [
            {
                "name": s.name,
                "interval_days": s.interval_days,
                "last_reset": s.last_reset.isoformat(),
                "days_passed": s.days_passed(today),
                "due": s.is_due(today),
            }
            for s in states
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for s in states:
        status = click.style("due", fg="yellow", bold=True) if s.is_due(today) else click.style("ok", fg="green")
        click.echo(
            f"  {s.name:15s} every {s.interval_days:>3d}d  last reset {s.last_reset}  "
            f"({s.days_passed(today)}d ago)  {status}"
        )


@timers.command("reset")
@click.argument("name", type=click.Choice(list(_TIMER_SETTINGS)))
def timers_reset(name: str) -> None:
    """Reset a timer to today."""
    PersistentCounter().reset(name)
    click.echo(f"Timer '{name}' reset.")


# ── daemon ───────────────────────────────────────────────────────────────

@main.command()
@click.option("--once", is_flag=True, help="Check timers once and exit")
def daemon(once: bool) -> None:
    """Run the maintenance scheduler in the foreground."""
    settings = Settings.instance()
    store = ErrorLogStore()
    scheduler = Scheduler(
        PersistentCounter(),
        check_interval=float(settings.get("scheduler.check_interval_seconds")),
    )

    def on_maintenance() -> None:
        days = settings.get("timers.maintenance.interval_days")
        click.echo(f"{click.style('🧹', bold=True)} It has been {days} days since the last cleanup.")

    def on_errors(lines: list[str]) -> None:
        click.echo(
            f"{click.style('!', fg='red', bold=True)} {len(lines)} critical log line(s) saved. "
            "Run 'pchelper errors' to review."
        )

    register_default_timers(
        scheduler,
        settings,
        reader=CommandLogReader(settings.get("error_scan.command")),
        store=store,
        on_maintenance=on_maintenance,
        on_errors=on_errors,
    )

    if once:
        fired = scheduler.tick()
        click.echo(f"Fired: {', '.join(fired)}" if fired else "Nothing due.")
        return

    click.echo("PC Helper scheduler running (Ctrl+C to stop)...")
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        click.echo("\nStopped.")


# ── service ──────────────────────────────────────────────────────────────

@main.group()
def service() -> None:
    """D-Bus service management."""


@service.command("start")
def service_start() -> None:
    """Start the D-Bus service in foreground."""
    from pchelper.dbus_service import start_service

    click.echo("Starting PC Helper D-Bus service...")
    start_service()
