"""Session log commands."""

import json
from datetime import date, datetime, time
from pathlib import Path

import click

from ..models.session import SessionEvent
from ..services.maintenance import MaintenanceService
from ..utils.calendar import parse_iso_date, to_iso_date, week_dates
from .base import (
    async_command,
    echo_error,
    echo_info,
    echo_issues,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_table,
    get_policy,
    get_repository,
    resolve_week,
)


@click.group()
def session():
    """Record and clean up workout sessions."""
    pass


def _parse_date(value: str) -> date:
    try:
        return parse_iso_date(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="DATE") from e


def _load_export(path: Path) -> list[tuple[str | None, dict]]:
    """Read session documents from a JSON export.

    Accepts a list of documents, ``{"sessions": [...]}``, or a mapping of
    id to document.
    """
    data = json.loads(path.read_text())
    if isinstance(data, dict) and isinstance(data.get("sessions"), list):
        data = data["sessions"]
    if isinstance(data, list):
        return [(doc.get("id"), doc) for doc in data if isinstance(doc, dict)]
    if isinstance(data, dict):
        return [(key, doc) for key, doc in data.items() if isinstance(doc, dict)]
    raise click.BadParameter("Expected a list or mapping of session documents")


@session.command("add")
@click.argument("date_iso", metavar="DATE")
@click.argument("types", nargs=-1, required=True)
@click.option("--at", "at_time", help="Completion time (HH:MM), default now")
@click.option("--manual", is_flag=True, help="Hand-entered session")
@click.option("--exercises", type=int, help="Number of exercises performed")
@click.option("--name", default="", help="Session name")
@click.pass_context
@async_command
async def add(
    ctx: click.Context,
    date_iso: str,
    types: tuple[str, ...],
    at_time: str | None,
    manual: bool,
    exercises: int | None,
    name: str,
):
    """Record a session on DATE with the given TYPES."""
    ensure_initialized(ctx)
    day = _parse_date(date_iso)

    if at_time:
        try:
            completed = datetime.combine(day, time.fromisoformat(at_time))
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--at") from e
    else:
        completed = datetime.now()

    event = SessionEvent(
        session_types=list(types),
        date_iso=to_iso_date(day),
        completed_at=int(completed.timestamp() * 1000),
        manual=manual,
        exercise_count=exercises,
        session_name=name or ("Manual" if manual else ""),
    )

    service = MaintenanceService(get_repository(ctx))
    weekly = await service.record_session(event)

    echo_success(f"Recorded {event.get_types_display()} on {event.date_iso} ({event.id})")
    record = weekly.day_for(event.date_iso)
    click.echo(f"Sessions that day: {record.session_count}")


@session.command("list")
@click.option("--week", "week_date", help="Only sessions in the week containing this date")
@click.pass_context
@async_command
async def list_sessions(ctx: click.Context, week_date: str | None):
    """List logged sessions in chronological order."""
    ensure_initialized(ctx)

    events = await get_repository(ctx).list_sessions()
    if week_date:
        days = {to_iso_date(d) for d in week_dates(resolve_week(week_date))}
        events = [e for e in events if e.placement_date in days]

    if not events:
        echo_info("No sessions found.")
        return

    events.sort(key=lambda e: (e.placement_date or "", e.completed_at or 0))
    rows = []
    for e in events:
        completed = e.completed_datetime
        rows.append([
            e.id,
            e.placement_date or "?",
            completed.strftime("%H:%M:%S") if completed else "-",
            e.get_types_display(),
            "yes" if e.manual else "",
        ])
    click.echo(format_table(["ID", "Date", "Time", "Types", "Manual"], rows))


@session.command("delete")
@click.argument("session_id")
@click.pass_context
@async_command
async def delete(ctx: click.Context, session_id: str):
    """Delete one session from the log."""
    ensure_initialized(ctx)

    if await get_repository(ctx).delete_session(session_id):
        echo_success(f"Deleted session {session_id}")
        echo_info("Run 'weekgrid week rebuild' to refresh the affected week.")
    else:
        echo_error(f"Session {session_id} not found.")
        ctx.exit(1)


@session.command("cleanup")
@click.option("--dry-run", is_flag=True, help="Only show what would be deleted")
@click.option("--supersets", is_flag=True, help="Also drop sessions whose types are a subset of another's that day")
@click.option("--window-ms", type=click.IntRange(min=0), help="Burst window for duplicates")
@click.pass_context
@async_command
async def cleanup(ctx: click.Context, dry_run: bool, supersets: bool, window_ms: int | None):
    """Remove duplicate sessions from the log.

    Copies of one session saved within the burst window are reduced to the
    latest copy.
    """
    ensure_initialized(ctx)

    policy = get_policy(window_ms=window_ms, supersets=supersets or None)
    service = MaintenanceService(get_repository(ctx), policy)
    result = await service.cleanup_sessions(dry_run=dry_run)

    echo_issues(result.unplaceable)
    if not result.discarded:
        echo_success(f"No duplicates among {len(result.retained)} sessions")
        return

    verb = "Would delete" if dry_run else "Deleted"
    for e in result.discarded:
        click.echo(f"  {verb} {e.id}: {e.placement_date} {e.get_types_display()}")
    echo_success(f"{verb} {len(result.discarded)} duplicate sessions")
    if not dry_run:
        echo_info("Run 'weekgrid week rebuild WEEK' to refresh affected weeks.")


@session.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
@async_command
async def import_sessions(ctx: click.Context, path: Path):
    """Import session documents from a JSON export."""
    ensure_initialized(ctx)
    repo = get_repository(ctx)

    imported = skipped = 0
    for session_id, doc in _load_export(path):
        if session_id and await repo.get_session(session_id):
            skipped += 1
            continue
        event = SessionEvent.from_dict(doc, id=session_id)
        if event.placement_date is None:
            echo_warning(f"Session {session_id or '<no id>'} has no date or timestamp")
        await repo.add_session(event)
        imported += 1

    echo_success(f"Imported {imported} sessions ({skipped} already present)")
