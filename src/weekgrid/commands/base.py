"""Shared CLI utilities."""

import asyncio
from datetime import date
from functools import wraps
from pathlib import Path

import click

from ..config import get_settings
from ..db import StateRepository, get_db_path
from ..models.issues import Severity
from ..services.reconcile import ReconciliationPolicy
from ..utils.calendar import week_key


def async_command(f):
    """Decorator to run async Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def get_data_dir(ctx: click.Context) -> Path:
    """Get the data directory (``--data-dir`` or settings)."""
    obj = ctx.find_root().obj or {}
    return obj.get("data_dir") or get_settings().data_dir


def get_repository(ctx: click.Context) -> StateRepository:
    """Get the state repository for the selected user."""
    obj = ctx.find_root().obj or {}
    user_id = obj.get("user_id") or get_settings().user_id
    return StateRepository(get_db_path(get_data_dir(ctx)), user_id=user_id)


def get_policy(
    window_ms: int | None = None, supersets: bool | None = None
) -> ReconciliationPolicy:
    """Build the reconciliation policy from settings and CLI overrides."""
    settings = get_settings()
    return ReconciliationPolicy(
        burst_window_ms=settings.burst_window_ms if window_ms is None else window_ms,
        collapse_supersets=settings.collapse_supersets if supersets is None else supersets,
    )


def resolve_week(value: str | None) -> str:
    """Turn a WEEK argument (any date, default today) into a week key."""
    try:
        return week_key(value or date.today())
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="WEEK") from e


def ensure_initialized(ctx: click.Context) -> None:
    """Ensure the database is initialized."""
    db_path = get_data_dir(ctx) / "weekgrid.db"
    if not db_path.exists():
        click.echo(
            click.style("Error: ", fg="red")
            + "Project not initialized. Run 'weekgrid init' first."
        )
        ctx.exit(1)


def echo_success(message: str) -> None:
    """Print a success message."""
    click.echo(click.style("[OK] ", fg="green") + message)


def echo_error(message: str) -> None:
    """Print an error message."""
    click.echo(click.style("[ERROR] ", fg="red") + message)


def echo_info(message: str) -> None:
    """Print an info message."""
    click.echo(click.style("[INFO] ", fg="blue") + message)


def echo_warning(message: str) -> None:
    """Print a warning message."""
    click.echo(click.style("[WARN] ", fg="yellow") + message)


def echo_issues(issues) -> None:
    """Print reported data issues at their severity."""
    for issue in issues:
        if issue.severity == Severity.ERROR:
            echo_error(issue.message)
        else:
            echo_warning(issue.message)


def format_table(headers: list[str], rows: list[list[str]], padding: int = 2) -> str:
    """Format data as a simple table."""
    if not rows:
        return ""

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    lines = []
    lines.append("".join(h.ljust(widths[i] + padding) for i, h in enumerate(headers)))
    lines.append("".join("-" * w + " " * padding for w in widths))
    for row in rows:
        lines.append(
            "".join(str(cell).ljust(widths[i] + padding) for i, cell in enumerate(row))
        )

    return "\n".join(line.rstrip() for line in lines)
