"""Weekly grid commands."""

import click

from ..models.weekly import BenchmarkStatus, WeeklyDocument
from ..services.maintenance import MaintenanceService, RepairAction, RepairOutcome
from ..utils.calendar import weekday_label
from .base import (
    async_command,
    echo_info,
    echo_issues,
    echo_success,
    ensure_initialized,
    format_table,
    get_policy,
    get_repository,
    resolve_week,
)

STATUS_COLORS = {
    BenchmarkStatus.MET: "green",
    BenchmarkStatus.CLOSE: "yellow",
    BenchmarkStatus.BEHIND: None,
}


@click.group()
def week():
    """View and repair weekly documents."""
    pass


def _echo_weekly(weekly: WeeklyDocument) -> None:
    click.echo()
    click.echo(click.style(f"Week {weekly.week_number} ({weekly.week_of_iso})", bold=True))
    click.echo("=" * 50)

    rows = []
    for day in weekly.days:
        rows.append([
            f"{weekday_label(day.date_iso)} {day.date_iso}",
            str(day.session_count),
            " + ".join(day.performed) or "Rest",
        ])
    click.echo(format_table(["Day", "Sessions", "Types"], rows))

    counts = weekly.type_counts()
    if not counts:
        return

    click.echo()
    click.echo(click.style("Benchmarks:", bold=True))
    for type_name, count in counts.items():
        target = weekly.benchmarks.get(type_name, 0)
        status = weekly.benchmark_status(type_name)
        category = weekly.type_categories.get(type_name) or "-"
        line = f"  {type_name} [{category}]: {count}/{target}"
        click.echo(click.style(line, fg=STATUS_COLORS[status]))


def _echo_outcome(outcome: RepairOutcome) -> None:
    echo_issues(outcome.issues)
    if outcome.action == RepairAction.UNCHANGED:
        echo_info(f"Week {outcome.week_key} already in order")
    elif outcome.action == RepairAction.REORDERED:
        echo_success(f"Week {outcome.week_key} reordered Monday-first")
    else:
        echo_success(f"Week {outcome.week_key} rebuilt from session log")


@week.command("show")
@click.argument("week_date", metavar="[WEEK]", required=False)
@click.pass_context
@async_command
async def show(ctx: click.Context, week_date: str | None):
    """Show the grid for the week containing WEEK (default: this week)."""
    ensure_initialized(ctx)
    key = resolve_week(week_date)

    service = MaintenanceService(get_repository(ctx))
    weekly, issues = await service.load_week(key)
    if weekly is None:
        echo_info(f"No data for week {key}.")
        return

    _echo_weekly(weekly)
    if issues:
        click.echo()
        echo_issues(issues)


@week.command("repair")
@click.argument("week_date", metavar="[WEEK]", required=False)
@click.pass_context
@async_command
async def repair(ctx: click.Context, week_date: str | None):
    """Put a week's days back in Monday-first order.

    Weeks that cannot simply be reordered are rebuilt from the session log.
    """
    ensure_initialized(ctx)
    key = resolve_week(week_date)

    service = MaintenanceService(get_repository(ctx), get_policy())
    outcome = await service.repair_week(key)
    _echo_outcome(outcome)
    _echo_weekly(outcome.weekly)


@week.command("rebuild")
@click.argument("week_date", metavar="[WEEK]", required=False)
@click.option("--supersets", is_flag=True, help="Collapse subset sessions")
@click.pass_context
@async_command
async def rebuild(ctx: click.Context, week_date: str | None, supersets: bool):
    """Replace a week with one rebuilt from the session log.

    Benchmarks, types and categories of the stored week are kept.
    """
    ensure_initialized(ctx)
    key = resolve_week(week_date)

    service = MaintenanceService(get_repository(ctx), get_policy(supersets=supersets or None))
    outcome = await service.rebuild_week(key)
    _echo_outcome(outcome)
    _echo_weekly(outcome.weekly)
