"""CLI entry point for weekgrid."""

from pathlib import Path

import click

from .commands import init, session, types, week
from .config import get_settings
from .log import setup_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="weekgrid")
@click.option("--user", "user_id", help="User whose data to use")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the database",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output")
@click.pass_context
def main(ctx: click.Context, user_id: str | None, data_dir: Path | None, verbose: bool):
    """weekgrid: weekly workout grid tracker.

    Log workout sessions, see the week as a Monday-to-Sunday grid against
    your benchmarks, and repair weeks whose stored state went wrong.

    Example usage:

        # Initialize the project
        weekgrid init

        # Log a session
        weekgrid session add 2025-09-28 Calves Bike

        # Show this week, or repair a broken one
        weekgrid week show
        weekgrid week repair 2025-09-22

        # Remove duplicate sessions, then rebuild the week
        weekgrid session cleanup --dry-run
        weekgrid week rebuild 2025-09-22
    """
    settings = get_settings()
    setup_logger(level="DEBUG" if verbose else settings.log_level, log_file=settings.log_file)
    ctx.obj = {"user_id": user_id, "data_dir": data_dir}


# Register commands
main.add_command(init)
main.add_command(week)
main.add_command(session)
main.add_command(types)


def run():
    """Run the CLI."""
    main()


if __name__ == "__main__":
    run()
