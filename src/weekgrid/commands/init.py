"""Initialize project command."""

import click

from ..db import get_db_path, init_db
from .base import async_command, echo_info, echo_success, get_data_dir


@click.command()
@click.pass_context
@async_command
async def init(ctx: click.Context):
    """Initialize the weekgrid data directory and database.

    Creates the SQLite database holding weekly documents, the session log
    and workout type settings.
    """
    data_dir = get_data_dir(ctx)
    echo_info(f"Initializing weekgrid in {data_dir}")

    db_path = get_db_path(data_dir)
    await init_db(db_path)
    echo_success("Database initialized")

    click.echo()
    click.echo("weekgrid is ready to use!")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Set up your workout types:")
    click.echo("     weekgrid types set Bike Calves Resistance -c Bike=Cardio")
    click.echo()
    click.echo("  2. Log a session:")
    click.echo("     weekgrid session add 2025-09-23 Bike")
