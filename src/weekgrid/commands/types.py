"""Workout type settings commands."""

import click

from .base import (
    async_command,
    echo_info,
    echo_success,
    echo_warning,
    ensure_initialized,
    format_table,
    get_repository,
)


@click.group()
def types():
    """Manage your workout types and their categories.

    New weeks start from these types when there is no previous week to
    carry them over from.
    """
    pass


@types.command("show")
@click.pass_context
@async_command
async def show(ctx: click.Context):
    """Show workout types and categories."""
    ensure_initialized(ctx)

    names, categories = await get_repository(ctx).get_type_settings()
    if not names:
        echo_info("No workout types set.")
        return

    rows = [[name, categories.get(name) or "-"] for name in names]
    click.echo(format_table(["Type", "Category"], rows))
    for name in names:
        if not categories.get(name):
            echo_warning(f"Workout type '{name}' has no category")


@types.command("set")
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--category",
    "-c",
    multiple=True,
    metavar="TYPE=CATEGORY",
    help="Category for a type, e.g. Bike=Cardio",
)
@click.pass_context
@async_command
async def set_types(ctx: click.Context, names: tuple[str, ...], category: tuple[str, ...]):
    """Replace the list of workout types (display order as given)."""
    ensure_initialized(ctx)
    repo = get_repository(ctx)

    ordered: list[str] = []
    for name in names:
        name = name.strip()
        if name and name not in ordered:
            ordered.append(name)

    _, categories = await repo.get_type_settings()
    categories = {k: v for k, v in categories.items() if k in ordered}
    for item in category:
        type_name, sep, label = item.partition("=")
        if not sep or not type_name.strip() or not label.strip():
            raise click.BadParameter(f"Expected TYPE=CATEGORY, got {item!r}", param_hint="--category")
        categories[type_name.strip()] = label.strip()

    await repo.set_type_settings(ordered, categories)
    echo_success(f"Saved {len(ordered)} workout types")
