"""Calendar and reminders CLI commands.

Both namespaces are declared by the daemon but have no backend yet, so
every command here reports the daemon's "not yet implemented" error.
"""

import click

from suibhne.cli.output import run_command


@click.group()
def calendar() -> None:
    """Manage calendar events (coming soon)."""
    pass


@calendar.command(name="events")
@click.pass_context
def calendar_events(ctx: click.Context) -> None:
    """List calendar events."""
    run_command(ctx, "calendar.events")


@calendar.command(name="create")
@click.pass_context
def calendar_create(ctx: click.Context) -> None:
    """Create a calendar event."""
    run_command(ctx, "calendar.create")


@click.group()
def reminders() -> None:
    """Manage reminders (coming soon)."""
    pass


@reminders.command(name="list")
@click.pass_context
def reminders_list(ctx: click.Context) -> None:
    """List reminders."""
    run_command(ctx, "reminders.list")


@reminders.command(name="add")
@click.pass_context
def reminders_add(ctx: click.Context) -> None:
    """Add a reminder."""
    run_command(ctx, "reminders.add")


@reminders.command(name="complete")
@click.pass_context
def reminders_complete(ctx: click.Context) -> None:
    """Complete a reminder."""
    run_command(ctx, "reminders.complete")
