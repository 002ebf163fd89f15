"""Contacts CLI commands."""

from typing import Any

import click

from suibhne.cli.output import run_command


@click.group()
def contacts() -> None:
    """Manage contacts (search, get, list, create, update, delete)."""
    pass


@contacts.command()
@click.argument("query", nargs=-1, required=True)
@click.option("--limit", "-l", type=click.IntRange(min=1), help="Maximum number of results")
@click.pass_context
def search(ctx: click.Context, query: tuple[str, ...], limit: int | None) -> None:
    """Search contacts by name.

    Example: suibhne contacts search john smith
    """
    args: dict[str, Any] = {"query": " ".join(query)}
    if limit:
        args["limit"] = limit
    run_command(ctx, "contacts.search", args)


@contacts.command()
@click.argument("contact_id")
@click.pass_context
def get(ctx: click.Context, contact_id: str) -> None:
    """Show a contact by ID."""
    run_command(ctx, "contacts.get", {"id": contact_id})


@contacts.command(name="list")
@click.argument("limit", type=click.IntRange(min=1), required=False)
@click.pass_context
def list_contacts(ctx: click.Context, limit: int | None) -> None:
    """List contacts (default limit 100)."""
    run_command(ctx, "contacts.list", {"limit": limit} if limit else {})


@contacts.command()
@click.option("--name", "-n", required=True, help="Full name")
@click.option("--phone", "-p", help="Phone number")
@click.option("--email", "-e", help="Email address")
@click.option("--org", "-o", "organization", help="Organization")
@click.option("--notes", help="Notes")
@click.pass_context
def create(
    ctx: click.Context,
    name: str,
    phone: str | None,
    email: str | None,
    organization: str | None,
    notes: str | None,
) -> None:
    """Create a contact.

    Example: suibhne contacts create --name "John Doe" --phone "+1234567890"
    """
    args: dict[str, Any] = {"name": name}
    for key, value in (
        ("phone", phone),
        ("email", email),
        ("organization", organization),
        ("notes", notes),
    ):
        if value is not None:
            args[key] = value
    run_command(ctx, "contacts.create", args)


@contacts.command()
@click.argument("contact_id")
@click.option("--add-phone", help="Add a phone number (ignored if already present)")
@click.option("--add-email", help="Add an email address (ignored if already present)")
@click.option("--org", "organization", help="Set organization")
@click.option("--notes", help="Set notes")
@click.pass_context
def update(
    ctx: click.Context,
    contact_id: str,
    add_phone: str | None,
    add_email: str | None,
    organization: str | None,
    notes: str | None,
) -> None:
    """Update a contact."""
    args: dict[str, Any] = {"id": contact_id}
    for key, value in (
        ("add_phone", add_phone),
        ("add_email", add_email),
        ("organization", organization),
        ("notes", notes),
    ):
        if value is not None:
            args[key] = value
    if len(args) == 1:
        raise click.UsageError("Nothing to update: pass --add-phone, --add-email, --org or --notes")
    run_command(ctx, "contacts.update", args)


@contacts.command()
@click.argument("contact_id")
@click.pass_context
def delete(ctx: click.Context, contact_id: str) -> None:
    """Delete a contact."""
    run_command(ctx, "contacts.delete", {"id": contact_id})
