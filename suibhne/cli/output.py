"""Shared output helpers for CLI commands."""

import json
from typing import Any, NoReturn

import click
from rich.console import Console
from rich.markup import escape

from suibhne.cli.client import DaemonClient, DaemonError

console = Console()
err_console = Console(stderr=True)


def error(msg: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]Error:[/red] {escape(msg)}", soft_wrap=True)


def warning(msg: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning:[/yellow] {escape(msg)}", soft_wrap=True)


def info(msg: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{escape(msg)}[/dim]", soft_wrap=True)


def success(msg: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(msg)}", soft_wrap=True)


def fail(msg: str) -> NoReturn:
    """Print an error and exit non-zero."""
    error(msg)
    raise SystemExit(1)


def print_data(data: Any) -> None:
    """Print response data as indented JSON."""
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def get_client(ctx: click.Context) -> DaemonClient:
    """Build a client for the socket selected on the command line."""
    obj = ctx.find_root().obj or {}
    return DaemonClient(obj.get("socket_path"), timeout=obj.get("timeout", 10.0))


def run_command(ctx: click.Context, command: str, args: dict[str, Any] | None = None) -> Any:
    """Send one request, print its data, and exit 1 on any failure.

    Returns:
        The response data.
    """
    try:
        response = get_client(ctx).send(command, args)
    except DaemonError as e:
        fail(str(e))

    if not response.success:
        fail(response.error or "Unknown error")

    print_data(response.data)
    return response.data
