"""Main CLI entry point for Suibhne."""

import contextlib
import subprocess
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from suibhne import __version__
from suibhne.cli.calendar import calendar, reminders
from suibhne.cli.config import config, skills
from suibhne.cli.contacts import contacts
from suibhne.cli.daemon_cmd import daemon
from suibhne.cli.output import fail, info, run_command
from suibhne.config import SOCKET_ENV_VAR, default_socket_path, load_settings
from suibhne.exceptions import ConfigError, SuibhneError
from suibhne.utils.logs import log_file_for, tail_lines

err_console = Console(stderr=True)


@click.group()
@click.option(
    "--socket",
    "-s",
    "socket_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=SOCKET_ENV_VAR,
    help="Path to the daemon socket",
)
@click.option("--timeout", type=float, default=10.0, show_default=True, help="Request timeout in seconds")
@click.option("--debug/--no-debug", default=False, help="Show debug information")
@click.pass_context
def cli(ctx: click.Context, socket_path: Path | None, timeout: float, debug: bool) -> None:
    """Suibhne - local command server for contacts, config and skills.

    Talks to the suibhne daemon over a Unix socket.
    """
    ctx.ensure_object(dict)
    # Only an explicit --socket (or SUIBHNE_SOCKET) is forwarded to the daemon
    ctx.obj["socket_override"] = socket_path
    if socket_path is None:
        try:
            socket_path = load_settings().socket_path
        except ConfigError:
            socket_path = default_socket_path()
    ctx.obj["socket_path"] = socket_path
    ctx.obj["timeout"] = timeout
    ctx.obj["debug"] = debug


@cli.command()
@click.pass_context
def ping(ctx: click.Context) -> None:
    """Check that the daemon answers."""
    run_command(ctx, "ping")


@cli.command(name="status")
@click.pass_context
def status_cmd(ctx: click.Context) -> None:
    """Show daemon status."""
    run_command(ctx, "status")


@cli.command(name="commands")
@click.pass_context
def commands_cmd(ctx: click.Context) -> None:
    """List the commands the daemon understands."""
    run_command(ctx, "commands")


@cli.group(invoke_without_command=True)
@click.pass_context
def permissions(ctx: click.Context) -> None:
    """Show resource authorization status."""
    if ctx.invoked_subcommand is None:
        run_command(ctx, "permissions")


@permissions.command(name="request")
@click.argument("resource")
@click.pass_context
def permissions_request(ctx: click.Context, resource: str) -> None:
    """Ask the daemon to resolve access to RESOURCE."""
    run_command(ctx, "permissions.request", {"resource": resource})


@cli.command()
@click.option("--lines", "-n", type=click.IntRange(min=1), default=50, show_default=True)
@click.option("--follow", "-f", is_flag=True, help="Follow the log as it grows")
def logs(lines: int, follow: bool) -> None:
    """Show today's daemon log."""
    try:
        settings = load_settings()
    except ConfigError as e:
        fail(str(e))

    log_file = log_file_for(settings.log_dir)
    if not log_file.exists():
        info(f"No log file found at {log_file}")
        return

    if follow:
        with contextlib.suppress(KeyboardInterrupt):
            subprocess.run(["tail", "-n", str(lines), "-f", str(log_file)], check=False)
        return

    for line in tail_lines(log_file, lines):
        click.echo(line)


@cli.command()
def version() -> None:
    """Show the suibhne version."""
    click.echo(f"suibhne {__version__}")


# Register commands
cli.add_command(contacts)
cli.add_command(calendar)
cli.add_command(reminders)
cli.add_command(config)
cli.add_command(skills)
cli.add_command(daemon)


def main() -> None:
    """Main entry point with error handling."""
    try:
        cli()
    except SuibhneError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        sys.exit(1)
    except Exception as e:
        if "--debug" in sys.argv:
            raise
        err_console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
