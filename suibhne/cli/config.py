"""OpenClaw config and skills CLI commands."""

import os
import subprocess
from typing import Any

import click

from suibhne.cli.output import fail, run_command
from suibhne.config import load_settings
from suibhne.exceptions import ConfigError


def _parse_value(value: str) -> Any:
    """Parse a string value into appropriate Python type.

    Args:
        value: String value from command line.

    Returns:
        Parsed value (bool, null, int, float, list, or string).
    """
    lowered = value.lower()

    # Boolean
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    if lowered in ("null", "none"):
        return None

    # Number
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass

    # List (comma-separated)
    if "," in value:
        return [v.strip() for v in value.split(",") if v.strip()]

    # String
    return value


@click.group()
def config() -> None:
    """View or edit the OpenClaw configuration."""
    pass


@config.command(name="get")
@click.argument("key", required=False)
@click.pass_context
def config_get(ctx: click.Context, key: str | None) -> None:
    """Show the config file, or one dotted KEY."""
    run_command(ctx, "config.get", {"key": key} if key else {})


@config.command(name="set")
@click.argument("key")
@click.argument("value")
@click.option("--raw", is_flag=True, help="Store VALUE as a string without type parsing")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str, raw: bool) -> None:
    """Set a dotted KEY to VALUE.

    Example: suibhne config set gateway.port 8080
    """
    run_command(ctx, "config.set", {"key": key, "value": value if raw else _parse_value(value)})


@config.command()
def edit() -> None:
    """Open the OpenClaw config in $EDITOR."""
    try:
        settings = load_settings()
    except ConfigError as e:
        fail(str(e))

    editor = os.environ.get("EDITOR", "nano")
    try:
        subprocess.run([editor, str(settings.openclaw_config_path)], check=False)
    except OSError as e:
        fail(f"Failed to start editor {editor}: {e}")


@click.group()
def skills() -> None:
    """List or install skills."""
    pass


@skills.command(name="list")
@click.pass_context
def skills_list(ctx: click.Context) -> None:
    """List installed skills."""
    run_command(ctx, "skills.list")


@skills.command(name="install")
@click.argument("url")
@click.pass_context
def skills_install(ctx: click.Context, url: str) -> None:
    """Install a skill from URL."""
    run_command(ctx, "skills.install", {"url": url})

