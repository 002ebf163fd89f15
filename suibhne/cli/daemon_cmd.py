"""Daemon management commands for the suibhne CLI."""

import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import click

from suibhne.cli.client import DaemonClient, DaemonError
from suibhne.cli.output import error, fail, get_client, info, print_data, success, warning
from suibhne.config import DEFAULT_PID_FILE, load_settings
from suibhne.exceptions import ConfigError
from suibhne.utils.logs import log_file_for


def _get_pid() -> int | None:
    """Get the daemon PID if running.

    Returns:
        PID if daemon is running, None otherwise.
    """
    if not DEFAULT_PID_FILE.exists():
        return None

    try:
        pid = int(DEFAULT_PID_FILE.read_text().strip())
        # Check if process exists
        os.kill(pid, 0)
        return pid
    except (ValueError, OSError):
        # PID file is stale, clean it up
        DEFAULT_PID_FILE.unlink(missing_ok=True)
        return None


def _wait_for_daemon(client: DaemonClient, timeout: float = 5.0) -> bool:
    """Wait for the daemon to start answering pings.

    Args:
        client: Client pointed at the daemon socket.
        timeout: Maximum time to wait in seconds.

    Returns:
        True if daemon started, False if timeout.
    """
    start = time.time()
    while time.time() - start < timeout:
        if client.is_running():
            return True
        time.sleep(0.1)
    return False


def _wait_for_shutdown(pid: int, timeout: float = 5.0) -> bool:
    """Wait for daemon to shut down.

    Args:
        pid: Process ID to wait for.
        timeout: Maximum time to wait in seconds.

    Returns:
        True if daemon shut down, False if timeout.
    """
    start = time.time()
    while time.time() - start < timeout:
        try:
            os.kill(pid, 0)
            time.sleep(0.1)
        except OSError:
            return True
    return False


def _daemon_args(socket_path: Path | None, verbose: bool) -> list[str]:
    args = [sys.executable, "-m", "suibhne.daemon.server"]
    if socket_path:
        args.extend(["--socket", str(socket_path)])
    if verbose:
        args.append("--verbose")
    return args


@click.group()
def daemon() -> None:
    """Manage the Suibhne daemon."""
    pass


@daemon.command()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def run(ctx: click.Context, verbose: bool) -> None:
    """Run the daemon in the foreground."""
    args = _daemon_args(ctx.find_root().obj.get("socket_override"), verbose)
    info("Starting daemon in foreground...")
    try:
        os.execv(sys.executable, args)
    except OSError as e:
        fail(f"Failed to start daemon: {e}")


@daemon.command()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def start(ctx: click.Context, verbose: bool) -> None:
    """Start the Suibhne daemon in the background."""
    client = get_client(ctx)

    pid = _get_pid()
    if pid:
        if client.is_running():
            warning(f"Daemon is already running (PID {pid})")
            return
        info("Found stale PID file, cleaning up...")
        DEFAULT_PID_FILE.unlink(missing_ok=True)

    try:
        settings = load_settings()
    except ConfigError as e:
        fail(str(e))

    DEFAULT_PID_FILE.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    args = _daemon_args(ctx.find_root().obj.get("socket_override"), verbose)

    info("Starting daemon in background...")
    try:
        proc = subprocess.Popen(
            args,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        fail(f"Failed to start daemon: {e}")

    DEFAULT_PID_FILE.write_text(str(proc.pid))

    if _wait_for_daemon(client):
        success(f"Daemon started (PID {proc.pid})")
        info(f"  Socket: {client.socket_path}")
        info(f"  Logs: {log_file_for(settings.log_dir)}")
    else:
        warning("Daemon process started but not responding yet")
        info(f"Check logs: {log_file_for(settings.log_dir)}")


@daemon.command()
@click.option("--force", "-f", is_flag=True, help="Force kill if graceful shutdown fails")
def stop(force: bool) -> None:
    """Stop the Suibhne daemon."""
    pid = _get_pid()

    if not pid:
        warning("Daemon is not running")
        return

    info(f"Stopping daemon (PID {pid})...")

    try:
        os.kill(pid, signal.SIGTERM)
    except OSError as e:
        DEFAULT_PID_FILE.unlink(missing_ok=True)
        fail(f"Failed to send SIGTERM: {e}")

    if _wait_for_shutdown(pid):
        success("Daemon stopped")
        DEFAULT_PID_FILE.unlink(missing_ok=True)
        return

    if not force:
        fail("Graceful shutdown timed out. Use --force to kill.")

    warning("Graceful shutdown failed, forcing...")
    try:
        os.kill(pid, signal.SIGKILL)
        _wait_for_shutdown(pid, timeout=2.0)
        success("Daemon killed")
    except OSError as e:
        error(f"Failed to kill daemon: {e}")
    DEFAULT_PID_FILE.unlink(missing_ok=True)


@daemon.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Check whether the daemon is answering."""
    try:
        data = get_client(ctx).call("status")
    except DaemonError as e:
        fail(f"Daemon is not responding: {e}")

    success(f"Daemon is running (PID {data.get('pid')})")
    print_data(data)


@daemon.command()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def restart(ctx: click.Context, verbose: bool) -> None:
    """Restart the Suibhne daemon."""
    # Stop if running
    if _get_pid():
        ctx.invoke(stop)

    ctx.invoke(start, verbose=verbose)
