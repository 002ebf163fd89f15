"""Suibhne daemon server orchestration.

Main entry point for the daemon that wires backends, router and transport.
"""

import asyncio
import logging
import os
import signal
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from suibhne import __version__
from suibhne.config import Settings, load_settings
from suibhne.daemon.commands import HandlerContext
from suibhne.daemon.router import CommandRouter
from suibhne.daemon.transports.unix_socket import UnixSocketTransport
from suibhne.exceptions import ConfigError, TransportError
from suibhne.services.authorization import AccessGate
from suibhne.services.contacts import ContactsService, ContactStore
from suibhne.services.openclaw import ConfigFileService, SkillsService
from suibhne.utils.logs import setup_logging

logger = logging.getLogger(__name__)

# Resources guarded by an AccessGate
RESOURCES = ("contacts", "config", "skills")


class SuibhneDaemon:
    """Suibhne daemon server.

    Owns one transport and one router. Nothing is shared through module
    globals: everything is built here and passed down.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the daemon.

        Args:
            settings: Daemon settings. If None, uses defaults.
        """
        self._settings = settings or Settings()

        self._gates: dict[str, AccessGate] = {}
        self._router: CommandRouter | None = None
        self._transport: UnixSocketTransport | None = None

        self._running = False
        self._started_at: datetime | None = None
        self._started_monotonic = 0.0
        self._shutdown_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        """Check if the daemon is running."""
        return self._running

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def socket_path(self) -> Path:
        return self._settings.socket_path

    @property
    def router(self) -> CommandRouter | None:
        return self._router

    async def start(self) -> None:
        """Start the daemon.

        Builds backends and router, then starts the socket transport.

        Raises:
            TransportError: If the socket cannot be bound.
        """
        if self._running:
            logger.warning("Daemon is already running")
            return

        logger.info("Starting Suibhne daemon %s...", __version__)

        self._router = CommandRouter(self._build_context())

        self._transport = UnixSocketTransport(
            self._settings.socket_path,
            backlog=self._settings.backlog,
            max_message_size=self._settings.max_message_size,
            request_timeout=self._settings.request_timeout,
        )
        self._transport.set_handler(self._router.handle)
        await self._transport.start()

        self._running = True
        self._started_at = datetime.now(timezone.utc)
        self._started_monotonic = time.monotonic()
        self._shutdown_event = asyncio.Event()

        logger.info("Suibhne daemon started successfully")
        logger.info("  Socket: %s", self._settings.socket_path)
        for name, gate in self._gates.items():
            logger.info("  Access %s: %s", name, gate.status.value)

    async def stop(self) -> None:
        """Stop the daemon.

        Stops the transport and releases the socket.
        """
        if not self._running:
            return

        logger.info("Stopping Suibhne daemon...")

        if self._transport:
            await self._transport.stop()

        if self._shutdown_event:
            self._shutdown_event.set()

        self._running = False
        logger.info("Suibhne daemon stopped")

    async def run_forever(self) -> None:
        """Run the daemon until interrupted.

        Blocks until shutdown is requested via signal or stop().
        """
        await self.start()

        if self._shutdown_event:
            await self._shutdown_event.wait()

    def status(self) -> dict[str, Any]:
        """Get status information for the ``status`` command."""
        socket_path = self._settings.socket_path
        return {
            "app": "Suibhne",
            "version": __version__,
            "pid": os.getpid(),
            "socketPath": str(socket_path),
            "socketActive": socket_path.exists() and bool(self._transport and self._transport.is_running),
            "startedAt": self._started_at.isoformat() if self._started_at else None,
            "uptime": round(time.monotonic() - self._started_monotonic, 3) if self._running else 0.0,
            "connections": self._transport.connection_count if self._transport else 0,
        }

    def _build_context(self) -> HandlerContext:
        """Create backends and their access gates."""
        settings = self._settings
        self._gates = {
            name: AccessGate.from_policy(name, settings.access_policy(name)) for name in RESOURCES
        }

        return HandlerContext(
            contacts=ContactsService(ContactStore(settings.contacts_path), self._gates["contacts"]),
            config_file=ConfigFileService(settings.openclaw_config_path, self._gates["config"]),
            skills=SkillsService(settings.skills_dirs, self._gates["skills"]),
            gates=self._gates,
            status=self.status,
        )


def main() -> None:
    """Entry point for the suibhne-daemon command."""
    import argparse

    # Name the process in ps and top when setproctitle is installed
    try:
        import setproctitle
        setproctitle.setproctitle("suibhne daemon")
    except ImportError:
        pass

    parser = argparse.ArgumentParser(description="Suibhne daemon server")
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to config file (default: ~/.suibhne/config.yaml)",
    )
    parser.add_argument(
        "--socket",
        type=Path,
        help="Unix socket path (default: ~/.suibhne/suibhne.sock)",
    )
    parser.add_argument(
        "--verbose", "-V",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        setup_logging(verbose=args.verbose)
        logger.error("%s", e)
        raise SystemExit(1) from e

    if args.socket:
        settings.socket_path = args.socket.expanduser()

    setup_logging(settings.log_dir, settings.log_level, args.verbose)

    daemon = SuibhneDaemon(settings)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    def handle_shutdown(signum: int) -> None:
        """Handle shutdown signal."""
        logger.info("Received signal %s, shutting down...", signal.Signals(signum).name)
        loop.create_task(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_shutdown, sig)

    try:
        loop.run_until_complete(daemon.run_forever())
    except TransportError as e:
        logger.error("Failed to start socket server: %s", e)
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        pass
    finally:
        loop.run_until_complete(daemon.stop())
        loop.close()


if __name__ == "__main__":
    main()
