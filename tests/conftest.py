"""Pytest fixtures for Suibhne tests."""

import asyncio
import shutil
import tempfile
import threading
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from suibhne.config import AccessPolicy, Settings
from suibhne.daemon.commands import HandlerContext
from suibhne.daemon.router import CommandRouter
from suibhne.daemon.server import RESOURCES, SuibhneDaemon
from suibhne.services.authorization import AccessGate
from suibhne.services.contacts import ContactsService, ContactStore
from suibhne.services.openclaw import ConfigFileService, SkillsService


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: tests that open real Unix sockets",
    )


@pytest.fixture
def socket_dir() -> Iterator[Path]:
    """Create a short temporary directory for socket files.

    AF_UNIX paths are limited to about 100 bytes, which pytest's tmp_path
    can exceed.

    Returns:
        Path to the directory.
    """
    path = Path(tempfile.mkdtemp(prefix="sb", dir="/tmp"))
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def socket_path(socket_dir: Path) -> Path:
    """Get a socket path inside the short temporary directory."""
    return socket_dir / "suibhne.sock"


@pytest.fixture
def settings(tmp_path: Path, socket_path: Path) -> Settings:
    """Create settings that keep every file inside temporary directories.

    Returns:
        Settings for a test daemon.
    """
    skills_root = tmp_path / "skills"
    skills_root.mkdir()
    return Settings(
        socket_path=socket_path,
        request_timeout=5.0,
        contacts_path=tmp_path / "contacts.yaml",
        openclaw_config_path=tmp_path / "openclaw" / "config.yaml",
        skills_dirs=[skills_root],
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def allowed_gate() -> AccessGate:
    """Create a gate that grants access on request."""
    return AccessGate.from_policy("contacts", AccessPolicy.ALLOW)


@pytest.fixture
def contact_store(tmp_path: Path) -> ContactStore:
    """Create a contact store backed by a temporary file."""
    return ContactStore(tmp_path / "contacts.yaml")


@pytest.fixture
def contacts_service(contact_store: ContactStore, allowed_gate: AccessGate) -> ContactsService:
    """Create a ContactsService with access granted."""
    return ContactsService(contact_store, allowed_gate)


@pytest.fixture
def make_context(settings: Settings) -> Callable[..., HandlerContext]:
    """Build handler contexts with per-resource access policies.

    Returns:
        Factory taking keyword policies, e.g. ``make_context(contacts=AccessPolicy.DENY)``.
    """

    def factory(**policies: AccessPolicy) -> HandlerContext:
        gates = {
            name: AccessGate.from_policy(name, policies.get(name, AccessPolicy.ALLOW))
            for name in RESOURCES
        }
        return HandlerContext(
            contacts=ContactsService(ContactStore(settings.contacts_path), gates["contacts"]),
            config_file=ConfigFileService(settings.openclaw_config_path, gates["config"]),
            skills=SkillsService(settings.skills_dirs, gates["skills"]),
            gates=gates,
            status=lambda: {"app": "Suibhne", "connections": 0},
        )

    return factory


@pytest.fixture
def router(make_context: Callable[..., HandlerContext]) -> CommandRouter:
    """Create a router with every resource allowed."""
    return CommandRouter(make_context())


class DaemonThread:
    """Runs a SuibhneDaemon on its own event loop in a background thread."""

    def __init__(self, settings: Settings) -> None:
        self.daemon = SuibhneDaemon(settings)
        self.loop = asyncio.new_event_loop()
        self._ready = threading.Event()
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, daemon=True)

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self.daemon.start())
        except BaseException as e:
            self._error = e
            self._ready.set()
            return
        self._ready.set()
        self.loop.run_forever()

    def start(self) -> None:
        self._thread.start()
        assert self._ready.wait(5), "daemon did not start"
        if self._error is not None:
            raise self._error

    def stop(self) -> None:
        if self._error is None:
            future = asyncio.run_coroutine_threadsafe(self.daemon.stop(), self.loop)
            future.result(timeout=5)
            self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5)
        self.loop.close()


@pytest.fixture
def running_daemon(settings: Settings) -> Iterator[SuibhneDaemon]:
    """Start a daemon on a temporary socket for the duration of a test.

    Returns:
        The running daemon.
    """
    runner = DaemonThread(settings)
    runner.start()
    yield runner.daemon
    runner.stop()
