"""Daemon client for CLI communication.

This module provides a thin client that talks to the Suibhne daemon over a
Unix socket using newline-delimited JSON.
"""

import socket
from pathlib import Path
from typing import Any

from suibhne.config import default_socket_path
from suibhne.daemon.protocol import Request, Response, decode_message, encode_message
from suibhne.exceptions import ProtocolError


class DaemonError(Exception):
    """Error communicating with the daemon, or an error it reported."""

    pass


class DaemonUnavailableError(DaemonError):
    """Daemon is not running or unreachable."""

    pass


class DaemonConnection:
    """An open connection that can carry several sequential requests.

    Example:
        with DaemonConnection(path) as conn:
            conn.request("ping")
            conn.request("contacts.search", {"query": "john"})
    """

    def __init__(self, socket_path: Path, timeout: float = 10.0) -> None:
        self._socket_path = socket_path
        self._timeout = timeout
        self._sock: socket.socket | None = None
        self._reader: Any = None

    def open(self) -> None:
        """Connect to the daemon socket.

        Raises:
            DaemonUnavailableError: If the daemon cannot be reached.
        """
        if not self._socket_path.exists():
            raise DaemonUnavailableError(
                f"Daemon socket not found at {self._socket_path}. Is suibhne-daemon running?"
            )

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self._timeout)
        try:
            sock.connect(str(self._socket_path))
        except FileNotFoundError as e:
            sock.close()
            raise DaemonUnavailableError("Daemon socket not found") from e
        except ConnectionRefusedError as e:
            sock.close()
            raise DaemonUnavailableError(
                "Daemon refused connection. Is suibhne-daemon running?"
            ) from e
        except OSError as e:
            sock.close()
            raise DaemonUnavailableError(f"Failed to connect to daemon: {e}") from e

        self._sock = sock
        self._reader = sock.makefile("rb")

    def close(self) -> None:
        """Close the connection."""
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> "DaemonConnection":
        self.open()
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def request(self, command: str, args: dict[str, Any] | None = None) -> Response:
        """Send one request and wait for its response.

        Args:
            command: Command name, e.g. "contacts.search".
            args: Optional command arguments.

        Returns:
            The daemon's response (successful or not).

        Raises:
            DaemonError: If the exchange fails or the response is malformed.
        """
        if self._sock is None:
            self.open()
        if self._sock is None or self._reader is None:
            raise RuntimeError("Connection is not open")

        request = Request(command=command, args=args or {})
        try:
            self._sock.sendall(encode_message(request.to_dict()))
            line = self._reader.readline()
        except TimeoutError as e:
            raise DaemonError("Daemon request timed out") from e
        except OSError as e:
            raise DaemonError(f"Connection to daemon failed: {e}") from e

        if not line:
            raise DaemonError("Connection closed unexpectedly")

        try:
            response = Response.from_dict(decode_message(line.rstrip(b"\n")))
        except ProtocolError as e:
            raise DaemonError(f"Invalid response from daemon: {e.detail}") from e

        if response.id != request.id:
            raise DaemonError(
                f"Response id {response.id!r} does not match request id {request.id!r}"
            )
        return response


class DaemonClient:
    """Client for communicating with the Suibhne daemon.

    Each call opens a fresh connection, sends one request and reads one
    response.

    Example:
        client = DaemonClient()
        if client.is_running():
            contacts = client.call("contacts.search", {"query": "john"})
    """

    def __init__(self, socket_path: Path | None = None, timeout: float = 10.0) -> None:
        """Initialize the daemon client.

        Args:
            socket_path: Path to the daemon socket. Defaults to ~/.suibhne/suibhne.sock.
            timeout: Socket timeout in seconds.
        """
        self._socket_path = socket_path or default_socket_path()
        self._timeout = timeout

    @property
    def socket_path(self) -> Path:
        """Get the socket path."""
        return self._socket_path

    def connect(self) -> DaemonConnection:
        """Create a connection for several requests."""
        return DaemonConnection(self._socket_path, self._timeout)

    def is_running(self) -> bool:
        """Check if the daemon is running and answering pings."""
        try:
            return self.send("ping").success
        except DaemonError:
            return False

    def send(self, command: str, args: dict[str, Any] | None = None) -> Response:
        """Send one request over a fresh connection.

        Raises:
            DaemonUnavailableError: If the daemon is not running.
            DaemonError: If the exchange fails.
        """
        with self.connect() as conn:
            return conn.request(command, args)

    def call(self, command: str, args: dict[str, Any] | None = None) -> Any:
        """Send one request and return its data.

        Raises:
            DaemonError: If the daemon reports a failure; the message is the
                daemon's error string.
        """
        response = self.send(command, args)
        if not response.success:
            raise DaemonError(response.error or "Unknown error")
        return response.data
