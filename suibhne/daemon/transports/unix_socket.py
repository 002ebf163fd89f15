"""Unix socket transport for the Suibhne daemon.

Uses newline-delimited JSON over a Unix domain socket: one message per
line, in both directions. A connection may carry any number of sequential
requests; each is answered before the next one is read.
"""

import asyncio
import contextlib
import logging
import os
import socket
from collections.abc import Awaitable, Callable
from pathlib import Path

from suibhne.daemon.protocol import (
    MESSAGE_DELIMITER,
    UNKNOWN_ID,
    Request,
    Response,
    decode_message,
    encode_message,
)
from suibhne.exceptions import ProtocolError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_BACKLOG = 16
DEFAULT_MAX_MESSAGE_SIZE = 1024 * 1024  # 1 MiB per line
READ_CHUNK_SIZE = 64 * 1024

RequestHandler = Callable[[Request], Awaitable[Response]]


class LineBuffer:
    """Accumulates stream bytes and yields complete newline-framed messages.

    A message longer than ``max_size`` is dropped up to its next newline and
    reported as a single ``None`` entry, in stream order.
    """

    def __init__(self, max_size: int) -> None:
        self._buffer = bytearray()
        self._max_size = max_size
        self._discarding = False

    def feed(self, data: bytes) -> list[bytes | None]:
        """Add bytes and return every message completed by them."""
        self._buffer.extend(data)
        messages: list[bytes | None] = []

        while True:
            index = self._buffer.find(MESSAGE_DELIMITER)
            if index < 0:
                break
            line = bytes(self._buffer[:index])
            del self._buffer[: index + 1]
            if self._discarding:
                self._discarding = False
            elif len(line) > self._max_size:
                messages.append(None)
            else:
                messages.append(line)

        if len(self._buffer) > self._max_size:
            self._buffer.clear()
            if not self._discarding:
                self._discarding = True
                messages.append(None)

        return messages

    def flush(self) -> bytes | None:
        """Return a trailing unterminated message, if any, at end of stream."""
        line = bytes(self._buffer)
        self._buffer.clear()
        if self._discarding or not line.strip():
            return None
        return line


class UnixSocketTransport:
    """Unix socket server answering newline-framed JSON requests.

    Each connection runs in its own task, so a slow client never blocks
    others. The endpoint is created with owner-only permissions.
    """

    def __init__(
        self,
        socket_path: Path,
        backlog: int = DEFAULT_BACKLOG,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
        request_timeout: float | None = None,
    ) -> None:
        """Initialize the Unix socket transport.

        Args:
            socket_path: Path to the Unix domain socket.
            backlog: Maximum number of pending connections.
            max_message_size: Maximum length of one framed message in bytes.
            request_timeout: Seconds a single request may take before the
                connection is closed. None or 0 disables the limit.
        """
        self._socket_path = socket_path
        self._backlog = backlog
        self._max_message_size = max_message_size
        self._request_timeout = request_timeout or None
        self._handler: RequestHandler | None = None
        self._server: asyncio.AbstractServer | None = None
        self._clients: set[asyncio.Task[None]] = set()

    @property
    def socket_path(self) -> Path:
        """Get the socket path."""
        return self._socket_path

    @property
    def is_running(self) -> bool:
        """Check if the transport is running."""
        return self._server is not None and self._server.is_serving()

    @property
    def connection_count(self) -> int:
        """Number of live client connections."""
        return len(self._clients)

    def set_handler(self, handler: RequestHandler) -> None:
        """Register the function that answers every request.

        Raises:
            RuntimeError: If the transport has already started.
        """
        if self._server is not None:
            raise RuntimeError("Request handler must be set before the transport starts")
        self._handler = handler

    async def start(self) -> None:
        """Start the Unix socket server.

        Removes any stale socket file, binds, restricts the socket to its
        owner and only then listens.

        Raises:
            RuntimeError: If no handler has been set.
            TransportError: If the socket cannot be created, bound or listened on.
        """
        if self._handler is None:
            raise RuntimeError("A request handler must be set before starting")
        if self._server is not None:
            logger.warning("Unix socket transport is already running")
            return

        path = self._socket_path
        try:
            path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise TransportError(f"Failed to create socket directory {path.parent}: {e}") from e

        # Remove stale socket left by an unclean shutdown
        if path.is_dir():
            raise TransportError(f"Failed to bind socket: {path} is a directory")
        if path.exists() or path.is_symlink():
            logger.debug("Removing existing socket file: %s", path)
            try:
                path.unlink()
            except OSError as e:
                raise TransportError(f"Failed to remove stale socket {path}: {e}") from e

        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as e:
            raise TransportError(f"Failed to create socket: {e}") from e

        try:
            try:
                sock.bind(str(path))
            except OSError as e:
                raise TransportError(f"Failed to bind socket: {e}") from e

            # Owner-only before listen, so nobody else can connect in between
            try:
                os.chmod(path, 0o600)
            except OSError as e:
                raise TransportError(f"Failed to set socket permissions: {e}") from e

            try:
                sock.listen(self._backlog)
            except OSError as e:
                raise TransportError(f"Failed to listen on socket: {e}") from e

            sock.setblocking(False)
            self._server = await asyncio.start_unix_server(
                self._handle_client,
                sock=sock,
                backlog=self._backlog,
            )
        except BaseException:
            sock.close()
            with contextlib.suppress(OSError):
                path.unlink()
            raise

        logger.info("Unix socket listening at %s", path)

    async def stop(self) -> None:
        """Stop the Unix socket server.

        Stops accepting, closes all client connections and removes the
        socket file. Safe to call more than once, or before ``start``.
        """
        if self._server is None:
            return

        server = self._server
        self._server = None

        # Stop accepting new connections
        server.close()

        # Cancel all client tasks
        for task in list(self._clients):
            task.cancel()
        if self._clients:
            await asyncio.gather(*self._clients, return_exceptions=True)
        self._clients.clear()

        await server.wait_closed()

        with contextlib.suppress(FileNotFoundError):
            self._socket_path.unlink()

        logger.info("Unix socket server stopped")

    async def _handle_client(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Handle a client connection until it closes.

        Args:
            reader: Stream reader for receiving data.
            writer: Stream writer for sending data.
        """
        task = asyncio.current_task()
        if task:
            self._clients.add(task)
        peer = id(writer)
        logger.debug("Client connected: %s", peer)

        buffer = LineBuffer(self._max_message_size)

        try:
            while True:
                data = await reader.read(READ_CHUNK_SIZE)
                if not data:
                    # Half-closed one-shot clients may omit the final newline
                    line = buffer.flush()
                    if line is not None:
                        await self._respond(writer, line)
                    break

                for line in buffer.feed(data):
                    if line is None:
                        logger.warning("Client %s sent an oversized message", peer)
                        error = ProtocolError(f"message exceeds {self._max_message_size} bytes")
                        await self._write(writer, Response.failure(UNKNOWN_ID, str(error)))
                    elif line.strip() and not await self._respond(writer, line):
                        return

        except asyncio.CancelledError:
            logger.debug("Client connection cancelled: %s", peer)
        except (ConnectionError, OSError) as e:
            logger.debug("Connection error for client %s: %s", peer, e)
        except Exception:
            logger.exception("Error handling client %s", peer)
        finally:
            writer.close()
            with contextlib.suppress(Exception):
                await writer.wait_closed()
            if task:
                self._clients.discard(task)
            logger.debug("Client disconnected: %s", peer)

    async def _respond(self, writer: asyncio.StreamWriter, line: bytes) -> bool:
        """Decode one framed message, dispatch it and write the response.

        Args:
            writer: Stream writer for the response.
            line: Message bytes without the delimiter.

        Returns:
            False if the connection must be closed afterwards.
        """
        request_id = UNKNOWN_ID
        try:
            data = decode_message(line)
            if isinstance(data.get("id"), str) and data["id"]:
                request_id = data["id"]
            request = Request.from_dict(data)
        except ProtocolError as e:
            logger.info("Rejected malformed message: %s", e.detail)
            await self._write(writer, Response.failure(request_id, str(e)))
            return True
        except Exception as e:
            logger.exception("Error decoding message")
            await self._write(writer, Response.failure(request_id, f"Internal error: {e}"))
            return True

        if self._handler is None:
            raise RuntimeError("No request handler set")
        try:
            response = await asyncio.wait_for(
                self._handler(request),
                timeout=self._request_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Command %s (id=%s) timed out after %ss",
                request.command,
                request.id,
                self._request_timeout,
            )
            await self._write(
                writer,
                Response.failure(request.id, f"Request timed out after {self._request_timeout:g}s"),
            )
            return False
        except Exception as e:
            logger.exception("Error processing request %s", request.id)
            response = Response.failure(request.id, f"Internal error: {e}")

        await self._write(writer, response)
        return True

    async def _write(self, writer: asyncio.StreamWriter, response: Response) -> None:
        """Write one response line."""
        try:
            payload = encode_message(response.to_dict())
        except (TypeError, ValueError) as e:
            logger.error("Failed to encode response %s: %s", response.id, e)
            payload = encode_message(
                Response.failure(response.id, "Internal error: response could not be encoded").to_dict()
            )

        writer.write(payload)
        await writer.drain()
        logger.debug("Response sent (id=%s, success=%s)", response.id, response.success)
