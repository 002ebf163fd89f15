"""Transport layer for the Suibhne daemon.

Provides the Unix socket transport for client communication.
"""

from suibhne.daemon.transports.unix_socket import LineBuffer, UnixSocketTransport

__all__ = [
    "LineBuffer",
    "UnixSocketTransport",
]
