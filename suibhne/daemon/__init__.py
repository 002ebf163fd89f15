"""Suibhne daemon - holds resource access on behalf of local clients.

Clients connect over a Unix socket and send newline-framed JSON requests;
the daemon validates them, runs the matching backend operation and replies
with a uniform response envelope.
"""

from suibhne.daemon.commands import COMMANDS, CommandSpec, HandlerContext
from suibhne.daemon.protocol import Request, Response
from suibhne.daemon.router import CommandRouter
from suibhne.daemon.server import SuibhneDaemon

__all__ = [
    "COMMANDS",
    "CommandRouter",
    "CommandSpec",
    "HandlerContext",
    "Request",
    "Response",
    "SuibhneDaemon",
]
