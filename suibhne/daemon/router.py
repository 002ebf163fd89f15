"""Command routing for the Suibhne daemon.

``CommandRouter.handle`` turns every request into exactly one response. It
never raises: unknown commands, bad arguments and backend failures all come
back as ``success=false`` with a human-readable message.
"""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from suibhne.daemon.commands import COMMANDS, CommandSpec, HandlerContext
from suibhne.daemon.protocol import Request, Response
from suibhne.daemon.values import DynamicValue, tag_of
from suibhne.exceptions import (
    CommandNotImplementedError,
    InvalidArgumentError,
    MissingArgumentError,
    SuibhneError,
    UnknownCommandError,
)

logger = logging.getLogger(__name__)


def bind_arguments(spec: CommandSpec, args: Mapping[str, DynamicValue]) -> dict[str, Any]:
    """Validate request arguments against a command's declared arguments.

    Required arguments are checked in declaration order. Absent (or null)
    optional arguments take their defaults. Undeclared arguments are ignored.

    Args:
        spec: The command being invoked.
        args: Arguments from the request.

    Returns:
        Mapping with every declared argument name.

    Raises:
        MissingArgumentError: On the first required argument that is absent or
            of the wrong type.
        InvalidArgumentError: If an optional argument has the wrong type.
    """
    bound: dict[str, Any] = {}

    for arg in spec.required:
        if arg.name not in args:
            raise MissingArgumentError(arg.name)
        value = args[arg.name]
        if arg.tag is not None and tag_of(value) is not arg.tag:
            raise MissingArgumentError(arg.name)
        bound[arg.name] = value

    for arg in spec.optional:
        value = args.get(arg.name)
        if value is None:
            bound[arg.name] = arg.default
            continue
        actual = tag_of(value)
        if arg.tag is not None and actual is not arg.tag:
            raise InvalidArgumentError(
                arg.name,
                f"expected {arg.tag.value}, got {actual.value if actual else 'unknown'}",
            )
        bound[arg.name] = value

    return bound


class CommandRouter:
    """Maps command names to handlers and normalizes their outcomes.

    The command table and handler context are fixed at construction.
    """

    def __init__(
        self,
        context: HandlerContext,
        commands: Mapping[str, CommandSpec] = COMMANDS,
    ) -> None:
        """Initialize the router.

        Args:
            context: Backends and daemon state passed to handlers.
            commands: Command table, by name.
        """
        self._context = replace(context, commands=commands)
        self._commands = commands

    @property
    def commands(self) -> Mapping[str, CommandSpec]:
        return self._commands

    async def handle(self, request: Request) -> Response:
        """Handle one request.

        Args:
            request: The decoded request.

        Returns:
            A response carrying the request's id.
        """
        logger.info("Handling command %s (id=%s)", request.command, request.id)

        try:
            result = await self._execute(request)
            response = Response.ok(request.id, result)
        except SuibhneError as e:
            logger.info("Command %s failed: %s", request.command, e)
            return Response.failure(request.id, str(e))
        except Exception as e:
            logger.exception("Error handling command %s", request.command)
            return Response.failure(request.id, f"Internal error: {str(e) or type(e).__name__}")

        logger.debug("Command %s succeeded (id=%s)", request.command, request.id)
        return response

    async def _execute(self, request: Request) -> Any:
        spec = self._commands.get(request.command)
        if spec is None:
            raise UnknownCommandError(request.command)
        if spec.handler is None:
            raise CommandNotImplementedError(spec.name)

        args = bind_arguments(spec, request.args)

        if spec.blocking:
            return await asyncio.to_thread(spec.handler, self._context, args)
        return spec.handler(self._context, args)
