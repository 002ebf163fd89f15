"""Command table for the Suibhne daemon.

Every command the daemon recognizes is declared here with its arguments.
Commands without a backend yet are declared without a handler so clients
see them as "not yet implemented" rather than unknown.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from suibhne.daemon.values import DynamicValue, ValueTag
from suibhne.exceptions import InvalidArgumentError
from suibhne.services.authorization import AccessGate
from suibhne.services.contacts import ContactsService
from suibhne.services.openclaw import ConfigFileService, SkillsService

logger = logging.getLogger(__name__)

# Default page size for contacts.list
DEFAULT_LIST_LIMIT = 100


@dataclass
class HandlerContext:
    """Context providing access to backends and daemon state for handlers."""

    contacts: ContactsService
    config_file: ConfigFileService
    skills: SkillsService
    gates: dict[str, AccessGate]
    status: Callable[[], dict[str, Any]]
    # Table the router dispatches from; set by CommandRouter
    commands: Mapping[str, "CommandSpec"] = field(default_factory=dict)


@dataclass(frozen=True)
class Argument:
    """A command argument. ``tag`` None accepts any value."""

    name: str
    tag: ValueTag | None = ValueTag.STRING
    default: DynamicValue = None

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.tag.value if self.tag else "any"}


Handler = Callable[[HandlerContext, dict[str, Any]], Any]


@dataclass(frozen=True)
class CommandSpec:
    """Static description of one command."""

    name: str
    summary: str
    handler: Handler | None = None
    required: tuple[Argument, ...] = ()
    optional: tuple[Argument, ...] = ()
    # Blocking handlers run in a worker thread
    blocking: bool = True

    @property
    def implemented(self) -> bool:
        return self.handler is not None

    def describe(self) -> dict[str, Any]:
        """Describe the command for the ``commands`` listing."""
        return {
            "name": self.name,
            "summary": self.summary,
            "implemented": self.implemented,
            "required": [a.describe() for a in self.required],
            "optional": [a.describe() for a in self.optional],
        }


def _check_limit(value: int | None) -> int | None:
    if value is not None and value < 1:
        raise InvalidArgumentError("limit", "must be at least 1")
    return value


# Handler functions


def handle_ping(ctx: HandlerContext, args: dict[str, Any]) -> dict[str, Any]:
    """Liveness probe."""
    timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    return {"pong": True, "timestamp": timestamp.replace("+00:00", "Z")}


def handle_status(ctx: HandlerContext, args: dict[str, Any]) -> dict[str, Any]:
    return ctx.status()


def handle_permissions(ctx: HandlerContext, args: dict[str, Any]) -> dict[str, str]:
    """Report the authorization status of every backend."""
    return {name: gate.status.value for name, gate in ctx.gates.items()}


def handle_permissions_request(ctx: HandlerContext, args: dict[str, Any]) -> dict[str, str]:
    """Explicitly request access for one resource.

    Args:
        ctx: Handler context.
        args: Arguments including 'resource'.

    Returns:
        Resource name and its resulting status.
    """
    resource = args["resource"]
    gate = ctx.gates.get(resource)
    if gate is None:
        known = ", ".join(sorted(ctx.gates))
        raise InvalidArgumentError("resource", f"unknown resource '{resource}', expected one of: {known}")
    status = gate.request_access()
    return {"resource": resource, "status": status.value}


def handle_commands(ctx: HandlerContext, args: dict[str, Any]) -> list[dict[str, Any]]:
    """List every command in the router's table."""
    return [spec.describe() for spec in (ctx.commands or COMMANDS).values()]


def handle_contacts_search(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    return ctx.contacts.search(args["query"], limit=_check_limit(args["limit"]))


def handle_contacts_get(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    return ctx.contacts.get(args["id"])


def handle_contacts_list(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    return ctx.contacts.list_all(limit=_check_limit(args["limit"]) or DEFAULT_LIST_LIMIT)


def handle_contacts_create(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    """Create a contact.

    Args:
        ctx: Handler context.
        args: Arguments including 'name' and optional 'phone', 'email',
            'organization', 'notes'.

    Returns:
        Created contact.
    """
    return ctx.contacts.create(
        name=args["name"],
        phone=args["phone"],
        email=args["email"],
        organization=args["organization"],
        notes=args["notes"],
    )


def handle_contacts_update(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    """Update a contact.

    Args:
        ctx: Handler context.
        args: Arguments including 'id' and optional 'add_phone', 'add_email',
            'organization', 'notes'.

    Returns:
        Updated contact.
    """
    return ctx.contacts.update(
        args["id"],
        add_phone=args["add_phone"],
        add_email=args["add_email"],
        organization=args["organization"],
        notes=args["notes"],
    )


def handle_contacts_delete(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    return ctx.contacts.delete(args["id"])


def handle_config_get(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    return ctx.config_file.get(args["key"])


def handle_config_set(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    return ctx.config_file.set(args["key"], args["value"])


def handle_skills_list(ctx: HandlerContext, args: dict[str, Any]) -> Any:
    return ctx.skills.list_skills()


# Command registry

_ID = Argument("id")
_LIMIT = Argument("limit", ValueTag.INTEGER)

_SPECS = [
    # Meta
    CommandSpec("ping", "Check that the daemon is alive", handle_ping, blocking=False),
    CommandSpec("status", "Show daemon status", handle_status, blocking=False),
    CommandSpec("permissions", "Show authorization status per resource", handle_permissions, blocking=False),
    CommandSpec(
        "permissions.request",
        "Request access to a resource",
        handle_permissions_request,
        required=(Argument("resource"),),
    ),
    CommandSpec("commands", "List known commands", handle_commands, blocking=False),
    # Contacts
    CommandSpec(
        "contacts.search",
        "Search contacts by name",
        handle_contacts_search,
        required=(Argument("query"),),
        optional=(_LIMIT,),
    ),
    CommandSpec("contacts.get", "Get a contact by ID", handle_contacts_get, required=(_ID,)),
    CommandSpec(
        "contacts.list",
        f"List contacts (limit defaults to {DEFAULT_LIST_LIMIT})",
        handle_contacts_list,
        optional=(Argument("limit", ValueTag.INTEGER, DEFAULT_LIST_LIMIT),),
    ),
    CommandSpec(
        "contacts.create",
        "Create a contact",
        handle_contacts_create,
        required=(Argument("name"),),
        optional=(
            Argument("phone"),
            Argument("email"),
            Argument("organization"),
            Argument("notes"),
        ),
    ),
    CommandSpec(
        "contacts.update",
        "Add a phone or email, or set organization or notes",
        handle_contacts_update,
        required=(_ID,),
        optional=(
            Argument("add_phone"),
            Argument("add_email"),
            Argument("organization"),
            Argument("notes"),
        ),
    ),
    CommandSpec("contacts.delete", "Delete a contact", handle_contacts_delete, required=(_ID,)),
    # Calendar
    CommandSpec("calendar.events", "List calendar events"),
    CommandSpec("calendar.create", "Create a calendar event"),
    # Reminders
    CommandSpec("reminders.list", "List reminders"),
    CommandSpec("reminders.add", "Add a reminder"),
    CommandSpec("reminders.complete", "Complete a reminder"),
    # OpenClaw
    CommandSpec(
        "config.get",
        "Read the OpenClaw config, or one dotted key",
        handle_config_get,
        optional=(Argument("key"),),
    ),
    CommandSpec(
        "config.set",
        "Set one dotted key in the OpenClaw config",
        handle_config_set,
        required=(Argument("key"), Argument("value", tag=None)),
    ),
    CommandSpec("skills.list", "List installed skills", handle_skills_list),
    CommandSpec("skills.install", "Install a skill from a URL"),
]

COMMANDS: dict[str, CommandSpec] = {spec.name: spec for spec in _SPECS}
