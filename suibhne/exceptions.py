"""Custom exceptions for Suibhne."""


class SuibhneError(Exception):
    """Base exception for Suibhne errors."""

    pass


class TransportError(SuibhneError):
    """Raised when the socket endpoint cannot be created, bound or listened on."""

    pass


class ProtocolError(SuibhneError):
    """Raised when a message cannot be decoded into a request or value."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid request: {detail}")


class ArgumentError(SuibhneError):
    """Base exception for command argument problems."""

    pass


class MissingArgumentError(ArgumentError):
    """Raised when a required argument is absent or has the wrong type."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing required argument: {name}")


class InvalidArgumentError(ArgumentError):
    """Raised when an optional argument is present but unusable."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid argument: {name} ({reason})")


class UnknownCommandError(SuibhneError):
    """Raised when a command name is not in the command table."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Unknown command: {command}")


class CommandNotImplementedError(SuibhneError):
    """Raised for commands that are recognized but have no backend yet."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Command not yet implemented: {command}")


class PermissionDeniedError(SuibhneError):
    """Raised when a backend is not authorized to access its resource."""

    def __init__(self, resource: str, restricted: bool = False) -> None:
        self.resource = resource
        self.restricted = restricted
        label = resource.capitalize()
        if restricted:
            msg = (
                f"{label} access is restricted by an administrator policy "
                f"and cannot be granted."
            )
        else:
            msg = (
                f"{label} access denied. Set 'access.{resource}: allow' in "
                f"~/.suibhne/config.yaml and restart the daemon."
            )
        super().__init__(msg)


class NotFoundError(SuibhneError):
    """Base exception for entities that do not exist."""

    pass


class ContactNotFoundError(NotFoundError):
    """Raised when a contact cannot be found by ID."""

    def __init__(self, contact_id: str) -> None:
        self.contact_id = contact_id
        super().__init__(f"Contact not found: {contact_id}")


class ConfigFileNotFoundError(NotFoundError):
    """Raised when a configuration file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class BackendError(SuibhneError):
    """Raised when an underlying store operation fails."""

    pass


class ConfigError(SuibhneError):
    """Raised when the daemon configuration is missing or invalid."""

    pass
