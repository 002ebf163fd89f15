"""Request/response envelopes and line framing for the Suibhne daemon.

Every message is a single UTF-8 JSON object terminated by a newline, in both
directions:

    {"id": "1", "command": "ping", "args": {}}
    {"id": "1", "success": true, "data": {"pong": true, "timestamp": "..."}}
"""

import json
import uuid
from dataclasses import dataclass, field
from typing import Any

from suibhne.daemon.values import DynamicValue, decode_value, to_dynamic
from suibhne.exceptions import ProtocolError

# Correlation token used when a request could not be decoded far enough to
# recover its id
UNKNOWN_ID = "unknown"

MESSAGE_DELIMITER = b"\n"


def new_request_id() -> str:
    """Generate a fresh correlation token."""
    return str(uuid.uuid4())


def _reject_constant(name: str) -> Any:
    raise ProtocolError(f"non-finite number: {name}")


@dataclass
class Request:
    """A command request sent by a client."""

    command: str
    id: str = field(default_factory=new_request_id)
    args: dict[str, DynamicValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Request":
        """Parse a request from a decoded JSON object.

        Args:
            data: Dictionary containing request data.

        Returns:
            Parsed Request. A missing or empty id is replaced by a generated one.

        Raises:
            ProtocolError: If the command is missing or a field has the wrong type.
        """
        command = data.get("command")
        if not isinstance(command, str) or not command:
            raise ProtocolError("missing required field: command")

        request_id = data.get("id")
        if request_id is None or request_id == "":
            request_id = new_request_id()
        elif not isinstance(request_id, str):
            raise ProtocolError("field 'id' must be a string")

        args = data.get("args")
        if args is None:
            args = {}
        elif not isinstance(args, dict):
            raise ProtocolError("field 'args' must be an object")

        return cls(command=command, id=request_id, args=decode_value(args))  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "command": self.command,
            "args": to_dynamic(self.args),
        }


@dataclass
class Response:
    """A response to exactly one request.

    ``error`` is set iff ``success`` is false; ``data`` is only meaningful on
    success.
    """

    id: str
    success: bool
    data: DynamicValue = None
    error: str | None = None

    @classmethod
    def ok(cls, request_id: str, data: Any = None) -> "Response":
        """Create a success response.

        Args:
            request_id: The request ID to echo back.
            data: Result data, narrowed to a DynamicValue.

        Returns:
            Success response.
        """
        return cls(id=request_id, success=True, data=to_dynamic(data))

    @classmethod
    def failure(cls, request_id: str, error: str) -> "Response":
        """Create an error response.

        Args:
            request_id: The request ID to echo back.
            error: Human-readable error message.

        Returns:
            Error response.
        """
        return cls(id=request_id, success=False, error=error)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Response":
        """Parse a response received from the daemon.

        Raises:
            ProtocolError: If the object is not a well-formed response.
        """
        request_id = data.get("id")
        success = data.get("success")
        if not isinstance(request_id, str):
            raise ProtocolError("response field 'id' must be a string")
        if not isinstance(success, bool):
            raise ProtocolError("response field 'success' must be a boolean")

        if success:
            return cls(id=request_id, success=True, data=decode_value(data.get("data")))

        error = data.get("error")
        if not isinstance(error, str):
            raise ProtocolError("failed response must carry an error string")
        return cls(id=request_id, success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"id": self.id, "success": self.success}
        if self.success:
            result["data"] = self.data
        else:
            result["error"] = self.error
        return result


def encode_message(data: dict[str, Any]) -> bytes:
    """Serialize one message as a newline-terminated JSON line."""
    payload = json.dumps(data, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    return payload.encode("utf-8") + MESSAGE_DELIMITER


def decode_message(line: bytes) -> dict[str, Any]:
    """Parse one framed line (without its delimiter) into a JSON object.

    Raises:
        ProtocolError: If the bytes are not UTF-8 JSON describing an object.
    """
    try:
        text = line.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError(f"message is not valid UTF-8: {e}") from e

    try:
        data = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"invalid JSON: {e}") from e
    except RecursionError as e:
        raise ProtocolError("message nested too deeply") from e
    except ValueError as e:
        # e.g. integer literals over the interpreter's digit limit
        raise ProtocolError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError("message must be a JSON object")
    return data


def parse_request(line: bytes) -> Request:
    """Decode a framed line into a Request."""
    return Request.from_dict(decode_message(line))
