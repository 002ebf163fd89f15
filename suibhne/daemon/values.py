"""Dynamic values carried in request arguments and response data.

A DynamicValue is one of: None, bool, int, float, str, a list of
DynamicValues, or a dict mapping str to DynamicValues. Nothing else crosses
the wire. Handlers may return richer Python objects; ``to_dynamic`` narrows
them, falling back to ``str(value)`` for anything outside the union.
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel

from suibhne.exceptions import ProtocolError

DynamicValue = Union[
    None,
    bool,
    int,
    float,
    str,
    list["DynamicValue"],
    dict[str, "DynamicValue"],
]

# Nesting beyond this is rejected when decoding
MAX_DEPTH = 64


class ValueTag(str, Enum):
    """Tags of the DynamicValue union."""

    NULL = "null"
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def tag_of(value: Any) -> ValueTag | None:
    """Return the tag of a value, or None if it is not a DynamicValue.

    Only the top level is inspected; ``decode_value`` validates nested values.
    """
    if value is None:
        return ValueTag.NULL
    # bool is a subclass of int and must be checked first
    if isinstance(value, bool):
        return ValueTag.BOOL
    if isinstance(value, int):
        return ValueTag.INTEGER
    if isinstance(value, float):
        return ValueTag.FLOAT
    if isinstance(value, str):
        return ValueTag.STRING
    if isinstance(value, list):
        return ValueTag.SEQUENCE
    if isinstance(value, dict):
        return ValueTag.MAPPING
    return None


def decode_value(raw: Any, _depth: int = 0) -> DynamicValue:
    """Validate a JSON-decoded value against the DynamicValue union.

    Args:
        raw: Value produced by ``json.loads``.

    Returns:
        The same value, checked recursively.

    Raises:
        ProtocolError: If any part of the value matches no tag.
    """
    if _depth > MAX_DEPTH:
        raise ProtocolError("value nested too deeply")

    tag = tag_of(raw)
    if tag is None:
        raise ProtocolError(f"unsupported value type: {type(raw).__name__}")

    if tag is ValueTag.FLOAT and not math.isfinite(raw):
        raise ProtocolError(f"non-finite number: {raw}")
    if tag is ValueTag.SEQUENCE:
        return [decode_value(item, _depth + 1) for item in raw]
    if tag is ValueTag.MAPPING:
        result: dict[str, DynamicValue] = {}
        for key, item in raw.items():
            if not isinstance(key, str):
                raise ProtocolError(f"mapping key must be a string, got {type(key).__name__}")
            result[key] = decode_value(item, _depth + 1)
        return result
    return raw


def to_dynamic(value: Any) -> DynamicValue:
    """Convert a Python value into a DynamicValue.

    Conversion rules, beyond the identity on union members:

    - pydantic models are dumped to mappings (JSON mode)
    - tuples become sequences
    - dates and datetimes become ISO 8601 strings
    - enums become their value
    - mapping keys are converted with ``str``
    - anything else, including NaN and infinities, becomes ``str(value)``

    The fallback is lossy but never drops a value.
    """
    # str-based enums would otherwise pass through as their subclass
    if isinstance(value, Enum):
        return to_dynamic(value.value)

    tag = tag_of(value)

    if tag is ValueTag.FLOAT:
        return value if math.isfinite(value) else str(value)
    if tag is ValueTag.SEQUENCE:
        return [to_dynamic(item) for item in value]
    if tag is ValueTag.MAPPING:
        return {str(k): to_dynamic(v) for k, v in value.items()}
    if tag is not None:
        return value

    if isinstance(value, BaseModel):
        return to_dynamic(value.model_dump(mode="json"))
    if isinstance(value, tuple):
        return [to_dynamic(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)
