"""
Value Type Schema
=================

Bounded Context: Value Decoding

Z-Wave JS declares a metadata type for every value. The raw JSON value is
decoded according to that declared type into a PropertyValue, a tagged
variant over the fixed set of ValueType kinds.

Decoding rules:
    number      JSON number, absent/null -> 0
    boolean     JSON boolean, absent/null -> False
    string      JSON string (required)
    color       JSON string (required)
    duration    {"unit": ...}: seconds -> 1s, minutes -> 60s, else -> 0
    any         raw JSON value passed through unchanged
    <t>[]       JSON array of <t>, absent/null -> []

Reference:
    https://github.com/zwave-js/node-zwave-js/blob/master/packages/core/src/values/Metadata.ts
"""

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any, Dict

from ..errors import TypeMismatchError


class ValueType(str, Enum):
    """Declared metadata type of a Z-Wave value."""
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER_LIST = "number[]"
    BOOLEAN_LIST = "boolean[]"
    STRING_LIST = "string[]"
    DURATION = "duration"
    COLOR = "color"
    ANY = "any"

    @classmethod
    def parse(cls, type_name: str) -> 'ValueType':
        """
        Resolve a declared type name.

        Raises:
            TypeMismatchError: If the type name is not recognized
        """
        try:
            return cls(type_name)
        except ValueError:
            raise TypeMismatchError(f"unknown value type {type_name!r}") from None


# Duration units
# https://github.com/zwave-js/node-zwave-js/blob/master/packages/core/src/values/Duration.ts
DURATION_SECONDS = "seconds"
DURATION_MINUTES = "minutes"

SECOND = timedelta(seconds=1)
MINUTE = timedelta(minutes=1)
NO_DURATION = timedelta(0)

_LIST_ELEMENT_TYPES = {
    ValueType.NUMBER_LIST: ValueType.NUMBER,
    ValueType.BOOLEAN_LIST: ValueType.BOOLEAN,
    ValueType.STRING_LIST: ValueType.STRING,
}


@dataclass(frozen=True)
class PropertyValue:
    """
    Decoded runtime value of a Z-Wave value.

    Attributes:
        kind: Declared ValueType the value was decoded with
        value: Python value (int/float, bool, str, timedelta, list). For
            ValueType.ANY this is the value as json.loads produced it, passed
            through undecoded; to_raw() returns it as is, so re-encoding
            yields the same JSON rather than the original payload bytes

    Example:
        >>> decode_value("number", 50)
        PropertyValue(kind=<ValueType.NUMBER: 'number'>, value=50)
    """
    kind: ValueType
    value: Any

    def to_raw(self) -> Any:
        """Encode back to the JSON shape the gateway uses for this kind."""
        if self.kind is ValueType.DURATION:
            return encode_duration(self.value)
        if self.kind in _LIST_ELEMENT_TYPES:
            return list(self.value)
        return self.value


def decode_value(type_name: str, raw: Any) -> PropertyValue:
    """
    Decode a raw JSON value according to its declared type.

    Args:
        type_name: Declared metadata type (e.g. "number", "duration")
        raw: Value as parsed by json.loads; None when absent or null

    Returns:
        PropertyValue tagged with the declared ValueType

    Raises:
        TypeMismatchError: Unknown type, or raw value of the wrong shape
    """
    kind = ValueType.parse(type_name)

    if kind is ValueType.ANY:
        return PropertyValue(kind, raw)

    if kind is ValueType.DURATION:
        return PropertyValue(kind, _decode_duration(raw))

    if kind in _LIST_ELEMENT_TYPES:
        if raw is None:
            return PropertyValue(kind, [])
        if not isinstance(raw, list):
            raise TypeMismatchError(
                f"unable to parse value of type {kind.value!r}: "
                f"expected array, got {type(raw).__name__}"
            )
        element_kind = _LIST_ELEMENT_TYPES[kind]
        return PropertyValue(kind, [_decode_scalar(element_kind, item) for item in raw])

    return PropertyValue(kind, _decode_scalar(kind, raw))


def _decode_scalar(kind: ValueType, raw: Any) -> Any:
    if kind is ValueType.NUMBER:
        if raw is None:
            return 0
        # bool is a subclass of int
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise TypeMismatchError(
                f"unable to parse value of type {kind.value!r}: {raw!r}"
            )
        if isinstance(raw, float) and raw.is_integer():
            return int(raw)
        return raw

    if kind is ValueType.BOOLEAN:
        if raw is None:
            return False
        if not isinstance(raw, bool):
            raise TypeMismatchError(
                f"unable to parse value of type {kind.value!r}: {raw!r}"
            )
        return raw

    # string, color
    if not isinstance(raw, str):
        raise TypeMismatchError(
            f"unable to parse value of type {kind.value!r}: {raw!r}"
        )
    return raw


def _decode_duration(raw: Any) -> timedelta:
    if not isinstance(raw, dict):
        raise TypeMismatchError(
            f"unable to parse value of type 'duration': {raw!r}"
        )
    unit = raw.get('unit')
    if unit == DURATION_SECONDS:
        return SECOND
    if unit == DURATION_MINUTES:
        return MINUTE
    return NO_DURATION


def encode_duration(duration: timedelta) -> Dict[str, Any]:
    """Encode one of the duration constants as a Z-Wave JS duration object."""
    if duration == SECOND:
        return {'value': 1, 'unit': DURATION_SECONDS}
    if duration == MINUTE:
        return {'value': 1, 'unit': DURATION_MINUTES}
    return {'unit': 'default'}
