"""
Node and Value Schemas
======================

Bounded Context: Gateway Data Structures

This module defines the node ("device") and value ("property") records of
the zwavejs2mqtt gateway API.

Design:
- Frozen dataclasses (immutability)
- from_dict() for deserialization, to_dict() where the record is sent back
- Properties arrive as JSON string or integer and keep their JSON type in
  ValueID so writes and acknowledgements echo exactly what the gateway sent

Types:
- ValueID: Composite identifier (node, command class, endpoint, property)
- Value: A capability of a node, with metadata and its raw value
- Node: A Z-Wave node with its ordered values
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from ..errors import MalformedMessageError
from .values import PropertyValue, decode_value

PropertyName = Union[str, int]


def format_value_id(
    command_class: int,
    endpoint: int,
    prop: PropertyName,
    property_key: Optional[PropertyName] = None
) -> str:
    """
    Build the gateway's string value id.

    Example:
        >>> format_value_id(38, 0, "currentValue")
        '38-0-currentValue'
        >>> format_value_id(50, 0, "value", 65537)
        '50-0-value-65537'
    """
    value_id = f"{command_class}-{endpoint}-{prop}"
    if property_key is not None and property_key != "":
        value_id = f"{value_id}-{property_key}"
    return value_id


def _require_int(data: Dict[str, Any], key: str, default: Optional[int] = None) -> int:
    raw = data.get(key, default)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise MalformedMessageError(f"field {key!r} must be an integer, got {raw!r}")
    return raw


def _property_name(raw: Any, key: str) -> PropertyName:
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise MalformedMessageError(f"field {key!r} must be a string or integer, got {raw!r}")
    return raw


@dataclass(frozen=True)
class ValueID:
    """
    Composite identifier of a value, scoped to its node.

    Used as the routing key for in-flight writes and value watchers.

    Example:
        >>> vid = ValueID(node_id=4, command_class=38, endpoint=0, property="currentValue")
        >>> vid.to_dict()
        {'nodeId': 4, 'commandClass': 38, 'endpoint': 0, 'property': 'currentValue'}
    """
    node_id: int
    command_class: int
    endpoint: int
    property: PropertyName
    property_key: Optional[PropertyName] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the gateway's valueId object."""
        data = {
            'nodeId': self.node_id,
            'commandClass': self.command_class,
            'endpoint': self.endpoint,
            'property': self.property,
        }
        if self.property_key is not None:
            data['propertyKey'] = self.property_key
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ValueID':
        """
        Deserialize from a valueId object.

        Raises:
            MalformedMessageError: If required fields missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedMessageError(f"valueId must be an object, got {data!r}")
        if 'property' not in data:
            raise MalformedMessageError("Missing required valueId field: 'property'")

        property_key = data.get('propertyKey')
        return cls(
            node_id=_require_int(data, 'nodeId'),
            command_class=_require_int(data, 'commandClass'),
            endpoint=_require_int(data, 'endpoint', 0),
            property=_property_name(data['property'], 'property'),
            property_key=None if property_key is None else _property_name(property_key, 'propertyKey'),
        )

    def __str__(self) -> str:
        return f"{self.node_id}-{format_value_id(self.command_class, self.endpoint, self.property, self.property_key)}"


@dataclass(frozen=True)
class Value:
    """
    A capability of a Z-Wave node.

    Attributes:
        id: Gateway value id (e.g. "38-0-currentValue")
        node_id: Owning node id
        command_class: Command class number
        endpoint: Endpoint index
        property: Property name (string or integer as sent by the gateway)
        property_key: Optional sub-key
        type: Declared metadata type, decoded by decode()
        readable: Metadata readable flag
        writeable: Metadata writeable flag
        raw_value: Current value as parsed from JSON (None if absent)
    """
    id: str
    node_id: int
    command_class: int
    endpoint: int
    property: PropertyName
    type: str
    property_key: Optional[PropertyName] = None
    property_name: str = ""
    command_class_name: str = ""
    label: str = ""
    readable: bool = True
    writeable: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    raw_value: Any = None

    @property
    def value_id(self) -> ValueID:
        """Composite identifier of this value."""
        return ValueID(
            node_id=self.node_id,
            command_class=self.command_class,
            endpoint=self.endpoint,
            property=self.property,
            property_key=self.property_key,
        )

    def decode(self) -> PropertyValue:
        """
        Decode raw_value according to the declared type.

        Raises:
            TypeMismatchError: Unknown type or raw value of the wrong shape
        """
        return decode_value(self.type, self.raw_value)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        node_id: Optional[int] = None,
        value_id: Optional[str] = None
    ) -> 'Value':
        """
        Deserialize from a gateway value object.

        Args:
            data: Value object
            node_id: Owning node id, used when the object has no nodeId
            value_id: Key of the value in the node's values map, used when
                the object has no id

        Raises:
            MalformedMessageError: If required fields missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedMessageError(f"value must be an object, got {data!r}")
        if 'property' not in data:
            raise MalformedMessageError("Missing required Value field: 'property'")

        command_class = _require_int(data, 'commandClass')
        endpoint = _require_int(data, 'endpoint', 0)
        prop = _property_name(data['property'], 'property')
        raw_key = data.get('propertyKey')
        property_key = None if raw_key is None or raw_key == "" else _property_name(raw_key, 'propertyKey')

        return cls(
            id=str(data.get('id') or value_id or format_value_id(command_class, endpoint, prop, property_key)),
            node_id=_require_int(data, 'nodeId', node_id),
            command_class=command_class,
            endpoint=endpoint,
            property=prop,
            property_key=property_key,
            type=str(data.get('type', '')),
            property_name=str(data.get('propertyName') or ''),
            command_class_name=str(data.get('commandClassName') or ''),
            label=str(data.get('label') or ''),
            readable=bool(data.get('readable', True)),
            writeable=bool(data.get('writeable', False)),
            min=data.get('min'),
            max=data.get('max'),
            raw_value=data.get('value'),
        )


@dataclass(frozen=True)
class Node:
    """
    A Z-Wave node as reported by the gateway.

    Attributes:
        id: Node id (primary key)
        name: User-assigned name, may be empty
        failed: Node is dead or removed
        values: Values in payload order

    Example:
        >>> node = Node.from_dict({"id": 4, "name": "kitchen-light", "values": {}})
        >>> node.name
        'kitchen-light'
    """
    id: int
    name: str = ""
    failed: bool = False
    loc: str = ""
    manufacturer: str = ""
    product_label: str = ""
    product_description: str = ""
    status: str = ""
    ready: bool = False
    available: bool = False
    values: Tuple[Value, ...] = field(default_factory=tuple)

    def get_value(self, value_id: str) -> Optional[Value]:
        """Find a value by its gateway value id."""
        for value in self.values:
            if value.id == value_id:
                return value
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Node':
        """
        Deserialize from a gateway node object.

        The values field may be an object keyed by value id (zwavejs2mqtt)
        or an array of value objects (newer gateway releases).

        Raises:
            MalformedMessageError: If required fields missing or invalid
        """
        if not isinstance(data, dict):
            raise MalformedMessageError(f"node must be an object, got {data!r}")
        if 'id' not in data:
            raise MalformedMessageError("Missing required Node field: 'id'")

        node_id = _require_int(data, 'id')
        raw_values = data.get('values') or {}
        if isinstance(raw_values, dict):
            values = tuple(
                Value.from_dict(v, node_id=node_id, value_id=k)
                for k, v in raw_values.items()
            )
        elif isinstance(raw_values, list):
            values = tuple(Value.from_dict(v, node_id=node_id) for v in raw_values)
        else:
            raise MalformedMessageError(
                f"node {node_id} values must be an object or array, got {type(raw_values).__name__}"
            )

        return cls(
            id=node_id,
            name=str(data.get('name') or ''),
            failed=bool(data.get('failed', False)),
            loc=str(data.get('loc') or ''),
            manufacturer=str(data.get('manufacturer') or ''),
            product_label=str(data.get('productLabel') or ''),
            product_description=str(data.get('productDescription') or ''),
            status=str(data.get('status') or ''),
            ready=bool(data.get('ready', False)),
            available=bool(data.get('available', False)),
            values=values,
        )
