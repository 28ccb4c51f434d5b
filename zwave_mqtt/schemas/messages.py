"""
Gateway API Message Schemas
===========================

Bounded Context: Gateway API Envelopes

Envelopes exchanged with the zwavejs2mqtt gateway API over MQTT.

Outbound:
    getNodes request      empty payload
    writeValue request    {"args": [valueId, value]}

Inbound:
    getNodes response     {"success", "message", "result": [Node...]}
    writeValue response   {"success", "message", "args": [valueId, value]}
    node_value_updated    {"data": [Node, delta]}

Reference:
    https://zwave-js.github.io/zwavejs2mqtt/#/guide/mqtt?id=apis
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

from ..errors import MalformedMessageError, PropertyNotFoundError, TypeMismatchError
from .node import Node, PropertyName, Value, ValueID, format_value_id

Payload = Union[bytes, bytearray, str]

GET_NODES_REQUEST_PAYLOAD = b""


def load_envelope(payload: Payload) -> Dict[str, Any]:
    """
    Parse a JSON envelope.

    Raises:
        MalformedMessageError: If payload is not a JSON object
    """
    try:
        if isinstance(payload, (bytes, bytearray)):
            payload = payload.decode('utf-8')
        data = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedMessageError(f"invalid JSON envelope: {e}") from e

    if not isinstance(data, dict):
        raise MalformedMessageError(
            f"envelope must be a JSON object, got {type(data).__name__}"
        )
    return data


def _exact_array(data: Dict[str, Any], key: str, length: int) -> list:
    items = data.get(key)
    if not isinstance(items, list):
        raise MalformedMessageError(f"missing {key!r} array")
    if len(items) != length:
        raise MalformedMessageError(
            f"{key} array has length {len(items)}; expected {length}"
        )
    return items


@dataclass(frozen=True)
class GetNodesResponse:
    """Response of the getNodes API."""
    success: bool
    message: str = ""
    result: Tuple[Node, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GetNodesResponse':
        result = data.get('result') or []
        if not isinstance(result, list):
            raise MalformedMessageError(
                f"getNodes result must be an array, got {type(result).__name__}"
            )
        return cls(
            success=bool(data.get('success', False)),
            message=str(data.get('message') or ''),
            result=tuple(Node.from_dict(n) for n in result),
        )


@dataclass(frozen=True)
class WriteValueRequest:
    """
    Request of the writeValue API.

    Example:
        >>> vid = ValueID(node_id=4, command_class=38, endpoint=0, property="currentValue")
        >>> WriteValueRequest(value_id=vid, value=50).to_dict()
        {'args': [{'nodeId': 4, 'commandClass': 38, 'endpoint': 0, 'property': 'currentValue'}, 50]}
    """
    value_id: ValueID
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {'args': [self.value_id.to_dict(), self.value]}

    def to_payload(self) -> bytes:
        """
        Serialize to JSON bytes.

        Raises:
            TypeMismatchError: If the value is not JSON serializable
        """
        try:
            return json.dumps(self.to_dict()).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise TypeMismatchError(
                f"value {self.value!r} for {self.value_id} is not JSON serializable: {e}"
            ) from e


@dataclass(frozen=True)
class WriteValueResponse:
    """
    Response of the writeValue API.

    Example payload:
        {"success":true,"message":"Success zwave api call",
         "args":[{"nodeId":4,"commandClass":38,"endpoint":0,"property":"targetValue"},93]}
    """
    success: bool
    message: str
    value_id: ValueID
    value: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WriteValueResponse':
        args = _exact_array(data, 'args', 2)
        return cls(
            success=bool(data.get('success', False)),
            message=str(data.get('message') or ''),
            value_id=ValueID.from_dict(args[0]),
            value=args[1],
        )


@dataclass(frozen=True)
class ValueDelta:
    """
    Change descriptor of a node_value_updated event.

    Example payload:
        {"commandClassName": "Multilevel Switch", "commandClass": 38,
         "endpoint": 0, "property": "currentValue", "newValue": 3,
         "prevValue": 99, "propertyName": "currentValue"}
    """
    command_class: int
    endpoint: int
    property: PropertyName
    property_key: Optional[PropertyName] = None
    prev_value: Any = None
    new_value: Any = None

    @property
    def value_id(self) -> str:
        """Gateway value id derived from the delta."""
        return format_value_id(self.command_class, self.endpoint, self.property, self.property_key)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ValueDelta':
        if not isinstance(data, dict):
            raise MalformedMessageError(f"value delta must be an object, got {data!r}")
        command_class = data.get('commandClass')
        endpoint = data.get('endpoint', 0)
        prop = data.get('property')
        for key, raw in (('commandClass', command_class), ('endpoint', endpoint)):
            if isinstance(raw, bool) or not isinstance(raw, int):
                raise MalformedMessageError(f"delta field {key!r} must be an integer, got {raw!r}")
        if isinstance(prop, bool) or not isinstance(prop, (str, int)):
            raise MalformedMessageError(f"delta field 'property' must be a string or integer, got {prop!r}")

        property_key = data.get('propertyKey')
        if property_key == "":
            property_key = None
        return cls(
            command_class=command_class,
            endpoint=endpoint,
            property=prop,
            property_key=property_key,
            prev_value=data.get('prevValue'),
            new_value=data.get('newValue'),
        )


@dataclass(frozen=True)
class NodeValueUpdate:
    """
    node_value_updated event.

    Attributes:
        node: Node snapshot embedded in the event
        delta: Change descriptor
        value: Value record of the snapshot matching the delta; its
            raw_value is the current value
    """
    node: Node
    delta: ValueDelta
    value: Value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NodeValueUpdate':
        """
        Raises:
            MalformedMessageError: If data is not a two element array
            PropertyNotFoundError: If the snapshot has no value matching the delta
        """
        node_data, delta_data = _exact_array(data, 'data', 2)
        node = Node.from_dict(node_data)
        delta = ValueDelta.from_dict(delta_data)

        value = node.get_value(delta.value_id)
        if value is None:
            raise PropertyNotFoundError(node.id, delta.value_id)
        return cls(node=node, delta=delta, value=value)


def decode_get_nodes_response(payload: Payload) -> GetNodesResponse:
    """Decode a getNodes response payload."""
    return GetNodesResponse.from_dict(load_envelope(payload))


def decode_write_value_response(payload: Payload) -> WriteValueResponse:
    """Decode a writeValue response payload."""
    return WriteValueResponse.from_dict(load_envelope(payload))


def decode_node_value_update(payload: Payload) -> NodeValueUpdate:
    """Decode a node_value_updated event payload."""
    return NodeValueUpdate.from_dict(load_envelope(payload))
