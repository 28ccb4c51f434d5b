"""
Gateway API Schemas
===================

Bounded Context: Data Structures

This module defines immutable, typed data structures for the zwavejs2mqtt
gateway API messages.

Design:
- Frozen dataclasses (immutability)
- from_dict() for deserialization, to_dict() for serialization
- decode_*() helpers from raw MQTT payload bytes
- Type-directed value decoding into a tagged PropertyValue

Public API
----------
Value Types:
    ValueType, PropertyValue, decode_value

Node Types:
    ValueID, Value, Node, format_value_id

Messages:
    GetNodesResponse, WriteValueRequest, WriteValueResponse,
    ValueDelta, NodeValueUpdate

Example:
    >>> from zwave_mqtt.schemas import decode_get_nodes_response
    >>> resp = decode_get_nodes_response(payload)
    >>> [node.name for node in resp.result]
    ['kitchen-light']
"""

from .values import (
    ValueType,
    PropertyValue,
    decode_value,
    encode_duration,
    SECOND,
    MINUTE,
    NO_DURATION,
)
from .node import ValueID, Value, Node, format_value_id
from .messages import (
    GET_NODES_REQUEST_PAYLOAD,
    GetNodesResponse,
    WriteValueRequest,
    WriteValueResponse,
    ValueDelta,
    NodeValueUpdate,
    load_envelope,
    decode_get_nodes_response,
    decode_write_value_response,
    decode_node_value_update,
)

__all__ = [
    # Value types
    'ValueType',
    'PropertyValue',
    'decode_value',
    'encode_duration',
    'SECOND',
    'MINUTE',
    'NO_DURATION',
    # Node types
    'ValueID',
    'Value',
    'Node',
    'format_value_id',
    # Messages
    'GET_NODES_REQUEST_PAYLOAD',
    'GetNodesResponse',
    'WriteValueRequest',
    'WriteValueResponse',
    'ValueDelta',
    'NodeValueUpdate',
    'load_envelope',
    'decode_get_nodes_response',
    'decode_write_value_response',
    'decode_node_value_update',
]
