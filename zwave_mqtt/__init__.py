"""
Z-Wave MQTT Communication Package
=================================

Bounded Context: Gateway API Protocol

This package provides the MQTT side of the broker: the gateway API message
codec, the transport port the broker publishes through, the paho-mqtt
client, and structured JSON logging.

Architecture:
- schemas/: Immutable data structures and type-directed value decoding
- publishers/: Transport port (Publisher, PublisherFunc, PrefixPublisher)
- client.py: paho-mqtt GatewayClient (Publisher + inbound dispatch)
- topics.py: Gateway API topic names
- errors.py: Error taxonomy shared with zwave_broker
- logging/: Structured JSON logging for observability

Public API
----------
Schemas:
    ValueType, PropertyValue, ValueID, Value, Node
    GetNodesResponse, WriteValueRequest, WriteValueResponse, NodeValueUpdate

Transport:
    Publisher, PublisherFunc, PrefixPublisher, GatewayClient

Logging:
    LogEvent, StructuredLogger, create_logger
"""

# Version
__version__ = "1.0.0"

# Errors
from .errors import (
    BrokerError,
    NotFoundError,
    NodeNotFoundError,
    PropertyNotFoundError,
    MalformedMessageError,
    TypeMismatchError,
    DuplicateNodeError,
    RequestTimeoutError,
    RequestCancelledError,
    RemoteFailureError,
    PublishError,
)

# Schemas
from .schemas import (
    ValueType,
    PropertyValue,
    ValueID,
    Value,
    Node,
    GetNodesResponse,
    WriteValueRequest,
    WriteValueResponse,
    NodeValueUpdate,
)

# Transport
from .publishers import Publisher, PublisherFunc, PrefixPublisher
from .client import GatewayClient

# Logging
from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    # Version
    '__version__',
    # Errors
    'BrokerError',
    'NotFoundError',
    'NodeNotFoundError',
    'PropertyNotFoundError',
    'MalformedMessageError',
    'TypeMismatchError',
    'DuplicateNodeError',
    'RequestTimeoutError',
    'RequestCancelledError',
    'RemoteFailureError',
    'PublishError',
    # Schemas
    'ValueType',
    'PropertyValue',
    'ValueID',
    'Value',
    'Node',
    'GetNodesResponse',
    'WriteValueRequest',
    'WriteValueResponse',
    'NodeValueUpdate',
    # Transport
    'Publisher',
    'PublisherFunc',
    'PrefixPublisher',
    'GatewayClient',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
