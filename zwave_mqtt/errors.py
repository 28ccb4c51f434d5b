"""
Broker Error Taxonomy
=====================

Bounded Context: Error Handling

Every error raised by the codec, the transport port or the broker derives
from BrokerError, so embedding applications can catch the whole family in
one place.

Containment:
- NotFound / Malformed / TypeMismatch / Duplicate raised while handling
  inbound messages are logged by the dispatch layer and never propagate
  past it.
- RequestTimeout / RequestCancelled / RemoteFailure are raised to the
  caller blocked in get_nodes() or write_value().
"""

from typing import Optional


class BrokerError(Exception):
    """Base class for all broker errors."""
    pass


class NotFoundError(BrokerError):
    """A node, value or observer key is not known."""
    pass


class NodeNotFoundError(NotFoundError):
    """Raised when a node name or id is not in the directory."""

    def __init__(self, node):
        self.node = node
        super().__init__(f"node {node!r} not found")


class PropertyNotFoundError(NotFoundError):
    """Raised when a node has no value matching the requested property."""

    def __init__(self, node, prop: str):
        self.node = node
        self.property = prop
        super().__init__(f"node {node!r} does not have property {prop!r}")


class MalformedMessageError(BrokerError, ValueError):
    """Envelope is not valid JSON or violates the expected structure."""
    pass


class TypeMismatchError(BrokerError, ValueError):
    """Declared value type is unknown or the raw value has the wrong shape."""
    pass


class DuplicateNodeError(BrokerError):
    """Two nodes in a getNodes response share the same non-empty name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"duplicate node name {name!r}")


class RequestTimeoutError(BrokerError, TimeoutError):
    """The caller's timeout elapsed before a response arrived."""

    def __init__(self, request: str, timeout: float):
        self.request = request
        self.timeout = timeout
        super().__init__(f"{request} timed out after {timeout:g}s")


class RequestCancelledError(BrokerError):
    """The caller's cancel token fired before a response arrived."""

    def __init__(self, request: str):
        self.request = request
        super().__init__(f"{request} cancelled")


class RemoteFailureError(BrokerError):
    """The gateway reported the request as unsuccessful."""

    def __init__(self, request: str, remote_message: Optional[str]):
        self.request = request
        self.remote_message = remote_message or ""
        super().__init__(
            f"{request} response not successful: {self.remote_message}"
        )


class PublishError(BrokerError):
    """The transport refused to publish a message."""
    pass
