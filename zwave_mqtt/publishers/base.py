"""
Publisher Port
==============

Bounded Context: Transport Boundary

The broker only needs one capability from its transport: publish a payload
to a topic. This module defines that port and two small adapters.

Architecture:
    Publisher (abstract)
        ↓
    PublisherFunc      wraps a plain callable
    PrefixPublisher    prepends a topic prefix
    GatewayClient      paho-mqtt implementation (zwave_mqtt.client)

Contract:
- publish() is fire-and-forget with respect to delivery
- publish() raises on immediate failure (PublishError or the transport's
  own exception); it never blocks waiting for a response

Example:
    >>> sent = []
    >>> publisher = PrefixPublisher("zwave", PublisherFunc(lambda t, p: sent.append((t, p))))
    >>> publisher.publish("_CLIENTS/ZWAVE_GATEWAY/api/getNodes/set", b"")
    >>> sent
    [('zwave/_CLIENTS/ZWAVE_GATEWAY/api/getNodes/set', b'')]
"""

from abc import ABC, abstractmethod
from typing import Callable

from ..topics import join_topic


class Publisher(ABC):
    """
    Abstract transport port.

    Thread Safety:
        Implementations must allow publish() from any thread.
    """

    @abstractmethod
    def publish(self, topic: str, payload: bytes) -> None:
        """
        Publish payload to topic.

        Raises:
            PublishError: If the message could not be handed to the transport
        """
        raise NotImplementedError("Subclasses must implement publish()")


class PublisherFunc(Publisher):
    """Adapts a callable(topic, payload) to the Publisher port."""

    def __init__(self, func: Callable[[str, bytes], None]):
        self._func = func

    def publish(self, topic: str, payload: bytes) -> None:
        self._func(topic, payload)


class PrefixPublisher(Publisher):
    """Publisher that prepends a topic prefix before delegating."""

    def __init__(self, prefix: str, publisher: Publisher):
        self.prefix = prefix
        self._publisher = publisher

    def publish(self, topic: str, payload: bytes) -> None:
        self._publisher.publish(join_topic(self.prefix, topic), payload)
