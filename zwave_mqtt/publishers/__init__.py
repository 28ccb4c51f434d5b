"""
Transport Port
==============

Bounded Context: Message Publication

Public API
----------
    Publisher: Abstract port used by the broker
    PublisherFunc: Callable adapter
    PrefixPublisher: Topic prefix decorator
"""

from .base import Publisher, PublisherFunc, PrefixPublisher

__all__ = [
    'Publisher',
    'PublisherFunc',
    'PrefixPublisher',
]
