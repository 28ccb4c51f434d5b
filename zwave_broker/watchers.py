"""
ValueWatcherRegistry - Per-value sets of watcher queues.

Bounded Context: Value change fan-out
Responsibilities:
  - Register / remove watcher sinks per ValueID
  - Prune registrations for values gone after a re-bootstrap
  - Deliver updates to every sink of a ValueID without blocking

Delivery Policy:
  - Sinks are bounded queues; put_nowait() is used
  - A full sink drops that update (other sinks still receive it)
  - Delivery runs under the registry lock, so once remove() returns the
    removed sink receives nothing more

Threading: Thread-safe (single lock, never held across blocking calls)
"""

import queue
import threading
from typing import Any, Callable, Dict, Protocol, Set, Tuple

from zwave_mqtt.schemas import ValueID


class Sink(Protocol):
    """Anything with a non-blocking put, e.g. queue.Queue."""

    def put_nowait(self, item: Any) -> None:
        ...


class ValueWatcherRegistry:
    """
    Registry of watcher sinks keyed by ValueID.

    The sink object itself is the registration handle: registering the
    same sink twice for one ValueID is a no-op, and remove() takes the same
    sink back.

    Example:
        registry = ValueWatcherRegistry()
        updates = queue.Queue(maxsize=16)
        registry.add(value_id, updates)

        delivered, dropped = registry.dispatch(value_id, update)

        registry.remove(value_id, updates)
    """

    def __init__(self):
        self._sinks: Dict[ValueID, Set[Sink]] = {}
        self._lock = threading.Lock()

    def add(self, value_id: ValueID, sink: Sink) -> bool:
        """
        Register sink for value_id.

        Returns:
            True if the sink was newly registered, False if already present
        """
        with self._lock:
            sinks = self._sinks.setdefault(value_id, set())
            if sink in sinks:
                return False
            sinks.add(sink)
            return True

    def remove(self, value_id: ValueID, sink: Sink) -> bool:
        """
        Remove sink from value_id.

        Returns:
            True if the sink was registered, False otherwise
        """
        with self._lock:
            sinks = self._sinks.get(value_id)
            if sinks is None or sink not in sinks:
                return False
            sinks.discard(sink)
            if not sinks:
                del self._sinks[value_id]
            return True

    def dispatch(self, value_id: ValueID, item: Any) -> Tuple[int, int]:
        """
        Deliver item to every sink registered for value_id.

        Returns:
            (delivered, dropped) counts
        """
        delivered = dropped = 0
        with self._lock:
            for sink in self._sinks.get(value_id, ()):
                try:
                    sink.put_nowait(item)
                    delivered += 1
                except queue.Full:
                    dropped += 1
        return delivered, dropped

    def prune(self, keep: Callable[[ValueID], bool]) -> int:
        """
        Drop every registration whose ValueID fails keep().

        Returns:
            Number of sinks removed
        """
        removed = 0
        with self._lock:
            for value_id in [v for v in self._sinks if not keep(v)]:
                removed += len(self._sinks.pop(value_id))
        return removed

    def count(self, value_id: ValueID) -> int:
        """Number of sinks registered for value_id."""
        with self._lock:
            return len(self._sinks.get(value_id, ()))

    def __len__(self) -> int:
        """Total number of registrations."""
        with self._lock:
            return sum(len(sinks) for sinks in self._sinks.values())
