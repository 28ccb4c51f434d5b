"""Tests for ValueWatcherRegistry."""

import queue

from zwave_broker import ValueWatcherRegistry
from zwave_mqtt.schemas import ValueID

CURRENT = ValueID(4, 38, 0, "currentValue")
TARGET = ValueID(4, 38, 0, "targetValue")


class ListSink:
    """Unbounded sink with the put_nowait() interface."""

    def __init__(self):
        self.items = []

    def put_nowait(self, item):
        self.items.append(item)


class TestRegistry:
    def test_add_and_dispatch(self):
        registry = ValueWatcherRegistry()
        sink = queue.Queue(maxsize=4)

        assert registry.add(CURRENT, sink) is True
        assert registry.dispatch(CURRENT, "update") == (1, 0)
        assert sink.get_nowait() == "update"

    def test_add_twice_is_noop(self):
        registry = ValueWatcherRegistry()
        sink = queue.Queue()

        assert registry.add(CURRENT, sink) is True
        assert registry.add(CURRENT, sink) is False
        assert registry.count(CURRENT) == 1
        assert registry.dispatch(CURRENT, "update") == (1, 0)

    def test_dispatch_only_to_matching_value(self):
        registry = ValueWatcherRegistry()
        current, target = ListSink(), ListSink()
        registry.add(CURRENT, current)
        registry.add(TARGET, target)

        registry.dispatch(TARGET, "t")

        assert current.items == []
        assert target.items == ["t"]

    def test_dispatch_without_watchers(self):
        assert ValueWatcherRegistry().dispatch(CURRENT, "update") == (0, 0)

    def test_full_sink_dropped(self):
        registry = ValueWatcherRegistry()
        full = queue.Queue(maxsize=1)
        other = ListSink()
        registry.add(CURRENT, full)
        registry.add(CURRENT, other)

        assert registry.dispatch(CURRENT, 1) == (2, 0)
        assert registry.dispatch(CURRENT, 2) == (1, 1)
        assert full.get_nowait() == 1
        assert other.items == [1, 2]

    def test_remove(self):
        registry = ValueWatcherRegistry()
        sink = ListSink()
        registry.add(CURRENT, sink)

        assert registry.remove(CURRENT, sink) is True
        assert registry.remove(CURRENT, sink) is False
        assert registry.dispatch(CURRENT, "update") == (0, 0)
        assert len(registry) == 0

    def test_remove_unknown(self):
        assert ValueWatcherRegistry().remove(CURRENT, ListSink()) is False

    def test_same_sink_for_several_values(self):
        registry = ValueWatcherRegistry()
        sink = ListSink()
        registry.add(CURRENT, sink)
        registry.add(TARGET, sink)
        assert len(registry) == 2

        registry.remove(CURRENT, sink)
        registry.dispatch(CURRENT, "c")
        registry.dispatch(TARGET, "t")

        assert sink.items == ["t"]

    def test_keys_compare_by_value(self):
        registry = ValueWatcherRegistry()
        sink = ListSink()
        registry.add(ValueID(7, 50, 0, "value", 65537), sink)

        registry.dispatch(ValueID(7, 50, 0, "value", 65537), "x")
        registry.dispatch(ValueID(7, 50, 0, "value", 65538), "y")

        assert sink.items == ["x"]

    def test_prune(self):
        registry = ValueWatcherRegistry()
        kept, dropped = ListSink(), ListSink()
        registry.add(CURRENT, kept)
        registry.add(TARGET, dropped)
        registry.add(TARGET, ListSink())

        assert registry.prune(lambda value_id: value_id == CURRENT) == 2
        assert registry.count(TARGET) == 0
        assert registry.remove(TARGET, dropped) is False

        registry.dispatch(CURRENT, "c")
        assert kept.items == ["c"]
