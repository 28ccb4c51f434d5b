"""
Node Directory - Thread-safe snapshot of gateway nodes.

This module provides the NodeDirectory class which holds the nodes reported
by the last successful getNodes response, indexed by id and by name, with
per-node value indices.

Thread Safety:
- New indices are built outside the lock, then swapped in with a single
  lock acquisition, so readers never see a partially replaced directory
- A failed build (duplicate name) leaves the current directory untouched
- Lookups hold the lock only for dictionary reads
- Nodes and values are immutable (frozen dataclasses)
"""

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from zwave_mqtt.errors import DuplicateNodeError, NodeNotFoundError, PropertyNotFoundError
from zwave_mqtt.schemas import Node, Value, ValueID

NodeRef = Union[str, int]


@dataclass(frozen=True)
class ManagedNode:
    """
    A node with its value lookup indices.

    Values are reachable by gateway value id ("38-0-currentValue") and by
    property name ("currentValue"). When several values share a property
    name (different command classes or endpoints) the first one in payload
    order owns the name; the others stay reachable by value id.
    """

    node: Node
    values_by_property: Mapping[str, Value]
    values_by_id: Mapping[str, Value]

    @classmethod
    def from_node(cls, node: Node) -> 'ManagedNode':
        by_property: Dict[str, Value] = {}
        by_id: Dict[str, Value] = {}
        for value in node.values:
            by_id[value.id] = value
            by_property.setdefault(str(value.property), value)
        return cls(
            node=node,
            values_by_property=MappingProxyType(by_property),
            values_by_id=MappingProxyType(by_id),
        )

    @property
    def id(self) -> int:
        return self.node.id

    @property
    def name(self) -> str:
        return self.node.name

    def find_value(self, prop: str) -> Optional[Value]:
        """Resolve a value by value id first, then by property name."""
        value = self.values_by_id.get(prop)
        if value is None:
            value = self.values_by_property.get(prop)
        return value


class NodeDirectory:
    """
    Thread-safe directory of gateway nodes.

    The directory is only ever replaced wholesale (replace()); there is no
    incremental add or remove between bootstraps.

    Usage:
        directory = NodeDirectory()
        directory.replace(response.result)

        managed = directory.lookup("kitchen-light")
        value = directory.resolve("kitchen-light", "currentValue")
    """

    def __init__(self):
        """Initialize empty directory."""
        self._by_name: Dict[str, ManagedNode] = {}
        self._by_id: Dict[int, ManagedNode] = {}
        self._lock = threading.Lock()

    @staticmethod
    def build(nodes: Iterable[Node]) -> Tuple[Dict[str, ManagedNode], Dict[int, ManagedNode]]:
        """
        Build name and id indices for a set of nodes.

        Failed (dead or removed) nodes are skipped. Unnamed nodes are only
        indexed by id.

        Raises:
            DuplicateNodeError: If two nodes share a non-empty name
        """
        by_name: Dict[str, ManagedNode] = {}
        by_id: Dict[int, ManagedNode] = {}

        for node in nodes:
            if node.failed:
                continue
            if node.name and node.name in by_name:
                raise DuplicateNodeError(node.name)

            managed = ManagedNode.from_node(node)
            if node.name:
                by_name[node.name] = managed
            by_id[node.id] = managed

        return by_name, by_id

    def replace(self, nodes: Iterable[Node]) -> int:
        """
        Replace the whole directory.

        Returns:
            Number of nodes installed

        Raises:
            DuplicateNodeError: If two nodes share a non-empty name; the
                current directory is left unchanged

        Thread-safe: Single lock acquisition for the swap.
        """
        by_name, by_id = self.build(nodes)

        with self._lock:
            self._by_name = by_name
            self._by_id = by_id

        return len(by_id)

    def lookup(self, ref: NodeRef) -> ManagedNode:
        """
        Find a node by id (int) or name (str).

        Raises:
            NodeNotFoundError: If no such node is installed
        """
        with self._lock:
            if isinstance(ref, int):
                managed = self._by_id.get(ref)
            else:
                managed = self._by_name.get(ref)

        if managed is None:
            raise NodeNotFoundError(ref)
        return managed

    def get_by_id(self, node_id: int) -> Optional[ManagedNode]:
        """Find a node by id, None if unknown."""
        with self._lock:
            return self._by_id.get(node_id)

    def has_value(self, value_id: ValueID) -> bool:
        """True if the installed node value_id.node_id still reports value_id."""
        managed = self.get_by_id(value_id.node_id)
        if managed is None:
            return False
        return any(value.value_id == value_id for value in managed.node.values)

    def resolve(self, ref: NodeRef, prop: str) -> Value:
        """
        Find a node's value by value id or property name.

        Raises:
            NodeNotFoundError: If no such node is installed
            PropertyNotFoundError: If the node has no matching value
        """
        managed = self.lookup(ref)
        value = managed.find_value(str(prop))
        if value is None:
            raise PropertyNotFoundError(ref, str(prop))
        return value

    def list_nodes(self) -> List[Node]:
        """Snapshot of installed nodes, ordered by id."""
        with self._lock:
            managed_nodes = list(self._by_id.values())
        return sorted((m.node for m in managed_nodes), key=lambda n: n.id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)
