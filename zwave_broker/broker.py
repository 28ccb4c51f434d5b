"""
Broker - Request/response correlation over the gateway's MQTT API.

Bounded Context: Correlation and state tracking
Responsibilities:
  - Node directory bootstrap (getNodes request → response)
  - Synchronous value writes over asynchronous MQTT (writeValue)
  - Fan-out of node_value_updated events to value watchers

Threading:
  - Caller threads: get_nodes(), write_value(), watch_value()
  - MQTT network thread: handle_*() inbound handlers
  - No background threads of its own

Shared State (each behind its own lock, never held across publish/wait):
  - NodeDirectory: replaced wholesale on each getNodes response
  - Pending writes: ValueID → single-slot queue
  - ValueWatcherRegistry: ValueID → watcher queues, pruned on bootstrap
    to the values the new directory still reports

Pending writes keep a single slot per ValueID. A second write to the same
value while one is in flight supersedes the first registration; the first
caller then only completes on its timeout. Serialize writes to one value
when every caller needs its acknowledgement.
"""

import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from zwave_mqtt.errors import (
    BrokerError,
    NodeNotFoundError,
    RemoteFailureError,
    RequestCancelledError,
    RequestTimeoutError,
)
from zwave_mqtt.logging import LogEvent, StructuredLogger, create_logger
from zwave_mqtt.publishers import Publisher
from zwave_mqtt.schemas import (
    GET_NODES_REQUEST_PAYLOAD,
    Node,
    PropertyValue,
    Value,
    ValueID,
    WriteValueRequest,
    decode_get_nodes_response,
    decode_node_value_update,
    decode_write_value_response,
)
from zwave_mqtt.topics import (
    API_GET_NODES,
    API_WRITE_VALUE,
    NODE_VALUE_UPDATED_EVENT,
    api_request_topic,
    api_response_topic,
    gateway_client,
    join_topic,
)

from .directory import NodeDirectory, NodeRef
from .watchers import Sink, ValueWatcherRegistry

DEFAULT_TIMEOUT = 10.0

# How often a blocked call re-checks its cancel event
CANCEL_POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class ValueUpdate:
    """
    Item delivered to value watchers.

    Attributes:
        node_id: Node the value belongs to
        node_name: Node name from the live directory (may be empty)
        value_id: Composite identifier of the value
        label: Human-readable value label
        value: Decoded current value
        prev_value: Raw previous value reported by the gateway
    """
    node_id: int
    node_name: str
    value_id: ValueID
    label: str
    value: PropertyValue
    prev_value: Any = None


class Broker:
    """
    Client for the zwavejs2mqtt gateway API.

    Example:
        broker = Broker(PrefixPublisher("zwave", client))
        client.add_subscriptions(broker.subscriptions("zwave"))

        broker.get_nodes(timeout=10.0)
        broker.write_value("kitchen-light", "targetValue", 50, timeout=5.0)

        updates = queue.Queue(maxsize=16)
        cancel = broker.watch_value("kitchen-light", "currentValue", updates)
        update = updates.get()
        cancel()
    """

    def __init__(
        self,
        publisher: Publisher,
        logger: Optional[StructuredLogger] = None,
        gateway_name: Optional[str] = None,
        default_timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize broker.

        Args:
            publisher: Transport port used for outbound requests; topics are
                relative (wrap with PrefixPublisher for a topic prefix)
            logger: Structured logger (default: component "broker")
            gateway_name: Gateway MQTT name, when request topics carry one
            default_timeout: Timeout in seconds for calls that pass none
        """
        self._publisher = publisher
        self.logger = (logger or create_logger("broker")).bind(gateway=gateway_client(gateway_name))
        self.gateway_name = gateway_name
        self.default_timeout = default_timeout

        self._directory = NodeDirectory()
        self._watchers = ValueWatcherRegistry()

        self._pending_lock = threading.Lock()  # Protects following
        self._pending_writes: Dict[ValueID, queue.Queue] = {}
        self._nodes_waiter: Optional[queue.Queue] = None

        # At most one getNodes call waits at a time
        self._bootstrap_lock = threading.Lock()

        self._stats_lock = threading.Lock()
        self._stats = {
            'nodes_loaded': 0,
            'writes_sent': 0,
            'writes_acknowledged': 0,
            'writes_unmatched': 0,
            'updates_delivered': 0,
            'updates_dropped': 0,
        }

    # ─────────────────────────────────────────────────────────────────────
    # Inbound routing
    # ─────────────────────────────────────────────────────────────────────

    def subscriptions(self, topic_prefix: str = "") -> Dict[str, Callable[[bytes], None]]:
        """
        MQTT topics to subscribe to and their handlers.

        Args:
            topic_prefix: Gateway MQTT prefix (e.g. "zwave")

        Returns:
            Mapping of topic (may contain wildcards) to handler(payload)
        """
        return {
            join_topic(topic_prefix, api_response_topic(API_GET_NODES, self.gateway_name)):
                self.handle_get_nodes_response,
            join_topic(topic_prefix, api_response_topic(API_WRITE_VALUE, self.gateway_name)):
                self.handle_write_value_response,
            join_topic(topic_prefix, NODE_VALUE_UPDATED_EVENT):
                self.handle_node_value_updated,
        }

    # ─────────────────────────────────────────────────────────────────────
    # Caller API
    # ─────────────────────────────────────────────────────────────────────

    def get_nodes(
        self,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
        wait: bool = True,
    ) -> None:
        """
        Request the node list and rebuild the directory from the response.

        Blocks until the response has been applied, unless wait is False,
        in which case the request is published and the response is applied
        whenever it arrives.

        Args:
            timeout: Seconds to wait (default: default_timeout)
            cancel: Event that aborts the wait when set
            wait: Block until the response has been handled

        Raises:
            RequestTimeoutError: No response within timeout
            RequestCancelledError: cancel was set
            DuplicateNodeError: Response has duplicate node names
            RemoteFailureError: Gateway reported the request as unsuccessful
            MalformedMessageError: Response could not be decoded
        """
        topic = api_request_topic(API_GET_NODES, self.gateway_name)

        if not wait:
            self._publisher.publish(topic, GET_NODES_REQUEST_PAYLOAD)
            self.logger.info(
                event=LogEvent.NODES_REQUESTED,
                message="Requested node list",
                metadata={'topic': topic, 'wait': False}
            )
            return

        timeout = self._resolve_timeout(timeout)
        deadline = time.monotonic() + timeout

        while not self._bootstrap_lock.acquire(
            timeout=self._next_wait("getNodes", timeout, deadline, cancel)
        ):
            pass

        try:
            slot: queue.Queue = queue.Queue(maxsize=1)
            with self._pending_lock:
                self._nodes_waiter = slot

            try:
                self._publisher.publish(topic, GET_NODES_REQUEST_PAYLOAD)
                self.logger.info(
                    event=LogEvent.NODES_REQUESTED,
                    message="Requested node list",
                    metadata={'topic': topic, 'timeout': timeout}
                )
                err = self._wait_for(slot, "getNodes", timeout, deadline, cancel)
            finally:
                with self._pending_lock:
                    if self._nodes_waiter is slot:
                        self._nodes_waiter = None
        finally:
            self._bootstrap_lock.release()

        if err is not None:
            raise err

    def write_value(
        self,
        node: NodeRef,
        prop: str,
        value: Any,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """
        Write a node's value and wait for the gateway's acknowledgement.

        Args:
            node: Node name (str) or id (int)
            prop: Value id (e.g. "38-0-targetValue") or property name
            value: JSON-serializable value to write
            timeout: Seconds to wait (default: default_timeout)
            cancel: Event that aborts the wait when set

        Raises:
            NodeNotFoundError / PropertyNotFoundError: Nothing is published
            TypeMismatchError: value is not JSON serializable
            PublishError: Transport refused the request
            RequestTimeoutError: No acknowledgement within timeout
            RequestCancelledError: cancel was set
            RemoteFailureError: Gateway reported the write as unsuccessful
        """
        target = self._directory.resolve(node, prop)
        value_id = target.value_id
        payload = WriteValueRequest(value_id=value_id, value=value).to_payload()

        timeout = self._resolve_timeout(timeout)
        deadline = time.monotonic() + timeout

        slot: queue.Queue = queue.Queue(maxsize=1)
        with self._pending_lock:
            # Supersedes any in-flight write to the same value
            self._pending_writes[value_id] = slot

        try:
            self._publisher.publish(
                api_request_topic(API_WRITE_VALUE, self.gateway_name), payload
            )
            self._count('writes_sent')
            self.logger.info(
                event=LogEvent.WRITE_SENT,
                message="Sent writeValue request",
                metadata={'value_id': str(value_id), 'value': value}
            )

            try:
                err = self._wait_for(slot, "writeValue", timeout, deadline, cancel)
            except RequestTimeoutError as e:
                self.logger.warning(
                    event=LogEvent.WRITE_TIMEOUT,
                    message="Gave up waiting for writeValue response",
                    metadata={'value_id': str(value_id), 'timeout': timeout},
                    exc_info=e
                )
                raise
        finally:
            with self._pending_lock:
                if self._pending_writes.get(value_id) is slot:
                    del self._pending_writes[value_id]

        if err is not None:
            raise err

    def watch_value(self, node: NodeRef, prop: str, sink: Sink) -> Callable[[], None]:
        """
        Deliver ValueUpdate items for a node's value to sink.

        Args:
            node: Node name (str) or id (int)
            prop: Value id or property name
            sink: Bounded queue; updates are dropped while it is full

        Returns:
            Idempotent cancel function. Once it returns, sink receives no
            further updates from this registration.

        Raises:
            NodeNotFoundError / PropertyNotFoundError
        """
        value_id = self._directory.resolve(node, prop).value_id
        self._watchers.add(value_id, sink)
        self.logger.info(
            event=LogEvent.VALUE_WATCH_ADDED,
            message="Watching value",
            metadata={'value_id': str(value_id)}
        )

        def cancel() -> None:
            if self._watchers.remove(value_id, sink):
                self.logger.info(
                    event=LogEvent.VALUE_WATCH_REMOVED,
                    message="Stopped watching value",
                    metadata={'value_id': str(value_id)}
                )

        return cancel

    # ─────────────────────────────────────────────────────────────────────
    # Read accessors
    # ─────────────────────────────────────────────────────────────────────

    def nodes(self) -> List[Node]:
        """Snapshot of the current directory, ordered by node id."""
        return self._directory.list_nodes()

    def get_node(self, node: NodeRef) -> Node:
        """
        Raises:
            NodeNotFoundError
        """
        return self._directory.lookup(node).node

    def get_value(self, node: NodeRef, prop: str) -> Value:
        """
        Raises:
            NodeNotFoundError / PropertyNotFoundError
        """
        return self._directory.resolve(node, prop)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get broker statistics.

        Returns:
            Dictionary with message counters and directory size
        """
        with self._stats_lock:
            stats = dict(self._stats)
        with self._pending_lock:
            stats['writes_in_flight'] = len(self._pending_writes)
        stats['nodes'] = len(self._directory)
        stats['watchers'] = len(self._watchers)
        return stats

    # ─────────────────────────────────────────────────────────────────────
    # Inbound handlers (MQTT network thread)
    # ─────────────────────────────────────────────────────────────────────

    def handle_get_nodes_response(self, payload: bytes) -> None:
        """
        Apply a getNodes response and release the waiting get_nodes() call.

        Raises:
            MalformedMessageError / DuplicateNodeError / RemoteFailureError:
                The directory is left unchanged
        """
        err: Optional[BrokerError] = None
        try:
            resp = decode_get_nodes_response(payload)
            if not resp.success:
                raise RemoteFailureError("getNodes", resp.message)
            installed = self._directory.replace(resp.result)
        except BrokerError as e:
            err = e

        with self._pending_lock:
            waiter = self._nodes_waiter
            if waiter is not None:
                try:
                    waiter.put_nowait(err)
                except queue.Full:
                    pass

        if err is not None:
            self.logger.warning(
                event=LogEvent.NODES_REJECTED,
                message="getNodes response rejected, keeping previous directory",
                exc_info=err
            )
            raise err

        self._count('nodes_loaded')
        pruned = self._watchers.prune(self._directory.has_value)
        if pruned:
            self.logger.info(
                event=LogEvent.VALUE_WATCH_REMOVED,
                message=f"Dropped {pruned} watchers for values no longer reported",
                metadata={'watchers': pruned}
            )
        self.logger.info(
            event=LogEvent.NODES_LOADED,
            message=f"Loaded {installed} nodes",
            metadata={
                'node_count': installed,
                'skipped_failed': sum(1 for n in resp.result if n.failed)
            }
        )

    def handle_write_value_response(self, payload: bytes) -> None:
        """
        Complete the in-flight write matching a writeValue response.

        Responses without a matching write (late or foreign) are dropped.

        Raises:
            MalformedMessageError
        """
        resp = decode_write_value_response(payload)

        with self._pending_lock:
            slot = self._pending_writes.get(resp.value_id)
            if slot is not None:
                err = None if resp.success else RemoteFailureError("writeValue", resp.message)
                try:
                    slot.put_nowait(err)
                except queue.Full:
                    # Duplicate response for an already completed slot
                    slot = None

        if slot is None:
            self._count('writes_unmatched')
            self.logger.debug(
                event=LogEvent.WRITE_UNMATCHED,
                message="Dropped writeValue response without in-flight write",
                metadata={'value_id': str(resp.value_id), 'success': resp.success}
            )
            return

        self._count('writes_acknowledged')
        if resp.success:
            self.logger.info(
                event=LogEvent.WRITE_ACKNOWLEDGED,
                message="writeValue acknowledged",
                metadata={'value_id': str(resp.value_id), 'value': resp.value}
            )
        else:
            self.logger.warning(
                event=LogEvent.WRITE_FAILED,
                message=f"writeValue response not successful: {resp.message}",
                metadata={'value_id': str(resp.value_id)}
            )

    def handle_node_value_updated(self, payload: bytes) -> None:
        """
        Deliver a node_value_updated event to the value's watchers.

        The event's node snapshot only supplies the value; routing uses the
        value's ValueID and requires the node in the live directory.

        Raises:
            MalformedMessageError: Envelope is malformed
            PropertyNotFoundError: Snapshot has no value matching the delta
            TypeMismatchError: Value does not match its declared type
            NodeNotFoundError: Node is not in the live directory
        """
        update = decode_node_value_update(payload)
        value = update.value.decode()

        managed = self._directory.get_by_id(update.value.node_id)
        if managed is None:
            raise NodeNotFoundError(update.value.node_id)

        value_id = update.value.value_id
        delivered, dropped = self._watchers.dispatch(
            value_id,
            ValueUpdate(
                node_id=managed.id,
                node_name=managed.name,
                value_id=value_id,
                label=update.value.label,
                value=value,
                prev_value=update.delta.prev_value,
            )
        )

        with self._stats_lock:
            self._stats['updates_delivered'] += delivered
            self._stats['updates_dropped'] += dropped

        self.logger.debug(
            event=LogEvent.VALUE_UPDATED,
            message="Value updated",
            metadata={
                'value_id': str(value_id),
                'value': value.value,
                'watchers': delivered + dropped
            }
        )
        if dropped:
            self.logger.debug(
                event=LogEvent.VALUE_DELIVERY_DROPPED,
                message=f"Dropped update for {dropped} full watcher queue(s)",
                metadata={'value_id': str(value_id)}
            )

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────

    def _resolve_timeout(self, timeout: Optional[float]) -> float:
        if timeout is None:
            return self.default_timeout
        if timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {timeout}")
        return timeout

    def _next_wait(
        self,
        request: str,
        timeout: float,
        deadline: float,
        cancel: Optional[threading.Event],
    ) -> float:
        """Seconds to block next, or raise once cancelled / expired."""
        if cancel is not None and cancel.is_set():
            raise RequestCancelledError(request)
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise RequestTimeoutError(request, timeout)
        if cancel is not None:
            return min(remaining, CANCEL_POLL_INTERVAL)
        return remaining

    def _wait_for(
        self,
        slot: queue.Queue,
        request: str,
        timeout: float,
        deadline: float,
        cancel: Optional[threading.Event],
    ) -> Optional[BrokerError]:
        while True:
            wait = self._next_wait(request, timeout, deadline, cancel)
            try:
                return slot.get(timeout=wait)
            except queue.Empty:
                continue

    def _count(self, key: str) -> None:
        with self._stats_lock:
            self._stats[key] += 1
