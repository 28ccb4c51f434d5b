"""Shared test utilities for broker tests."""

import copy
import json
import threading
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from zwave_mqtt import BrokerError, PublishError, Publisher

TESTDATA = Path(__file__).parent / "testdata"

GET_NODES_REQUEST = "_CLIENTS/ZWAVE_GATEWAY/api/getNodes/set"
WRITE_VALUE_REQUEST = "_CLIENTS/ZWAVE_GATEWAY/api/writeValue/set"


def load_testdata(name: str) -> Dict[str, Any]:
    with open(TESTDATA / name) as f:
        return json.load(f)


def encode(data: Any) -> bytes:
    return json.dumps(data).encode("utf-8")


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll predicate until it holds or timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class RecordingPublisher(Publisher):
    """
    In-memory Publisher.

    Records every publish. An optional responder is called synchronously
    with (topic, payload), standing in for the gateway; broker errors it
    raises are collected in handler_errors, as GatewayClient would log them.
    """

    def __init__(self):
        self.published: List[Tuple[str, bytes]] = []
        self.responder: Optional[Callable[[str, bytes], None]] = None
        self.fail = False
        self.handler_errors: List[BrokerError] = []
        self._lock = threading.Lock()

    def publish(self, topic: str, payload: bytes) -> None:
        if self.fail:
            raise PublishError(f"cannot publish to {topic!r}: not connected to broker")
        with self._lock:
            self.published.append((topic, payload))
        if self.responder is not None:
            try:
                self.responder(topic, payload)
            except BrokerError as e:
                self.handler_errors.append(e)

    def topics(self) -> List[str]:
        with self._lock:
            return [topic for topic, _ in self.published]

    def last_json(self) -> Any:
        with self._lock:
            return json.loads(self.published[-1][1])


# ─────────────────────────────────────────────────────────────────────────────
# Gateway payload builders
# ─────────────────────────────────────────────────────────────────────────────

def write_response(args: List[Any], success: bool = True, message: str = "Success zwave api call") -> bytes:
    return encode({"success": success, "message": message, "args": args})


def ack_request(payload: bytes, success: bool = True, message: str = "Success zwave api call") -> bytes:
    """writeValue response echoing a writeValue request."""
    return write_response(json.loads(payload)["args"], success=success, message=message)


def node_value_updated(
    nodes_response: Dict[str, Any],
    node_id: int,
    value_id: str,
    new_value: Any,
    prev_value: Any = None,
) -> bytes:
    """node_value_updated event for a node of the getNodes fixture."""
    node = copy.deepcopy(next(n for n in nodes_response["result"] if n["id"] == node_id))
    value = node["values"][value_id]
    value["value"] = new_value

    delta = {
        "commandClassName": value["commandClassName"],
        "commandClass": value["commandClass"],
        "endpoint": value["endpoint"],
        "property": value["property"],
        "propertyName": value["propertyName"],
        "newValue": new_value,
        "prevValue": prev_value,
    }
    if "propertyKey" in value:
        delta["propertyKey"] = value["propertyKey"]
    return encode({"data": [node, delta]})

