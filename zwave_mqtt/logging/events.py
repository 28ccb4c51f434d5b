"""
Log event names
===============

Every StructuredLogger entry carries one LogEvent in its "event" field.
Names are dotted, area first ("write.timeout", "value.delivery.dropped"),
so one area can be selected with a prefix match in the log backend:

    {app="zwave-bridge"} | json | event =~ "write.*"

The *_EVENTS sets at the bottom group members by area.
"""

from enum import Enum


class LogEvent(str, Enum):
    """Event names emitted by the client, broker and bridge."""

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_SUBSCRIBED = "mqtt.subscribed"
    """Subscribed to a gateway API topic."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Node Directory Events ==========
    NODES_REQUESTED = "nodes.requested"
    """getNodes request published."""

    NODES_LOADED = "nodes.loaded"
    """Node directory replaced from a getNodes response."""

    NODES_REJECTED = "nodes.rejected"
    """getNodes response rejected, previous directory kept."""

    # ========== Write Events ==========
    WRITE_SENT = "write.sent"
    """writeValue request published."""

    WRITE_ACKNOWLEDGED = "write.acknowledged"
    """writeValue response matched an in-flight write."""

    WRITE_FAILED = "write.failed"
    """Gateway reported a write as unsuccessful."""

    WRITE_TIMEOUT = "write.timeout"
    """In-flight write gave up waiting."""

    WRITE_UNMATCHED = "write.unmatched"
    """writeValue response had no in-flight write (dropped)."""

    # ========== Value Events ==========
    VALUE_UPDATED = "value.updated"
    """Value change notification dispatched to watchers."""

    VALUE_WATCH_ADDED = "value.watch.added"
    """Watcher registered for a value."""

    VALUE_WATCH_REMOVED = "value.watch.removed"
    """Watcher removed from a value."""

    VALUE_DELIVERY_DROPPED = "value.delivery.dropped"
    """Watcher queue was full, update dropped for that watcher."""

    # ========== Error Events ==========
    DESERIALIZATION_ERROR = "error.deserialization"
    """Failed to decode an inbound envelope."""

    SCHEMA_VALIDATION_ERROR = "error.schema_validation"
    """Inbound envelope failed schema validation."""

    HANDLER_ERROR = "error.handler"
    """Inbound message handler reported an error."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""


# Grouped by area, for filtering
MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_SUBSCRIBED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
}

WRITE_EVENTS = {
    LogEvent.WRITE_SENT,
    LogEvent.WRITE_ACKNOWLEDGED,
    LogEvent.WRITE_FAILED,
    LogEvent.WRITE_TIMEOUT,
    LogEvent.WRITE_UNMATCHED,
}

VALUE_EVENTS = {
    LogEvent.VALUE_UPDATED,
    LogEvent.VALUE_WATCH_ADDED,
    LogEvent.VALUE_WATCH_REMOVED,
    LogEvent.VALUE_DELIVERY_DROPPED,
}

ERROR_EVENTS = {
    LogEvent.DESERIALIZATION_ERROR,
    LogEvent.SCHEMA_VALIDATION_ERROR,
    LogEvent.HANDLER_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
    LogEvent.MQTT_PUBLISH_ERROR,
}

NODES_EVENTS = {
    LogEvent.NODES_REQUESTED,
    LogEvent.NODES_LOADED,
    LogEvent.NODES_REJECTED,
}
