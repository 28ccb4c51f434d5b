"""Tests for the JSON structured logger."""

import json
import logging
from datetime import timedelta

import pytest

from zwave_mqtt import create_logger
from zwave_mqtt.logging import LogEvent
from zwave_mqtt.logging.events import (
    ERROR_EVENTS,
    MQTT_EVENTS,
    NODES_EVENTS,
    VALUE_EVENTS,
    WRITE_EVENTS,
)


def entries(caplog, logger_name):
    return [
        json.loads(record.getMessage())
        for record in caplog.records
        if record.name == logger_name
    ]


class TestEntries:
    def test_info_entry(self, caplog):
        logger = create_logger("log_info", level=logging.DEBUG)

        with caplog.at_level(logging.DEBUG, logger="zwave_mqtt.log_info"):
            logger.info(LogEvent.NODES_LOADED, "Loaded 3 nodes", {"node_count": 3})

        [entry] = entries(caplog, "zwave_mqtt.log_info")
        assert entry["level"] == "INFO"
        assert entry["component"] == "log_info"
        assert entry["event"] == "nodes.loaded"
        assert entry["message"] == "Loaded 3 nodes"
        assert entry["metadata"] == {"node_count": 3}
        assert "context" not in entry
        assert "exception" not in entry
        assert entry["timestamp"].endswith("+00:00")

    def test_non_json_metadata_is_stringified(self, caplog):
        logger = create_logger("log_str", level=logging.DEBUG)

        with caplog.at_level(logging.DEBUG, logger="zwave_mqtt.log_str"):
            logger.debug(LogEvent.WRITE_SENT, "Write sent", {"duration": timedelta(seconds=5)})

        [entry] = entries(caplog, "zwave_mqtt.log_str")
        assert entry["metadata"] == {"duration": "0:00:05"}

    def test_error_records_exception(self, caplog):
        logger = create_logger("log_error")

        with caplog.at_level(logging.DEBUG, logger="zwave_mqtt.log_error"):
            logger.error(LogEvent.HANDLER_ERROR, "Handler failed", exc_info=RuntimeError("boom"))

        [record] = [r for r in caplog.records if r.name == "zwave_mqtt.log_error"]
        entry = json.loads(record.getMessage())
        assert entry["exception"] == {"type": "RuntimeError", "message": "boom"}
        assert record.exc_info is not None

    def test_warning_has_no_traceback(self, caplog):
        logger = create_logger("log_warning")

        with caplog.at_level(logging.DEBUG, logger="zwave_mqtt.log_warning"):
            logger.warning(LogEvent.WRITE_UNMATCHED, "Dropped", exc_info=ValueError("x"))

        [record] = [r for r in caplog.records if r.name == "zwave_mqtt.log_warning"]
        assert json.loads(record.getMessage())["exception"]["type"] == "ValueError"
        assert not record.exc_info


class TestLevels:
    def test_below_level_is_skipped(self, caplog):
        logger = create_logger("log_level", level=logging.WARNING)

        with caplog.at_level(logging.DEBUG):
            logger.set_level(logging.WARNING)
            logger.info(LogEvent.WRITE_SENT, "hidden")
            logger.warning(LogEvent.WRITE_TIMEOUT, "shown")

        assert [e["event"] for e in entries(caplog, "zwave_mqtt.log_level")] == ["write.timeout"]


class TestContext:
    def test_create_logger_context(self, caplog):
        logger = create_logger("log_ctx", level=logging.DEBUG, gateway="ZWAVE_GATEWAY-main")

        with caplog.at_level(logging.DEBUG, logger="zwave_mqtt.log_ctx"):
            logger.info(LogEvent.MQTT_CONNECTED, "Connected")

        [entry] = entries(caplog, "zwave_mqtt.log_ctx")
        assert entry["context"] == {"gateway": "ZWAVE_GATEWAY-main"}

    def test_bind_merges_and_copies(self, caplog):
        logger = create_logger("log_bind", level=logging.DEBUG, gateway="ZWAVE_GATEWAY")
        bound = logger.bind(client_id="zwave_bridge")

        with caplog.at_level(logging.DEBUG, logger="zwave_mqtt.log_bind"):
            bound.info(LogEvent.MQTT_SUBSCRIBED, "Subscribed")
            logger.info(LogEvent.MQTT_SUBSCRIBED, "Subscribed")

        first, second = entries(caplog, "zwave_mqtt.log_bind")
        assert first["context"] == {"gateway": "ZWAVE_GATEWAY", "client_id": "zwave_bridge"}
        assert second["context"] == {"gateway": "ZWAVE_GATEWAY"}
        assert bound.logger is logger.logger

    def test_bind_overrides(self):
        logger = create_logger("log_override", gateway="a")
        assert logger.bind(gateway="b").context == {"gateway": "b"}
        assert logger.context == {"gateway": "a"}


class TestCategories:
    def test_every_event_has_one_category(self):
        categories = [MQTT_EVENTS, NODES_EVENTS, WRITE_EVENTS, VALUE_EVENTS, ERROR_EVENTS]

        for event in LogEvent:
            assert sum(event in category for category in categories) == 1, event

    @pytest.mark.parametrize("category,prefix", [
        (MQTT_EVENTS, "mqtt."),
        (NODES_EVENTS, "nodes."),
        (WRITE_EVENTS, "write."),
        (VALUE_EVENTS, "value."),
        (ERROR_EVENTS, "error."),
    ])
    def test_category_prefix(self, category, prefix):
        assert all(event.value.startswith(prefix) for event in category)
