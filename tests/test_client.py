"""Tests for GatewayClient routing and publishing (no real MQTT broker)."""

from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from zwave_mqtt import (
    GatewayClient,
    MalformedMessageError,
    NodeNotFoundError,
    PublishError,
)

CONNECTED = SimpleNamespace(is_failure=False)
REFUSED = SimpleNamespace(is_failure=True)


def message(topic, payload=b"{}"):
    return SimpleNamespace(topic=topic, payload=payload)


@pytest.fixture
def client(quiet_logger, monkeypatch):
    client = GatewayClient(broker_host="localhost", logger=quiet_logger)
    subscribed = []
    published = []

    def subscribe(topic, qos=0):
        subscribed.append((topic, qos))
        return (mqtt.MQTT_ERR_SUCCESS, 1)

    def publish(topic, payload=None, qos=0):
        published.append((topic, payload, qos))
        return SimpleNamespace(rc=client.next_rc)

    monkeypatch.setattr(client.client, "subscribe", subscribe)
    monkeypatch.setattr(client.client, "publish", publish)
    client.subscribed = subscribed
    client.published = published
    client.next_rc = mqtt.MQTT_ERR_SUCCESS
    return client


class TestRouting:
    def test_wildcard_match(self, client):
        received = []
        client.add_subscriptions({"zwave/_EVENTS/+/node/node_value_updated": received.append})

        client._on_message(None, None, message("zwave/_EVENTS/ZWAVE_GATEWAY-main/node/node_value_updated", b"x"))

        assert received == [b"x"]

    def test_exact_match_only(self, client):
        nodes, writes = [], []
        client.add_subscriptions({
            "zwave/_CLIENTS/ZWAVE_GATEWAY/api/getNodes": nodes.append,
            "zwave/_CLIENTS/ZWAVE_GATEWAY/api/writeValue": writes.append,
        })

        client._on_message(None, None, message("zwave/_CLIENTS/ZWAVE_GATEWAY/api/writeValue", b"w"))

        assert nodes == []
        assert writes == [b"w"]

    def test_unknown_topic_ignored(self, client):
        client._on_message(None, None, message("other/topic"))
        assert client.get_stats()["received"] == 1

    @pytest.mark.parametrize("error", [
        NodeNotFoundError(4),
        MalformedMessageError("bad"),
        RuntimeError("boom"),
    ])
    def test_handler_errors_contained(self, client, error):
        def handler(payload):
            raise error
        client.add_subscriptions({"t": handler})

        client._on_message(None, None, message("t"))

        assert client.get_stats()["handler_errors"] == 1


class TestConnection:
    def test_subscribes_on_connect(self, client):
        client.add_subscriptions({"a": print, "b/+": print})
        assert client.subscribed == []

        client._on_connect(None, None, None, CONNECTED, None)

        assert sorted(client.subscribed) == [("a", 0), ("b/+", 0)]
        assert client.is_connected()

    def test_subscribes_immediately_when_connected(self, client):
        client._on_connect(None, None, None, CONNECTED, None)
        client.add_subscriptions({"late": print})
        assert ("late", 0) in client.subscribed

    def test_refused_connection(self, client):
        client.add_subscriptions({"a": print})
        client._on_connect(None, None, None, REFUSED, None)

        assert client.subscribed == []
        assert not client.is_connected()

    def test_disconnect_callback(self, client):
        client._on_connect(None, None, None, CONNECTED, None)
        client._on_disconnect(None, None, None, CONNECTED, None)
        assert not client.is_connected()


class TestPublish:
    def test_not_connected(self, client):
        with pytest.raises(PublishError):
            client.publish("zwave/x", b"")
        assert client.published == []

    def test_publish(self, client):
        client._on_connect(None, None, None, CONNECTED, None)

        client.publish("zwave/x", b"{}")

        assert client.published == [("zwave/x", b"{}", 0)]
        assert client.get_stats()["published"] == 1

    def test_rejected_by_paho(self, client):
        client._on_connect(None, None, None, CONNECTED, None)
        client.next_rc = mqtt.MQTT_ERR_NO_CONN

        with pytest.raises(PublishError):
            client.publish("zwave/x", b"{}")
        assert client.get_stats()["published"] == 0
