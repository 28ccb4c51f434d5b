"""Tests for bridge configuration loading."""

from pathlib import Path

import pytest

from zwave_broker import BridgeConfig, MQTTConfig, WatchConfig

EXAMPLE_CONFIG = Path(__file__).parent.parent / "config" / "bridge.yaml"


def write_yaml(tmp_path, text):
    path = tmp_path / "bridge.yaml"
    path.write_text(text)
    return path


class TestFromYaml:
    def test_example_config(self):
        config = BridgeConfig.from_yaml(EXAMPLE_CONFIG)

        assert config.topic_prefix == "zwave"
        assert config.gateway_name is None
        assert config.mqtt_config.client_id == "zwave_bridge"
        assert config.watches == [
            WatchConfig(node="kitchen-light", property="currentValue"),
            WatchConfig(node=7, property="49-0-Air temperature"),
        ]

    def test_defaults(self, tmp_path):
        config = BridgeConfig.from_yaml(write_yaml(tmp_path, "topic_prefix: home\n"))

        assert config.topic_prefix == "home"
        assert config.mqtt_config == MQTTConfig()
        assert config.request_timeout == 10.0
        assert config.bootstrap_timeout == 30.0
        assert config.watches == []

    def test_empty_file(self, tmp_path):
        assert BridgeConfig.from_yaml(write_yaml(tmp_path, "")) == BridgeConfig()

    def test_full(self, tmp_path):
        config = BridgeConfig.from_yaml(write_yaml(tmp_path, """
topic_prefix: "zwave"
gateway_name: "main"
request_timeout: 2.5
watch_queue_size: 8
mqtt_config:
  broker: "mqtt.local"
  port: 8883
  username: "zwave"
  password: "secret"
  qos: 1
watches:
  - node: "porch-light"
    property: "targetValue"
"""))

        assert config.gateway_name == "main"
        assert config.request_timeout == 2.5
        assert config.watch_queue_size == 8
        assert config.mqtt_config.broker == "mqtt.local"
        assert config.mqtt_config.port == 8883
        assert config.mqtt_config.qos == 1
        assert config.watches[0].node == "porch-light"

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ValueError):
            BridgeConfig.from_yaml(write_yaml(tmp_path, "- 1\n- 2\n"))

    def test_unknown_mqtt_key(self, tmp_path):
        with pytest.raises(TypeError):
            BridgeConfig.from_yaml(write_yaml(tmp_path, "mqtt_config:\n  host: x\n"))


class TestValidation:
    @pytest.mark.parametrize("kwargs", [
        {"port": 0},
        {"port": 70000},
        {"qos": 3},
        {"keepalive": 0},
        {"broker": ""},
    ])
    def test_mqtt_config(self, kwargs):
        with pytest.raises(ValueError):
            MQTTConfig(**kwargs)

    @pytest.mark.parametrize("kwargs", [
        {"request_timeout": 0},
        {"bootstrap_timeout": -1},
        {"watch_queue_size": 0},
    ])
    def test_bridge_config(self, kwargs):
        with pytest.raises(ValueError):
            BridgeConfig(**kwargs)

    @pytest.mark.parametrize("node,prop", [("", "currentValue"), ("lamp", ""), (True, "x")])
    def test_watch_config(self, node, prop):
        with pytest.raises(ValueError):
            WatchConfig(node=node, property=prop)
