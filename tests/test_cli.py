"""Tests for zwave-cli commands (no real MQTT broker)."""

import threading

import pytest

from tests.helpers import (
    GET_NODES_REQUEST,
    WRITE_VALUE_REQUEST,
    ack_request,
    encode,
    node_value_updated,
    wait_for,
)
from zwave_broker import BridgeConfig
from zwave_cli.cli import (
    build_parser,
    cmd_nodes,
    cmd_set,
    cmd_watch,
    load_config,
    main,
    node_ref,
    parse_value,
)
from zwave_mqtt import NodeNotFoundError, RemoteFailureError


@pytest.fixture
def config():
    return BridgeConfig(request_timeout=1.0, bootstrap_timeout=1.0)


@pytest.fixture
def gateway(broker, publisher, nodes_response):
    """Simulated gateway answering getNodes and writeValue requests."""
    state = {"write_success": True}

    def respond(topic, payload):
        if topic == GET_NODES_REQUEST:
            broker.handle_get_nodes_response(encode(nodes_response))
        elif topic == WRITE_VALUE_REQUEST:
            broker.handle_write_value_response(
                ack_request(payload, success=state["write_success"], message="Value out of range")
            )

    publisher.responder = respond
    return state


class TestParsing:
    @pytest.mark.parametrize("text,expected", [
        ("4", 4),
        ("kitchen-light", "kitchen-light"),
        ("-1", "-1"),
    ])
    def test_node_ref(self, text, expected):
        assert node_ref(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("50", 50),
        ("true", True),
        ("[1, 2]", [1, 2]),
        ('{"value": 5, "unit": "seconds"}', {"value": 5, "unit": "seconds"}),
        ('"99"', "99"),
        ("ff0000", "ff0000"),
        ("", ""),
    ])
    def test_parse_value(self, text, expected):
        assert parse_value(text) == expected

    def test_parser(self):
        args = build_parser().parse_args(["--prefix", "home", "set", "4", "targetValue", "50"])
        assert (args.command, args.node, args.property, args.value) == ("set", "4", "targetValue", "50")
        assert args.prefix == "home"

    def test_watch_requires_property(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["watch", "kitchen-light"])


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(build_parser().parse_args(["nodes"]))
        assert config == BridgeConfig()

    def test_overrides(self):
        args = build_parser().parse_args([
            "--broker", "mqtt.local", "--port", "8883", "--prefix", "home",
            "--gateway-name", "main", "--timeout", "2", "nodes",
        ])
        config = load_config(args)

        assert config.mqtt_config.broker == "mqtt.local"
        assert config.mqtt_config.port == 8883
        assert config.topic_prefix == "home"
        assert config.gateway_name == "main"
        assert config.request_timeout == 2.0
        assert config.bootstrap_timeout == 2.0

    def test_overrides_config_file(self, tmp_path):
        path = tmp_path / "bridge.yaml"
        path.write_text("topic_prefix: file\nmqtt_config:\n  broker: filehost\n  username: u\n  password: p\n")

        config = load_config(build_parser().parse_args(["--config", str(path), "--port", "1884", "nodes"]))

        assert config.topic_prefix == "file"
        assert config.mqtt_config.broker == "filehost"
        assert config.mqtt_config.port == 1884
        assert config.mqtt_config.username == "u"

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(build_parser().parse_args(["--config", str(tmp_path / "nope.yaml"), "nodes"]))


class TestCommands:
    def test_nodes(self, broker, config, gateway, capsys):
        cmd_nodes(broker, config)

        out = capsys.readouterr().out
        assert "kitchen-light" in out
        assert "38-0-targetValue" in out
        assert "hall-sensor" in out
        assert "garage-door" not in out

    def test_set(self, broker, publisher, config, gateway, capsys):
        cmd_set(broker, config, "kitchen-light", "targetValue", "50")

        assert publisher.last_json()["args"][1] == 50
        assert "✅" in capsys.readouterr().out

    def test_set_by_node_id(self, broker, publisher, config, gateway):
        cmd_set(broker, config, "4", "38-0-targetValue", "0")
        assert publisher.last_json()["args"][0]["nodeId"] == 4

    def test_set_remote_failure(self, broker, config, gateway):
        gateway["write_success"] = False
        with pytest.raises(RemoteFailureError):
            cmd_set(broker, config, "kitchen-light", "targetValue", "500")

    def test_set_unknown_node(self, broker, config, gateway):
        with pytest.raises(NodeNotFoundError):
            cmd_set(broker, config, "nonexistent", "targetValue", "1")

    def test_watch(self, broker, config, gateway, nodes_response, capsys):
        def send_update():
            wait_for(lambda: broker.get_stats()["watchers"] == 1)
            broker.handle_node_value_updated(
                node_value_updated(nodes_response, 4, "38-0-currentValue", 50, prev_value=0)
            )

        sender = threading.Thread(target=send_update)
        sender.start()
        cmd_watch(broker, config, "kitchen-light", ["currentValue"], max_updates=1)
        sender.join(timeout=2.0)

        out = capsys.readouterr().out
        assert "kitchen-light / Current value: 0 → 50" in out
        assert broker.get_stats()["watchers"] == 0


class TestMain:
    def test_no_command(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_missing_config(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(tmp_path / "nope.yaml"), "nodes"])

        assert exc_info.value.code == 1
        assert "Config file not found" in capsys.readouterr().err
