"""
Z-Wave CLI - Main entry point.

Provides command-line interface for the zwavejs2mqtt gateway API over MQTT.
"""

import argparse
import json
import queue
import sys
from pathlib import Path
from typing import Any, List, Optional, Union

from zwave_broker import Broker, BridgeConfig, MQTTConfig, ValueUpdate
from zwave_mqtt import BrokerError, TypeMismatchError

from .mqtt_client import GatewaySession


def node_ref(text: str) -> Union[str, int]:
    """Node id when text is all digits, otherwise a node name."""
    return int(text) if text.isdigit() else text


def parse_value(text: str) -> Any:
    """
    Parse a command line value.

    JSON literals ("50", "true", "[1, 2]", '{"value": 5, "unit": "seconds"}')
    are decoded; anything else is sent as a plain string.
    """
    try:
        return json.loads(text)
    except ValueError:
        return text


def load_config(args: argparse.Namespace) -> BridgeConfig:
    """
    Build configuration from --config and command line overrides.

    Raises:
        FileNotFoundError: If --config doesn't exist
        ValueError: If the configuration is invalid
    """
    if args.config:
        path = Path(args.config)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {args.config}")
        config = BridgeConfig.from_yaml(path)
    else:
        config = BridgeConfig()

    mqtt_config = config.mqtt_config
    if args.broker is not None or args.port is not None:
        mqtt_config = MQTTConfig(
            broker=args.broker if args.broker is not None else mqtt_config.broker,
            port=args.port if args.port is not None else mqtt_config.port,
            username=mqtt_config.username,
            password=mqtt_config.password,
            client_id=mqtt_config.client_id,
            qos=mqtt_config.qos,
            keepalive=mqtt_config.keepalive,
        )

    return BridgeConfig(
        mqtt_config=mqtt_config,
        topic_prefix=args.prefix if args.prefix is not None else config.topic_prefix,
        gateway_name=args.gateway_name if args.gateway_name is not None else config.gateway_name,
        request_timeout=args.timeout if args.timeout is not None else config.request_timeout,
        bootstrap_timeout=args.timeout if args.timeout is not None else config.bootstrap_timeout,
        watch_queue_size=config.watch_queue_size,
        watches=config.watches,
    )


def format_update(update: ValueUpdate) -> str:
    node = update.node_name or f"node {update.node_id}"
    label = update.label or str(update.value_id.property)
    return f"{node} / {label}: {update.prev_value!r} → {update.value.value!r}"


def cmd_nodes(broker: Broker, config: BridgeConfig) -> None:
    """Bootstrap and print every node with its values."""
    broker.get_nodes(timeout=config.bootstrap_timeout)

    nodes = broker.nodes()
    if not nodes:
        print("No nodes")
        return

    for node in nodes:
        status = "ready" if node.ready else (node.status or "not ready")
        print(f"{node.id:>3}  {node.name or '-'}  [{node.product_label or '?'}] {status}")
        for value in node.values:
            try:
                shown = repr(value.decode().value)
            except TypeMismatchError:
                shown = f"{value.raw_value!r} (undecodable {value.type})"
            access = "rw" if value.writeable else "r-"
            print(f"       {access} {value.id:<40} {shown}")


def cmd_set(broker: Broker, config: BridgeConfig, node: str, prop: str, value: str) -> None:
    """Bootstrap, then write a value and wait for the acknowledgement."""
    broker.get_nodes(timeout=config.bootstrap_timeout)

    parsed = parse_value(value)
    broker.write_value(node_ref(node), prop, parsed, timeout=config.request_timeout)
    print(f"✅ {node} / {prop} = {parsed!r}")


def cmd_watch(
    broker: Broker,
    config: BridgeConfig,
    node: str,
    props: List[str],
    max_updates: Optional[int] = None
) -> None:
    """
    Bootstrap, then print updates of the given values until Ctrl+C.

    Args:
        max_updates: Stop after this many updates (default: run forever)
    """
    broker.get_nodes(timeout=config.bootstrap_timeout)

    updates: queue.Queue = queue.Queue(maxsize=config.watch_queue_size)
    cancels = [broker.watch_value(node_ref(node), prop, updates) for prop in props]
    print(f"👀 Watching {node}: {', '.join(props)} (Ctrl+C to stop)")

    received = 0
    try:
        while max_updates is None or received < max_updates:
            try:
                update = updates.get(timeout=0.5)
            except queue.Empty:
                continue
            print(format_update(update))
            received += 1
    except KeyboardInterrupt:
        pass
    finally:
        for cancel in cancels:
            cancel()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zwave-cli",
        description="Z-Wave CLI - Talk to the zwavejs2mqtt gateway over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List nodes and their current values
  zwave-cli nodes

  # Write a value (node by name or id, property by name or value id)
  zwave-cli set kitchen-light targetValue 50
  zwave-cli set 4 38-0-targetValue 50
  zwave-cli set porch-light duration '{"value": 5, "unit": "seconds"}'

  # Watch values until Ctrl+C
  zwave-cli watch kitchen-light currentValue

  # Use a bridge config file
  zwave-cli --config config/bridge.yaml nodes
"""
    )

    # Global arguments (override --config)
    parser.add_argument(
        "--config",
        help="Path to bridge configuration YAML"
    )
    parser.add_argument(
        "--broker",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "--prefix",
        help="Gateway MQTT topic prefix (default: zwave)"
    )
    parser.add_argument(
        "--gateway-name",
        help="Gateway MQTT name, if API topics carry one"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Request timeout in seconds"
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('nodes', help='List nodes and their values')

    set_value = subparsers.add_parser('set', help='Write a node value')
    set_value.add_argument('node', help='Node name or id')
    set_value.add_argument('property', help='Property name or value id')
    set_value.add_argument('value', help='Value (JSON literal or plain string)')

    watch = subparsers.add_parser('watch', help='Print value updates until Ctrl+C')
    watch.add_argument('node', help='Node name or id')
    watch.add_argument('properties', nargs='+', help='Property names or value ids')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Execute command
    try:
        config = load_config(args)
        with GatewaySession(config) as broker:
            if args.command == 'nodes':
                cmd_nodes(broker, config)

            elif args.command == 'set':
                cmd_set(broker, config, args.node, args.property, args.value)

            elif args.command == 'watch':
                cmd_watch(broker, config, args.node, args.properties)

    except (BrokerError, ConnectionError, FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
