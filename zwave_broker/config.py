"""
Configuration schema for the Z-Wave MQTT bridge.

This module defines the configuration structure for the bridge, including
MQTT connection settings, gateway topic settings, request timeouts and the
values to watch.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import yaml


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = "zwave_mqtt_broker"
    qos: int = 0
    keepalive: int = 60

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

        if self.keepalive <= 0:
            raise ValueError(
                f"MQTT keepalive must be > 0, got {self.keepalive}"
            )


@dataclass(frozen=True)
class WatchConfig:
    """A node value to watch (node name or id, value id or property name)."""

    node: Union[str, int]
    property: str

    def __post_init__(self):
        """Validate watch configuration."""
        if isinstance(self.node, bool) or self.node in ("", None):
            raise ValueError(f"watch node must be a name or id, got {self.node!r}")
        if not self.property:
            raise ValueError(f"watch on node {self.node!r} has an empty property")


@dataclass(frozen=True)
class BridgeConfig:
    """
    Main configuration for the bridge.

    This configuration is loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    # MQTT configuration
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    # Gateway topics
    topic_prefix: str = "zwave"
    gateway_name: Optional[str] = None

    # Timeouts (seconds)
    request_timeout: float = 10.0
    bootstrap_timeout: float = 30.0

    # Watches
    watch_queue_size: int = 64
    watches: List[WatchConfig] = field(default_factory=list)

    def __post_init__(self):
        """Validate bridge configuration."""
        if self.request_timeout <= 0:
            raise ValueError(
                f"request_timeout must be > 0, got {self.request_timeout}"
            )

        if self.bootstrap_timeout <= 0:
            raise ValueError(
                f"bootstrap_timeout must be > 0, got {self.bootstrap_timeout}"
            )

        if self.watch_queue_size < 1:
            raise ValueError(
                f"watch_queue_size must be >= 1, got {self.watch_queue_size}"
            )

    @classmethod
    def from_dict(cls, data: dict) -> "BridgeConfig":
        """Build configuration from a parsed YAML mapping."""
        data = data or {}

        mqtt_config_data = data.get("mqtt_config") or {}
        mqtt_config = MQTTConfig(**mqtt_config_data)

        watches_data = data.get("watches") or []
        watches = [
            WatchConfig(node=w["node"], property=str(w["property"]))
            for w in watches_data
        ]

        return cls(
            mqtt_config=mqtt_config,
            topic_prefix=data.get("topic_prefix", "zwave"),
            gateway_name=data.get("gateway_name"),
            request_timeout=float(data.get("request_timeout", 10.0)),
            bootstrap_timeout=float(data.get("bootstrap_timeout", 30.0)),
            watch_queue_size=int(data.get("watch_queue_size", 64)),
            watches=watches,
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "BridgeConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            topic_prefix: "zwave"
            gateway_name: null
            request_timeout: 10
            bootstrap_timeout: 30
            watch_queue_size: 64

            mqtt_config:
              broker: "localhost"
              port: 1883
              username: null
              password: null

            watches:
              - node: "kitchen-light"
                property: "currentValue"
              - node: 7
                property: "49-0-Air temperature"
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f)

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config {yaml_path} must be a YAML mapping")

        return cls.from_dict(data)
