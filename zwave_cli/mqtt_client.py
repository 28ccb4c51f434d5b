"""
MQTT session wrapper for talking to the Z-Wave gateway.

Wires a GatewayClient and a Broker together, connects, and disconnects on
exit.
"""

import logging
from typing import Optional

from zwave_broker import Broker, BridgeConfig
from zwave_mqtt import GatewayClient, PrefixPublisher, StructuredLogger, create_logger


class GatewaySession:
    """
    Connected broker for the lifetime of a with block.

    Example:
        with GatewaySession(config) as broker:
            broker.get_nodes(timeout=config.bootstrap_timeout)
            broker.write_value("kitchen-light", "targetValue", 50)
    """

    def __init__(
        self,
        config: BridgeConfig,
        logger: Optional[StructuredLogger] = None,
        connect_timeout: float = 10.0
    ):
        """
        Initialize session.

        Args:
            config: Bridge configuration (MQTT, topics, timeouts)
            logger: Structured logger shared by client and broker
            connect_timeout: Seconds to wait for the MQTT connection
        """
        self.config = config
        self.logger = logger or create_logger("zwave_cli", level=logging.WARNING)
        self.connect_timeout = connect_timeout

        mqtt_config = config.mqtt_config
        self.client = GatewayClient(
            broker_host=mqtt_config.broker,
            logger=self.logger,
            broker_port=mqtt_config.port,
            client_id=mqtt_config.client_id,
            username=mqtt_config.username,
            password=mqtt_config.password,
            qos=mqtt_config.qos,
            keepalive=mqtt_config.keepalive,
        )
        self.broker = Broker(
            PrefixPublisher(config.topic_prefix, self.client),
            logger=self.logger,
            gateway_name=config.gateway_name,
            default_timeout=config.request_timeout,
        )
        self.client.add_subscriptions(self.broker.subscriptions(config.topic_prefix))

    def __enter__(self) -> Broker:
        """
        Raises:
            ConnectionError: If unable to connect to the MQTT broker
        """
        if not self.client.connect(timeout=self.connect_timeout):
            mqtt_config = self.config.mqtt_config
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {mqtt_config.broker}:{mqtt_config.port}. "
                "Is mosquitto running?"
            )
        return self.broker

    def __exit__(self, exc_type, exc, tb) -> None:
        self.client.disconnect()
