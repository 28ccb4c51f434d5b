"""
Gateway MQTT Client
===================

Bounded Context: MQTT Infrastructure

paho-mqtt client that connects the broker to the zwavejs2mqtt gateway:
it implements the Publisher port for outbound requests and dispatches
inbound messages to the broker's handlers.

Design:
- Connection management (connect, disconnect)
- Re-subscribes every handler topic on each (re)connect
- Topic routing with MQTT wildcards (topic_matches_sub)
- Handler errors are contained and logged, never raised into paho

Message Flow:
    Gateway → MQTT Broker → GatewayClient._on_message → handler(payload)
    Broker → GatewayClient.publish → MQTT Broker → Gateway

Example:
    >>> from zwave_mqtt import GatewayClient, PrefixPublisher, create_logger
    >>> from zwave_broker import Broker
    >>>
    >>> client = GatewayClient(broker_host="localhost", logger=create_logger("mqtt_client"))
    >>> broker = Broker(PrefixPublisher("zwave", client))
    >>> client.add_subscriptions(broker.subscriptions("zwave"))
    >>> client.connect()
    >>> broker.get_nodes(timeout=10.0)
"""

import threading
from typing import Any, Callable, Dict, Mapping, Optional

import paho.mqtt.client as mqtt

from .errors import BrokerError, MalformedMessageError, NotFoundError, PublishError
from .logging import LogEvent, StructuredLogger
from .publishers import Publisher

Handler = Callable[[bytes], None]


class GatewayClient(Publisher):
    """
    MQTT client for the gateway API.

    Attributes:
        broker_host: MQTT broker hostname
        broker_port: MQTT broker port
        client_id: MQTT client identifier
        qos: Quality of Service for subscriptions and requests
        logger: Structured logger instance

    Thread Safety:
        Handlers run in paho's network thread (loop_start). publish() may
        be called from any thread.
    """

    def __init__(
        self,
        broker_host: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "zwave_mqtt_broker",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0,
        keepalive: int = 60
    ):
        """
        Initialize gateway client.

        Args:
            broker_host: MQTT broker hostname
            logger: Structured logger for observability
            broker_port: MQTT broker port (default: 1883)
            client_id: Unique client identifier
            username: MQTT authentication username (optional)
            password: MQTT authentication password (optional)
            qos: Quality of Service (default: 0)
            keepalive: MQTT keepalive interval in seconds
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.client_id = client_id
        self.logger = logger.bind(client_id=client_id)
        self.qos = qos
        self.keepalive = keepalive

        # MQTT client setup
        self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username and password:
            self.client.username_pw_set(username, password)

        # Callbacks
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

        # Topic → handler
        self._handlers: Dict[str, Handler] = {}
        self._handlers_lock = threading.Lock()

        # Connection state
        self._connected = threading.Event()
        self._stats_lock = threading.Lock()
        self._published_count = 0
        self._received_count = 0
        self._handler_errors = 0

    def add_subscriptions(self, subscriptions: Mapping[str, Handler]) -> None:
        """
        Register topic handlers (e.g. Broker.subscriptions()).

        Topics are subscribed immediately when connected, and again on
        every reconnect.
        """
        with self._handlers_lock:
            self._handlers.update(subscriptions)

        if self._connected.is_set():
            for topic in subscriptions:
                self._subscribe(topic)

    def _subscribe(self, topic: str) -> None:
        self.client.subscribe(topic, qos=self.qos)
        self.logger.info(
            event=LogEvent.MQTT_SUBSCRIBED,
            message="Subscribed to gateway topic",
            metadata={'topic': topic, 'qos': self.qos}
        )

    def _on_connect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any
    ) -> None:
        """
        Callback when connection established.

        Subscribes to every registered handler topic.
        """
        if reason_code.is_failure:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message=f"Failed to connect to broker ({reason_code})",
                metadata={'broker': f"{self.broker_host}:{self.broker_port}"}
            )
            return

        with self._handlers_lock:
            topics = list(self._handlers)
        for topic in topics:
            self._subscribe(topic)

        self._connected.set()
        self.logger.info(
            event=LogEvent.MQTT_CONNECTED,
            message="Connected to MQTT broker",
            metadata={
                'broker': f"{self.broker_host}:{self.broker_port}",
                'client_id': self.client_id,
                'topics': topics
            }
        )

    def _on_disconnect(
        self,
        client: mqtt.Client,
        userdata: Any,
        flags: Any,
        reason_code: Any,
        properties: Any
    ) -> None:
        """Callback when disconnected from broker."""
        self._connected.clear()
        self.logger.warning(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from MQTT broker",
            metadata={
                'broker': f"{self.broker_host}:{self.broker_port}",
                'reason_code': str(reason_code)
            }
        )

    def _on_message(
        self,
        client: mqtt.Client,
        userdata: Any,
        msg: mqtt.MQTTMessage
    ) -> None:
        """
        Callback when message received.

        Invokes every handler whose subscription matches the topic.
        """
        with self._stats_lock:
            self._received_count += 1

        with self._handlers_lock:
            handlers = [
                handler for sub, handler in self._handlers.items()
                if mqtt.topic_matches_sub(sub, msg.topic)
            ]

        if not handlers:
            self.logger.warning(
                event=LogEvent.HANDLER_ERROR,
                message=f"Received message from unknown topic: {msg.topic}"
            )
            return

        for handler in handlers:
            self._dispatch(msg.topic, handler, msg.payload)

    def _dispatch(self, topic: str, handler: Handler, payload: bytes) -> None:
        try:
            handler(payload)
            return
        except NotFoundError as e:
            # Directory may lag behind event traffic
            self.logger.warning(
                event=LogEvent.HANDLER_ERROR,
                message="Message references an unknown node or value",
                exc_info=e,
                metadata={'topic': topic}
            )
        except MalformedMessageError as e:
            self.logger.error(
                event=LogEvent.DESERIALIZATION_ERROR,
                message="Failed to decode gateway message",
                exc_info=e,
                metadata={'topic': topic}
            )
        except BrokerError as e:
            self.logger.error(
                event=LogEvent.SCHEMA_VALIDATION_ERROR,
                message="Gateway message rejected",
                exc_info=e,
                metadata={'topic': topic}
            )
        except Exception as e:
            self.logger.error(
                event=LogEvent.HANDLER_ERROR,
                message="Error processing message",
                exc_info=e,
                metadata={'topic': topic}
            )

        with self._stats_lock:
            self._handler_errors += 1

    def connect(self, timeout: float = 10.0) -> bool:
        """
        Connect to MQTT broker and start the network loop.

        Args:
            timeout: Connection timeout in seconds

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            self.client.connect(self.broker_host, self.broker_port, keepalive=self.keepalive)
            self.client.loop_start()

            # Wait for connection with timeout
            if self._connected.wait(timeout=timeout):
                return True
            else:
                self.logger.error(
                    event=LogEvent.MQTT_CONNECTION_ERROR,
                    message="Connection timeout",
                    metadata={'timeout': timeout}
                )
                return False

        except (OSError, ValueError) as e:
            self.logger.error(
                event=LogEvent.MQTT_CONNECTION_ERROR,
                message="Failed to connect to broker",
                exc_info=e,
                metadata={'broker': f"{self.broker_host}:{self.broker_port}"}
            )
            return False

    def disconnect(self) -> None:
        """
        Disconnect from MQTT broker gracefully.

        Stops the network loop and disconnects the client.
        """
        self.client.disconnect()
        self.client.loop_stop()
        self._connected.clear()
        self.logger.info(
            event=LogEvent.MQTT_DISCONNECTED,
            message="Disconnected from broker",
            metadata=self.get_stats()
        )

    def is_connected(self) -> bool:
        """Check if currently connected to broker."""
        return self._connected.is_set()

    def publish(self, topic: str, payload: bytes) -> None:
        """
        Publish payload to topic.

        Raises:
            PublishError: If not connected or paho refuses the message
        """
        if not self._connected.is_set():
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message="Cannot publish: not connected to broker",
                metadata={'topic': topic}
            )
            raise PublishError(f"cannot publish to {topic!r}: not connected to broker")

        result = self.client.publish(topic=topic, payload=payload, qos=self.qos)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            self.logger.warning(
                event=LogEvent.MQTT_PUBLISH_FAILED,
                message=f"Publish failed (rc={result.rc})",
                metadata={'topic': topic}
            )
            raise PublishError(f"publish to {topic!r} failed: {mqtt.error_string(result.rc)}")

        with self._stats_lock:
            self._published_count += 1

        self.logger.debug(
            event=LogEvent.MQTT_PUBLISH_SUCCESS,
            message="Published message",
            metadata={'topic': topic, 'bytes': len(payload)}
        )

    def get_stats(self) -> Dict[str, Any]:
        """
        Get client statistics.

        Returns:
            Dictionary with message counts and connection status
        """
        with self._stats_lock:
            return {
                'published': self._published_count,
                'received': self._received_count,
                'handler_errors': self._handler_errors,
                'connected': self._connected.is_set(),
                'broker': f"{self.broker_host}:{self.broker_port}"
            }
