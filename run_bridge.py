#!/usr/bin/env python3
"""
Z-Wave MQTT Bridge - Entry Point
================================

This script starts the Z-Wave MQTT bridge, which:
- Connects to the MQTT broker the zwavejs2mqtt gateway publishes to
- Bootstraps the node directory (getNodes)
- Watches the values listed in the configuration
- Logs every value update until stopped

Usage:
    python run_bridge.py --config config/bridge.yaml

Architecture:
    - GatewayClient: paho-mqtt transport (zwave_mqtt)
    - Broker: getNodes / writeValue correlation, value watches (zwave_broker)

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create client and broker, connect
    4. Bootstrap node directory
    5. Register watches on one queue
    6. Log updates until stop signal (Ctrl+C or SIGTERM)
    7. Graceful shutdown

Signals:
    - SIGTERM: Graceful shutdown
    - SIGINT (Ctrl+C): Graceful shutdown

Logs:
    - Console: INFO level
    - File: logs/bridge.log (INFO level)
"""

import argparse
import logging
import queue
import signal
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional

from zwave_broker import Broker, BridgeConfig, ValueUpdate
from zwave_mqtt import BrokerError, GatewayClient, PrefixPublisher, create_logger


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """
    Setup logging for the bridge.

    Args:
        log_file: Optional path to log file (default: logs/bridge.log)

    Returns:
        Logger instance for the bridge
    """
    # Create logs directory if needed
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    # Setup root logger
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    logger = logging.getLogger(__name__)
    return logger


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class BridgeApp:
    """
    Main application wrapper for the bridge.

    Handles:
    - Configuration loading
    - Component initialization (MQTT client, broker)
    - Signal handling (SIGTERM, SIGINT)
    - Graceful shutdown
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None):
        """
        Initialize bridge application.

        Args:
            config_path: Path to bridge configuration YAML
            log_file: Optional path to log file
        """
        self.config_path = config_path
        self.log_file = log_file
        self.logger = setup_logging(log_file)

        # Components (initialized in setup())
        self.config: Optional[BridgeConfig] = None
        self.client: Optional[GatewayClient] = None
        self.broker: Optional[Broker] = None
        self.updates: Optional[queue.Queue] = None
        self._cancels: List[Callable[[], None]] = []

        # Signal handling
        self._stop_event = threading.Event()
        self._shutdown_requested = False

    def setup(self):
        """
        Setup all components.

        Steps:
        1. Load configuration from YAML
        2. Create structured logger for client and broker
        3. Create MQTT client and broker, connect
        4. Bootstrap node directory
        5. Register watches
        """
        self.logger.info("=" * 80)
        self.logger.info("🚀 Z-Wave MQTT Bridge - Starting")
        self.logger.info("=" * 80)

        # 1. Load configuration
        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = BridgeConfig.from_yaml(self.config_path)
        self.logger.info(
            f"✅ Configuration loaded (prefix={self.config.topic_prefix}, "
            f"watches={len(self.config.watches)})"
        )

        # 2. Structured logger
        mqtt_logger = create_logger(component="bridge")

        # 3. Client and broker
        mqtt_config = self.config.mqtt_config
        self.logger.info(f"🔌 Connecting to MQTT broker {mqtt_config.broker}:{mqtt_config.port}")
        self.client = GatewayClient(
            broker_host=mqtt_config.broker,
            logger=mqtt_logger,
            broker_port=mqtt_config.port,
            client_id=mqtt_config.client_id,
            username=mqtt_config.username,
            password=mqtt_config.password,
            qos=mqtt_config.qos,
            keepalive=mqtt_config.keepalive,
        )
        self.broker = Broker(
            PrefixPublisher(self.config.topic_prefix, self.client),
            logger=mqtt_logger,
            gateway_name=self.config.gateway_name,
            default_timeout=self.config.request_timeout,
        )
        self.client.add_subscriptions(self.broker.subscriptions(self.config.topic_prefix))

        if not self.client.connect():
            raise ConnectionError(
                f"Unable to connect to MQTT broker at {mqtt_config.broker}:{mqtt_config.port}"
            )
        self.logger.info("✅ Connected")

        # 4. Bootstrap
        self.logger.info("📥 Requesting node list")
        self.broker.get_nodes(timeout=self.config.bootstrap_timeout, cancel=self._stop_event)
        self.logger.info(f"✅ {len(self.broker.nodes())} nodes loaded")

        # 5. Watches
        self.updates = queue.Queue(maxsize=self.config.watch_queue_size)
        for watch in self.config.watches:
            try:
                self._cancels.append(
                    self.broker.watch_value(watch.node, watch.property, self.updates)
                )
                self.logger.info(f"  - Watching {watch.node} / {watch.property}")
            except BrokerError as e:
                self.logger.warning(f"⚠️  Skipping watch {watch.node} / {watch.property}: {e}")

        self.logger.info("=" * 80)

    def run(self):
        """
        Log value updates.

        Blocks until shutdown is requested (via signal or exception).
        """
        if not self.broker:
            raise RuntimeError("Bridge not initialized. Call setup() first.")

        # Setup signal handlers
        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        self.logger.info("✅ Bridge started successfully")
        self.logger.info("Press Ctrl+C to stop")
        self.logger.info("=" * 80)

        try:
            while not self._stop_event.is_set():
                try:
                    update = self.updates.get(timeout=0.5)
                except queue.Empty:
                    continue
                self._log_update(update)

        except KeyboardInterrupt:
            self.logger.info("\n⚠️  KeyboardInterrupt received")

        finally:
            self.shutdown()

    def _log_update(self, update: ValueUpdate):
        node = update.node_name or f"node {update.node_id}"
        self.logger.info(
            f"🔔 {node} / {update.label or update.value_id.property}: "
            f"{update.prev_value!r} → {update.value.value!r}"
        )

    def shutdown(self):
        """
        Graceful shutdown of all components.

        Order:
        1. Cancel watches
        2. Disconnect MQTT client
        3. Log completion
        """
        if self._shutdown_requested:
            self.logger.warning("⚠️  Shutdown already in progress")
            return

        self._shutdown_requested = True
        self._stop_event.set()

        self.logger.info("=" * 80)
        self.logger.info("🛑 Shutting down bridge")
        self.logger.info("=" * 80)

        for cancel in self._cancels:
            cancel()
        self._cancels.clear()

        if self.broker:
            self.logger.info(f"📊 Broker stats: {self.broker.get_stats()}")

        if self.client:
            try:
                self.client.disconnect()
                self.logger.info("✅ MQTT client disconnected")
            except Exception as e:
                self.logger.error(f"❌ Error disconnecting MQTT client: {e}")

        self.logger.info("=" * 80)
        self.logger.info("✅ Shutdown complete")
        self.logger.info("=" * 80)

    def _signal_handler(self, signum, frame):
        """
        Handle shutdown signals (SIGTERM, SIGINT).

        Args:
            signum: Signal number
            frame: Current stack frame (unused)
        """
        signal_name = signal.Signals(signum).name
        self.logger.info(f"\n⚠️  Received signal {signal_name} ({signum})")
        self._stop_event.set()


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args():
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace with parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Z-Wave MQTT Bridge - zwavejs2mqtt gateway API client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with default config
  python run_bridge.py --config config/bridge.yaml

  # Start with custom log file
  python run_bridge.py --config config/bridge.yaml --log-file logs/custom.log

  # Start without file logging (console only)
  python run_bridge.py --config config/bridge.yaml --no-log-file
        """
    )

    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to bridge configuration YAML file'
    )

    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/bridge.log'),
        help='Path to log file (default: logs/bridge.log)'
    )

    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )

    return parser.parse_args()


def main():
    """
    Main entry point.

    Workflow:
    1. Parse CLI arguments
    2. Create BridgeApp
    3. Setup components
    4. Run (blocks until stopped)
    """
    args = parse_args()

    # Determine log file
    log_file = None if args.no_log_file else args.log_file

    # Validate config file exists
    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    # Create and run app
    app = BridgeApp(
        config_path=args.config,
        log_file=log_file
    )

    try:
        app.setup()
        app.run()
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        app.shutdown()
        sys.exit(1)


if __name__ == '__main__':
    main()
