"""
Z-Wave Broker - Correlation engine for the gateway JSON API.

Bounded Context: Correlation and state tracking

Components:
- Broker: getNodes bootstrap, synchronous writes, value watches
- NodeDirectory: Thread-safe snapshot of nodes by id and name
- ValueWatcherRegistry: Per-value watcher queues with drop-on-full delivery
- BridgeConfig: YAML configuration for run_bridge.py and zwave-cli
"""

from .broker import Broker, ValueUpdate, DEFAULT_TIMEOUT
from .config import BridgeConfig, MQTTConfig, WatchConfig
from .directory import ManagedNode, NodeDirectory, NodeRef
from .watchers import Sink, ValueWatcherRegistry

__all__ = [
    'Broker',
    'ValueUpdate',
    'DEFAULT_TIMEOUT',
    'BridgeConfig',
    'MQTTConfig',
    'WatchConfig',
    'ManagedNode',
    'NodeDirectory',
    'NodeRef',
    'Sink',
    'ValueWatcherRegistry',
]
