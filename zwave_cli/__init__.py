"""
Z-Wave CLI - Command-line interface for the zwavejs2mqtt gateway.

This package provides a CLI for listing nodes, writing values and watching
value changes through the gateway's MQTT API.

Usage:
    zwave-cli nodes
    zwave-cli set kitchen-light targetValue 50
    zwave-cli watch kitchen-light currentValue
"""

__version__ = "1.0.0"
