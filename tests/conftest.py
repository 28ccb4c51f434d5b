"""Shared fixtures for broker tests."""

import logging
from typing import Any, Dict

import pytest

from tests.helpers import RecordingPublisher, encode, load_testdata
from zwave_broker import Broker
from zwave_mqtt import create_logger


@pytest.fixture
def nodes_response() -> Dict[str, Any]:
    return load_testdata("getNodes.json")


@pytest.fixture
def quiet_logger():
    return create_logger("test", level=logging.CRITICAL)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def broker(publisher, quiet_logger) -> Broker:
    return Broker(publisher, logger=quiet_logger, default_timeout=1.0)


@pytest.fixture
def loaded_broker(broker, nodes_response) -> Broker:
    """Broker with the getNodes fixture installed."""
    broker.handle_get_nodes_response(encode(nodes_response))
    return broker
