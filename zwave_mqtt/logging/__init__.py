"""
JSON logging shared by the client, broker and bridge runner.

    >>> from zwave_mqtt.logging import LogEvent, create_logger
    >>> log = create_logger("broker", gateway="ZWAVE_GATEWAY")
    >>> log.info(LogEvent.WRITE_SENT, "Write sent", {'value_id': '38-0-targetValue'})
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
