"""
Structured JSON Logger
======================

Bounded Context: Observability Infrastructure

One JSON object per log line, so broker traffic can be filtered by event
name, node or value id in a log aggregator.

Entry layout:
    timestamp   ISO-8601, UTC
    level       DEBUG / INFO / WARNING / ERROR
    component   Logger owner ("broker", "mqtt_client", ...)
    event       LogEvent value ("write.acknowledged")
    message     Human-readable text
    context     Fields bound with bind() (gateway, client id), if any
    metadata    Per-call fields (node_id, value_id, topic), if any
    exception   {"type", "message"} when exc_info is given

Example:
    >>> logger = create_logger("broker").bind(gateway="ZWAVE_GATEWAY-main")
    >>> logger.info(
    ...     event=LogEvent.NODES_LOADED,
    ...     message="Loaded 12 nodes",
    ...     metadata={'node_count': 12}
    ... )
    {"timestamp": "2025-10-24T15:30:45.123456+00:00", "level": "INFO",
     "component": "broker", "event": "nodes.loaded", "message": "Loaded 12 nodes",
     "context": {"gateway": "ZWAVE_GATEWAY-main"}, "metadata": {"node_count": 12}}
"""

import copy
import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from .events import LogEvent


class StructuredLogger:
    """
    JSON logger on top of the standard logging module.

    Attributes:
        component: Component name written into every entry
        context: Fields written into every entry (see bind())
        logger: Underlying logging.Logger ("zwave_mqtt.<component>")

    Thread Safety:
        Thread-safe via Python's logging module. bind() returns a copy, the
        original is never mutated.
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        self.component = component
        self.context: Dict[str, Any] = dict(context or {})
        self.logger_name = logger_name or f"zwave_mqtt.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        # One JSON handler per named logger
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)

    def bind(self, **context: Any) -> 'StructuredLogger':
        """
        Logger sharing this one's output, with extra context fields.

        Example:
            >>> client_logger = logger.bind(client_id="zwave_bridge")
        """
        bound = copy.copy(self)
        bound.context = {**self.context, **context}
        return bound

    def _log(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return

        entry: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': logging.getLevelName(level),
            'component': self.component,
            'event': event.value,
            'message': message,
        }
        if self.context:
            entry['context'] = self.context
        if metadata:
            entry['metadata'] = metadata
        if exc_info is not None:
            entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info),
            }

        # Tracebacks only for errors; timedeltas and ValueIDs go through str()
        self.logger.log(
            level,
            json.dumps(entry, default=str),
            exc_info=exc_info if level >= logging.ERROR else None
        )

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """exc_info is summarised in the entry, without a traceback."""
        self._log(logging.WARNING, event, message, metadata, exc_info)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Log an error; exc_info also attaches the traceback.

        Example:
            >>> try:
            ...     handler(payload)
            ... except BrokerError as e:
            ...     logger.error(
            ...         event=LogEvent.HANDLER_ERROR,
            ...         message="Handler failed",
            ...         exc_info=e,
            ...         metadata={'topic': topic}
            ...     )
        """
        self._log(logging.ERROR, event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        """Change the level of the underlying logger (shared by bound copies)."""
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """Passes StructuredLogger's JSON message through unchanged."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: int = logging.INFO,
    **context: Any
) -> StructuredLogger:
    """
    Create a StructuredLogger.

    Example:
        >>> logger = create_logger("broker", level=logging.DEBUG, gateway="ZWAVE_GATEWAY")
    """
    return StructuredLogger(component=component, level=level, context=context)
