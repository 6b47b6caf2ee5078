"""
Structured JSON Logger
======================

Bounded Context: Observability Infrastructure

One JSON object per log record, so catalog rejections and query outcomes can
be filtered by event and country without parsing free text.

Design:
- Thin layer over Python's logging module (thread-safe handlers)
- Events are LogEvent members, never free strings
- Bound context (service_id, ...) merged into every entry's metadata
- Exceptions summarized as {type, message}; no tracebacks in the JSON line

Output:
    {
        "timestamp": "2025-10-24T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "service",
        "event": "query.resolved",
        "message": "Point is inside Testland",
        "metadata": {"service_id": "geo_01", "country_id": "TL"}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger for one component.

    Attributes:
        component: Component name (e.g., "service", "cli")
        context: Metadata added to every entry
        logger: Underlying Python logger ("geoapi.<component>" by default)

    Example:
        >>> logger = StructuredLogger("service").bind(service_id="geo_01")
        >>> logger.info(
        ...     LogEvent.CATALOG_LOADED,
        ...     "Catalog loaded with 250 countries",
        ...     metadata={'entries': 250},
        ... )
    """

    def __init__(
        self,
        component: str,
        level: Optional[int] = None,
        logger_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.component = component
        self.context = dict(context or {})
        self.logger_name = logger_name or f"geoapi.{component}"
        self.logger = logging.getLogger(self.logger_name)

        # No level: keep what an earlier instance set, INFO for a fresh logger
        if level is not None:
            self.logger.setLevel(level)
        elif self.logger.level == logging.NOTSET:
            self.logger.setLevel(logging.INFO)

        # Own JSON handler; the server's root handlers use a text format
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def bind(self, **context: Any) -> "StructuredLogger":
        """Child logger sharing the same handlers, with extra context."""
        return StructuredLogger(
            self.component,
            logger_name=self.logger_name,
            context={**self.context, **context},
        )

    def log(
        self,
        level: int,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None,
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

        merged = {**self.context, **(metadata or {})}
        if merged:
            entry['metadata'] = merged

        if exc_info is not None:
            entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info),
            }

        # default=str: metadata may carry paths or other non-JSON values
        self.logger.log(level, json.dumps(entry, default=str))

    def debug(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.log(logging.DEBUG, event, message, metadata)

    def info(self, event: LogEvent, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        self.log(logging.INFO, event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None,
    ) -> None:
        """
        Example:
            >>> logger.warning(
            ...     LogEvent.CATALOG_ENTRY_REJECTED,
            ...     "Skipping country XX",
            ...     metadata={'country_id': 'XX'},
            ...     exc_info=error,
            ... )
        """
        self.log(logging.WARNING, event, message, metadata, exc_info)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None,
    ) -> None:
        self.log(logging.ERROR, event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """Emits the record message as-is (already a JSON document)."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(component: str, level: Optional[int] = None) -> StructuredLogger:
    """
    Factory for a component logger.

    Loggers are shared per component name. Passing a level sets it for every
    holder; leaving it out keeps the current level (INFO the first time).

    Example:
        >>> logger = create_logger("service", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
