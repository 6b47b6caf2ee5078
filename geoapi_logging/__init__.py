"""
Structured Logging for GeoAPI
=============================

Bounded Context: Observability

JSON-structured logging for the catalog, resolver and query service.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from geoapi_logging import create_logger, LogEvent
    >>> logger = create_logger("service")
    >>> logger.info(
    ...     event=LogEvent.QUERY_RESOLVED,
    ...     message="Point is inside Testland",
    ...     metadata={'country_id': 'TL'}
    ... )
"""

from .events import CATALOG_EVENTS, ERROR_EVENTS, QUERY_EVENTS, LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'CATALOG_EVENTS',
    'ERROR_EVENTS',
    'QUERY_EVENTS',
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
