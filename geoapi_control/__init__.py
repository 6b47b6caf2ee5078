"""
geoapi_control - MQTT transport for the GeoAPI query service

Bounded Context: MQTT-based request/response
Responsibilities:
  - MQTT connection management (Query Plane)
  - Query registration and validation
  - Request parsing and delegation to GeoQueryService

Architecture:
  - QueryRegistry: Explicit registration pattern
  - MQTTQueryPlane: MQTT client + query reception + replies
  - register_queries: wires GeoQueryService operations onto a registry

Design Philosophy:
  - Explicit registration (fail-fast, no runtime surprises)
  - Clear error replies (lists available queries on unknown query)
"""

from .registry import QueryRegistry, QueryNotAvailableError
from .handlers import InvalidRequestError, parse_country, parse_point, register_queries
from .plane import MQTTQueryPlane

__all__ = [
    "QueryRegistry",
    "QueryNotAvailableError",
    "InvalidRequestError",
    "parse_country",
    "parse_point",
    "register_queries",
    "MQTTQueryPlane",
]
