"""
geoapi_service - Query facade for the GeoAPI country locator

This package provides the service that answers "which country contains this
point?" queries against a country store.

Architecture:
- GeoQueryService: facade (health, find_containing, list_country_names and
  the request-style queries)
- ServiceConfig: YAML configuration
- GeoServerApp: process entry point (config, logging, MQTT transport, signals)

Threading Model:
- paho-mqtt network thread runs query handlers
- Catalog snapshots are immutable; only the snapshot cache takes a lock
"""

from geoapi_service.config import CatalogConfig, GeometryConfig, MQTTConfig, ServiceConfig
from geoapi_service.service import (
    NO_MATCH_MESSAGE,
    CountryMatch,
    GeoQueryService,
    QueryResult,
    QueryStatus,
    to_jsonable,
)

__all__ = [
    "CatalogConfig",
    "GeometryConfig",
    "MQTTConfig",
    "ServiceConfig",
    "NO_MATCH_MESSAGE",
    "CountryMatch",
    "GeoQueryService",
    "QueryResult",
    "QueryStatus",
    "to_jsonable",
]
