"""
Catalog Layer
=============

Bounded Context: Named country polygons and point resolution.

Architecture:

    geoapi_catalog/
    ├── store.py       # Storage collaborators (raw records)
    ├── loader.py      # Records -> Catalog snapshot (per-entry error reporting)
    ├── catalog.py     # Catalog, CatalogEntry (immutable, ordered)
    └── resolver.py    # resolve_first / resolve_all

Usage:

    from geoapi_catalog import CatalogLoader, CatalogResolver, YamlCountryStore

    report = CatalogLoader.load_from_store(YamlCountryStore("data/countries.yaml"))
    entry = CatalogResolver().resolve_first(report.catalog, point)
"""

from geoapi_catalog.catalog import Catalog, CatalogEntry
from geoapi_catalog.errors import (
    CatalogEntryNotFoundError,
    CatalogError,
    DuplicateCatalogEntryError,
)
from geoapi_catalog.loader import CatalogLoader, ErrorSink, LoadReport
from geoapi_catalog.resolver import CatalogResolver
from geoapi_catalog.store import (
    CountryRecord,
    CountryStore,
    GeoPoint,
    InMemoryCountryStore,
    YamlCountryStore,
)

__all__ = [
    # Catalog
    "Catalog",
    "CatalogEntry",
    "CatalogLoader",
    "CatalogResolver",
    "ErrorSink",
    "LoadReport",
    # Storage
    "CountryRecord",
    "CountryStore",
    "GeoPoint",
    "InMemoryCountryStore",
    "YamlCountryStore",
    # Errors
    "CatalogEntryNotFoundError",
    "CatalogError",
    "DuplicateCatalogEntryError",
]
