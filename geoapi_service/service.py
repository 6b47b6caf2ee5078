"""
Geo Query Service - Facade consumed by the transport layer.

This module provides the GeoQueryService class, the single entry point for
"which country contains this point?" queries. It fetches records from the
storage collaborator, builds (or reuses) a Catalog snapshot, and delegates
to the CatalogResolver.

Architecture:
- Storage collaborator (CountryStore): raw records
- CatalogLoader: records -> immutable Catalog (per-entry error reporting)
- CatalogResolver: resolve_first / resolve_all
- Snapshot cache: Catalog rebuilt only when store.snapshot_version() changes

Thread Safety:
- Catalog snapshots are immutable and shared between concurrent queries
- The snapshot cache is the only mutable state, protected by _snapshot_lock
"""

import threading
from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from geoapi_catalog import (
    Catalog,
    CatalogEntry,
    CatalogEntryNotFoundError,
    CatalogLoader,
    CatalogResolver,
    CountryStore,
    DuplicateCatalogEntryError,
)
from geoapi_geometry import BuildError, ContainmentTester, Point
from geoapi_logging import LogEvent, StructuredLogger, create_logger
from geoapi_service.config import GeometryConfig


NO_MATCH_MESSAGE = "The point is not in any known country."


class QueryStatus(str, Enum):
    """Outcome of a facade query."""
    FOUND = "found"                        # find_country matched
    NOT_FOUND = "not_found"                # find_country matched nothing
    INSIDE = "inside"                      # check_country: point inside
    OUTSIDE = "outside"                    # check_country: point outside
    UNKNOWN_COUNTRY = "unknown_country"    # identifier absent from storage
    INVALID_GEOMETRY = "invalid_geometry"  # stored coordinates unusable


@dataclass(frozen=True)
class CountryMatch:
    """Identifier and display name of a matched country."""
    country_id: str
    name: str

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "CountryMatch":
        return cls(country_id=entry.country_id, name=entry.name)


@dataclass(frozen=True)
class QueryResult:
    """
    Structured result of a facade query.

    Attributes:
        status: Outcome
        message: Human-readable sentence
        matches: Matched countries (first match first)
        data: Raw stored document (get_country only)
    """

    status: QueryStatus
    message: str
    matches: Tuple[CountryMatch, ...] = ()
    data: Optional[Dict[str, Any]] = None

    @property
    def match(self) -> Optional[CountryMatch]:
        return self.matches[0] if self.matches else None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result = {
            "status": self.status.value,
            "message": self.message,
            "matches": [asdict(m) for m in self.matches],
        }
        if self.data is not None:
            result["data"] = to_jsonable(self.data)
        return result


def to_jsonable(value: Any) -> Any:
    """Recursively convert stored documents (including geo-points) to JSON types."""
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    return value


class GeoQueryService:
    """
    Query facade over a country store.

    Usage:
        service = GeoQueryService(YamlCountryStore(path))
        result = service.find_country(latitude=48.85, longitude=2.35)
        result.message  # "The point is inside France."
    """

    def __init__(
        self,
        store: CountryStore,
        geometry: Optional[GeometryConfig] = None,
        cache_snapshots: bool = True,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            store: Storage collaborator
            geometry: Containment policy (defaults if omitted)
            cache_snapshots: Reuse the Catalog while the store version is unchanged
            logger: Structured logger (component "service" if omitted)
        """
        self.store = store
        self.geometry = geometry or GeometryConfig()
        self.cache_snapshots = cache_snapshots
        self.logger = logger or create_logger("service")

        self.resolver = CatalogResolver(
            tester=ContainmentTester(epsilon=self.geometry.epsilon),
            include_boundary=self.geometry.include_boundary,
            use_bbox_prefilter=self.geometry.bbox_prefilter,
            error_sink=self._on_resolver_error,
        )

        self._snapshot: Optional[Catalog] = None
        self._snapshot_lock = threading.Lock()

    # ===== Core operations =====

    def health(self) -> str:
        """Liveness signal."""
        return "ok"

    def find_containing(self, point: Point, catalog: Catalog) -> Optional[CatalogEntry]:
        """First entry of catalog containing point (catalog order breaks ties)."""
        return self.resolver.resolve_first(catalog, point)

    def list_country_names(self, catalog: Catalog) -> List[str]:
        """Display names in catalog order. No geometry involved."""
        return catalog.names()

    # ===== Catalog snapshots =====

    def current_catalog(self) -> Catalog:
        """
        Catalog for the store's current snapshot.

        With caching enabled the Catalog is rebuilt only when
        store.snapshot_version() changes; otherwise every call reloads.
        """
        version = self.store.snapshot_version()

        with self._snapshot_lock:
            if (
                self.cache_snapshots
                and self._snapshot is not None
                and self._snapshot.version == version
            ):
                self.logger.debug(
                    event=LogEvent.CATALOG_CACHE_HIT,
                    message="Reusing catalog snapshot",
                    metadata={'version': version},
                )
                return self._snapshot

            try:
                records = self.store.list_countries()
                rejected_documents = self.store.rejected_documents()
            except (OSError, ValueError) as e:
                self.logger.error(
                    event=LogEvent.STORAGE_ERROR,
                    message="Cannot read country records",
                    metadata={'version': version},
                    exc_info=e,
                )
                raise

            report = CatalogLoader.load(
                records,
                version=version,
                error_sink=self._on_load_error,
                rejected_documents=rejected_documents,
            )
            self.logger.info(
                event=LogEvent.CATALOG_LOADED,
                message=f"Catalog loaded with {len(report.catalog)} countries",
                metadata={
                    'version': version,
                    'entries': len(report.catalog),
                    'rejected': report.rejected_ids,
                },
            )
            if self.cache_snapshots:
                self._snapshot = report.catalog
            return report.catalog

    # ===== Request-style queries =====

    def find_country(self, latitude: float, longitude: float) -> QueryResult:
        """First country containing the point, across the whole catalog."""
        point = Point(longitude=longitude, latitude=latitude)
        self._log_received("find_country", point)

        entry = self.find_containing(point, self.current_catalog())
        if entry is None:
            return self._no_match(point)

        self.logger.info(
            event=LogEvent.QUERY_RESOLVED,
            message=f"Point is inside {entry.name}",
            metadata={'country_id': entry.country_id, **self._point_metadata(point)},
        )
        return QueryResult(
            status=QueryStatus.FOUND,
            message=f"The point is inside {entry.name}.",
            matches=(CountryMatch.from_entry(entry),),
        )

    def find_all_countries(self, latitude: float, longitude: float) -> QueryResult:
        """Every country containing the point, in catalog order."""
        point = Point(longitude=longitude, latitude=latitude)
        self._log_received("find_all_countries", point)

        entries = self.resolver.resolve_all(self.current_catalog(), point)
        if not entries:
            return self._no_match(point)

        names = ", ".join(entry.name for entry in entries)
        self.logger.info(
            event=LogEvent.QUERY_RESOLVED,
            message=f"Point is inside {names}",
            metadata={
                'country_ids': [entry.country_id for entry in entries],
                **self._point_metadata(point),
            },
        )
        return QueryResult(
            status=QueryStatus.FOUND,
            message=f"The point is inside {names}.",
            matches=tuple(CountryMatch.from_entry(entry) for entry in entries),
        )

    def check_country(self, country_id: str, latitude: float, longitude: float) -> QueryResult:
        """
        Is the point inside one named country?

        Distinguishes an unknown identifier (UNKNOWN_COUNTRY) and unusable
        stored geometry (INVALID_GEOMETRY) from a geometric miss (OUTSIDE).

        Reads the one record straight from the store instead of restricting
        the cached snapshot (Catalog.restricted_to): a snapshot drops records
        whose geometry failed to build, so it cannot tell INVALID_GEOMETRY
        apart from UNKNOWN_COUNTRY. Snapshot-based batch checks should use
        restricted_to with find_containing.
        """
        point = Point(longitude=longitude, latitude=latitude)
        self._log_received("check_country", point, country_id=country_id)

        try:
            record = self.store.get_country(country_id)
        except CatalogEntryNotFoundError as e:
            return self._unknown_country(e, f"Country not found in database: {country_id}")

        try:
            entry = CatalogLoader.build_entry(record)
        except BuildError as e:
            self.logger.warning(
                event=LogEvent.CATALOG_ENTRY_REJECTED,
                message=f"Cannot build polygon for {country_id}",
                metadata={'country_id': country_id},
                exc_info=e,
            )
            return QueryResult(status=QueryStatus.INVALID_GEOMETRY, message=f"Error: {e}")

        match = self.find_containing(point, Catalog([entry], version=self.store.snapshot_version()))
        if match is None:
            return QueryResult(
                status=QueryStatus.OUTSIDE,
                message=f"The point is outside {entry.name}.",
            )
        return QueryResult(
            status=QueryStatus.INSIDE,
            message=f"The point is inside {entry.name}.",
            matches=(CountryMatch.from_entry(match),),
        )

    def get_country(self, country_id: str) -> QueryResult:
        """Stored document for one country."""
        try:
            record = self.store.get_country(country_id)
        except CatalogEntryNotFoundError as e:
            return self._unknown_country(e, f"Country with code {country_id} not found.")

        return QueryResult(
            status=QueryStatus.FOUND,
            message=record.name,
            matches=(CountryMatch(country_id=record.country_id, name=record.name),),
            data=to_jsonable(record.data),
        )

    def list_countries(self) -> List[str]:
        """Display names of every country in the current catalog."""
        return self.list_country_names(self.current_catalog())

    # ===== Helpers =====

    @staticmethod
    def _point_metadata(point: Point) -> Dict[str, float]:
        return {'latitude': point.latitude, 'longitude': point.longitude}

    def _log_received(self, query: str, point: Point, **extra: Any) -> None:
        self.logger.info(
            event=LogEvent.QUERY_RECEIVED,
            message=f"Received {query} query",
            metadata={'query': query, **self._point_metadata(point), **extra},
        )

    def _no_match(self, point: Point) -> QueryResult:
        self.logger.info(
            event=LogEvent.QUERY_NO_MATCH,
            message="Point is not in any known country",
            metadata=self._point_metadata(point),
        )
        return QueryResult(status=QueryStatus.NOT_FOUND, message=NO_MATCH_MESSAGE)

    def _unknown_country(self, error: CatalogEntryNotFoundError, message: str) -> QueryResult:
        self.logger.warning(
            event=LogEvent.UNKNOWN_COUNTRY_ERROR,
            message=message,
            metadata={'country_id': error.country_id},
        )
        return QueryResult(status=QueryStatus.UNKNOWN_COUNTRY, message=message)

    def _on_load_error(self, country_id: str, error: Exception) -> None:
        event = (
            LogEvent.CATALOG_CONFLICT
            if isinstance(error, DuplicateCatalogEntryError)
            else LogEvent.CATALOG_ENTRY_REJECTED
        )
        self.logger.warning(
            event=event,
            message=f"Skipping country {country_id}: {error}",
            metadata={'country_id': country_id},
            exc_info=error,
        )

    def _on_resolver_error(self, country_id: str, error: Exception) -> None:
        self.logger.error(
            event=LogEvent.RESOLVER_ENTRY_FAILED,
            message=f"Containment test failed for {country_id}",
            metadata={'country_id': country_id},
            exc_info=error,
        )

