"""
Catalog Loader Module
=====================

Builds a Catalog snapshot from raw storage records.

Design:
- Acquire raw records, build polygons, hand off an immutable Catalog
- Per-entry failures never abort the load: the offending record is
  skipped and reported to the error sink
- Documents the store could not turn into records are reported the same
  way, ahead of the record failures
- Duplicate identifiers: first record wins, later ones are reported as
  conflicts (keeps first-match order deterministic)
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from geoapi_catalog.catalog import Catalog, CatalogEntry
from geoapi_catalog.errors import DuplicateCatalogEntryError
from geoapi_catalog.store import CountryRecord, CountryStore
from geoapi_geometry import BuildError, PolygonBuilder

ErrorSink = Callable[[str, Exception], None]
"""
Collaborator-supplied callback receiving (country_id, error).

Documents skipped by the store arrive under their position key
(``countries[3]``) instead of a country id.
"""


@dataclass(frozen=True)
class LoadReport:
    """
    Outcome of one catalog load.

    Attributes:
        catalog: Entries that built successfully, in storage order
        rejected: (country_id, error) for every skipped record
    """

    catalog: Catalog
    rejected: Tuple[Tuple[str, Exception], ...] = field(default_factory=tuple)

    @property
    def rejected_ids(self) -> List[str]:
        return [country_id for country_id, _ in self.rejected]


class CatalogLoader:
    """
    Stateless loader from CountryRecord sequences to Catalog.

    Usage:
        report = CatalogLoader.load(store.list_countries(), version="7")
        catalog = report.catalog
    """

    @staticmethod
    def build_entry(record: CountryRecord) -> CatalogEntry:
        """
        Build one entry.

        Raises:
            BuildError: If the record's coordinates do not form a polygon
        """
        try:
            polygon = PolygonBuilder.build(record.coordinates, holes=record.holes)
        except BuildError as e:
            e.attach_country(record.country_id)
            raise
        return CatalogEntry(country_id=record.country_id, name=record.name, polygon=polygon)

    @staticmethod
    def load(
        records: Iterable[CountryRecord],
        version: Optional[str] = None,
        error_sink: Optional[ErrorSink] = None,
        rejected_documents: Iterable[Tuple[str, Exception]] = (),
    ) -> LoadReport:
        """
        Build a catalog, skipping records that fail.

        Args:
            records: Raw records in storage order
            version: Storage snapshot version to stamp on the catalog
            error_sink: Optional callback for every skipped record
            rejected_documents: (key, error) the store already skipped

        Returns:
            LoadReport with the catalog and the rejected records
        """
        entries: List[CatalogEntry] = []
        seen = set()
        rejected: List[Tuple[str, Exception]] = []

        def reject(country_id: str, error: Exception) -> None:
            rejected.append((country_id, error))
            if error_sink is not None:
                error_sink(country_id, error)

        for key, error in rejected_documents:
            reject(key, error)

        for record in records:
            if record.country_id in seen:
                reject(record.country_id, DuplicateCatalogEntryError(record.country_id))
                continue
            try:
                entry = CatalogLoader.build_entry(record)
            except BuildError as e:
                reject(record.country_id, e)
                continue
            seen.add(record.country_id)
            entries.append(entry)

        return LoadReport(catalog=Catalog(entries, version=version), rejected=tuple(rejected))

    @staticmethod
    def load_from_store(store: CountryStore, error_sink: Optional[ErrorSink] = None) -> LoadReport:
        """Full-catalog load from a storage collaborator."""
        version = store.snapshot_version()
        return CatalogLoader.load(
            store.list_countries(),
            version=version,
            error_sink=error_sink,
            rejected_documents=store.rejected_documents(),
        )
