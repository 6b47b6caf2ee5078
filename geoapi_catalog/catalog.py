"""
Catalog Module
==============

Ordered, immutable collection of named country polygons.

Design:
- Frozen entries (CatalogEntry) owning their Polygon
- Source insertion order is the iteration order and is never re-sorted;
  it is the tie-break rule for first-match resolution
- Identifier uniqueness enforced at construction
- Safe to share across threads (no mutation after construction)
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, List, Optional, Tuple

from geoapi_catalog.errors import CatalogEntryNotFoundError, DuplicateCatalogEntryError
from geoapi_geometry import Polygon


@dataclass(frozen=True)
class CatalogEntry:
    """
    One country: identifier (primary key), display name and boundary polygon.

    Attributes:
        country_id: Short code, e.g. "FR"
        name: Display name, e.g. "France"
        polygon: Owned, immutable boundary
    """

    country_id: str
    name: str
    polygon: Polygon

    def __post_init__(self):
        if not self.country_id:
            raise ValueError("country_id cannot be empty")


class Catalog:
    """
    Immutable ordered sequence of CatalogEntry.

    Attributes:
        version: Storage snapshot version the catalog was built from

    Example:
        catalog = Catalog([entry_a, entry_b], version="3")
        for entry in catalog:
            ...
        catalog.get("FR")
    """

    def __init__(self, entries: Iterable[CatalogEntry] = (), version: Optional[str] = None):
        """
        Args:
            entries: Entries in iteration order
            version: Optional storage snapshot version

        Raises:
            DuplicateCatalogEntryError: If two entries share a country_id
        """
        entries = tuple(entries)
        index = {}
        for position, entry in enumerate(entries):
            if entry.country_id in index:
                raise DuplicateCatalogEntryError(entry.country_id)
            index[entry.country_id] = position

        self._entries: Tuple[CatalogEntry, ...] = entries
        self._index = MappingProxyType(index)
        self.version = version

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, country_id: object) -> bool:
        return country_id in self._index

    def __repr__(self) -> str:
        return f"Catalog(entries={len(self)}, version={self.version!r})"

    @property
    def entries(self) -> Tuple[CatalogEntry, ...]:
        return self._entries

    def get(self, country_id: str) -> CatalogEntry:
        """
        Look up an entry by identifier.

        Raises:
            CatalogEntryNotFoundError: If country_id is not in the catalog
        """
        try:
            return self._entries[self._index[country_id]]
        except KeyError:
            raise CatalogEntryNotFoundError(country_id) from None

    def restricted_to(self, country_id: str) -> "Catalog":
        """One-entry catalog for "is the point in this country?" queries."""
        return Catalog([self.get(country_id)], version=self.version)

    def names(self) -> List[str]:
        """Display names in catalog order."""
        return [entry.name for entry in self._entries]
