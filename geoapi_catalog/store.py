"""
Country Storage Module
======================

Storage collaborators that hand raw country records to the catalog loader.

A store only moves data: records carry their coordinates exactly as stored
(geo-point objects, key/value mappings, [lon, lat] pairs). Normalization
happens in the polygon builder.

Stores:
- InMemoryCountryStore: ordered in-process records (tests, embedding)
- YamlCountryStore: YAML/JSON document on disk, re-read when it changes

Document layout (YamlCountryStore):

    countries:
      - id: "TL"
        name: "Testland"
        geometry:
          coordinates:
            - {longitude: 0, latitude: 0}
            - !geopoint {latitude: 10, longitude: 0}
            - [10, 10]
            - [10, 0]
"""

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple

import yaml

from geoapi_catalog.errors import CatalogEntryNotFoundError


@dataclass(frozen=True)
class GeoPoint:
    """
    Structured geo-point as returned by document stores.

    Exposes ``longitude``/``latitude`` attributes, which is all the builder
    relies on.
    """

    latitude: float
    longitude: float


@dataclass(frozen=True)
class CountryRecord:
    """
    Raw country record from storage.

    Attributes:
        country_id: Document identifier (short code)
        name: Display name
        coordinates: Raw outer boundary, heterogeneous element shapes
        holes: Raw hole rings (usually empty)
        data: Full stored document

    Geometry values are kept exactly as stored, even when they are not
    lists; the polygon builder rejects them per record.
    """

    country_id: str
    name: str
    coordinates: Any
    holes: Any = ()
    data: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "CountryRecord":
        """
        Build a record from a stored document.

        Raises:
            ValueError: If the document is not a mapping or has no identifier
        """
        if not isinstance(document, dict):
            raise ValueError(f"Country document must be a mapping, got {type(document).__name__}")

        country_id = document.get("id")
        if not country_id:
            raise ValueError(f"Country document without 'id': {document!r}")
        country_id = str(country_id)

        geometry = document.get("geometry")
        if isinstance(geometry, dict):
            coordinates, holes = geometry.get("coordinates"), geometry.get("holes")
        else:
            coordinates, holes = geometry, None

        return cls(
            country_id=country_id,
            name=str(document.get("name") or country_id),
            coordinates=coordinates if coordinates is not None else [],
            holes=holes if holes is not None else (),
            data=document,
        )


class CountryStore(Protocol):
    """Protocol for country storage collaborators (interface)."""

    def get_country(self, country_id: str) -> CountryRecord:
        """
        Fetch one record.

        Raises:
            CatalogEntryNotFoundError: If country_id is unknown
        """
        ...

    def list_countries(self) -> List[CountryRecord]:
        """All records, in stable storage order."""
        ...

    def snapshot_version(self) -> str:
        """Opaque token that changes whenever stored data changes."""
        ...

    def rejected_documents(self) -> List[Tuple[str, Exception]]:
        """(key, error) for stored documents that could not become records."""
        ...


class InMemoryCountryStore:
    """
    Ordered in-process store.

    Thread Safety:
      - put() acquires a lock and bumps the version
      - Reads copy the record list under the lock (snapshot)
    """

    def __init__(self, records: Iterable[CountryRecord] = ()):
        self._records: Dict[str, CountryRecord] = {}
        self._version = 0
        self._lock = threading.Lock()
        for record in records:
            self.put(record)

    def put(self, record: CountryRecord) -> None:
        """Insert or replace a record. Replacing keeps its original position."""
        with self._lock:
            self._records[record.country_id] = record
            self._version += 1

    def get_country(self, country_id: str) -> CountryRecord:
        with self._lock:
            try:
                return self._records[country_id]
            except KeyError:
                raise CatalogEntryNotFoundError(country_id) from None

    def list_countries(self) -> List[CountryRecord]:
        with self._lock:
            return list(self._records.values())

    def snapshot_version(self) -> str:
        with self._lock:
            return str(self._version)

    def rejected_documents(self) -> List[Tuple[str, Exception]]:
        return []


class _CountryLoader(yaml.SafeLoader):
    """SafeLoader that understands the ``!geopoint`` tag."""


def _construct_geopoint(loader: yaml.SafeLoader, node: yaml.Node) -> Any:
    # Malformed points come back as plain values; the builder rejects them
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    if isinstance(node, yaml.SequenceNode):
        values = loader.construct_sequence(node)
        if len(values) != 2:
            return values
        latitude, longitude = values
    else:
        values = loader.construct_mapping(node)
        latitude, longitude = values.get("latitude"), values.get("longitude")
    return GeoPoint(latitude=latitude, longitude=longitude)


_CountryLoader.add_constructor("!geopoint", _construct_geopoint)


class YamlCountryStore:
    """
    Country store backed by a YAML (or JSON) document.

    The document is parsed lazily and re-read whenever the file's
    modification time or size changes, so snapshot_version() tracks edits.

    A country document that is not a mapping or has no ``id`` is skipped and
    kept in rejected_documents() under its position (``countries[3]``);
    the rest of the file still loads.

    Example:
        store = YamlCountryStore(Path("data/countries.yaml"))
        records = store.list_countries()
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._loaded_version: Optional[str] = None
        self._records: List[CountryRecord] = []
        self._rejected: List[Tuple[str, Exception]] = []

    def _file_version(self) -> str:
        try:
            stat = os.stat(self.path)
        except FileNotFoundError:
            raise FileNotFoundError(f"Countries file not found: {self.path}") from None
        return f"{stat.st_mtime_ns}-{stat.st_size}"

    def _parse(self) -> Tuple[List[CountryRecord], List[Tuple[str, Exception]]]:
        with open(self.path, encoding="utf-8") as f:
            try:
                data = yaml.load(f, Loader=_CountryLoader)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {self.path}: {e}") from e

        if data is None:
            return [], []
        if not isinstance(data, dict) or not isinstance(data.get("countries", []), list):
            raise ValueError(f"{self.path} must contain a 'countries' list")

        records: List[CountryRecord] = []
        rejected: List[Tuple[str, Exception]] = []
        for index, document in enumerate(data.get("countries") or []):
            try:
                records.append(CountryRecord.from_document(document))
            except ValueError as e:
                rejected.append((f"countries[{index}]", e))
        return records, rejected

    def _refresh(self) -> List[CountryRecord]:
        with self._lock:
            version = self._file_version()
            if version != self._loaded_version:
                self._records, self._rejected = self._parse()
                self._loaded_version = version
            return list(self._records)

    def get_country(self, country_id: str) -> CountryRecord:
        for record in self._refresh():
            if record.country_id == country_id:
                return record
        raise CatalogEntryNotFoundError(country_id)

    def list_countries(self) -> List[CountryRecord]:
        return self._refresh()

    def snapshot_version(self) -> str:
        return self._file_version()

    def rejected_documents(self) -> List[Tuple[str, Exception]]:
        self._refresh()
        with self._lock:
            return list(self._rejected)

