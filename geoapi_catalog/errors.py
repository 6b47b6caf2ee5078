"""Catalog and storage errors."""


class CatalogError(Exception):
    """Base class for catalog failures."""
    pass


class CatalogEntryNotFoundError(CatalogError, LookupError):
    """Raised when a country identifier is absent from storage or a catalog."""

    def __init__(self, country_id: str):
        self.country_id = country_id
        super().__init__(f"Country not found: {country_id}")


class DuplicateCatalogEntryError(CatalogError):
    """Raised (or reported) when two records share one country identifier."""

    def __init__(self, country_id: str):
        self.country_id = country_id
        super().__init__(f"Duplicate country identifier: {country_id}")
