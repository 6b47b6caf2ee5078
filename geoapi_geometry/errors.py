"""
Geometry Errors
===============

Failures raised while turning raw storage coordinates into polygons.

All of them are per-entry data-quality errors: they are tied to one
catalog entry and never abort a catalog load or a query.
"""

from typing import Optional


class GeometryError(Exception):
    """Base class for geometry failures."""

    def __init__(self, message: str, country_id: Optional[str] = None):
        self.country_id = country_id
        if country_id:
            message = f"{message} (country: {country_id})"
        super().__init__(message)

    def attach_country(self, country_id: str) -> None:
        """Tag an error raised below the catalog with the entry it belongs to."""
        if self.country_id is None:
            self.country_id = country_id
            self.args = (f"{self.args[0]} (country: {country_id})",)


class BuildError(GeometryError):
    """Raised when a polygon cannot be built from raw coordinates."""
    pass


class EmptyInputError(BuildError):
    """Raised when no coordinates were supplied for a polygon."""
    pass


class UnsupportedCoordinateFormatError(BuildError):
    """Raised when a raw element cannot be normalized to (longitude, latitude)."""
    pass


class MalformedRingError(BuildError):
    """Raised when fewer than 3 distinct coordinates remain for a ring."""
    pass
