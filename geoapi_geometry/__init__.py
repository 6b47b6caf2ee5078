"""
Geometry Layer
==============

Bounded Context: Planar country-boundary geometry and point containment.

Responsibilities:
- Value types (Point, Coordinate, Ring, Polygon, BoundingBox)
- Normalization of raw storage coordinates into polygons
- Three-valued point-in-polygon test
- NO storage, NO catalog iteration, NO transport

Design Philosophy:
- Pure functions where possible
- Immutable data structures
- Fail-fast validation with typed errors
- Zero side effects

Usage:

    from geoapi_geometry import PolygonBuilder, ContainmentTester, Point

    polygon = PolygonBuilder.build([[0, 0], [0, 10], [10, 10], [10, 0]])
    ContainmentTester().contains(polygon, Point(5, 5))   # Containment.INSIDE
"""

from geoapi_geometry.primitives import BoundingBox, Coordinate, Point, Polygon, Ring
from geoapi_geometry.builder import PolygonBuilder, normalize_coordinate
from geoapi_geometry.containment import (
    DEFAULT_EPSILON,
    Containment,
    ContainmentTester,
)
from geoapi_geometry.errors import (
    BuildError,
    EmptyInputError,
    GeometryError,
    MalformedRingError,
    UnsupportedCoordinateFormatError,
)

__all__ = [
    # Primitives
    "BoundingBox",
    "Coordinate",
    "Point",
    "Polygon",
    "Ring",
    # Builder
    "PolygonBuilder",
    "normalize_coordinate",
    # Containment
    "DEFAULT_EPSILON",
    "Containment",
    "ContainmentTester",
    # Errors
    "BuildError",
    "EmptyInputError",
    "GeometryError",
    "MalformedRingError",
    "UnsupportedCoordinateFormatError",
]
