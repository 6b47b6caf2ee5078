"""
Polygon Builder Module
======================

Turns raw storage coordinates into validated, closed polygons.

Design:
- One normalization step maps every supported raw shape to a Coordinate
- Stateless (all static methods, no shared geometry factory)
- Fail-fast with typed errors (EmptyInputError, UnsupportedCoordinateFormatError,
  MalformedRingError)

Supported raw shapes:
- Coordinate / Point instances
- Geo-point objects exposing numeric ``longitude`` and ``latitude`` attributes
  (document-store GeoPoint values)
- Mappings with numeric ``longitude`` and ``latitude`` keys
- ``[longitude, latitude]`` pairs (GeoJSON positions)
"""

import math
from collections.abc import Mapping, Sequence as SequenceABC
from numbers import Real
from typing import Any, Optional, Sequence

from geoapi_geometry.errors import (
    EmptyInputError,
    MalformedRingError,
    UnsupportedCoordinateFormatError,
)
from geoapi_geometry.primitives import Coordinate, Point, Polygon, Ring


def _require_sequence(raw: Any, what: str) -> None:
    # str and bytes are Sequences, but never a list of coordinates or rings
    if isinstance(raw, (str, bytes)) or not isinstance(raw, SequenceABC):
        raise UnsupportedCoordinateFormatError(
            f"{what} must be a list, got {type(raw).__name__}"
        )


def _as_degrees(value: Any) -> Optional[float]:
    # bool is a Real subclass but never a valid coordinate
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def normalize_coordinate(raw: Any) -> Coordinate:
    """
    Normalize one raw storage element to a Coordinate.

    Args:
        raw: Coordinate-like value (see module docstring)

    Returns:
        Coordinate(longitude, latitude)

    Raises:
        UnsupportedCoordinateFormatError: If raw matches no supported shape
    """
    if isinstance(raw, Coordinate):
        return raw
    if isinstance(raw, Point):
        return Coordinate(raw.longitude, raw.latitude)

    if isinstance(raw, Mapping):
        longitude = _as_degrees(raw.get("longitude"))
        latitude = _as_degrees(raw.get("latitude"))
    elif isinstance(raw, (list, tuple)):
        if len(raw) != 2:
            raise UnsupportedCoordinateFormatError(
                f"Coordinate pair must have 2 values, got {len(raw)}"
            )
        longitude, latitude = _as_degrees(raw[0]), _as_degrees(raw[1])
    elif hasattr(raw, "longitude") and hasattr(raw, "latitude"):
        longitude = _as_degrees(raw.longitude)
        latitude = _as_degrees(raw.latitude)
    else:
        raise UnsupportedCoordinateFormatError(
            f"Unsupported coordinate type: {type(raw).__name__}"
        )

    if longitude is None or latitude is None:
        raise UnsupportedCoordinateFormatError(
            f"Coordinate needs numeric longitude/latitude, got {raw!r}"
        )
    return Coordinate(longitude, latitude)


class PolygonBuilder:
    """
    Stateless builder from raw coordinate sequences to Polygon.

    Usage:
        polygon = PolygonBuilder.build([
            {"longitude": 0, "latitude": 0},
            {"longitude": 0, "latitude": 10},
            {"longitude": 10, "latitude": 10},
            {"longitude": 10, "latitude": 0},
        ])
    """

    @staticmethod
    def build_ring(raw_coordinates: Sequence[Any]) -> Ring:
        """
        Build one closed ring from raw coordinates.

        Adjacent duplicates are collapsed; input order is preserved.

        Raises:
            EmptyInputError: If raw_coordinates is empty
            UnsupportedCoordinateFormatError: If raw_coordinates is not a list,
                or an element cannot be normalized
            MalformedRingError: If fewer than 3 distinct coordinates remain
        """
        if raw_coordinates is None:
            raise EmptyInputError("No coordinates supplied for polygon")
        _require_sequence(raw_coordinates, "Polygon coordinates")
        if len(raw_coordinates) == 0:
            raise EmptyInputError("No coordinates supplied for polygon")

        coordinates = []
        for raw in raw_coordinates:
            coordinate = normalize_coordinate(raw)
            if coordinates and coordinates[-1] == coordinate:
                continue
            coordinates.append(coordinate)

        distinct = len(set(coordinates))
        if distinct < 3:
            raise MalformedRingError(
                f"Polygon needs at least 3 distinct coordinates, got {distinct}"
            )

        return Ring.from_coordinates(coordinates)

    @staticmethod
    def build(
        raw_coordinates: Sequence[Any],
        holes: Optional[Sequence[Sequence[Any]]] = None,
    ) -> Polygon:
        """
        Build a polygon from raw storage coordinates.

        Args:
            raw_coordinates: Outer boundary, in order
            holes: Optional raw hole rings (not used by current storage data)

        Returns:
            Polygon with a closed outer ring and the given holes

        Raises:
            EmptyInputError, UnsupportedCoordinateFormatError, MalformedRingError
        """
        outer = PolygonBuilder.build_ring(raw_coordinates)
        if holes is None:
            holes = ()
        _require_sequence(holes, "Polygon holes")
        hole_rings = tuple(PolygonBuilder.build_ring(hole) for hole in holes)
        return Polygon(outer=outer, holes=hole_rings)
