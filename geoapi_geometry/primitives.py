"""
Geometric Primitives Module
===========================

Pure planar (longitude, latitude) value types - NO state, NO side effects.

Design:
- Immutable values (frozen dataclass pattern)
- Rings stored as read-only Nx2 float64 arrays
- Rings are always closed (first vertex == last vertex)
- Thread-safe by design (immutability)

Coordinates are degrees. Values outside [-180, 180] x [-90, 90] are
accepted structurally; their geometric meaning is the caller's concern.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Tuple, Union

import numpy as np

from geoapi_geometry.errors import MalformedRingError


def _require_finite(longitude: float, latitude: float, kind: str) -> None:
    if not (math.isfinite(longitude) and math.isfinite(latitude)):
        raise ValueError(
            f"{kind} requires finite longitude/latitude, got ({longitude}, {latitude})"
        )


@dataclass(frozen=True)
class Coordinate:
    """
    Immutable (longitude, latitude) pair in degrees.

    Attributes:
        longitude: x-axis value
        latitude: y-axis value
    """

    longitude: float
    latitude: float

    def __post_init__(self):
        _require_finite(self.longitude, self.latitude, "Coordinate")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class Point:
    """
    Immutable query point (longitude, latitude) in degrees.

    Example:
        >>> Point(longitude=5.0, latitude=5.0)
        Point(longitude=5.0, latitude=5.0)
    """

    longitude: float
    latitude: float

    def __post_init__(self):
        _require_finite(self.longitude, self.latitude, "Point")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned bounds of a ring, used to reject points cheaply.

    Attributes:
        min_longitude, min_latitude, max_longitude, max_latitude
    """

    min_longitude: float
    min_latitude: float
    max_longitude: float
    max_latitude: float

    def contains(self, point: Point, margin: float = 0.0) -> bool:
        """
        Check if point falls within the box grown by margin on every side.

        Boundary-inclusive, so a margin >= the containment tolerance never
        rejects a point the tester would report as on the boundary.
        """
        return (
            self.min_longitude - margin <= point.longitude <= self.max_longitude + margin
            and self.min_latitude - margin <= point.latitude <= self.max_latitude + margin
        )


CoordinateLike = Union[Coordinate, Point, Tuple[float, float]]


@dataclass(frozen=True, eq=False)
class Ring:
    """
    Immutable closed ring of coordinates.

    Design:
    - Vertices validated and frozen at init (read-only numpy array)
    - Closure invariant: vertices[0] == vertices[-1]
    - At least 4 vertices (3 distinct + closing vertex)
    - Orientation is not normalized; consumers must be winding-agnostic
    - Assumed simple (no self-intersections); a self-intersecting ring is
      not validated and gives undefined containment answers

    Attributes:
        vertices: Nx2 array of (longitude, latitude)

    Use Ring.from_coordinates() to build from an open or closed sequence.
    """

    vertices: np.ndarray

    def __post_init__(self):
        """Validate shape, closure and finiteness, then freeze the array."""
        if not isinstance(self.vertices, np.ndarray):
            raise TypeError(f"vertices must be np.ndarray, got {type(self.vertices)}")
        if self.vertices.ndim != 2 or self.vertices.shape[1] != 2:
            raise MalformedRingError(
                f"Ring vertices must be an Nx2 array, got shape {self.vertices.shape}"
            )
        if len(self.vertices) < 4:
            raise MalformedRingError(
                f"Closed ring needs at least 4 vertices, got {len(self.vertices)}"
            )
        if not np.array_equal(self.vertices[0], self.vertices[-1]):
            raise MalformedRingError("Ring is not closed (first vertex != last vertex)")
        if not np.all(np.isfinite(self.vertices)):
            raise ValueError("Ring vertices must be finite")

        vertices = np.array(self.vertices, dtype=np.float64)
        vertices.flags.writeable = False
        object.__setattr__(self, "vertices", vertices)

        min_lon, min_lat = vertices.min(axis=0)
        max_lon, max_lat = vertices.max(axis=0)
        object.__setattr__(
            self,
            "_bounds",
            BoundingBox(float(min_lon), float(min_lat), float(max_lon), float(max_lat)),
        )

    @classmethod
    def from_coordinates(cls, coordinates: Iterable[CoordinateLike]) -> "Ring":
        """
        Build a ring, closing it if the last coordinate differs from the first.

        Args:
            coordinates: Ordered coordinates (Coordinate, Point or (lon, lat))

        Returns:
            Closed Ring in the given order

        Raises:
            MalformedRingError: If fewer than 3 distinct coordinates are given
        """
        pairs = [_as_pair(c) for c in coordinates]

        distinct = len(set(pairs))
        if distinct < 3:
            raise MalformedRingError(
                f"Ring needs at least 3 distinct coordinates, got {distinct}"
            )

        if pairs[0] != pairs[-1]:
            pairs.append(pairs[0])

        return cls(vertices=np.array(pairs, dtype=np.float64))

    @property
    def coordinates(self) -> Tuple[Coordinate, ...]:
        """Closed coordinate sequence (first coordinate repeated at the end)."""
        return tuple(Coordinate(float(x), float(y)) for x, y in self.vertices)

    @property
    def bounds(self) -> BoundingBox:
        return self._bounds

    @property
    def edges(self) -> Tuple[np.ndarray, np.ndarray]:
        """Edge start and end arrays, each (N-1)x2."""
        return self.vertices[:-1], self.vertices[1:]

    @property
    def area(self) -> float:
        """Unsigned planar area (shoelace formula), in square degrees."""
        x = self.vertices[:, 0]
        y = self.vertices[:, 1]
        return float(abs(np.dot(x[:-1], y[1:]) - np.dot(x[1:], y[:-1])) / 2.0)

    @property
    def is_degenerate(self) -> bool:
        """
        True when all vertices are collinear (zero area, up to rounding).

        Uses the net shoelace area, so a self-intersecting "bowtie" whose
        lobes have equal and opposite winding also reports True. Such rings
        are unsupported; the containment tester treats them as empty.
        """
        bounds = self.bounds
        extent = (bounds.max_longitude - bounds.min_longitude) * (
            bounds.max_latitude - bounds.min_latitude
        )
        return self.area <= 1e-12 * extent

    def reversed(self) -> "Ring":
        """Same ring with the opposite winding direction."""
        return Ring(vertices=self.vertices[::-1].copy())

    def __len__(self) -> int:
        return len(self.vertices)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Ring):
            return NotImplemented
        return bool(np.array_equal(self.vertices, other.vertices))

    def __hash__(self) -> int:
        return hash(tuple(map(tuple, self.vertices.tolist())))


def _as_pair(value: CoordinateLike) -> Tuple[float, float]:
    if isinstance(value, (Coordinate, Point)):
        return value.as_tuple()
    longitude, latitude = value
    return Coordinate(float(longitude), float(latitude)).as_tuple()


@dataclass(frozen=True)
class Polygon:
    """
    Immutable polygon: one outer ring plus zero or more hole rings.

    Holes are assumed to lie inside the outer ring and not to overlap
    each other; this is not verified.

    Attributes:
        outer: Boundary of the filled area
        holes: Excluded interior regions
    """

    outer: Ring
    holes: Tuple[Ring, ...] = ()

    def __post_init__(self):
        if not isinstance(self.outer, Ring):
            raise TypeError(f"outer must be Ring, got {type(self.outer)}")
        holes = tuple(self.holes)
        for hole in holes:
            if not isinstance(hole, Ring):
                raise TypeError(f"holes must be Ring instances, got {type(hole)}")
        object.__setattr__(self, "holes", holes)

    @property
    def rings(self) -> Tuple[Ring, ...]:
        """Outer ring first, then holes in order."""
        return (self.outer,) + self.holes

    @property
    def bounds(self) -> BoundingBox:
        return self.outer.bounds

    @property
    def vertex_count(self) -> int:
        return sum(len(ring) for ring in self.rings)
