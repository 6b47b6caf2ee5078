"""
Containment Tester Module
=========================

Stateless point-in-polygon logic - applies polygon geometry to query points.

Design:
- Three-valued result (INSIDE, OUTSIDE, ON_BOUNDARY)
- Boundary check first, within a tolerance (epsilon, in degrees)
- Even-odd ray casting against each ring, vectorized over edges with numpy
- Winding-agnostic: counts crossings, never signed area
- Never raises for near-boundary points

Limitations:
- Planar (longitude, latitude) space, no geodesic edges
- No antimeridian wraparound: a ring crossing +/-180 that was not split
  beforehand gives wrong answers
- Simple rings only: self-intersecting rings are not detected, and a
  symmetric bowtie (net area zero) is degenerate and contains nothing
"""

from enum import Enum

import numpy as np

from geoapi_geometry.primitives import Point, Polygon, Ring


DEFAULT_EPSILON = 1e-9


class Containment(str, Enum):
    """Relationship between a point and a polygon."""
    INSIDE = "inside"
    OUTSIDE = "outside"
    ON_BOUNDARY = "on_boundary"

    def is_contained(self, include_boundary: bool = True) -> bool:
        """
        Collapse to a binary decision.

        Args:
            include_boundary: Whether ON_BOUNDARY counts as contained
                (default True, the inclusive `contains` policy)
        """
        if self is Containment.ON_BOUNDARY:
            return include_boundary
        return self is Containment.INSIDE


class ContainmentTester:
    """
    Point-in-polygon tester.

    The only state is the immutable tolerance, so one instance can be shared
    across threads.

    Usage:
        tester = ContainmentTester()
        tester.contains(polygon, Point(5.0, 5.0))  # Containment.INSIDE
    """

    def __init__(self, epsilon: float = DEFAULT_EPSILON):
        """
        Args:
            epsilon: Distance (degrees) within which a point counts as lying on
                an edge. Absorbs floating-point error at shared borders.
        """
        if not epsilon >= 0.0:
            raise ValueError(f"epsilon must be >= 0, got {epsilon}")
        self.epsilon = epsilon

    def contains(self, polygon: Polygon, point: Point) -> Containment:
        """
        Classify point against polygon.

        Args:
            polygon: Outer ring plus holes
            point: Query point

        Returns:
            ON_BOUNDARY if point is within epsilon of any ring edge,
            INSIDE if inside the outer ring and no hole,
            OUTSIDE otherwise
        """
        for ring in polygon.rings:
            if self.on_ring(ring, point):
                return Containment.ON_BOUNDARY

        if not self.inside_ring(polygon.outer, point):
            return Containment.OUTSIDE

        for hole in polygon.holes:
            if self.inside_ring(hole, point):
                return Containment.OUTSIDE

        return Containment.INSIDE

    def on_ring(self, ring: Ring, point: Point) -> bool:
        """Check if point lies within epsilon of any edge of ring."""
        starts, ends = ring.edges
        p = np.array(point.as_tuple(), dtype=np.float64)

        segment = ends - starts
        to_point = p - starts
        squared_length = np.einsum("ij,ij->i", segment, segment)
        projection = np.einsum("ij,ij->i", to_point, segment)

        # Zero-length edges collapse to their start vertex
        t = np.divide(
            projection,
            squared_length,
            out=np.zeros_like(projection),
            where=squared_length > 0,
        )
        t = np.clip(t, 0.0, 1.0)

        nearest = starts + segment * t[:, np.newaxis]
        distance = np.hypot(nearest[:, 0] - p[0], nearest[:, 1] - p[1])
        return bool(np.any(distance <= self.epsilon))

    @staticmethod
    def inside_ring(ring: Ring, point: Point) -> bool:
        """
        Even-odd ray casting (ray towards +inf longitude).

        An edge is crossed when one endpoint latitude is >= point latitude and
        the other is < (half-open rule, so a vertex on the ray is counted once),
        and the crossing longitude is strictly east of the point.

        Degenerate (zero-area) rings contain nothing.
        """
        if ring.is_degenerate:
            return False

        starts, ends = ring.edges
        x, y = point.as_tuple()

        straddles = (starts[:, 1] >= y) != (ends[:, 1] >= y)
        if not np.any(straddles):
            return False

        x1, y1 = starts[straddles, 0], starts[straddles, 1]
        x2, y2 = ends[straddles, 0], ends[straddles, 1]
        crossing_x = x1 + (y - y1) * (x2 - x1) / (y2 - y1)

        crossings = int(np.count_nonzero(crossing_x > x))
        return crossings % 2 == 1
