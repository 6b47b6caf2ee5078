"""
Catalog Resolver Module
=======================

Resolves a point against a whole Catalog.

Design:
- Linear scan in catalog order, O(N*M) for N entries of M vertices
- Optional bounding-box prefilter (grown by epsilon): pure speed-up, the
  match set is unchanged
- Tie-break: when boundaries overlap, catalog iteration order decides the
  winner of resolve_first
- No match is an ordinary result (None / empty list), never an exception
- A GeometryError raised for one entry is reported to the error sink and
  the scan continues
- Holds no mutable state; safe for concurrent use on a shared Catalog
"""

from typing import Iterator, List, Optional

from geoapi_catalog.catalog import Catalog, CatalogEntry
from geoapi_catalog.loader import ErrorSink
from geoapi_geometry import Containment, ContainmentTester, GeometryError, Point


class CatalogResolver:
    """
    First-match / all-matches resolver.

    Usage:
        resolver = CatalogResolver(ContainmentTester(epsilon=1e-9))
        entry = resolver.resolve_first(catalog, Point(2.35, 48.85))
        if entry is None:
            ...  # point is in no known country
    """

    def __init__(
        self,
        tester: Optional[ContainmentTester] = None,
        include_boundary: bool = True,
        use_bbox_prefilter: bool = True,
        error_sink: Optional[ErrorSink] = None,
    ):
        """
        Args:
            tester: Containment tester (default tolerance if omitted)
            include_boundary: Whether ON_BOUNDARY counts as a match
            use_bbox_prefilter: Skip entries whose bounds exclude the point
            error_sink: Optional callback for entries that fail during a scan
        """
        self.tester = tester or ContainmentTester()
        self.include_boundary = include_boundary
        self.use_bbox_prefilter = use_bbox_prefilter
        self.error_sink = error_sink

    def classify(self, entry: CatalogEntry, point: Point) -> Containment:
        """Containment of point in one entry, honoring the bbox prefilter."""
        if self.use_bbox_prefilter and not entry.polygon.bounds.contains(
            point, margin=self.tester.epsilon
        ):
            return Containment.OUTSIDE
        return self.tester.contains(entry.polygon, point)

    def _matches(self, catalog: Catalog, point: Point) -> Iterator[CatalogEntry]:
        for entry in catalog:
            try:
                containment = self.classify(entry, point)
            except GeometryError as e:
                if self.error_sink is not None:
                    self.error_sink(entry.country_id, e)
                continue
            if containment.is_contained(self.include_boundary):
                yield entry

    def resolve_first(self, catalog: Catalog, point: Point) -> Optional[CatalogEntry]:
        """
        First entry (in catalog order) containing point, or None.
        """
        return next(self._matches(catalog, point), None)

    def resolve_all(self, catalog: Catalog, point: Point) -> List[CatalogEntry]:
        """
        Every entry containing point, in catalog order.

        For catalogs where overlapping boundaries are legitimate.
        """
        return list(self._matches(catalog, point))
