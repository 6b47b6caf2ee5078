"""Tests for the catalog layer: stores, loader, catalog and resolver."""

import pytest

from geoapi_catalog import (
    Catalog,
    CatalogEntry,
    CatalogEntryNotFoundError,
    CatalogLoader,
    CatalogResolver,
    CountryRecord,
    DuplicateCatalogEntryError,
    GeoPoint,
    InMemoryCountryStore,
    YamlCountryStore,
)
from geoapi_geometry import (
    ContainmentTester,
    EmptyInputError,
    GeometryError,
    MalformedRingError,
    Point,
    PolygonBuilder,
    UnsupportedCoordinateFormatError,
)

from tests.fixtures import square


def entry(country_id, name, *bounds):
    return CatalogEntry(country_id, name, PolygonBuilder.build(square(*bounds)))


@pytest.fixture
def two_squares():
    return Catalog([
        entry("A", "Alpha", 0, 0, 10, 10),
        entry("B", "Beta", 20, 0, 30, 10),
    ])


@pytest.fixture
def overlapping():
    return Catalog([
        entry("TL", "Testland", 0, 0, 10, 10),
        entry("BR", "Borderland", 5, 5, 15, 15),
    ])


# ════════════════════════════════════════════════════════════════
#  Catalog
# ════════════════════════════════════════════════════════════════

class TestCatalog:
    """Tests for Catalog lookup and ordering."""

    def test_iteration_keeps_insertion_order(self, overlapping):
        assert [e.country_id for e in overlapping] == ["TL", "BR"]
        assert overlapping.names() == ["Testland", "Borderland"]
        assert len(overlapping) == 2

    def test_get(self, overlapping):
        assert overlapping.get("BR").name == "Borderland"
        assert "BR" in overlapping
        assert "XX" not in overlapping

    def test_get_unknown(self, overlapping):
        with pytest.raises(CatalogEntryNotFoundError) as exc_info:
            overlapping.get("XX")
        assert exc_info.value.country_id == "XX"
        assert isinstance(exc_info.value, LookupError)

    def test_duplicate_identifiers_rejected(self):
        with pytest.raises(DuplicateCatalogEntryError):
            Catalog([entry("A", "Alpha", 0, 0, 1, 1), entry("A", "Again", 2, 2, 3, 3)])

    def test_restricted_to(self, overlapping):
        restricted = overlapping.restricted_to("BR")
        assert [e.country_id for e in restricted] == ["BR"]

    def test_empty_identifier(self):
        with pytest.raises(ValueError):
            entry("", "Nowhere", 0, 0, 1, 1)


# ════════════════════════════════════════════════════════════════
#  Resolver
# ════════════════════════════════════════════════════════════════

class TestCatalogResolver:
    """Tests for resolve_first / resolve_all."""

    def test_point_in_second_square(self, two_squares):
        match = CatalogResolver().resolve_first(two_squares, Point(25, 5))
        assert match.country_id == "B"

    def test_point_in_first_square(self, two_squares):
        assert CatalogResolver().resolve_first(two_squares, Point(5, 5)).country_id == "A"

    def test_no_match_is_none(self, two_squares):
        resolver = CatalogResolver()
        assert resolver.resolve_first(two_squares, Point(15, 5)) is None
        assert resolver.resolve_all(two_squares, Point(15, 5)) == []

    def test_empty_catalog(self):
        assert CatalogResolver().resolve_first(Catalog(), Point(0, 0)) is None

    def test_overlap_resolved_by_catalog_order(self, overlapping):
        resolver = CatalogResolver()
        assert resolver.resolve_first(overlapping, Point(7, 7)).country_id == "TL"

        flipped = Catalog(reversed(overlapping.entries))
        assert resolver.resolve_first(flipped, Point(7, 7)).country_id == "BR"

    def test_resolve_all_in_catalog_order(self, overlapping):
        matches = CatalogResolver().resolve_all(overlapping, Point(7, 7))
        assert [e.country_id for e in matches] == ["TL", "BR"]

    def test_first_is_head_of_all(self, overlapping):
        resolver = CatalogResolver()
        for point in (Point(2, 2), Point(7, 7), Point(12, 12), Point(20, 20)):
            matches = resolver.resolve_all(overlapping, point)
            first = resolver.resolve_first(overlapping, point)
            assert first == (matches[0] if matches else None)

    def test_boundary_policy(self):
        catalog = Catalog([entry("TL", "Testland", 0, 0, 10, 10)])
        on_edge = Point(10, 5)
        assert CatalogResolver().resolve_first(catalog, on_edge).country_id == "TL"
        assert CatalogResolver(include_boundary=False).resolve_first(catalog, on_edge) is None

    def test_bbox_prefilter_does_not_change_matches(self, overlapping):
        with_filter = CatalogResolver(use_bbox_prefilter=True)
        without_filter = CatalogResolver(use_bbox_prefilter=False)
        for x in range(-2, 18):
            for y in range(-2, 18):
                point = Point(x + 0.5, y)
                assert with_filter.resolve_all(overlapping, point) == \
                    without_filter.resolve_all(overlapping, point)

    def test_bbox_prefilter_keeps_near_boundary_points(self):
        catalog = Catalog([entry("TL", "Testland", 0, 0, 10, 10)])
        near_edge = Point(10 + 1e-10, 5)
        assert CatalogResolver().resolve_first(catalog, near_edge).country_id == "TL"

    def test_failing_entry_reported_and_skipped(self, overlapping):
        broken = overlapping.get("TL").polygon

        class FailingTester(ContainmentTester):
            def contains(self, polygon, point):
                if polygon is broken:
                    raise GeometryError("corrupt polygon")
                return super().contains(polygon, point)

        reported = []
        resolver = CatalogResolver(
            tester=FailingTester(),
            error_sink=lambda country_id, error: reported.append((country_id, error)),
        )
        match = resolver.resolve_first(overlapping, Point(7, 7))

        assert match.country_id == "BR"
        assert [country_id for country_id, _ in reported] == ["TL"]


# ════════════════════════════════════════════════════════════════
#  Loader
# ════════════════════════════════════════════════════════════════

class TestCatalogLoader:
    """Tests for CatalogLoader.load()."""

    def test_builds_entries_in_order(self, records):
        report = CatalogLoader.load(records, version="1")
        assert [e.country_id for e in report.catalog] == ["TL", "EL", "BR"]
        assert report.catalog.version == "1"
        assert report.rejected == ()

    def test_broken_records_are_skipped(self, records):
        broken = [
            CountryRecord("EMPTY", "Empty", []),
            CountryRecord("LINE", "Line", [[0, 0], [1, 1]]),
            CountryRecord("ODD", "Odd", [[0, 0], "north", [1, 1], [1, 0]]),
        ]
        reported = []
        report = CatalogLoader.load(
            broken + records,
            error_sink=lambda country_id, error: reported.append((country_id, error)),
        )

        assert [e.country_id for e in report.catalog] == ["TL", "EL", "BR"]
        assert report.rejected_ids == ["EMPTY", "LINE", "ODD"]
        assert [type(error) for _, error in reported] == [
            EmptyInputError,
            MalformedRingError,
            UnsupportedCoordinateFormatError,
        ]
        assert reported[0][1].country_id == "EMPTY"
        assert "EMPTY" in str(reported[0][1])

    def test_non_list_geometry_is_skipped(self, records):
        broken = [
            CountryRecord("NUM", "Number", 42),
            CountryRecord("TEXT", "Text", "0,0 0,10 10,10"),
            CountryRecord("HOLES", "Holes", square(0, 0, 1, 1), holes=5),
        ]
        reported = []
        report = CatalogLoader.load(
            broken[:1] + records[:1] + broken[1:] + records[1:],
            error_sink=lambda country_id, error: reported.append((country_id, error)),
        )

        assert [e.country_id for e in report.catalog] == ["TL", "EL", "BR"]
        assert report.rejected_ids == ["NUM", "TEXT", "HOLES"]
        assert all(isinstance(error, UnsupportedCoordinateFormatError) for _, error in reported)
        assert reported[0][1].country_id == "NUM"

    def test_rejected_documents_reported_first(self, records):
        skipped = ValueError("Country document without 'id'")
        reported = []
        report = CatalogLoader.load(
            [CountryRecord("EMPTY", "Empty", [])] + records,
            error_sink=lambda country_id, error: reported.append(country_id),
            rejected_documents=[("countries[0]", skipped)],
        )

        assert report.catalog.names() == ["Testland", "Eastland", "Borderland"]
        assert report.rejected_ids == ["countries[0]", "EMPTY"]
        assert report.rejected[0][1] is skipped
        assert reported == ["countries[0]", "EMPTY"]

    def test_duplicate_identifier_first_wins(self, records):
        duplicate = CountryRecord("TL", "Impostor", square(50, 50, 60, 60))
        report = CatalogLoader.load(records + [duplicate])

        assert report.catalog.get("TL").name == "Testland"
        assert len(report.catalog) == 3
        assert report.rejected_ids == ["TL"]
        assert isinstance(report.rejected[0][1], DuplicateCatalogEntryError)

    def test_duplicate_after_broken_record_is_kept(self, records):
        broken = CountryRecord("TL", "Broken", [])
        report = CatalogLoader.load([broken] + records)
        assert report.catalog.get("TL").name == "Testland"
        assert report.rejected_ids == ["TL"]

    def test_load_from_store(self, store):
        report = CatalogLoader.load_from_store(store)
        assert report.catalog.version == store.snapshot_version()
        assert report.catalog.names() == ["Testland", "Eastland", "Borderland"]
        assert report.rejected == ()


# ════════════════════════════════════════════════════════════════
#  Stores
# ════════════════════════════════════════════════════════════════

class TestCountryRecord:

    def test_from_document(self):
        record = CountryRecord.from_document({
            "id": "TL",
            "name": "Testland",
            "geometry": {"coordinates": [[0, 0], [0, 1], [1, 1]], "holes": [[[0.2, 0.2], [0.4, 0.2], [0.4, 0.4]]]},
            "population": 12,
        })
        assert record.country_id == "TL"
        assert len(record.coordinates) == 3
        assert len(record.holes) == 1
        assert record.data["population"] == 12

    def test_name_defaults_to_identifier(self):
        assert CountryRecord.from_document({"id": "XX"}).name == "XX"

    def test_missing_identifier(self):
        with pytest.raises(ValueError):
            CountryRecord.from_document({"name": "Nameless"})

    def test_non_mapping_document(self):
        with pytest.raises(ValueError):
            CountryRecord.from_document(["TL", "Testland"])

    def test_geometry_values_kept_as_stored(self):
        record = CountryRecord.from_document({"id": "XX", "geometry": "nope"})
        assert record.coordinates == "nope"
        assert record.holes == ()

        record = CountryRecord.from_document({"id": "XX", "geometry": {"coordinates": 42, "holes": 5}})
        assert (record.coordinates, record.holes) == (42, 5)


class TestInMemoryCountryStore:

    def test_get_and_list(self, store):
        assert store.get_country("EL").name == "Eastland"
        assert [r.country_id for r in store.list_countries()] == ["TL", "EL", "BR"]

    def test_get_unknown(self, store):
        with pytest.raises(CatalogEntryNotFoundError):
            store.get_country("XX")

    def test_put_bumps_version_and_keeps_position(self, store):
        before = store.snapshot_version()
        store.put(CountryRecord("TL", "Testland Renamed", square(0, 0, 1, 1)))

        assert store.snapshot_version() != before
        assert [r.country_id for r in store.list_countries()] == ["TL", "EL", "BR"]
        assert store.get_country("TL").name == "Testland Renamed"


class TestYamlCountryStore:

    def test_sample_file(self, sample_countries):
        store = YamlCountryStore(sample_countries)
        records = store.list_countries()

        assert [r.country_id for r in records] == ["TL", "EL", "LK", "BR"]
        assert isinstance(store.get_country("EL").coordinates[0], GeoPoint)
        assert store.get_country("LK").holes

    def test_geopoint_sequence_form(self, tmp_path):
        path = tmp_path / "countries.yaml"
        path.write_text(
            "countries:\n"
            "  - id: SQ\n"
            "    geometry:\n"
            "      coordinates:\n"
            "        - !geopoint [0, 0]\n"
            "        - !geopoint [0, 4]\n"
            "        - !geopoint [4, 4]\n"
        )
        record = YamlCountryStore(path).get_country("SQ")
        assert record.coordinates[1] == GeoPoint(latitude=0, longitude=4)

    def test_json_document(self, tmp_path):
        path = tmp_path / "countries.json"
        path.write_text('{"countries": [{"id": "TL", "name": "Testland", "geometry": '
                        '{"coordinates": [[0, 0], [0, 10], [10, 10], [10, 0]]}}]}')
        assert YamlCountryStore(path).get_country("TL").name == "Testland"

    def test_reloads_when_file_changes(self, tmp_path):
        path = tmp_path / "countries.yaml"
        path.write_text("countries:\n  - id: A\n")
        store = YamlCountryStore(path)
        first_version = store.snapshot_version()
        assert [r.country_id for r in store.list_countries()] == ["A"]

        path.write_text("countries:\n  - id: A\n  - id: BB\n")
        assert store.snapshot_version() != first_version
        assert [r.country_id for r in store.list_countries()] == ["A", "BB"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "countries.yaml"
        path.write_text("")
        assert YamlCountryStore(path).list_countries() == []

    @pytest.mark.parametrize(
        "content",
        [
            "countries: [unclosed",
            "- just\n- a list\n",
            "countries: 5\n",
        ],
    )
    def test_invalid_files(self, tmp_path, content):
        path = tmp_path / "countries.yaml"
        path.write_text(content)
        with pytest.raises(ValueError):
            YamlCountryStore(path).list_countries()

    def test_malformed_documents_are_skipped(self, tmp_path):
        path = tmp_path / "countries.yaml"
        path.write_text(
            "countries:\n"
            "  - name: Nameless\n"
            "  - just a string\n"
            "  - id: NOPE\n"
            "    geometry: nope\n"
            "  - id: HOLEY\n"
            "    geometry:\n"
            "      coordinates: [[0, 0], [0, 1], [1, 1]]\n"
            "      holes: 5\n"
            "  - id: SHORT\n"
            "    geometry:\n"
            "      coordinates:\n"
            "        - !geopoint [1]\n"
            "        - !geopoint [0, 4]\n"
            "        - !geopoint [4, 4]\n"
            "  - id: SCALAR\n"
            "    geometry:\n"
            "      coordinates:\n"
            "        - !geopoint 5\n"
            "        - [0, 4]\n"
            "        - [4, 4]\n"
            "  - id: TL\n"
            "    name: Testland\n"
            "    geometry:\n"
            "      coordinates: [[0, 0], [0, 10], [10, 10], [10, 0]]\n"
        )
        store = YamlCountryStore(path)

        assert [r.country_id for r in store.list_countries()] == ["NOPE", "HOLEY", "SHORT", "SCALAR", "TL"]
        assert [key for key, _ in store.rejected_documents()] == ["countries[0]", "countries[1]"]

        report = CatalogLoader.load_from_store(store)
        assert report.catalog.names() == ["Testland"]
        assert report.rejected_ids == ["countries[0]", "countries[1]", "NOPE", "HOLEY", "SHORT", "SCALAR"]
        assert all(
            isinstance(error, UnsupportedCoordinateFormatError)
            for _, error in report.rejected[2:]
        )

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            YamlCountryStore(tmp_path / "missing.yaml").list_countries()

    def test_unknown_country(self, sample_countries):
        with pytest.raises(CatalogEntryNotFoundError):
            YamlCountryStore(sample_countries).get_country("XX")
