"""Tests for the query facade and service configuration."""

import json
import logging

import pytest

from geoapi_catalog import CountryRecord, InMemoryCountryStore, YamlCountryStore
from geoapi_geometry import Point
from geoapi_logging import LogEvent, create_logger
from geoapi_service import (
    NO_MATCH_MESSAGE,
    CatalogConfig,
    GeometryConfig,
    GeoQueryService,
    MQTTConfig,
    QueryStatus,
    ServiceConfig,
)

from tests.fixtures import RecordingHandler, square


@pytest.fixture
def service(store, quiet_logger):
    return GeoQueryService(store, logger=quiet_logger)


# ════════════════════════════════════════════════════════════════
#  Core operations
# ════════════════════════════════════════════════════════════════

class TestCoreOperations:
    """health / find_containing / list_country_names."""

    def test_health(self, service):
        assert service.health() == "ok"

    def test_find_containing(self, service):
        catalog = service.current_catalog()
        assert service.find_containing(Point(25, 5), catalog).country_id == "EL"
        assert service.find_containing(Point(50, 50), catalog) is None

    def test_find_containing_in_restricted_catalog(self, service):
        catalog = service.current_catalog().restricted_to("BR")
        assert service.find_containing(Point(7, 7), catalog).country_id == "BR"

    def test_list_country_names(self, service):
        catalog = service.current_catalog()
        assert service.list_country_names(catalog) == ["Testland", "Eastland", "Borderland"]


# ════════════════════════════════════════════════════════════════
#  Request-style queries
# ════════════════════════════════════════════════════════════════

class TestFindCountry:

    def test_found(self, service):
        result = service.find_country(latitude=5, longitude=25)
        assert result.status is QueryStatus.FOUND
        assert result.message == "The point is inside Eastland."
        assert result.match.country_id == "EL"

    def test_not_found(self, service):
        result = service.find_country(latitude=50, longitude=50)
        assert result.status is QueryStatus.NOT_FOUND
        assert result.message == NO_MATCH_MESSAGE
        assert result.match is None

    def test_overlap_first_listed_wins(self, service):
        assert service.find_country(latitude=7, longitude=7).match.country_id == "TL"

    def test_boundary_counts_as_inside_by_default(self, service):
        assert service.find_country(latitude=5, longitude=10).match.country_id == "TL"

    def test_boundary_excluded_when_configured(self, store, quiet_logger):
        service = GeoQueryService(
            store,
            geometry=GeometryConfig(include_boundary=False),
            logger=quiet_logger,
        )
        # (10, 5) lies on both Testland's east edge and Borderland's south edge
        assert service.find_country(latitude=5, longitude=10).status is QueryStatus.NOT_FOUND

    def test_non_finite_point_rejected(self, service):
        with pytest.raises(ValueError):
            service.find_country(latitude=float("nan"), longitude=0)


class TestFindAllCountries:

    def test_every_match_in_order(self, service):
        result = service.find_all_countries(latitude=7, longitude=7)
        assert result.status is QueryStatus.FOUND
        assert result.message == "The point is inside Testland, Borderland."
        assert [m.country_id for m in result.matches] == ["TL", "BR"]

    def test_no_match(self, service):
        assert service.find_all_countries(latitude=-50, longitude=-50).status is QueryStatus.NOT_FOUND


class TestCheckCountry:

    def test_inside(self, service):
        result = service.check_country("TL", latitude=5, longitude=5)
        assert result.status is QueryStatus.INSIDE
        assert result.message == "The point is inside Testland."

    def test_outside(self, service):
        result = service.check_country("TL", latitude=5, longitude=15)
        assert result.status is QueryStatus.OUTSIDE
        assert result.message == "The point is outside Testland."

    def test_ignores_catalog_order(self, service):
        assert service.check_country("BR", latitude=7, longitude=7).status is QueryStatus.INSIDE

    def test_unknown_country(self, service):
        result = service.check_country("XX", latitude=5, longitude=5)
        assert result.status is QueryStatus.UNKNOWN_COUNTRY
        assert result.message == "Country not found in database: XX"

    def test_invalid_geometry(self, store, quiet_logger):
        store.put(CountryRecord("XX", "Broken", [[0, 0], [1, 1]]))
        service = GeoQueryService(store, logger=quiet_logger)

        result = service.check_country("XX", latitude=0, longitude=0)
        assert result.status is QueryStatus.INVALID_GEOMETRY
        assert result.message.startswith("Error: ")
        assert "XX" in result.message


class TestGetCountry:

    def test_document_is_json_ready(self, service):
        payload = service.get_country("EL").to_dict()

        assert payload["status"] == "found"
        assert payload["message"] == "Eastland"
        assert payload["matches"] == [{"country_id": "EL", "name": "Eastland"}]
        assert payload["data"]["capital"] == {"latitude": 5, "longitude": 25}
        json.dumps(payload)

    def test_unknown_country(self, service):
        result = service.get_country("XX")
        assert result.status is QueryStatus.UNKNOWN_COUNTRY
        assert result.message == "Country with code XX not found."
        assert "data" not in result.to_dict()


class TestListCountries:

    def test_names_in_order(self, service):
        assert service.list_countries() == ["Testland", "Eastland", "Borderland"]

    def test_broken_entries_left_out(self, store, quiet_logger):
        store.put(CountryRecord("XX", "Broken", []))
        service = GeoQueryService(store, logger=quiet_logger)
        assert service.list_countries() == ["Testland", "Eastland", "Borderland"]

    def test_empty_store(self, quiet_logger):
        assert GeoQueryService(InMemoryCountryStore(), logger=quiet_logger).list_countries() == []


# ════════════════════════════════════════════════════════════════
#  Snapshot cache and logging
# ════════════════════════════════════════════════════════════════

class TestCatalogSnapshots:

    def test_snapshot_reused_while_version_unchanged(self, service):
        assert service.current_catalog() is service.current_catalog()

    def test_snapshot_rebuilt_after_store_change(self, service, store):
        before = service.current_catalog()
        store.put(CountryRecord("NL", "Northland", square(0, 50, 10, 60)))
        after = service.current_catalog()

        assert after is not before
        assert service.find_country(latitude=55, longitude=5).match.country_id == "NL"

    def test_cache_disabled(self, store, quiet_logger):
        service = GeoQueryService(store, cache_snapshots=False, logger=quiet_logger)
        assert service.current_catalog() is not service.current_catalog()

    def test_yaml_store_edits_are_picked_up(self, tmp_path, quiet_logger):
        path = tmp_path / "countries.yaml"
        path.write_text("countries:\n  - id: A\n    geometry: {coordinates: [[0, 0], [0, 1], [1, 1]]}\n")
        service = GeoQueryService(YamlCountryStore(path), logger=quiet_logger)
        assert service.list_countries() == ["A"]

        path.write_text(
            "countries:\n"
            "  - id: A\n    geometry: {coordinates: [[0, 0], [0, 1], [1, 1]]}\n"
            "  - id: B\n    name: Bee\n    geometry: {coordinates: [[5, 5], [5, 6], [6, 6]]}\n"
        )
        assert service.list_countries() == ["A", "Bee"]


class TestServiceLogging:

    def test_rejected_entries_are_logged(self, store, quiet_logger):
        handler = RecordingHandler()
        quiet_logger.logger.addHandler(handler)
        quiet_logger.set_level(logging.DEBUG)
        try:
            store.put(CountryRecord("XX", "Broken", []))
            service = GeoQueryService(store, logger=quiet_logger)
            service.current_catalog()
            service.current_catalog()
        finally:
            quiet_logger.logger.removeHandler(handler)

        events = [entry["event"] for entry in handler.entries]
        assert LogEvent.CATALOG_ENTRY_REJECTED.value in events
        assert LogEvent.CATALOG_LOADED.value in events
        assert LogEvent.CATALOG_CACHE_HIT.value in events

        rejected = next(e for e in handler.entries if e["event"] == LogEvent.CATALOG_ENTRY_REJECTED.value)
        assert rejected["metadata"]["country_id"] == "XX"
        assert rejected["exception"]["type"] == "EmptyInputError"

    def test_malformed_documents_do_not_block_queries(self, tmp_path, quiet_logger):
        path = tmp_path / "countries.yaml"
        path.write_text(
            "countries:\n"
            "  - name: Nameless\n"
            "  - id: XX\n"
            "    geometry: nope\n"
            "  - id: TL\n"
            "    name: Testland\n"
            "    geometry:\n"
            "      coordinates: [[0, 0], [0, 10], [10, 10], [10, 0]]\n"
        )
        handler = RecordingHandler()
        quiet_logger.logger.addHandler(handler)
        quiet_logger.set_level(logging.DEBUG)
        try:
            service = GeoQueryService(YamlCountryStore(path), logger=quiet_logger)
            result = service.find_country(latitude=5, longitude=5)
            checked = service.check_country("XX", latitude=5, longitude=5)
        finally:
            quiet_logger.logger.removeHandler(handler)

        assert result.status is QueryStatus.FOUND
        assert result.match.country_id == "TL"
        assert checked.status is QueryStatus.INVALID_GEOMETRY

        rejected = [e for e in handler.entries if e["event"] == LogEvent.CATALOG_ENTRY_REJECTED.value]
        # Two from the catalog load, one more from check_country
        assert [e["metadata"]["country_id"] for e in rejected] == ["countries[0]", "XX", "XX"]
        assert rejected[1]["exception"]["type"] == "UnsupportedCoordinateFormatError"

    def test_default_logger_keeps_server_level(self):
        shared = logging.getLogger("geoapi.service")
        previous = shared.level
        try:
            create_logger("service", level=logging.WARNING)
            service = GeoQueryService(InMemoryCountryStore())
            assert service.logger.logger is shared
            assert shared.level == logging.WARNING
        finally:
            shared.setLevel(previous)

    def test_storage_failure_is_logged_and_raised(self, tmp_path, quiet_logger):
        path = tmp_path / "countries.yaml"
        path.write_text("countries: [unclosed")
        handler = RecordingHandler()
        quiet_logger.logger.addHandler(handler)
        quiet_logger.set_level(logging.DEBUG)
        try:
            with pytest.raises(ValueError):
                GeoQueryService(YamlCountryStore(path), logger=quiet_logger).list_countries()
        finally:
            quiet_logger.logger.removeHandler(handler)

        assert handler.events() == [LogEvent.STORAGE_ERROR.value]


# ════════════════════════════════════════════════════════════════
#  Configuration
# ════════════════════════════════════════════════════════════════

def write_config(tmp_path, body, countries="countries: []\n"):
    (tmp_path / "countries.yaml").write_text(countries)
    path = tmp_path / "service.yaml"
    path.write_text(body)
    return path


class TestServiceConfig:

    def test_sample_config(self, sample_config, sample_countries):
        config = ServiceConfig.from_yaml(sample_config)

        assert config.service_id == "geo_01"
        assert config.catalog.path.resolve() == sample_countries.resolve()
        assert config.geometry.epsilon == 1e-9
        assert config.mqtt_config.request_topic == "geoapi/geo_01/requests"
        assert config.mqtt_config.status_topic == "geoapi/geo_01/status"
        assert config.log_level_value == logging.INFO

    def test_relative_catalog_path(self, tmp_path):
        path = write_config(tmp_path, "service_id: s1\ncatalog:\n  path: countries.yaml\n")
        config = ServiceConfig.from_yaml(path)
        assert config.catalog.path == tmp_path / "countries.yaml"
        assert config.geometry == GeometryConfig()
        assert config.mqtt_config.response_topic == "geoapi/s1/responses"

    def test_epsilon_written_without_dot(self, tmp_path):
        path = write_config(
            tmp_path,
            "service_id: s1\ncatalog: {path: countries.yaml}\ngeometry: {epsilon: 1e-6}\n",
        )
        assert ServiceConfig.from_yaml(path).geometry.epsilon == 1e-6

    def test_catalog_path_required(self, tmp_path):
        path = write_config(tmp_path, "service_id: s1\ncatalog: {}\n")
        with pytest.raises(ValueError):
            ServiceConfig.from_yaml(path)

    def test_missing_catalog_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CatalogConfig(path=tmp_path / "missing.yaml")

    def test_catalog_path_is_directory(self, tmp_path):
        with pytest.raises(ValueError):
            CatalogConfig(path=tmp_path)

    @pytest.mark.parametrize("epsilon", [-1e-9, 1.0, "abc"])
    def test_invalid_epsilon(self, epsilon):
        with pytest.raises(ValueError):
            GeometryConfig(epsilon=epsilon)

    @pytest.mark.parametrize("kwargs", [{"port": 0}, {"port": 70000}, {"qos": 3}])
    def test_invalid_mqtt(self, kwargs):
        with pytest.raises(ValueError):
            MQTTConfig(**kwargs)

    def test_invalid_service(self, tmp_path):
        (tmp_path / "countries.yaml").write_text("countries: []\n")
        catalog = CatalogConfig(path=tmp_path / "countries.yaml")
        with pytest.raises(ValueError):
            ServiceConfig(service_id="", catalog=catalog)
        with pytest.raises(ValueError):
            ServiceConfig(service_id="s1", catalog=catalog, log_level="LOUD")
