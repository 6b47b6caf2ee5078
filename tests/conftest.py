"""Global test fixtures for geoapi."""

from pathlib import Path

import pytest

from geoapi_catalog import CountryRecord, GeoPoint, InMemoryCountryStore
from geoapi_geometry import PolygonBuilder
from geoapi_logging import create_logger
from tests.fixtures import square


REPO_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def sample_countries():
    """Countries file shipped in data/."""
    return REPO_ROOT / "data" / "countries.yaml"


@pytest.fixture
def sample_config():
    """Server config shipped in config/."""
    return REPO_ROOT / "config" / "geo_server.yaml"


# ============================================================================
# GEOMETRY
# ============================================================================


@pytest.fixture
def testland_coordinates():
    """TESTLAND corners as stored: (0,0), (0,10), (10,10), (10,0)."""
    return [
        {"longitude": 0.0, "latitude": 0.0},
        {"longitude": 0.0, "latitude": 10.0},
        {"longitude": 10.0, "latitude": 10.0},
        {"longitude": 10.0, "latitude": 0.0},
    ]


@pytest.fixture
def testland(testland_coordinates):
    return PolygonBuilder.build(testland_coordinates)


@pytest.fixture
def lakeland():
    """Square (-30..-10, -10..10) with a square hole (-25..-15, -5..5)."""
    return PolygonBuilder.build(
        square(-30, -10, -10, 10),
        holes=[square(-25, -5, -15, 5)],
    )


# ============================================================================
# STORAGE
# ============================================================================


@pytest.fixture
def records(testland_coordinates):
    """TL and EL do not overlap; BR overlaps TL's north-east quarter."""
    return [
        CountryRecord("TL", "Testland", testland_coordinates),
        CountryRecord(
            "EL",
            "Eastland",
            [
                GeoPoint(latitude=0, longitude=20),
                GeoPoint(latitude=10, longitude=20),
                GeoPoint(latitude=10, longitude=30),
                GeoPoint(latitude=0, longitude=30),
            ],
            data={"id": "EL", "name": "Eastland", "capital": GeoPoint(latitude=5, longitude=25)},
        ),
        CountryRecord("BR", "Borderland", square(5, 5, 15, 15)),
    ]


@pytest.fixture
def store(records):
    return InMemoryCountryStore(records)


@pytest.fixture
def quiet_logger(request):
    """Structured logger with a per-test name (keeps handlers isolated)."""
    return create_logger(f"test.{request.node.name}", level=50)
