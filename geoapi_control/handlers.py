"""
Query handlers - request parsing and wiring of GeoQueryService operations.

Each handler receives the decoded request payload and returns a
JSON-compatible result. Invalid payloads raise InvalidRequestError, which
the transport reports back to the caller.
"""

import math
from numbers import Real
from typing import Any, Dict, Tuple

from geoapi_service import GeoQueryService

from .registry import QueryRegistry


POINT_HINT = "Invalid request! Please provide 'latitude' and 'longitude'."
COUNTRY_POINT_HINT = "Invalid request! Please provide 'country', 'latitude', and 'longitude'."
COUNTRY_HINT = "Invalid request! Please provide 'country'."


class InvalidRequestError(ValueError):
    """Raised when a request payload is missing or has malformed fields."""
    pass


def _number(payload: Dict[str, Any], key: str, hint: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise InvalidRequestError(hint)
    return float(value)


def parse_point(payload: Dict[str, Any], hint: str = POINT_HINT) -> Tuple[float, float]:
    """
    Extract (latitude, longitude) from a request payload.

    Raises:
        InvalidRequestError: If either value is missing or not a finite number
    """
    return _number(payload, "latitude", hint), _number(payload, "longitude", hint)


def parse_country(payload: Dict[str, Any], hint: str = COUNTRY_HINT) -> str:
    """
    Extract the country identifier from a request payload.

    Raises:
        InvalidRequestError: If 'country' is missing or not a non-empty string
    """
    country = payload.get("country")
    if not isinstance(country, str) or not country:
        raise InvalidRequestError(hint)
    return country


def register_queries(registry: QueryRegistry, service: GeoQueryService) -> None:
    """
    Register every service query on the registry.

    Queries:
        health, find_country, find_all_countries, check_country,
        get_country, list_countries
    """

    def find_country(payload):
        latitude, longitude = parse_point(payload)
        return service.find_country(latitude, longitude).to_dict()

    def find_all_countries(payload):
        latitude, longitude = parse_point(payload)
        return service.find_all_countries(latitude, longitude).to_dict()

    def check_country(payload):
        country = parse_country(payload, COUNTRY_POINT_HINT)
        latitude, longitude = parse_point(payload, COUNTRY_POINT_HINT)
        return service.check_country(country, latitude, longitude).to_dict()

    def get_country(payload):
        return service.get_country(parse_country(payload)).to_dict()

    registry.register('health', lambda payload: service.health(), "Liveness check")
    registry.register('find_country', find_country, "First country containing a point")
    registry.register(
        'find_all_countries', find_all_countries, "Every country containing a point"
    )
    registry.register('check_country', check_country, "Is a point inside a given country")
    registry.register('get_country', get_country, "Stored document for a country")
    registry.register(
        'list_countries', lambda payload: service.list_countries(), "Names of all countries"
    )
