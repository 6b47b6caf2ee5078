"""
GeoAPI CLI - Main entry point.

Sends point-in-country queries to the GeoAPI server over MQTT, or answers
them in-process against a countries file with --catalog.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from geoapi_catalog import YamlCountryStore
from geoapi_control import QueryRegistry, register_queries
from geoapi_logging import create_logger
from geoapi_service import GeoQueryService

from .mqtt_client import MQTTQueryClient


# CLI subcommand -> server query name
QUERY_NAMES = {
    "health": "health",
    "find": "find_country",
    "find-all": "find_all_countries",
    "check": "check_country",
    "country": "get_country",
    "countries": "list_countries",
}


def build_query(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate parsed CLI arguments into a request payload.

    Returns:
        Request dict, e.g. {"query": "find_country", "latitude": 1.0, "longitude": 2.0}
    """
    query: Dict[str, Any] = {"query": QUERY_NAMES[args.command]}

    if getattr(args, "country", None) is not None:
        query["country"] = args.country
    if getattr(args, "lat", None) is not None:
        query["latitude"] = args.lat
        query["longitude"] = args.lon

    return query


def run_local(query: Dict[str, Any], catalog_path: Path) -> Any:
    """
    Answer a query in-process against a countries file.

    Raises:
        QueryNotAvailableError, InvalidRequestError: Bad query
        FileNotFoundError, ValueError: Unreadable countries file
    """
    service = GeoQueryService(
        store=YamlCountryStore(catalog_path),
        logger=create_logger("cli", level=logging.WARNING),
    )
    registry = QueryRegistry()
    register_queries(registry, service)
    return registry.execute(query["query"], query)


def run_remote(
    query: Dict[str, Any],
    service_id: str = "geo_01",
    broker: str = "localhost",
    port: int = 1883,
    timeout: float = 5.0
) -> Any:
    """
    Send a query to the server and return its result.

    Raises:
        RuntimeError: If the server replied with an error
    """
    topic = f"geoapi/{service_id}/requests"
    reply = MQTTQueryClient(broker=broker, port=port).request(topic, query, timeout=timeout)

    if not reply.get("ok"):
        error = reply.get("error") or {}
        raise RuntimeError(error.get("message", "Unknown server error"))
    return reply.get("result")


def render(result: Any) -> str:
    """Human-readable rendering of a query result."""
    if isinstance(result, dict):
        if "data" in result:
            return json.dumps(result["data"], indent=2, sort_keys=True)
        return str(result.get("message", json.dumps(result)))
    if isinstance(result, list):
        return "\n".join(str(item) for item in result)
    return str(result)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="GeoAPI CLI - Which country contains a point?",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Query a running server over MQTT
  geoapi-cli find --lat 48.85 --lon 2.35
  geoapi-cli check FR --lat 48.85 --lon 2.35
  geoapi-cli countries

  # Answer locally from a countries file (no broker needed)
  geoapi-cli --catalog data/countries.yaml find --lat 5 --lon 5
  geoapi-cli --catalog data/countries.yaml country TL
"""
    )

    # Global arguments
    parser.add_argument(
        "--service-id",
        default="geo_01",
        help="Target service ID (default: geo_01)"
    )
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Seconds to wait for a reply (default: 5.0)"
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="Answer locally from this countries YAML/JSON file instead of MQTT"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available queries")

    def add_point(sub):
        sub.add_argument("--lat", type=float, required=True, help="Latitude (degrees)")
        sub.add_argument("--lon", type=float, required=True, help="Longitude (degrees)")

    add_point(subparsers.add_parser("find", help="First country containing a point"))
    add_point(subparsers.add_parser("find-all", help="Every country containing a point"))

    check = subparsers.add_parser("check", help="Is a point inside a given country")
    check.add_argument("country", help="Country identifier (e.g. FR)")
    add_point(check)

    country = subparsers.add_parser("country", help="Show a country's stored document")
    country.add_argument("country", help="Country identifier (e.g. FR)")

    subparsers.add_parser("countries", help="List country names")
    subparsers.add_parser("health", help="Health check")

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    query = build_query(args)
    try:
        if args.catalog is not None:
            result = run_local(query, args.catalog)
        else:
            result = run_remote(query, args.service_id, args.broker, args.port, args.timeout)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    print(render(result))
    return 0


if __name__ == '__main__':
    sys.exit(main())
