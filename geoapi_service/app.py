"""
GeoAPI Server - Entry Point
===========================

Starts the GeoAPI query service, which:
- Loads the country catalog from a YAML/JSON document
- Answers point-in-country queries received over MQTT
- Publishes retained status on the status topic

Usage:
    geoapi-server --config config/geo_server.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create GeoQueryService and warm the catalog snapshot
    4. Create query plane and register queries
    5. Connect to broker
    6. Wait for stop signal (Ctrl+C or SIGTERM)
    7. Graceful shutdown
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event
from typing import Optional

from geoapi_catalog import YamlCountryStore
from geoapi_control import MQTTQueryPlane, register_queries
from geoapi_logging import create_logger
from geoapi_service.config import ServiceConfig
from geoapi_service.service import GeoQueryService


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Setup root logging for the server process.

    Args:
        log_file: Optional path to log file
        level: Root log level
    """
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class GeoServerApp:
    """
    Application wrapper for GeoQueryService behind an MQTT query plane.

    Handles:
    - Configuration loading
    - Component initialization (store, service, query plane)
    - Signal handling (SIGTERM, SIGINT)
    - Graceful shutdown
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None):
        self.config_path = config_path
        self.log_file = log_file
        self.logger = setup_logging(log_file)

        # Components (initialized in setup())
        self.config: Optional[ServiceConfig] = None
        self.service: Optional[GeoQueryService] = None
        self.query_plane: Optional[MQTTQueryPlane] = None

        self._stop = Event()
        self._shutdown_requested = False

    def setup(self) -> None:
        """
        Setup all components.

        Steps:
        1. Load configuration from YAML
        2. Create GeoQueryService over a YamlCountryStore
        3. Warm the catalog snapshot (surfaces rejected countries at startup)
        4. Create query plane and register queries
        """
        self.logger.info("=" * 80)
        self.logger.info("🚀 GeoAPI Server - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = ServiceConfig.from_yaml(self.config_path)
        logging.getLogger().setLevel(self.config.log_level_value)
        self.logger.info(f"✅ Configuration loaded (service_id={self.config.service_id})")

        self.service = GeoQueryService(
            store=YamlCountryStore(self.config.catalog.path),
            geometry=self.config.geometry,
            cache_snapshots=self.config.catalog.cache_snapshots,
            logger=create_logger("service", level=self.config.log_level_value).bind(
                service_id=self.config.service_id
            ),
        )
        catalog = self.service.current_catalog()
        self.logger.info(f"🗺️  Catalog ready: {len(catalog)} countries ({self.config.catalog.path})")

        mqtt_config = self.config.mqtt_config
        self.query_plane = MQTTQueryPlane(
            broker_host=mqtt_config.broker,
            broker_port=mqtt_config.port,
            request_topic=mqtt_config.request_topic,
            response_topic=mqtt_config.response_topic,
            status_topic=mqtt_config.status_topic,
            client_id=f"geoapi_{self.config.service_id}",
            username=mqtt_config.username,
            password=mqtt_config.password,
            qos=mqtt_config.qos,
        )
        register_queries(self.query_plane.query_registry, self.service)
        self.logger.info(f"  - Request topic: {mqtt_config.request_topic}")
        self.logger.info(f"  - Response topic: {mqtt_config.response_topic}")
        self.logger.info("=" * 80)

    def run(self) -> None:
        """
        Connect and serve. Blocks until shutdown is requested.
        """
        if not self.query_plane:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        if not self.query_plane.connect(timeout=5.0):
            raise ConnectionError(
                f"Unable to connect to MQTT broker at "
                f"{self.query_plane.broker_host}:{self.query_plane.broker_port}"
            )

        self.logger.info("✅ Server started successfully")
        self.logger.info("Press Ctrl+C to stop")

        try:
            self._stop.wait()
        except KeyboardInterrupt:
            self.logger.info("⚠️  KeyboardInterrupt received")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Graceful shutdown (idempotent)."""
        if self._shutdown_requested:
            return
        self._shutdown_requested = True

        self.logger.info("🛑 Shutting down GeoAPI server")
        if self.query_plane:
            self.query_plane.disconnect()
        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"⚠️  Received signal {signal_name} ({signum})")
        self._stop.set()


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="GeoAPI Server - country lookup over MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  geoapi-server --config config/geo_server.yaml
  geoapi-server --config config/geo_server.yaml --no-log-file
        """
    )
    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to server configuration YAML file'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/geo_server.log'),
        help='Path to log file (default: logs/geo_server.log)'
    )
    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    log_file = None if args.no_log_file else args.log_file

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = GeoServerApp(config_path=args.config, log_file=log_file)
    try:
        app.setup()
        app.run()
    except (OSError, ValueError) as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
