#!/usr/bin/env python3
"""
GeoAPI Server - Entry Point
===========================

Usage:
    python run_geo_server.py --config config/geo_server.yaml

See geoapi_service/app.py for the lifecycle.
"""

from geoapi_service.app import main


if __name__ == '__main__':
    main()
