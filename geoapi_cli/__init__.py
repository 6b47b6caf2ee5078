"""
GeoAPI CLI - Command-line interface for country lookups.

Usage:
    geoapi-cli find --lat 48.85 --lon 2.35
    geoapi-cli check FR --lat 48.85 --lon 2.35
    geoapi-cli countries
    geoapi-cli --catalog data/countries.yaml find --lat 5 --lon 5
"""

__version__ = "1.0.0"
