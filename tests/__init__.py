"""GeoAPI test suite."""
