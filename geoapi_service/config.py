"""
Configuration schema for the GeoAPI query service.

This module defines the configuration structure for the service: geometry
policy, catalog source, MQTT transport settings and logging.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from geoapi_geometry import DEFAULT_EPSILON


@dataclass(frozen=True)
class GeometryConfig:
    """Containment policy."""

    epsilon: float = DEFAULT_EPSILON  # boundary tolerance, degrees
    include_boundary: bool = True  # ON_BOUNDARY counts as contained
    bbox_prefilter: bool = True

    def __post_init__(self):
        """Validate geometry configuration."""
        # YAML reads "1e-9" (no dot) as a string
        object.__setattr__(self, "epsilon", float(self.epsilon))
        if not 0.0 <= self.epsilon < 1.0:
            raise ValueError(
                f"epsilon must be in [0.0, 1.0) degrees, got {self.epsilon}"
            )


@dataclass(frozen=True)
class CatalogConfig:
    """Country catalog source (YAML/JSON document)."""

    path: Path
    cache_snapshots: bool = True  # rebuild only when the file changes

    def __post_init__(self):
        """Validate catalog configuration."""
        object.__setattr__(self, "path", Path(self.path))

        if not self.path.exists():
            raise FileNotFoundError(
                f"Countries file not found: {self.path}\n"
                f"Create it or update 'catalog.path' in config"
            )

        if not self.path.is_file():
            raise ValueError(
                f"catalog.path must be a file, got directory: {self.path}"
            )


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1  # Queries and replies: at-least-once

    request_topic: str = "geoapi/{service_id}/requests"
    response_topic: str = "geoapi/{service_id}/responses"
    status_topic: str = "geoapi/{service_id}/status"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

    def topics_for(self, service_id: str) -> "MQTTConfig":
        """Copy with {service_id} substituted in every topic."""
        return MQTTConfig(
            broker=self.broker,
            port=self.port,
            username=self.username,
            password=self.password,
            qos=self.qos,
            request_topic=self.request_topic.format(service_id=service_id),
            response_topic=self.response_topic.format(service_id=service_id),
            status_topic=self.status_topic.format(service_id=service_id),
        )


@dataclass(frozen=True)
class ServiceConfig:
    """
    Main configuration for the query service.

    Loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass).
    """

    service_id: str
    catalog: CatalogConfig
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate service configuration."""
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log_level: {self.log_level}")

        # Resolve topic templates once
        object.__setattr__(self, "mqtt_config", self.mqtt_config.topics_for(self.service_id))

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level.upper())

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ServiceConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "geo_01"
            log_level: "INFO"

            catalog:
              path: "./data/countries.yaml"
              cache_snapshots: true

            geometry:
              epsilon: 1.0e-9
              include_boundary: true
              bbox_prefilter: true

            mqtt_config:
              broker: "localhost"
              port: 1883
              username: null
              password: null

        A relative catalog path is resolved against the YAML file's directory.
        """
        yaml_path = Path(yaml_path)
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        catalog_data = dict(data.get("catalog") or {})
        if "path" not in catalog_data:
            raise ValueError(f"{yaml_path}: 'catalog.path' is required")
        catalog_path = Path(catalog_data.pop("path"))
        if not catalog_path.is_absolute():
            catalog_path = yaml_path.parent / catalog_path
        catalog = CatalogConfig(path=catalog_path, **catalog_data)

        geometry = GeometryConfig(**(data.get("geometry") or {}))
        mqtt_config = MQTTConfig(**(data.get("mqtt_config") or {}))

        return cls(
            service_id=data["service_id"],
            catalog=catalog,
            geometry=geometry,
            mqtt_config=mqtt_config,
            log_level=data.get("log_level", "INFO"),
        )
