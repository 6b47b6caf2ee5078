"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging.

Event Naming Convention:
    <component>.<category>[.<action>]

    component: catalog, query, resolver, error

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.country_id
    | filter event = "catalog.entry_rejected"
    | stats count() by metadata.country_id
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - catalog.*: Catalog snapshot construction
    - query.*: Query handling in the service facade
    - resolver.*: Catalog scans
    - error.*: Error conditions
    """

    # ========== Catalog Events ==========
    CATALOG_LOADED = "catalog.loaded"
    """Catalog snapshot built from storage records."""

    CATALOG_CACHE_HIT = "catalog.cache_hit"
    """Cached catalog snapshot reused (storage version unchanged)."""

    CATALOG_ENTRY_REJECTED = "catalog.entry_rejected"
    """Storage record skipped because its geometry could not be built."""

    CATALOG_CONFLICT = "catalog.conflict"
    """Duplicate country identifier in one storage snapshot."""

    # ========== Query Events ==========
    QUERY_RECEIVED = "query.received"
    """Query accepted by the service facade."""

    QUERY_RESOLVED = "query.resolved"
    """Query matched at least one country."""

    QUERY_NO_MATCH = "query.no_match"
    """Query matched no country."""

    # ========== Resolver Events ==========
    RESOLVER_ENTRY_FAILED = "resolver.entry_failed"
    """One catalog entry failed during a scan; scan continued."""

    # ========== Error Events ==========
    UNKNOWN_COUNTRY_ERROR = "error.unknown_country"
    """Requested country identifier absent from storage."""

    STORAGE_ERROR = "error.storage"
    """Storage collaborator failed to return records."""


CATALOG_EVENTS = {
    LogEvent.CATALOG_LOADED,
    LogEvent.CATALOG_CACHE_HIT,
    LogEvent.CATALOG_ENTRY_REJECTED,
    LogEvent.CATALOG_CONFLICT,
}

QUERY_EVENTS = {
    LogEvent.QUERY_RECEIVED,
    LogEvent.QUERY_RESOLVED,
    LogEvent.QUERY_NO_MATCH,
    LogEvent.RESOLVER_ENTRY_FAILED,
}

ERROR_EVENTS = {
    LogEvent.UNKNOWN_COUNTRY_ERROR,
    LogEvent.STORAGE_ERROR,
}
