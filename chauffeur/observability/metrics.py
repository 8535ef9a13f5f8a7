"""Prometheus metrics for Chauffeur.

Tracks reconciliation passes, per-waypoint decisions and coordinate
repairs.
"""

from prometheus_client import Counter, Histogram, start_http_server

RECONCILIATION_COUNT = Counter(
    "chauffeur_reconciliation_count_total",
    "Total number of reconciliation passes",
    labelnames=["outcome"],
)

RECONCILIATION_LATENCY = Histogram(
    "chauffeur_reconciliation_latency_seconds",
    "Latency of a full reconciliation pass, geocoding repair included",
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

WAYPOINT_DECISIONS = Counter(
    "chauffeur_waypoint_decisions_total",
    "Waypoint decisions emitted by reconciliation",
    labelnames=["action"],
)

GEOCODE_REPAIRS = Counter(
    "chauffeur_geocode_repairs_total",
    "Coordinate repair attempts by outcome",
    labelnames=["reason", "outcome"],
)

GEOCODE_LATENCY = Histogram(
    "chauffeur_geocode_latency_seconds",
    "Latency of individual geocoding lookups",
    labelnames=["provider"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)


def setup_metrics(enabled: bool = True, port: int = 9090) -> bool:
    """Expose the metrics over HTTP for scraping.

    Args:
        enabled: Whether to start the exporter at all
        port: Port for the Prometheus exporter

    Returns:
        True if the exporter was started
    """
    if not enabled:
        return False
    start_http_server(port)
    return True


def setup_metrics_from_settings() -> bool:
    """Start the exporter according to the observability settings."""
    from chauffeur.config import get_settings

    metrics_config = get_settings().observability.metrics
    return setup_metrics(enabled=metrics_config.enabled, port=metrics_config.port)
