# ==============================================================================
# metrics.py  –  Prometheus metrics for ingestion runs
#
# Labels `instance` / `job` come from INSTANCE_NAME / JOB_NAME.
# The HTTP exporter is only started when a port is configured.
# ==============================================================================

from __future__ import annotations

import os

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from knightcoach.utils.logging_utils import setup_logger

LOGGER = setup_logger("metrics")

INSTANCE = os.getenv("INSTANCE_NAME", "knightcoach:8000")
JOB = os.getenv("JOB_NAME", "knightcoach")

GAMES_PARSED = Counter(
    "knightcoach_games_parsed_total",
    "Games parsed from fetched PGN exports",
    ["instance", "job"],
)

GAMES_ADDED = Counter(
    "knightcoach_history_games_added_total",
    "Games added to the persisted history",
    ["instance", "job"],
)

HISTORY_SIZE = Gauge(
    "knightcoach_history_games",
    "Number of games in the persisted history",
    ["instance", "job"],
)

FETCH_DURATION = Histogram(
    "knightcoach_fetch_duration_seconds",
    "Duration of game export downloads",
    ["instance", "job"],
)


def labels(metric):
    """Return `metric` bound to this process's instance / job labels."""
    return metric.labels(instance=INSTANCE, job=JOB)


def start_metrics_server(port: int) -> None:
    """Expose metrics on `port`; failure is logged, the run continues."""
    try:
        start_http_server(port)
        LOGGER.info("Metrics server listening on port %d", port)
    except OSError as exc:
        LOGGER.error("Failed to start metrics server on port %d: %s", port, exc)
