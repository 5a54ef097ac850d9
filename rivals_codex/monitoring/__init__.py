"""Monitoring subpackage: observability components."""

from rivals_codex.monitoring.logging_utils import get_event_logger, get_logger, log_event
from rivals_codex.monitoring.metrics import (
    INGEST_ABILITIES,
    INGEST_ITEMS,
    record_abilities,
    record_item,
)
from rivals_codex.monitoring.metrics_server import run_metrics_server

__all__ = [
    # metrics
    "INGEST_ABILITIES",
    "INGEST_ITEMS",
    "record_abilities",
    "record_item",
    # logging
    "get_event_logger",
    "get_logger",
    "log_event",
    # metrics_server
    "run_metrics_server",
]
