import time

from prometheus_client import start_http_server

from rivals_codex.config import Settings
from rivals_codex.monitoring.logging_utils import get_event_logger

log_event = get_event_logger("metrics")


def run_metrics_server(port: int | None = None) -> None:
    """Serve the ingest pass counters until the process is stopped."""
    port = port or Settings.metrics_port
    start_http_server(port)
    log_event("metrics_up", port=port, path="/metrics")
    while True:
        time.sleep(1)
