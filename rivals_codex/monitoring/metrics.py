from prometheus_client import Counter


INGEST_ITEMS = Counter(
    "ingest_items_total",
    "Items handled by an ingestion pass",
    ["pass_name", "outcome"],
)
INGEST_ABILITIES = Counter("ingest_abilities_total", "Abilities written to the sink")


def record_item(pass_name: str, outcome: str) -> None:
    INGEST_ITEMS.labels(pass_name=pass_name, outcome=outcome).inc()


def record_abilities(count: int) -> None:
    INGEST_ABILITIES.inc(count)
