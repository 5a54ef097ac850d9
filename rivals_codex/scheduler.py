import asyncio
from datetime import datetime, timedelta, timezone
import logging

from rivals_codex.config import Settings
from rivals_codex.ingest.crawler import run_all_passes
from rivals_codex.monitoring.logging_utils import get_event_logger
from rivals_codex.storage.sink import RecordSink

log_event = get_event_logger("scheduler")


def parse_run_at(value: str) -> tuple[int, int]:
    hour_text, _, minute_text = value.strip().partition(":")
    hour, minute = int(hour_text), int(minute_text or 0)
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Invalid schedule time: {value!r}")
    return hour, minute


def next_run_after(now: datetime, run_at: str) -> datetime:
    hour, minute = parse_run_at(run_at)
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


async def run_daily(run_at: str | None = None, sink: RecordSink | None = None) -> None:
    """Run every pass once a day at ``run_at`` (UTC, ``HH:MM``); never returns."""
    run_at = run_at or Settings.schedule_at
    while True:
        now = datetime.now(timezone.utc)
        next_run = next_run_after(now, run_at)
        log_event("sleep", until=next_run.isoformat(timespec="minutes"))
        await asyncio.sleep((next_run - now).total_seconds())
        try:
            summaries = await run_all_passes(sink)
        except Exception:
            logging.getLogger("scheduler").exception("Scheduled run aborted")
            continue
        for summary in summaries:
            log_event("finished", **summary.__dict__)
