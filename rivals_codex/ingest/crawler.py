import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
import logging
from typing import Awaitable, Callable
from urllib.parse import quote

import aiohttp

from rivals_codex.config import NewsFeed, Settings
from rivals_codex.extract.abilities import extract_abilities
from rivals_codex.extract.lore import extract_lore
from rivals_codex.extract.news import parse_news_listing
from rivals_codex.extract.roster import parse_roster
from rivals_codex.extract.stats import extract_stats
from rivals_codex.ingest.etl import parse_document
from rivals_codex.ingest.robots import is_allowed
from rivals_codex.monitoring.logging_utils import get_event_logger
from rivals_codex.monitoring.metrics import record_abilities, record_item
from rivals_codex.storage.redis_sink import RedisSink
from rivals_codex.storage.sink import RecordSink, SinkError


@dataclass
class CrawlResult:
    url: str
    status: int
    html: str


@dataclass
class RunSummary:
    pass_name: str
    total: int = 0
    written: int = 0
    skipped: int = 0
    failed: int = 0

    def mark(self, outcome: str) -> None:
        if outcome == "written":
            self.written += 1
        elif outcome == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        record_item(self.pass_name, outcome)


log_event = get_event_logger("crawler")

WARN = logging.WARNING


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def build_character_url(name: str, base_url: str | None = None) -> str:
    # Same escaping as encodeURIComponent, which the wiki's own links use.
    encoded = quote(name.replace(" ", "_"), safe="!*'()")
    return f"{base_url or Settings.wiki_base_url}{encoded}"


async def fetch_html(
    session: aiohttp.ClientSession, url: str
) -> tuple[CrawlResult | None, Exception | None]:
    timeout = aiohttp.ClientTimeout(total=Settings.request_timeout_s)
    try:
        async with session.get(url, timeout=timeout) as response:
            # Mislabelled charsets still parse; undecodable bytes become U+FFFD
            html = await response.text(errors="replace")
            return CrawlResult(url=url, status=response.status, html=html), None
    except (aiohttp.ClientError, asyncio.TimeoutError, LookupError) as exc:
        return None, exc


async def fetch_page(
    session: aiohttp.ClientSession,
    url: str,
    summary: RunSummary,
    **context: object,
) -> CrawlResult | None:
    """Gate check then fetch; logs and counts the item when either step fails."""
    if not await is_allowed(session, url):
        log_event("deny", level=WARN, url=url, reason="robots", **context)
        summary.mark("skipped")
        return None

    result, fetch_error = await fetch_html(session, url)
    if result is None or not 200 <= result.status < 300:
        log_payload: dict[str, object] = {
            "url": url,
            "status": result.status if result else "error",
            **context,
        }
        if fetch_error is not None:
            log_payload["error"] = str(fetch_error)
            log_payload["error_type"] = type(fetch_error).__name__
        log_event("fail", level=WARN, **log_payload)
        summary.mark("failed")
        return None
    log_event("fetched", url=url, status=result.status, **context)
    return result


async def _load_roster(sink: RecordSink, summary: RunSummary) -> list[tuple[str, str]]:
    try:
        characters = await sink.list_characters()
    except SinkError as exc:
        log_event("sink_fail", level=logging.ERROR, pass_name=summary.pass_name, error=exc)
        summary.mark("failed")
        return []
    if not characters:
        log_event("empty", level=WARN, pass_name=summary.pass_name, reason="no_characters")
    return characters


async def run_news_pass(
    session: aiohttp.ClientSession,
    sink: RecordSink,
    feeds: list[NewsFeed] | None = None,
) -> RunSummary:
    summary = RunSummary("news")
    for feed in feeds if feeds is not None else Settings.news_feeds:
        summary.total += 1
        log_event("pick", url=feed.url, feed=feed.feed_type)
        result = await fetch_page(session, feed.url, summary, feed=feed.feed_type)
        if result is None:
            continue
        listing = parse_news_listing(
            parse_document(result.html), feed.feed_type, Settings.game_id, utc_now()
        )
        for reason in listing.skipped:
            log_event("skip", level=WARN, url=feed.url, reason=reason)
            summary.mark("skipped")
        if not listing.items:
            log_event("miss", level=WARN, url=feed.url, field="news_items")
            continue
        for item in listing.items:
            try:
                created = await sink.upsert_news(item)
            except SinkError as exc:
                log_event("sink_fail", level=logging.ERROR, url=item.url, error=exc)
                summary.mark("failed")
                continue
            log_event("stored", url=item.url, feed=item.type, new=created)
            summary.mark("written")
    log_event("done", **summary.__dict__)
    return summary


async def run_roster_pass(
    session: aiohttp.ClientSession,
    sink: RecordSink,
    roster_url: str | None = None,
) -> RunSummary:
    summary = RunSummary("roster")
    url = roster_url or Settings.roster_url
    summary.total += 1
    log_event("pick", url=url)
    result = await fetch_page(session, url, summary)
    if result is None:
        return summary
    listing = parse_roster(parse_document(result.html))
    for reason in listing.skipped:
        log_event("skip", level=WARN, url=url, reason=reason)
        summary.mark("skipped")
    if not listing.characters:
        log_event("miss", level=WARN, url=url, field="roster")
    now = utc_now()
    for character in listing.characters:
        try:
            created = await sink.upsert_character(character, now)
        except SinkError as exc:
            log_event("sink_fail", level=logging.ERROR, id=character.id, error=exc)
            summary.mark("failed")
            continue
        log_event(
            "stored", id=character.id, name=character.name, category=character.category, new=created
        )
        summary.mark("written")
    log_event("done", **summary.__dict__)
    return summary


async def run_lore_pass(session: aiohttp.ClientSession, sink: RecordSink) -> RunSummary:
    summary = RunSummary("lore")
    for character_id, name in await _load_roster(sink, summary):
        summary.total += 1
        url = build_character_url(name)
        log_event("pick", id=character_id, name=name, url=url)
        result = await fetch_page(session, url, summary, name=name)
        if result is None:
            continue
        document = parse_document(result.html)
        lore = extract_lore(document)
        if lore.text is None:
            log_event("miss", level=WARN, name=name, url=url, field="lore", reason=lore.missing_reason)
        extraction = extract_stats(document)
        for field_name, reason in extraction.misses.items():
            log_event("miss", level=WARN, name=name, url=url, field=field_name, reason=reason)
        try:
            await sink.update_profile(character_id, extraction.stats, lore.text, utc_now())
        except SinkError as exc:
            log_event("sink_fail", level=logging.ERROR, name=name, error=exc)
            summary.mark("failed")
            continue
        log_event(
            "stored",
            name=name,
            health=extraction.stats.health,
            difficulty=extraction.stats.difficulty,
            lore_chars=len(lore.text or ""),
        )
        summary.mark("written")
    log_event("done", **summary.__dict__)
    return summary


async def _store_abilities(
    sink: RecordSink, summary: RunSummary, character_id: str, name: str, url: str, html: str
) -> None:
    extraction = extract_abilities(parse_document(html), character_id)
    log_event("layout", name=name, layout=extraction.layout.value)
    for reason in extraction.failures:
        log_event("bad_ability", level=WARN, name=name, url=url, reason=reason)
    if not extraction.abilities:
        log_event("miss", level=WARN, name=name, url=url, field="abilities")
        summary.mark("skipped")
        return
    try:
        count = await sink.replace_abilities(character_id, extraction.abilities)
    except SinkError as exc:
        log_event("sink_fail", level=logging.ERROR, name=name, error=exc)
        summary.mark("failed")
        return
    record_abilities(count)
    log_event("stored", name=name, abilities=count)
    summary.mark("written")


async def run_ability_pass(session: aiohttp.ClientSession, sink: RecordSink) -> RunSummary:
    summary = RunSummary("abilities")
    for character_id, name in await _load_roster(sink, summary):
        summary.total += 1
        url = build_character_url(name)
        log_event("pick", id=character_id, name=name, url=url)
        result = await fetch_page(session, url, summary, name=name)
        if result is None:
            continue
        await _store_abilities(sink, summary, character_id, name, url, result.html)
        await asyncio.sleep(Settings.ability_pause_s)
    log_event("done", **summary.__dict__)
    return summary


PassRunner = Callable[[aiohttp.ClientSession, RecordSink], Awaitable[RunSummary]]

PASSES: dict[str, PassRunner] = {
    "news": run_news_pass,
    "roster": run_roster_pass,
    "lore": run_lore_pass,
    "abilities": run_ability_pass,
}


async def run_pass(name: str, sink: RecordSink | None = None) -> RunSummary:
    if sink is None:
        owned = RedisSink.from_settings()
        try:
            return await run_pass(name, owned)
        finally:
            await owned.aclose()
    runner = PASSES[name]
    async with aiohttp.ClientSession(
        headers={"User-Agent": Settings.user_agent}
    ) as session:
        return await runner(session, sink)


async def run_all_passes(sink: RecordSink | None = None) -> list[RunSummary]:
    if sink is None:
        owned = RedisSink.from_settings()
        try:
            return await run_all_passes(owned)
        finally:
            await owned.aclose()
    return [await run_pass(name, sink) for name in PASSES]
