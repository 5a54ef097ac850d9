import itertools

import aiohttp
from aiohttp import web
from aiohttp.test_utils import TestServer
import pytest

from rivals_codex.config import NewsFeed, Settings
from rivals_codex.extract.roster import CharacterIdentity
from rivals_codex.ingest import crawler
from rivals_codex.ingest.crawler import (
    CrawlResult,
    build_character_url,
    run_ability_pass,
    run_lore_pass,
    run_news_pass,
    run_roster_pass,
)
from rivals_codex.storage.sink import InMemorySink, SinkError

BASE = "https://wiki.test/wiki/"

CURRENT_PAGE = """
<table class="wikitable skill-table"><tbody>
<tr><td><img title="Left mouse button"></td><td></td><td>web strike</td></tr>
<tr><td colspan="3"><small><i>Fires a web.</i></small><b>Cooldown - 6s</b></td></tr>
<tr><td>E</td><td></td><td>web swing</td></tr>
</tbody></table>
<div data-source="health"><div class="pi-data-value">250</div></div>
<div data-source="difficulty"><img alt="StarFull"><img alt="StarFull"><img alt="StarEmpty"></div>
<blockquote><p>Friendly neighborhood hero.</p><p>— Biography</p></blockquote>
"""

LEGACY_PAGE = """
<table class="fandom-table"><tbody><tr><td>
<aside><h2 class="pi-title">smash</h2>
<table class="pi-horizontal-group"><tr><td data-source="keybind">Primary</td></tr></table>
</aside>
</td></tr></tbody></table>
<div data-source="difficulty"><img alt="StarFull"></div>
"""

NEWS_PAGE = """
<a class="list-item" href="https://news.test/a"><div class="text"><h2>A</h2><p>first</p></div></a>
<a class="list-item" href="https://news.test/b"><div class="text"><h2>B</h2></div></a>
"""

ROSTER_PAGE = """
<div id="mr-main">
  <h3><span class="mw-headline">Vanguard</span></h3>
  <div class="gallery-image-wrapper accent" id="hulk">
    <img class="thumbimage" data-src="https://img.test/hulk.png" title="Hulk (Vanguard)">
  </div>
  <div class="gallery-image-wrapper accent" id="groot">
    <img class="thumbimage" data-src="https://img.test/groot.png" title="Groot (Vanguard)">
  </div>
</div>
"""


class FakeSite:
    """Canned pages keyed by URL; URLs ending in ``Denied`` fail the robots check."""

    def __init__(self) -> None:
        self.pages: dict[str, tuple[int, str]] = {}
        self.fetched: list[str] = []

    def __setitem__(self, url: str, page: tuple[int, str]) -> None:
        self.pages[url] = page

    async def is_allowed(self, session, url, agent_token=None):
        return not url.endswith("Denied")

    async def fetch_html(self, session, url):
        self.fetched.append(url)
        if url not in self.pages:
            return None, ConnectionError("unreachable")
        status, html = self.pages[url]
        return CrawlResult(url=url, status=status, html=html), None


@pytest.fixture
def pages(monkeypatch):
    site = FakeSite()
    monkeypatch.setattr(crawler, "is_allowed", site.is_allowed)
    monkeypatch.setattr(crawler, "fetch_html", site.fetch_html)
    monkeypatch.setattr(Settings, "wiki_base_url", BASE)
    monkeypatch.setattr(Settings, "ability_pause_s", 0)
    return site


async def _sink_with(*names: str) -> InMemorySink:
    sink = InMemorySink()
    for name in names:
        await sink.upsert_character(
            CharacterIdentity(id=name.lower(), name=name, category="duelist", image_url=""),
            "t0",
        )
    return sink


def test_build_character_url():
    assert build_character_url("Spider-Man", BASE) == BASE + "Spider-Man"
    assert build_character_url("Doctor Strange", BASE) == BASE + "Doctor_Strange"
    assert build_character_url("Cloak & Dagger", BASE) == BASE + "Cloak_%26_Dagger"
    assert build_character_url("Mister Fantastic's", BASE) == BASE + "Mister_Fantastic's"


@pytest.mark.asyncio
async def test_ability_pass_routes_each_layout(pages):
    pages[BASE + "Spider_Man"] = (200, CURRENT_PAGE)
    pages[BASE + "Hulk"] = (200, LEGACY_PAGE)
    sink = await _sink_with("Spider Man", "Hulk")

    summary = await run_ability_pass(None, sink)

    assert summary.total == 2
    assert summary.written == 2
    assert [a.name for a in sink.abilities["spider man"]] == ["Web Strike", "Web Swing"]
    assert sink.abilities["spider man"][0].stats == {"cooldown": "6s"}
    assert sink.abilities["spider man"][1].type == "E"
    (smash,) = sink.abilities["hulk"]
    assert smash.name == "Smash"
    assert smash.type == "Left Mouse Button"


@pytest.mark.asyncio
async def test_ability_pass_isolates_item_failures(pages):
    pages[BASE + "Broken"] = (500, "error")
    pages[BASE + "Empty"] = (200, "<p>stub</p>")
    pages[BASE + "Hulk"] = (200, LEGACY_PAGE)
    sink = await _sink_with("Denied", "Broken", "Missing", "Empty", "Hulk")

    summary = await run_ability_pass(None, sink)

    assert summary.total == 5
    assert summary.skipped == 2
    assert summary.failed == 2
    assert summary.written == 1
    assert list(sink.abilities) == ["hulk"]
    assert BASE + "Denied" not in pages.fetched


@pytest.mark.asyncio
async def test_sink_failure_only_abandons_that_item(pages):
    pages[BASE + "Spider_Man"] = (200, CURRENT_PAGE)
    pages[BASE + "Hulk"] = (200, LEGACY_PAGE)

    class FlakySink(InMemorySink):
        async def replace_abilities(self, character_id, abilities):
            if character_id == "spider man":
                raise SinkError("write rejected")
            return await super().replace_abilities(character_id, abilities)

    sink = FlakySink()
    for name in ("Spider Man", "Hulk"):
        await sink.upsert_character(
            CharacterIdentity(id=name.lower(), name=name, category="", image_url=""), "t0"
        )

    summary = await run_ability_pass(None, sink)

    assert summary.failed == 1
    assert summary.written == 1
    assert list(sink.abilities) == ["hulk"]


@pytest.mark.asyncio
async def test_unexpected_error_aborts_run(pages):
    pages[BASE + "Hulk"] = (200, LEGACY_PAGE)

    class ExplodingSink(InMemorySink):
        async def replace_abilities(self, character_id, abilities):
            raise RuntimeError("bug")

    sink = ExplodingSink()
    await sink.upsert_character(
        CharacterIdentity(id="hulk", name="Hulk", category="", image_url=""), "t0"
    )
    with pytest.raises(RuntimeError):
        await run_ability_pass(None, sink)


@pytest.mark.asyncio
async def test_unreadable_roster_ends_pass(pages):
    class DownSink(InMemorySink):
        async def list_characters(self):
            raise SinkError("store offline")

    summary = await run_lore_pass(None, DownSink())
    assert summary.total == 0
    assert summary.failed == 1


@pytest.mark.asyncio
async def test_lore_pass_writes_partial_profiles(pages):
    pages[BASE + "Spider_Man"] = (200, CURRENT_PAGE)
    pages[BASE + "Hulk"] = (200, LEGACY_PAGE)
    sink = await _sink_with("Spider Man", "Hulk")

    summary = await run_lore_pass(None, sink)

    assert summary.written == 2
    spidey = sink.characters["spider man"]
    assert spidey["health"] == 250
    assert spidey["difficulty"] == 2
    assert spidey["lore"] == "Friendly neighborhood hero."
    hulk = sink.characters["hulk"]
    assert hulk["health"] is None
    assert hulk["difficulty"] == 1
    assert hulk["lore"] is None


@pytest.mark.asyncio
async def test_news_pass_is_idempotent_on_url(pages, monkeypatch):
    clock = itertools.count(1)
    monkeypatch.setattr(crawler, "utc_now", lambda: f"t{next(clock)}")
    pages["https://news.test/list"] = (200, NEWS_PAGE)
    feeds = [
        NewsFeed(url="https://news.test/list", feed_type="announcement"),
        NewsFeed(url="https://news.test/gone", feed_type="update"),
    ]
    sink = InMemorySink()

    first = await run_news_pass(None, sink, feeds)
    second = await run_news_pass(None, sink, feeds)

    assert first.written == second.written == 2
    assert first.failed == 1
    assert sorted(sink.news) == ["https://news.test/a", "https://news.test/b"]
    item = sink.news["https://news.test/a"]
    assert item.created_at == "t1"
    assert item.published_at == "t1"
    assert item.updated_at == "t2"
    assert item.content == "first"
    assert sink.news["https://news.test/b"].content is None


@pytest.mark.asyncio
async def test_roster_pass(pages):
    pages["https://wiki.test/wiki/Heroes"] = (200, ROSTER_PAGE)
    sink = InMemorySink()

    summary = await run_roster_pass(None, sink, "https://wiki.test/wiki/Heroes")
    again = await run_roster_pass(None, sink, "https://wiki.test/wiki/Heroes")

    assert summary.written == again.written == 2
    assert await sink.list_characters() == [("hulk", "Hulk"), ("groot", "Groot")]
    assert sink.characters["hulk"]["category"] == "vanguard"


@pytest.mark.asyncio
async def test_ability_pass_pauses_after_each_fetch(pages, monkeypatch):
    pages[BASE + "Hulk"] = (200, LEGACY_PAGE)
    pages[BASE + "Groot"] = (200, "<p>stub</p>")
    sink = await _sink_with("Hulk", "Groot", "Missing")
    pauses: list[float] = []

    async def fake_sleep(seconds):
        pauses.append(seconds)

    monkeypatch.setattr(Settings, "ability_pause_s", 1.0)
    monkeypatch.setattr(crawler.asyncio, "sleep", fake_sleep)

    await run_ability_pass(None, sink)

    assert pauses == [1.0, 1.0]


@pytest.mark.asyncio
async def test_undecodable_page_does_not_abort_pass(monkeypatch):
    async def wiki_page(request):
        if request.match_info["name"] == "Bad":
            body = b"<html>\xff\xfe\xfa broken</html>"
        else:
            body = LEGACY_PAGE.encode("utf-8")
        return web.Response(body=body, content_type="text/html", charset="utf-8")

    app = web.Application()
    app.router.add_get("/wiki/{name}", wiki_page)
    server = TestServer(app)
    await server.start_server()

    async def allow_all(session, url, agent_token=None):
        return True

    monkeypatch.setattr(crawler, "is_allowed", allow_all)
    monkeypatch.setattr(Settings, "wiki_base_url", str(server.make_url("/wiki/")))
    monkeypatch.setattr(Settings, "ability_pause_s", 0)
    sink = await _sink_with("Bad", "Good")
    try:
        async with aiohttp.ClientSession() as session:
            summary = await run_ability_pass(session, sink)
    finally:
        await server.close()

    assert summary.total == 2
    assert summary.skipped == 1
    assert summary.written == 1
    assert [a.name for a in sink.abilities["good"]] == ["Smash"]


class ClosingSink(InMemorySink):
    def __init__(self) -> None:
        super().__init__()
        self.closed = 0

    async def aclose(self) -> None:
        self.closed += 1


@pytest.mark.asyncio
async def test_run_pass_closes_the_sink_it_opens(monkeypatch):
    opened: list[ClosingSink] = []

    def from_settings():
        opened.append(ClosingSink())
        return opened[-1]

    async def fake_runner(session, sink):
        return crawler.RunSummary("news", total=1, written=1)

    monkeypatch.setattr(crawler.RedisSink, "from_settings", staticmethod(from_settings))
    for name in crawler.PASSES:
        monkeypatch.setitem(crawler.PASSES, name, fake_runner)

    summary = await crawler.run_pass("news")
    summaries = await crawler.run_all_passes()
    given = ClosingSink()
    await crawler.run_pass("news", given)

    assert summary.written == 1
    assert len(summaries) == len(crawler.PASSES)
    assert [sink.closed for sink in opened] == [1, 1]
    assert given.closed == 0
