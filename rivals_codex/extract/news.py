from dataclasses import dataclass

from rivals_codex.ingest.etl import PageNode


@dataclass
class NewsItem:
    title: str
    content: str | None
    url: str
    image_url: str | None
    type: str
    published_at: str
    created_at: str
    updated_at: str
    game_id: str


@dataclass
class NewsListing:
    items: list[NewsItem]
    skipped: list[str]


def parse_news_listing(
    document: PageNode, feed_type: str, game_id: str, now: str
) -> NewsListing:
    items: list[NewsItem] = []
    skipped: list[str] = []
    for index, anchor in enumerate(document.select("a.list-item"), start=1):
        link = (anchor.attr("href") or "").strip()
        if not link:
            skipped.append(f"entry #{index} has no link")
            continue
        title_node = anchor.select_one("div.text h2")
        title = title_node.text() if title_node is not None else ""
        if not title:
            skipped.append(f"entry {link} has no title")
            continue
        content_node = anchor.select_one("div.text p")
        image = anchor.select_one("div.img img")
        items.append(
            NewsItem(
                title=title,
                content=(content_node.text() if content_node is not None else "") or None,
                url=link,
                image_url=((image.attr("src") or "").strip() if image else "") or None,
                type=feed_type,
                published_at=now,
                created_at=now,
                updated_at=now,
                game_id=game_id,
            )
        )
    return NewsListing(items=items, skipped=skipped)
