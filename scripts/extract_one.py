import argparse
import asyncio
from dataclasses import asdict
import json
from pathlib import Path
import sys

import aiohttp

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rivals_codex.config import Settings
from rivals_codex.extract.abilities import extract_abilities
from rivals_codex.extract.lore import extract_lore
from rivals_codex.extract.stats import extract_stats
from rivals_codex.ingest.crawler import build_character_url, fetch_html
from rivals_codex.ingest.etl import parse_document


async def load_html(name: str, html_path: str) -> str:
    if html_path:
        return Path(html_path).read_text(encoding="utf-8")
    url = build_character_url(name)
    async with aiohttp.ClientSession(
        headers={"User-Agent": Settings.user_agent}
    ) as session:
        result, error = await fetch_html(session, url)
    if result is None:
        print(f"Fetch failed for {url}: {error}")
        return ""
    return result.html


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Print what the extractors make of one character page"
    )
    parser.add_argument("name", help="Character display name")
    parser.add_argument("--html", default="", help="Read a saved page instead of fetching")
    args = parser.parse_args()

    html = await load_html(args.name, args.html)
    if not html:
        return
    document = parse_document(html)
    abilities = extract_abilities(document, character_id=args.name)
    lore = extract_lore(document)
    stats = extract_stats(document)
    print(
        json.dumps(
            {
                "layout": abilities.layout.value,
                "abilities": [asdict(ability) for ability in abilities.abilities],
                "ability_failures": abilities.failures,
                "stats": asdict(stats.stats),
                "stat_misses": stats.misses,
                "lore": lore.text,
                "lore_missing_reason": lore.missing_reason,
            },
            indent=2,
            ensure_ascii=False,
        )
    )


if __name__ == "__main__":
    asyncio.run(main())
