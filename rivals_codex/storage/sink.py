from __future__ import annotations

from dataclasses import asdict, replace
from typing import Protocol

from rivals_codex.extract.abilities import Ability
from rivals_codex.extract.news import NewsItem
from rivals_codex.extract.roster import CharacterIdentity
from rivals_codex.extract.stats import CharacterStats


class SinkError(Exception):
    """The backing store rejected a read or write."""


class RecordSink(Protocol):
    async def list_characters(self) -> list[tuple[str, str]]: ...

    async def upsert_character(self, character: CharacterIdentity, now: str) -> bool: ...

    async def update_profile(
        self, character_id: str, stats: CharacterStats, lore: str | None, now: str
    ) -> None: ...

    async def replace_abilities(self, character_id: str, abilities: list[Ability]) -> int: ...

    async def upsert_news(self, item: NewsItem) -> bool: ...


class InMemorySink:
    """Dict-backed sink used by tests and ``--dry-run``."""

    def __init__(self) -> None:
        self.characters: dict[str, dict] = {}
        self.abilities: dict[str, list[Ability]] = {}
        self.news: dict[str, NewsItem] = {}

    async def list_characters(self) -> list[tuple[str, str]]:
        return [(cid, row["name"]) for cid, row in self.characters.items()]

    async def upsert_character(self, character: CharacterIdentity, now: str) -> bool:
        row = self.characters.get(character.id)
        if row is None:
            self.characters[character.id] = {**asdict(character), "created_at": now, "updated_at": now}
            return True
        row.update(category=character.category, image_url=character.image_url, updated_at=now)
        return False

    async def update_profile(
        self, character_id: str, stats: CharacterStats, lore: str | None, now: str
    ) -> None:
        row = self.characters.setdefault(character_id, {"id": character_id})
        row.update(health=stats.health, difficulty=stats.difficulty, lore=lore, updated_at=now)

    async def replace_abilities(self, character_id: str, abilities: list[Ability]) -> int:
        by_name: dict[str, Ability] = {}
        for ability in abilities:
            by_name[ability.name] = ability
        self.abilities[character_id] = list(by_name.values())
        return len(by_name)

    async def upsert_news(self, item: NewsItem) -> bool:
        existing = self.news.get(item.url)
        if existing is None:
            self.news[item.url] = item
            return True
        self.news[item.url] = replace(
            item, created_at=existing.created_at, published_at=existing.published_at
        )
        return False
