from __future__ import annotations

import hashlib
import json

import redis.asyncio as redis
from redis.exceptions import RedisError

from rivals_codex.config import Settings
from rivals_codex.extract.abilities import Ability
from rivals_codex.extract.news import NewsItem
from rivals_codex.extract.roster import CharacterIdentity
from rivals_codex.extract.stats import CharacterStats
from rivals_codex.storage.sink import SinkError


def url_hash(url: str) -> str:
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def character_key(character_id: str) -> str:
    return f"{Settings.character_key_prefix}{character_id}"


def character_abilities_key(character_id: str) -> str:
    return f"{character_key(character_id)}:abilities"


def ability_key(character_id: str, name: str) -> str:
    return f"{Settings.ability_key_prefix}{character_id}:{name}"


def news_key(url: str) -> str:
    return f"{Settings.news_key_prefix}{url_hash(url)}"


def _decode_bytes(value: object | None) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return value.decode()
    return str(value)


def _optional(value: object | None) -> str:
    return "" if value is None else str(value)


def profile_mapping(stats: CharacterStats, lore: str | None, now: str) -> dict[str, str]:
    return {
        "health": _optional(stats.health),
        "difficulty": _optional(stats.difficulty),
        "lore": _optional(lore),
        "updated_at": now,
    }


def ability_mapping(ability: Ability, position: int) -> dict[str, object]:
    return {
        "character_id": ability.character_id,
        "name": ability.name,
        "type": ability.type,
        "description": ability.description,
        "stats": json.dumps(ability.stats, ensure_ascii=False),
        "position": position,
    }


def news_mapping(item: NewsItem) -> dict[str, str]:
    return {
        "title": item.title,
        "content": _optional(item.content),
        "url": item.url,
        "image_url": _optional(item.image_url),
        "type": item.type,
        "updated_at": item.updated_at,
        "game_id": item.game_id,
    }


class RedisSink:
    def __init__(self, redis_client: redis.Redis) -> None:
        self.redis_client = redis_client

    @classmethod
    def from_settings(cls) -> RedisSink:
        return cls(redis.from_url(Settings.redis_url))

    async def aclose(self) -> None:
        await self.redis_client.aclose()

    async def list_characters(self) -> list[tuple[str, str]]:
        try:
            raw_ids = await self.redis_client.lrange(Settings.character_index_key, 0, -1)
            ids = [_decode_bytes(raw) for raw in raw_ids]
            pipe = self.redis_client.pipeline()
            for character_id in ids:
                pipe.hget(character_key(character_id), "name")
            names = await pipe.execute()
        except RedisError as exc:
            raise SinkError(f"list characters: {exc}") from exc
        return [
            (character_id, _decode_bytes(name))
            for character_id, name in zip(ids, names)
            if name
        ]

    async def upsert_character(self, character: CharacterIdentity, now: str) -> bool:
        key = character_key(character.id)
        try:
            pipe = self.redis_client.pipeline(transaction=True)
            pipe.hsetnx(key, "name", character.name)
            pipe.hsetnx(key, "created_at", now)
            pipe.hset(
                key,
                mapping={
                    "id": character.id,
                    "category": character.category,
                    "image_url": character.image_url,
                    "game_id": Settings.game_id,
                    "updated_at": now,
                },
            )
            await pipe.execute()
            # Keep roster order stable across runs
            added = await self.redis_client.sadd(Settings.character_seen_key, character.id)
            if added:
                await self.redis_client.rpush(Settings.character_index_key, character.id)
        except RedisError as exc:
            raise SinkError(f"upsert character {character.id}: {exc}") from exc
        return bool(added)

    async def update_profile(
        self, character_id: str, stats: CharacterStats, lore: str | None, now: str
    ) -> None:
        try:
            await self.redis_client.hset(
                character_key(character_id), mapping=profile_mapping(stats, lore, now)
            )
        except RedisError as exc:
            raise SinkError(f"update profile {character_id}: {exc}") from exc

    async def replace_abilities(self, character_id: str, abilities: list[Ability]) -> int:
        index_key = character_abilities_key(character_id)
        names = {ability.name for ability in abilities}
        try:
            existing = await self.redis_client.smembers(index_key)
            pipe = self.redis_client.pipeline(transaction=True)
            for raw in existing:
                name = _decode_bytes(raw)
                if name not in names:
                    pipe.delete(ability_key(character_id, name))
                    pipe.srem(index_key, name)
            for position, ability in enumerate(abilities):
                pipe.hset(
                    ability_key(character_id, ability.name),
                    mapping=ability_mapping(ability, position),
                )
                pipe.sadd(index_key, ability.name)
            await pipe.execute()
        except RedisError as exc:
            raise SinkError(f"replace abilities {character_id}: {exc}") from exc
        return len(names)

    async def upsert_news(self, item: NewsItem) -> bool:
        key = news_key(item.url)
        try:
            pipe = self.redis_client.pipeline(transaction=True)
            pipe.hsetnx(key, "created_at", item.created_at)
            pipe.hsetnx(key, "published_at", item.published_at)
            pipe.hset(key, mapping=news_mapping(item))
            pipe.sadd(Settings.news_index_key, item.url)
            created, *_ = await pipe.execute()
        except RedisError as exc:
            raise SinkError(f"upsert news {item.url}: {exc}") from exc
        return bool(created)
