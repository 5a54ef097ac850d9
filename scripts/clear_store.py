import asyncio
from pathlib import Path
import sys

import redis.asyncio as redis

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rivals_codex.config import Settings


async def main() -> None:
    redis_client = redis.from_url(Settings.redis_url)
    base_keys = [
        Settings.character_index_key,
        Settings.character_seen_key,
        Settings.news_index_key,
    ]
    pipe = redis_client.pipeline()
    for key in base_keys:
        pipe.delete(key)
    await pipe.execute()

    patterns = [
        f"{Settings.character_key_prefix}*",
        f"{Settings.ability_key_prefix}*",
        f"{Settings.news_key_prefix}*",
    ]
    deleted = 0
    for pattern in patterns:
        async for key in redis_client.scan_iter(match=pattern, count=1000):
            await redis_client.delete(key)
            deleted += 1
    print(f"Cleared roster, ability and news records. Deleted {deleted} keys.")


if __name__ == "__main__":
    asyncio.run(main())
