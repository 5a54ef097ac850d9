from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import redis.asyncio as redis

from rivals_codex.config import Settings
from rivals_codex.ingest.crawler import PASSES, run_pass
from rivals_codex.monitoring.logging_utils import get_event_logger
from rivals_codex.storage.redis_sink import RedisSink


app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
log_event = get_event_logger("api")


@app.on_event("startup")
async def startup() -> None:
    redis_client = redis.from_url(Settings.redis_url)
    app.state.redis_client = redis_client
    app.state.sink = RedisSink(redis_client)
    log_event("startup", redis=Settings.redis_url.rsplit("@", 1)[-1])


@app.on_event("shutdown")
async def shutdown() -> None:
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is not None:
        await redis_client.aclose()


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/scraping/{pass_name}")
async def trigger(pass_name: str) -> dict:
    if pass_name not in PASSES:
        raise HTTPException(status_code=404, detail=f"Unknown pass: {pass_name}")
    log_event("trigger", pass_name=pass_name)
    summary = await run_pass(pass_name, getattr(app.state, "sink", None))
    return summary.__dict__
