import asyncio
import logging
from urllib.parse import urljoin
from urllib.robotparser import RobotFileParser

import aiohttp

from rivals_codex.config import Settings
from rivals_codex.monitoring.logging_utils import get_event_logger

log_event = get_event_logger("robots")


class RobotsFetchError(Exception):
    """robots.txt could not be retrieved."""


def robots_url_for(target_url: str) -> str:
    return urljoin(target_url, "/robots.txt")


def evaluate_robots(robots_txt: str, target_url: str, agent_token: str) -> bool:
    parser = RobotFileParser()
    parser.parse(robots_txt.splitlines())
    return parser.can_fetch(agent_token, target_url)


async def fetch_robots_txt(session: aiohttp.ClientSession, target_url: str) -> str:
    robots_url = robots_url_for(target_url)
    timeout = aiohttp.ClientTimeout(total=Settings.request_timeout_s)
    async with session.get(robots_url, timeout=timeout) as response:
        if not 200 <= response.status < 300:
            raise RobotsFetchError(f"{robots_url} returned {response.status}")
        return await response.text()


async def check_policy(
    session: aiohttp.ClientSession, target_url: str, agent_token: str
) -> tuple[bool, Exception | None]:
    """Evaluate robots.txt for one URL, reporting why the policy was unreadable."""
    try:
        robots_txt = await fetch_robots_txt(session, target_url)
        return evaluate_robots(robots_txt, target_url, agent_token), None
    except (aiohttp.ClientError, asyncio.TimeoutError, RobotsFetchError, ValueError) as exc:
        return not Settings.robots_fail_closed, exc


async def is_allowed(
    session: aiohttp.ClientSession,
    target_url: str,
    agent_token: str | None = None,
) -> bool:
    # Unreadable policies fail open unless ROBOTS_FAIL_CLOSED is set.
    allowed, error = await check_policy(
        session, target_url, agent_token or Settings.robots_agent
    )
    if error is not None:
        log_event(
            "robots_warn",
            level=logging.WARNING,
            url=target_url,
            allowed=allowed,
            error=str(error) or type(error).__name__,
        )
    return allowed
