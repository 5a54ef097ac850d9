from dataclasses import dataclass, field
import re

from rivals_codex.ingest.etl import PageNode

FULL_STAR_LABELS = frozenset({"StarFull", "full star"})
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class CharacterStats:
    health: int | None = None
    difficulty: int | None = None


@dataclass
class StatsExtraction:
    stats: CharacterStats
    misses: dict[str, str] = field(default_factory=dict)


def parse_health_value(text: str) -> int | None:
    """Leading base-10 integer of a vitality field, ``None`` unless positive."""
    match = _LEADING_INT_RE.match(text.replace(",", ""))
    if not match:
        return None
    value = int(match.group(1), 10)
    return value if value > 0 else None


def extract_health(document: PageNode) -> tuple[int | None, str | None]:
    panel = document.select_one('div[data-source="health"]')
    if panel is None:
        return None, "health_panel_missing"
    value_node = panel.select_one("div.pi-data-value")
    raw = value_node.text() if value_node is not None else ""
    health = parse_health_value(raw)
    if health is None:
        return None, f"invalid_health:{raw!r}"
    return health, None


def count_full_stars(panel: PageNode) -> int:
    count = 0
    for image in panel.select("img"):
        label = image.attr("alt") or image.attr("title") or ""
        if label in FULL_STAR_LABELS:
            count += 1
    return count


def extract_difficulty(document: PageNode) -> tuple[int | None, str | None]:
    panel = document.select_one('div[data-source="difficulty"]')
    if panel is None:
        return None, "difficulty_panel_missing"
    stars = count_full_stars(panel)
    if not MIN_DIFFICULTY <= stars <= MAX_DIFFICULTY:
        return None, f"difficulty_out_of_range:{stars}"
    return stars, None


def extract_stats(document: PageNode) -> StatsExtraction:
    health, health_miss = extract_health(document)
    difficulty, difficulty_miss = extract_difficulty(document)
    misses = {}
    if health_miss:
        misses["health"] = health_miss
    if difficulty_miss:
        misses["difficulty"] = difficulty_miss
    return StatsExtraction(
        stats=CharacterStats(health=health, difficulty=difficulty), misses=misses
    )
