"""Extract subpackage: turns parsed wiki pages into records."""

from rivals_codex.extract.abilities import (
    Ability,
    AbilityExtraction,
    extract_abilities,
    extract_current_abilities,
    extract_legacy_abilities,
)
from rivals_codex.extract.keys import (
    ABILITY_TYPE_MAP,
    map_ability_type,
    normalize_key,
    title_case,
    to_camel,
)
from rivals_codex.extract.layout import LayoutKind, classify, locate_skill_table
from rivals_codex.extract.lore import LoreExtraction, extract_lore
from rivals_codex.extract.news import NewsItem, parse_news_listing
from rivals_codex.extract.roster import CharacterIdentity, parse_roster
from rivals_codex.extract.stats import CharacterStats, extract_stats

__all__ = [
    # abilities
    "Ability",
    "AbilityExtraction",
    "extract_abilities",
    "extract_current_abilities",
    "extract_legacy_abilities",
    # keys
    "ABILITY_TYPE_MAP",
    "map_ability_type",
    "normalize_key",
    "title_case",
    "to_camel",
    # layout
    "LayoutKind",
    "classify",
    "locate_skill_table",
    # lore
    "LoreExtraction",
    "extract_lore",
    # news
    "NewsItem",
    "parse_news_listing",
    # roster
    "CharacterIdentity",
    "parse_roster",
    # stats
    "CharacterStats",
    "extract_stats",
]
