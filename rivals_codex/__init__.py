"""Rivals Codex package."""

# Re-export public API
# Extract
from rivals_codex.extract import (
    ABILITY_TYPE_MAP,
    Ability,
    AbilityExtraction,
    CharacterIdentity,
    CharacterStats,
    LayoutKind,
    LoreExtraction,
    NewsItem,
    classify,
    extract_abilities,
    extract_current_abilities,
    extract_legacy_abilities,
    extract_lore,
    extract_stats,
    locate_skill_table,
    map_ability_type,
    normalize_key,
    parse_news_listing,
    parse_roster,
    title_case,
    to_camel,
)

# Ingest
from rivals_codex.ingest.crawler import (
    CrawlResult,
    RunSummary,
    build_character_url,
    fetch_html,
    run_ability_pass,
    run_all_passes,
    run_lore_pass,
    run_news_pass,
    run_pass,
    run_roster_pass,
)
from rivals_codex.ingest.etl import PageNode, parse_document
from rivals_codex.ingest.robots import evaluate_robots, is_allowed

# Storage
from rivals_codex.storage import InMemorySink, RecordSink, RedisSink, SinkError

__all__ = [
    # Extract
    "ABILITY_TYPE_MAP",
    "Ability",
    "AbilityExtraction",
    "CharacterIdentity",
    "CharacterStats",
    "LayoutKind",
    "LoreExtraction",
    "NewsItem",
    "classify",
    "extract_abilities",
    "extract_current_abilities",
    "extract_legacy_abilities",
    "extract_lore",
    "extract_stats",
    "locate_skill_table",
    "map_ability_type",
    "normalize_key",
    "parse_news_listing",
    "parse_roster",
    "title_case",
    "to_camel",
    # Ingest - crawler
    "CrawlResult",
    "RunSummary",
    "build_character_url",
    "fetch_html",
    "run_ability_pass",
    "run_all_passes",
    "run_lore_pass",
    "run_news_pass",
    "run_pass",
    "run_roster_pass",
    # Ingest - etl
    "PageNode",
    "parse_document",
    # Ingest - robots
    "evaluate_robots",
    "is_allowed",
    # Storage
    "InMemorySink",
    "RecordSink",
    "RedisSink",
    "SinkError",
]
