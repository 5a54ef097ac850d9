"""Ingest subpackage: robots.txt gate and page parsing."""

from rivals_codex.ingest.etl import PageNode, parse_document
from rivals_codex.ingest.robots import (
    check_policy,
    evaluate_robots,
    is_allowed,
    robots_url_for,
)

__all__ = [
    # etl
    "PageNode",
    "parse_document",
    # robots
    "check_policy",
    "evaluate_robots",
    "is_allowed",
    "robots_url_for",
]
