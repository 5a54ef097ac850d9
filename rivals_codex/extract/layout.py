from enum import Enum

from rivals_codex.ingest.etl import PageNode

SKILL_TABLE_SELECTOR = "table.wikitable.skill-table"


class LayoutKind(str, Enum):
    CURRENT = "current"
    LEGACY = "legacy"


def locate_skill_table(document: PageNode) -> PageNode | None:
    return document.select_one(SKILL_TABLE_SELECTOR)


def classify(document: PageNode) -> LayoutKind:
    if locate_skill_table(document) is not None:
        return LayoutKind.CURRENT
    return LayoutKind.LEGACY
