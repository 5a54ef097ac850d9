from __future__ import annotations

from dataclasses import dataclass, field
import re

from rivals_codex.config import Settings
from rivals_codex.extract.keys import (
    map_ability_type,
    map_mouse_binding,
    normalize_key,
    title_case,
    to_camel,
)
from rivals_codex.extract.layout import LayoutKind, classify, locate_skill_table
from rivals_codex.ingest.etl import PageNode

SKILL_TABLE_WIDTH = 3
STAT_SEPARATOR = " - "
LEGACY_PANEL_SELECTOR = ".fandom-table tr td aside"

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class Ability:
    character_id: str
    name: str
    type: str
    description: str = ""
    stats: dict[str, str] = field(default_factory=dict)


@dataclass
class AbilityExtraction:
    layout: LayoutKind
    abilities: list[Ability]
    failures: list[str] = field(default_factory=list)


@dataclass
class NoActiveAbility:
    pass


@dataclass
class ActiveAbility:
    ability: Ability


class SkillTableReader:
    """Row-by-row reader for the current skill table.

    Start rows open a new ability; continuation rows only ever attach to the
    ability opened by the nearest preceding start row.
    """

    def __init__(self, character_id: str) -> None:
        self.character_id = character_id
        self.state: NoActiveAbility | ActiveAbility = NoActiveAbility()
        self.abilities: list[Ability] = []
        self.failures: list[str] = []

    def feed(self, row: PageNode) -> None:
        cells = row.select("td")
        if len(cells) == SKILL_TABLE_WIDTH:
            self.start_row(cells)
        elif len(cells) == 1 and cells[0].attr("colspan") == str(SKILL_TABLE_WIDTH):
            self.continuation_row(cells[0])

    def start_row(self, cells: list[PageNode]) -> None:
        ability_type = _binding_from_cell(cells[0])
        name = title_case(cells[-1].text())
        if not name or not ability_type:
            self.failures.append(
                f"start row #{len(self.abilities) + len(self.failures) + 1} "
                f"missing {'name' if not name else 'type'}"
            )
            self.state = NoActiveAbility()
            return
        ability = Ability(character_id=self.character_id, name=name, type=ability_type)
        self.abilities.append(ability)
        self.state = ActiveAbility(ability)

    def continuation_row(self, cell: PageNode) -> None:
        if not isinstance(self.state, ActiveAbility):
            return
        ability = self.state.ability
        description = "".join(
            node.text(strip=False) for node in cell.select("small i")
        ).strip()
        if description:
            ability.description = description
        for bold in cell.select("b"):
            key, value = _split_stat(bold)
            if key and value:
                ability.stats[key] = value


def _binding_from_cell(cell: PageNode) -> str:
    image = cell.select_one("img")
    if image is not None:
        binding = map_mouse_binding(image.attr("title") or image.attr("alt"))
        if binding:
            return binding
    return cell.text().upper()


def _split_stat(bold: PageNode) -> tuple[str, str]:
    full_text = bold.text()
    label, separator, value = full_text.partition(STAT_SEPARATOR)
    if separator:
        return normalize_key(label), value.strip()
    return normalize_key(full_text.removesuffix(":")), bold.next_sibling_text()


def extract_current_abilities(table: PageNode, character_id: str) -> AbilityExtraction:
    reader = SkillTableReader(character_id)
    for row in table.select(":scope > tbody > tr, :scope > tr"):
        reader.feed(row)
    return AbilityExtraction(
        layout=LayoutKind.CURRENT,
        abilities=reader.abilities,
        failures=reader.failures,
    )


def _panel_text(panel: PageNode, selector: str) -> str:
    return " ".join(node.text() for node in panel.select(selector)).strip()


def _legacy_stats(panel: PageNode, camel_keys: bool) -> dict[str, str]:
    stats: dict[str, str] = {}
    for group in panel.select(".pi-horizontal-group"):
        labels = group.select(".pi-data-label")
        values = group.select(".pi-data-value")
        for index, label in enumerate(labels):
            key = normalize_key(label.text())
            if camel_keys:
                key = to_camel(key)
            value = values[index].text() if index < len(values) else ""
            if key and value:
                stats[key] = value
    properties = _panel_text(panel, '.pi-data[data-source="properties"] .pi-data-value')
    if properties:
        stats["properties"] = _WHITESPACE_RE.sub(" ", properties)
    return stats


def extract_legacy_abilities(
    document: PageNode, character_id: str, camel_keys: bool | None = None
) -> AbilityExtraction:
    if camel_keys is None:
        camel_keys = Settings.legacy_camel_keys
    abilities: list[Ability] = []
    failures: list[str] = []
    for index, panel in enumerate(document.select(LEGACY_PANEL_SELECTOR), start=1):
        name = title_case(_panel_text(panel, ".pi-title"))
        ability_type = map_ability_type(_panel_text(panel, 'td[data-source="keybind"]'))
        if not name or not ability_type:
            failures.append(f"panel #{index} missing {'name' if not name else 'type'}")
            continue
        abilities.append(
            Ability(
                character_id=character_id,
                name=name,
                type=ability_type,
                description=_panel_text(
                    panel, '.pi-data[data-source="description"] .pi-data-value'
                ),
                stats=_legacy_stats(panel, camel_keys),
            )
        )
    return AbilityExtraction(layout=LayoutKind.LEGACY, abilities=abilities, failures=failures)


def extract_abilities(document: PageNode, character_id: str) -> AbilityExtraction:
    if classify(document) is LayoutKind.CURRENT:
        return extract_current_abilities(locate_skill_table(document), character_id)
    return extract_legacy_abilities(document, character_id)
