from dataclasses import dataclass
import re

from rivals_codex.ingest.etl import PageNode

_NAME_RE = re.compile(r"^(.+?)\s*\(")


@dataclass
class CharacterIdentity:
    id: str
    name: str
    category: str
    image_url: str


@dataclass
class RosterListing:
    characters: list[CharacterIdentity]
    skipped: list[str]


def name_from_title(title: str) -> str:
    """``"Spider-Man (Duelist)"`` -> ``"Spider-Man"``."""
    match = _NAME_RE.match(title)
    return match.group(1).strip() if match else title.strip()


def parse_roster(document: PageNode) -> RosterListing:
    characters: list[CharacterIdentity] = []
    skipped: list[str] = []
    for section_index, section in enumerate(document.select("div#mr-main")):
        heading = section.select_one("h3 .mw-headline")
        category = heading.text().lower() if heading is not None else ""
        if not category:
            skipped.append(f"section #{section_index} has no category heading")
            continue
        for wrapper in section.select("div.gallery-image-wrapper.accent"):
            character_id = (wrapper.attr("id") or "").strip()
            if not character_id:
                skipped.append(f"{category} entry without id")
                continue
            image = wrapper.select_one("img.thumbimage")
            image_url = ((image.attr("data-src") or "") if image else "").strip()
            title = ((image.attr("title") or "") if image else "").strip()
            if not image_url or not title:
                skipped.append(
                    f"{character_id} missing {'image' if not image_url else 'title'}"
                )
                continue
            name = name_from_title(title)
            if not name:
                skipped.append(f"{character_id} has unparseable title {title!r}")
                continue
            characters.append(
                CharacterIdentity(
                    id=character_id, name=name, category=category, image_url=image_url
                )
            )
    return RosterListing(characters=characters, skipped=skipped)
