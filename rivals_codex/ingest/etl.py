from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, Tag


@dataclass(frozen=True, eq=False)
class PageNode:
    """Read-only view over one element of a parsed page.

    Extractors only query pages through this wrapper, so they can be tested
    against any HTML snippet without knowing how it was parsed.
    """

    element: Tag

    def select(self, selector: str) -> list[PageNode]:
        return [PageNode(tag) for tag in self.element.select(selector)]

    def select_one(self, selector: str) -> PageNode | None:
        tag = self.element.select_one(selector)
        return PageNode(tag) if tag is not None else None

    def attr(self, name: str) -> str | None:
        value = self.element.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def text(self, strip: bool = True) -> str:
        text = self.element.get_text()
        return text.strip() if strip else text

    def next_sibling_text(self) -> str:
        sibling = self.element.next_sibling
        if sibling is None:
            return ""
        if isinstance(sibling, NavigableString):
            return str(sibling).strip()
        return sibling.get_text().strip()


def parse_document(html: str) -> PageNode:
    return PageNode(BeautifulSoup(html, "html.parser"))
