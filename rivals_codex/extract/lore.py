from dataclasses import dataclass

from rivals_codex.ingest.etl import PageNode

BIOGRAPHY_MARKER = "— Biography"


@dataclass
class LoreExtraction:
    text: str | None
    missing_reason: str | None = None


def _is_unattributed(blockquote: PageNode) -> bool:
    # Blockquotes with an id or class are navigation/infobox furniture.
    return not blockquote.attr("id") and not blockquote.attr("class")


def extract_lore(document: PageNode) -> LoreExtraction:
    candidates = [bq for bq in document.select("blockquote") if _is_unattributed(bq)]
    if not candidates:
        return LoreExtraction(text=None, missing_reason="no_candidate_blockquote")

    for blockquote in candidates:
        paragraphs = blockquote.select("p")
        if not paragraphs or paragraphs[-1].text() != BIOGRAPHY_MARKER:
            continue
        body = "\n\n".join(
            text for text in (p.text() for p in paragraphs[:-1]) if text
        ).strip()
        if not body:
            return LoreExtraction(text=None, missing_reason="empty_lore")
        return LoreExtraction(text=body)

    return LoreExtraction(text=None, missing_reason="no_biography_marker")
