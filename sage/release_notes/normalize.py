"""
Repair common schema deviations in LLM release notes output.

Models drift from the requested shape in predictable ways: ``name`` instead
of ``title``, ``entries`` instead of ``items``, comma-separated citation
strings, ``label``/``href`` links, or sections keyed by title. This module
maps those variants back onto the ReleaseNotesOutput shape before schema
validation so a near-miss doesn't cost a retry.
"""

from typing import Any

_SECTION_TITLE_KEYS = ("title", "name")
_SECTION_ITEMS_KEYS = ("items", "entries")
_ITEM_TEXT_KEYS = ("text", "title", "summary")
_ITEM_CITATION_KEYS = ("citations", "citation", "issues")
_LINK_TEXT_KEYS = ("text", "label")
_LINK_URL_KEYS = ("url", "href")


def normalize_release_notes_output(raw: Any) -> dict[str, Any] | None:
    """Coerce raw model output into the release notes output shape.

    Args:
        raw: Parsed JSON returned by the model

    Returns:
        A dict with a non-empty ``sections`` list, or None when nothing
        usable could be recovered
    """
    if not isinstance(raw, dict):
        return None

    raw_sections = raw.get("sections")
    if isinstance(raw_sections, dict):
        raw_sections = [{"title": title, "items": items} for title, items in raw_sections.items()]
    if not isinstance(raw_sections, list):
        return None

    sections = [section for section in map(_normalize_section, raw_sections) if section]
    if not sections:
        return None
    return {"sections": sections}


def _normalize_section(raw: Any) -> dict[str, Any] | None:
    if not isinstance(raw, dict):
        return None

    title = _first_text(raw, _SECTION_TITLE_KEYS)
    if not title:
        return None

    raw_items = _first_present(raw, _SECTION_ITEMS_KEYS)
    items = _normalize_items(raw_items)
    if not items:
        return None
    return {"title": title, "items": items}


def _normalize_items(raw_items: Any) -> list[dict[str, Any]]:
    if isinstance(raw_items, dict):
        raw_items = [raw_items]
    if not isinstance(raw_items, list):
        return []
    return [item for item in map(_normalize_item, raw_items) if item]


def _normalize_item(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, str):
        raw = {"text": raw}
    if not isinstance(raw, dict):
        return None

    text = _first_text(raw, _ITEM_TEXT_KEYS)
    if not text:
        return None

    item: dict[str, Any] = {"text": text}

    citations = _normalize_citations(_first_present(raw, _ITEM_CITATION_KEYS))
    if citations:
        item["citations"] = citations

    subitems = _normalize_items(raw.get("subitems"))
    if subitems:
        item["subitems"] = subitems

    links = _normalize_links(raw.get("links"))
    if links:
        item["links"] = links

    return item


def _normalize_citations(raw: Any) -> list[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        return []
    return [str(value).strip() for value in raw if isinstance(value, str | int) and str(value).strip()]


def _normalize_links(raw: Any) -> list[dict[str, str]]:
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        return []

    links = []
    for candidate in raw:
        if not isinstance(candidate, dict):
            continue
        text = _first_text(candidate, _LINK_TEXT_KEYS)
        url = _first_text(candidate, _LINK_URL_KEYS)
        if text and url:
            links.append({"text": text, "url": url})
    return links


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _first_text(data: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    """Return the first non-blank string value among keys, trimmed."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
