"""Bibliographic metadata extraction shared by every output dialect."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

from ..models import BibliographicItem, Creator

logger = logging.getLogger(__name__)

CITEKEY_RE = re.compile(r"Citation Key:\s*(.+)", re.IGNORECASE)
UNTITLED = "Untitled"


@dataclass(slots=True, frozen=True)
class ItemMetadata:
    """Field values rendered into an export header.

    Empty strings mean "absent"; renderers skip them.
    """

    title: str = ""
    authors: str = ""
    date: str = ""
    publication: str = ""
    doi: str = ""
    url: str = ""
    abstract: str = ""
    zotero_key: str = ""
    citekey: str = ""

    @property
    def display_title(self) -> str:
        return self.title or UNTITLED


def extract_citekey(extra: str | None) -> str | None:
    """Return the citekey from a ``Citation Key: ...`` line in ``extra``."""

    if not extra:
        return None
    match = CITEKEY_RE.search(extra)
    if match is None:
        return None
    return match.group(1).strip() or None


def format_creator(creator: Creator) -> str:
    if creator.last_name:
        return f"{creator.last_name}, {creator.first_name or ''}"
    return creator.name or ""


def format_authors(creators: tuple[Creator, ...]) -> str:
    names = (format_creator(c) for c in creators if c.creator_type == "author")
    return "; ".join(name for name in names if name)


def extract_metadata(item: BibliographicItem) -> ItemMetadata:
    """Read every header field from ``item``, one guarded access per field."""

    def read(name: str) -> str:
        return _guarded(item, name, lambda: item.get_field(name))

    extra = read("extra")
    return ItemMetadata(
        title=read("title"),
        authors=_guarded(item, "creators", lambda: format_authors(item.creators)),
        date=read("date"),
        publication=read("publicationTitle"),
        doi=read("DOI"),
        url=read("url"),
        abstract=read("abstractNote"),
        zotero_key=item.key or "",
        citekey=extract_citekey(extra) or "",
    )


def item_title(item: BibliographicItem | None) -> str:
    """Return the item's title, or an empty string when unavailable."""

    if item is None:
        return ""
    return _guarded(item, "title", lambda: item.get_field("title"))


def _guarded(item: BibliographicItem, name: str, getter: Callable[[], object]) -> str:
    try:
        value = getter()
    except Exception as exc:
        logger.debug("Skipping field '%s' of item %s: %s", name, item.key, exc)
        return ""
    if value is None:
        return ""
    return str(value)


__all__ = [
    "CITEKEY_RE",
    "ItemMetadata",
    "UNTITLED",
    "extract_citekey",
    "extract_metadata",
    "format_authors",
    "format_creator",
    "item_title",
]
