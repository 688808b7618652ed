"""Data-access contract the exporter needs from a Zotero library."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import Annotation, Attachment, BibliographicItem

LibraryEntry = BibliographicItem | Attachment


class Library(Protocol):
    """Read-only view over items, attachments and annotations."""

    def get_item(self, key: str) -> LibraryEntry | None:
        """Return the regular item or attachment stored under ``key``."""

    def get_parent(self, attachment: Attachment) -> BibliographicItem | None:
        """Return the regular item ``attachment`` belongs to, if any."""

    def get_attachments(self, item: BibliographicItem) -> Sequence[Attachment]:
        """Return every child attachment of ``item``, whatever its type."""

    def get_annotations(self, attachment: Attachment) -> Sequence[Annotation]:
        """Return the annotations stored on ``attachment``."""

    def find_by_citekey(self, citekey: str) -> BibliographicItem | None:
        """Return the regular item whose citekey equals ``citekey``."""


__all__ = ["Library", "LibraryEntry"]
