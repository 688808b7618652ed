"""Read-only records describing Zotero items, attachments and annotations."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

CONTENT_TYPE_PDF = "application/pdf"
CONTENT_TYPE_EPUB = "application/epub+zip"
SUPPORTED_CONTENT_TYPES = (CONTENT_TYPE_PDF, CONTENT_TYPE_EPUB)

USER_LIBRARY_ID = 1


class UnsupportedFieldError(KeyError):
    """Raised when a field is not defined for an item's type."""

    def __init__(self, item_type: str, name: str) -> None:
        super().__init__(f"Field '{name}' is not defined for item type '{item_type}'")
        self.item_type = item_type
        self.name = name


@dataclass(slots=True, frozen=True)
class Annotation:
    """A single mark made on an attachment page."""

    key: str
    kind: str
    page_label: str = ""
    position: str = ""
    sort_index: str = ""
    text: str | None = None
    comment: str | None = None
    color: str | None = None
    tags: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class Attachment:
    """A PDF/EPUB (or other) file attached to a bibliographic item."""

    item_id: int
    key: str
    library_id: int = USER_LIBRARY_ID
    content_type: str = ""
    path: Path | None = None
    parent_id: int | None = None
    group_id: int | None = None

    @property
    def is_pdf(self) -> bool:
        return self.content_type == CONTENT_TYPE_PDF

    @property
    def is_epub(self) -> bool:
        return self.content_type == CONTENT_TYPE_EPUB

    @property
    def is_supported(self) -> bool:
        return self.content_type in SUPPORTED_CONTENT_TYPES


@dataclass(slots=True, frozen=True)
class Creator:
    creator_type: str
    last_name: str = ""
    first_name: str = ""
    name: str = ""


@dataclass(slots=True, frozen=True)
class BibliographicItem:
    """A regular Zotero item carrying bibliographic fields."""

    item_id: int
    key: str
    library_id: int = USER_LIBRARY_ID
    item_type: str = ""
    fields: Mapping[str, str] = field(default_factory=dict)
    creators: tuple[Creator, ...] = ()
    defined_fields: frozenset[str] | None = None

    def get_field(self, name: str) -> str:
        """Return the value of ``name`` or an empty string when unset.

        Raises ``UnsupportedFieldError`` when the item type is known not to
        define ``name``.
        """

        if self.defined_fields is not None and name not in self.defined_fields:
            raise UnsupportedFieldError(self.item_type, name)
        return self.fields.get(name, "") or ""


@dataclass(slots=True, frozen=True)
class ExportResult:
    """Outcome of exporting a single item."""

    content: str
    annotation_count: int


@dataclass(slots=True, frozen=True)
class BatchItemSummary:
    title: str
    annotation_count: int
    citekey: str | None = None


@dataclass(slots=True, frozen=True)
class BatchExportResult:
    """Outcome of exporting several items into one text blob."""

    content: str
    total_annotations: int
    item_count: int
    items: tuple[BatchItemSummary, ...]


__all__ = [
    "Annotation",
    "Attachment",
    "BatchExportResult",
    "BatchItemSummary",
    "BibliographicItem",
    "CONTENT_TYPE_EPUB",
    "CONTENT_TYPE_PDF",
    "Creator",
    "ExportResult",
    "SUPPORTED_CONTENT_TYPES",
    "USER_LIBRARY_ID",
    "UnsupportedFieldError",
]
