"""Annotation and metadata formatting primitives."""

from __future__ import annotations

from .annotations import Dialect, format_annotation
from .links import org_pdf_link, sort_page, vertical_offset, zotero_link
from .metadata import ItemMetadata, extract_citekey, extract_metadata

__all__ = [
    "Dialect",
    "ItemMetadata",
    "extract_citekey",
    "extract_metadata",
    "format_annotation",
    "org_pdf_link",
    "sort_page",
    "vertical_offset",
    "zotero_link",
]
