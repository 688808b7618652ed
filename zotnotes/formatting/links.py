"""Deep links pointing at an annotation inside its attachment.

Two link flavours are produced:

* org-pdftools links, ``[[pdf:PATH::PAGE++OFFSET;;annot-PAGE-KEY][Page N]]:``
* Zotero protocol links, ``[Page N](zotero://open-pdf/library/items/KEY?...)``
"""

from __future__ import annotations

import json
import logging
import math
import re
from pathlib import Path

from ..models import USER_LIBRARY_ID, Annotation, Attachment

logger = logging.getLogger(__name__)

# US Letter height in PDF points.
REFERENCE_PAGE_HEIGHT = 792.0

ORG_LINK_SCHEME = "pdf"
ZOTERO_PROTOCOL = "zotero"
EPUB_FALLBACK_LABEL = "Location"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-standard JSON constant: {name}")


def parse_page_number(label: str | None) -> int | None:
    """Return the integer a page label starts with, if any.

    ``"12"`` and ``"12a"`` give 12, ``"iv"`` and ``""`` give ``None``.
    """

    match = _LEADING_INT_RE.match(label or "")
    if match is None:
        return None
    return int(match.group(1))


def link_page(label: str | None) -> int:
    """Page number used inside links; never 0."""

    return parse_page_number(label) or 1


def sort_page(label: str | None) -> int:
    """Page number used for ordering; unlabeled annotations sort first."""

    return parse_page_number(label) or 0


def vertical_offset(position: str | None) -> float:
    """Percentage offset of the first rectangle from the page top.

    A ``y`` coordinate at or below 1 is taken as already normalized;
    anything else is scaled against ``REFERENCE_PAGE_HEIGHT`` and clamped
    to 100.
    """

    try:
        geometry = json.loads(position or "", parse_constant=_reject_constant)
    except (TypeError, ValueError):
        logger.debug("Ignoring malformed annotation position: %r", position)
        return 0.0

    if not isinstance(geometry, dict):
        return 0.0
    rects = geometry.get("rects")
    if not isinstance(rects, list) or not rects:
        return 0.0
    first = rects[0]
    if not isinstance(first, (list, tuple)) or len(first) < 4:
        return 0.0

    y = first[1]
    if isinstance(y, bool) or not isinstance(y, (int, float)):
        return 0.0
    if not math.isfinite(y):
        return 0.0
    if y <= 1:
        return y * 100
    return min(y / REFERENCE_PAGE_HEIGHT * 100, 100.0)


def org_pdf_link(path: Path | str | None, annotation: Annotation) -> str:
    """Render an org-pdftools link followed by the block colon."""

    page = link_page(annotation.page_label)
    offset = vertical_offset(annotation.position)
    target = (
        f"{ORG_LINK_SCHEME}:{path or ''}::{page}++{offset:.2f}"
        f";;annot-{page}-{annotation.key}"
    )
    return f"[[{target}][Page {page}]]:"


def library_path(attachment: Attachment) -> str:
    if attachment.library_id == USER_LIBRARY_ID and attachment.group_id is None:
        return "library"
    group = attachment.group_id
    if group is None:
        group = attachment.library_id
    return f"groups/{group}"


def zotero_link(annotation: Annotation, attachment: Attachment) -> str:
    """Render a Markdown link opening the annotation in the Zotero reader."""

    base = f"{ZOTERO_PROTOCOL}://"
    items_path = f"{library_path(attachment)}/items/{attachment.key}"

    if attachment.is_epub:
        label = annotation.page_label or EPUB_FALLBACK_LABEL
        url = f"{base}open-epub/{items_path}?annotation={annotation.key}"
        return f"[{label}]({url})"

    page = link_page(annotation.page_label)
    url = f"{base}open-pdf/{items_path}?page={page}&annotation={annotation.key}"
    return f"[Page {page}]({url})"


__all__ = [
    "EPUB_FALLBACK_LABEL",
    "REFERENCE_PAGE_HEIGHT",
    "library_path",
    "link_page",
    "org_pdf_link",
    "parse_page_number",
    "sort_page",
    "vertical_offset",
    "zotero_link",
]
