"""Dialect-independent annotation rendering.

Every dialect renders an annotation in the same order: link, block, optional
comment paragraph, optional tag line. A :class:`Dialect` supplies only the
syntax for each of those pieces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from ..models import Annotation, Attachment, BibliographicItem
from .metadata import ItemMetadata, extract_metadata

QUOTE = "quote"
COMMENT = "comment"
EXAMPLE = "example"

QUOTED_KINDS = frozenset({"highlight", "underline"})
PLACEHOLDER_KINDS = {"image": "Image", "ink": "Ink/drawing"}

LinkRenderer = Callable[[Annotation, Attachment], str]
BlockWrapper = Callable[[str, str], str]
TagRenderer = Callable[[Sequence[str]], str]
HeaderRenderer = Callable[[ItemMetadata], str]


@dataclass(slots=True, frozen=True)
class Dialect:
    """Syntax policy for one output markup.

    ``wrap_block`` receives a block type (``quote``, ``comment`` or
    ``example``) and the block body, and returns the block text including
    its trailing newline. ``placeholder`` is a format string with
    ``{label}`` and ``{location}`` fields used for image and ink marks.
    """

    format_id: str
    label: str
    extension: str
    render_link: LinkRenderer
    wrap_block: BlockWrapper
    render_tags: TagRenderer
    render_header: HeaderRenderer
    placeholder: str
    link_gap: str = "\n"
    tag_gap: str = ""

    def format_annotation(self, annotation: Annotation, attachment: Attachment) -> str:
        return format_annotation(annotation, attachment, self)

    def format_metadata(self, item: BibliographicItem) -> str:
        return self.render_header(extract_metadata(item))


def format_annotation(
    annotation: Annotation, attachment: Attachment, dialect: Dialect
) -> str:
    """Render ``annotation`` as a text fragment ending with a newline."""

    head = dialect.render_link(annotation, attachment) + dialect.link_gap
    kind = annotation.kind

    if kind in QUOTED_KINDS:
        body = dialect.wrap_block(QUOTE, _clean(annotation.text))
        return head + body + _comment(annotation) + _tags(annotation, dialect)

    if kind == "note":
        body = dialect.wrap_block(COMMENT, _clean(annotation.comment))
        return head + body + _tags(annotation, dialect)

    if kind in PLACEHOLDER_KINDS:
        text = dialect.placeholder.format(
            label=PLACEHOLDER_KINDS[kind], location=annotation.page_label
        )
        body = dialect.wrap_block(EXAMPLE, text)
        return head + body + _comment(annotation) + _tags(annotation, dialect)

    fallback = annotation.text or annotation.comment or ""
    return head + fallback.strip() + "\n"


def _clean(value: str | None) -> str:
    return (value or "").strip()


def _comment(annotation: Annotation) -> str:
    comment = _clean(annotation.comment)
    if not comment:
        return ""
    return "\n" + comment + "\n"


def _tags(annotation: Annotation, dialect: Dialect) -> str:
    if not annotation.tags:
        return ""
    rendered = dialect.render_tags(annotation.tags)
    if not rendered:
        return ""
    return dialect.tag_gap + rendered + "\n"


__all__ = [
    "COMMENT",
    "Dialect",
    "EXAMPLE",
    "QUOTE",
    "format_annotation",
]
