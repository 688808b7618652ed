"""Org-mode rendering rules."""

from __future__ import annotations

import re
from typing import Sequence

from zotnotes.formatting.annotations import Dialect
from zotnotes.formatting.links import org_pdf_link
from zotnotes.formatting.metadata import ItemMetadata
from zotnotes.models import Annotation, Attachment

FORMAT_ID = "org"
EXTENSION = ".org"

_WHITESPACE_RE = re.compile(r"\s+")


def render_link(annotation: Annotation, attachment: Attachment) -> str:
    return org_pdf_link(attachment.path, annotation)


def wrap_block(block_type: str, body: str) -> str:
    return f"#+begin_{block_type}\n{body}\n#+end_{block_type}\n"


def render_tags(tags: Sequence[str]) -> str:
    """Join tags as an org tag string, e.g. ``:tag_one:tag-two:``."""

    cleaned = [_WHITESPACE_RE.sub("_", tag).replace(":", "-") for tag in tags]
    return ":" + ":".join(cleaned) + ":"


def render_header(meta: ItemMetadata) -> str:
    """Render a level-1 heading with a property drawer.

    Properties are emitted only for fields that carry a value.
    """

    properties = (
        ("AUTHOR", meta.authors),
        ("DATE", meta.date),
        ("PUBLICATION", meta.publication),
        ("DOI", meta.doi),
        ("URL", meta.url),
        ("ZOTERO_KEY", meta.zotero_key),
        ("CUSTOM_ID", meta.citekey),
    )

    lines = [f"* {meta.display_title}", ":PROPERTIES:"]
    lines.extend(f":{name}: {value}" for name, value in properties if value)
    lines.append(":END:")
    output = "\n".join(lines) + "\n\n"

    if meta.abstract:
        output += "** Abstract\n" + meta.abstract + "\n\n"

    output += "** Annotations\n\n"
    return output


ORG_DIALECT = Dialect(
    format_id=FORMAT_ID,
    label="Org-mode",
    extension=EXTENSION,
    render_link=render_link,
    wrap_block=wrap_block,
    render_tags=render_tags,
    render_header=render_header,
    placeholder="[{label} annotation on page {location}]",
)


__all__ = [
    "EXTENSION",
    "FORMAT_ID",
    "ORG_DIALECT",
    "render_header",
    "render_link",
    "render_tags",
    "wrap_block",
]
