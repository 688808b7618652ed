"""Markdown rendering rules."""

from __future__ import annotations

import re
from typing import Sequence

from zotnotes.formatting.annotations import EXAMPLE, QUOTE, Dialect
from zotnotes.formatting.links import zotero_link
from zotnotes.formatting.metadata import ItemMetadata

FORMAT_ID = "md"
EXTENSION = ".md"

_WHITESPACE_RE = re.compile(r"\s+")


def wrap_block(block_type: str, body: str) -> str:
    if block_type == QUOTE:
        return "\n".join("> " + line for line in body.split("\n")) + "\n"
    if block_type == EXAMPLE:
        return f"*{body}*\n"
    return body + "\n"


def render_tags(tags: Sequence[str]) -> str:
    """Render tags as hashtags, e.g. ``#tag_one #tagtwo``."""

    cleaned = (_WHITESPACE_RE.sub("_", tag).replace("#", "") for tag in tags)
    return " ".join("#" + tag for tag in cleaned)


def escape_yaml(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def render_front_matter(meta: ItemMetadata) -> str:
    entries = (
        ("title", meta.title),
        ("author", meta.authors),
        ("date", meta.date),
        ("publication", meta.publication),
        ("doi", meta.doi),
        ("url", meta.url),
        ("zotero_key", meta.zotero_key),
        ("citekey", meta.citekey),
    )
    lines = ["---"]
    lines.extend(f'{key}: "{escape_yaml(value)}"' for key, value in entries if value)
    lines.append("---")
    return "\n".join(lines) + "\n\n"


def render_header(meta: ItemMetadata) -> str:
    output = render_front_matter(meta)
    output += f"# {meta.display_title}\n\n"

    if meta.abstract:
        output += "## Abstract\n\n" + meta.abstract + "\n\n"

    output += "## Annotations\n\n"
    return output


MARKDOWN_DIALECT = Dialect(
    format_id=FORMAT_ID,
    label="Markdown",
    extension=EXTENSION,
    render_link=zotero_link,
    wrap_block=wrap_block,
    render_tags=render_tags,
    render_header=render_header,
    placeholder="[{label} annotation at {location}]",
    link_gap="\n\n",
    tag_gap="\n",
)


__all__ = [
    "EXTENSION",
    "FORMAT_ID",
    "MARKDOWN_DIALECT",
    "escape_yaml",
    "render_front_matter",
    "render_header",
    "render_tags",
    "wrap_block",
]
