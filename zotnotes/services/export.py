"""Export orchestration: from Zotero items to assembled markup text."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Sequence

from ..exporters import ExportError, UnknownFormatError
from ..formatting.annotations import Dialect
from ..formatting.links import sort_page
from ..formatting.metadata import item_title
from ..library import Library, LibraryEntry
from ..models import (
    Annotation,
    Attachment,
    BatchExportResult,
    BatchItemSummary,
    BibliographicItem,
    ExportResult,
)
from ..plugins import (
    ExportContribution,
    PluginRegistrationError,
    load_export_contributions,
    reset_plugin_manager_cache,
)

logger = logging.getLogger(__name__)

MAX_FILENAME_CHARS = 50
DEFAULT_FILENAME = "annotations"

_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9\-_\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def annotation_sort_key(annotation: Annotation) -> tuple[int, str]:
    """Order by numeric page, then by Zotero's position-derived sort index."""

    return sort_page(annotation.page_label), annotation.sort_index or ""


class Exporter:
    """Collects, orders and formats annotations for one or more items.

    The exporter holds no state besides the library it reads from, so a
    single instance can serve concurrent requests.
    """

    def __init__(self, library: Library) -> None:
        self.library = library

    def eligible_attachments(self, entry: LibraryEntry) -> list[Attachment]:
        """Return the PDF/EPUB attachments whose annotations should be exported."""

        if isinstance(entry, Attachment):
            return [entry] if entry.is_supported else []
        return [att for att in self.library.get_attachments(entry) if att.is_supported]

    def metadata_parent(self, entry: LibraryEntry) -> BibliographicItem | None:
        if isinstance(entry, BibliographicItem):
            return entry
        return self.library.get_parent(entry)

    def generate_content(
        self, entry: LibraryEntry, dialect: Dialect
    ) -> ExportResult | None:
        """Render ``entry``'s annotations, or return ``None`` when there are none.

        ``None`` covers both "no PDF/EPUB attachment" and "no annotations".
        Errors raised by the library propagate unchanged.
        """

        attachments = self.eligible_attachments(entry)
        if not attachments:
            logger.info("No PDF or EPUB attachments found for %s", entry.key)
            return None

        parent = self.metadata_parent(entry)
        parts: list[str] = []
        if parent is not None:
            parts.append(dialect.format_metadata(parent))

        total = 0
        for attachment in attachments:
            annotations = self.library.get_annotations(attachment)
            if not annotations:
                continue
            total += len(annotations)
            for annotation in sorted(annotations, key=annotation_sort_key):
                parts.append(dialect.format_annotation(annotation, attachment))
                parts.append("\n")

        if total == 0:
            logger.info("No annotations found for %s", entry.key)
            return None

        return ExportResult(content="".join(parts), annotation_count=total)

    def generate_batch_content(
        self,
        entries: Sequence[LibraryEntry],
        dialect: Dialect,
        citekeys: Sequence[str | None] | None = None,
    ) -> BatchExportResult | None:
        """Render several entries into a single blob.

        ``citekeys`` must be aligned with ``entries`` by position.
        """

        blocks: list[str] = []
        summaries: list[BatchItemSummary] = []
        total = 0

        for index, entry in enumerate(entries):
            result = self.generate_content(entry, dialect)
            if result is None or result.annotation_count == 0:
                logger.info("Skipping %s: nothing to export", entry.key)
                continue

            citekey = None
            if citekeys is not None and index < len(citekeys):
                citekey = citekeys[index]

            summaries.append(
                BatchItemSummary(
                    title=item_title(self.metadata_parent(entry)),
                    annotation_count=result.annotation_count,
                    citekey=citekey,
                )
            )
            blocks.append(result.content)
            total += result.annotation_count

        if not summaries:
            return None

        return BatchExportResult(
            content="\n".join(blocks),
            total_annotations=total,
            item_count=len(summaries),
            items=tuple(summaries),
        )


def clear_export_registry_cache() -> None:
    """Reset cached dialect discovery (primarily for testing)."""

    reset_plugin_manager_cache()


def _load_export_registry() -> dict[str, ExportContribution]:
    try:
        return load_export_contributions()
    except PluginRegistrationError as exc:
        raise ExportError(str(exc)) from exc


def get_export_format_choices() -> list[str]:
    """Return the list of available export format identifiers."""

    registry = _load_export_registry()
    return sorted(registry.keys())


def get_export_format_descriptions() -> list[tuple[str, str]]:
    """Return tuples of ``(format_id, description)`` for available dialects."""

    registry = _load_export_registry()
    return sorted(
        ((fmt, contrib.description) for fmt, contrib in registry.items()),
        key=lambda item: item[0],
    )


def get_dialect(export_format: str) -> Dialect:
    """Return the dialect registered under ``export_format``."""

    formats = _load_export_registry()
    contribution = formats.get(export_format.strip().lower())
    if contribution is None:
        raise UnknownFormatError(export_format, sorted(formats))
    return contribution.dialect


def suggest_filename(title: str | None, dialect: Dialect) -> str:
    """Derive a safe file name from ``title`` with the dialect's extension."""

    base = title or DEFAULT_FILENAME
    safe = _UNSAFE_FILENAME_RE.sub("", base)
    safe = _WHITESPACE_RE.sub("_", safe)[:MAX_FILENAME_CHARS]
    return f"{safe or DEFAULT_FILENAME}{dialect.extension}"


def resolve_items(
    library: Library,
    keys: Iterable[str] = (),
    citekeys: Iterable[str] = (),
) -> tuple[list[LibraryEntry], list[str | None], list[str]]:
    """Look up item keys and citekeys.

    Returns the found entries, the citekey each entry was requested by
    (``None`` for plain item keys), and the identifiers that matched nothing.
    """

    entries: list[LibraryEntry] = []
    labels: list[str | None] = []
    missing: list[str] = []
    for key in keys:
        entry = library.get_item(key)
        if entry is None:
            missing.append(key)
            continue
        entries.append(entry)
        labels.append(None)
    for citekey in citekeys:
        item = library.find_by_citekey(citekey)
        if item is None:
            missing.append(citekey)
            continue
        entries.append(item)
        labels.append(citekey)
    return entries, labels, missing


def export_items(
    exporter: Exporter,
    entries: Sequence[LibraryEntry],
    dialect: Dialect,
    destination: Path,
) -> list[tuple[Path, int]]:
    """Write one file per entry with content into ``destination``.

    Returns ``(path, annotation_count)`` for each written file.
    """

    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExportError(f"Cannot create {destination}: {exc}") from exc

    written: list[tuple[Path, int]] = []
    used: set[str] = set()
    for entry in entries:
        result = exporter.generate_content(entry, dialect)
        if result is None:
            continue

        title = item_title(exporter.metadata_parent(entry))
        filename = suggest_filename(title, dialect)
        if filename in used:
            filename = f"{Path(filename).stem}_{entry.key}{dialect.extension}"
        used.add(filename)

        path = destination / filename
        try:
            path.write_text(result.content, encoding="utf-8")
        except OSError as exc:
            raise ExportError(f"Failed to write {path}: {exc}") from exc
        written.append((path, result.annotation_count))
    return written


__all__ = [
    "ExportError",
    "Exporter",
    "annotation_sort_key",
    "clear_export_registry_cache",
    "export_items",
    "get_dialect",
    "get_export_format_choices",
    "get_export_format_descriptions",
    "resolve_items",
    "suggest_filename",
]
